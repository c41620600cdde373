from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from uuid import UUID
import os
import secrets

from app.utils.security import (
    decode_token,
    has_claim,
    USER_ID_CLAIM,
    ADMIN_CLAIM,
    TRUSTED_MEMBER_CLAIM,
)

API_KEY_HEADER = "x-api-key"
# Identity given to callers authenticated by API key instead of a token
API_KEY_USER_ID = UUID(os.getenv("API_KEY_USER_ID", "d8566de3-b1a6-4a9b-b842-8e3887a82e41"))

# auto_error=False: anonymous requests reach the route, which decides
security = HTTPBearer(auto_error=False)


def _decode(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[dict]:
    if credentials is None:
        return None
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        return None
    return payload


def user_id_from_claims(claims: Optional[dict]) -> Optional[UUID]:
    raw = claims.get(USER_ID_CLAIM) if claims else None
    if raw is None:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        return None


# Anonymous allowed; a bad token is treated as no token
def get_optional_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[dict]:
    return _decode(credentials)


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    claims = _decode(credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def get_optional_user_id(claims: Optional[dict] = Depends(get_optional_claims)) -> Optional[UUID]:
    return user_id_from_claims(claims)


def get_current_user_id(claims: dict = Depends(get_current_claims)) -> UUID:
    user_id = user_id_from_claims(claims)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no user id")
    return user_id


def require_trusted_member(claims: dict = Depends(get_current_claims)) -> dict:
    """Create/update policy: trusted members and admins"""
    if not (has_claim(claims, TRUSTED_MEMBER_CLAIM) or has_claim(claims, ADMIN_CLAIM)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Trusted member access required")
    return claims


def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
) -> dict:
    """
    Delete policy: an admin claim, or the configured API key

    The API key path is for trusted automated callers; they act as
    API_KEY_USER_ID.
    """
    claims = _decode(credentials)
    if has_claim(claims, ADMIN_CLAIM):
        return claims

    expected = os.getenv("API_KEY")
    if expected and api_key and secrets.compare_digest(api_key, expected):
        return {USER_ID_CLAIM: str(API_KEY_USER_ID), ADMIN_CLAIM: True}

    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
