from fastapi import FastAPI, Request, HTTPException, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
from sqlalchemy.orm import Session
from app.database import get_db, check_connection
from app.routes import movies, ratings
from app.middleware.security import SecurityHeadersMiddleware
from app.migrations.create_all_tables import create_tables
from app.schemas.validation import ValidationFailed, ValidationFailure
import os
import logging

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    - Create missing tables (unless AUTO_CREATE_TABLES=false)
    - Log configuration

    Shutdown:
    - Log shutdown
    """
    logger.info("=" * 60)
    logger.info("Movies API Starting...")
    logger.info(f"   Environment: {os.getenv('ENVIRONMENT', 'development')}")
    logger.info(f"   API key auth: {'enabled' if os.getenv('API_KEY') else 'disabled'}")
    logger.info("=" * 60)

    if os.getenv("AUTO_CREATE_TABLES", "true").lower() != "false":
        create_tables()

    yield

    logger.info("=" * 60)
    logger.info("Movies API Shutting Down...")
    logger.info("=" * 60)


# Create FastAPI app with lifespan handler
app = FastAPI(
    title="Movies API",
    description="Movie catalog with user ratings",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Trusted Hosts - Production only
def trusted_hosts_from_env() -> list:
    """Comma-separated TRUSTED_HOSTS, blanks dropped"""
    return [host.strip() for host in os.getenv("TRUSTED_HOSTS", "").split(",") if host.strip()]


if os.getenv("ENVIRONMENT") == "production":
    if trusted_hosts := trusted_hosts_from_env():
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)


# ============================================
# Exception Handlers - CORS headers on every error response
# ============================================

def _with_cors(request: Request, response: JSONResponse) -> JSONResponse:
    origin = request.headers.get("origin")
    if origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
    return response


def _validation_response(request: Request, failures) -> JSONResponse:
    return _with_cors(request, JSONResponse(
        status_code=400,
        content={"errors": [f.model_dump() for f in failures]}
    ))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _with_cors(request, JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    ))


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    """Every broken rule in one 400 body"""
    logger.warning(f"Validation failed for {request.method} {request.url.path}: {exc}")
    return _validation_response(request, exc.failures)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed body or query string, same 400 shape as rule failures"""
    failures = [
        ValidationFailure(
            property_name=".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    return _validation_response(request, failures)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return _with_cors(request, JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    ))


# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "Movies API",
        "version": API_VERSION,
        "status": "healthy",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """Health check including a database round-trip"""
    try:
        check_connection(db)
    except Exception as e:
        logger.error(f"Database is unhealthy: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable"}
        )

    return {
        "status": "healthy",
        "api_version": API_VERSION,
        "database": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(movies.router)
app.include_router(ratings.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
