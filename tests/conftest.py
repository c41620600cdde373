import os
import uuid
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Tables come from the fixtures below, not from the app's startup hook
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("API_KEY", "test-api-key")

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.movie import Movie  # noqa: E402
from app.repositories.movie_repository import SqlMovieRepository  # noqa: E402
from app.utils.security import create_access_token  # noqa: E402

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    """FastAPI test client with the database dependency overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)


def make_movie(title="Inception", year=2010, genres=("Sci-Fi", "Action"), movie_id=None) -> Movie:
    movie = Movie(id=movie_id or uuid.uuid4(), title=title, year_of_release=year, genres=list(genres))
    movie.refresh_slug()
    return movie


def create_movie(session, **kwargs) -> Movie:
    movie = make_movie(**kwargs)
    SqlMovieRepository(session).create(movie)
    return movie


def bearer(user_id=None, admin=False, trusted_member=False) -> dict:
    claims = {"userid": str(user_id or uuid.uuid4())}
    if admin:
        claims["admin"] = True
    if trusted_member:
        claims["trusted_member"] = True
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def member_id():
    return uuid.uuid4()


@pytest.fixture
def member_headers(member_id):
    """Trusted member: may create and update"""
    return bearer(member_id, trusted_member=True)


@pytest.fixture
def admin_headers():
    return bearer(admin=True)


@pytest.fixture
def user_headers():
    """Signed-in user without any role claim"""
    return bearer()
