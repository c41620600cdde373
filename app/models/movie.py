import re
from sqlalchemy import Column, Integer, String, ForeignKey, Uuid
from sqlalchemy.orm import reconstructor
from app.database import Base

_SLUG_STRIP = re.compile(r"[^0-9A-Za-z _-]")


def generate_slug(title: str, year_of_release: int) -> str:
    """'The Matrix: Reloaded', 2003 -> 'the-matrix-reloaded-2003'"""
    cleaned = _SLUG_STRIP.sub("", title)
    return f"{cleaned.lower().replace(' ', '-')}-{year_of_release}"


class Movie(Base):
    """
    Movie catalog entry.

    `genres`, `rating` and `user_rating` are not columns: the repository
    fills them from the genres and ratings tables on every read.
    """
    __tablename__ = "movies"

    id = Column(Uuid, primary_key=True)
    slug = Column(String, nullable=False, unique=True, index=True)
    title = Column(String, nullable=False)
    year_of_release = Column(Integer, nullable=False)

    def __init__(self, genres=None, rating=None, user_rating=None, **kwargs):
        super().__init__(**kwargs)
        self.genres = list(genres or [])
        self.rating = rating
        self.user_rating = user_rating

    @reconstructor
    def _init_on_load(self):
        self.genres = []
        self.rating = None
        self.user_rating = None

    def refresh_slug(self) -> str:
        self.slug = generate_slug(self.title or "", self.year_of_release)
        return self.slug

    def __repr__(self):
        return f"<Movie(id={self.id}, slug={self.slug})>"


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, autoincrement=True)  # keeps insertion order
    movie_id = Column(Uuid, ForeignKey("movies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
