"""
Import all models to ensure they are registered with SQLAlchemy
"""
from app.models.movie import Movie, Genre
from app.models.rating import Rating

__all__ = [
    "Movie",
    "Genre",
    "Rating",
]
