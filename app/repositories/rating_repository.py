"""
Rating data access - one row per (user, movie), written with an upsert
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.database import transaction
from app.models.movie import Movie
from app.models.rating import Rating
from app.schemas.rating import MovieRating

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RatingRepository(ABC):
    @abstractmethod
    def rate(self, movie_id: UUID, user_id: UUID, rating: int) -> bool:
        pass

    @abstractmethod
    def get_average_rating(self, movie_id: UUID) -> Optional[float]:
        pass

    @abstractmethod
    def get_rating(self, movie_id: UUID, user_id: UUID) -> Tuple[Optional[float], Optional[int]]:
        pass

    @abstractmethod
    def delete_rating(self, movie_id: UUID, user_id: UUID) -> bool:
        pass

    @abstractmethod
    def get_ratings_for_user(self, user_id: UUID) -> List[MovieRating]:
        pass


class SqlRatingRepository(RatingRepository):
    """RatingRepository over a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def rate(self, movie_id: UUID, user_id: UUID, rating: int) -> bool:
        dialect = self.db.get_bind().dialect.name
        upsert_insert = _UPSERT_INSERTS.get(dialect)

        with transaction(self.db):
            if upsert_insert is not None:
                stmt = upsert_insert(Rating).values(user_id=user_id, movie_id=movie_id, rating=rating)
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id", "movie_id"],
                    set_={"rating": stmt.excluded.rating},
                )
                return self.db.execute(stmt).rowcount > 0

            # Check-then-write for dialects without ON CONFLICT
            existing = self.db.execute(
                select(Rating).where(Rating.movie_id == movie_id, Rating.user_id == user_id)
            ).scalar_one_or_none()
            if existing:
                existing.rating = rating
            else:
                self.db.add(Rating(user_id=user_id, movie_id=movie_id, rating=rating))
            return True

    def get_average_rating(self, movie_id: UUID) -> Optional[float]:
        average = self.db.execute(
            select(func.round(func.avg(Rating.rating), 1)).where(Rating.movie_id == movie_id)
        ).scalar()
        return float(average) if average is not None else None

    def get_rating(self, movie_id: UUID, user_id: UUID) -> Tuple[Optional[float], Optional[int]]:
        user_rating = self.db.execute(
            select(Rating.rating).where(Rating.movie_id == movie_id, Rating.user_id == user_id)
        ).scalar_one_or_none()
        return self.get_average_rating(movie_id), user_rating

    def delete_rating(self, movie_id: UUID, user_id: UUID) -> bool:
        with transaction(self.db):
            result = self.db.execute(
                delete(Rating).where(Rating.movie_id == movie_id, Rating.user_id == user_id)
            )
        return result.rowcount > 0

    def get_ratings_for_user(self, user_id: UUID) -> List[MovieRating]:
        rows = self.db.execute(
            select(Rating.rating, Movie.slug, Rating.movie_id)
            .join(Movie, Movie.id == Rating.movie_id)
            .where(Rating.user_id == user_id)
            .order_by(Movie.slug)
        ).all()
        return [MovieRating(rating=r.rating, slug=r.slug, movie_id=r.movie_id) for r in rows]
