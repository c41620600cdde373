"""
Rating Service - Handle all rating-related business logic
"""

from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from app.repositories.movie_repository import SqlMovieRepository
from app.repositories.rating_repository import SqlRatingRepository
from app.schemas.rating import MovieRating
from app.schemas.validation import validate_rating

logger = logging.getLogger(__name__)


class RatingService:
    """Service for movie rating operations"""

    @staticmethod
    def rate_movie(db: Session, movie_id: UUID, rating: int, user_id: UUID) -> bool:
        """
        Add a new rating or overwrite the user's previous one

        Returns:
            False when the movie does not exist

        Raises:
            ValidationFailed: If rating value is outside 1-5
        """
        validate_rating(rating)

        if not SqlMovieRepository(db).exists_by_id(movie_id):
            return False

        rated = SqlRatingRepository(db).rate(movie_id, user_id, rating)
        logger.info(f"User {user_id} rated movie {movie_id} with {rating}")
        return rated

    @staticmethod
    def delete_rating(db: Session, movie_id: UUID, user_id: UUID) -> bool:
        """Remove the user's rating; False when there was none"""
        return SqlRatingRepository(db).delete_rating(movie_id, user_id)

    @staticmethod
    def get_ratings_for_user(db: Session, user_id: UUID) -> List[MovieRating]:
        """All ratings given by one user, with the slug of each rated movie"""
        return SqlRatingRepository(db).get_ratings_for_user(user_id)
