"""
Movie Service - validation, existence checks and rating enrichment
around the movie and rating repositories
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from typing import List, Optional
from uuid import UUID
import logging

from app.models.movie import Movie
from app.repositories.movie_repository import SqlMovieRepository
from app.repositories.rating_repository import SqlRatingRepository
from app.schemas.movie import GetAllMoviesOptions, SortOrder
from app.schemas.validation import (
    SORT_FIELD_COLUMNS,
    validate_movie,
    validate_get_all_movies_options,
)

logger = logging.getLogger(__name__)


class MovieService:
    """Service for movie catalog operations"""

    @staticmethod
    def _validate(repository: SqlMovieRepository, movie: Movie) -> None:
        movie.refresh_slug()
        validate_movie(movie, repository.get_by_slug(movie.slug))

    @staticmethod
    def _slug_conflict(movie: Movie, error: IntegrityError) -> HTTPException:
        # Another request took the slug between validation and the write
        logger.warning(f"Slug conflict for '{movie.slug}': {error.orig}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A movie with slug '{movie.slug}' already exists"
        )

    @staticmethod
    def create(db: Session, movie: Movie) -> bool:
        """
        Validate and insert a movie with its genres

        Raises:
            ValidationFailed: broken field rules or slug already taken
            HTTPException: 409 when the unique slug index rejects the insert
        """
        repository = SqlMovieRepository(db)
        MovieService._validate(repository, movie)

        try:
            created = repository.create(movie)
        except IntegrityError as e:
            raise MovieService._slug_conflict(movie, e)

        logger.info(f"Created movie {movie.id} ({movie.slug})")
        return created

    @staticmethod
    def get_by_id(db: Session, movie_id: UUID, user_id: Optional[UUID] = None) -> Optional[Movie]:
        return SqlMovieRepository(db).get_by_id(movie_id, user_id)

    @staticmethod
    def get_by_slug(db: Session, slug: str, user_id: Optional[UUID] = None) -> Optional[Movie]:
        return SqlMovieRepository(db).get_by_slug(slug, user_id)

    @staticmethod
    def get_all(db: Session, options: GetAllMoviesOptions) -> List[Movie]:
        """
        Validate listing options, translate the public sort name to its
        column and run the listing query
        """
        validate_get_all_movies_options(options)

        column = SORT_FIELD_COLUMNS.get(options.sort_field.lower()) if options.sort_field else None
        if column is None:
            options = options.model_copy(update={"sort_field": None, "sort_order": SortOrder.UNSORTED})
        else:
            options = options.model_copy(update={"sort_field": column})

        return SqlMovieRepository(db).get_all(options)

    @staticmethod
    def update(db: Session, movie: Movie, user_id: Optional[UUID] = None) -> Optional[Movie]:
        """
        Replace title, year and genres of an existing movie

        Returns None (and writes nothing) when the movie does not exist.
        The returned movie carries the current average rating and, when
        user_id is given, that user's rating.
        """
        repository = SqlMovieRepository(db)
        MovieService._validate(repository, movie)

        if not repository.exists_by_id(movie.id):
            return None

        try:
            repository.update(movie)
        except IntegrityError as e:
            raise MovieService._slug_conflict(movie, e)

        ratings = SqlRatingRepository(db)
        if user_id is None:
            movie.rating = ratings.get_average_rating(movie.id)
        else:
            movie.rating, movie.user_rating = ratings.get_rating(movie.id, user_id)

        logger.info(f"Updated movie {movie.id} ({movie.slug})")
        return movie

    @staticmethod
    def delete_by_id(db: Session, movie_id: UUID) -> bool:
        deleted = SqlMovieRepository(db).delete_by_id(movie_id)
        if deleted:
            logger.info(f"Deleted movie {movie_id}")
        return deleted

    @staticmethod
    def get_count(db: Session, title: Optional[str] = None, year_of_release: Optional[int] = None) -> int:
        return SqlMovieRepository(db).get_count(title, year_of_release)
