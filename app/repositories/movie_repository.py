"""
Movie data access - CRUD and the filtered/sorted/paged listing query.

Every read attaches the average rating across all users (rounded to one
decimal) and, when a user id is given, that user's own rating. Genres are
loaded with a second query and keep their insertion order.
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, insert, select, update
from sqlalchemy.orm import Session, aliased

from app.database import transaction
from app.models.movie import Movie, Genre
from app.models.rating import Rating
from app.schemas.movie import GetAllMoviesOptions, SortOrder

# Storage column name -> mapped column. Only these can reach ORDER BY.
SORTABLE_COLUMNS = {
    "title": Movie.title,
    "year_of_release": Movie.year_of_release,
}


class MovieRepository(ABC):
    @abstractmethod
    def create(self, movie: Movie) -> bool:
        pass

    @abstractmethod
    def get_by_id(self, movie_id: UUID, user_id: Optional[UUID] = None) -> Optional[Movie]:
        pass

    @abstractmethod
    def get_by_slug(self, slug: str, user_id: Optional[UUID] = None) -> Optional[Movie]:
        pass

    @abstractmethod
    def get_all(self, options: GetAllMoviesOptions) -> List[Movie]:
        pass

    @abstractmethod
    def update(self, movie: Movie) -> bool:
        pass

    @abstractmethod
    def delete_by_id(self, movie_id: UUID) -> bool:
        pass

    @abstractmethod
    def exists_by_id(self, movie_id: UUID) -> bool:
        pass

    @abstractmethod
    def get_count(self, title: Optional[str] = None, year_of_release: Optional[int] = None) -> int:
        pass


class SqlMovieRepository(MovieRepository):
    """MovieRepository over a SQLAlchemy session (one per request)"""

    def __init__(self, db: Session):
        self.db = db

    # ---------- writes ----------

    def create(self, movie: Movie) -> bool:
        with transaction(self.db):
            result = self.db.execute(
                insert(Movie).values(
                    id=movie.id,
                    slug=movie.slug,
                    title=movie.title,
                    year_of_release=movie.year_of_release,
                )
            )
            if result.rowcount > 0:
                self._insert_genres(movie.id, movie.genres)

        return result.rowcount > 0

    def update(self, movie: Movie) -> bool:
        with transaction(self.db):
            result = self.db.execute(
                update(Movie)
                .where(Movie.id == movie.id)
                .values(slug=movie.slug, title=movie.title, year_of_release=movie.year_of_release)
            )
            # Genre set is replaced wholesale, and only for a movie that exists
            if result.rowcount > 0:
                self.db.execute(delete(Genre).where(Genre.movie_id == movie.id))
                self._insert_genres(movie.id, movie.genres)

        return result.rowcount > 0

    def delete_by_id(self, movie_id: UUID) -> bool:
        with transaction(self.db):
            self.db.execute(delete(Genre).where(Genre.movie_id == movie_id))
            result = self.db.execute(delete(Movie).where(Movie.id == movie_id))

        return result.rowcount > 0

    def _insert_genres(self, movie_id: UUID, genres: Iterable[str]) -> None:
        rows = [{"movie_id": movie_id, "name": name} for name in genres]
        if rows:
            self.db.execute(insert(Genre), rows)

    # ---------- reads ----------

    def get_by_id(self, movie_id: UUID, user_id: Optional[UUID] = None) -> Optional[Movie]:
        return self._get_one(Movie.id == movie_id, user_id)

    def get_by_slug(self, slug: str, user_id: Optional[UUID] = None) -> Optional[Movie]:
        return self._get_one(Movie.slug == slug, user_id)

    def get_all(self, options: GetAllMoviesOptions) -> List[Movie]:
        stmt = self._filtered(self._select_with_ratings(options.user_id), options.title, options.year_of_release)

        column = SORTABLE_COLUMNS.get(options.sort_field) if options.sort_field else None
        if column is not None and options.sort_order != SortOrder.UNSORTED:
            stmt = stmt.order_by(column.desc() if options.sort_order == SortOrder.DESCENDING else column.asc())

        # id as the last sort key keeps pages stable between requests
        stmt = (
            stmt.order_by(Movie.id)
            .limit(options.page_size)
            .offset((options.page - 1) * options.page_size)
        )

        movies = [self._hydrate(row) for row in self.db.execute(stmt).all()]
        genres = self._load_genres([m.id for m in movies])
        for movie in movies:
            movie.genres = genres.get(movie.id, [])
        return movies

    def exists_by_id(self, movie_id: UUID) -> bool:
        count = self.db.execute(select(func.count(Movie.id)).where(Movie.id == movie_id)).scalar_one()
        return count > 0

    def get_count(self, title: Optional[str] = None, year_of_release: Optional[int] = None) -> int:
        stmt = self._filtered(select(func.count(Movie.id)), title, year_of_release)
        return self.db.execute(stmt).scalar_one()

    # ---------- query building ----------

    @staticmethod
    def _select_with_ratings(user_id: Optional[UUID]):
        average = (
            select(
                Rating.movie_id.label("movie_id"),
                func.round(func.avg(Rating.rating), 1).label("rating"),
            )
            .group_by(Rating.movie_id)
            .subquery("average_ratings")
        )
        mine = aliased(Rating, name="my_rating")

        # user_id None compiles to IS NULL and never matches, so user_rating stays null
        return (
            select(Movie, average.c.rating, mine.rating)
            .outerjoin(average, average.c.movie_id == Movie.id)
            .outerjoin(mine, and_(mine.movie_id == Movie.id, mine.user_id == user_id))
        )

    @staticmethod
    def _filtered(stmt, title: Optional[str], year_of_release: Optional[int]):
        if title is not None:
            stmt = stmt.where(Movie.title.contains(title, autoescape=True))
        if year_of_release is not None:
            stmt = stmt.where(Movie.year_of_release == year_of_release)
        return stmt

    def _get_one(self, criterion, user_id: Optional[UUID]) -> Optional[Movie]:
        row = self.db.execute(self._select_with_ratings(user_id).where(criterion)).first()
        if row is None:
            return None

        movie = self._hydrate(row)
        movie.genres = self._load_genres([movie.id]).get(movie.id, [])
        return movie

    @staticmethod
    def _hydrate(row) -> Movie:
        movie, rating, user_rating = row
        movie.rating = float(rating) if rating is not None else None
        movie.user_rating = user_rating
        return movie

    def _load_genres(self, movie_ids: List[UUID]) -> Dict[UUID, List[str]]:
        genres = defaultdict(list)
        if not movie_ids:
            return genres

        rows = self.db.execute(
            select(Genre.movie_id, Genre.name)
            .where(Genre.movie_id.in_(movie_ids))
            .order_by(Genre.id)
        ).all()
        for movie_id, name in rows:
            genres[movie_id].append(name)
        return genres
