"""
Movie Schemas - request/response models and listing options
"""
from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
from enum import Enum
from uuid import UUID, uuid4

from app.models.movie import Movie
from app.schemas.validation import SafeStringMixin


class SortOrder(str, Enum):
    UNSORTED = "unsorted"
    ASCENDING = "ascending"
    DESCENDING = "descending"


# ============================================
# Requests
# ============================================

class MovieWriteRequest(BaseModel, SafeStringMixin):
    """Shared body of create and update; field rules live in validate_movie"""
    title: str = Field(..., description="Movie title")
    year_of_release: int = Field(..., description="Release year")
    genres: List[str] = Field(default_factory=list, description="Genre names, order preserved")

    @field_validator('title')
    @classmethod
    def clean_title(cls, v):
        return cls.strip_markup(v)

    @field_validator('genres')
    @classmethod
    def clean_genres(cls, v):
        return [cls.strip_markup(g) for g in v]

    def to_movie(self, movie_id: Optional[UUID] = None) -> Movie:
        movie = Movie(
            id=movie_id or uuid4(),
            title=self.title,
            year_of_release=self.year_of_release,
            genres=self.genres,
        )
        movie.refresh_slug()
        return movie


class CreateMovieRequest(MovieWriteRequest):
    model_config = ConfigDict(json_schema_extra={
        "example": {"title": "Inception", "year_of_release": 2010, "genres": ["Sci-Fi", "Action"]}
    })


class UpdateMovieRequest(MovieWriteRequest):
    pass


class GetAllMoviesOptions(BaseModel):
    """Filter, sort and paging options for the listing query"""
    title: Optional[str] = None
    year_of_release: Optional[int] = None
    sort_field: Optional[str] = None
    sort_order: SortOrder = SortOrder.UNSORTED
    page: int = 1
    page_size: int = 10
    user_id: Optional[UUID] = None

    def with_user(self, user_id: Optional[UUID]) -> "GetAllMoviesOptions":
        return self.model_copy(update={"user_id": user_id})


class GetAllMoviesRequest(BaseModel):
    """Raw listing query string as sent by the client"""
    title: Optional[str] = None
    year: Optional[int] = None
    sort_by: Optional[str] = None  # "title", "+title" or "-year"
    page: int = 1
    page_size: int = 10

    def to_options(self) -> GetAllMoviesOptions:
        if self.sort_by is None:
            sort_field, sort_order = None, SortOrder.UNSORTED
        else:
            sort_field = self.sort_by.strip("+-")
            sort_order = SortOrder.DESCENDING if self.sort_by.startswith("-") else SortOrder.ASCENDING

        return GetAllMoviesOptions(
            title=self.title,
            year_of_release=self.year,
            sort_field=sort_field,
            sort_order=sort_order,
            page=self.page,
            page_size=self.page_size,
        )


# ============================================
# Responses
# ============================================

class MovieResponse(BaseModel):
    id: UUID
    title: str
    slug: str
    year_of_release: int
    rating: Optional[float] = None
    user_rating: Optional[int] = None
    genres: List[str] = []

    model_config = ConfigDict(from_attributes=True)


class MoviesResponse(BaseModel):
    """One page of the movie listing"""
    items: List[MovieResponse]
    page: int
    page_size: int
    total: int
    has_next_page: bool

    @classmethod
    def from_movies(cls, movies: List[Movie], page: int, page_size: int, total: int) -> "MoviesResponse":
        return cls(
            items=[MovieResponse.model_validate(m) for m in movies],
            page=page,
            page_size=page_size,
            total=total,
            has_next_page=total > page * page_size,
        )
