from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.database import get_db
from app.schemas.movie import (
    CreateMovieRequest,
    UpdateMovieRequest,
    GetAllMoviesRequest,
    MovieResponse,
    MoviesResponse,
)
from app.schemas.validation import MIN_YEAR_OF_RELEASE, MAX_PAGE
from app.services.movie_service import MovieService
from app.utils.dependencies import (
    get_optional_user_id,
    require_trusted_member,
    require_admin,
    user_id_from_claims,
)

router = APIRouter(prefix="/movies", tags=["Movies"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")


@router.post("", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def create_movie(
    request: CreateMovieRequest,
    response: Response,
    claims: dict = Depends(require_trusted_member),
    db: Session = Depends(get_db)
):
    """
    Create a movie

    - **title**: Movie title (required)
    - **year_of_release**: Not later than the current year
    - **genres**: At least one genre

    The slug is derived from title and year and must be unique.
    """
    movie = request.to_movie()
    MovieService.create(db, movie)
    response.headers["Location"] = f"{router.prefix}/{movie.id}"
    return MovieResponse.model_validate(movie)


@router.get("", response_model=MoviesResponse)
def get_all_movies(
    title: Optional[str] = Query(None, description="Title substring"),
    year: Optional[int] = Query(None, ge=MIN_YEAR_OF_RELEASE, description="Exact release year"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="title or year, prefix '-' for descending"),
    page: int = Query(1, le=MAX_PAGE, description="Page number"),
    page_size: int = Query(10, alias="pageSize", description="Movies per page (1-25)"),
    user_id: Optional[UUID] = Depends(get_optional_user_id),
    db: Session = Depends(get_db)
):
    """
    List movies with filtering, sorting and pagination

    Signed-in callers also get their own rating of each movie.
    """
    request = GetAllMoviesRequest(title=title, year=year, sort_by=sort_by, page=page, page_size=page_size)
    options = request.to_options().with_user(user_id)

    movies = MovieService.get_all(db, options)
    total = MovieService.get_count(db, options.title, options.year_of_release)
    return MoviesResponse.from_movies(movies, options.page, options.page_size, total)


@router.get("/{id_or_slug}", response_model=MovieResponse)
def get_movie(
    id_or_slug: str,
    user_id: Optional[UUID] = Depends(get_optional_user_id),
    db: Session = Depends(get_db)
):
    """Get a movie by id, or by slug when the value is not a UUID"""
    try:
        movie = MovieService.get_by_id(db, UUID(id_or_slug), user_id)
    except ValueError:
        movie = MovieService.get_by_slug(db, id_or_slug, user_id)

    if movie is None:
        raise _not_found()
    return MovieResponse.model_validate(movie)


@router.put("/{movie_id}", response_model=MovieResponse)
def update_movie(
    movie_id: UUID,
    request: UpdateMovieRequest,
    claims: dict = Depends(require_trusted_member),
    db: Session = Depends(get_db)
):
    """Replace title, year and genres of a movie"""
    movie = request.to_movie(movie_id)
    updated = MovieService.update(db, movie, user_id_from_claims(claims))
    if updated is None:
        raise _not_found()
    return MovieResponse.model_validate(updated)


@router.delete("/{movie_id}", status_code=status.HTTP_200_OK)
def delete_movie(
    movie_id: UUID,
    claims: dict = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a movie and its genres (admin or API key only)"""
    if not MovieService.delete_by_id(db, movie_id):
        raise _not_found()
    return Response(status_code=status.HTTP_200_OK)
