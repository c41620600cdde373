"""
Rating Routes - rate a movie, remove a rating, list my ratings
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from app.database import get_db
from app.utils.dependencies import get_current_user_id
from app.schemas.rating import RateMovieRequest, MovieRating
from app.services.rating_service import RatingService

router = APIRouter(tags=["Ratings"])


@router.put("/movies/{movie_id}/ratings", status_code=status.HTTP_200_OK)
def rate_movie(
    movie_id: UUID,
    request: RateMovieRequest,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Rate a movie from 1 to 5

    Rating the same movie again overwrites the previous value.
    """
    if not RatingService.rate_movie(db, movie_id, request.rating, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/movies/{movie_id}/ratings", status_code=status.HTTP_200_OK)
def delete_rating(
    movie_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Remove the current user's rating of a movie"""
    if not RatingService.delete_rating(db, movie_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rating not found")
    return Response(status_code=status.HTTP_200_OK)


@router.get("/ratings/me", response_model=List[MovieRating])
def get_my_ratings(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """All ratings given by the current user, ordered by movie slug"""
    return RatingService.get_ratings_for_user(db, user_id)
