"""
Rating Schemas - Pydantic models for rating request/response validation
"""

from pydantic import BaseModel, Field, ConfigDict
from uuid import UUID


class RateMovieRequest(BaseModel):
    """Body of PUT /movies/{id}/ratings; range is checked by RatingService"""
    rating: int = Field(..., description="Rating value (1-5)")

    model_config = ConfigDict(json_schema_extra={"example": {"rating": 4}})


class MovieRating(BaseModel):
    """A rating given by one user, with the slug of the rated movie"""
    rating: int
    slug: str
    movie_id: UUID

    model_config = ConfigDict(from_attributes=True)
