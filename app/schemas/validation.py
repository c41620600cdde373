"""Validation rules for movie payloads, listing options and ratings"""

from pydantic import BaseModel
from datetime import datetime, timezone
from typing import List, Optional
import bleach
import html

# Public sort names -> movies table columns. Closed set: anything else is rejected.
SORT_FIELD_COLUMNS = {
    "title": "title",
    "year": "year_of_release",
}

# Earliest surviving motion picture
MIN_YEAR_OF_RELEASE = 1888
# int32 ceiling of the page number
MAX_PAGE = 2_147_483_647
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 25
MIN_RATING = 1
MAX_RATING = 5


class ValidationFailure(BaseModel):
    property_name: str
    message: str


class ValidationFailed(Exception):
    """Raised with every rule a payload broke, rendered as a 400 by app.main"""

    def __init__(self, failures: List[ValidationFailure]):
        self.failures = failures
        super().__init__("; ".join(f.message for f in failures))


class SafeStringMixin:
    """Mixin for markup-free string fields"""

    @staticmethod
    def strip_markup(value: Optional[str]) -> Optional[str]:
        """Remove every HTML tag, keep the text"""
        if not value:
            return value
        # bleach escapes "&" and "<"; titles are stored as plain text
        return html.unescape(bleach.clean(value, tags=[], strip=True)).strip()


def _current_year() -> int:
    return datetime.now(timezone.utc).year


def _year_failure(year: Optional[int]) -> Optional[ValidationFailure]:
    if year is None:
        return None
    if year < MIN_YEAR_OF_RELEASE:
        return ValidationFailure(
            property_name="year_of_release",
            message=f"Year of release must be greater than or equal to {MIN_YEAR_OF_RELEASE}"
        )
    if year > _current_year():
        return ValidationFailure(
            property_name="year_of_release",
            message=f"Year of release must be less than or equal to {_current_year()}"
        )
    return None


def _raise_if_any(failures: List[ValidationFailure]) -> None:
    if failures:
        raise ValidationFailed(failures)


def validate_movie(movie, existing_with_slug=None) -> None:
    """
    Field rules for create/update.

    `existing_with_slug` is whatever movie currently owns the candidate slug;
    it only counts as a clash when it is a different movie.
    """
    failures = []

    if movie.id is None:
        failures.append(ValidationFailure(property_name="id", message="Id must not be empty"))

    if not movie.title or not movie.title.strip():
        failures.append(ValidationFailure(property_name="title", message="Title must not be empty"))

    if movie.year_of_release is None:
        failures.append(ValidationFailure(property_name="year_of_release", message="Year of release must not be empty"))
    elif year_failure := _year_failure(movie.year_of_release):
        failures.append(year_failure)

    if not movie.genres:
        failures.append(ValidationFailure(property_name="genres", message="Genres must not be empty"))
    elif any(not g or not g.strip() for g in movie.genres):
        failures.append(ValidationFailure(property_name="genres", message="Genre names must not be blank"))

    if existing_with_slug is not None and existing_with_slug.id != movie.id:
        failures.append(ValidationFailure(
            property_name="slug",
            message="This movie already exists in the system"
        ))

    _raise_if_any(failures)


def validate_get_all_movies_options(options) -> None:
    """Listing rules; all broken rules are reported together"""
    failures = []

    if year_failure := _year_failure(options.year_of_release):
        failures.append(year_failure)

    if options.sort_field is not None and options.sort_field.lower() not in SORT_FIELD_COLUMNS:
        failures.append(ValidationFailure(
            property_name="sort_field",
            message=f"You can only sort by 'title' or 'year', but not {options.sort_field}"
        ))

    if options.page < 1:
        failures.append(ValidationFailure(property_name="page", message="Page must be greater than or equal to 1"))
    elif options.page > MAX_PAGE:
        failures.append(ValidationFailure(property_name="page", message=f"Page must be less than or equal to {MAX_PAGE}"))

    if not MIN_PAGE_SIZE <= options.page_size <= MAX_PAGE_SIZE:
        failures.append(ValidationFailure(
            property_name="page_size",
            message=f"You can get between {MIN_PAGE_SIZE} and {MAX_PAGE_SIZE} movies per page"
        ))

    _raise_if_any(failures)


def validate_rating(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationFailed([ValidationFailure(
            property_name="rating",
            message=f"Rating must be between {MIN_RATING} and {MAX_RATING}"
        )])
