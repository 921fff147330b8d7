from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

from .config import MAX_COMMENT_LENGTH, MAX_SCORE, MIN_SCORE


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# Recommendations
class MovieRecommendation(CamelModel):
    id: str
    title: str
    released_year: Optional[int] = None
    tagline: Optional[str] = None
    reason: str
    score: float


class RecommendationResponse(CamelModel):
    movies: list[MovieRecommendation]


# Ratings
class RatingCreate(CamelModel):
    movie_id: str
    rating: int = Field(ge=MIN_SCORE, le=MAX_SCORE)
    comment: Optional[str] = Field(default=None, max_length=MAX_COMMENT_LENGTH)

    @field_validator("movie_id")
    @classmethod
    def movie_id_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Movie ID is required")
        return value.strip()


class RatingUpdate(CamelModel):
    rating: int = Field(ge=MIN_SCORE, le=MAX_SCORE)
    comment: Optional[str] = Field(default=None, max_length=MAX_COMMENT_LENGTH)


class RatingOut(CamelModel):
    id: int
    rating: int
    comment: Optional[str]
    timestamp: datetime
    user_id: str
    user_name: Optional[str]
    movie_id: str
    movie_title: Optional[str]


class PagedRatingsOut(CamelModel):
    content: list[RatingOut]
    total_elements: int
    total_pages: int
    page_number: int
    page_size: int
    first: bool
    last: bool


class AverageRatingOut(CamelModel):
    movie_id: str
    average: float
    count: int


# Events
class RatingEvent(CamelModel):
    event_type: str  # RATING_CREATED | RATING_UPDATED | RATING_DELETED
    rating_id: int
    user_id: str
    movie_id: str
    rating: int
    comment: Optional[str] = None
    timestamp: datetime
