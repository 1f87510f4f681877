"""Rating schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from deligo.models.enums import RatingTarget


class RatingCreate(BaseModel):
    target: RatingTarget
    score: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class RatingResponse(BaseModel):
    id: int
    order_id: str
    author_id: int
    target: RatingTarget
    target_id: int
    score: int
    comment: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RatingSummary(BaseModel):
    """Aggregate score for a restaurant or driver; ``average`` is None without ratings."""

    target: RatingTarget
    target_id: int
    count: int
    average: Decimal | None
