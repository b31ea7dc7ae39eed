from dataclasses import dataclass, field

from src.domain.entities import OkrId, Review, ReviewId, UserId
from src.domain.errors import AppError


@dataclass(frozen=True)
class CreateReviewInput:
    okr_id: OkrId
    type: str
    content: str


@dataclass(frozen=True)
class UpdateReviewInput:
    review_id: ReviewId
    content: str | None = None
    type: str | None = None


@dataclass(frozen=True)
class DeleteReviewInput:
    review_id: ReviewId


@dataclass(frozen=True)
class ListReviewsInput:
    okr_id: OkrId
    type: str | None = None
    reviewer_id: UserId | None = None
    page: int = 1
    limit: int | None = None


@dataclass(frozen=True)
class ReviewOutput:
    review: Review | None = None
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class ReviewListOutput:
    reviews: list[Review] = field(default_factory=list)
    total: int = 0
    success: bool = False
    error: AppError | None = None
