"""
Reviews component - progress and final reviews attached to OKRs.
"""

from .component import (
    run_create_review,
    run_delete_review,
    run_list_reviews,
    run_update_review,
)
from .models import (
    CreateReviewInput,
    DeleteReviewInput,
    ListReviewsInput,
    ReviewListOutput,
    ReviewOutput,
    UpdateReviewInput,
)

__all__ = [
    # Entry points
    "run_create_review",
    "run_delete_review",
    "run_list_reviews",
    "run_update_review",
    # Input models
    "CreateReviewInput",
    "DeleteReviewInput",
    "ListReviewsInput",
    "UpdateReviewInput",
    # Output models
    "ReviewListOutput",
    "ReviewOutput",
]
