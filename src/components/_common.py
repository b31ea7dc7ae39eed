"""Helpers shared by every use-case component."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from src.domain.entities import Action, TeamId, TeamRole, UserId
from src.domain.errors import AppError
from src.ports.repo import RepositoryError

from .context import UseCaseContext

logger = logging.getLogger(__name__)

P = ParamSpec("P")
O = TypeVar("O")

ACTION_LABELS: dict[Action, str] = {
    "view": "view this team",
    "create_okr": "create OKRs in this team",
    "edit_okr": "edit this OKR",
    "delete_okr": "delete this OKR",
    "create_review": "review OKRs in this team",
    "edit_review": "edit this review",
    "delete_review": "delete this review",
    "invite_member": "invite members to this team",
    "change_role": "change member roles in this team",
    "remove_member": "remove members from this team",
    "edit_team_settings": "edit this team's settings",
    "delete_team": "delete this team",
}


def repository_guard(
    output_cls: Callable[..., O], message: str
) -> Callable[[Callable[P, O]], Callable[P, O]]:
    """
    Turn a RepositoryError escaping a use case into a ``repository`` error
    output. The cause goes to the log and onto ``AppError.cause``; the
    caller only sees ``message``.
    """

    def decorator(func: Callable[P, O]) -> Callable[P, O]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> O:
            try:
                return func(*args, **kwargs)
            except RepositoryError as e:
                logger.exception("%s in %s", message, func.__name__)
                return output_cls(success=False, error=AppError.repository(message, cause=e))

        return wrapper

    return decorator


def member_role(ctx: UseCaseContext, team_id: TeamId, user_id: UserId) -> TeamRole | None:
    member = ctx.members.get_by_team_and_user(team_id, user_id)
    return member.role if member else None


def denied(action: Action, resource: str, user_id: UserId) -> AppError:
    logger.debug("Denied %s on %s for user %s", action, resource, user_id)
    return AppError.forbidden(f"You are not allowed to {ACTION_LABELS[action]}", resource=resource)
