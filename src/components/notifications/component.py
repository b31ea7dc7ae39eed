"""
Notifications component - per-user preferences and read state.

Delivery is somebody else's job; this covers what a user sees in their
inbox and which kinds of notification they want.
"""

import logging
from dataclasses import fields

from src.domain.entities import NotificationSettings, UserId
from src.domain.errors import AppError, ValidationIssue
from src.domain.validation import check_id, check_pagination

from .._common import repository_guard
from ..context import UseCaseContext
from .models import (
    ListNotificationsInput,
    MarkAllOutput,
    MarkAsReadInput,
    NotificationListOutput,
    NotificationOutput,
    SettingsOutput,
    UpdateSettingsInput,
)

logger = logging.getLogger(__name__)

SETTING_FIELDS = tuple(f.name for f in fields(UpdateSettingsInput))


def settings_for(ctx: UseCaseContext, user_id: UserId) -> NotificationSettings:
    """Stored settings, created with every flag on the first time they are asked for."""
    settings = ctx.notifications.get_settings(user_id)
    if settings is None:
        settings = ctx.notifications.save_settings(NotificationSettings(user_id=user_id))
        logger.debug("Created default notification settings for %s", user_id)
    return settings


@repository_guard(SettingsOutput, "Failed to load notification settings")
def run_get_settings(ctx: UseCaseContext) -> SettingsOutput:
    actor = ctx.identity.current()
    if not actor:
        return SettingsOutput(error=AppError.unauthenticated())

    return SettingsOutput(settings=settings_for(ctx, actor.user_id), success=True)


@repository_guard(SettingsOutput, "Failed to update notification settings")
def run_update_settings(inp: UpdateSettingsInput, ctx: UseCaseContext) -> SettingsOutput:
    actor = ctx.identity.current()
    if not actor:
        return SettingsOutput(error=AppError.unauthenticated())

    issues = [
        ValidationIssue(name, "invalid_type", f"{name} must be true or false")
        for name in SETTING_FIELDS
        if getattr(inp, name) is not None and not isinstance(getattr(inp, name), bool)
    ]
    if issues:
        return SettingsOutput(error=AppError.validation(issues))

    current = settings_for(ctx, actor.user_id)
    updates = {name: getattr(inp, name) for name in SETTING_FIELDS if getattr(inp, name) is not None}
    saved = ctx.notifications.save_settings(current.model_copy(update=updates))
    return SettingsOutput(settings=saved, success=True)


@repository_guard(NotificationListOutput, "Failed to list notifications")
def run_list_notifications(
    inp: ListNotificationsInput, ctx: UseCaseContext
) -> NotificationListOutput:
    """The caller's notifications, newest first."""
    actor = ctx.identity.current()
    if not actor:
        return NotificationListOutput(error=AppError.unauthenticated())

    limit = inp.limit or ctx.rules.pagination.default_limit
    issues = check_pagination(inp.page, limit, ctx.rules.pagination)
    if issues:
        return NotificationListOutput(error=AppError.validation(issues))

    page = ctx.notifications.list_by_user(
        actor.user_id, inp.page, limit, unread_only=bool(inp.unread_only)
    )
    return NotificationListOutput(
        notifications=page.items,
        total=page.total,
        unread_count=page.unread_count,
        success=True,
    )


@repository_guard(NotificationOutput, "Failed to mark notification as read")
def run_mark_as_read(inp: MarkAsReadInput, ctx: UseCaseContext) -> NotificationOutput:
    actor = ctx.identity.current()
    if not actor:
        return NotificationOutput(error=AppError.unauthenticated())

    issues = check_id(inp.notification_id, "notification_id")
    if issues:
        return NotificationOutput(error=AppError.validation(issues))

    notification = ctx.notifications.get_by_id(inp.notification_id)
    if not notification:
        return NotificationOutput(error=AppError.not_found("notification"))
    if notification.user_id != actor.user_id:
        return NotificationOutput(
            error=AppError.forbidden(
                "This notification belongs to another user",
                resource=f"notification:{notification.id}",
            )
        )

    if not notification.is_read:
        ctx.notifications.mark_as_read(notification.id)
    return NotificationOutput(notification=notification.model_copy(update={"is_read": True}), success=True)


@repository_guard(MarkAllOutput, "Failed to mark notifications as read")
def run_mark_all_as_read(ctx: UseCaseContext) -> MarkAllOutput:
    actor = ctx.identity.current()
    if not actor:
        return MarkAllOutput(error=AppError.unauthenticated())

    marked = ctx.notifications.mark_all_as_read(actor.user_id)
    return MarkAllOutput(marked=marked, success=True)
