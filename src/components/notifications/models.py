from dataclasses import dataclass, field

from src.domain.entities import Notification, NotificationId, NotificationSettings
from src.domain.errors import AppError


@dataclass(frozen=True)
class UpdateSettingsInput:
    invitations: bool | None = None
    review_reminders: bool | None = None
    progress_updates: bool | None = None
    team_updates: bool | None = None


@dataclass(frozen=True)
class ListNotificationsInput:
    page: int = 1
    limit: int | None = None
    unread_only: bool = False


@dataclass(frozen=True)
class MarkAsReadInput:
    notification_id: NotificationId


@dataclass(frozen=True)
class SettingsOutput:
    settings: NotificationSettings | None = None
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class NotificationOutput:
    notification: Notification | None = None
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class NotificationListOutput:
    notifications: list[Notification] = field(default_factory=list)
    total: int = 0
    unread_count: int = 0
    success: bool = False
    error: AppError | None = None


@dataclass(frozen=True)
class MarkAllOutput:
    marked: int = 0
    success: bool = False
    error: AppError | None = None
