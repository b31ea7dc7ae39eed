"""
Notifications component - notification settings and inbox read state.
"""

from .component import (
    run_get_settings,
    run_list_notifications,
    run_mark_all_as_read,
    run_mark_as_read,
    run_update_settings,
    settings_for,
)
from .models import (
    ListNotificationsInput,
    MarkAllOutput,
    MarkAsReadInput,
    NotificationListOutput,
    NotificationOutput,
    SettingsOutput,
    UpdateSettingsInput,
)

__all__ = [
    # Entry points
    "run_get_settings",
    "run_list_notifications",
    "run_mark_all_as_read",
    "run_mark_as_read",
    "run_update_settings",
    "settings_for",
    # Input models
    "ListNotificationsInput",
    "MarkAsReadInput",
    "UpdateSettingsInput",
    # Output models
    "MarkAllOutput",
    "NotificationListOutput",
    "NotificationOutput",
    "SettingsOutput",
]
