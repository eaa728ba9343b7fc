"""
Notifications Module

Outbound notifications to the notification service, sent in the
background so they never hold up a response.
"""

from profile_service.notifications.client import (
    NotificationClient,
    NotificationError,
)
from profile_service.notifications.background import (
    spawn_background,
    drain_background_tasks,
    pending_background_tasks,
)

__all__ = [
    "NotificationClient",
    "NotificationError",
    "spawn_background",
    "drain_background_tasks",
    "pending_background_tasks",
]
