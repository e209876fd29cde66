"""
Notifications
Fire-and-forget account notices
"""
from identity_engine.services.notifications.notices import NotificationService

__all__ = ["NotificationService"]
