"""
Notification service: messages to authors and reviewers.

Delivery (email) is out of scope; notifications are stored and listed so
editors can preview what was sent.
"""
from __future__ import annotations

from typing import Optional

from .context import ServiceContext, get_context
from .roles import require_editor
from .store import Notification, User, newest_first


class NotificationService:
    """Service for creating and listing notifications."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store

    def notify(self, recipient_id: str, submission_id: str, type: str, subject: str, body: str) -> str:
        notification = Notification(
            id='',
            recipient_id=recipient_id,
            submission_id=submission_id,
            type=type,
            subject=subject,
            body=body,
            created_at=self.context.now(),
        )
        return self.store.insert('notifications', notification)

    def list_by_submission(self, user: User, submission_id: str) -> list[dict]:
        """List notifications for a submission, newest first. Editors only."""
        require_editor(user, 'Requires editor role to view notifications')

        notifications = newest_first([
            n for n in self.store.all('notifications') if n.submission_id == submission_id
        ])

        results = []
        for n in notifications:
            recipient = self.store.get('users', n.recipient_id)
            results.append({
                'id': n.id,
                'recipient_name': recipient.name if recipient else 'Unknown',
                'type': n.type,
                'subject': n.subject,
                'body': n.body,
                'created_at': n.created_at,
            })
        return results

    def list_for_user(self, user: User) -> list[Notification]:
        """The caller's own notifications, newest first."""
        return newest_first([n for n in self.store.all('notifications') if n.recipient_id == user.id])


# Singleton instance
_notification_service: Optional[NotificationService] = None


def get_notification_service() -> NotificationService:
    """Get the notification service singleton for the active context."""
    global _notification_service
    context = get_context()
    if _notification_service is None or _notification_service.context is not context:
        _notification_service = NotificationService(context)
    return _notification_service
