"""
Audit service for the per-submission trail of editorial actions.
"""
from __future__ import annotations

from typing import Optional

from .context import ServiceContext, get_context
from .roles import require_editor
from .store import AuditEntry, User


def paginate(items: list, cursor: Optional[str], num_items: int) -> tuple[list, bool, str]:
    """
    Slice a list with an opaque offset cursor.

    Returns
    -------
    tuple
        (page, is_done, continue_cursor)
    """
    start = int(cursor) if cursor else 0
    end = start + max(1, num_items)
    page = items[start:end]
    is_done = end >= len(items)
    return page, is_done, str(min(end, len(items)))


class AuditService:
    """Service for recording and listing audit entries."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store

    def log_action(
        self,
        submission_id: str,
        actor: User,
        action: str,
        details: Optional[str] = None,
    ) -> str:
        """Append an entry to the audit log."""
        entry = AuditEntry(
            id='',
            submission_id=submission_id,
            actor_id=actor.id,
            actor_role=actor.role,
            action=action,
            details=details,
            created_at=self.context.now(),
        )
        return self.store.insert('audit_logs', entry)

    def list_by_submission(
        self,
        user: User,
        submission_id: str,
        cursor: Optional[str] = None,
        num_items: int = 50,
        action: Optional[str] = None,
    ) -> dict:
        """
        List audit entries for a submission, oldest first.

        Parameters
        ----------
        user : User
            Caller; requires an editor role
        submission_id : str
            Submission to list
        cursor : str, optional
            Cursor from a previous page
        num_items : int
            Page size
        action : str, optional
            Only entries with this action

        Returns
        -------
        dict
            ``page`` (entries with actor names), ``is_done``, ``continue_cursor``
        """
        require_editor(user)

        entries = [
            e for e in self.store.all('audit_logs')
            if e.submission_id == submission_id and (action is None or e.action == action)
        ]
        entries.sort(key=lambda e: e.created_at)
        page, is_done, next_cursor = paginate(entries, cursor, num_items)

        resolved = []
        for entry in page:
            actor = self.store.get('users', entry.actor_id)
            resolved.append({
                'id': entry.id,
                'action': entry.action,
                'details': entry.details,
                'actor_name': actor.name if actor else 'Unknown',
                'actor_role': entry.actor_role,
                'created_at': entry.created_at,
            })

        return {'page': resolved, 'is_done': is_done, 'continue_cursor': next_cursor}


# Singleton instance
_audit_service: Optional[AuditService] = None


def get_audit_service() -> AuditService:
    """Get the audit service singleton for the active context."""
    global _audit_service
    context = get_context()
    if _audit_service is None or _audit_service.context is not context:
        _audit_service = AuditService(context)
    return _audit_service
