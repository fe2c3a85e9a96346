"""
Audit trail and notification routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..models import AuditPage, NotificationInfo, NotificationItem
from ..services.audit_service import get_audit_service
from ..services.notification_service import get_notification_service
from ..services.store import User
from .deps import get_current_user

audit_router = APIRouter(prefix="/api/audit", tags=["audit"])
notifications_router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@audit_router.get("/{submission_id}", response_model=AuditPage)
async def list_audit(
    submission_id: str,
    cursor: Optional[str] = None,
    num_items: int = Query(default=50, ge=1, le=200),
    action: Optional[str] = None,
    user: User = Depends(get_current_user),
):
    """Audit entries for a submission, oldest first."""
    service = get_audit_service()
    return service.list_by_submission(user, submission_id, cursor, num_items, action)


@notifications_router.get("", response_model=list[NotificationInfo])
async def list_my_notifications(user: User = Depends(get_current_user)):
    return get_notification_service().list_for_user(user)


@notifications_router.get("/{submission_id}", response_model=list[NotificationItem])
async def list_notifications(submission_id: str, user: User = Depends(get_current_user)):
    """Everything sent about a submission. Editors only."""
    return get_notification_service().list_by_submission(user, submission_id)
