"""
Reviewer payment routes.
"""
from fastapi import APIRouter, Depends

from ..models import PaymentBreakdownInfo, PaymentSummaryItem, QualityUpdate
from ..services.payment_service import get_payment_service
from ..services.store import User
from .deps import get_current_user

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get("/{submission_id}", response_model=list[PaymentSummaryItem])
async def payment_summary(submission_id: str, user: User = Depends(get_current_user)):
    """Every reviewer's payment for a submission. Editors only."""
    return get_payment_service().get_payment_summary(user, submission_id)


@router.get("/{submission_id}/mine", response_model=PaymentBreakdownInfo)
async def my_payment(submission_id: str, user: User = Depends(get_current_user)):
    """The calling reviewer's own payment."""
    return get_payment_service().get_payment_breakdown(user, submission_id)


@router.put("/{submission_id}/quality", status_code=204)
async def set_quality(
    submission_id: str,
    body: QualityUpdate,
    user: User = Depends(get_current_user),
):
    get_payment_service().set_quality_level(user, submission_id, body.reviewer_id, body.quality_level.value)
