"""
Editorial decision routes.
"""
from fastapi import APIRouter, Depends

from ..models import DecisionCreate, DecisionUndo, PaymentEstimate, SubmissionInfo
from ..services.decision_service import get_decision_service
from ..services.store import User
from .deps import get_current_user

router = APIRouter(prefix="/api/decisions", tags=["decisions"])


@router.post("/{submission_id}", response_model=SubmissionInfo)
async def make_decision(
    submission_id: str,
    body: DecisionCreate,
    user: User = Depends(get_current_user),
):
    """Accept, reject or request revision."""
    service = get_decision_service()
    return service.make_decision(user, submission_id, body.decision.value, body.note)


@router.post("/{submission_id}/undo", status_code=204)
async def undo_decision(
    submission_id: str,
    body: DecisionUndo,
    user: User = Depends(get_current_user),
):
    """Undo a decision inside the grace period."""
    get_decision_service().undo_decision(user, submission_id, body.previous_decision.value)


@router.get("/{submission_id}/payments", response_model=list[PaymentEstimate])
async def payment_estimates(submission_id: str, user: User = Depends(get_current_user)):
    return get_decision_service().payment_estimates(user, submission_id)
