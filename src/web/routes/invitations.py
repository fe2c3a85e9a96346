"""
Reviewer invitation routes.

Token endpoints take the raw token from the accept link; everything else
is addressed by submission or invite id.
"""
from fastapi import APIRouter, Depends

from ..models import (
    InvitationAccepted,
    InvitationInfo,
    InvitationSend,
    InvitationsSent,
    InviteStatus,
    ReviewerProgressItem,
)
from ..services.invitation_service import get_invitation_service
from ..services.store import User
from .deps import get_current_user

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


@router.post("/submissions/{submission_id}", response_model=InvitationsSent, status_code=201)
async def send_invitations(
    submission_id: str,
    body: InvitationSend,
    user: User = Depends(get_current_user),
):
    service = get_invitation_service()
    invites = service.send_invitations(user, submission_id, body.reviewer_ids, body.rationales)
    return {"invites": invites}


@router.get("/submissions/{submission_id}", response_model=list[InvitationInfo])
async def list_invitations(submission_id: str, user: User = Depends(get_current_user)):
    return get_invitation_service().list_invitations(user, submission_id)


@router.get("/submissions/{submission_id}/progress", response_model=list[ReviewerProgressItem])
async def review_progress(submission_id: str, user: User = Depends(get_current_user)):
    return get_invitation_service().review_progress(user, submission_id)


@router.post("/{invite_id}/revoke", status_code=204)
async def revoke_invitation(invite_id: str, user: User = Depends(get_current_user)):
    get_invitation_service().revoke_invitation(user, invite_id)


@router.get("/tokens/{token}", response_model=InviteStatus)
async def invite_status(token: str):
    """Public: check a token without consuming it."""
    return get_invitation_service().get_invite_status(token)


@router.post("/tokens/{token}/accept", response_model=InvitationAccepted)
async def accept_invitation(token: str, user: User = Depends(get_current_user)):
    return get_invitation_service().accept_invitation(user, token)
