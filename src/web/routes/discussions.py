"""
Submission discussion routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from ..models import CreatedRecord, DiscussionThread, MessageCreate, MessageEdit
from ..services.discussion_service import get_discussion_service
from ..services.store import User
from .deps import get_current_user

router = APIRouter(prefix="/api/discussions", tags=["discussions"])


@router.patch("/messages/{message_id}", status_code=204)
async def edit_message(message_id: str, body: MessageEdit, user: User = Depends(get_current_user)):
    """Edit one of your messages inside its edit window."""
    get_discussion_service().edit_message(user, message_id, body.content)


@router.post("/messages/{message_id}/retract", status_code=204)
async def retract_message(message_id: str, user: User = Depends(get_current_user)):
    get_discussion_service().retract_message(user, message_id)


@router.get("/{submission_id}", response_model=Optional[DiscussionThread])
async def list_messages(submission_id: str, user: User = Depends(get_current_user)):
    """The thread, or null for callers who are not participants."""
    return get_discussion_service().list_by_submission(user, submission_id)


@router.post("/{submission_id}/messages", response_model=CreatedRecord, status_code=201)
async def post_message(
    submission_id: str,
    body: MessageCreate,
    user: User = Depends(get_current_user),
):
    message_id = get_discussion_service().post_message(user, submission_id, body.content, body.parent_id)
    return {"id": message_id}


@router.post("/{submission_id}/public", status_code=204)
async def make_public(submission_id: str, user: User = Depends(get_current_user)):
    """Publish the discussion of a rejected submission."""
    get_discussion_service().toggle_public_conversation(user, submission_id)
