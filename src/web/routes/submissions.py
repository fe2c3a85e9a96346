"""
Submission routes: author submission, editor queue and status pipeline.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from ..models import (
    ActionEditorAssignment,
    CreatedRecord,
    EditorQueueItem,
    StatusTransition,
    SubmissionCreate,
    SubmissionInfo,
    SubmissionStatus,
)
from ..services.store import AuthorInfo, User
from ..services.submission_service import get_submission_service
from .deps import get_current_user

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post("", response_model=CreatedRecord, status_code=201)
async def create_submission(body: SubmissionCreate, user: User = Depends(get_current_user)):
    """Submit a new paper."""
    service = get_submission_service()
    submission_id = service.create(
        user,
        title=body.title,
        authors=[AuthorInfo(name=a.name, affiliation=a.affiliation) for a in body.authors],
        abstract=body.abstract,
        keywords=body.keywords,
        pdf_file_name=body.pdf_file_name,
        pdf_file_size=body.pdf_file_size,
    )
    return {"id": submission_id}


@router.get("", response_model=list[EditorQueueItem])
async def list_for_editor(
    status: Optional[SubmissionStatus] = None,
    user: User = Depends(get_current_user),
):
    """Editor dashboard: every submission with review progress."""
    service = get_submission_service()
    return service.list_for_editor(user, status.value if status else None)


@router.get("/mine", response_model=list[SubmissionInfo])
async def list_mine(user: User = Depends(get_current_user)):
    """The caller's own submissions."""
    return get_submission_service().list_by_author(user)


@router.get("/{submission_id}", response_model=SubmissionInfo)
async def get_submission(submission_id: str, user: User = Depends(get_current_user)):
    return get_submission_service().get_by_id(user, submission_id)


@router.post("/{submission_id}/transition", response_model=SubmissionInfo)
async def transition_status(
    submission_id: str,
    body: StatusTransition,
    user: User = Depends(get_current_user),
):
    """Move a submission along the pipeline (not for decisions)."""
    service = get_submission_service()
    return service.transition_status(user, submission_id, body.new_status.value)


@router.put("/{submission_id}/action-editor", status_code=204)
async def assign_action_editor(
    submission_id: str,
    body: ActionEditorAssignment,
    user: User = Depends(get_current_user),
):
    get_submission_service().assign_action_editor(user, submission_id, body.action_editor_id)
