"""
Review routes: assignment, drafting and submission.

The section autosave endpoint is where optimistic concurrency surfaces over
HTTP: a stale ``expected_revision`` yields 409 with code VERSION_CONFLICT.
"""
from fastapi import APIRouter, Depends

from ..errors import not_found_error
from ..models import (
    CreatedRecord,
    ReviewAssignmentItem,
    ReviewerAssignment,
    ReviewInfo,
    ReviewWorkspace,
    RevisionCheck,
    RevisionResult,
    SectionUpdate,
)
from ..services.review_service import get_review_service
from ..services.store import User
from .deps import get_current_user

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/mine", response_model=list[ReviewAssignmentItem])
async def list_my_reviews(user: User = Depends(get_current_user)):
    """The caller's review assignments."""
    return get_review_service().list_by_reviewer(user)


@router.post("/{submission_id}/assign", response_model=CreatedRecord, status_code=201)
async def assign_reviewer(
    submission_id: str,
    body: ReviewerAssignment,
    user: User = Depends(get_current_user),
):
    review_id = get_review_service().assign_reviewer(user, submission_id, body.reviewer_id)
    return {"id": review_id}


@router.post("/{submission_id}/assign-self", response_model=CreatedRecord, status_code=201)
async def assign_self(submission_id: str, user: User = Depends(get_current_user)):
    """Demo mode only."""
    review_id = get_review_service().assign_self_as_reviewer(user, submission_id)
    return {"id": review_id}


@router.get("/{submission_id}", response_model=ReviewWorkspace)
async def get_workspace(submission_id: str, user: User = Depends(get_current_user)):
    """Submission and the caller's review, with the edit deadline if submitted."""
    service = get_review_service()
    workspace = service.get_submission_for_reviewer(user, submission_id)
    if workspace is None:
        raise not_found_error('Review')
    workspace['edit_deadline'] = service.edit_deadline(workspace['review'])
    return workspace


@router.post("/{submission_id}/start", response_model=ReviewInfo)
async def start_review(submission_id: str, user: User = Depends(get_current_user)):
    return get_review_service().start_review(user, submission_id)


@router.patch("/{submission_id}/sections", response_model=RevisionResult)
async def update_section(
    submission_id: str,
    body: SectionUpdate,
    user: User = Depends(get_current_user),
):
    """Autosave one section."""
    revision = get_review_service().update_section(
        user, submission_id, body.section.value, body.content, body.expected_revision
    )
    return {"revision": revision}


@router.post("/{submission_id}/submit", response_model=ReviewInfo)
async def submit_review(
    submission_id: str,
    body: RevisionCheck,
    user: User = Depends(get_current_user),
):
    return get_review_service().submit_review(user, submission_id, body.expected_revision)
