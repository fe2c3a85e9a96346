"""
Reviewer abstract routes.
"""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends

from ..models import (
    AbstractAssignment,
    AbstractContentUpdate,
    AbstractInfo,
    CreatedRecord,
    RevisionCheck,
    RevisionResult,
    SigningUpdate,
)
from ..services.abstract_service import get_abstract_service
from ..services.store import User
from .deps import get_current_user

router = APIRouter(prefix="/api/abstracts", tags=["abstracts"])


@router.get("/{submission_id}", response_model=Optional[AbstractInfo])
async def get_abstract(submission_id: str, user: User = Depends(get_current_user)):
    """The submission's abstract, or null when none is assigned."""
    result = get_abstract_service().get_by_submission(user, submission_id)
    if result is None:
        return None
    return {
        **asdict(result['abstract']),
        'reviewer_name': result['reviewer_name'],
        'is_own_abstract': result['is_own_abstract'],
    }


@router.post("/{submission_id}", response_model=CreatedRecord, status_code=201)
async def create_draft(
    submission_id: str,
    body: AbstractAssignment,
    user: User = Depends(get_current_user),
):
    """Assign the abstract to a reviewer."""
    abstract_id = get_abstract_service().create_draft(user, submission_id, body.reviewer_id)
    return {"id": abstract_id}


@router.patch("/{submission_id}/content", response_model=RevisionResult)
async def update_content(
    submission_id: str,
    body: AbstractContentUpdate,
    user: User = Depends(get_current_user),
):
    """Autosave the abstract text."""
    revision = get_abstract_service().update_content(
        user, submission_id, body.content, body.expected_revision
    )
    return {"revision": revision}


@router.put("/{submission_id}/signing", status_code=204)
async def update_signing(
    submission_id: str,
    body: SigningUpdate,
    user: User = Depends(get_current_user),
):
    get_abstract_service().update_signing(user, submission_id, body.is_signed)


@router.post("/{submission_id}/submit", status_code=204)
async def submit_abstract(
    submission_id: str,
    body: RevisionCheck,
    user: User = Depends(get_current_user),
):
    get_abstract_service().submit_abstract(user, submission_id, body.expected_revision)


@router.post("/{submission_id}/approve", status_code=204)
async def approve_abstract(submission_id: str, user: User = Depends(get_current_user)):
    get_abstract_service().approve_abstract(user, submission_id)


@router.post("/{submission_id}/author-accept", status_code=204)
async def author_accept(submission_id: str, user: User = Depends(get_current_user)):
    get_abstract_service().author_accept_abstract(user, submission_id)
