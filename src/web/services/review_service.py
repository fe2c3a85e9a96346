"""
Review service: the server half of structured review drafting.

A review has five free-text sections and a single integer ``revision``
shared by all of them. Every write names the revision the client last saw;
the write is accepted only if that still matches, and then bumps the
revision by one. A mismatch is reported as VERSION_CONFLICT and nothing is
written, so a stale tab can never silently overwrite a newer draft.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from config import REVIEW_SECTIONS
from utils import log_tags
from utils.helpers import is_blank
from utils.log import get_logger

from ..errors import (
    environment_misconfigured_error,
    not_found_error,
    unauthorized_error,
    validation_error,
    version_conflict_error,
)
from .audit_service import AuditService
from .context import ServiceContext, get_context
from .notification_service import NotificationService
from .roles import require_editor, require_reviewer
from .store import Review, User, newest_first

logger = get_logger(__name__)


# Roles allowed to list their review assignments
REVIEWER_LIST_ROLES = ('reviewer', 'admin')

# Submission statuses in which reviewers can be added
ASSIGNABLE_STATUSES = ('TRIAGE_COMPLETE', 'UNDER_REVIEW')


class ReviewService:
    """Service for review assignments, drafting and submission."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.settings = context.settings
        self.audit = AuditService(context)
        self.notifications = NotificationService(context)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def edit_window(self) -> timedelta:
        return timedelta(seconds=self.settings.review_edit_window_seconds)

    def edit_deadline(self, review: Review) -> Optional[datetime]:
        """End of the post-submission edit window, or None if not submitted."""
        if review.submitted_at is None:
            return None
        return review.submitted_at + self.edit_window

    def _own_review(self, user: User, submission_id: str) -> Review:
        require_reviewer(self.store, user, submission_id, self.settings.demo_role_switcher)
        review = self.store.find_review(submission_id, user.id)
        if review is None:
            raise not_found_error('Review')
        return review

    def _new_review(self, submission_id: str, reviewer_id: str) -> Review:
        now = self.context.now()
        return Review(
            id='',
            submission_id=submission_id,
            reviewer_id=reviewer_id,
            sections={},
            status='assigned',
            revision=0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    def assign_reviewer(self, user: User, submission_id: str, reviewer_id: str) -> str:
        """
        Assign a reviewer directly (no invitation round-trip).

        Returns
        -------
        str
            New review id
        """
        require_editor(user, 'Requires editor role to assign reviewers')

        with self.store.lock:
            submission = self.store.get('submissions', submission_id)
            if submission is None:
                raise not_found_error('Submission', submission_id)
            if submission.status not in ASSIGNABLE_STATUSES:
                raise validation_error('Submission must be in TRIAGE_COMPLETE or UNDER_REVIEW status')

            reviewer = self.store.get('users', reviewer_id)
            if reviewer is None:
                raise not_found_error('User', reviewer_id)
            if reviewer.role != 'reviewer':
                raise validation_error('Target user must have the reviewer role')
            if self.store.find_review(submission_id, reviewer_id) is not None:
                raise validation_error('Reviewer already has a review for this submission')

            review_id = self.store.insert('reviews', self._new_review(submission_id, reviewer_id))

        self.notifications.notify(
            reviewer_id, submission_id, 'reviewer_invitation',
            f'Review assignment: {submission.title}',
            f"You have been assigned to review '{submission.title}'.",
        )
        self.audit.log_action(submission_id, user, 'reviewer_assigned', f'Assigned {reviewer.name}')
        logger.info(f"{log_tags.REVIEW} Assigned {reviewer_id} to {submission_id}")
        return review_id

    def assign_self_as_reviewer(self, user: User, submission_id: str) -> str:
        """Demo-only: make the caller a reviewer of the submission."""
        if not self.settings.demo_role_switcher:
            raise environment_misconfigured_error('Self-assign reviewer is disabled in production')

        with self.store.lock:
            submission = self.store.get('submissions', submission_id)
            if submission is None:
                raise not_found_error('Submission')
            if submission.status not in ASSIGNABLE_STATUSES:
                raise validation_error('Submission must be in TRIAGE_COMPLETE or UNDER_REVIEW status')
            if self.store.find_review(submission_id, user.id) is not None:
                raise validation_error('You already have a review assigned for this submission')

            review_id = self.store.insert('reviews', self._new_review(submission_id, user.id))

        self.audit.log_action(
            submission_id, user, 'assign_self_reviewer', 'Demo: self-assigned as reviewer'
        )
        return review_id

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_by_reviewer(self, user: User) -> list[dict]:
        """The caller's review assignments, newest first, with submission metadata."""
        if user.role not in REVIEWER_LIST_ROLES:
            raise unauthorized_error('Requires reviewer or admin role')

        reviews = newest_first([r for r in self.store.all('reviews') if r.reviewer_id == user.id])
        results = []
        for review in reviews:
            submission = self.store.get('submissions', review.submission_id)
            if submission is None:
                continue
            results.append({
                'id': review.id,
                'submission_id': review.submission_id,
                'title': submission.title,
                'submission_status': submission.status,
                'review_status': review.status,
                'created_at': review.created_at,
            })
        return results

    def get_submission_for_reviewer(self, user: User, submission_id: str) -> Optional[dict]:
        """
        Submission plus the caller's review, for the reviewer workspace.

        Returns
        -------
        dict or None
            ``submission`` and ``review``; None if either is missing
        """
        require_reviewer(self.store, user, submission_id, self.settings.demo_role_switcher)

        submission = self.store.get('submissions', submission_id)
        if submission is None:
            return None
        review = self.store.find_review(submission_id, user.id)
        if review is None:
            return None
        return {'submission': submission, 'review': review}

    # -------------------------------------------------------------------------
    # Drafting
    # -------------------------------------------------------------------------

    def start_review(self, user: User, submission_id: str) -> Review:
        """Move an assigned review to in_progress. No-op in any later state."""
        with self.store.lock:
            review = self._own_review(user, submission_id)
            if review.status == 'assigned':
                review = self.store.patch(
                    'reviews', review.id,
                    status='in_progress',
                    updated_at=self.context.now(),
                )
        return review

    def update_section(
        self,
        user: User,
        submission_id: str,
        section: str,
        content: str,
        expected_revision: int,
    ) -> int:
        """
        Save one review section with optimistic concurrency.

        Parameters
        ----------
        user : User
            The assigned reviewer
        submission_id : str
            Reviewed submission
        section : str
            One of REVIEW_SECTIONS
        content : str
            Full new text of the section
        expected_revision : int
            Revision the client last saw

        Returns
        -------
        int
            The review's new revision

        Raises
        ------
        JournalError
            VALIDATION_ERROR if the review is not editable,
            VERSION_CONFLICT if ``expected_revision`` is stale
        """
        if section not in REVIEW_SECTIONS:
            raise validation_error(f'Unknown review section: {section}')

        with self.store.lock:
            review = self._own_review(user, submission_id)

            if review.status in ('locked', 'assigned'):
                raise validation_error(
                    'Review sections can only be edited when in progress or within the edit window'
                )

            if review.status == 'submitted' and self.context.now() > self.edit_deadline(review):
                raise validation_error('The 15-minute edit window has expired')

            if review.revision != expected_revision:
                logger.info(
                    f"{log_tags.REVIEW} Conflict on {review.id}.{section}: "
                    f"expected {expected_revision}, current {review.revision}"
                )
                raise version_conflict_error()

            new_revision = review.revision + 1
            self.store.patch(
                'reviews', review.id,
                sections={**review.sections, section: content},
                revision=new_revision,
                updated_at=self.context.now(),
            )

        return new_revision

    def submit_review(self, user: User, submission_id: str, expected_revision: int) -> Review:
        """
        Submit a review whose five sections all have content.

        Opens the edit window; the review locks once it closes.
        """
        with self.store.lock:
            review = self._own_review(user, submission_id)

            if review.revision != expected_revision:
                raise version_conflict_error()

            if review.status != 'in_progress':
                raise validation_error('Review can only be submitted from in_progress status')

            for name in REVIEW_SECTIONS:
                if is_blank(review.sections.get(name)):
                    raise validation_error('All sections must be completed before submitting')

            now = self.context.now()
            review = self.store.patch(
                'reviews', review.id,
                status='submitted',
                submitted_at=now,
                revision=review.revision + 1,
                updated_at=now,
            )

        self.audit.log_action(submission_id, user, 'review_submitted')
        logger.info(f"{log_tags.REVIEW} Review {review.id} submitted, locks at {self.edit_deadline(review)}")
        return review

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def lock_review(self, review_id: str) -> bool:
        """
        Lock a submitted review. Idempotent; no-op for other states.

        Returns
        -------
        bool
            True if the review was locked by this call
        """
        with self.store.lock:
            review = self.store.get('reviews', review_id)
            if review is None or review.status != 'submitted':
                return False
            now = self.context.now()
            self.store.patch('reviews', review_id, status='locked', locked_at=now, updated_at=now)
        logger.info(f"{log_tags.REVIEW} Locked review {review_id}")
        return True

    def lock_expired_reviews(self) -> list[str]:
        """Lock every submitted review whose edit window has closed."""
        now = self.context.now()
        expired = [
            r.id for r in self.store.all('reviews')
            if r.status == 'submitted' and now > self.edit_deadline(r)
        ]
        return [review_id for review_id in expired if self.lock_review(review_id)]


# Singleton instance
_review_service: Optional[ReviewService] = None


def get_review_service() -> ReviewService:
    """Get the review service singleton for the active context."""
    global _review_service
    context = get_context()
    if _review_service is None or _review_service.context is not context:
        _review_service = ReviewService(context)
    return _review_service
