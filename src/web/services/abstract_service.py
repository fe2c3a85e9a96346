"""
Reviewer abstract service.

After acceptance an editor picks one reviewer to write the short abstract
published next to the paper. The draft is saved with the same optimistic
concurrency as reviews: ``content`` writes carry an expected revision.
"""
from __future__ import annotations

from typing import Optional

from utils import log_tags
from utils.helpers import count_words
from utils.log import get_logger

from ..errors import not_found_error, unauthorized_error, validation_error, version_conflict_error
from .audit_service import AuditService
from .context import ServiceContext, get_context
from .roles import has_editor_role, require_editor
from .store import ReviewerAbstract, User

logger = get_logger(__name__)


class AbstractService:
    """Service for drafting, submitting and approving reviewer abstracts."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.settings = context.settings
        self.audit = AuditService(context)

    def _own_abstract(self, user: User, submission_id: str) -> ReviewerAbstract:
        abstract = self.store.find_abstract(submission_id)
        if abstract is None or abstract.reviewer_id != user.id:
            raise not_found_error('Reviewer abstract')
        return abstract

    def get_by_submission(self, user: User, submission_id: str) -> Optional[dict]:
        """
        The abstract for a submission with its reviewer's name.

        Visible to the assigned reviewer, editors and the submission author.

        Returns
        -------
        dict or None
            ``abstract``, ``reviewer_name`` and ``is_own_abstract``; None
            when no abstract has been assigned
        """
        abstract = self.store.find_abstract(submission_id)
        if abstract is None:
            return None

        is_assigned_reviewer = abstract.reviewer_id == user.id
        is_editor = has_editor_role(user.role)
        is_author = False
        if not is_assigned_reviewer and not is_editor:
            submission = self.store.get('submissions', submission_id)
            is_author = submission is not None and submission.author_id == user.id

        if not (is_assigned_reviewer or is_editor or is_author):
            raise unauthorized_error('Not authorized to view this abstract')

        reviewer = self.store.get('users', abstract.reviewer_id)
        return {
            'abstract': abstract,
            'reviewer_name': reviewer.name if reviewer else 'Unknown',
            'is_own_abstract': is_assigned_reviewer,
        }

    def create_draft(self, user: User, submission_id: str, reviewer_id: str) -> str:
        """Assign a reviewer to write the abstract of an accepted submission."""
        require_editor(user)

        with self.store.lock:
            submission = self.store.get('submissions', submission_id)
            if submission is None:
                raise not_found_error('Submission')
            if submission.status != 'ACCEPTED':
                raise validation_error('Abstract can only be assigned for accepted submissions')

            review = self.store.find_review(submission_id, reviewer_id)
            if review is None:
                raise validation_error('Reviewer does not have a review for this submission')
            if review.status not in ('submitted', 'locked'):
                raise validation_error('Reviewer must have a submitted or locked review')

            if self.store.find_abstract(submission_id) is not None:
                raise validation_error('An abstract assignment already exists for this submission')

            now = self.context.now()
            abstract_id = self.store.insert('abstracts', ReviewerAbstract(
                id='',
                submission_id=submission_id,
                reviewer_id=reviewer_id,
                created_at=now,
                updated_at=now,
            ))

        reviewer = self.store.get('users', reviewer_id)
        self.audit.log_action(
            submission_id, user, 'abstract_assigned',
            f"Reviewer: {reviewer.name if reviewer else 'Unknown'}",
        )
        return abstract_id

    def update_content(self, user: User, submission_id: str, content: str, expected_revision: int) -> int:
        """
        Autosave the abstract text.

        Recomputes the word count and withdraws any earlier author acceptance,
        since the author accepted different text.

        Returns
        -------
        int
            The abstract's new revision
        """
        with self.store.lock:
            abstract = self._own_abstract(user, submission_id)

            if abstract.status == 'approved':
                raise validation_error('Cannot edit an approved abstract')
            if len(content) > self.settings.abstract_max_chars:
                raise validation_error('Abstract content exceeds maximum character limit')
            if abstract.revision != expected_revision:
                logger.info(
                    f"{log_tags.ABSTRACT} Conflict on {abstract.id}: "
                    f"expected {expected_revision}, current {abstract.revision}"
                )
                raise version_conflict_error()

            changes = {
                'content': content,
                'word_count': count_words(content),
                'revision': abstract.revision + 1,
                'updated_at': self.context.now(),
            }
            if abstract.author_accepted:
                changes.update(author_accepted=False, author_accepted_at=None)
            self.store.patch('abstracts', abstract.id, **changes)

        return changes['revision']

    def update_signing(self, user: User, submission_id: str, is_signed: bool) -> None:
        """Toggle whether the published abstract carries the reviewer's name."""
        with self.store.lock:
            abstract = self._own_abstract(user, submission_id)
            if abstract.status == 'approved':
                raise validation_error('Cannot modify signing on an approved abstract')
            self.store.patch('abstracts', abstract.id, is_signed=is_signed, updated_at=self.context.now())

    def submit_abstract(self, user: User, submission_id: str, expected_revision: int) -> None:
        """Submit the draft for editor approval. Idempotent once submitted."""
        with self.store.lock:
            abstract = self._own_abstract(user, submission_id)

            if abstract.status == 'submitted':
                return
            if abstract.status != 'drafting':
                raise validation_error('Abstract can only be submitted from drafting status')
            if abstract.revision != expected_revision:
                raise version_conflict_error()

            low, high = self.settings.abstract_min_words, self.settings.abstract_max_words
            if not low <= abstract.word_count <= high:
                raise validation_error(f'Abstract must be between {low} and {high} words')

            self.store.patch(
                'abstracts', abstract.id,
                status='submitted',
                revision=abstract.revision + 1,
                updated_at=self.context.now(),
            )

        self.audit.log_action(submission_id, user, 'abstract_submitted')
        logger.info(f"{log_tags.ABSTRACT} Abstract {abstract.id} submitted ({abstract.word_count} words)")

    def approve_abstract(self, user: User, submission_id: str) -> None:
        """Editor approval; the abstract is read-only afterwards."""
        require_editor(user)

        with self.store.lock:
            abstract = self.store.find_abstract(submission_id)
            if abstract is None:
                raise not_found_error('Reviewer abstract')
            if abstract.status != 'submitted':
                raise validation_error('Abstract can only be approved from submitted status')
            self.store.patch('abstracts', abstract.id, status='approved', updated_at=self.context.now())

        self.audit.log_action(submission_id, user, 'abstract_approved')

    def author_accept_abstract(self, user: User, submission_id: str) -> None:
        """The submission author signs off on the abstract. Idempotent."""
        with self.store.lock:
            submission = self.store.get('submissions', submission_id)
            if submission is None:
                raise not_found_error('Submission')
            if submission.author_id != user.id:
                raise unauthorized_error('Only the submission author can accept the abstract')

            abstract = self.store.find_abstract(submission_id)
            if abstract is None:
                raise not_found_error('Reviewer abstract')
            if abstract.status == 'drafting':
                raise validation_error('Cannot accept an abstract that is still being drafted')
            if abstract.author_accepted:
                return

            now = self.context.now()
            self.store.patch(
                'abstracts', abstract.id,
                author_accepted=True,
                author_accepted_at=now,
                updated_at=now,
            )

        self.audit.log_action(submission_id, user, 'abstract_author_accepted')


# Singleton instance
_abstract_service: Optional[AbstractService] = None


def get_abstract_service() -> AbstractService:
    """Get the abstract service singleton for the active context."""
    global _abstract_service
    context = get_context()
    if _abstract_service is None or _abstract_service.context is not context:
        _abstract_service = AbstractService(context)
    return _abstract_service
