"""
Submission service: creating papers and moving them through the pipeline.

Status changes other than editorial decisions go through
``transition_status``; decisions have their own service because they carry
notes, notifications and an undo window.
"""
from __future__ import annotations

from typing import Optional

import config
from utils import log_tags
from utils.log import get_logger

from ..errors import not_found_error, unauthorized_error, validation_error
from .audit_service import AuditService
from .context import ServiceContext, get_context
from .roles import has_editor_role, require_editor, require_role
from .store import AuthorInfo, Submission, User, newest_first
from .transitions import DECISION_ONLY_STATUSES, SUBMISSION_STATUSES, assert_transition

logger = get_logger(__name__)


def validate_submission_fields(
    title: str,
    abstract: str,
    authors: list[AuthorInfo],
    keywords: list[str],
    pdf_file_name: Optional[str] = None,
    pdf_file_size: Optional[int] = None,
) -> None:
    """Raise VALIDATION_ERROR for the first field constraint that fails."""
    if not config.TITLE_MIN_CHARS <= len(title) <= config.TITLE_MAX_CHARS:
        raise validation_error(
            f'Title must be between {config.TITLE_MIN_CHARS} and {config.TITLE_MAX_CHARS} characters'
        )
    if not config.SUBMISSION_ABSTRACT_MIN_CHARS <= len(abstract) <= config.SUBMISSION_ABSTRACT_MAX_CHARS:
        raise validation_error(
            f'Abstract must be between {config.SUBMISSION_ABSTRACT_MIN_CHARS} and '
            f'{config.SUBMISSION_ABSTRACT_MAX_CHARS:,} characters'
        )
    if not authors:
        raise validation_error('At least one author is required')
    for author in authors:
        if not author.name.strip():
            raise validation_error('Author name is required')
        if not author.affiliation.strip():
            raise validation_error('Author affiliation is required')
    if not 1 <= len(keywords) <= config.MAX_KEYWORDS:
        raise validation_error(f'Between 1 and {config.MAX_KEYWORDS} keywords are required')
    for keyword in keywords:
        if not config.KEYWORD_MIN_CHARS <= len(keyword) <= config.KEYWORD_MAX_CHARS:
            raise validation_error(
                f'Each keyword must be between {config.KEYWORD_MIN_CHARS} and '
                f'{config.KEYWORD_MAX_CHARS} characters'
            )
    if pdf_file_name is not None and not pdf_file_name.lower().endswith('.pdf'):
        raise validation_error('Uploaded file must be a PDF')
    if pdf_file_size is not None and pdf_file_size > config.PDF_MAX_BYTES:
        raise validation_error('PDF file must be under 50MB')


class SubmissionService:
    """Service for submissions and their status pipeline."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.audit = AuditService(context)

    def get_or_404(self, submission_id: str) -> Submission:
        submission = self.store.get('submissions', submission_id)
        if submission is None:
            raise not_found_error('Submission', submission_id)
        return submission

    def create(
        self,
        user: User,
        title: str,
        authors: list[AuthorInfo],
        abstract: str,
        keywords: list[str],
        pdf_file_name: Optional[str] = None,
        pdf_file_size: Optional[int] = None,
    ) -> str:
        """
        Create a submission with status SUBMITTED.

        Parameters
        ----------
        user : User
            Caller; requires the author role
        title, abstract : str
            Paper metadata
        authors : list[AuthorInfo]
            Author list, at least one entry
        keywords : list[str]
            1-10 keywords
        pdf_file_name, pdf_file_size : optional
            Metadata of the uploaded manuscript file

        Returns
        -------
        str
            New submission id
        """
        require_role(user, 'author')
        validate_submission_fields(title, abstract, authors, keywords, pdf_file_name, pdf_file_size)

        now = self.context.now()
        submission_id = self.store.insert('submissions', Submission(
            id='',
            author_id=user.id,
            title=title,
            abstract=abstract,
            authors=list(authors),
            keywords=list(keywords),
            status='SUBMITTED',
            pdf_file_name=pdf_file_name,
            pdf_file_size=pdf_file_size,
            created_at=now,
            updated_at=now,
        ))
        self.audit.log_action(submission_id, user, 'submission_created')
        logger.info(f"{log_tags.SUBMISSION} Created submission {submission_id} by {user.id}")
        return submission_id

    def list_by_author(self, user: User) -> list[Submission]:
        """The caller's own submissions, newest first."""
        return newest_first([s for s in self.store.all('submissions') if s.author_id == user.id])

    def get_by_id(self, user: User, submission_id: str) -> Submission:
        """A submission visible to its author and to editors."""
        submission = self.get_or_404(submission_id)
        if submission.author_id != user.id and not has_editor_role(user.role):
            raise unauthorized_error('You can only view your own submissions')
        return submission

    def list_for_editor(self, user: User, status: Optional[str] = None) -> list[dict]:
        """
        All submissions with review progress, optionally filtered by status.

        Returns
        -------
        list[dict]
            ``submission`` plus ``review_progress`` counts
        """
        require_editor(user, 'Requires editor, action editor, or admin role')
        if status is not None and status not in SUBMISSION_STATUSES:
            raise validation_error(f'Unknown status: {status}')

        submissions = [
            s for s in self.store.all('submissions') if status is None or s.status == status
        ]
        results = []
        for submission in newest_first(submissions):
            reviews = self.store.reviews_for_submission(submission.id)
            results.append({
                'submission': submission,
                'review_progress': {
                    'assigned': len(reviews),
                    'started': sum(1 for r in reviews if r.status != 'assigned'),
                    'submitted': sum(1 for r in reviews if r.status in ('submitted', 'locked')),
                },
            })
        return results

    def transition_status(self, user: User, submission_id: str, new_status: str) -> Submission:
        """
        Move a submission to ``new_status``.

        Raises
        ------
        JournalError
            VALIDATION_ERROR for decision statuses (use the decision service),
            INVALID_TRANSITION when the state machine forbids the move
        """
        require_editor(user, 'Requires editor, action editor, or admin role')
        if new_status not in SUBMISSION_STATUSES:
            raise validation_error(f'Unknown status: {new_status}')

        with self.store.lock:
            submission = self.get_or_404(submission_id)

            if new_status in DECISION_ONLY_STATUSES:
                raise validation_error(
                    f'Cannot transition to {new_status} directly. Record an editorial decision instead.'
                )

            assert_transition(submission.status, new_status)
            updated = self.store.patch(
                'submissions', submission_id,
                status=new_status,
                updated_at=self.context.now(),
            )

        self.audit.log_action(
            submission_id, user, 'status_transition',
            f'{submission.status} → {new_status}',
        )
        logger.info(f"{log_tags.SUBMISSION} {submission_id}: {submission.status} -> {new_status}")
        return updated

    def assign_action_editor(self, user: User, submission_id: str, action_editor_id: str) -> None:
        """Assign or reassign the action editor. Editor-in-chief only."""
        if user.role != 'editor_in_chief':
            raise unauthorized_error('Only Editor-in-Chief can assign action editors')

        with self.store.lock:
            submission = self.get_or_404(submission_id)
            target = self.store.get('users', action_editor_id)
            if target is None:
                raise not_found_error('User', action_editor_id)
            if target.role not in ('editor_in_chief', 'action_editor'):
                raise validation_error('Target user must have editor_in_chief or action_editor role')

            previous_id = submission.action_editor_id
            if previous_id == action_editor_id:
                return

            now = self.context.now()
            self.store.patch(
                'submissions', submission_id,
                action_editor_id=action_editor_id,
                assigned_at=now,
                updated_at=now,
            )

        if previous_id is not None:
            previous = self.store.get('users', previous_id)
            previous_name = previous.name if previous else 'Unknown'
            self.audit.log_action(
                submission_id, user, 'action_editor_reassigned',
                f'Reassigned from {previous_name} to {target.name}',
            )
        else:
            self.audit.log_action(
                submission_id, user, 'action_editor_assigned',
                f'Assigned {target.name} as action editor',
            )


# Singleton instance
_submission_service: Optional[SubmissionService] = None


def get_submission_service() -> SubmissionService:
    """Get the submission service singleton for the active context."""
    global _submission_service
    context = get_context()
    if _submission_service is None or _submission_service.context is not context:
        _submission_service = SubmissionService(context)
    return _submission_service
