"""
Editorial decisions: accept, reject or request revision.

A decision moves a DECISION_PENDING submission to its final (or revision)
status, notifies the author and leaves an audit entry. For a short grace
period after ``decided_at`` the editor may undo it.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

import config
from utils import log_tags
from utils.helpers import is_blank, truncate
from utils.log import get_logger

from ..errors import not_found_error, validation_error
from .audit_service import AuditService
from .context import ServiceContext, get_context
from .notification_service import NotificationService
from .payment_service import latest_reviews
from .roles import require_editor
from .store import Submission, User
from .transitions import assert_transition

logger = get_logger(__name__)

DECISIONS = ('ACCEPTED', 'REJECTED', 'REVISION_REQUESTED')

# Audit action and notification type for each decision
DECISION_ACTIONS = {
    'ACCEPTED': 'decision_accepted',
    'REJECTED': 'decision_rejected',
    'REVISION_REQUESTED': 'decision_revision_requested',
}

# (min, max) payment estimate by review status
PAYMENT_RANGES = {
    'submitted': (600, 1500),
    'locked': (600, 1500),
    'in_progress': (500, 1200),
}


def build_notification_subject(decision: str, title: str) -> str:
    if decision == 'ACCEPTED':
        return f'Your submission has been accepted: {title}'
    if decision == 'REJECTED':
        return f'Decision on your submission: {title}'
    return f'Revisions requested for your submission: {title}'


def build_notification_body(decision: str, title: str, note: Optional[str] = None) -> str:
    journal = config.JOURNAL_NAME
    if decision == 'ACCEPTED':
        editor_note = f"Editor's note: {note}\n\n" if note else ''
        return (
            f"Congratulations! Your submission '{title}' has been accepted for publication "
            f"in the {journal}.\n\n{editor_note}"
            "The paper will now proceed to the publication pipeline. You will receive "
            "further instructions regarding the reviewer abstract process."
        )
    if decision == 'REJECTED':
        return (
            f"After careful review, your submission '{title}' has been declined for "
            f"publication in the {journal}.\n\nEditor's feedback: {note}\n\n"
            "We encourage you to consider the reviewers' feedback for future submissions. "
            "You may also wish to make the review conversation public, which can be done "
            "from your submission page."
        )
    return (
        f"Your submission '{title}' requires revisions before a final decision can be made.\n\n"
        f"Required changes:\n{note}\n\n"
        "Please submit a revised version addressing the requested changes. Your updated "
        "submission will be re-reviewed."
    )


class DecisionService:
    """Service for recording, undoing and pricing editorial decisions."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.settings = context.settings
        self.audit = AuditService(context)
        self.notifications = NotificationService(context)

    def _get_submission(self, submission_id: str) -> Submission:
        submission = self.store.get('submissions', submission_id)
        if submission is None:
            raise not_found_error('Submission', submission_id)
        return submission

    def make_decision(
        self,
        user: User,
        submission_id: str,
        decision: str,
        note: Optional[str] = None,
    ) -> Submission:
        """
        Record an editorial decision.

        Parameters
        ----------
        user : User
            Caller; requires an editor role
        submission_id : str
            Submission in DECISION_PENDING
        decision : str
            ACCEPTED, REJECTED or REVISION_REQUESTED
        note : str, optional
            Shown to the author; required unless accepting

        Returns
        -------
        Submission
            The updated submission
        """
        require_editor(user, 'Requires editor, action editor, or admin role')
        if decision not in DECISIONS:
            raise validation_error(f'Unknown decision: {decision}')

        with self.store.lock:
            submission = self._get_submission(submission_id)

            if submission.status != 'DECISION_PENDING':
                raise validation_error(
                    f'Submission must be in DECISION_PENDING status, currently: {submission.status}'
                )

            if decision != 'ACCEPTED' and is_blank(note):
                raise validation_error(
                    'A decision note is required when rejecting a submission'
                    if decision == 'REJECTED'
                    else 'Required changes must be provided when requesting revision'
                )

            limit = self.settings.decision_note_max_length
            if note and len(note) > limit:
                raise validation_error(f'Decision note must be {limit} characters or fewer')

            assert_transition(submission.status, decision)

            now = self.context.now()
            updated = self.store.patch(
                'submissions', submission_id,
                status=decision,
                decision_note=note or None,
                decided_at=now,
                updated_at=now,
            )

        action = DECISION_ACTIONS[decision]
        self.notifications.notify(
            submission.author_id, submission_id, action,
            build_notification_subject(decision, submission.title),
            build_notification_body(decision, submission.title, note),
        )
        self.audit.log_action(submission_id, user, action, truncate(note, 100) if note else None)
        logger.info(f"{log_tags.DECISION} {submission_id}: {decision}")
        return updated

    def undo_decision(self, user: User, submission_id: str, previous_decision: str) -> None:
        """Revert a decision made within the undo window back to DECISION_PENDING."""
        require_editor(user, 'Requires editor, action editor, or admin role')

        with self.store.lock:
            submission = self._get_submission(submission_id)

            if submission.status != previous_decision:
                raise validation_error(
                    f'Cannot undo: submission status is {submission.status}, '
                    f'expected {previous_decision}'
                )

            window = timedelta(seconds=self.settings.decision_undo_window_seconds)
            if submission.decided_at is None or self.context.now() - submission.decided_at > window:
                raise validation_error('Undo window has expired')

            # Bypasses the transition map
            self.store.patch(
                'submissions', submission_id,
                status='DECISION_PENDING',
                decision_note=None,
                decided_at=None,
                updated_at=self.context.now(),
            )

        self.audit.log_action(
            submission_id, user, 'decision_undone', f'Reversed {previous_decision} decision'
        )
        logger.info(f"{log_tags.DECISION} {submission_id}: undid {previous_decision}")

    def payment_estimates(self, user: User, submission_id: str) -> list[dict]:
        """Per-reviewer payment ranges, based on how far each review got."""
        require_editor(user, 'Requires editor, action editor, or admin role')

        estimates = []
        for review in latest_reviews(self.store, submission_id):
            reviewer = self.store.get('users', review.reviewer_id)
            low, high = PAYMENT_RANGES.get(review.status, (0, 0))
            estimates.append({
                'reviewer_id': review.reviewer_id,
                'reviewer_name': reviewer.name if reviewer else 'Unknown',
                'review_status': review.status,
                'estimate_min': low,
                'estimate_max': high,
            })
        return estimates


# Singleton instance
_decision_service: Optional[DecisionService] = None


def get_decision_service() -> DecisionService:
    """Get the decision service singleton for the active context."""
    global _decision_service
    context = get_context()
    if _decision_service is None or _decision_service.context is not context:
        _decision_service = DecisionService(context)
    return _decision_service
