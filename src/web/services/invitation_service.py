"""
Reviewer invitations.

An editor invites reviewers by sending each a one-time link. The token in
the link is handed out exactly once; the store keeps only its SHA-256 hex
digest, so a leaked snapshot cannot be used to accept invitations.
"""
from __future__ import annotations

import hashlib
import uuid
from datetime import timedelta
from typing import Optional

from utils import log_tags
from utils.log import get_logger

from ..errors import (
    invite_token_expired_error,
    invite_token_invalid_error,
    invite_token_used_error,
    unauthorized_error,
    validation_error,
)
from .audit_service import AuditService
from .context import ServiceContext, get_context
from .notification_service import NotificationService
from .roles import require_editor
from .store import Review, ReviewInvite, User

logger = get_logger(__name__)

INVITE_TTL = timedelta(hours=24)

# Days an assigned review may sit unanswered before it is flagged
OVERDUE_THRESHOLD_DAYS = 7

DEFAULT_RATIONALE = 'Selected based on expertise match.'


def hash_token(token: str) -> str:
    """Hex SHA-256 digest of an invitation token."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def accept_link(token: str) -> str:
    return f'/review/accept/{token}'


def build_invitation_body(title: str, rationale: str, token: str) -> str:
    return (
        'You have been invited to review a paper for the Alignment Journal.\n\n'
        f'Paper: {title}\n\n'
        f'Why you: {rationale}\n\n'
        'Compensation: $500-$1,500 based on review quality and timeliness.\n'
        'Deadline: 4 weeks from acceptance.\n\n'
        f'Accept this invitation: {accept_link(token)}\n\n'
        'If you are unable to review, please decline promptly so we can find an '
        'alternative reviewer.'
    )


class InvitationService:
    """Service for sending, accepting and revoking review invitations."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.audit = AuditService(context)
        self.notifications = NotificationService(context)

    def derive_status(self, invite: ReviewInvite) -> str:
        """pending, accepted, expired or revoked."""
        if invite.revoked_at is not None:
            return 'revoked'
        if invite.consumed_at is not None:
            return 'accepted'
        if invite.expires_at < self.context.now():
            return 'expired'
        return 'pending'

    def _invites_for(self, submission_id: str) -> list[ReviewInvite]:
        return [i for i in self.store.all('invites') if i.submission_id == submission_id]

    def send_invitations(
        self,
        user: User,
        submission_id: str,
        reviewer_ids: list[str],
        rationales: Optional[dict[str, str]] = None,
    ) -> dict[str, str]:
        """
        Invite reviewers to a submission.

        Reviewers that already hold a non-revoked invitation are skipped.

        Parameters
        ----------
        user : User
            Caller; requires an editor role
        submission_id : str
            Submission to review
        reviewer_ids : list[str]
            Reviewers to invite; duplicates are ignored
        rationales : dict, optional
            Per-reviewer "why you" text for the invitation body

        Returns
        -------
        dict[str, str]
            Invite id -> raw token, for the invitations created by this call
        """
        require_editor(user, 'Requires editor role to send invitations')
        rationales = rationales or {}

        submission = self.store.get('submissions', submission_id)
        if submission is None:
            raise validation_error('Submission not found')

        created = {}
        with self.store.lock:
            existing = self._invites_for(submission_id)
            active = {i.reviewer_id for i in existing if i.revoked_at is None}
            now = self.context.now()

            for reviewer_id in dict.fromkeys(reviewer_ids):
                if reviewer_id in active:
                    continue
                active.add(reviewer_id)

                token = uuid.uuid4().hex
                invite_id = self.store.insert('invites', ReviewInvite(
                    id='',
                    submission_id=submission_id,
                    reviewer_id=reviewer_id,
                    created_by=user.id,
                    token_hash=hash_token(token),
                    expires_at=now + INVITE_TTL,
                    created_at=now,
                ))
                created[invite_id] = token

                if self.store.find_review(submission_id, reviewer_id) is None:
                    self.store.insert('reviews', Review(
                        id='',
                        submission_id=submission_id,
                        reviewer_id=reviewer_id,
                        created_at=now,
                        updated_at=now,
                    ))

                rationale = rationales.get(reviewer_id, DEFAULT_RATIONALE)
                self.notifications.notify(
                    reviewer_id, submission_id, 'reviewer_invitation',
                    f'Invitation to Review: {submission.title}',
                    build_invitation_body(submission.title, rationale, token),
                )

                reviewer = self.store.get('users', reviewer_id)
                self.audit.log_action(
                    submission_id, user, 'reviewer_invited',
                    f"Invited {reviewer.name if reviewer else 'Unknown'}. Rationale: {rationale}",
                )

        logger.info(f"{log_tags.REVIEW} Sent {len(created)} invitation(s) for {submission_id}")
        return created

    def revoke_invitation(self, user: User, invite_id: str) -> None:
        """Revoke a pending invitation."""
        require_editor(user, 'Requires editor role to revoke invitations')

        with self.store.lock:
            invite = self.store.get('invites', invite_id)
            if invite is None:
                raise validation_error('Invitation not found')
            if invite.consumed_at is not None:
                raise validation_error('Cannot revoke an already accepted invitation')
            if invite.revoked_at is not None:
                raise validation_error('Invitation is already revoked')
            self.store.patch('invites', invite_id, revoked_at=self.context.now())

        reviewer = self.store.get('users', invite.reviewer_id)
        self.audit.log_action(
            invite.submission_id, user, 'reviewer_invite_revoked',
            f"Revoked invitation for {reviewer.name if reviewer else 'Unknown'}",
        )

    def accept_invitation(self, user: User, token: str) -> dict:
        """
        Consume an invitation token.

        Authors accepting an invitation become reviewers; other roles are
        left as they are.

        Returns
        -------
        dict
            ``submission_id`` and ``reviewer_id``
        """
        with self.store.lock:
            invite = self.store.find_invite_by_hash(hash_token(token))
            if invite is None or invite.revoked_at is not None:
                raise invite_token_invalid_error()
            if invite.consumed_at is not None:
                raise invite_token_used_error()
            if invite.expires_at < self.context.now():
                raise invite_token_expired_error()
            if invite.reviewer_id != user.id:
                raise unauthorized_error('This invitation was sent to a different reviewer')

            self.store.patch('invites', invite.id, consumed_at=self.context.now())
            if user.role == 'author':
                self.store.patch('users', user.id, role='reviewer')

        self.audit.log_action(
            invite.submission_id, user, 'invitation_accepted', f'{user.name} accepted the invitation'
        )
        logger.info(f"{log_tags.REVIEW} {user.id} accepted invitation {invite.id}")
        return {'submission_id': invite.submission_id, 'reviewer_id': user.id}

    def get_invite_status(self, token: str) -> dict:
        """Public status check that does not consume the token."""
        invite = self.store.find_invite_by_hash(hash_token(token))
        if invite is None:
            return {'status': 'invalid', 'submission_id': None}

        if invite.revoked_at is not None:
            status = 'revoked'
        elif invite.consumed_at is not None:
            status = 'consumed'
        elif invite.expires_at < self.context.now():
            status = 'expired'
        else:
            status = 'valid'
        return {'status': status, 'submission_id': invite.submission_id}

    def list_invitations(self, user: User, submission_id: str) -> list[dict]:
        """Every invitation for a submission with its derived status."""
        require_editor(user)

        results = []
        for invite in self._invites_for(submission_id):
            reviewer = self.store.get('users', invite.reviewer_id)
            results.append({
                'id': invite.id,
                'reviewer_id': invite.reviewer_id,
                'reviewer_name': reviewer.name if reviewer else 'Unknown',
                'status': self.derive_status(invite),
                'created_at': invite.created_at,
                'expires_at': invite.expires_at,
            })
        return results

    def review_progress(self, user: User, submission_id: str) -> list[dict]:
        """
        Progress of every reviewer on a submission, with a traffic-light
        indicator: green once submitted, amber while working or recently
        invited, red after a week without response.
        """
        require_editor(user)

        invites = self._invites_for(submission_id)
        now = self.context.now()
        entries = []
        for review in self.store.reviews_for_submission(submission_id):
            reviewer = self.store.get('users', review.reviewer_id)
            invite = next((i for i in invites if i.reviewer_id == review.reviewer_id), None)
            days = (now - review.created_at).days

            if review.status in ('submitted', 'locked'):
                indicator, label = 'green', 'Submitted'
            elif review.status == 'in_progress':
                indicator, label = 'amber', 'In Progress'
            elif days <= OVERDUE_THRESHOLD_DAYS:
                indicator, label = 'amber', 'Awaiting Response'
            else:
                indicator, label = 'red', 'No Response'

            entries.append({
                'reviewer_id': review.reviewer_id,
                'reviewer_name': reviewer.name if reviewer else 'Unknown',
                'review_status': review.status,
                'invite_status': self.derive_status(invite) if invite else 'pending',
                'days_since_assignment': days,
                'indicator': indicator,
                'indicator_label': label,
            })
        return entries


# Singleton instance
_invitation_service: Optional[InvitationService] = None


def get_invitation_service() -> InvitationService:
    """Get the invitation service singleton for the active context."""
    global _invitation_service
    context = get_context()
    if _invitation_service is None or _invitation_service.context is not context:
        _invitation_service = InvitationService(context)
    return _invitation_service
