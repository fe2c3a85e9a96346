"""
Post-review discussion between the author, the reviewers and the editors.

Reviewers may join once their own review is submitted. Until a paper is
accepted its author sees reviewers only as "Reviewer 1", "Reviewer 2", ...
numbered by the order in which they first posted. Messages can be edited
for a short window after posting and retracted at any time; a retracted
message keeps its place in the thread with its text removed.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Optional

from utils import log_tags
from utils.log import get_logger

from ..errors import not_found_error, unauthorized_error, validation_error
from .context import ServiceContext, get_context
from .roles import has_editor_role
from .store import DiscussionMessage, Submission, User

logger = get_logger(__name__)

# Review statuses that let a reviewer take part
POSTING_REVIEW_STATUSES = ('submitted', 'locked')


def avatar_initials(name: str) -> str:
    """First and last initials, or the first two letters of a single name."""
    parts = name.split()
    if len(parts) >= 2:
        return f'{parts[0][0]}{parts[-1][0]}'.upper()
    return name[:2].upper()


class DiscussionService:
    """Service for submission discussion threads."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.settings = context.settings

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_submission(self, submission_id: str) -> Submission:
        submission = self.store.get('submissions', submission_id)
        if submission is None:
            raise not_found_error('Submission')
        return submission

    def _get_own_message(self, user: User, message_id: str, verb: str) -> DiscussionMessage:
        message = self.store.get('discussions', message_id)
        if message is None:
            raise not_found_error('Discussion message')
        if message.author_id != user.id:
            raise unauthorized_error(f'You can only {verb} your own messages')
        return message

    def _clean_content(self, content: str) -> str:
        content = content.strip()
        if not content:
            raise validation_error('Message content cannot be empty')
        limit = self.settings.discussion_max_chars
        if len(content) > limit:
            raise validation_error(f'Message content cannot exceed {limit} characters')
        return content

    def _display_role(self, author: Optional[User], submission: Submission) -> str:
        if author is None:
            return 'reviewer'
        if author.id == submission.author_id:
            return 'author'
        if has_editor_role(author.role):
            return 'editor'
        return 'reviewer'

    def _messages(self, submission_id: str) -> list[DiscussionMessage]:
        messages = [m for m in self.store.all('discussions') if m.submission_id == submission_id]
        return sorted(messages, key=lambda m: m.created_at)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_by_submission(self, user: User, submission_id: str) -> Optional[dict]:
        """
        The thread for a submission, with names gated by who is asking.

        Returns
        -------
        dict or None
            ``messages``, ``submission_status``, ``is_author``,
            ``viewer_role``, ``public_conversation`` and ``can_post``;
            None when the submission is missing or the caller is not a
            participant
        """
        submission = self.store.get('submissions', submission_id)
        if submission is None:
            return None

        is_author = user.id == submission.author_id
        review = None
        if is_author:
            viewer_role = 'author'
        elif has_editor_role(user.role):
            viewer_role = 'editor'
        else:
            review = self.store.find_review(submission_id, user.id)
            if review is None:
                return None
            viewer_role = 'reviewer'

        can_post = review is None or review.status in POSTING_REVIEW_STATUSES

        messages = self._messages(submission_id)
        authors = {m.author_id: self.store.get('users', m.author_id) for m in messages}

        pseudonyms = {}
        for message in messages:
            author = authors[message.author_id]
            if author is None or message.author_id in pseudonyms:
                continue
            if self._display_role(author, submission) == 'reviewer':
                pseudonyms[message.author_id] = f'Reviewer {len(pseudonyms) + 1}'

        anonymize = viewer_role == 'author' and submission.status != 'ACCEPTED'

        items = []
        for message in messages:
            author = authors[message.author_id]
            name = author.name if author else 'Unknown'
            role = self._display_role(author, submission)
            if role == 'reviewer' and anonymize:
                display_name = pseudonyms.get(message.author_id, 'Reviewer')
                initials = display_name.replace('Reviewer ', 'R')
                is_anonymous = True
            else:
                display_name = name
                initials = avatar_initials(name)
                is_anonymous = False

            items.append({
                'id': message.id,
                'parent_id': message.parent_id,
                'content': '' if message.is_retracted else message.content,
                'is_retracted': message.is_retracted,
                'display_name': display_name,
                'display_role': role,
                'is_anonymous': is_anonymous,
                'avatar_initials': initials,
                'is_own_message': message.author_id == user.id,
                'editable_until': message.editable_until,
                'created_at': message.created_at,
                'updated_at': message.updated_at,
            })

        return {
            'messages': items,
            'submission_status': submission.status,
            'is_author': is_author,
            'viewer_role': viewer_role,
            'public_conversation': submission.public_conversation,
            'can_post': can_post,
        }

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def post_message(
        self,
        user: User,
        submission_id: str,
        content: str,
        parent_id: Optional[str] = None,
    ) -> str:
        """
        Post a top-level message or a reply.

        Returns
        -------
        str
            New message id
        """
        content = self._clean_content(content)
        submission = self._get_submission(submission_id)

        if user.id != submission.author_id and not has_editor_role(user.role):
            review = self.store.find_review(submission_id, user.id)
            if review is None:
                raise unauthorized_error('Not a participant in this discussion')
            if review.status not in POSTING_REVIEW_STATUSES:
                raise validation_error(
                    'You must submit your review before participating in the discussion'
                )

        if parent_id is not None:
            parent = self.store.get('discussions', parent_id)
            if parent is None:
                raise not_found_error('Parent message')
            if parent.submission_id != submission_id:
                raise validation_error('Parent message does not belong to this submission')

        now = self.context.now()
        message_id = self.store.insert('discussions', DiscussionMessage(
            id='',
            submission_id=submission_id,
            author_id=user.id,
            content=content,
            parent_id=parent_id,
            editable_until=now + timedelta(seconds=self.settings.discussion_edit_window_seconds),
            created_at=now,
            updated_at=now,
        ))
        logger.info(f"{log_tags.DISCUSSION} {user.id} posted {message_id} on {submission_id}")
        return message_id

    def edit_message(self, user: User, message_id: str, content: str) -> None:
        """Replace a message's text while its edit window is open."""
        with self.store.lock:
            message = self._get_own_message(user, message_id, 'edit')
            if message.editable_until is None or self.context.now() >= message.editable_until:
                minutes = self.settings.discussion_edit_window_seconds // 60
                raise validation_error(f'The {minutes}-minute edit window has expired')
            content = self._clean_content(content)
            self.store.patch('discussions', message_id, content=content, updated_at=self.context.now())

    def retract_message(self, user: User, message_id: str) -> None:
        """Retract a message. Retraction cannot be undone."""
        with self.store.lock:
            message = self._get_own_message(user, message_id, 'retract')
            if message.is_retracted:
                raise validation_error('Message is already retracted')
            self.store.patch('discussions', message_id, is_retracted=True, updated_at=self.context.now())
        logger.info(f"{log_tags.DISCUSSION} {user.id} retracted {message_id}")

    def toggle_public_conversation(self, user: User, submission_id: str) -> None:
        """Let the author of a rejected paper publish its discussion. One-way."""
        with self.store.lock:
            submission = self._get_submission(submission_id)
            if submission.author_id != user.id:
                raise unauthorized_error('Only the submission author can toggle public conversation')
            if submission.status != 'REJECTED':
                raise validation_error(
                    'Public conversation toggle is only available for rejected submissions'
                )
            if submission.public_conversation:
                raise validation_error('Conversation is already public')
            self.store.patch(
                'submissions', submission_id,
                public_conversation=True,
                updated_at=self.context.now(),
            )


# Singleton instance
_discussion_service: Optional[DiscussionService] = None


def get_discussion_service() -> DiscussionService:
    """Get the discussion service singleton for the active context."""
    global _discussion_service
    context = get_context()
    if _discussion_service is None or _discussion_service.context is not context:
        _discussion_service = DiscussionService(context)
    return _discussion_service
