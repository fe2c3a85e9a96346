"""
Draft sessions for the two collaboratively edited records: a structured
review and a reviewer abstract.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from config import (
    ABSTRACT_MAX_WORDS,
    ABSTRACT_MIN_WORDS,
    AUTOSAVE_DEBOUNCE_MS,
    REVIEW_EDIT_WINDOW_SECONDS,
    REVIEW_SECTIONS,
    SECTION_COMPLETE_WORDS,
)
from utils.helpers import count_words, format_countdown, is_blank, utc_now

from .session import DraftBackend, DraftSession
from .state import ReadOnlyDraft, ServerSnapshot

NOT_STARTED = 'not-started'
IN_PROGRESS = 'in-progress'
COMPLETE = 'complete'


def section_status(name: str, value: Optional[str], complete_words: int = SECTION_COMPLETE_WORDS) -> str:
    """
    Progress badge for one review section.

    A section is complete at ``complete_words`` words; the recommendation
    is complete as soon as it says anything.
    """
    words = count_words(value or '')
    if words == 0:
        return NOT_STARTED
    if name == 'recommendation' or words >= complete_words:
        return COMPLETE
    return IN_PROGRESS


class ReviewDraft(DraftSession):
    """Editing session over the five sections of a review."""

    def __init__(
        self,
        backend: DraftBackend,
        snapshot: ServerSnapshot,
        debounce_ms: int = AUTOSAVE_DEBOUNCE_MS,
        edit_window_seconds: int = REVIEW_EDIT_WINDOW_SECONDS,
        complete_words: int = SECTION_COMPLETE_WORDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(backend, REVIEW_SECTIONS, snapshot, debounce_ms)
        self.edit_window = timedelta(seconds=edit_window_seconds)
        self.complete_words = complete_words
        self.clock = clock

    @classmethod
    async def open(cls, backend: DraftBackend, **kwargs) -> 'ReviewDraft':
        return cls(backend, await backend.fetch(), **kwargs)

    def section_status(self, name: str) -> str:
        return section_status(name, self.local.get(name), self.complete_words)

    @property
    def completed_count(self) -> int:
        return sum(1 for name in self.fields if self.section_status(name) == COMPLETE)

    @property
    def can_submit(self) -> bool:
        """Every section has content; the server enforces the same rule."""
        return self.status == 'in_progress' and all(not is_blank(self.local[f]) for f in self.fields)

    @property
    def edit_deadline(self) -> Optional[datetime]:
        if self.server.submitted_at is None:
            return None
        return self.server.submitted_at + self.edit_window

    def edit_countdown(self, now: Optional[datetime] = None) -> Optional[float]:
        """Seconds left in the post-submission edit window, or None."""
        deadline = self.edit_deadline
        if deadline is None:
            return None
        now = now or self.clock()
        return max(0.0, (deadline - now).total_seconds())

    def countdown_text(self, now: Optional[datetime] = None) -> Optional[str]:
        remaining = self.edit_countdown(now)
        return format_countdown(remaining) if remaining is not None else None

    @property
    def is_editable(self) -> bool:
        if self.status == 'in_progress':
            return True
        if self.status == 'submitted':
            # Without a submission time the window cannot be checked locally
            remaining = self.edit_countdown()
            return remaining is not None and remaining > 0
        return False


class AbstractDraft(DraftSession):
    """Editing session over a reviewer abstract's text and signing choice."""

    FIELD = 'content'

    def __init__(
        self,
        backend: DraftBackend,
        snapshot: ServerSnapshot,
        debounce_ms: int = AUTOSAVE_DEBOUNCE_MS,
        min_words: int = ABSTRACT_MIN_WORDS,
        max_words: int = ABSTRACT_MAX_WORDS,
    ):
        super().__init__(backend, (self.FIELD,), snapshot, debounce_ms)
        self.min_words = min_words
        self.max_words = max_words
        self.is_signed = bool(snapshot.is_signed)

    @classmethod
    async def open(cls, backend: DraftBackend, **kwargs) -> 'AbstractDraft':
        return cls(backend, await backend.fetch(), **kwargs)

    @property
    def content(self) -> str:
        return self.local[self.FIELD] or ''

    def edit_content(self, text: str) -> None:
        self.edit(self.FIELD, text)

    @property
    def word_count(self) -> int:
        return count_words(self.content)

    @property
    def is_word_count_valid(self) -> bool:
        return self.min_words <= self.word_count <= self.max_words

    @property
    def is_editable(self) -> bool:
        return self.status != 'approved'

    async def set_signing(self, is_signed: bool) -> None:
        """Toggle signing immediately; not debounced and not revisioned."""
        if not self.is_editable:
            raise ReadOnlyDraft('Cannot modify signing on an approved abstract')
        self.is_signed = is_signed
        await self.backend.set_signing(is_signed)

    def apply_server_snapshot(self, snapshot: ServerSnapshot) -> bool:
        if snapshot.is_signed is not None and not self.tracker.is_stale(snapshot.revision):
            self.is_signed = snapshot.is_signed
        return super().apply_server_snapshot(snapshot)
