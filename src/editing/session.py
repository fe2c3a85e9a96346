"""
Draft session: local edits, debounced autosave and conflict handling for
one record.

Each keystroke updates the local value at once and (re)starts a debounce
timer for its field. When the timer fires, the save goes through that
field's ``SaveMutex`` carrying the revision last adopted from the server.
A successful save adopts the server's new revision; a ``VersionConflict``
raises the conflict banner and leaves the local text untouched until the
user picks "reload" or "keep mine".

Server snapshots (from the websocket or an explicit fetch) are merged into
local values only for fields with no pending timer and no save in flight,
and never while a conflict is shown.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable, Optional, Protocol

from config import AUTOSAVE_DEBOUNCE_MS
from utils import log_tags
from utils.log import get_logger

from .debounce import Debouncer
from .mutex import RevisionTracker, SaveMutex
from .state import (
    ConflictInfo,
    ReadOnlyDraft,
    SaveState,
    ServerSnapshot,
    VersionConflict,
    aggregate_save_state,
)

logger = get_logger(__name__)


class DraftBackend(Protocol):
    """Where a draft session reads and writes its record."""

    async def save(self, field: str, content: str, expected_revision: int) -> int:
        """Write one field; return the new revision or raise VersionConflict."""

    async def fetch(self) -> ServerSnapshot:
        """Current server state of the record."""

    async def submit(self, expected_revision: int) -> Optional[int]:
        """Submit the record; may return the new revision."""


class DraftSession:
    """
    Client-side editing state for one record.

    Parameters
    ----------
    backend : DraftBackend
        Server access for this record
    fields : iterable of str
        Editable text fields
    snapshot : ServerSnapshot
        Initial server state
    debounce_ms : int
        Autosave delay after the last edit of a field
    """

    def __init__(
        self,
        backend: DraftBackend,
        fields: Iterable[str],
        snapshot: ServerSnapshot,
        debounce_ms: int = AUTOSAVE_DEBOUNCE_MS,
    ):
        self.backend = backend
        self.fields = tuple(fields)
        self.server = snapshot
        self.local: dict[str, Optional[str]] = {f: snapshot.values.get(f) for f in self.fields}
        self.tracker = RevisionTracker(snapshot.revision)
        self.save_states: dict[str, SaveState] = {}
        self.conflict: Optional[ConflictInfo] = None
        self.last_error: Optional[Exception] = None
        self.debouncer = Debouncer(debounce_ms)
        self._mutexes = {f: SaveMutex() for f in self.fields}
        self._in_flight: Counter = Counter()
        # Bumped by resolve_reload; saves queued before the bump are dropped
        self._generation: Counter = Counter()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def status(self) -> str:
        return self.server.status

    @property
    def revision(self) -> int:
        return self.tracker.value

    @property
    def is_editable(self) -> bool:
        return True

    @property
    def aggregate_state(self) -> SaveState:
        return aggregate_save_state(self.save_states.values())

    def in_flight(self, field: str) -> bool:
        return self._in_flight[field] > 0

    def has_unsaved(self, field: str) -> bool:
        return self.debouncer.pending(field) or self.in_flight(field)

    def _check_field(self, field: str) -> None:
        if field not in self.fields:
            raise KeyError(f"Unknown field: {field}")

    # -------------------------------------------------------------------------
    # Editing and saving
    # -------------------------------------------------------------------------

    def edit(self, field: str, content: str) -> None:
        """
        Apply a local edit and schedule its autosave.

        Edits to the same field within the debounce delay collapse into one
        save carrying the latest content.
        """
        self._check_field(field)
        if not self.is_editable:
            raise ReadOnlyDraft(f"Draft is {self.status or 'read-only'}")
        self.local[field] = content
        self.debouncer.schedule(field, lambda: self.save(field, content))

    async def save(self, field: str, content: str) -> None:
        """Save one field now, queued behind any save already running for it."""
        self._check_field(field)
        self._in_flight[field] += 1
        generation = self._generation[field]
        try:
            await self._mutexes[field].run(lambda: self._save_now(field, content, generation))
        finally:
            self._in_flight[field] -= 1

    def _superseded(self, field: str, generation: int) -> bool:
        return generation != self._generation[field]

    async def _save_now(self, field: str, content: str, generation: int) -> None:
        if self._superseded(field, generation):
            logger.debug(f"{log_tags.AUTOSAVE} Dropping save of '{field}' discarded by reload")
            return
        self.save_states[field] = SaveState.SAVING
        expected = self.tracker.value
        try:
            revision = await self.backend.save(field, content, expected)
        except VersionConflict:
            if self._superseded(field, generation):
                return
            logger.info(f"{log_tags.AUTOSAVE} Conflict saving '{field}' at revision {expected}")
            self.conflict = ConflictInfo(field)
            self.save_states[field] = SaveState.ERROR
        except Exception as e:
            # Surfaced through the save indicator, not raised into the timer
            if self._superseded(field, generation):
                return
            logger.warning(f"{log_tags.AUTOSAVE} Saving '{field}' failed: {e}")
            self.last_error = e
            self.save_states[field] = SaveState.ERROR
        else:
            # A late response must not move the tracker behind a newer snapshot
            self.tracker.advance(revision)
            if self._superseded(field, generation):
                return
            self.save_states[field] = SaveState.SAVED
            if self.conflict is not None and self.conflict.field == field:
                self.conflict = None

    async def flush(self) -> None:
        """Send pending edits now and wait for every save to finish."""
        await self.debouncer.flush()
        for mutex in self._mutexes.values():
            await mutex.idle()

    # -------------------------------------------------------------------------
    # Server sync
    # -------------------------------------------------------------------------

    def _merge(self, snapshot: ServerSnapshot, exclude: Iterable[str] = ()) -> None:
        for field in self.fields:
            if field in exclude or self.has_unsaved(field):
                continue
            self.local[field] = snapshot.values.get(field)

    def apply_server_snapshot(self, snapshot: ServerSnapshot) -> bool:
        """
        Merge a server snapshot into the local state.

        Returns
        -------
        bool
            False if the snapshot was ignored (conflict shown, or older
            than the revision already adopted)
        """
        if self.tracker.is_stale(snapshot.revision):
            return False
        self.server = snapshot
        if self.conflict is not None:
            return False
        self._merge(snapshot)
        self.tracker.adopt(snapshot.revision)
        return True

    async def refresh(self) -> ServerSnapshot:
        """Fetch the record and merge it."""
        snapshot = await self.backend.fetch()
        self.apply_server_snapshot(snapshot)
        return snapshot

    # -------------------------------------------------------------------------
    # Conflict resolution
    # -------------------------------------------------------------------------

    async def resolve_reload(self) -> None:
        """
        Discard the conflicted local edit in favour of the server's text.

        Saves of that field still queued are dropped, and one already sent
        is waited out, so nothing typed before the reload reaches the server
        afterwards.
        """
        if self.conflict is None:
            return
        field = self.conflict.field
        self.debouncer.cancel(field)
        self._generation[field] += 1
        await self._mutexes[field].idle()
        snapshot = await self.backend.fetch()
        self.server = snapshot
        self.local[field] = snapshot.values.get(field)
        self.tracker.adopt(snapshot.revision)
        self.conflict = None
        self.save_states[field] = SaveState.IDLE
        self._merge(snapshot)
        logger.info(f"{log_tags.AUTOSAVE} Reloaded '{field}' at revision {snapshot.revision}")

    async def resolve_keep_mine(self) -> None:
        """Overwrite the server's text with the local edit."""
        if self.conflict is None:
            return
        field = self.conflict.field
        snapshot = await self.backend.fetch()
        self.server = snapshot
        self.tracker.adopt(snapshot.revision)
        self.conflict = None
        self._merge(snapshot, exclude=(field,))
        logger.info(f"{log_tags.AUTOSAVE} Keeping local '{field}' over revision {snapshot.revision}")
        await self.save(field, self.local[field] or "")

    # -------------------------------------------------------------------------
    # Submission and teardown
    # -------------------------------------------------------------------------

    async def submit(self) -> None:
        """
        Flush outstanding saves, then submit against the adopted revision.

        Raises
        ------
        VersionConflict
            If a conflict is unresolved, or the server moved on meanwhile
        """
        await self.flush()
        if self.conflict is not None:
            raise VersionConflict(f"Resolve the conflict on '{self.conflict.field}' before submitting")
        revision = await self.backend.submit(self.tracker.value)
        if revision is not None:
            self.tracker.adopt(revision)
        await self.refresh()

    def close(self) -> None:
        """Cancel pending timers; unsaved edits are dropped."""
        self.debouncer.cancel_all()
