"""
Draft editing client: debounced autosave with optimistic concurrency.
"""
from .backends import (
    HttpAbstractBackend,
    HttpReviewBackend,
    ServiceAbstractBackend,
    ServiceReviewBackend,
    create_journal_client,
)
from .debounce import Debouncer
from .drafts import AbstractDraft, ReviewDraft, section_status
from .mutex import RevisionTracker, SaveMutex
from .session import DraftBackend, DraftSession
from .state import (
    ConflictInfo,
    ReadOnlyDraft,
    SaveState,
    ServerSnapshot,
    VersionConflict,
    aggregate_save_state,
)

__all__ = [
    'AbstractDraft',
    'ConflictInfo',
    'Debouncer',
    'DraftBackend',
    'DraftSession',
    'HttpAbstractBackend',
    'HttpReviewBackend',
    'ReadOnlyDraft',
    'ReviewDraft',
    'RevisionTracker',
    'SaveMutex',
    'SaveState',
    'ServerSnapshot',
    'ServiceAbstractBackend',
    'ServiceReviewBackend',
    'VersionConflict',
    'aggregate_save_state',
    'create_journal_client',
    'section_status',
]
