"""
Shared state handed to every service: the store, the runtime settings and
the clock. The app factory installs one context; tests install their own.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from config import JournalSettings, load_journal_config
from utils.helpers import utc_now

from .store import InMemoryStore


@dataclass
class ServiceContext:
    store: InMemoryStore = field(default_factory=InMemoryStore)
    settings: JournalSettings = field(default_factory=JournalSettings)
    clock: Callable[[], datetime] = utc_now

    def now(self) -> datetime:
        return self.clock()


def build_context(settings: JournalSettings) -> ServiceContext:
    """Context for ``settings``, resuming from the snapshot file if persisting."""
    path = settings.snapshot_path
    if settings.persist_snapshots and path.exists():
        store = InMemoryStore.load_snapshot(path, persist=True)
    elif settings.persist_snapshots:
        store = InMemoryStore(path)
    else:
        store = InMemoryStore()
    return ServiceContext(store=store, settings=settings)


_context: Optional[ServiceContext] = None


def get_context() -> ServiceContext:
    """Get the active service context, creating one from journal.yml on first use."""
    global _context
    if _context is None:
        _context = build_context(load_journal_config())
    return _context


def set_context(context: ServiceContext) -> ServiceContext:
    """Install a context; services created afterwards use it."""
    global _context
    _context = context
    return context
