"""
In-memory record store with optional JSON snapshots.

Holds every table of the journal (users, submissions, reviews, reviewer
abstracts, invitations, discussions, payments, audit log, notifications)
as dicts of dataclass records keyed by id. A single re-entrant lock guards
all access; services take ``store.lock`` around any read-compare-write so
that revision checks and the writes they guard are atomic.
"""
from __future__ import annotations

import copy
import json
import threading
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Optional

from utils.helpers import ensure_dir, new_id
from utils.log import get_logger
from utils import log_tags

logger = get_logger(__name__)


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class User:
    """A registered account."""
    id: str
    name: str
    email: str
    role: str  # author, reviewer, action_editor, editor_in_chief, admin
    affiliation: str = ''
    created_at: Optional[datetime] = None


@dataclass
class AuthorInfo:
    """One entry of a submission's author list."""
    name: str
    affiliation: str


@dataclass
class Submission:
    """A paper moving through the editorial pipeline."""
    id: str
    author_id: str
    title: str
    abstract: str
    authors: list[AuthorInfo] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    status: str = 'SUBMITTED'
    pdf_file_name: Optional[str] = None
    pdf_file_size: Optional[int] = None
    action_editor_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    decision_note: Optional[str] = None
    decided_at: Optional[datetime] = None
    public_conversation: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Review:
    """A reviewer's structured review of one submission."""
    id: str
    submission_id: str
    reviewer_id: str
    sections: dict[str, str] = field(default_factory=dict)
    status: str = 'assigned'  # assigned, in_progress, submitted, locked
    revision: int = 0
    submitted_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ReviewerAbstract:
    """The reviewer-written abstract published alongside an accepted paper."""
    id: str
    submission_id: str
    reviewer_id: str
    content: str = ''
    word_count: int = 0
    is_signed: bool = False
    status: str = 'drafting'  # drafting, submitted, approved
    author_accepted: Optional[bool] = None
    author_accepted_at: Optional[datetime] = None
    revision: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ReviewInvite:
    """An invitation to review; only the token's digest is stored."""
    id: str
    submission_id: str
    reviewer_id: str
    created_by: str
    token_hash: str
    expires_at: datetime
    consumed_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass
class DiscussionMessage:
    """A message in a submission's post-review discussion."""
    id: str
    submission_id: str
    author_id: str
    content: str
    parent_id: Optional[str] = None
    is_retracted: bool = False
    editable_until: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Payment:
    """Editor-assessed payment inputs for one reviewer on one submission."""
    id: str
    submission_id: str
    reviewer_id: str
    page_count: int
    quality_level: str = 'standard'  # standard, excellent
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class AuditEntry:
    """An audit log entry for an editorial action."""
    id: str
    submission_id: str
    actor_id: str
    actor_role: str
    action: str
    details: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Notification:
    """A message addressed to one user about one submission."""
    id: str
    recipient_id: str
    submission_id: str
    type: str
    subject: str
    body: str
    created_at: Optional[datetime] = None


TABLES = {
    'users': User,
    'submissions': Submission,
    'reviews': Review,
    'abstracts': ReviewerAbstract,
    'invites': ReviewInvite,
    'discussions': DiscussionMessage,
    'payments': Payment,
    'audit_logs': AuditEntry,
    'notifications': Notification,
}


# =============================================================================
# SERIALIZATION
# =============================================================================

def _encode(record) -> dict:
    data = asdict(record)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


def _decode(table: str, data: dict):
    cls = TABLES[table]
    known = {f.name for f in fields(cls)}
    values = {}
    for key, value in data.items():
        if key not in known:
            continue
        if key.endswith(('_at', '_until')) and isinstance(value, str):
            value = datetime.fromisoformat(value)
        values[key] = value
    if cls is Submission:
        values['authors'] = [AuthorInfo(**a) for a in values.get('authors', [])]
    return cls(**values)


# =============================================================================
# STORE
# =============================================================================

class InMemoryStore:
    """Thread-safe tables of dataclass records."""

    def __init__(self, snapshot_path: Optional[Path] = None):
        self.lock = threading.RLock()
        self.snapshot_path = snapshot_path
        self.version = 0
        self._tables: dict[str, dict[str, object]] = {name: {} for name in TABLES}

    # -- generic access -----------------------------------------------------

    def get(self, table: str, record_id: Optional[str]):
        """Return a copy of a record, or None."""
        if record_id is None:
            return None
        with self.lock:
            record = self._tables[table].get(record_id)
            return copy.deepcopy(record)

    def all(self, table: str) -> list:
        """Copies of every record in insertion order."""
        with self.lock:
            return [copy.deepcopy(r) for r in self._tables[table].values()]

    def insert(self, table: str, record):
        """Insert a record; assigns an id when the record has none."""
        with self.lock:
            if not record.id:
                record.id = new_id()
            if record.id in self._tables[table]:
                raise KeyError(f"Duplicate id in {table}: {record.id}")
            self._tables[table][record.id] = copy.deepcopy(record)
            self._changed()
            return record.id

    def patch(self, table: str, record_id: str, **changes):
        """Apply field changes to a stored record and return the new copy."""
        with self.lock:
            current = self._tables[table].get(record_id)
            if current is None:
                raise KeyError(f"No record in {table}: {record_id}")
            updated = replace(current, **changes)
            self._tables[table][record_id] = updated
            self._changed()
            return copy.deepcopy(updated)

    # -- lookups ------------------------------------------------------------

    def find_review(self, submission_id: str, reviewer_id: str) -> Optional[Review]:
        with self.lock:
            for review in self._tables['reviews'].values():
                if review.submission_id == submission_id and review.reviewer_id == reviewer_id:
                    return copy.deepcopy(review)
        return None

    def reviews_for_submission(self, submission_id: str) -> list[Review]:
        return [r for r in self.all('reviews') if r.submission_id == submission_id]

    def find_abstract(self, submission_id: str) -> Optional[ReviewerAbstract]:
        with self.lock:
            for abstract in self._tables['abstracts'].values():
                if abstract.submission_id == submission_id:
                    return copy.deepcopy(abstract)
        return None

    def find_payment(self, submission_id: str, reviewer_id: str) -> Optional[Payment]:
        with self.lock:
            for payment in self._tables['payments'].values():
                if payment.submission_id == submission_id and payment.reviewer_id == reviewer_id:
                    return copy.deepcopy(payment)
        return None

    def find_invite_by_hash(self, token_hash: str) -> Optional[ReviewInvite]:
        with self.lock:
            for invite in self._tables['invites'].values():
                if invite.token_hash == token_hash:
                    return copy.deepcopy(invite)
        return None

    # -- snapshots ----------------------------------------------------------

    def _changed(self) -> None:
        self.version += 1
        if self.snapshot_path is not None:
            self.save_snapshot(self.snapshot_path)

    def to_dict(self) -> dict:
        with self.lock:
            return {
                table: [_encode(r) for r in records.values()]
                for table, records in self._tables.items()
            }

    def save_snapshot(self, path: Path) -> Path:
        """Write every table to a JSON file."""
        path = Path(path)
        ensure_dir(path.parent)
        payload = json.dumps(self.to_dict(), indent=2)
        tmp = path.with_suffix(path.suffix + '.tmp')
        tmp.write_text(payload)
        tmp.replace(path)
        return path

    @classmethod
    def load_snapshot(cls, path: Path, persist: bool = False) -> 'InMemoryStore':
        """
        Build a store from a JSON snapshot.

        Parameters
        ----------
        path : Path
            Snapshot written by ``save_snapshot``
        persist : bool
            Keep writing snapshots back to ``path`` after each mutation

        Returns
        -------
        InMemoryStore
            Store holding the snapshot's records
        """
        path = Path(path)
        data = json.loads(path.read_text())
        store = cls()
        with store.lock:
            for table, rows in data.items():
                if table not in TABLES:
                    logger.warning(f"{log_tags.STORE} Ignoring unknown table '{table}' in {path}")
                    continue
                for row in rows:
                    record = _decode(table, row)
                    store._tables[table][record.id] = record
        store.snapshot_path = path if persist else None
        logger.info(f"{log_tags.STORE} Loaded snapshot {path}")
        return store


def newest_first(records: list) -> list:
    """Sort by ``created_at`` descending; later inserts win ties."""
    indexed = list(enumerate(records))
    indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    return [record for _, record in indexed]
