#!/usr/bin/env python3
"""
Shared pytest fixtures for the test suite.

This module provides common fixtures used across test modules including:
- A controllable clock
- Service contexts with an empty in-memory store
- One user per role
- Submissions and reviews in a given state
- A TestClient bound to the test context
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add src directory to Python path for test imports
_project_root = Path(__file__).parent.parent
_src_path = _project_root / 'src'
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

import pytest
from datetime import datetime, timedelta, timezone
import tempfile
import shutil

from config import JournalSettings
from web.services.context import ServiceContext, set_context
from web.services.store import AuthorInfo, InMemoryStore
from web.services.submission_service import SubmissionService
from web.services.review_service import ReviewService
from web.services.user_service import UserService


VALID_ABSTRACT = (
    'This paper measures how often concurrent reviewers overwrite each other '
    'when a journal stores drafts without revision checks, and what changes '
    'once every write carries the revision it was based on.'
)


# ============================================================
# CLOCK
# ============================================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


# ============================================================
# PATH FIXTURES
# ============================================================

@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Create a temporary directory that is cleaned up after tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


# ============================================================
# CONTEXT FIXTURES
# ============================================================

@pytest.fixture
def settings(temp_dir) -> JournalSettings:
    """Default settings with a fast socket poll and no snapshot writes."""
    return JournalSettings(
        ws_poll_interval_seconds=0.05,
        lock_sweep_interval_seconds=3600,
        persist_snapshots=False,
        snapshot_path=temp_dir / 'journal.json',
    )


@pytest.fixture
def context(settings, clock) -> ServiceContext:
    """An empty store installed as the active context."""
    ctx = ServiceContext(store=InMemoryStore(), settings=settings, clock=clock)
    set_context(ctx)
    return ctx


@pytest.fixture
def users(context) -> dict:
    """One user per role, plus a second reviewer, keyed by short name."""
    service = UserService(context)
    specs = [
        ('author', 'Ada Author', 'author'),
        ('author2', 'Bo Author', 'author'),
        ('reviewer', 'Rita Reviewer', 'reviewer'),
        ('reviewer2', 'Ravi Reviewer', 'reviewer'),
        ('editor', 'Eli Editor', 'action_editor'),
        ('chief', 'Erin Chief', 'editor_in_chief'),
        ('admin', 'Avery Admin', 'admin'),
    ]
    return {
        key: service.create_user(name, f'{key}@example.org', role=role,
                                 affiliation='Test University', user_id=f'{key}-id')
        for key, name, role in specs
    }


# ============================================================
# RECORD FIXTURES
# ============================================================

@pytest.fixture
def make_submission(context, users):
    """Factory: create a submission by the author and force its status."""
    service = SubmissionService(context)

    def _make(status: str = 'SUBMITTED', title: str = 'Revision checks for shared drafts') -> str:
        submission_id = service.create(
            users['author'],
            title=title,
            authors=[AuthorInfo(name='Ada Author', affiliation='Test University')],
            abstract=VALID_ABSTRACT,
            keywords=['peer review', 'concurrency'],
        )
        if status != 'SUBMITTED':
            context.store.patch('submissions', submission_id, status=status)
        return submission_id

    return _make


@pytest.fixture
def review_in_progress(context, users, make_submission) -> str:
    """Submission UNDER_REVIEW with the reviewer assigned and drafting."""
    submission_id = make_submission('UNDER_REVIEW')
    service = ReviewService(context)
    service.assign_reviewer(users['chief'], submission_id, users['reviewer'].id)
    service.start_review(users['reviewer'], submission_id)
    return submission_id


@pytest.fixture
def complete_sections() -> dict:
    return {
        'summary': 'The paper studies concurrent edits to review drafts.',
        'strengths': 'Clear problem statement and a careful evaluation.',
        'weaknesses': 'The evaluation covers a single deployment only.',
        'questions': 'How do conflict rates change with team size?',
        'recommendation': 'Accept with minor revisions.',
    }


@pytest.fixture
def submitted_review(context, users, review_in_progress, complete_sections) -> str:
    """A review with every section written and then submitted."""
    service = ReviewService(context)
    revision = 0
    for name, text in complete_sections.items():
        revision = service.update_section(users['reviewer'], review_in_progress, name, text, revision)
    service.submit_review(users['reviewer'], review_in_progress, revision)
    return review_in_progress


@pytest.fixture
def accepted_with_abstract(context, users, make_submission, complete_sections) -> str:
    """ACCEPTED submission whose reviewer has been assigned the abstract."""
    from web.services.abstract_service import AbstractService
    from web.services.store import Review

    submission_id = make_submission('ACCEPTED')
    context.store.insert('reviews', Review(
        id='',
        submission_id=submission_id,
        reviewer_id=users['reviewer'].id,
        sections=dict(complete_sections),
        status='locked',
        revision=6,
        submitted_at=context.now(),
        created_at=context.now(),
        updated_at=context.now(),
    ))
    AbstractService(context).create_draft(users['chief'], submission_id, users['reviewer'].id)
    return submission_id


def words(n: int, stem: str = 'word') -> str:
    """Text of exactly ``n`` words."""
    return ' '.join(f'{stem}{i}' for i in range(n))


# ============================================================
# WEB FIXTURES
# ============================================================

@pytest.fixture
def app(context):
    from web.app import create_app
    return create_app(context=context)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    with TestClient(app) as test_client:
        yield test_client


def as_user(user) -> dict:
    """Request headers identifying ``user``."""
    return {'X-User-Id': user.id}
