#!/usr/bin/env python3
"""
Tests for the in-memory store, typed errors and the status state machine.

Tests cover:
- Record copies and patching
- JSON snapshots
- JournalError codes and HTTP statuses
- Valid and invalid submission transitions
"""
import pytest
from datetime import datetime, timezone

from web.errors import (
    ErrorCode,
    JournalError,
    invalid_transition_error,
    not_found_error,
    unauthenticated_error,
    version_conflict_error,
)
from web.services.store import AuthorInfo, InMemoryStore, Review, Submission, User, newest_first
from web.services.transitions import VALID_TRANSITIONS, assert_transition, is_terminal


def _user(user_id='u1', created_at=None):
    return User(id=user_id, name='Ada', email=f'{user_id}@example.org', role='author',
                created_at=created_at)


# ============================================================
# STORE
# ============================================================

class TestInMemoryStore:
    """Tests for InMemoryStore."""

    def test_insert_assigns_id(self):
        store = InMemoryStore()
        record_id = store.insert('users', _user(user_id=''))
        assert record_id
        assert store.get('users', record_id).name == 'Ada'

    def test_get_returns_copy(self):
        """Mutating a returned record does not touch the store."""
        store = InMemoryStore()
        store.insert('users', _user())
        copy = store.get('users', 'u1')
        copy.name = 'Changed'
        assert store.get('users', 'u1').name == 'Ada'

    def test_get_missing(self):
        store = InMemoryStore()
        assert store.get('users', 'nope') is None
        assert store.get('users', None) is None

    def test_duplicate_id_rejected(self):
        store = InMemoryStore()
        store.insert('users', _user())
        with pytest.raises(KeyError):
            store.insert('users', _user())

    def test_patch_bumps_version(self):
        store = InMemoryStore()
        store.insert('users', _user())
        before = store.version
        updated = store.patch('users', 'u1', role='reviewer')
        assert updated.role == 'reviewer'
        assert store.version == before + 1

    def test_patch_missing(self):
        with pytest.raises(KeyError):
            InMemoryStore().patch('users', 'nope', role='admin')

    def test_find_review(self):
        store = InMemoryStore()
        store.insert('reviews', Review(id='r1', submission_id='s1', reviewer_id='u1'))
        assert store.find_review('s1', 'u1').id == 'r1'
        assert store.find_review('s1', 'u2') is None

    def test_snapshot_roundtrip(self, tmp_path):
        """Dates and nested author lists survive a snapshot."""
        when = datetime(2026, 1, 1, tzinfo=timezone.utc)
        store = InMemoryStore()
        store.insert('submissions', Submission(
            id='s1', author_id='u1', title='Title of paper', abstract='Text',
            authors=[AuthorInfo(name='Ada', affiliation='Uni')], created_at=when,
        ))
        path = store.save_snapshot(tmp_path / 'snap.json')

        loaded = InMemoryStore.load_snapshot(path)
        submission = loaded.get('submissions', 's1')
        assert submission.created_at == when
        assert submission.authors[0].affiliation == 'Uni'
        assert loaded.snapshot_path is None

    def test_persisting_store_writes_on_change(self, tmp_path):
        path = tmp_path / 'snap.json'
        store = InMemoryStore(path)
        store.insert('users', _user())
        assert path.exists()
        assert InMemoryStore.load_snapshot(path).get('users', 'u1') is not None

    def test_unknown_table_ignored(self, tmp_path):
        path = tmp_path / 'snap.json'
        path.write_text('{"users": [], "legacy": [{"id": "x"}]}')
        assert InMemoryStore.load_snapshot(path).all('users') == []


class TestNewestFirst:
    def test_sorted_descending_with_stable_ties(self):
        t1 = datetime(2026, 1, 1, tzinfo=timezone.utc)
        t2 = datetime(2026, 1, 2, tzinfo=timezone.utc)
        records = [_user('a', t1), _user('b', t2), _user('c', t2)]
        assert [r.id for r in newest_first(records)] == ['c', 'b', 'a']


# ============================================================
# ERRORS
# ============================================================

class TestJournalError:
    """Tests for typed errors."""

    def test_status_from_code(self):
        assert version_conflict_error().status_code == 409
        assert not_found_error('Submission', 's1').status_code == 404

    def test_unauthenticated_is_401(self):
        error = unauthenticated_error()
        assert error.code == ErrorCode.UNAUTHORIZED
        assert error.status_code == 401

    def test_to_dict(self):
        error = JournalError(ErrorCode.VALIDATION_ERROR, 'Bad input')
        assert error.to_dict() == {'code': 'VALIDATION_ERROR', 'message': 'Bad input'}

    def test_not_found_message(self):
        assert not_found_error('Submission', 's1').message == 'Submission not found: s1'
        assert not_found_error('Review').message == 'Review not found'

    def test_invalid_transition_message(self):
        assert 'SUBMITTED to PUBLISHED' in invalid_transition_error('SUBMITTED', 'PUBLISHED').message


# ============================================================
# TRANSITIONS
# ============================================================

class TestTransitions:
    """Tests for the submission state machine."""

    @pytest.mark.parametrize('current,target', [
        ('DRAFT', 'SUBMITTED'),
        ('SUBMITTED', 'TRIAGING'),
        ('TRIAGE_COMPLETE', 'UNDER_REVIEW'),
        ('TRIAGE_COMPLETE', 'TRIAGING'),
        ('DECISION_PENDING', 'REVISION_REQUESTED'),
        ('REVISION_REQUESTED', 'SUBMITTED'),
        ('ACCEPTED', 'PUBLISHED'),
    ])
    def test_allowed(self, current, target):
        assert_transition(current, target)

    def test_forbidden_lists_valid_targets(self):
        with pytest.raises(JournalError) as exc:
            assert_transition('SUBMITTED', 'PUBLISHED')
        assert exc.value.code == ErrorCode.INVALID_TRANSITION
        assert 'TRIAGING' in exc.value.message

    def test_terminal_states(self):
        terminal = {s for s in VALID_TRANSITIONS if is_terminal(s)}
        assert terminal == {'DESK_REJECTED', 'REJECTED', 'PUBLISHED'}
        with pytest.raises(JournalError, match='terminal state'):
            assert_transition('PUBLISHED', 'SUBMITTED')
