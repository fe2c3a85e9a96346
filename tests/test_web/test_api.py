#!/usr/bin/env python3
"""
Tests for the HTTP API.

Tests cover:
- Identity header handling
- Error bodies and status codes
- The review drafting flow over HTTP
- Abstracts, decisions, invitations and public articles
"""
import pytest

from conftest import VALID_ABSTRACT, as_user, words


class TestIdentity:
    """Tests for the X-User-Id header."""

    def test_health_is_public(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    def test_missing_header_is_401(self, client):
        response = client.get('/api/users/me')
        assert response.status_code == 401
        assert response.json() == {'code': 'UNAUTHORIZED', 'message': 'Not authenticated'}

    def test_unknown_user_is_403(self, client):
        response = client.get('/api/users/me', headers={'X-User-Id': 'ghost'})
        assert response.status_code == 403

    def test_me(self, client, users):
        response = client.get('/api/users/me', headers=as_user(users['reviewer']))
        assert response.json()['role'] == 'reviewer'

    def test_register(self, client):
        response = client.post('/api/users', json={'name': 'New Person', 'email': 'new@example.org'})
        assert response.status_code == 201
        assert response.json()['role'] == 'author'


class TestSubmissionsApi:
    """Tests for /api/submissions."""

    def test_create_and_read(self, client, users):
        body = {
            'title': 'Revision checks for shared drafts',
            'authors': [{'name': 'Ada Author', 'affiliation': 'Test University'}],
            'abstract': VALID_ABSTRACT,
            'keywords': ['peer review'],
        }
        created = client.post('/api/submissions', json=body, headers=as_user(users['author']))
        assert created.status_code == 201
        submission_id = created.json()['id']

        response = client.get(f'/api/submissions/{submission_id}', headers=as_user(users['author']))
        assert response.json()['status'] == 'SUBMITTED'
        assert response.json()['authors'] == body['authors']

    def test_validation_error_body(self, client, users):
        body = {
            'title': 'Short',
            'authors': [{'name': 'Ada', 'affiliation': 'Uni'}],
            'abstract': VALID_ABSTRACT,
            'keywords': ['review'],
        }
        response = client.post('/api/submissions', json=body, headers=as_user(users['author']))
        assert response.status_code == 422
        assert response.json()['code'] == 'VALIDATION_ERROR'

    def test_invalid_transition_is_422(self, client, users, make_submission):
        submission_id = make_submission()
        response = client.post(
            f'/api/submissions/{submission_id}/transition',
            json={'new_status': 'PUBLISHED'},
            headers=as_user(users['editor']),
        )
        assert response.status_code == 422
        assert response.json()['code'] == 'INVALID_TRANSITION'

    def test_editor_queue(self, client, users, review_in_progress):
        response = client.get('/api/submissions', params={'status': 'UNDER_REVIEW'},
                              headers=as_user(users['editor']))
        rows = response.json()
        assert rows[0]['submission']['id'] == review_in_progress
        assert rows[0]['review_progress'] == {'assigned': 1, 'started': 1, 'submitted': 0}


class TestReviewsApi:
    """Tests for /api/reviews."""

    def test_save_conflict_and_submit(self, client, users, review_in_progress, complete_sections):
        headers = as_user(users['reviewer'])
        url = f'/api/reviews/{review_in_progress}'

        revision = 0
        for name, text in complete_sections.items():
            response = client.patch(f'{url}/sections', headers=headers, json={
                'section': name, 'content': text, 'expected_revision': revision,
            })
            assert response.status_code == 200
            revision = response.json()['revision']

        stale = client.patch(f'{url}/sections', headers=headers, json={
            'section': 'summary', 'content': 'stale', 'expected_revision': 0,
        })
        assert stale.status_code == 409
        assert stale.json()['code'] == 'VERSION_CONFLICT'

        submitted = client.post(f'{url}/submit', headers=headers, json={'expected_revision': revision})
        assert submitted.status_code == 200
        assert submitted.json()['status'] == 'submitted'

        workspace = client.get(url, headers=headers).json()
        assert workspace['review']['revision'] == revision + 1
        assert workspace['edit_deadline'] is not None

    def test_unknown_section_rejected_by_schema(self, client, users, review_in_progress):
        response = client.patch(
            f'/api/reviews/{review_in_progress}/sections',
            headers=as_user(users['reviewer']),
            json={'section': 'verdict', 'content': 'x', 'expected_revision': 0},
        )
        assert response.status_code == 422

    def test_my_reviews(self, client, users, review_in_progress):
        response = client.get('/api/reviews/mine', headers=as_user(users['reviewer']))
        assert [r['submission_id'] for r in response.json()] == [review_in_progress]


class TestAbstractsApi:
    """Tests for /api/abstracts."""

    def test_drafting_flow(self, client, users, accepted_with_abstract):
        headers = as_user(users['reviewer'])
        url = f'/api/abstracts/{accepted_with_abstract}'

        saved = client.patch(f'{url}/content', headers=headers,
                             json={'content': words(160), 'expected_revision': 0})
        assert saved.json() == {'revision': 1}
        assert client.put(f'{url}/signing', headers=headers, json={'is_signed': True}).status_code == 204

        abstract = client.get(url, headers=headers).json()
        assert abstract['word_count'] == 160
        assert abstract['is_signed'] is True
        assert abstract['revision'] == 1
        assert abstract['is_own_abstract'] is True

        assert client.post(f'{url}/submit', headers=headers, json={'expected_revision': 1}).status_code == 204
        assert client.post(f'{url}/approve', headers=as_user(users['chief'])).status_code == 204
        assert client.post(f'{url}/author-accept', headers=as_user(users['author'])).status_code == 204

    def test_missing_abstract_is_null(self, client, users, make_submission):
        submission_id = make_submission('ACCEPTED')
        response = client.get(f'/api/abstracts/{submission_id}', headers=as_user(users['editor']))
        assert response.status_code == 200
        assert response.json() is None


class TestDecisionsApi:
    def test_decide_and_undo(self, client, users, make_submission):
        submission_id = make_submission('DECISION_PENDING')
        headers = as_user(users['editor'])

        decided = client.post(f'/api/decisions/{submission_id}', headers=headers,
                              json={'decision': 'REJECTED', 'note': 'Out of scope'})
        assert decided.json()['status'] == 'REJECTED'

        undone = client.post(f'/api/decisions/{submission_id}/undo', headers=headers,
                             json={'previous_decision': 'REJECTED'})
        assert undone.status_code == 204

        audit = client.get(f'/api/audit/{submission_id}', headers=headers).json()
        assert [e['action'] for e in audit['page']][-2:] == ['decision_rejected', 'decision_undone']


class TestInvitationsApi:
    def test_invite_and_accept(self, client, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        sent = client.post(f'/api/invitations/submissions/{submission_id}',
                           headers=as_user(users['editor']),
                           json={'reviewer_ids': [users['reviewer'].id]})
        assert sent.status_code == 201
        (token,) = sent.json()['invites'].values()

        assert client.get(f'/api/invitations/tokens/{token}').json()['status'] == 'valid'
        accepted = client.post(f'/api/invitations/tokens/{token}/accept', headers=as_user(users['reviewer']))
        assert accepted.json()['submission_id'] == submission_id

        again = client.post(f'/api/invitations/tokens/{token}/accept', headers=as_user(users['reviewer']))
        assert again.status_code == 410
        assert again.json()['code'] == 'INVITE_TOKEN_USED'

    def test_empty_reviewer_list(self, client, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        response = client.post(f'/api/invitations/submissions/{submission_id}',
                               headers=as_user(users['editor']), json={'reviewer_ids': []})
        assert response.status_code == 422


class TestArticlesApi:
    def test_public_listing(self, client, make_submission):
        make_submission('PUBLISHED')
        response = client.get('/api/articles')
        assert response.status_code == 200
        assert len(response.json()['page']) == 1

    def test_unpublished_article_404(self, client, make_submission):
        submission_id = make_submission('ACCEPTED')
        response = client.get(f'/api/articles/{submission_id}')
        assert response.status_code == 404
        assert response.json()['code'] == 'NOT_FOUND'
