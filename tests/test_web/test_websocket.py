#!/usr/bin/env python3
"""
Tests for the live snapshot sockets.

Tests cover:
- Initial snapshot on connect
- Pushes after a save lands
- Forced resend on client message
- Error frames for bad identities
"""
from web.services.abstract_service import AbstractService
from web.services.review_service import ReviewService


class TestReviewSocket:
    """Tests for /ws/reviews/{submission_id}."""

    def test_initial_snapshot(self, client, users, review_in_progress):
        url = f'/ws/reviews/{review_in_progress}?user_id={users["reviewer"].id}'
        with client.websocket_connect(url) as ws:
            message = ws.receive_json()
        assert message['type'] == 'snapshot'
        assert message['revision'] == 0
        assert message['status'] == 'in_progress'
        assert message['submitted_at'] is None

    def test_pushes_after_save(self, client, context, users, review_in_progress):
        url = f'/ws/reviews/{review_in_progress}'
        with client.websocket_connect(url, headers={'X-User-Id': users['reviewer'].id}) as ws:
            assert ws.receive_json()['revision'] == 0
            ReviewService(context).update_section(users['reviewer'], review_in_progress, 'summary', 'Hello', 0)
            message = ws.receive_json()
        assert message['revision'] == 1
        assert message['values'] == {'summary': 'Hello'}

    def test_client_message_forces_resend(self, client, users, review_in_progress):
        url = f'/ws/reviews/{review_in_progress}?user_id={users["reviewer"].id}'
        with client.websocket_connect(url) as ws:
            first = ws.receive_json()
            ws.send_text('refresh')
            second = ws.receive_json()
        assert first == second

    def test_unassigned_reviewer_gets_error(self, client, users, review_in_progress):
        url = f'/ws/reviews/{review_in_progress}?user_id={users["reviewer2"].id}'
        with client.websocket_connect(url) as ws:
            message = ws.receive_json()
        assert message['type'] == 'error'
        assert message['code'] == 'UNAUTHORIZED'

    def test_missing_identity(self, client, review_in_progress):
        with client.websocket_connect(f'/ws/reviews/{review_in_progress}') as ws:
            message = ws.receive_json()
        assert message == {'type': 'error', 'code': 'UNAUTHORIZED', 'message': 'Not authenticated'}


class TestAbstractSocket:
    def test_signing_change_is_pushed(self, client, context, users, accepted_with_abstract):
        url = f'/ws/abstracts/{accepted_with_abstract}?user_id={users["reviewer"].id}'
        with client.websocket_connect(url) as ws:
            first = ws.receive_json()
            AbstractService(context).update_signing(users['reviewer'], accepted_with_abstract, True)
            second = ws.receive_json()
        assert first['is_signed'] is False
        assert second['is_signed'] is True
        assert second['revision'] == first['revision']
        assert second['values'] == {'content': ''}
