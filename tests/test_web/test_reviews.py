#!/usr/bin/env python3
"""
Tests for the review service.

Tests cover:
- Assignment rules
- Section saves with revision checks
- Submission and the post-submission edit window
- Locking expired reviews
"""
import pytest

from web.errors import ErrorCode, JournalError
from web.services.notification_service import NotificationService
from web.services.review_service import ReviewService


@pytest.fixture
def service(context):
    return ReviewService(context)


class TestAssignment:
    """Tests for reviewer assignment."""

    def test_assign_creates_review_and_notifies(self, service, context, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        review_id = service.assign_reviewer(users['editor'], submission_id, users['reviewer'].id)

        review = context.store.get('reviews', review_id)
        assert review.status == 'assigned'
        assert review.revision == 0
        notes = NotificationService(context).list_for_user(users['reviewer'])
        assert notes[0].type == 'reviewer_invitation'

    def test_assign_requires_reviewable_status(self, service, users, make_submission):
        submission_id = make_submission('SUBMITTED')
        with pytest.raises(JournalError, match='TRIAGE_COMPLETE or UNDER_REVIEW'):
            service.assign_reviewer(users['editor'], submission_id, users['reviewer'].id)

    def test_assign_requires_reviewer_role(self, service, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        with pytest.raises(JournalError, match='reviewer role'):
            service.assign_reviewer(users['editor'], submission_id, users['author2'].id)

    def test_assign_twice(self, service, users, review_in_progress):
        with pytest.raises(JournalError, match='already has a review'):
            service.assign_reviewer(users['editor'], review_in_progress, users['reviewer'].id)

    def test_assign_requires_editor(self, service, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        with pytest.raises(JournalError) as exc:
            service.assign_reviewer(users['author'], submission_id, users['reviewer'].id)
        assert exc.value.code == ErrorCode.UNAUTHORIZED

    def test_self_assign_disabled_outside_demo(self, service, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        with pytest.raises(JournalError) as exc:
            service.assign_self_as_reviewer(users['admin'], submission_id)
        assert exc.value.code == ErrorCode.ENVIRONMENT_MISCONFIGURED

    def test_self_assign_in_demo_lets_admin_draft(self, service, context, users, make_submission):
        """With the role switcher on, an admin can act as a reviewer."""
        context.settings.demo_role_switcher = True
        submission_id = make_submission('UNDER_REVIEW')
        service.assign_self_as_reviewer(users['admin'], submission_id)
        service.start_review(users['admin'], submission_id)
        assert service.update_section(users['admin'], submission_id, 'summary', 'Text', 0) == 1

    def test_list_by_reviewer(self, service, users, review_in_progress):
        rows = service.list_by_reviewer(users['reviewer'])
        assert rows[0]['submission_id'] == review_in_progress
        assert rows[0]['review_status'] == 'in_progress'
        assert rows[0]['submission_status'] == 'UNDER_REVIEW'
        with pytest.raises(JournalError):
            service.list_by_reviewer(users['author'])

    def test_unassigned_reviewer_cannot_read(self, service, users, review_in_progress):
        with pytest.raises(JournalError, match='not assigned'):
            service.get_submission_for_reviewer(users['reviewer2'], review_in_progress)


class TestUpdateSection:
    """Tests for section saves."""

    def test_save_bumps_revision(self, service, context, users, review_in_progress):
        assert service.update_section(users['reviewer'], review_in_progress, 'summary', 'One', 0) == 1
        assert service.update_section(users['reviewer'], review_in_progress, 'strengths', 'Two', 1) == 2

        review = context.store.find_review(review_in_progress, users['reviewer'].id)
        assert review.sections == {'summary': 'One', 'strengths': 'Two'}
        assert review.revision == 2

    def test_stale_revision_conflicts_without_writing(self, service, context, users, review_in_progress):
        service.update_section(users['reviewer'], review_in_progress, 'summary', 'First tab', 0)
        with pytest.raises(JournalError) as exc:
            service.update_section(users['reviewer'], review_in_progress, 'summary', 'Second tab', 0)
        assert exc.value.code == ErrorCode.VERSION_CONFLICT
        assert exc.value.status_code == 409

        review = context.store.find_review(review_in_progress, users['reviewer'].id)
        assert review.sections['summary'] == 'First tab'
        assert review.revision == 1

    def test_unknown_section(self, service, users, review_in_progress):
        with pytest.raises(JournalError, match='Unknown review section'):
            service.update_section(users['reviewer'], review_in_progress, 'verdict', 'x', 0)

    def test_assigned_review_not_editable(self, service, users, make_submission):
        submission_id = make_submission('UNDER_REVIEW')
        service.assign_reviewer(users['editor'], submission_id, users['reviewer'].id)
        with pytest.raises(JournalError, match='only be edited when in progress'):
            service.update_section(users['reviewer'], submission_id, 'summary', 'x', 0)

    def test_start_review_is_idempotent(self, service, users, review_in_progress):
        assert service.start_review(users['reviewer'], review_in_progress).status == 'in_progress'


class TestSubmitReview:
    """Tests for submission and the edit window."""

    def test_incomplete_review_rejected(self, service, users, review_in_progress):
        service.update_section(users['reviewer'], review_in_progress, 'summary', 'Only this', 0)
        with pytest.raises(JournalError, match='All sections must be completed'):
            service.submit_review(users['reviewer'], review_in_progress, 1)

    def test_blank_section_counts_as_missing(self, service, users, review_in_progress, complete_sections):
        revision = 0
        for name, text in complete_sections.items():
            text = '   ' if name == 'questions' else text
            revision = service.update_section(users['reviewer'], review_in_progress, name, text, revision)
        with pytest.raises(JournalError, match='All sections'):
            service.submit_review(users['reviewer'], review_in_progress, revision)

    def test_submit_with_stale_revision(self, service, users, review_in_progress, complete_sections):
        revision = 0
        for name, text in complete_sections.items():
            revision = service.update_section(users['reviewer'], review_in_progress, name, text, revision)
        with pytest.raises(JournalError) as exc:
            service.submit_review(users['reviewer'], review_in_progress, revision - 1)
        assert exc.value.code == ErrorCode.VERSION_CONFLICT

    def test_submit_sets_deadline(self, service, context, users, submitted_review):
        review = context.store.find_review(submitted_review, users['reviewer'].id)
        assert review.status == 'submitted'
        assert review.revision == 6
        assert (service.edit_deadline(review) - review.submitted_at).total_seconds() == 900

    def test_edit_within_window(self, service, users, submitted_review, clock):
        clock.advance(14 * 60)
        assert service.update_section(users['reviewer'], submitted_review, 'summary', 'Late fix', 6) == 7

    def test_edit_after_window_rejected(self, service, users, submitted_review, clock):
        clock.advance(15 * 60 + 1)
        with pytest.raises(JournalError, match='15-minute edit window has expired'):
            service.update_section(users['reviewer'], submitted_review, 'summary', 'Too late', 6)

    def test_submit_twice_rejected(self, service, users, submitted_review):
        with pytest.raises(JournalError, match='only be submitted from in_progress'):
            service.submit_review(users['reviewer'], submitted_review, 6)


class TestLocking:
    """Tests for lock_review and lock_expired_reviews."""

    def test_nothing_locked_inside_window(self, service, submitted_review, clock):
        clock.advance(60)
        assert service.lock_expired_reviews() == []

    def test_expired_reviews_lock(self, service, context, users, submitted_review, clock):
        clock.advance(16 * 60)
        locked = service.lock_expired_reviews()
        review = context.store.find_review(submitted_review, users['reviewer'].id)
        assert locked == [review.id]
        assert review.status == 'locked'
        assert review.locked_at == clock()

    def test_lock_is_idempotent(self, service, context, users, submitted_review):
        review = context.store.find_review(submitted_review, users['reviewer'].id)
        assert service.lock_review(review.id) is True
        assert service.lock_review(review.id) is False

    def test_locked_review_not_editable(self, service, context, users, submitted_review):
        review = context.store.find_review(submitted_review, users['reviewer'].id)
        service.lock_review(review.id)
        with pytest.raises(JournalError, match='only be edited'):
            service.update_section(users['reviewer'], submitted_review, 'summary', 'x', 6)
