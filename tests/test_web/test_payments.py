#!/usr/bin/env python3
"""
Tests for reviewer payments.

Tests cover:
- The payment formula and page estimation
- Reviewer and editor views
- Editor quality assessment
- The payment routes
"""
from datetime import timedelta

import pytest

from conftest import as_user
from web.errors import ErrorCode, JournalError
from web.services.payment_service import (
    DEFAULT_PAGE_COUNT,
    PaymentService,
    compute_payment_breakdown,
    estimate_page_count,
)
from web.services.review_service import ReviewService
from web.services.store import Payment, Review


@pytest.fixture
def payments(context):
    return PaymentService(context)


def _review(clock, status='submitted', submitted_after_days=None):
    created = clock()
    submitted_at = created + timedelta(days=submitted_after_days) if submitted_after_days is not None else None
    return Review(
        id='r1', submission_id='s1', reviewer_id='u1', status=status,
        submitted_at=submitted_at, created_at=created, updated_at=submitted_at or created,
    )


class TestFormula:
    """Tests for compute_payment_breakdown()."""

    def test_page_estimate(self):
        assert estimate_page_count(None) == DEFAULT_PAGE_COUNT
        assert estimate_page_count(0) == DEFAULT_PAGE_COUNT
        assert estimate_page_count(1) == 1
        assert estimate_page_count(30001) == 11

    def test_submitted_two_weeks_early(self, clock):
        review = _review(clock, submitted_after_days=10)
        breakdown = compute_payment_breakdown(review, clock())

        assert breakdown.page_count == 15
        assert breakdown.base_pay == 100 + 20 * 15
        assert breakdown.weeks_early == 2
        assert breakdown.speed_bonus == 200
        assert breakdown.quality_level == 'standard'
        assert breakdown.quality_assessed is False
        assert breakdown.deadline == review.created_at + timedelta(weeks=4)
        assert breakdown.total == 600

    def test_unfinished_counts_from_now(self, clock):
        review = _review(clock, status='in_progress')
        assert compute_payment_breakdown(review, clock() + timedelta(days=1)).weeks_early == 3
        assert compute_payment_breakdown(review, clock() + timedelta(days=30)).weeks_early == 0

    def test_quality_and_abstract(self, clock):
        review = _review(clock, submitted_after_days=27)
        payment = Payment(id='p1', submission_id='s1', reviewer_id='u1', page_count=10, quality_level='excellent')
        breakdown = compute_payment_breakdown(review, clock(), payment=payment, has_abstract_assignment=True)

        assert breakdown.base_pay == 300
        assert breakdown.quality_multiplier == 2
        assert breakdown.speed_bonus == 0
        assert breakdown.abstract_bonus == 300
        assert breakdown.total == 300 * 2 + 300

    def test_pdf_size_used_without_record(self, clock):
        review = _review(clock, submitted_after_days=27)
        assert compute_payment_breakdown(review, clock(), pdf_file_size=6000).page_count == 2


class TestPaymentService:
    """Tests for PaymentService."""

    def test_reviewer_breakdown(self, users, payments, submitted_review):
        breakdown = payments.get_payment_breakdown(users['reviewer'], submitted_review)
        assert breakdown.weeks_early == 4
        assert breakdown.total == 400 + 400

    def test_breakdown_requires_assignment(self, users, payments, submitted_review):
        with pytest.raises(JournalError) as exc:
            payments.get_payment_breakdown(users['reviewer2'], submitted_review)
        assert exc.value.code == ErrorCode.UNAUTHORIZED

    def test_abstract_bonus(self, users, payments, accepted_with_abstract):
        breakdown = payments.get_payment_breakdown(users['reviewer'], accepted_with_abstract)
        assert breakdown.has_abstract_assignment is True
        assert breakdown.total == 400 + 400 + 300

    def test_set_quality_creates_then_updates(self, context, users, payments, submitted_review):
        payments.set_quality_level(users['editor'], submitted_review, users['reviewer'].id, 'excellent')
        payments.set_quality_level(users['editor'], submitted_review, users['reviewer'].id, 'excellent')

        records = context.store.all('payments')
        assert len(records) == 1
        assert records[0].page_count == DEFAULT_PAGE_COUNT

        breakdown = payments.get_payment_breakdown(users['reviewer'], submitted_review)
        assert breakdown.quality_assessed is True
        assert breakdown.total == 400 * 2 + 400

        payments.set_quality_level(users['editor'], submitted_review, users['reviewer'].id, 'standard')
        assert context.store.all('payments')[0].quality_level == 'standard'

    def test_set_quality_rules(self, users, payments, submitted_review):
        with pytest.raises(JournalError) as exc:
            payments.set_quality_level(users['reviewer'], submitted_review, users['reviewer'].id, 'excellent')
        assert exc.value.code == ErrorCode.UNAUTHORIZED
        with pytest.raises(JournalError, match='Unknown quality level'):
            payments.set_quality_level(users['editor'], submitted_review, users['reviewer'].id, 'superb')
        with pytest.raises(JournalError, match='No review found'):
            payments.set_quality_level(users['editor'], submitted_review, users['reviewer2'].id, 'standard')
        with pytest.raises(JournalError) as exc:
            payments.set_quality_level(users['editor'], 'missing', users['reviewer'].id, 'standard')
        assert exc.value.code == ErrorCode.NOT_FOUND

    def test_summary(self, context, users, payments, submitted_review):
        ReviewService(context).assign_reviewer(users['chief'], submitted_review, users['reviewer2'].id)
        summary = {s['reviewer_id']: s for s in payments.get_payment_summary(users['editor'], submitted_review)}

        assert summary['reviewer-id']['reviewer_name'] == 'Rita Reviewer'
        assert summary['reviewer-id']['review_status'] == 'submitted'
        assert summary['reviewer-id']['total'] == 800
        assert summary['reviewer2-id']['review_status'] == 'assigned'
        assert summary['reviewer2-id']['weeks_early'] == 4

    def test_summary_requires_editor(self, users, payments, submitted_review):
        with pytest.raises(JournalError):
            payments.get_payment_summary(users['author'], submitted_review)


class TestPaymentRoutes:
    """Tests for /api/payments."""

    def test_reviewer_and_editor_views(self, client, users, submitted_review):
        mine = client.get(f'/api/payments/{submitted_review}/mine', headers=as_user(users['reviewer']))
        assert mine.status_code == 200
        assert mine.json()['total'] == 800

        response = client.put(
            f'/api/payments/{submitted_review}/quality',
            json={'reviewer_id': users['reviewer'].id, 'quality_level': 'excellent'},
            headers=as_user(users['editor']),
        )
        assert response.status_code == 204

        summary = client.get(f'/api/payments/{submitted_review}', headers=as_user(users['editor'])).json()
        assert summary[0]['quality_level'] == 'excellent'
        assert summary[0]['total'] == 1200

    def test_summary_forbidden_for_reviewer(self, client, users, submitted_review):
        response = client.get(f'/api/payments/{submitted_review}', headers=as_user(users['reviewer']))
        assert response.status_code == 403

    def test_bad_quality_level_rejected(self, client, users, submitted_review):
        response = client.put(
            f'/api/payments/{submitted_review}/quality',
            json={'reviewer_id': users['reviewer'].id, 'quality_level': 'superb'},
            headers=as_user(users['editor']),
        )
        assert response.status_code == 422
