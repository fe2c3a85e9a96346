"""
Reviewer payments.

Payment is computed on demand from the review, the paper's length and the
editor's quality assessment; nothing is paid out here. The formula:

    total = (BASE_FLAT + PER_PAGE * pages) * quality_multiplier
            + SPEED_BONUS_PER_WEEK * whole weeks before the deadline
            + ABSTRACT_BONUS if the reviewer writes the published abstract

The deadline is DEADLINE_WEEKS after the review was assigned. Page count
comes from the editor's payment record, else is estimated from the PDF
size, else defaults to DEFAULT_PAGE_COUNT.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from utils import log_tags
from utils.log import get_logger

from ..errors import not_found_error, validation_error
from .context import ServiceContext, get_context
from .roles import require_editor, require_reviewer
from .store import InMemoryStore, Payment, Review, User

logger = get_logger(__name__)

BASE_FLAT = 100
PER_PAGE = 20
SPEED_BONUS_PER_WEEK = 100
DEADLINE_WEEKS = 4
ABSTRACT_BONUS = 300
QUALITY_MULTIPLIERS = {'standard': 1, 'excellent': 2}

DEFAULT_PAGE_COUNT = 15

# Rough bytes per page when estimating length from the PDF size
BYTES_PER_PAGE = 3000

WEEK = timedelta(weeks=1)


@dataclass
class PaymentBreakdown:
    """Line items of one reviewer's payment."""
    base_pay: int
    page_count: int
    quality_multiplier: int
    quality_level: str
    quality_assessed: bool
    speed_bonus: int
    weeks_early: int
    deadline: datetime
    review_submitted_at: Optional[datetime]
    abstract_bonus: int
    has_abstract_assignment: bool
    total: int


def estimate_page_count(pdf_file_size: Optional[int]) -> int:
    if pdf_file_size:
        return max(1, math.ceil(pdf_file_size / BYTES_PER_PAGE))
    return DEFAULT_PAGE_COUNT


def compute_payment_breakdown(
    review: Review,
    now: datetime,
    payment: Optional[Payment] = None,
    pdf_file_size: Optional[int] = None,
    has_abstract_assignment: bool = False,
) -> PaymentBreakdown:
    """
    Compute the payment for one review.

    Parameters
    ----------
    review : Review
        The reviewer's review; its creation time starts the deadline clock
    now : datetime
        Current time, used for speed bonus while the review is unfinished
    payment : Payment, optional
        Editor's assessment; without one quality is standard and unassessed
    pdf_file_size : int, optional
        Used to estimate pages when no payment record exists
    has_abstract_assignment : bool
        Whether the reviewer also drafts the published abstract

    Returns
    -------
    PaymentBreakdown
    """
    if payment is not None:
        page_count = payment.page_count
    else:
        page_count = estimate_page_count(pdf_file_size)

    base_pay = BASE_FLAT + PER_PAGE * page_count

    quality_level = payment.quality_level if payment is not None else 'standard'
    quality_multiplier = QUALITY_MULTIPLIERS[quality_level]

    deadline = review.created_at + DEADLINE_WEEKS * WEEK
    if review.status in ('submitted', 'locked'):
        finished = review.submitted_at or review.updated_at
    else:
        finished = now
    weeks_early = max(0, (deadline - finished) // WEEK)

    speed_bonus = SPEED_BONUS_PER_WEEK * weeks_early
    abstract_bonus = ABSTRACT_BONUS if has_abstract_assignment else 0

    return PaymentBreakdown(
        base_pay=base_pay,
        page_count=page_count,
        quality_multiplier=quality_multiplier,
        quality_level=quality_level,
        quality_assessed=payment is not None,
        speed_bonus=speed_bonus,
        weeks_early=weeks_early,
        deadline=deadline,
        review_submitted_at=review.submitted_at,
        abstract_bonus=abstract_bonus,
        has_abstract_assignment=has_abstract_assignment,
        total=base_pay * quality_multiplier + speed_bonus + abstract_bonus,
    )


def latest_reviews(store: InMemoryStore, submission_id: str) -> list[Review]:
    """One review per reviewer, the most recently updated."""
    latest = {}
    for review in store.reviews_for_submission(submission_id):
        current = latest.get(review.reviewer_id)
        if current is None or review.updated_at > current.updated_at:
            latest[review.reviewer_id] = review
    return list(latest.values())


class PaymentService:
    """Service for reviewer payment breakdowns and quality assessment."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.settings = context.settings

    def _has_abstract(self, submission_id: str, reviewer_id: str) -> bool:
        abstract = self.store.find_abstract(submission_id)
        return abstract is not None and abstract.reviewer_id == reviewer_id

    def _breakdown(self, review: Review, pdf_file_size: Optional[int], now: datetime) -> PaymentBreakdown:
        return compute_payment_breakdown(
            review,
            now,
            payment=self.store.find_payment(review.submission_id, review.reviewer_id),
            pdf_file_size=pdf_file_size,
            has_abstract_assignment=self._has_abstract(review.submission_id, review.reviewer_id),
        )

    def get_payment_breakdown(self, user: User, submission_id: str) -> PaymentBreakdown:
        """The caller's own payment for reviewing a submission."""
        require_reviewer(self.store, user, submission_id, self.settings.demo_role_switcher)
        review = self.store.find_review(submission_id, user.id)
        if review is None:
            raise not_found_error('Review')
        submission = self.store.get('submissions', submission_id)
        pdf_file_size = submission.pdf_file_size if submission else None
        return self._breakdown(review, pdf_file_size, self.context.now())

    def get_payment_summary(self, user: User, submission_id: str) -> list[dict]:
        """Per-reviewer breakdowns for a submission. Editors only."""
        require_editor(user, 'Requires editor, action editor, or admin role')

        submission = self.store.get('submissions', submission_id)
        pdf_file_size = submission.pdf_file_size if submission else None
        now = self.context.now()

        summaries = []
        for review in latest_reviews(self.store, submission_id):
            reviewer = self.store.get('users', review.reviewer_id)
            breakdown = self._breakdown(review, pdf_file_size, now)
            summaries.append({
                'reviewer_id': review.reviewer_id,
                'reviewer_name': reviewer.name if reviewer else 'Unknown',
                'review_status': review.status,
                **vars(breakdown),
            })
        return summaries

    def set_quality_level(self, user: User, submission_id: str, reviewer_id: str, quality_level: str) -> None:
        """
        Record the editor's quality assessment of a reviewer's work.

        Creates the payment record on first assessment, estimating the page
        count from the PDF size.
        """
        require_editor(user, 'Requires editor, action editor, or admin role')
        if quality_level not in QUALITY_MULTIPLIERS:
            raise validation_error(f'Unknown quality level: {quality_level}')

        with self.store.lock:
            submission = self.store.get('submissions', submission_id)
            if submission is None:
                raise not_found_error('Submission', submission_id)
            if self.store.find_review(submission_id, reviewer_id) is None:
                raise validation_error('No review found for this reviewer on this submission')

            now = self.context.now()
            existing = self.store.find_payment(submission_id, reviewer_id)
            if existing is not None:
                self.store.patch('payments', existing.id, quality_level=quality_level, updated_at=now)
            else:
                self.store.insert('payments', Payment(
                    id='',
                    submission_id=submission_id,
                    reviewer_id=reviewer_id,
                    page_count=estimate_page_count(submission.pdf_file_size),
                    quality_level=quality_level,
                    created_at=now,
                    updated_at=now,
                ))

        logger.info(f"{log_tags.PAYMENT} {reviewer_id} on {submission_id} assessed {quality_level}")


# Singleton instance
_payment_service: Optional[PaymentService] = None


def get_payment_service() -> PaymentService:
    """Get the payment service singleton for the active context."""
    global _payment_service
    context = get_context()
    if _payment_service is None or _payment_service.context is not context:
        _payment_service = PaymentService(context)
    return _payment_service
