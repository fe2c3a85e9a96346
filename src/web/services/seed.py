"""
Demo data: one account per role and submissions spread across the pipeline.

Used by ``manage.py seed`` and by tests that want a populated store.
"""
from __future__ import annotations

from datetime import timedelta

from config import REVIEW_SECTIONS
from utils import log_tags
from utils.log import get_logger

from .abstract_service import AbstractService
from .context import ServiceContext
from .review_service import ReviewService
from .store import AuthorInfo, Review, User
from .submission_service import SubmissionService

logger = get_logger(__name__)

DEMO_USERS = [
    ('author', 'Ada Author', 'ada@example.org', 'University of Example'),
    ('reviewer', 'Rita Reviewer', 'rita@example.org', 'Institute of Review'),
    ('reviewer', 'Ravi Reviewer', 'ravi@example.org', 'Review Labs'),
    ('action_editor', 'Eli Editor', 'eli@example.org', 'Journal Office'),
    ('editor_in_chief', 'Erin Chief', 'erin@example.org', 'Journal Office'),
    ('admin', 'Avery Admin', 'avery@example.org', 'Journal Office'),
]

DEMO_ABSTRACT = (
    'We study how optimistic concurrency control behaves when several editors '
    'work on the same structured document, and report on the conflict rates '
    'observed in a deployed peer-review system over one year.'
)


def _filler(words: int, seed: str) -> str:
    return ' '.join(f'{seed}{i % 7}' for i in range(words))


def seed_demo_data(context: ServiceContext) -> dict[str, str]:
    """
    Populate the context's store with demo records.

    Returns
    -------
    dict[str, str]
        Named ids: one per demo user (by role, ``reviewer2`` for the second
        reviewer) plus ``under_review``, ``decision_pending`` and
        ``published`` submissions
    """
    store = context.store
    now = context.now()
    ids: dict[str, str] = {}

    for role, name, email, affiliation in DEMO_USERS:
        key = 'reviewer2' if role in ids else role
        ids[key] = store.insert('users', User(
            id='', name=name, email=email, role=role, affiliation=affiliation, created_at=now,
        ))

    author = store.get('users', ids['author'])
    editor = store.get('users', ids['editor_in_chief'])
    submissions = SubmissionService(context)
    reviews = ReviewService(context)

    def submit(title: str, status: str) -> str:
        submission_id = submissions.create(
            author,
            title=title,
            authors=[AuthorInfo(name=author.name, affiliation=author.affiliation)],
            abstract=DEMO_ABSTRACT,
            keywords=['peer review', 'concurrency'],
            pdf_file_name='manuscript.pdf',
            pdf_file_size=1_200_000,
        )
        store.patch('submissions', submission_id, status=status)
        return submission_id

    # Under review: one review being drafted, one untouched
    ids['under_review'] = submit('Conflict rates in collaborative review drafting', 'UNDER_REVIEW')
    reviews.assign_reviewer(editor, ids['under_review'], ids['reviewer'])
    reviews.assign_reviewer(editor, ids['under_review'], ids['reviewer2'])
    rita = store.get('users', ids['reviewer'])
    reviews.start_review(rita, ids['under_review'])
    reviews.update_section(rita, ids['under_review'], 'summary', _filler(25, 'summary'), 0)

    # Decision pending: both reviews submitted and locked
    ids['decision_pending'] = submit('Debounced autosave and its discontents', 'DECISION_PENDING')
    for key in ('reviewer', 'reviewer2'):
        store.insert('reviews', Review(
            id='',
            submission_id=ids['decision_pending'],
            reviewer_id=ids[key],
            sections={name: _filler(30, name) for name in REVIEW_SECTIONS},
            status='locked',
            revision=6,
            submitted_at=now - timedelta(days=2),
            locked_at=now - timedelta(days=2) + timedelta(seconds=context.settings.review_edit_window_seconds),
            created_at=now - timedelta(days=10),
            updated_at=now - timedelta(days=2),
        ))

    # Published with a signed, approved and author-accepted reviewer abstract
    ids['published'] = submit('A field guide to version conflicts', 'ACCEPTED')
    store.insert('reviews', Review(
        id='',
        submission_id=ids['published'],
        reviewer_id=ids['reviewer'],
        sections={name: _filler(30, name) for name in REVIEW_SECTIONS},
        status='locked',
        revision=5,
        submitted_at=now - timedelta(days=20),
        locked_at=now - timedelta(days=20),
        created_at=now - timedelta(days=30),
        updated_at=now - timedelta(days=20),
    ))
    abstracts = AbstractService(context)
    abstracts.create_draft(editor, ids['published'], ids['reviewer'])
    revision = abstracts.update_content(rita, ids['published'], _filler(180, 'word'), 0)
    abstracts.update_signing(rita, ids['published'], True)
    abstracts.submit_abstract(rita, ids['published'], revision)
    abstracts.approve_abstract(editor, ids['published'])
    abstracts.author_accept_abstract(author, ids['published'])
    store.patch('submissions', ids['published'], status='PUBLISHED', decided_at=now - timedelta(days=15))

    logger.info(f"{log_tags.STORE} Seeded {len(DEMO_USERS)} users and 3 submissions")
    return ids
