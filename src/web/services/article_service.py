"""
Public read access to published articles. No identity required.
"""
from __future__ import annotations

from typing import Optional

from utils.helpers import truncate

from ..errors import not_found_error
from .audit_service import paginate
from .context import ServiceContext, get_context

ABSTRACT_PREVIEW_CHARS = 300


class ArticleService:
    """Service for the public article pages."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store

    def get_published_article(self, article_id: str) -> dict:
        """
        A published article with its reviewer abstract, if released.

        The reviewer abstract appears only once it is approved and accepted
        by the author. Unsigned abstracts are attributed to
        "Anonymous Reviewer".
        """
        submission = self.store.get('submissions', article_id)
        if submission is None or submission.status != 'PUBLISHED':
            raise not_found_error('Article')

        reviewer_abstract = None
        abstract = self.store.find_abstract(article_id)
        if abstract is not None and abstract.status == 'approved' and abstract.author_accepted:
            if abstract.is_signed:
                reviewer = self.store.get('users', abstract.reviewer_id)
                reviewer_name = reviewer.name if reviewer else 'Unknown'
            else:
                reviewer_name = 'Anonymous Reviewer'
            reviewer_abstract = {
                'content': abstract.content,
                'reviewer_name': reviewer_name,
                'is_signed': abstract.is_signed,
            }

        return {
            'id': submission.id,
            'title': submission.title,
            'authors': submission.authors,
            'abstract': submission.abstract,
            'keywords': submission.keywords,
            'pdf_file_name': submission.pdf_file_name,
            'pdf_file_size': submission.pdf_file_size,
            'decided_at': submission.decided_at,
            'created_at': submission.created_at,
            'reviewer_abstract': reviewer_abstract,
        }

    def list_published(self, cursor: Optional[str] = None, num_items: int = 20) -> dict:
        """One page of published articles in publication order."""
        published = [s for s in self.store.all('submissions') if s.status == 'PUBLISHED']
        page, is_done, next_cursor = paginate(published, cursor, num_items)
        return {
            'page': [
                {
                    'id': s.id,
                    'title': s.title,
                    'authors': s.authors,
                    'abstract_preview': truncate(s.abstract, ABSTRACT_PREVIEW_CHARS),
                    'decided_at': s.decided_at,
                    'created_at': s.created_at,
                }
                for s in page
            ],
            'is_done': is_done,
            'continue_cursor': next_cursor,
        }


# Singleton instance
_article_service: Optional[ArticleService] = None


def get_article_service() -> ArticleService:
    """Get the article service singleton for the active context."""
    global _article_service
    context = get_context()
    if _article_service is None or _article_service.context is not context:
        _article_service = ArticleService(context)
    return _article_service
