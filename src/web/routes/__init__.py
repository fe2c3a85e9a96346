"""Route handlers for the journal API."""
from .abstracts import router as abstracts_router
from .articles import router as articles_router
from .audit import audit_router, notifications_router
from .decisions import router as decisions_router
from .discussions import router as discussions_router
from .invitations import router as invitations_router
from .payments import router as payments_router
from .reviews import router as reviews_router
from .submissions import router as submissions_router
from .users import health_router, router as users_router
from .websocket import router as websocket_router

__all__ = [
    'abstracts_router',
    'articles_router',
    'audit_router',
    'decisions_router',
    'discussions_router',
    'health_router',
    'invitations_router',
    'notifications_router',
    'payments_router',
    'reviews_router',
    'submissions_router',
    'users_router',
    'websocket_router',
]
