"""Service layer for the journal web app."""
from .abstract_service import AbstractService
from .article_service import ArticleService
from .audit_service import AuditService
from .context import ServiceContext, get_context, set_context
from .decision_service import DecisionService
from .discussion_service import DiscussionService
from .invitation_service import InvitationService
from .notification_service import NotificationService
from .payment_service import PaymentService
from .review_service import ReviewService
from .store import InMemoryStore
from .submission_service import SubmissionService
from .user_service import UserService

__all__ = [
    'AbstractService', 'ArticleService', 'AuditService', 'DecisionService',
    'DiscussionService', 'InMemoryStore', 'InvitationService', 'NotificationService',
    'PaymentService', 'ReviewService', 'ServiceContext', 'SubmissionService',
    'UserService', 'get_context', 'set_context',
]
