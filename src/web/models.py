"""
Pydantic models for the journal API.

These models define the request bodies accepted by the routes and the
response shapes returned to the browser and to the draft editing client.
Services work with dataclass records; FastAPI converts those into the
response models on the way out.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """User roles."""
    AUTHOR = "author"
    REVIEWER = "reviewer"
    ACTION_EDITOR = "action_editor"
    EDITOR_IN_CHIEF = "editor_in_chief"
    ADMIN = "admin"


class SubmissionStatus(str, Enum):
    """Editorial pipeline status of a submission."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    TRIAGING = "TRIAGING"
    TRIAGE_COMPLETE = "TRIAGE_COMPLETE"
    DESK_REJECTED = "DESK_REJECTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    DECISION_PENDING = "DECISION_PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    REVISION_REQUESTED = "REVISION_REQUESTED"
    PUBLISHED = "PUBLISHED"


class Decision(str, Enum):
    """Outcomes an editor can record."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    REVISION_REQUESTED = "REVISION_REQUESTED"


class ReviewStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    LOCKED = "locked"


class ReviewSection(str, Enum):
    SUMMARY = "summary"
    STRENGTHS = "strengths"
    WEAKNESSES = "weaknesses"
    QUESTIONS = "questions"
    RECOMMENDATION = "recommendation"


class AbstractStatus(str, Enum):
    DRAFTING = "drafting"
    SUBMITTED = "submitted"
    APPROVED = "approved"


class QualityLevel(str, Enum):
    STANDARD = "standard"
    EXCELLENT = "excellent"


# =============================================================================
# USERS
# =============================================================================

class UserInfo(BaseModel):
    """A user account."""
    id: str
    name: str
    email: str
    role: Role
    affiliation: str = ""
    created_at: Optional[datetime] = None


class UserCreate(BaseModel):
    name: str
    email: str
    role: Role = Role.AUTHOR
    affiliation: str = ""


class RoleUpdate(BaseModel):
    role: Role


# =============================================================================
# SUBMISSIONS
# =============================================================================

class AuthorEntry(BaseModel):
    """One author of a paper."""
    name: str
    affiliation: str


class SubmissionCreate(BaseModel):
    """Request body for a new submission."""
    title: str
    authors: list[AuthorEntry]
    abstract: str
    keywords: list[str]
    pdf_file_name: Optional[str] = None
    pdf_file_size: Optional[int] = None


class SubmissionInfo(BaseModel):
    """A submission as shown to its author and to editors."""
    id: str
    author_id: str
    title: str
    abstract: str
    authors: list[AuthorEntry]
    keywords: list[str]
    status: SubmissionStatus
    pdf_file_name: Optional[str] = None
    pdf_file_size: Optional[int] = None
    action_editor_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    decision_note: Optional[str] = None
    decided_at: Optional[datetime] = None
    public_conversation: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewProgress(BaseModel):
    assigned: int
    started: int
    submitted: int


class EditorQueueItem(BaseModel):
    """A row of the editor dashboard."""
    submission: SubmissionInfo
    review_progress: ReviewProgress


class StatusTransition(BaseModel):
    new_status: SubmissionStatus


class ActionEditorAssignment(BaseModel):
    action_editor_id: str


class CreatedRecord(BaseModel):
    id: str


# =============================================================================
# REVIEWS
# =============================================================================

class ReviewInfo(BaseModel):
    """A structured review and its concurrency revision."""
    id: str
    submission_id: str
    reviewer_id: str
    sections: dict[str, str] = {}
    status: ReviewStatus
    revision: int
    submitted_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewWorkspace(BaseModel):
    """What a reviewer needs to draft a review."""
    submission: SubmissionInfo
    review: ReviewInfo
    edit_deadline: Optional[datetime] = None


class ReviewAssignmentItem(BaseModel):
    id: str
    submission_id: str
    title: str
    submission_status: SubmissionStatus
    review_status: ReviewStatus
    created_at: Optional[datetime] = None


class ReviewerAssignment(BaseModel):
    reviewer_id: str


class SectionUpdate(BaseModel):
    """Autosave of a single review section."""
    section: ReviewSection
    content: str
    expected_revision: int


class RevisionCheck(BaseModel):
    """Body of submit calls: the revision the client last saw."""
    expected_revision: int


class RevisionResult(BaseModel):
    revision: int


# =============================================================================
# ABSTRACTS
# =============================================================================

class AbstractInfo(BaseModel):
    """A reviewer abstract as seen by its reviewer, editors and the author."""
    id: str
    submission_id: str
    reviewer_id: str
    content: str
    word_count: int
    is_signed: bool
    status: AbstractStatus
    author_accepted: Optional[bool] = None
    author_accepted_at: Optional[datetime] = None
    revision: int
    reviewer_name: str
    is_own_abstract: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AbstractAssignment(BaseModel):
    reviewer_id: str


class AbstractContentUpdate(BaseModel):
    content: str
    expected_revision: int


class SigningUpdate(BaseModel):
    is_signed: bool


# =============================================================================
# DECISIONS
# =============================================================================

class DecisionCreate(BaseModel):
    decision: Decision
    note: Optional[str] = None


class DecisionUndo(BaseModel):
    previous_decision: Decision


class PaymentEstimate(BaseModel):
    """Payment range for one reviewer."""
    reviewer_id: str
    reviewer_name: str
    review_status: ReviewStatus
    estimate_min: int
    estimate_max: int


# =============================================================================
# PAYMENTS
# =============================================================================

class PaymentBreakdownInfo(BaseModel):
    """Line items of one reviewer's payment."""
    base_pay: int
    page_count: int
    quality_multiplier: int
    quality_level: QualityLevel
    quality_assessed: bool
    speed_bonus: int
    weeks_early: int
    deadline: datetime
    review_submitted_at: Optional[datetime] = None
    abstract_bonus: int
    has_abstract_assignment: bool
    total: int


class PaymentSummaryItem(PaymentBreakdownInfo):
    reviewer_id: str
    reviewer_name: str
    review_status: ReviewStatus


class QualityUpdate(BaseModel):
    reviewer_id: str
    quality_level: QualityLevel


# =============================================================================
# DISCUSSIONS
# =============================================================================

class MessageCreate(BaseModel):
    content: str
    parent_id: Optional[str] = None


class MessageEdit(BaseModel):
    content: str


class DiscussionMessageInfo(BaseModel):
    """A message as shown to one viewer; reviewer names may be pseudonyms."""
    id: str
    parent_id: Optional[str] = None
    content: str
    is_retracted: bool
    display_name: str
    display_role: str  # author, reviewer, editor
    is_anonymous: bool
    avatar_initials: str
    is_own_message: bool
    editable_until: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class DiscussionThread(BaseModel):
    messages: list[DiscussionMessageInfo]
    submission_status: SubmissionStatus
    is_author: bool
    viewer_role: str
    public_conversation: bool
    can_post: bool


# =============================================================================
# ARTICLES
# =============================================================================

class PublishedAbstract(BaseModel):
    content: str
    reviewer_name: str
    is_signed: bool


class Article(BaseModel):
    """A published article page."""
    id: str
    title: str
    authors: list[AuthorEntry]
    abstract: str
    keywords: list[str]
    pdf_file_name: Optional[str] = None
    pdf_file_size: Optional[int] = None
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    reviewer_abstract: Optional[PublishedAbstract] = None


class ArticleSummary(BaseModel):
    id: str
    title: str
    authors: list[AuthorEntry]
    abstract_preview: str
    decided_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ArticlePage(BaseModel):
    page: list[ArticleSummary]
    is_done: bool
    continue_cursor: str


# =============================================================================
# AUDIT AND NOTIFICATIONS
# =============================================================================

class AuditItem(BaseModel):
    id: str
    action: str
    details: Optional[str] = None
    actor_name: str
    actor_role: str
    created_at: datetime


class AuditPage(BaseModel):
    page: list[AuditItem]
    is_done: bool
    continue_cursor: str


class NotificationItem(BaseModel):
    """A notification with the recipient resolved to a name."""
    id: str
    recipient_name: str
    type: str
    subject: str
    body: str
    created_at: datetime


class NotificationInfo(BaseModel):
    id: str
    recipient_id: str
    submission_id: str
    type: str
    subject: str
    body: str
    created_at: datetime


# =============================================================================
# INVITATIONS
# =============================================================================

class InvitationSend(BaseModel):
    reviewer_ids: list[str] = Field(min_length=1)
    rationales: dict[str, str] = {}


class InvitationsSent(BaseModel):
    """Tokens are returned only here; the store keeps their digests."""
    invites: dict[str, str]


class InvitationInfo(BaseModel):
    id: str
    reviewer_id: str
    reviewer_name: str
    status: str  # pending, accepted, expired, revoked
    created_at: datetime
    expires_at: datetime


class InviteStatus(BaseModel):
    status: str  # valid, expired, consumed, revoked, invalid
    submission_id: Optional[str] = None


class InvitationAccepted(BaseModel):
    submission_id: str
    reviewer_id: str


class ReviewerProgressItem(BaseModel):
    reviewer_id: str
    reviewer_name: str
    review_status: ReviewStatus
    invite_status: str
    days_since_assignment: int
    indicator: str  # green, amber, red
    indicator_label: str


class HealthStatus(BaseModel):
    status: str
    version: str
    store_version: int
