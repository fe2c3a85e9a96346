"""
Submission status state machine.
"""
from __future__ import annotations

from ..errors import ErrorCode, JournalError

SUBMISSION_STATUSES = (
    'DRAFT',
    'SUBMITTED',
    'TRIAGING',
    'TRIAGE_COMPLETE',
    'DESK_REJECTED',
    'UNDER_REVIEW',
    'DECISION_PENDING',
    'ACCEPTED',
    'REJECTED',
    'REVISION_REQUESTED',
    'PUBLISHED',
)

# Terminal states map to empty tuples
VALID_TRANSITIONS: dict[str, tuple[str, ...]] = {
    'DRAFT': ('SUBMITTED',),
    'SUBMITTED': ('TRIAGING',),
    'TRIAGING': ('TRIAGE_COMPLETE',),
    'TRIAGE_COMPLETE': ('DESK_REJECTED', 'UNDER_REVIEW', 'TRIAGING'),
    'UNDER_REVIEW': ('DECISION_PENDING',),
    'DECISION_PENDING': ('ACCEPTED', 'REJECTED', 'REVISION_REQUESTED'),
    'ACCEPTED': ('PUBLISHED',),
    'REVISION_REQUESTED': ('SUBMITTED',),
    'DESK_REJECTED': (),
    'REJECTED': (),
    'PUBLISHED': (),
}

# Reachable only through the decision service, never a plain transition
DECISION_ONLY_STATUSES = frozenset({'ACCEPTED', 'REJECTED', 'REVISION_REQUESTED'})


def is_terminal(status: str) -> bool:
    return not VALID_TRANSITIONS[status]


def assert_transition(current: str, target: str) -> None:
    """Raise INVALID_TRANSITION unless ``current -> target`` is allowed."""
    allowed = VALID_TRANSITIONS[current]
    if target not in allowed:
        valid = ', '.join(allowed) if allowed else 'none (terminal state)'
        raise JournalError(
            ErrorCode.INVALID_TRANSITION,
            f"Cannot transition from {current} to {target}. "
            f"Valid transitions from {current}: {valid}",
        )
