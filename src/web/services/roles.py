"""
Role constants and role-based access checks.

Identity itself comes from the request (see ``web.routes.deps``); these
helpers only decide what an already-resolved user may do.
"""
from __future__ import annotations

from typing import Iterable

from ..errors import unauthorized_error
from .store import InMemoryStore, User

ROLES = ('author', 'reviewer', 'action_editor', 'editor_in_chief', 'admin')

# Roles with editor-level access (read submissions, manage reviews, etc.)
EDITOR_ROLES = frozenset({'editor_in_chief', 'action_editor', 'admin'})

# Roles allowed to modify other users' profiles and roles
WRITE_ROLES = frozenset({'admin', 'editor_in_chief'})


def has_editor_role(role: str) -> bool:
    return role in EDITOR_ROLES


def require_role(user: User, role: str) -> None:
    """Raise UNAUTHORIZED unless the user holds exactly ``role``."""
    if user.role != role:
        raise unauthorized_error(f'Requires role "{role}", but user has role "{user.role}"')


def require_any_role(user: User, roles: Iterable[str], message: str) -> None:
    if user.role not in roles:
        raise unauthorized_error(message)


def require_editor(user: User, message: str = 'Requires editor role') -> None:
    require_any_role(user, EDITOR_ROLES, message)


def require_reviewer(store: InMemoryStore, user: User, submission_id: str, demo_mode: bool = False) -> None:
    """
    Require the reviewer role and an assignment to the submission.

    Admins pass the role check when the demo role switcher is enabled, so a
    single account can walk the whole pipeline.
    """
    is_reviewer = user.role == 'reviewer'
    is_demo_admin = demo_mode and user.role == 'admin'
    if not is_reviewer and not is_demo_admin:
        raise unauthorized_error(f'Requires role "reviewer", but user has role "{user.role}"')

    if store.find_review(submission_id, user.id) is None:
        raise unauthorized_error('Reviewer is not assigned to this submission')
