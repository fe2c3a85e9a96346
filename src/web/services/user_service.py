"""
User accounts and roles.
"""
from __future__ import annotations

from typing import Optional

from ..errors import environment_misconfigured_error, not_found_error, unauthorized_error, validation_error
from .context import ServiceContext, get_context
from .roles import ROLES, WRITE_ROLES, require_any_role, require_editor
from .store import User


class UserService:
    """Service for looking up, creating and re-roling users."""

    def __init__(self, context: ServiceContext):
        self.context = context
        self.store = context.store
        self.settings = context.settings

    def get_user(self, user_id: str) -> User:
        user = self.store.get('users', user_id)
        if user is None:
            raise unauthorized_error('User record not found')
        return user

    def create_user(
        self,
        name: str,
        email: str,
        role: str = 'author',
        affiliation: str = '',
        user_id: Optional[str] = None,
    ) -> User:
        """Register an account. New accounts default to the author role."""
        if role not in ROLES:
            raise validation_error(f'Unknown role: {role}')
        if not name.strip():
            raise validation_error('Name is required')
        with self.store.lock:
            if any(u.email == email for u in self.store.all('users')):
                raise validation_error(f'A user with email {email} already exists')
            user = User(
                id=user_id or '',
                name=name,
                email=email,
                role=role,
                affiliation=affiliation,
                created_at=self.context.now(),
            )
            self.store.insert('users', user)
        return user

    def list_users(self, user: User, role: Optional[str] = None) -> list[User]:
        """All users, optionally by role. Editors only."""
        require_editor(user)
        return [u for u in self.store.all('users') if role is None or u.role == role]

    def update_role(self, user: User, target_id: str, role: str) -> User:
        """Change another user's role. Admin or editor-in-chief only."""
        require_any_role(user, WRITE_ROLES, 'Requires admin or editor-in-chief role')
        if role not in ROLES:
            raise validation_error(f'Unknown role: {role}')
        if self.store.get('users', target_id) is None:
            raise not_found_error('User', target_id)
        return self.store.patch('users', target_id, role=role)

    def switch_role(self, user: User, role: str) -> User:
        """Demo role switcher: change the caller's own role."""
        if not self.settings.demo_role_switcher:
            raise environment_misconfigured_error('Role switching is disabled in production')
        if role not in ROLES:
            raise validation_error(f'Unknown role: {role}')
        return self.store.patch('users', user.id, role=role)


# Singleton instance
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get the user service singleton for the active context."""
    global _user_service
    context = get_context()
    if _user_service is None or _user_service.context is not context:
        _user_service = UserService(context)
    return _user_service
