"""
Request dependencies shared by the route modules.
"""
from typing import Optional

from fastapi import Header

from ..errors import unauthenticated_error
from ..services.store import User
from ..services.user_service import get_user_service


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> User:
    """
    Resolve the caller from the ``X-User-Id`` header.

    Raises
    ------
    JournalError
        401 when the header is missing, 403 when it names no user
    """
    if not x_user_id:
        raise unauthenticated_error()
    return get_user_service().get_user(x_user_id)
