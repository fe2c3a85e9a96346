"""
User routes and the health check.
"""
from typing import Optional

from fastapi import APIRouter, Depends

from ..config import API_VERSION
from ..models import HealthStatus, Role, RoleUpdate, UserCreate, UserInfo
from ..services.context import get_context
from ..services.store import User
from ..services.user_service import get_user_service
from .deps import get_current_user

router = APIRouter(prefix="/api/users", tags=["users"])
health_router = APIRouter(tags=["health"])


@router.post("", response_model=UserInfo, status_code=201)
async def register(body: UserCreate):
    """Register an account (stand-in for the identity provider's signup)."""
    service = get_user_service()
    return service.create_user(body.name, body.email, body.role.value, body.affiliation)


@router.get("/me", response_model=UserInfo)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.put("/me/role", response_model=UserInfo)
async def switch_role(body: RoleUpdate, user: User = Depends(get_current_user)):
    """Demo role switcher."""
    return get_user_service().switch_role(user, body.role.value)


@router.get("", response_model=list[UserInfo])
async def list_users(role: Optional[Role] = None, user: User = Depends(get_current_user)):
    return get_user_service().list_users(user, role.value if role else None)


@router.put("/{user_id}/role", response_model=UserInfo)
async def update_role(user_id: str, body: RoleUpdate, user: User = Depends(get_current_user)):
    return get_user_service().update_role(user, user_id, body.role.value)


@health_router.get("/health", response_model=HealthStatus)
async def health():
    return {"status": "ok", "version": API_VERSION, "store_version": get_context().store.version}
