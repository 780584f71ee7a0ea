"""
Admin Routes - user account administration.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auth import Identity, admin_only
from models_orm import Role
from responses import ok, paginated
from service_modules.admin_service import AdminService, get_admin_service

router = APIRouter()


@router.get("/admin/users")
async def get_users(
    role: Optional[Role] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    identity: Identity = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    """All users, optionally filtered by role."""
    items, total = service.list_users(role, search, page, page_size)
    return paginated(items, page, page_size, total)


@router.post("/admin/users/{user_id}/activate")
async def activate_user(
    user_id: int,
    identity: Identity = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    return ok(service.set_active(identity.user_id, user_id, True), "User activated")


@router.post("/admin/users/{user_id}/deactivate")
async def deactivate_user(
    user_id: int,
    identity: Identity = Depends(admin_only),
    service: AdminService = Depends(get_admin_service),
):
    """Deactivate an account and revoke its refresh tokens."""
    return ok(service.set_active(identity.user_id, user_id, False), "User deactivated")
