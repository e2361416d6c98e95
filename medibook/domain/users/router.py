"""User router - FastAPI endpoints for account management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...shared.responses import PageParams, success_response
from .schemas import UserResponse, UserUpdate
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile"""
    return success_response(data=UserResponse.from_model(current_user))


@router.get("", dependencies=[Depends(require_admin)])
async def list_users(
    params: PageParams = Depends(),
    service: UserService = Depends(get_user_service),
):
    """List all accounts (admin)"""
    users, pagination = service.list_users(params)
    return success_response(data=[UserResponse.from_model(u) for u in users], pagination=pagination)


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Get an account (self or admin)"""
    return success_response(data=UserResponse.from_model(service.get_user(user_id, current_user)))


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Update an account (self or admin); only admins may change roles"""
    user = service.update_user(user_id, data, current_user)
    return success_response(data=UserResponse.from_model(user), message="User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    """Delete an account (admin)"""
    service.delete_user(user_id, current_user)
    return success_response(message="User deleted successfully")
