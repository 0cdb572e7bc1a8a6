"""User management router."""
from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status

from agora.context import Context
from agora.errors import NotFoundError
from agora.routers.deps import get_context
from agora.schemas.user import UserCreate, UserRead, UserUpdate
from agora.services import users
from agora.services.authorization import require_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserRead])
def list_users(tenant_id: UUID | None = None, ctx: Context = Depends(get_context)):
    """Users of one tenant; all users for admins when no tenant is given."""
    return users.get_users(ctx, tenant_id)


@router.get("/me", response_model=UserRead)
def get_me(ctx: Context = Depends(get_context)):
    return require_user(ctx)


@router.get("/by-email", response_model=UserRead)
def get_user_by_email(email: str, ctx: Context = Depends(get_context)):
    user = users.get_user_by_email(ctx, email)
    if user is None:
        raise NotFoundError("User")
    return user


@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: UUID, ctx: Context = Depends(get_context)):
    user = users.get_user_by_id(ctx, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, ctx: Context = Depends(get_context)):
    return users.create_user(ctx, data)


@router.patch("/{user_id}", response_model=UserRead)
def update_user(user_id: UUID, update: UserUpdate, ctx: Context = Depends(get_context)):
    return users.update_user(ctx, user_id, update)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: UUID, ctx: Context = Depends(get_context)):
    users.delete_user(ctx, user_id)
