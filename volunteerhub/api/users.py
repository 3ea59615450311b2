from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from volunteerhub.api.deps import get_actor
from volunteerhub.core.config import get_settings
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.models.user import Role
from volunteerhub.schemas.user import CreateUserRequest, UserResponse, UserListResponse
from volunteerhub.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])
settings = get_settings()


@router.post("", response_model=UserResponse, status_code=201)
def register_user(
    user_data: CreateUserRequest,
    db: Session = Depends(get_db),
):
    """Register a volunteer, coordinator or donor"""
    return UserResponse.model_validate(UserService.register_user(db, user_data))


@router.get("", response_model=UserListResponse)
def list_users(
    role: Optional[Role] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    users = UserService.list_users(db, actor, role=role, skip=skip, limit=limit)
    return UserListResponse(users=[UserResponse.model_validate(u) for u in users], total=len(users))


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return UserResponse.model_validate(UserService.get_user_for(db, actor, user_id))


@router.post("/{user_id}/verify", response_model=UserResponse)
def verify_user(
    user_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return UserResponse.model_validate(UserService.verify_user(db, actor, user_id))


@router.post("/{user_id}/block", response_model=UserResponse)
def block_user(
    user_id: int,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Block a user; blocked users are refused on every authenticated call"""
    return UserResponse.model_validate(UserService.block_user(db, actor, user_id))
