"""
Request-scoped dependencies shared by the routers
"""
from fastapi import Depends, Header
from sqlalchemy.orm import Session
from typing import Optional
import structlog

from volunteerhub.core.errors import Forbidden, Unauthenticated
from volunteerhub.core.policy import Actor
from volunteerhub.database.database import get_db
from volunteerhub.services.users import UserService

logger = structlog.get_logger(__name__)


def get_optional_actor(
    x_user_id: Optional[str] = Header(None, description="Id of the acting user"),
    db: Session = Depends(get_db),
) -> Optional[Actor]:
    """Resolve the acting user from X-User-Id; None for anonymous callers"""
    if x_user_id is None or not x_user_id.strip():
        return None
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise Unauthenticated("X-User-Id must be an integer user id")

    user = UserService.get_user(db, user_id)
    if not user:
        raise Unauthenticated(f"Unknown user {user_id}")
    if user.is_blocked:
        logger.warning("Blocked user refused", user_id=user_id)
        raise Forbidden("This account is blocked")
    return Actor(user_id=user.id, role=user.role)


def get_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise Unauthenticated("X-User-Id header is required")
    return actor
