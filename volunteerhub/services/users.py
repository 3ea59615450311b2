from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import structlog

from volunteerhub.core.errors import NotFound, ValidationError, Forbidden
from volunteerhub.core.policy import Actor, require_admin
from volunteerhub.models.user import User, Role
from volunteerhub.schemas.user import CreateUserRequest

logger = structlog.get_logger(__name__)

SELF_REGISTRATION_ROLES = frozenset({Role.VOLUNTEER, Role.COORDINATOR, Role.DONOR})


class UserService:
    """User registration and admin user management"""

    @staticmethod
    def register_user(db: Session, user_data: CreateUserRequest) -> User:
        """Register a volunteer, coordinator or donor; staff roles are provisioned elsewhere"""
        if user_data.role not in SELF_REGISTRATION_ROLES:
            raise Forbidden(f"Role '{user_data.role.value}' cannot be self-registered")

        existing = db.execute(
            select(User.id).where(or_(User.username == user_data.username, User.email == user_data.email))
        ).first()
        if existing:
            raise ValidationError("Username or email is already taken")

        user = User(
            username=user_data.username,
            email=user_data.email,
            role=user_data.role,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
        )
        try:
            db.add(user)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationError("Username or email is already taken")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to register user", error=str(e), username=user_data.username)
            raise
        db.refresh(user)

        logger.info("User registered", user_id=user.id, role=user.role.value)
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        """Plain lookup without authorization, used to resolve the acting user"""
        return db.get(User, user_id)

    @staticmethod
    def get_user_for(db: Session, actor: Actor, user_id: int) -> User:
        require_admin(actor)
        user = db.get(User, user_id)
        if not user:
            raise NotFound(f"User {user_id} not found")
        return user

    @staticmethod
    def list_users(db: Session, actor: Actor, role: Optional[Role] = None, skip: int = 0, limit: int = 100) -> List[User]:
        require_admin(actor)
        query = select(User).order_by(User.id)
        if role is not None:
            query = query.where(User.role == role)
        return list(db.scalars(query.offset(skip).limit(limit)))

    @staticmethod
    def verify_user(db: Session, actor: Actor, user_id: int) -> User:
        user = UserService.get_user_for(db, actor, user_id)
        user.is_verified = True
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to verify user", error=str(e), user_id=user_id)
            raise
        db.refresh(user)
        logger.info("User verified", user_id=user_id, admin_id=actor.user_id)
        return user

    @staticmethod
    def block_user(db: Session, actor: Actor, user_id: int) -> User:
        user = UserService.get_user_for(db, actor, user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Administrators cannot be blocked")
        user.is_blocked = True
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to block user", error=str(e), user_id=user_id)
            raise
        db.refresh(user)
        logger.info("User blocked", user_id=user_id, admin_id=actor.user_id)
        return user
