from sqlalchemy import Column, Integer, String, DateTime, Boolean, func
import enum

from volunteerhub.models.base import Base, enum_column_type


class Role(str, enum.Enum):
    """Closed set of acting-user roles"""
    VOLUNTEER = "volunteer"
    COORDINATOR = "coordinator"
    DONOR = "donor"
    ADMIN = "admin"
    MODERATOR = "moderator"


class User(Base):
    """Platform user; never hard-deleted"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(enum_column_type(Role, "user_role"), nullable=False)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_blocked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}')>"
