"""
Shared fixtures: an in-memory SQLite store and one user per role
"""
import sys
from pathlib import Path
# Add parent folder (project root) to sys.path so local modules can be imported
PROJECT_ROOT = Path(__file__).resolve().parents[1]
proj_root_str = str(PROJECT_ROOT)
if proj_root_str not in sys.path:
    sys.path.insert(0, proj_root_str)

import pytest
from sqlalchemy.orm import sessionmaker

from volunteerhub.core.policy import Actor
from volunteerhub.database.database import build_engine
from volunteerhub.models import Base, User, Role, ModerationStatus
from volunteerhub.schemas.project import CreateProjectRequest
from volunteerhub.services.projects import ProjectService

# Private in-memory database shared by every session of a test
test_engine = build_engine("sqlite://", degraded=True)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def add_user(db, username: str, role: Role, **extra) -> Actor:
    user = User(username=username, email=f"{username}@example.org", role=role, is_verified=True, **extra)
    db.add(user)
    db.commit()
    db.refresh(user)
    return Actor(user_id=user.id, role=user.role)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def make_user():
    """Factory for extra users: make_user(db, username, role, **columns)"""
    return add_user


@pytest.fixture
def db_session():
    """Fresh schema per test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def admin(db_session):
    return add_user(db_session, "admin", Role.ADMIN)


@pytest.fixture
def moderator(db_session):
    return add_user(db_session, "moderator", Role.MODERATOR)


@pytest.fixture
def coordinator(db_session):
    return add_user(db_session, "coordinator", Role.COORDINATOR)


@pytest.fixture
def other_coordinator(db_session):
    return add_user(db_session, "other_coordinator", Role.COORDINATOR)


@pytest.fixture
def volunteer(db_session):
    return add_user(db_session, "volunteer", Role.VOLUNTEER)


@pytest.fixture
def other_volunteer(db_session):
    return add_user(db_session, "other_volunteer", Role.VOLUNTEER)


@pytest.fixture
def donor(db_session):
    return add_user(db_session, "donor", Role.DONOR)


@pytest.fixture
def make_project(db_session, coordinator, moderator):
    """Create a project owned by `owner` (default: coordinator), approved unless told otherwise"""
    def _make(target_amount=1000.0, approved=True, owner=None, name="Generators for the hospital"):
        owner = owner or coordinator
        project = ProjectService.create_project(
            db_session,
            owner,
            CreateProjectRequest(name=name, description="Keep surgery running during outages", target_amount=target_amount),
        )
        if approved:
            ProjectService.moderate_project(db_session, moderator, project.id, ModerationStatus.APPROVED)
        return project
    return _make
