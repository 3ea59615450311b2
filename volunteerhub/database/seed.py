"""
Static data loaded into the in-memory store when running in degraded mode
"""
from sqlalchemy.orm import Session
import structlog

from volunteerhub.models import (
    User,
    Role,
    Project,
    ProjectModeration,
    ProjectStatus,
    ModerationStatus,
    Task,
    TaskStatus,
    TaskType,
    Application,
    ApplicationStatus,
    Donation,
)

logger = structlog.get_logger(__name__)


SEED_USERS = [
    {"id": 1, "username": "admin", "email": "admin@example.org", "role": Role.ADMIN, "first_name": "System", "last_name": "Admin"},
    {"id": 2, "username": "volunteer1", "email": "volunteer1@example.org", "role": Role.VOLUNTEER, "first_name": "Vasyl", "last_name": "Volunteer"},
    {"id": 3, "username": "donor1", "email": "donor1@example.org", "role": Role.DONOR, "first_name": "Diana", "last_name": "Donor"},
    {"id": 4, "username": "moderator1", "email": "moderator1@example.org", "role": Role.MODERATOR, "first_name": "Modest", "last_name": "Moderator"},
    {"id": 5, "username": "coordinator1", "email": "coordinator1@example.org", "role": Role.COORDINATOR, "first_name": "Kateryna", "last_name": "Coordinator"},
    {"id": 6, "username": "coordinator2", "email": "coordinator2@example.org", "role": Role.COORDINATOR, "first_name": "Kyrylo", "last_name": "Koval"},
]

SEED_PROJECTS = [
    {
        "id": 1,
        "name": "Food kits for displaced families",
        "description": "Buying and delivering food kits to families who had to leave their homes",
        "target_amount": 10000.0,
        "collected_amount": 500.0,
        "image_url": "/uploads/placeholder.jpg",
        "coordinator_id": 6,
        "status": ProjectStatus.FUNDING,
        "moderation_status": ModerationStatus.APPROVED,
    },
]

SEED_TASKS = [
    {
        "id": 1,
        "project_id": 1,
        "title": "Buy groceries",
        "description": "Buy groceries for the first batch of kits",
        "type": TaskType.COLLECTION,
        "status": TaskStatus.PENDING,
        "requires_expenses": True,
        "estimated_amount": 2000.0,
        "expense_purpose": "Groceries",
    },
]

SEED_APPLICATIONS = [
    {"id": 1, "project_id": 1, "volunteer_id": 2, "status": ApplicationStatus.PENDING, "message": "I want to help with this project"},
]

SEED_DONATIONS = [
    {"id": 1, "project_id": 1, "donor_id": 3, "amount": 500.0, "comment": "For a good cause"},
]


def seed_static_data(db: Session) -> None:
    """Insert the static fixtures if the store is empty"""
    if db.query(User).first() is not None:
        logger.info("Store already populated, skipping seed")
        return

    db.add_all(User(is_verified=True, **row) for row in SEED_USERS)
    db.flush()
    db.add_all(Project(**row) for row in SEED_PROJECTS)
    db.flush()
    db.add_all(
        ProjectModeration(project_id=row["id"], status=row["moderation_status"], moderator_id=4, comment="Seeded")
        for row in SEED_PROJECTS
    )
    db.add_all(Task(**row) for row in SEED_TASKS)
    db.add_all(Application(**row) for row in SEED_APPLICATIONS)
    db.add_all(Donation(**row) for row in SEED_DONATIONS)
    db.commit()

    logger.info(
        "Seeded static data",
        users=len(SEED_USERS),
        projects=len(SEED_PROJECTS),
        tasks=len(SEED_TASKS),
    )
