from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
import structlog
import time

from volunteerhub.core.config import get_settings
from volunteerhub.core.errors import DomainError
from volunteerhub.models import Base

settings = get_settings()
logger = structlog.get_logger(__name__)


def build_engine(database_url: str, degraded: bool = False) -> Engine:
    """
    Create the engine for the configured store.

    Degraded mode swaps in a private in-memory SQLite database behind the same
    session interface; init_db() seeds it with static data.
    """
    if degraded:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
    else:
        # PostgreSQL via psycopg2
        engine = create_engine(
            database_url,
            pool_size=20,
            max_overflow=30,
            pool_pre_ping=True,
            pool_recycle=300,
            echo=False,  # Disable SQLAlchemy query logging
        )

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.database_url, degraded=settings.degraded_mode)

# Create session maker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def wait_for_db(max_retries=30, delay=2):
    """Wait for database to be available with retries"""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection established")
            return True
        except Exception as e:
            logger.warning(
                "Database connection attempt failed",
                attempt=attempt + 1,
                max_retries=max_retries,
                error=str(e),
            )
            if attempt < max_retries - 1:
                time.sleep(delay)
            else:
                logger.error("Failed to connect to database after all retries")
                raise
    return False


def init_db():
    """Initialize database tables, seeding them in degraded mode"""
    try:
        wait_for_db()

        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

        if settings.degraded_mode:
            from volunteerhub.database.seed import seed_static_data

            with SessionLocal() as db:
                seed_static_data(db)
            logger.warning("Running in degraded mode with seeded in-memory store")
    except Exception as e:
        logger.error("Failed to create database tables", error=str(e))
        raise


def get_db():
    """Dependency to get database session"""
    db: Session = SessionLocal()
    try:
        yield db
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.error("Database session error", error=str(e))
        raise
    finally:
        db.close()


def close_db():
    """Close database connection"""
    engine.dispose()
    logger.info("Database connection closed")
