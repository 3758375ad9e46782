import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from rental_repairs.core.config import settings
from rental_repairs.db.base import Base

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise ValueError("[ERROR] DATABASE_URL not found!")

IS_SQLITE = DATABASE_URL.lower().startswith("sqlite")


def build_engine(url: str = DATABASE_URL, **overrides):
    """SYNC engine; SQLite gets the thread flag, server databases get a pool."""
    if url.lower().startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
    else:
        options = {
            "connect_args": {"connect_timeout": 10},
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_recycle": settings.DATABASE_POOL_RECYCLE,
            "pool_timeout": 30,
        }
    options["echo"] = False
    options.update(overrides)
    return create_engine(url, **options)


engine = build_engine()

# Create SessionLocal class
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_connection(bind=None) -> bool:
    """Test database connection - NON-BLOCKING."""
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        safe_url = DATABASE_URL.split("@")[-1]
        logger.info(f"[OK] Database connected: {safe_url}")
        return True
    except Exception as e:
        logger.warning(f"[WARN] Database connection failed (continuing): {e}")
        return False


def init_db(bind=None) -> bool:
    """Create tables for every registered model."""
    # Import all models so they're registered with Base
    from rental_repairs.models import tenant_request, worker  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("[OK] Database tables initialized!")
    return True


def close_db_connection():
    """Close database connections."""
    engine.dispose()
    logger.info("[OK] Database connections closed")
