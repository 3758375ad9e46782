import logging
import os

import uvicorn

from rental_repairs.core.config import log_level, settings

logger = logging.getLogger(__name__)


def run_migrations():
    """Run Alembic migrations."""
    from alembic.config import Config
    from alembic import command

    alembic_cfg = Config("alembic.ini")
    logger.info("[STARTUP] Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("[STARTUP] Migrations complete!")


if __name__ == "__main__":
    logging.basicConfig(level=log_level())

    if os.getenv("RUN_MIGRATIONS") == "true":
        run_migrations()

    uvicorn.run(
        "rental_repairs.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=log_level().lower(),
        workers=1,
    )
