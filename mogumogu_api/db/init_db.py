"""
Create all tables for local development.

Production schemas are managed with Alembic (see alembic/versions).
Run: python -m mogumogu_api.db.init_db
"""
import logging

from mogumogu_api.db.session import engine
from mogumogu_api.db.base import Base
import mogumogu_api.db.models  # noqa: F401  registers every model on Base.metadata

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
