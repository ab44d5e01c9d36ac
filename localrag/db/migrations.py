"""
Schema bootstrap.
"""
import os

from sqlalchemy.engine import Engine

from ..models import Base
from ..logging_config import logger


def _ensure_sqlite_dir(engine: Engine) -> None:
    url = engine.url
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    directory = os.path.dirname(os.path.abspath(url.database))
    os.makedirs(directory, exist_ok=True)


def init_db(engine: Engine) -> None:
    """
    Create all tables and indexes if they do not exist yet.

    Idempotent: safe to run on every startup.
    """
    _ensure_sqlite_dir(engine)
    Base.metadata.create_all(engine)
    logger.info("Database schema ready", tables=sorted(Base.metadata.tables))
