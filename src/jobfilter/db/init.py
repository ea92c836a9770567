from __future__ import annotations

import logging

from jobfilter.config import get_settings
from jobfilter.db import models  # noqa: F401
from jobfilter.db.base import Base
from jobfilter.db.session import engine

logger = logging.getLogger(__name__)


def ensure_data_directories() -> None:
    get_settings().data_dir.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, int]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    return {"tables": len(Base.metadata.tables)}
