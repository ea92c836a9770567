from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from jobfilter.config import Settings, get_settings
from jobfilter.db.repositories import ImportSessionRepository, SqlClaimStore
from jobfilter.db.session import get_db_session
from jobfilter.ledger.ledger import ClaimLedger, LedgerConfig


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_app_settings() -> Settings:
    return get_settings()


def get_ledger(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ClaimLedger:
    return ClaimLedger(SqlClaimStore(db), config=LedgerConfig.from_settings(settings))


def get_import_repo(db: Session = Depends(get_db)) -> ImportSessionRepository:
    return ImportSessionRepository(db)
