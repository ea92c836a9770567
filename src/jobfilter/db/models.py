from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jobfilter.db.base import Base, TimestampMixin


class ClaimRecord(TimestampMixin, Base):
    __tablename__ = "claims"
    __table_args__ = (Index("ix_claims_type_normalized_text", "type", "normalized_text"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_text: Mapped[str] = mapped_column(Text, default="", nullable=False)
    confidence: Mapped[float] = mapped_column(Float, default=0.75, nullable=False)
    verification_status: Mapped[str] = mapped_column(String(32), default="Review Needed", nullable=False)
    experience_id: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    role: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    responsibilities_json: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    metric: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_numeric: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    source: Mapped[str] = mapped_column(String(120), default="Manual", nullable=False)
    evidence_snippet: Mapped[str | None] = mapped_column(Text, nullable=True)


class ImportSessionRecord(TimestampMixin, Base):
    __tablename__ = "import_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    state: Mapped[str] = mapped_column(String(32), default="parsed", nullable=False)
    revision: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    source_kind: Mapped[str] = mapped_column(String(32), default="text", nullable=False)
    payload_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
