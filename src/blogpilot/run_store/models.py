"""SQLAlchemy models for the run store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - used at runtime for SQLAlchemy
from enum import StrEnum
from typing import Any

from sqlalchemy import ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blogpilot.run_store.database import Base, JSONPayload, UTCDateTime


class RunStatus(StrEnum):
    """Job run status enum."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class JobRun(Base):
    """One attempt at creating and publishing a blog article."""

    __tablename__ = "job_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    topic: Mapped[str | None] = mapped_column(String(500), nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    article_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    checkpoints: Mapped[list[RunCheckpoint]] = relationship(
        "RunCheckpoint",
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="RunCheckpoint.id",
    )

    def __init__(self, id: str | None = None, status: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.status = status if status is not None else RunStatus.RUNNING.value

    @property
    def run_status(self) -> RunStatus:
        """Get status as RunStatus enum."""
        return RunStatus(self.status)

    def __repr__(self) -> str:
        return f"<JobRun(id={self.id!r}, status={self.status!r}, title={self.title!r})>"


class RunCheckpoint(Base):
    """Output of one pipeline stage, saved before the next stage starts."""

    __tablename__ = "run_checkpoints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run_id: Mapped[str] = mapped_column(String(36), ForeignKey("job_runs.id"), nullable=False)
    stage: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[Any] = mapped_column(JSONPayload, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, server_default=func.now()
    )

    run: Mapped[JobRun] = relationship("JobRun", back_populates="checkpoints")

    def __repr__(self) -> str:
        return f"<RunCheckpoint(run_id={self.run_id!r}, stage={self.stage!r})>"


@dataclass
class RunStats:
    """Aggregated statistics over stored runs."""

    total_runs: int
    succeeded: int
    failed: int
    avg_duration_seconds: float
