"""RunStore - durable history of job runs and their stage checkpoints."""

from __future__ import annotations

from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session, selectinload

from blogpilot.run_store.database import RunDatabase, utcnow
from blogpilot.run_store.exceptions import RunNotFoundError
from blogpilot.run_store.models import JobRun, RunCheckpoint, RunStats, RunStatus


class RunStore:
    """Main API for run history.

    Each job run gets a row when it starts; every stage output is saved as a
    checkpoint so a crashed run's artifacts can be recovered by run id.
    Database failures surface as ``RunStoreError``.
    """

    def __init__(self, db_path: str = "blogpilot.db") -> None:
        """Open (and if needed create) the store.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self._db = RunDatabase(db_path)

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def create_run(self) -> JobRun:
        """Record the start of a new job run.

        Returns:
            The created JobRun in RUNNING status
        """
        with self._db.session() as session:
            run = JobRun(started_at=utcnow())
            session.add(run)
            session.flush()
            session.refresh(run)
        return run

    def checkpoint(self, run_id: str, stage: str, payload: Any) -> RunCheckpoint:
        """Save one stage's output.

        Args:
            run_id: The run's unique ID
            stage: Stage name the payload belongs to
            payload: JSON-serializable stage output

        Raises:
            RunNotFoundError: If the run doesn't exist
        """
        with self._db.session() as session:
            self._get_for_update(session, run_id)
            checkpoint = RunCheckpoint(
                run_id=run_id, stage=stage, payload=payload, created_at=utcnow()
            )
            session.add(checkpoint)
            session.flush()
            session.refresh(checkpoint)
        return checkpoint

    def update_run(
        self,
        run_id: str,
        topic: str | None = None,
        title: str | None = None,
    ) -> JobRun:
        """Update descriptive fields. Only provided fields are updated.

        Raises:
            RunNotFoundError: If the run doesn't exist
        """
        with self._db.session() as session:
            run = self._get_for_update(session, run_id)
            if topic is not None:
                run.topic = topic
            if title is not None:
                run.title = title
        return run

    def complete_run(
        self, run_id: str, title: str | None = None, article_id: int | None = None
    ) -> JobRun:
        """Mark a run as succeeded, recording the published title and article id.

        Raises:
            RunNotFoundError: If the run doesn't exist
        """
        with self._db.session() as session:
            run = self._get_for_update(session, run_id)
            run.status = RunStatus.SUCCEEDED.value
            if title is not None:
                run.title = title
            run.article_id = article_id
            run.completed_at = utcnow()
        return run

    def fail_run(self, run_id: str, error: str) -> JobRun:
        """Mark a run as failed with an error message.

        Raises:
            RunNotFoundError: If the run doesn't exist
        """
        with self._db.session() as session:
            run = self._get_for_update(session, run_id)
            run.status = RunStatus.FAILED.value
            run.error = error
            run.completed_at = utcnow()
        return run

    def get_run(self, run_id: str) -> JobRun:
        """Get a run with its checkpoints loaded.

        Raises:
            RunNotFoundError: If the run doesn't exist
        """
        with self._db.session() as session:
            stmt = (
                select(JobRun)
                .where(JobRun.id == run_id)
                .options(selectinload(JobRun.checkpoints))
            )
            run = session.execute(stmt).scalar_one_or_none()
            if run is None:
                raise RunNotFoundError(f"Run with id '{run_id}' not found")
        return run

    def list_runs(self, status: RunStatus | None = None, limit: int = 50) -> list[JobRun]:
        """List runs, most recent first.

        Args:
            status: Filter by run status (optional)
            limit: Maximum number of runs to return
        """
        stmt = select(JobRun)
        if status is not None:
            stmt = stmt.where(JobRun.status == status.value)
        stmt = stmt.order_by(JobRun.started_at.desc()).limit(limit)
        with self._db.session() as session:
            return list(session.execute(stmt).scalars().all())

    def list_checkpoints(self, run_id: str) -> list[RunCheckpoint]:
        """List a run's checkpoints in the order they were written."""
        stmt = (
            select(RunCheckpoint)
            .where(RunCheckpoint.run_id == run_id)
            .order_by(RunCheckpoint.id)
        )
        with self._db.session() as session:
            return list(session.execute(stmt).scalars().all())

    def get_run_stats(self) -> RunStats:
        """Aggregate counts and average duration over completed runs."""
        duration = (
            func.julianday(JobRun.completed_at) - func.julianday(JobRun.started_at)
        ) * 86400
        stmt = select(
            func.count(JobRun.id).label("total"),
            func.sum(case((JobRun.status == RunStatus.SUCCEEDED.value, 1), else_=0)).label(
                "succeeded"
            ),
            func.sum(case((JobRun.status == RunStatus.FAILED.value, 1), else_=0)).label("failed"),
            func.avg(duration).label("avg_duration"),
        )
        with self._db.session() as session:
            result = session.execute(stmt).one()
        return RunStats(
            total_runs=result.total or 0,
            succeeded=result.succeeded or 0,
            failed=result.failed or 0,
            avg_duration_seconds=float(result.avg_duration or 0.0),
        )

    @staticmethod
    def _get_for_update(session: Session, run_id: str) -> JobRun:
        run = session.get(JobRun, run_id)
        if run is None:
            raise RunNotFoundError(f"Run with id '{run_id}' not found")
        return run
