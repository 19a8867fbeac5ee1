"""Run Store - SQLite history of job runs and stage checkpoints."""

from blogpilot.run_store.database import RunDatabase
from blogpilot.run_store.exceptions import RunNotFoundError, RunStoreError
from blogpilot.run_store.models import JobRun, RunCheckpoint, RunStats, RunStatus
from blogpilot.run_store.store import RunStore

__all__ = [
    "JobRun",
    "RunCheckpoint",
    "RunDatabase",
    "RunNotFoundError",
    "RunStats",
    "RunStatus",
    "RunStore",
    "RunStoreError",
]
