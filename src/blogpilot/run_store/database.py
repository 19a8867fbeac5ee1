"""SQLite plumbing for the run store: column types, engine and session scope.

Timestamps are written as naive UTC, which is what SQLite's
``CURRENT_TIMESTAMP`` and ``julianday()`` assume, and read back as aware UTC.
Checkpoint payloads are stored as JSON text.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import DateTime, Engine, Text, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

from blogpilot.run_store.exceptions import RunStoreError

# Milliseconds a writer waits on a locked database before failing
BUSY_TIMEOUT_MS = 5000


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for run store tables."""


class UTCDateTime(TypeDecorator[datetime]):
    """Stores naive UTC, returns aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class JSONPayload(TypeDecorator[Any]):
    """Stage output serialized as JSON text; unknown objects are stringified."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        return None if value is None else json.dumps(value, default=str)

    def process_result_value(self, value: str | None, dialect: Any) -> Any:
        return None if value is None else json.loads(value)


class RunDatabase:
    """Engine and sessions for one run store file.

    Tables are created on construction. ``":memory:"`` keeps a single shared
    connection so the API thread and the event loop see the same data.
    """

    def __init__(self, db_path: str = "blogpilot.db") -> None:
        self.db_path = db_path
        self.engine = self._create_engine(db_path)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _create_engine(db_path: str) -> Engine:
        if db_path == ":memory:":
            engine = create_engine(
                "sqlite:///:memory:",
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(f"sqlite:///{db_path}")

        @event.listens_for(engine, "connect")
        def configure_connection(dbapi_connection: Any, _connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
            cursor.close()

        return engine

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session that commits on success.

        Raises:
            RunStoreError: If SQLAlchemy fails; the transaction is rolled back.
        """
        session = self._sessions()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RunStoreError(f"Run store operation failed: {e}") from e
        finally:
            session.close()

    def journal_mode(self) -> str:
        with self.engine.connect() as conn:
            return str(conn.execute(text("PRAGMA journal_mode")).scalar())

    def close(self) -> None:
        self.engine.dispose()
