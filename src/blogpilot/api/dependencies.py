"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

import httpx
from fastapi import Depends

from blogpilot.api.events import EventManager
from blogpilot.autopilot import Autopilot
from blogpilot.run_store import RunStore

# Global RunStore instance (initialized on app startup)
_run_store: RunStore | None = None


def init_run_store(db_path: str = "blogpilot.db") -> RunStore:
    """Initialize the global RunStore instance."""
    global _run_store  # noqa: PLW0603
    _run_store = RunStore(db_path)
    return _run_store


def close_run_store() -> None:
    """Close the global RunStore instance."""
    global _run_store  # noqa: PLW0603
    if _run_store is not None:
        _run_store.close()
        _run_store = None


def get_run_store() -> Generator[RunStore, None, None]:
    """Dependency that provides the RunStore instance."""
    if _run_store is None:
        raise RuntimeError("RunStore not initialized. Call init_run_store() first.")
    yield _run_store


# Type alias for dependency injection
RunStoreDep = Annotated[RunStore, Depends(get_run_store)]

# Global Autopilot instance (initialized on app startup)
_autopilot: Autopilot | None = None


def init_autopilot(autopilot: Autopilot) -> None:
    """Initialize the global Autopilot instance."""
    global _autopilot  # noqa: PLW0603
    _autopilot = autopilot


def close_autopilot() -> None:
    """Forget the global Autopilot instance. Shutdown is the caller's job."""
    global _autopilot  # noqa: PLW0603
    _autopilot = None


def get_autopilot() -> Generator[Autopilot, None, None]:
    """Dependency that provides the Autopilot instance."""
    if _autopilot is None:
        raise RuntimeError("Autopilot not initialized. Call init_autopilot() first.")
    yield _autopilot


# Type alias for dependency injection
AutopilotDep = Annotated[Autopilot, Depends(get_autopilot)]

# Global EventManager instance
_event_manager: EventManager | None = None


def init_event_manager() -> EventManager:
    """Initialize the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = EventManager()
    return _event_manager


def close_event_manager() -> None:
    """Forget the global EventManager instance."""
    global _event_manager  # noqa: PLW0603
    _event_manager = None


def get_event_manager() -> Generator[EventManager, None, None]:
    """Dependency that provides the EventManager instance."""
    if _event_manager is None:
        raise RuntimeError("EventManager not initialized. Call init_event_manager() first.")
    yield _event_manager


# Type alias for dependency injection
EventManagerDep = Annotated[EventManager, Depends(get_event_manager)]

# Shared HTTP client for probing image services
_http_client: httpx.AsyncClient | None = None


def init_http_client(timeout: float = 10.0) -> httpx.AsyncClient:
    """Initialize the shared HTTP client."""
    global _http_client  # noqa: PLW0603
    _http_client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    return _http_client


async def close_http_client() -> None:
    """Close the shared HTTP client."""
    global _http_client  # noqa: PLW0603
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


def get_http_client() -> Generator[httpx.AsyncClient, None, None]:
    """Dependency that provides the shared HTTP client."""
    if _http_client is None:
        raise RuntimeError("HTTP client not initialized. Call init_http_client() first.")
    yield _http_client


# Type alias for dependency injection
HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]
