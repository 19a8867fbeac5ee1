"""REST API for controlling and observing the autopilot."""

from blogpilot.api.app import app, create_app

__all__ = ["app", "create_app"]
