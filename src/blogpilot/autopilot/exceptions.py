"""Exceptions for the autopilot module."""


class AutopilotError(Exception):
    """Base exception for autopilot errors."""

    pass


class NoTopicsError(AutopilotError):
    """Topic discovery returned nothing to write about."""

    pass


class PublishError(AutopilotError):
    """The finished article could not be published."""

    pass
