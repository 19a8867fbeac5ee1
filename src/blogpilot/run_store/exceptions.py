"""Custom exceptions for the run store."""


class RunStoreError(Exception):
    """Base exception for run store errors."""


class RunNotFoundError(RunStoreError):
    """Job run with given ID does not exist."""
