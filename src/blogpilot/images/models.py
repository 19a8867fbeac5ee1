"""Data models for image generation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ImageDimensions:
    """Pixel size requested from an image service."""

    width: int
    height: int


@dataclass
class ImageResult:
    """Outcome of a single image service call.

    Attributes:
        success: Whether the service produced a usable URL.
        url: Image URL when successful.
        error: Failure description otherwise.
    """

    success: bool
    url: str | None = None
    error: str | None = None


@dataclass
class ServiceStatus:
    """Reachability of an external image service."""

    service: str
    available: bool
