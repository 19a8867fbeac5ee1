"""Custom exceptions for image generation."""


class ImageServiceError(Exception):
    """Base exception for image service errors."""


class UnknownImageServiceError(ImageServiceError):
    """Requested image service name is not registered."""
