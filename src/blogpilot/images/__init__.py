"""Images - free image services, fallback chain, and retrying resolver."""

from blogpilot.images.exceptions import ImageServiceError, UnknownImageServiceError
from blogpilot.images.models import ImageDimensions, ImageResult, ServiceStatus
from blogpilot.images.providers import (
    ASPECT_RATIOS,
    DEFAULT_SERVICES,
    FreeImageChain,
    LoremFlickrProvider,
    PicsumProvider,
    PollinationsProvider,
    UnsplashProvider,
    build_image_chain,
    check_image_services,
    extract_keywords,
    get_dimensions,
    is_placeholder,
    placeholder_image,
)
from blogpilot.images.retry import (
    NO_IMAGE,
    RETRY_STRATEGIES,
    ExponentialBackoff,
    FixedDelay,
    ImageGenerator,
    ImageResolver,
    JitteredBackoff,
    RetryPolicy,
    build_retry_policy,
)

__all__ = [
    "ASPECT_RATIOS",
    "DEFAULT_SERVICES",
    "ExponentialBackoff",
    "FixedDelay",
    "FreeImageChain",
    "ImageDimensions",
    "ImageGenerator",
    "ImageResolver",
    "ImageResult",
    "ImageServiceError",
    "JitteredBackoff",
    "LoremFlickrProvider",
    "NO_IMAGE",
    "PicsumProvider",
    "PollinationsProvider",
    "RETRY_STRATEGIES",
    "RetryPolicy",
    "ServiceStatus",
    "UnknownImageServiceError",
    "UnsplashProvider",
    "build_image_chain",
    "build_retry_policy",
    "check_image_services",
    "extract_keywords",
    "get_dimensions",
    "is_placeholder",
    "placeholder_image",
]
