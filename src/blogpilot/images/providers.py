"""Free image services and the fallback chain across them."""

from __future__ import annotations

import logging
import random
from typing import Protocol
from urllib.parse import quote, urlsplit

import httpx

from blogpilot.images.exceptions import UnknownImageServiceError
from blogpilot.images.models import ImageDimensions, ImageResult, ServiceStatus

logger = logging.getLogger(__name__)

PLACEHOLDER_HOST = "via.placeholder.com"
PROBE_TIMEOUT = 3.0
DEFAULT_SERVICES = ["picsum", "unsplash", "loremflickr"]

ASPECT_RATIOS: dict[str, ImageDimensions] = {
    "1:1": ImageDimensions(512, 512),
    "16:9": ImageDimensions(768, 432),
    "4:3": ImageDimensions(640, 480),
    "3:4": ImageDimensions(480, 640),
    "9:16": ImageDimensions(432, 768),
}

# First matching key wins; order goes from most to least specific.
KEYWORD_MAPPING: dict[str, list[str]] = {
    "woman": ["woman", "portrait", "face"],
    "women": ["women", "group", "people"],
    "girl": ["woman", "young", "beauty"],
    "person": ["people", "portrait"],
    "skincare": ["skincare", "cosmetics", "beauty"],
    "serum": ["skincare", "cosmetics", "bottle"],
    "cream": ["cosmetics", "beauty", "jar"],
    "cleanser": ["skincare", "bottle", "beauty"],
    "moisturizer": ["cosmetics", "cream", "beauty"],
    "routine": ["beauty", "cosmetics", "lifestyle"],
    "glow": ["beauty", "skin", "radiant"],
    "radiant": ["beauty", "glow", "skin"],
    "clear": ["beauty", "skin", "clean"],
    "products": ["cosmetics", "beauty", "bottles"],
    "bottle": ["cosmetics", "product", "container"],
    "jar": ["cosmetics", "cream", "container"],
    "flat": ["flatlay", "cosmetics", "arrangement"],
    "arrangement": ["cosmetics", "beauty", "products"],
    "layout": ["flatlay", "arrangement", "beauty"],
    "natural": ["organic", "wellness", "health"],
    "organic": ["natural", "wellness", "green"],
    "wellness": ["health", "lifestyle", "beauty"],
    "health": ["wellness", "lifestyle", "natural"],
    "lifestyle": ["wellness", "health", "beauty"],
}
DEFAULT_KEYWORDS = ["beauty", "skincare", "wellness"]


def get_dimensions(aspect_ratio: str) -> ImageDimensions:
    """Map an aspect ratio string to pixel dimensions (1:1 when unknown)."""
    return ASPECT_RATIOS.get(aspect_ratio, ASPECT_RATIOS["1:1"])


def extract_keywords(prompt: str) -> list[str]:
    """Pick up to three themed search keywords for a prompt."""
    lowered = prompt.lower()
    for key, keywords in KEYWORD_MAPPING.items():
        if key in lowered:
            return list(dict.fromkeys(keywords))[:3]
    return list(DEFAULT_KEYWORDS)


def prompt_seed(prompt: str) -> int:
    """Deterministic seed derived from the prompt text."""
    return sum(ord(ch) for ch in prompt) % 1000


def placeholder_image(prompt: str, aspect_ratio: str = "1:1") -> str:
    """Build a text placeholder image URL. Always succeeds."""
    dims = get_dimensions(aspect_ratio)
    text = quote(prompt[:50], safe="")
    return f"https://{PLACEHOLDER_HOST}/{dims.width}x{dims.height}/E8E8E8/666666?text={text}"


def is_placeholder(url: str | None) -> bool:
    """True when url is empty or points at the placeholder generator."""
    return not url or urlsplit(url).hostname == PLACEHOLDER_HOST


class ImageProvider(Protocol):
    """A single free image service."""

    name: str

    async def __call__(self, prompt: str, dims: ImageDimensions, style: str) -> ImageResult:
        """Produce an image URL for prompt."""
        ...


class PicsumProvider:
    """Picsum Photos, seeded by the prompt so repeats are stable."""

    name = "picsum"

    async def __call__(self, prompt: str, dims: ImageDimensions, style: str) -> ImageResult:
        seed = prompt_seed(prompt)
        return ImageResult(
            success=True,
            url=f"https://picsum.photos/seed/{seed}/{dims.width}/{dims.height}",
        )


class UnsplashProvider:
    """Unsplash image CDN with keyword hints."""

    name = "unsplash"
    PHOTO_ID = "photo-1556909114-f6e7ad7d3136"

    async def __call__(self, prompt: str, dims: ImageDimensions, style: str) -> ImageResult:
        keywords = ",".join(extract_keywords(prompt))
        url = (
            f"https://images.unsplash.com/{self.PHOTO_ID}?ixlib=rb-4.0.3&auto=format&fit=crop"
            f"&w={dims.width}&h={dims.height}&q=80&keywords={quote(keywords, safe='')}"
        )
        return ImageResult(success=True, url=url)


class LoremFlickrProvider:
    """LoremFlickr themed images.

    A HEAD probe is made first; a failed probe is only logged because the
    service often rejects HEAD while serving GET.
    """

    name = "loremflickr"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def __call__(self, prompt: str, dims: ImageDimensions, style: str) -> ImageResult:
        keywords = ",".join(extract_keywords(prompt))
        url = f"https://loremflickr.com/{dims.width}/{dims.height}/{keywords}"
        try:
            response = await self.client.head(url, timeout=PROBE_TIMEOUT)
            if response.status_code >= 400:
                logger.warning("LoremFlickr probe returned %s, using URL anyway", response.status_code)
        except httpx.HTTPError as e:
            logger.warning("LoremFlickr probe failed, using URL anyway: %s", e)
        return ImageResult(success=True, url=url)


class PollinationsProvider:
    """Pollinations.ai prompt-to-image URLs, verified with a HEAD probe."""

    name = "pollinations"

    def __init__(self, client: httpx.AsyncClient, rng: random.Random | None = None) -> None:
        self.client = client
        self.rng = rng or random.Random()

    async def __call__(self, prompt: str, dims: ImageDimensions, style: str) -> ImageResult:
        text = prompt if style in ("", "Default") else f"{prompt}, {style} style"
        seed = self.rng.randrange(1_000_000)
        url = (
            f"https://image.pollinations.ai/prompt/{quote(text, safe='')}"
            f"?width={dims.width}&height={dims.height}&seed={seed}"
        )
        try:
            response = await self.client.head(url, timeout=PROBE_TIMEOUT)
        except httpx.HTTPError as e:
            return ImageResult(success=False, error=f"Pollinations unreachable: {e}")
        if response.status_code >= 400:
            return ImageResult(success=False, error=f"Pollinations HTTP {response.status_code}")
        return ImageResult(success=True, url=url)


class FreeImageChain:
    """Ordered fallback across free image services.

    Never raises: when every provider fails the prompt resolves to a
    placeholder URL, which callers detect with ``is_placeholder``.
    """

    def __init__(
        self,
        providers: list[ImageProvider],
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.providers = providers
        self._client = client

    async def aclose(self) -> None:
        """Close the shared HTTP client, if this chain owns one."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def generate(
        self,
        prompt: str,
        aspect_ratio: str = "16:9",
        style: str = "Default",
        negative_prompt: str = "",
    ) -> str:
        """Return an image URL for prompt, or a placeholder URL."""
        dims = get_dimensions(aspect_ratio)
        if negative_prompt:
            logger.debug("Negative prompt ignored by free services: %s", negative_prompt[:100])

        for provider in self.providers:
            try:
                result = await provider(prompt, dims, style)
            except Exception as e:
                logger.warning("Image service %s raised, trying next: %s", provider.name, e)
                continue
            if result.success and result.url:
                logger.info("Image service %s produced an image", provider.name)
                return result.url
            logger.warning("Image service %s failed: %s", provider.name, result.error)

        logger.info("All image services failed, using placeholder")
        return placeholder_image(prompt, aspect_ratio)


def build_image_chain(
    services: list[str] | None = None,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FreeImageChain:
    """Build a chain from service names, in the given order.

    Raises:
        UnknownImageServiceError: If a name is not a registered service.
    """
    names = services if services is not None else DEFAULT_SERVICES
    client = httpx.AsyncClient(timeout=timeout, follow_redirects=True, transport=transport)
    factories = {
        "picsum": lambda: PicsumProvider(),
        "unsplash": lambda: UnsplashProvider(),
        "loremflickr": lambda: LoremFlickrProvider(client),
        "pollinations": lambda: PollinationsProvider(client),
    }
    providers: list[ImageProvider] = []
    for name in names:
        if name not in factories:
            raise UnknownImageServiceError(
                f"Unknown image service '{name}'. Choose from: {', '.join(sorted(factories))}"
            )
        providers.append(factories[name]())
    return FreeImageChain(providers, client=client)


async def check_image_services(client: httpx.AsyncClient) -> list[ServiceStatus]:
    """Probe the generative image services that need a network round trip."""
    checks = [
        ("Pollinations.ai", "https://image.pollinations.ai/prompt/test?width=64&height=64", False),
        (
            "Hugging Face",
            "https://api-inference.huggingface.co/models/stabilityai/stable-diffusion-xl-base-1.0",
            True,
        ),
    ]
    statuses = []
    for service, url, only_404_fails in checks:
        try:
            response = await client.head(url, timeout=PROBE_TIMEOUT)
            if only_404_fails:
                available = response.status_code != 404
            else:
                available = response.status_code < 400
        except httpx.HTTPError as e:
            logger.info("%s unreachable: %s", service, e)
            available = False
        statuses.append(ServiceStatus(service=service, available=available))
    return statuses
