"""Image resolution with bounded per-prompt retries."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from blogpilot.images.providers import is_placeholder

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

# Unresolved slots hold this sentinel; splicing drops their markers.
NO_IMAGE = ""


class ImageGenerator(Protocol):
    """Interface for the image-generation collaborator chain."""

    async def generate(
        self,
        prompt: str,
        aspect_ratio: str = ...,
        style: str = ...,
        negative_prompt: str = ...,
    ) -> str:
        """Return an image URL or a placeholder URL. Never raises."""
        ...


class RetryPolicy(Protocol):
    """Delay to wait after a failed attempt."""

    def delay(self, attempt: int) -> float:
        """Seconds to sleep after the given 1-based attempt failed."""
        ...


@dataclass(frozen=True)
class FixedDelay:
    """Same delay after every failed attempt."""

    seconds: float

    def delay(self, attempt: int) -> float:
        return self.seconds


@dataclass(frozen=True)
class ExponentialBackoff:
    """base * 2**(attempt-1), capped."""

    base: float
    cap: float = 300.0

    def delay(self, attempt: int) -> float:
        return min(self.base * (2 ** (attempt - 1)), self.cap)


@dataclass(frozen=True)
class JitteredBackoff:
    """Exponential backoff with full jitter."""

    base: float
    cap: float = 300.0
    rng: random.Random = field(default_factory=random.Random, compare=False)

    def delay(self, attempt: int) -> float:
        return self.rng.uniform(0, min(self.base * (2 ** (attempt - 1)), self.cap))


RETRY_STRATEGIES = ("fixed", "exponential", "jittered")


def build_retry_policy(strategy: str, seconds: float) -> RetryPolicy:
    """Create a retry policy by name.

    Raises:
        ValueError: If strategy is not one of RETRY_STRATEGIES.
    """
    match strategy:
        case "fixed":
            return FixedDelay(seconds)
        case "exponential":
            return ExponentialBackoff(seconds)
        case "jittered":
            return JitteredBackoff(seconds)
        case _:
            raise ValueError(f"Unknown retry strategy: {strategy}")


class ImageResolver:
    """Resolves image prompts to real image URLs.

    Prompts are processed one at a time, in order. Each prompt gets up to
    ``max_retries`` attempts; a placeholder result or a raised error counts
    as a failed attempt. The output list is index-aligned with the input,
    with ``NO_IMAGE`` in slots that never resolved.
    """

    def __init__(
        self,
        generator: ImageGenerator,
        max_retries: int = 3,
        policy: RetryPolicy | None = None,
        aspect_ratio: str = "16:9",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the resolver.

        Args:
            generator: Image chain to call for each attempt.
            max_retries: Attempts per prompt (at least 1).
            policy: Delay between attempts. Defaults to a fixed 30 seconds.
            aspect_ratio: Aspect ratio requested for every image.
            sleep: Awaitable sleep, injectable for tests.
        """
        self.generator = generator
        self.max_retries = max(1, max_retries)
        self.policy = policy or FixedDelay(30)
        self.aspect_ratio = aspect_ratio
        self._sleep = sleep

    async def resolve(self, prompts: list[str]) -> list[str]:
        """Resolve every prompt, returning one URL (or NO_IMAGE) per prompt."""
        resolved: list[str] = []
        for index, prompt in enumerate(prompts, start=1):
            url = await self._resolve_one(prompt, index, len(prompts))
            resolved.append(url)
        return resolved

    async def _resolve_one(self, prompt: str, index: int, total: int) -> str:
        for attempt in range(1, self.max_retries + 1):
            logger.info("Generating image %d/%d (attempt %d)", index, total, attempt)
            try:
                candidate = await self.generator.generate(prompt, self.aspect_ratio, "Default", "")
            except Exception as e:
                logger.warning("Image attempt %d for image %d raised: %s", attempt, index, e)
                candidate = NO_IMAGE

            if not is_placeholder(candidate):
                logger.info("Image %d generated successfully", index)
                return candidate

            logger.warning("Image attempt %d for image %d produced no image", attempt, index)
            if attempt < self.max_retries:
                delay = self.policy.delay(attempt)
                logger.info("Waiting %.1fs before retry", delay)
                await self._sleep(delay)

        logger.warning("Max retries reached for image %d, leaving slot empty", index)
        return NO_IMAGE
