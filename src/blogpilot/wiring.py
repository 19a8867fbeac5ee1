"""Builds the collaborator clients and the job pipeline from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from blogpilot.autopilot import BlogPipeline
from blogpilot.images import FreeImageChain, build_image_chain
from blogpilot.shopify import ShopifyClient
from blogpilot.textgen import BlogWriter, GeminiClient

if TYPE_CHECKING:
    from blogpilot.config import Settings
    from blogpilot.run_store import RunStore

logger = logging.getLogger(__name__)


@dataclass
class Clients:
    """HTTP-backed collaborators that need closing."""

    text: GeminiClient
    images: FreeImageChain
    shopify: ShopifyClient

    async def aclose(self) -> None:
        await self.text.aclose()
        await self.images.aclose()
        await self.shopify.aclose()


def build_clients(settings: Settings) -> Clients:
    """Create the text, image and publishing clients.

    Raises:
        UnknownImageServiceError: If the image service list names an unknown service.
    """
    if not settings.gemini.api_key:
        logger.warning("GEMINI_API_KEY is not set; text generation will fail")
    if not settings.shopify.credentials.is_configured:
        logger.warning("Shopify credentials are not configured; publishing will fail")

    return Clients(
        text=GeminiClient(
            api_key=settings.gemini.api_key,
            model=settings.gemini.model,
            timeout=settings.gemini.timeout,
        ),
        images=build_image_chain(settings.images.services, timeout=settings.images.timeout),
        shopify=ShopifyClient(
            settings.shopify.credentials,
            api_version=settings.shopify.api_version,
            author=settings.shopify.author,
        ),
    )


def build_pipeline(
    settings: Settings, clients: Clients, run_store: RunStore | None = None
) -> BlogPipeline:
    """Assemble the job pipeline around already-built clients."""
    writer = BlogWriter(
        clients.text,
        brand_name=settings.writer.brand_name,
        audience=settings.writer.audience,
    )
    return BlogPipeline(
        writer,
        clients.images,
        clients.shopify,
        run_store=run_store,
        aspect_ratio=settings.images.aspect_ratio,
    )
