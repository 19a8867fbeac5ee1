"""BlogPipeline - one create-and-publish job, stage by stage."""

from __future__ import annotations

import asyncio
import html as html_lib
import logging
import random
import re
from dataclasses import asdict
from typing import TYPE_CHECKING, Any, Protocol

from blogpilot.autopilot.exceptions import NoTopicsError, PublishError
from blogpilot.autopilot.models import Activity, AutopilotConfig, JobResult, JobStage
from blogpilot.images.retry import ImageResolver, build_retry_policy
from blogpilot.logging import truncate_output
from blogpilot.run_store.exceptions import RunStoreError
from blogpilot.shopify.exceptions import ShopifyError
from blogpilot.textgen.models import ChunkType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from blogpilot.images.retry import ImageGenerator
    from blogpilot.run_store import RunStore
    from blogpilot.shopify.models import Article, Blog
    from blogpilot.textgen.models import OutlineSection
    from blogpilot.textgen.writer import BlogWriter

logger = logging.getLogger(__name__)

IMAGE_MARKER = re.compile(r"<!--\s*IMAGE_SUGGESTION:\s*(.*?)\s*-->", re.DOTALL)
IMAGE_STYLE = "width: 100%; max-width: 600px; height: auto; margin: 20px 0; border-radius: 8px;"
ALT_MAX_LENGTH = 100


class Publisher(Protocol):
    """The publishing collaborator as the pipeline sees it."""

    async def list_blogs(self) -> list[Blog]: ...

    async def create_article(
        self,
        blog_id: int,
        html: str,
        meta_title: str | None = None,
        meta_description: str | None = None,
    ) -> Article: ...


def image_marker(prompt: str) -> str:
    """Build the inline marker for an image prompt."""
    # "--" would close the comment early
    return f"<!-- IMAGE_SUGGESTION: {prompt.replace('--', '- -')} -->"


def image_tag(url: str, prompt: str) -> str:
    """Build the <img> element that replaces a marker."""
    alt = html_lib.escape(prompt[:ALT_MAX_LENGTH], quote=True)
    src = html_lib.escape(url, quote=True)
    return f'<img src="{src}" alt="{alt}" style="{IMAGE_STYLE}">'


def splice_images(html: str, images: list[str]) -> str:
    """Replace image markers with resolved images, by position.

    The n-th marker in ``html`` takes ``images[n]``. Markers whose slot is
    empty, or past the end of ``images``, are removed.
    """
    position = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal position
        index = position
        position += 1
        if index < len(images) and images[index]:
            return image_tag(images[index], match.group(1))
        return ""

    return IMAGE_MARKER.sub(_replace, html)


class BlogPipeline:
    """Runs the stages of one blog job strictly in sequence.

    Stages: topic discovery, title, outline, content stream, image
    resolution, splicing, SEO metadata, publish. ``report`` is called at
    every stage boundary. Stage errors propagate to the caller. When a run
    store is attached, each stage's output is checkpointed before the next
    stage starts.
    """

    def __init__(
        self,
        writer: BlogWriter,
        images: ImageGenerator,
        publisher: Publisher,
        run_store: RunStore | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        aspect_ratio: str = "16:9",
    ) -> None:
        self.writer = writer
        self.images = images
        self.publisher = publisher
        self.run_store = run_store
        self.rng = rng or random.Random()
        self._sleep = sleep
        self.aspect_ratio = aspect_ratio

    async def run(
        self, config: AutopilotConfig, report: Callable[[Activity], None]
    ) -> JobResult:
        """Create and publish one article.

        Args:
            config: Settings for this job. Not re-read during the job.
            report: Called with the new activity at each stage boundary.

        Returns:
            JobResult for the published article.

        Raises:
            NoTopicsError: If topic discovery returns nothing.
            PublishError: If the article could not be published.
            Exception: Any other stage error, unchanged.
        """
        run_id = self.run_store.create_run().id if self.run_store else None
        try:
            title, article = await self._run_stages(run_id, config, report)
        except Exception as e:
            if self.run_store and run_id:
                try:
                    self.run_store.fail_run(run_id, str(e))
                except RunStoreError:
                    logger.exception("Could not record failure of run %s", run_id)
            raise

        if self.run_store and run_id:
            # The article is already live; a history write can no longer fail the job
            try:
                self.run_store.complete_run(run_id, title=title, article_id=article.id)
            except RunStoreError:
                logger.exception(
                    "Published article %s but could not record run %s", article.id, run_id
                )
        return JobResult(run_id=run_id, success=True, title=title, article_id=article.id)

    async def _run_stages(
        self,
        run_id: str | None,
        config: AutopilotConfig,
        report: Callable[[Activity], None],
    ) -> tuple[str, Article]:
        report(Activity(JobStage.SEARCHING_TOPICS))
        topics = await self.writer.trending_topics()
        if not topics:
            raise NoTopicsError("No trending topics found")
        topic = self.rng.choice(topics).topic
        logger.info("Selected trending topic: %s", topic)
        self._checkpoint(run_id, JobStage.SEARCHING_TOPICS, {"topic": topic})
        if self.run_store and run_id:
            self.run_store.update_run(run_id, topic=topic)

        report(Activity(JobStage.GENERATING_TITLE))
        title = await self.writer.title(topic, config.persona)
        logger.info("Generated title: %s", title)
        self._checkpoint(run_id, JobStage.GENERATING_TITLE, {"title": title})
        if self.run_store and run_id:
            self.run_store.update_run(run_id, title=title)

        report(Activity(JobStage.CREATING_OUTLINE))
        outline = await self.writer.outline(
            title, topic, config.brand_voice_profile, config.persona
        )
        logger.info("Created outline with %d sections", len(outline))
        self._checkpoint(
            run_id, JobStage.CREATING_OUTLINE, [s.to_prompt_dict() for s in outline]
        )

        report(Activity(JobStage.WRITING_CONTENT))
        content, prompts = await self._collect_content(title, topic, outline, config)
        logger.info(
            "Generated %d characters of content with %d image suggestions",
            len(content),
            len(prompts),
        )
        self._checkpoint(
            run_id, JobStage.WRITING_CONTENT, {"html": content, "image_prompts": prompts}
        )

        report(Activity(JobStage.GENERATING_IMAGES))
        resolver = self._resolver(config)
        images = await resolver.resolve(prompts)
        content = splice_images(content, images)
        self._checkpoint(run_id, JobStage.GENERATING_IMAGES, {"images": images, "html": content})

        report(Activity(JobStage.GENERATING_SEO))
        seo = await self.writer.seo_metadata(content, title, topic)
        logger.info("Generated SEO data with %d FAQ items", len(seo.faq))
        self._checkpoint(run_id, JobStage.GENERATING_SEO, asdict(seo))

        report(Activity(JobStage.PUBLISHING))
        article = await self._publish(
            content,
            seo.meta_titles[0] if seo.meta_titles else None,
            seo.meta_descriptions[0] if seo.meta_descriptions else None,
        )
        logger.info("Published blog article id %s", article.id)
        self._checkpoint(run_id, JobStage.PUBLISHING, {"article_id": article.id})
        return title, article

    async def _collect_content(
        self,
        title: str,
        topic: str,
        outline: list[OutlineSection],
        config: AutopilotConfig,
    ) -> tuple[str, list[str]]:
        """Drain the content stream into HTML and an ordered prompt list.

        A marker is appended to the HTML for each image suggestion so that
        splicing can put the image where it was suggested.
        """
        parts: list[str] = []
        prompts: list[str] = []
        stream = self.writer.content_stream(
            title, topic, outline, config.brand_voice_profile, config.persona
        )
        async for chunk in stream:
            match chunk.type:
                case ChunkType.HTML:
                    parts.append(chunk.content)
                case ChunkType.IMAGE_SUGGESTION:
                    prompts.append(chunk.content)
                    parts.append(image_marker(chunk.content))
                case _:
                    logger.debug(
                        "Ignoring %s chunk: %s", chunk.type, truncate_output(chunk.content, 200)
                    )
        return "".join(parts), prompts

    def _resolver(self, config: AutopilotConfig) -> ImageResolver:
        policy = build_retry_policy(config.retry_strategy, config.image_retry_delay_seconds)
        return ImageResolver(
            self.images,
            max_retries=config.max_retries,
            policy=policy,
            aspect_ratio=self.aspect_ratio,
            sleep=self._sleep,
        )

    async def _publish(
        self, content: str, meta_title: str | None, meta_description: str | None
    ) -> Article:
        try:
            blogs = await self.publisher.list_blogs()
            if not blogs:
                raise PublishError("No blog available to publish to")
            return await self.publisher.create_article(
                blogs[0].id, content, meta_title, meta_description
            )
        except ShopifyError as e:
            raise PublishError(f"Publishing failed: {e}") from e

    def _checkpoint(self, run_id: str | None, stage: JobStage, payload: Any) -> None:
        if self.run_store and run_id:
            self.run_store.checkpoint(run_id, stage.value, payload)
