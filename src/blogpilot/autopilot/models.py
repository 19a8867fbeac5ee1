"""Data models for the autopilot."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from enum import StrEnum
from typing import Any

from blogpilot.textgen.models import CustomerPersona

MIN_INTERVAL_MINUTES = 5
MIN_MAX_RETRIES = 1
MIN_RETRY_DELAY_SECONDS = 1
NEVER = "Never"


class JobStage(StrEnum):
    """Where the autopilot currently is."""

    IDLE = "idle"
    STARTING = "starting"
    WAITING = "waiting"
    CREATING = "creating"
    SEARCHING_TOPICS = "searching_topics"
    GENERATING_TITLE = "generating_title"
    CREATING_OUTLINE = "creating_outline"
    WRITING_CONTENT = "writing_content"
    GENERATING_IMAGES = "generating_images"
    GENERATING_SEO = "generating_seo"
    PUBLISHING = "publishing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    STOPPED = "stopped"


_STAGE_LABELS = {
    JobStage.IDLE: "Idle",
    JobStage.STARTING: "Running - Next blog creation scheduled",
    JobStage.WAITING: "Waiting for next cycle...",
    JobStage.CREATING: "Creating new blog...",
    JobStage.SEARCHING_TOPICS: "Searching for trending topics...",
    JobStage.GENERATING_TITLE: "Generating blog title...",
    JobStage.CREATING_OUTLINE: "Creating blog outline...",
    JobStage.WRITING_CONTENT: "Writing blog content...",
    JobStage.GENERATING_IMAGES: "Generating images...",
    JobStage.GENERATING_SEO: "Generating SEO metadata...",
    JobStage.PUBLISHING: "Publishing to Shopify...",
    JobStage.STOPPED: "Stopped",
}


@dataclass(frozen=True)
class Activity:
    """Current activity as a stage plus free-text detail.

    Observers branch on ``stage``; ``label`` is the human-readable form.
    """

    stage: JobStage
    detail: str = ""

    @property
    def label(self) -> str:
        if self.stage == JobStage.SUCCEEDED:
            return f'Successfully created: "{self.detail}"'
        if self.stage == JobStage.FAILED:
            return f"Failed: {self.detail}"
        return _STAGE_LABELS[self.stage]

    def to_dict(self) -> dict[str, str]:
        return {"stage": self.stage.value, "detail": self.detail, "label": self.label}


IDLE = Activity(JobStage.IDLE)


@dataclass
class AutopilotConfig:
    """Autopilot configuration.

    Attributes:
        enabled: Whether the recurring timer is armed.
        interval_minutes: Minutes between job runs.
        max_retries: Attempts per image prompt.
        image_retry_delay_seconds: Base delay between image attempts.
        persona: Audience persona passed to every writing step.
        brand_voice_profile: Style guide passed to every writing step.
        retry_strategy: Image retry policy (fixed, exponential or jittered).
    """

    enabled: bool = False
    interval_minutes: int = 10
    max_retries: int = 3
    image_retry_delay_seconds: int = 30
    persona: CustomerPersona | None = None
    brand_voice_profile: str | None = None
    retry_strategy: str = "fixed"

    def merged(self, **overrides: Any) -> AutopilotConfig:
        """Return a copy with the given fields replaced.

        Raises:
            TypeError: If an override names an unknown field.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown autopilot config fields: {', '.join(sorted(unknown))}")
        persona = overrides.get("persona")
        if isinstance(persona, dict):
            overrides["persona"] = CustomerPersona.from_dict(persona)
        return replace(self, **overrides)

    def clamped(self) -> AutopilotConfig:
        """Return a copy with numeric fields raised to their minimums."""
        return replace(
            self,
            interval_minutes=max(self.interval_minutes, MIN_INTERVAL_MINUTES),
            max_retries=max(self.max_retries, MIN_MAX_RETRIES),
            image_retry_delay_seconds=max(
                self.image_retry_delay_seconds, MIN_RETRY_DELAY_SECONDS
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AutopilotConfig:
        return cls().merged(**data)


@dataclass
class AutopilotStats:
    """Counters and current activity, kept in memory only."""

    total_blogs: int = 0
    successful_blogs: int = 0
    failed_blogs: int = 0
    last_run_time: str = NEVER
    is_running: bool = False
    current_activity: Activity = field(default_factory=lambda: IDLE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_blogs": self.total_blogs,
            "successful_blogs": self.successful_blogs,
            "failed_blogs": self.failed_blogs,
            "last_run_time": self.last_run_time,
            "is_running": self.is_running,
            "current_activity": self.current_activity.to_dict(),
        }


@dataclass
class JobResult:
    """Outcome of one job run."""

    run_id: str | None
    success: bool
    title: str | None = None
    article_id: int | None = None
    error: str | None = None
