"""Pydantic models for REST API."""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Autopilot models


class PersonaModel(BaseModel):
    """Audience persona passed through to the writing prompts."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., min_length=1, max_length=255)
    age: int | None = Field(default=None, ge=0, le=150)
    occupation: str = ""
    location: str = ""
    skincare_goals: list[str] = Field(default_factory=list)
    pain_points: list[str] = Field(default_factory=list)
    motivations: list[str] = Field(default_factory=list)
    personality: str = ""
    bio: str = ""


class AutopilotConfigUpdate(BaseModel):
    """Request model for updating the autopilot config (partial update)."""

    enabled: bool | None = None
    interval_minutes: int | None = Field(default=None, ge=5, le=1440)
    max_retries: int | None = Field(default=None, ge=1, le=10)
    image_retry_delay_seconds: int | None = Field(default=None, ge=1, le=300)
    persona: PersonaModel | None = None
    brand_voice_profile: str | None = Field(default=None, max_length=10000)
    retry_strategy: Literal["fixed", "exponential", "jittered"] | None = None

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class AutopilotStartRequest(AutopilotConfigUpdate):
    """Optional config overrides applied when starting."""


class AutopilotConfigResponse(BaseModel):
    """Response model for the autopilot config."""

    model_config = ConfigDict(from_attributes=True)

    enabled: bool
    interval_minutes: int
    max_retries: int
    image_retry_delay_seconds: int
    persona: PersonaModel | None
    brand_voice_profile: str | None
    retry_strategy: str


def config_to_response(config: Any) -> AutopilotConfigResponse:
    """Convert an AutopilotConfig to AutopilotConfigResponse."""
    return AutopilotConfigResponse.model_validate(config.to_dict())


class ActivityResponse(BaseModel):
    """Current activity: stage for machines, label for people."""

    stage: str
    detail: str
    label: str


class AutopilotStatsResponse(BaseModel):
    """Response model for autopilot statistics."""

    total_blogs: int
    successful_blogs: int
    failed_blogs: int
    last_run_time: str
    is_running: bool
    current_activity: ActivityResponse


def stats_to_response(stats: Any) -> AutopilotStatsResponse:
    """Convert an AutopilotStats to AutopilotStatsResponse."""
    return AutopilotStatsResponse.model_validate(stats.to_dict())


class AutopilotActionResponse(BaseModel):
    """Response model for autopilot actions (start/stop)."""

    message: str


# Run history models


class CheckpointResponse(BaseModel):
    """Response model for a stage checkpoint."""

    stage: str
    payload: Any
    created_at: datetime


def checkpoint_to_response(checkpoint: Any) -> CheckpointResponse:
    """Convert a RunCheckpoint to CheckpointResponse."""
    return CheckpointResponse(
        stage=checkpoint.stage,
        payload=checkpoint.payload,
        created_at=checkpoint.created_at,
    )


class RunResponse(BaseModel):
    """Response model for a job run."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
    topic: str | None
    title: str | None
    article_id: int | None
    error: str | None
    started_at: datetime
    completed_at: datetime | None


def run_to_response(run: Any) -> RunResponse:
    """Convert a JobRun model to RunResponse."""
    return RunResponse.model_validate(run)


class RunDetailResponse(RunResponse):
    """A job run with its stage checkpoints."""

    checkpoints: list[CheckpointResponse] = Field(default_factory=list)


def run_detail_to_response(run: Any) -> RunDetailResponse:
    """Convert a JobRun with loaded checkpoints to RunDetailResponse."""
    base = RunResponse.model_validate(run)
    return RunDetailResponse(
        **base.model_dump(),
        checkpoints=[checkpoint_to_response(c) for c in run.checkpoints],
    )


class RunStatsResponse(BaseModel):
    """Response model for run history statistics."""

    model_config = ConfigDict(from_attributes=True)

    total_runs: int
    succeeded: int
    failed: int
    avg_duration_seconds: float


def run_stats_to_response(stats: Any) -> RunStatsResponse:
    """Convert a RunStats to RunStatsResponse."""
    return RunStatsResponse.model_validate(asdict(stats))


# Image service models


class ServiceStatusResponse(BaseModel):
    """Reachability of one image service."""

    model_config = ConfigDict(from_attributes=True)

    service: str
    available: bool
