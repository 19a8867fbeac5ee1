"""Autopilot - scheduled create-and-publish blog jobs."""

from blogpilot.autopilot.exceptions import AutopilotError, NoTopicsError, PublishError
from blogpilot.autopilot.models import (
    Activity,
    AutopilotConfig,
    AutopilotStats,
    JobResult,
    JobStage,
)
from blogpilot.autopilot.orchestrator import Autopilot
from blogpilot.autopilot.pipeline import BlogPipeline, Publisher, splice_images

__all__ = [
    "Activity",
    "Autopilot",
    "AutopilotConfig",
    "AutopilotError",
    "AutopilotStats",
    "BlogPipeline",
    "JobResult",
    "JobStage",
    "NoTopicsError",
    "PublishError",
    "Publisher",
    "splice_images",
]
