"""Telemetry module for capturing catalog events with PostHog."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from posthog import Posthog

logger = logging.getLogger(__name__)

DISTINCT_ID = "excess-music-api"


@dataclass
class StepTimer:
    """Wall-clock timing for a single tracked operation."""

    start_time: float = field(default_factory=time.perf_counter)
    duration_ms: float = 0.0
    success: bool = True
    error_type: str | None = None


@contextmanager
def track_step():
    """Time the wrapped block, recording failure type without swallowing it.

    Yields:
        StepTimer: populated with duration and outcome when the block exits
    """
    timer = StepTimer()
    try:
        yield timer
    except Exception as e:
        timer.success = False
        timer.error_type = type(e).__name__
        raise
    finally:
        timer.duration_ms = (time.perf_counter() - timer.start_time) * 1000


def capture_event(
    posthog_client: Posthog | None,
    event: str,
    properties: dict[str, Any] | None = None,
    timer: StepTimer | None = None,
) -> None:
    """Send a single event to PostHog when a client is configured.

    Args:
        posthog_client: PostHog client, or None when telemetry is disabled
        event: Event name (e.g., "release_played")
        properties: Event properties
        timer: Optional timer whose duration/outcome is attached
    """
    if posthog_client is None:
        return

    props = dict(properties or {})
    if timer is not None:
        props["duration_ms"] = round(timer.duration_ms, 2)
        props["success"] = timer.success
        props["error_type"] = timer.error_type

    posthog_client.capture(distinct_id=DISTINCT_ID, event=event, properties=props)
    logger.debug(f"Captured telemetry event {event}")
