"""
AWS Lambda entry point.

The pipeline (and with it the DynamoDB client) is composed on the first
invocation and reused by every later invocation of the same execution
environment. Configuration problems raise; every other failure is reported
through the returned summary.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Mapping, Optional

from fieldguard.config import get_settings
from fieldguard.ingest.events import flatten_event
from fieldguard.orchestrator import WriterPipeline, build_pipeline
from fieldguard.utils.logging import configure_logging, get_logger

log = get_logger(__name__)

_pipeline: Optional[WriterPipeline] = None


def _get_pipeline() -> WriterPipeline:
    global _pipeline
    if _pipeline is None:
        settings = get_settings()
        configure_logging(level=settings.log_level, json_logs=settings.json_logs)
        _pipeline = build_pipeline(settings)
    return _pipeline


def _deadline(context: Any, margin_seconds: float) -> Optional[float]:
    """Monotonic deadline derived from the Lambda context, or None without one."""
    remaining = getattr(context, "get_remaining_time_in_millis", None)
    if remaining is None:
        return None
    return time.monotonic() + max(0.0, remaining() / 1000.0 - margin_seconds)


def handle_request(event: Optional[Mapping[str, Any]], context: Any = None) -> Dict[str, Any]:
    """
    Process one Kafka event and return the invocation summary.

    Raises
    ------
    ConfigurationError
        If the environment is invalid; no record is touched in that case.
    """
    pipeline = _get_pipeline()
    messages = flatten_event(event)
    log.info(
        f"Starting to process Kafka event with {len(messages)} record(s)",
        extra={"records": len(messages)},
    )
    summary = pipeline.run(
        messages, deadline=_deadline(context, pipeline.settings.deadline_margin_seconds)
    )
    return summary.to_dict()


def reset() -> None:
    """Drop the cached pipeline and settings (tests, config reloads)."""
    global _pipeline
    _pipeline = None
    get_settings.cache_clear()


__all__ = ["handle_request", "reset"]
