"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from dealflow.shared.telemetry.logging import get_logger, setup_logging
from dealflow.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "setup_logging",
    "get_logger",
    "traced",
    "add_span_attributes",
]
