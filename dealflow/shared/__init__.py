"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from dealflow.shared.enums import (
    AlertLevel,
    AlertType,
    EmailLogStatus,
    WorkflowRunStatus,
    WorkflowRunStepStatus,
)
from dealflow.shared.utils import (
    ensure_utc,
    generate_cuid,
    parse_datetime,
    utc_now,
)

__all__ = [
    "AlertLevel",
    "AlertType",
    "EmailLogStatus",
    "WorkflowRunStatus",
    "WorkflowRunStepStatus",
    "ensure_utc",
    "generate_cuid",
    "parse_datetime",
    "utc_now",
]
