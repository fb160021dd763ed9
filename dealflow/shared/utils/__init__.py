"""Shared utilities: datetime and generators."""

from dealflow.shared.utils.datetime import (
    ensure_utc,
    parse_date,
    parse_datetime,
    utc_now,
)
from dealflow.shared.utils.generators import dry_run_message_id, generate_cuid

__all__ = [
    "dry_run_message_id",
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "parse_date",
    "parse_datetime",
]
