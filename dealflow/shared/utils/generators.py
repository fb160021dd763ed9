"""Identifier generators: CUID2 primary keys and synthetic transport message ids."""

from cuid2 import cuid_wrapper

from dealflow.shared.utils.datetime import utc_now

_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """New CUID2 string; default primary key for every dealflow table."""
    value = _cuid()
    if not isinstance(value, str):
        raise TypeError(f"Expected str from cuid2, got {type(value).__name__}")
    return value


def dry_run_message_id() -> str:
    """Message id reported by the log-only transport: ``dry-run-<epoch ms>``."""
    return f"dry-run-{int(utc_now().timestamp() * 1000)}"
