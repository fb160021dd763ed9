"""Execute due workflow steps (one pass, or every N seconds).

Usage:
    python -m scripts.run_workflow_scheduler [interval_seconds]
Without an interval, runs once and exits (suitable for cron). Requires
DATABASE_URL; emails go through Resend unless EMAIL_DRY_RUN is set.
"""

import asyncio
import sys

import httpx

from dealflow.api.v1.dependencies import build_services
from dealflow.core.config import get_settings
from dealflow.infrastructure.external.email import create_mail_transport
from dealflow.infrastructure.persistence.database import dispose_engine, session_scope
from dealflow.shared.telemetry.logging import get_logger, setup_logging

logger = get_logger("scripts.run_workflow_scheduler")


async def run_once(http_client: httpx.AsyncClient) -> int:
    """One scheduler pass in its own transaction. Returns the errored step count."""
    settings = get_settings()
    transport = create_mail_transport(settings, http_client=http_client)
    async with session_scope() as session:
        services = build_services(session, transport, settings)
        stats = await services.scheduler.run_workflow_steps()
    print(
        f"Workflow steps: selected={stats.selected} completed={stats.completed} "
        f"errored={stats.errored}"
    )
    return stats.errored


async def main() -> None:
    setup_logging()
    interval = float(sys.argv[1]) if len(sys.argv) > 1 else None
    if interval is not None and interval <= 0:
        print("interval_seconds must be > 0", file=sys.stderr)
        sys.exit(1)

    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.email_timeout_seconds) as http_client:
        try:
            if interval is None:
                await run_once(http_client)
                return
            logger.info("Workflow scheduler polling every %.0f s", interval)
            while True:
                try:
                    await run_once(http_client)
                except Exception:
                    logger.exception("Scheduler pass failed; retrying next interval")
                await asyncio.sleep(interval)
        finally:
            await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
