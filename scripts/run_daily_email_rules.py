"""Run the daily transaction email rules once.

Usage:
    python -m scripts.run_daily_email_rules [YYYY-MM-DD]
The date defaults to today in BUSINESS_TIMEZONE. Re-running a day is safe:
the dedup ledger skips anything already attempted for that date.
"""

import asyncio
import sys
from datetime import date

import httpx

from dealflow.api.v1.dependencies import build_services
from dealflow.core.config import get_settings
from dealflow.infrastructure.external.email import create_mail_transport
from dealflow.infrastructure.persistence.database import dispose_engine, session_scope
from dealflow.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Evaluate daily rules for all active deals and print the totals."""
    setup_logging()
    settings = get_settings()
    try:
        today = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else None
    except ValueError:
        print(f"Invalid date: {sys.argv[1]} (expected YYYY-MM-DD)", file=sys.stderr)
        sys.exit(1)

    async with httpx.AsyncClient(timeout=settings.email_timeout_seconds) as http_client:
        transport = create_mail_transport(settings, http_client=http_client)
        try:
            async with session_scope() as session:
                services = build_services(session, transport, settings, batch_dispatch=True)
                stats = await services.scheduler.run_daily_email_rules(today)
        finally:
            await dispose_engine()

    print(
        f"Daily email rules: considered={stats.considered} sent={stats.sent} "
        f"skipped={stats.skipped} failed={stats.failed}"
    )
    if stats.failed:
        sys.exit(2)


if __name__ == "__main__":
    asyncio.run(main())
