"""Cron API: daily transaction email rules behind a shared secret."""

import time
from typing import Annotated

from fastapi import APIRouter, Depends

from dealflow.api.v1.dependencies import get_workflow_scheduler, require_cron_secret
from dealflow.application.use_cases.scheduler import WorkflowScheduler
from dealflow.schemas.scheduler import CronReadinessResponse, TransactionEmailsCronResponse
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.utils.datetime import utc_now

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/transaction-emails",
    response_model=TransactionEmailsCronResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def run_transaction_emails(
    scheduler: Annotated[WorkflowScheduler, Depends(get_workflow_scheduler)],
) -> TransactionEmailsCronResponse:
    """Run the daily email rules for today (business timezone).

    500 when CRON_SECRET is not configured, 401 when the secret does not match.
    """
    started = time.monotonic()
    stats = await scheduler.run_daily_email_rules()
    duration_ms = int((time.monotonic() - started) * 1000)
    logger.info("Transaction email cron finished in %d ms", duration_ms)
    return TransactionEmailsCronResponse(
        considered=stats.considered,
        sent=stats.sent,
        skipped=stats.skipped,
        failed=stats.failed,
        duration_ms=duration_ms,
        timestamp=utc_now(),
    )


@router.get("/transaction-emails", response_model=CronReadinessResponse)
def transaction_emails_info() -> CronReadinessResponse:
    """Describe the cron endpoint (for uptime checks)."""
    return CronReadinessResponse()
