"""Scheduler trigger schemas (manual workflow run, daily email cron)."""

from datetime import datetime

from pydantic import BaseModel, Field


class RunWorkflowsResponse(BaseModel):
    """Response for POST /system/run-workflows."""

    success: bool = True
    selected: int = Field(..., description="Pending steps that were due")
    completed: int
    errored: int
    errors: list[dict[str, str]] = Field(default_factory=list)
    timestamp: datetime


class TransactionEmailsCronResponse(BaseModel):
    """Response for POST /cron/transaction-emails."""

    success: bool = True
    considered: int = Field(..., description="Active deals evaluated")
    sent: int
    skipped: int
    failed: int
    duration_ms: int
    timestamp: datetime


class CronReadinessResponse(BaseModel):
    """Response for GET /cron/transaction-emails."""

    status: str = "ready"
    endpoint: str = "transaction-emails"
    method: str = "POST"
    auth: str = "required"
