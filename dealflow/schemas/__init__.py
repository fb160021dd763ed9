"""Pydantic request/response schemas for the API."""

from dealflow.schemas.deal_event import DealEventRequest, DealEventResponse
from dealflow.schemas.health import HealthResponse
from dealflow.schemas.scheduler import (
    CronReadinessResponse,
    RunWorkflowsResponse,
    TransactionEmailsCronResponse,
)

__all__ = [
    "CronReadinessResponse",
    "DealEventRequest",
    "DealEventResponse",
    "HealthResponse",
    "RunWorkflowsResponse",
    "TransactionEmailsCronResponse",
]
