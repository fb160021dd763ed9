"""System API: manual trigger for the due workflow step executor."""

from typing import Annotated

from fastapi import APIRouter, Depends

from dealflow.api.v1.dependencies import (
    get_workflow_scheduler,
    require_workflow_cron_enabled,
)
from dealflow.application.use_cases.scheduler import WorkflowScheduler
from dealflow.schemas.scheduler import RunWorkflowsResponse
from dealflow.shared.utils.datetime import utc_now

router = APIRouter()


@router.post(
    "/run-workflows",
    response_model=RunWorkflowsResponse,
    dependencies=[Depends(require_workflow_cron_enabled)],
)
async def run_workflows(
    scheduler: Annotated[WorkflowScheduler, Depends(get_workflow_scheduler)],
) -> RunWorkflowsResponse:
    """Execute every pending workflow step that is due now. 403 unless enabled."""
    now = utc_now()
    stats = await scheduler.run_workflow_steps(now)
    return RunWorkflowsResponse(
        selected=stats.selected,
        completed=stats.completed,
        errored=stats.errored,
        errors=stats.errors,
        timestamp=now,
    )
