"""Typed workflow step actions.

``workflow_step.action_config`` is free-form JSON in the store. It is parsed
here, at the model boundary, into one of four action models discriminated on
``action_type``. Anything unrecognised or malformed parses to ``None``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from dealflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class SendEmailAction(_ActionBase):
    action_type: Literal["send_email"] = "send_email"
    template_name: str = Field(..., min_length=1)
    audience: str = Field(..., min_length=1)


class CreateTaskAction(_ActionBase):
    action_type: Literal["create_task"] = "create_task"
    title: str = Field(..., min_length=1)
    description: str | None = None
    due_date_offset_days: int | None = None


class UpdateFieldAction(_ActionBase):
    action_type: Literal["update_field"] = "update_field"
    field: str = Field(..., min_length=1)
    value: Any


class WaitForEventAction(_ActionBase):
    action_type: Literal["wait_for_event"] = "wait_for_event"
    event_type: str = Field(..., min_length=1)


StepAction = Annotated[
    SendEmailAction | CreateTaskAction | UpdateFieldAction | WaitForEventAction,
    Field(discriminator="action_type"),
]

_adapter: TypeAdapter[StepAction] = TypeAdapter(StepAction)


def parse_step_action(
    action_type: str | None, config: dict[str, Any] | None
) -> SendEmailAction | CreateTaskAction | UpdateFieldAction | WaitForEventAction | None:
    """Parse a stored (action_type, action_config) pair; None when invalid."""
    if not action_type or not isinstance(config, dict):
        return None
    try:
        return _adapter.validate_python({**config, "action_type": action_type})
    except ValidationError as e:
        logger.warning(
            "Invalid action_config for action_type=%s: %s",
            action_type,
            e.errors(include_url=False),
        )
        return None
