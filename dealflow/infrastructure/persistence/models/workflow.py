"""Workflow definitions, steps, and their per-deal runs."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from dealflow.application.dtos.step_action import parse_step_action
from dealflow.domain.enums import RelativeTo
from dealflow.infrastructure.persistence.database import Base
from dealflow.infrastructure.persistence.models.mixins import EntityModel
from dealflow.shared.enums import WorkflowRunStatus, WorkflowRunStepStatus


class WorkflowDefinition(EntityModel, Base):
    """Workflow definition. Table: workflow_definition. Read-only at runtime."""

    __tablename__ = "workflow_definition"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    side: Mapped[str] = mapped_column(String, nullable=False)
    trigger_type: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.text("true")
    )

    __table_args__ = (
        Index("ix_workflow_definition_side_trigger", "side", "trigger_type"),
    )


class WorkflowStep(EntityModel, Base):
    """Ordered step of a definition. Table: workflow_step."""

    __tablename__ = "workflow_step"

    workflow_definition_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_definition.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    relative_to: Mapped[str] = mapped_column(
        String, nullable=False, default=RelativeTo.NONE.value
    )
    offset_days: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    action_type: Mapped[str] = mapped_column(String, nullable=False)
    action_config: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    @property
    def action(self):
        """Parsed action_config; None when it does not match action_type."""
        return parse_step_action(self.action_type, self.action_config)


class WorkflowRun(EntityModel, Base):
    """Live instantiation of a definition against one deal. Table: workflow_run."""

    __tablename__ = "workflow_run"

    deal_id: Mapped[str] = mapped_column(
        String, ForeignKey("deal.id", ondelete="CASCADE"), nullable=False, index=True
    )
    workflow_definition_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_definition.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=WorkflowRunStatus.ACTIVE.value
    )
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint(
            "deal_id", "workflow_definition_id", name="uq_workflow_run_deal_definition"
        ),
        CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name="ck_workflow_run_status",
        ),
    )


class WorkflowRunStep(EntityModel, Base):
    """Scheduled instance of a step within a run. Table: workflow_run_step."""

    __tablename__ = "workflow_run_step"

    workflow_run_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("workflow_run.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workflow_step_id: Mapped[str] = mapped_column(
        String, ForeignKey("workflow_step.id", ondelete="CASCADE"), nullable=False
    )
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=WorkflowRunStepStatus.PENDING.value
    )
    executed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_workflow_run_step_status_scheduled", "status", "scheduled_for"),
        CheckConstraint(
            "status IN ('pending', 'completed', 'error')",
            name="ck_workflow_run_step_status",
        ),
    )
