"""Initial schema: deals, parties, workflows, email templates and ledger

Revision ID: 3f9a1c2d7b40
Revises:
Create Date: 2025-01-06 10:14:52.118304

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create initial schema."""
    # Directory tables
    op.create_table(
        "agent_profile",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "escrow_company",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("contact_person", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "lender",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("loan_officer_name", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create deal table
    op.create_table(
        "deal",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("property_address", sa.Text(), nullable=True),
        sa.Column("side", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("primary_agent_id", sa.String(), nullable=True),
        sa.Column("escrow_company_id", sa.String(), nullable=True),
        sa.Column("lender_id", sa.String(), nullable=True),
        sa.Column("price", sa.Numeric(14, 2), nullable=True),
        sa.Column("emd_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("down_payment_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("tc_fee_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("tc_fee_payer", sa.String(), nullable=True),
        sa.Column("loan_type", sa.String(), nullable=True),
        sa.Column("coe_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("inspection_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("emd_received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "inspection_contingency_removed_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("inspection_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("appraisal_ordered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hoa_docs_received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("seller_disclosures_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("buyer_disclosures_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cda_prepared_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cda_sent_to_escrow_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("offer_acceptance_date", sa.Date(), nullable=True),
        sa.Column("emd_due_date", sa.Date(), nullable=True),
        sa.Column("close_date", sa.Date(), nullable=True),
        sa.Column("seller_disclosures_due_date", sa.Date(), nullable=True),
        sa.Column("buyer_investigation_due_date", sa.Date(), nullable=True),
        sa.Column("buyer_appraisal_due_date", sa.Date(), nullable=True),
        sa.Column("buyer_loan_due_date", sa.Date(), nullable=True),
        sa.Column("buyer_insurance_due_date", sa.Date(), nullable=True),
        sa.Column("estimated_coe_date", sa.Date(), nullable=True),
        sa.Column("possession_date", sa.Date(), nullable=True),
        sa.Column("has_hoa", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("has_solar", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["primary_agent_id"], ["agent_profile.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["escrow_company_id"], ["escrow_company.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["lender_id"], ["lender.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_deal_status"), "deal", ["status"], unique=False)

    op.create_table(
        "deal_party",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("deal_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deal.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_deal_party_deal_id"), "deal_party", ["deal_id"], unique=False)

    # Workflow definitions and runs
    op.create_table(
        "workflow_definition",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("side", sa.String(), nullable=False),
        sa.Column("trigger_type", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_workflow_definition_side_trigger",
        "workflow_definition",
        ["side", "trigger_type"],
        unique=False,
    )

    op.create_table(
        "workflow_step",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_definition_id", sa.String(), nullable=False),
        sa.Column("step_order", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("relative_to", sa.String(), nullable=False),
        sa.Column("offset_days", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("action_type", sa.String(), nullable=False),
        sa.Column("action_config", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["workflow_definition_id"], ["workflow_definition.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_workflow_step_workflow_definition_id"),
        "workflow_step",
        ["workflow_definition_id"],
        unique=False,
    )

    op.create_table(
        "workflow_run",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("deal_id", sa.String(), nullable=False),
        sa.Column("workflow_definition_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'cancelled')",
            name="ck_workflow_run_status",
        ),
        sa.ForeignKeyConstraint(["deal_id"], ["deal.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["workflow_definition_id"], ["workflow_definition.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "deal_id", "workflow_definition_id", name="uq_workflow_run_deal_definition"
        ),
    )
    op.create_index(op.f("ix_workflow_run_deal_id"), "workflow_run", ["deal_id"], unique=False)

    op.create_table(
        "workflow_run_step",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("workflow_run_id", sa.String(), nullable=False),
        sa.Column("workflow_step_id", sa.String(), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'error')",
            name="ck_workflow_run_step_status",
        ),
        sa.ForeignKeyConstraint(["workflow_run_id"], ["workflow_run.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["workflow_step_id"], ["workflow_step.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_workflow_run_step_workflow_run_id"),
        "workflow_run_step",
        ["workflow_run_id"],
        unique=False,
    )
    op.create_index(
        "ix_workflow_run_step_status_scheduled",
        "workflow_run_step",
        ["status", "scheduled_for"],
        unique=False,
    )

    # Email templates and dedup ledger
    op.create_table(
        "email_template",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("subject_template", sa.Text(), nullable=False),
        sa.Column("body_html", sa.Text(), nullable=False),
        sa.Column("body_text", sa.Text(), nullable=True),
        sa.Column("audience_type", sa.String(), nullable=False),
        sa.Column("side", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )

    op.create_table(
        "transaction_email_log",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("deal_id", sa.String(), nullable=False),
        sa.Column("template_key", sa.String(), nullable=False),
        sa.Column("context_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("recipient_emails", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "sent_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deal.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "deal_id",
            "template_key",
            "context_date",
            name="uq_transaction_email_log_key",
            postgresql_nulls_not_distinct=True,
        ),
    )
    op.create_index(
        op.f("ix_transaction_email_log_deal_id"),
        "transaction_email_log",
        ["deal_id"],
        unique=False,
    )

    # Alerts, tasks, timeline
    op.create_table(
        "alert",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("deal_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("level", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deal.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_alert_deal_id"), "alert", ["deal_id"], unique=False)

    op.create_table(
        "deal_task",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("deal_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deal.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_deal_task_deal_id"), "deal_task", ["deal_id"], unique=False)

    op.create_table(
        "deal_timeline_event",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("deal_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["deal_id"], ["deal.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_deal_timeline_event_deal_created",
        "deal_timeline_event",
        ["deal_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_deal_timeline_event_deal_created", table_name="deal_timeline_event")
    op.drop_table("deal_timeline_event")
    op.drop_index(op.f("ix_deal_task_deal_id"), table_name="deal_task")
    op.drop_table("deal_task")
    op.drop_index(op.f("ix_alert_deal_id"), table_name="alert")
    op.drop_table("alert")
    op.drop_index(op.f("ix_transaction_email_log_deal_id"), table_name="transaction_email_log")
    op.drop_table("transaction_email_log")
    op.drop_table("email_template")
    op.drop_index("ix_workflow_run_step_status_scheduled", table_name="workflow_run_step")
    op.drop_index(op.f("ix_workflow_run_step_workflow_run_id"), table_name="workflow_run_step")
    op.drop_table("workflow_run_step")
    op.drop_index(op.f("ix_workflow_run_deal_id"), table_name="workflow_run")
    op.drop_table("workflow_run")
    op.drop_index(op.f("ix_workflow_step_workflow_definition_id"), table_name="workflow_step")
    op.drop_table("workflow_step")
    op.drop_index("ix_workflow_definition_side_trigger", table_name="workflow_definition")
    op.drop_table("workflow_definition")
    op.drop_index(op.f("ix_deal_party_deal_id"), table_name="deal_party")
    op.drop_table("deal_party")
    op.drop_index(op.f("ix_deal_status"), table_name="deal")
    op.drop_table("deal")
    op.drop_table("lender")
    op.drop_table("escrow_company")
    op.drop_table("agent_profile")
