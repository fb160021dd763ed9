"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the mail transport and application use cases,
plus build_services() which the CLI scripts share. Routes depend only on
these dependencies, not on infrastructure directly.
"""

from __future__ import annotations

import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, AsyncIterator

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from dealflow.application.interfaces.services import IMailTransport
from dealflow.application.services.date_service import DateService
from dealflow.application.use_cases.deal_events import DealEventService
from dealflow.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationRuleEngine,
)
from dealflow.application.use_cases.notifications.dispatcher import DispatcherScope
from dealflow.application.use_cases.scheduler import WorkflowScheduler
from dealflow.core.config import Settings, get_settings
from dealflow.domain.exceptions import (
    AuthenticationException,
    ConfigurationException,
    PermissionDeniedException,
)
from dealflow.infrastructure.external.email import create_mail_transport
from dealflow.infrastructure.persistence.database import get_db_transactional, session_scope
from dealflow.infrastructure.persistence.repositories import (
    AlertRepository,
    DealRepository,
    EmailLogRepository,
    EmailTemplateRepository,
    PartyDirectoryRepository,
    TaskRepository,
    TimelineRepository,
    WorkflowRepository,
)
from dealflow.infrastructure.services import (
    RecipientResolver,
    TemplateRenderer,
    WorkflowEngine,
)


@dataclass
class DealflowServices:
    """Use cases wired against one session."""

    workflow_engine: WorkflowEngine
    dispatcher: NotificationDispatcher
    rule_engine: NotificationRuleEngine
    deal_events: DealEventService
    scheduler: WorkflowScheduler


def build_dispatcher(
    session: AsyncSession, transport: IMailTransport, date_service: DateService
) -> NotificationDispatcher:
    """NotificationDispatcher whose repositories share ``session``.

    Ledger writes commit in their own transaction, so a claim outlives a
    rollback of ``session`` after the mail has gone out.
    """
    return NotificationDispatcher(
        deal_repo=DealRepository(session),
        template_repo=EmailTemplateRepository(session),
        email_log_repo=EmailLogRepository(session, write_scope=session_scope),
        alert_repo=AlertRepository(session),
        timeline_repo=TimelineRepository(session),
        recipient_resolver=RecipientResolver(PartyDirectoryRepository(session)),
        renderer=TemplateRenderer(date_service),
        transport=transport,
    )


def make_dispatcher_scope(
    transport: IMailTransport, date_service: DateService
) -> DispatcherScope:
    """Dispatcher factory for batch dispatch: one committed session per item."""

    @asynccontextmanager
    async def scope() -> AsyncIterator[NotificationDispatcher]:
        async with session_scope() as session:
            yield build_dispatcher(session, transport, date_service)

    return scope


def build_services(
    session: AsyncSession,
    transport: IMailTransport,
    settings: Settings,
    *,
    batch_dispatch: bool = False,
) -> DealflowServices:
    """Wire repositories, engine, dispatcher and use cases on one session.

    With ``batch_dispatch`` the daily rules send through dispatch_batch (a
    session per dispatch, bounded concurrency) instead of ``session``.
    """
    dates = DateService(settings.business_timezone)
    dispatcher = build_dispatcher(session, transport, dates)
    engine = WorkflowEngine(
        deal_repo=DealRepository(session),
        workflow_repo=WorkflowRepository(session),
        timeline_repo=TimelineRepository(session),
        task_repo=TaskRepository(session),
        dispatcher=dispatcher,
        date_service=dates,
        step_scope=session.begin_nested,
    )
    rule_engine = NotificationRuleEngine(
        DealRepository(session),
        dispatcher,
        date_service=dates,
        dispatcher_scope=make_dispatcher_scope(transport, dates) if batch_dispatch else None,
        max_concurrency=settings.dispatch_batch_concurrency,
    )
    return DealflowServices(
        workflow_engine=engine,
        dispatcher=dispatcher,
        rule_engine=rule_engine,
        deal_events=DealEventService(engine, rule_engine),
        scheduler=WorkflowScheduler(engine, rule_engine, dates),
    )


def get_mail_transport(request: Request) -> IMailTransport:
    """Transport selected by settings, reusing the app's shared HTTP client."""
    http_client = getattr(request.app.state, "http_client", None)
    return create_mail_transport(get_settings(), http_client=http_client)


async def get_deal_event_service(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    transport: Annotated[IMailTransport, Depends(get_mail_transport)],
) -> DealEventService:
    """Deal event processing on the request's transaction."""
    return build_services(db, transport, get_settings()).deal_events


async def get_workflow_scheduler(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    transport: Annotated[IMailTransport, Depends(get_mail_transport)],
) -> WorkflowScheduler:
    """Scheduler for the manual and cron triggers; daily emails use batch dispatch."""
    return build_services(db, transport, get_settings(), batch_dispatch=True).scheduler


def require_workflow_cron_enabled() -> None:
    """Manual scheduler trigger is refused unless ENABLE_WORKFLOW_CRON is set."""
    if not get_settings().enable_workflow_cron:
        raise PermissionDeniedException(
            "Workflow cron is disabled. Set ENABLE_WORKFLOW_CRON=true to enable."
        )


def require_cron_secret(
    request: Request,
    secret: Annotated[str | None, Query()] = None,
) -> None:
    """Shared-secret check: ``Authorization: Bearer <secret>`` or ``?secret=``."""
    configured = get_settings().cron_secret
    expected = configured.get_secret_value() if configured else ""
    if not expected:
        raise ConfigurationException("CRON_SECRET")

    provided = secret
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        provided = auth_header[7:].strip()
    if not provided or not secrets.compare_digest(provided, expected):
        raise AuthenticationException("Unauthorized")
