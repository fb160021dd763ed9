"""Manual workflow trigger and the transaction email cron endpoint."""

from unittest.mock import AsyncMock

import pytest

from dealflow.api.v1.dependencies import get_workflow_scheduler
from dealflow.application.dtos.notification import DailyRulesStats
from dealflow.application.dtos.workflow import StepExecutionStats
from dealflow.core.config import get_settings

CRON_URL = "/api/v1/cron/transaction-emails"
RUN_URL = "/api/v1/system/run-workflows"


@pytest.fixture
def scheduler(app) -> AsyncMock:
    mock = AsyncMock()
    mock.run_daily_email_rules.return_value = DailyRulesStats(
        considered=3, sent=2, skipped=1, failed=0
    )
    mock.run_workflow_steps.return_value = StepExecutionStats(
        selected=2, completed=1, errored=1, errors=[{"run_step_id": "rs-1", "error": "boom"}]
    )
    app.dependency_overrides[get_workflow_scheduler] = lambda: mock
    return mock


@pytest.fixture
def cron_secret(monkeypatch) -> str:
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    get_settings.cache_clear()
    return "s3cret"


# Cron


async def test_cron_without_configured_secret_is_500(client, scheduler, monkeypatch):
    monkeypatch.delenv("CRON_SECRET", raising=False)
    get_settings.cache_clear()

    response = await client.post(CRON_URL, headers={"Authorization": "Bearer anything"})

    assert response.status_code == 500
    assert response.json()["message"] == "CRON_SECRET is not configured"
    scheduler.run_daily_email_rules.assert_not_awaited()


@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"headers": {"Authorization": "Bearer wrong"}},
        {"params": {"secret": "wrong"}},
        {"headers": {"Authorization": "Basic s3cret"}},
    ],
)
async def test_cron_rejects_missing_or_wrong_secret(client, scheduler, cron_secret, kwargs):
    response = await client.post(CRON_URL, **kwargs)

    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"
    scheduler.run_daily_email_rules.assert_not_awaited()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"headers": {"Authorization": "Bearer s3cret"}},
        {"params": {"secret": "s3cret"}},
    ],
)
async def test_cron_runs_daily_rules(client, scheduler, cron_secret, kwargs):
    response = await client.post(CRON_URL, **kwargs)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["considered"], body["sent"], body["skipped"], body["failed"]) == (3, 2, 1, 0)
    assert body["duration_ms"] >= 0
    assert "timestamp" in body
    scheduler.run_daily_email_rules.assert_awaited_once_with()


async def test_cron_readiness(client):
    response = await client.get(CRON_URL)

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "endpoint": "transaction-emails",
        "method": "POST",
        "auth": "required",
    }


# Manual workflow trigger


async def test_run_workflows_disabled_is_403(client, scheduler, monkeypatch):
    monkeypatch.delenv("ENABLE_WORKFLOW_CRON", raising=False)
    get_settings.cache_clear()

    response = await client.post(RUN_URL)

    assert response.status_code == 403
    assert response.json()["error"] == "PERMISSION_DENIED"
    scheduler.run_workflow_steps.assert_not_awaited()


async def test_run_workflows_enabled(client, scheduler, monkeypatch):
    monkeypatch.setenv("ENABLE_WORKFLOW_CRON", "true")
    get_settings.cache_clear()

    response = await client.post(RUN_URL)

    assert response.status_code == 200
    body = response.json()
    assert (body["selected"], body["completed"], body["errored"]) == (2, 1, 1)
    assert body["errors"] == [{"run_step_id": "rs-1", "error": "boom"}]
    scheduler.run_workflow_steps.assert_awaited_once()
