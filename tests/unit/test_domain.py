"""Domain exceptions and deal value coercion."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from dealflow.domain.exceptions import (
    AuthenticationException,
    ConfigurationException,
    ResourceNotFoundException,
    ValidationException,
)
from dealflow.infrastructure.persistence.repositories.deal_repo import (
    UPDATABLE_DEAL_FIELDS,
    coerce_deal_value,
)


def test_exception_payloads():
    assert ResourceNotFoundException("deal", "deal-9").to_dict() == {
        "error": "RESOURCE_NOT_FOUND",
        "message": "deal not found: deal-9",
        "details": {"resource_type": "deal", "resource_id": "deal-9"},
    }
    assert ValidationException("bad", field="status").details == {"field": "status"}
    assert ConfigurationException("CRON_SECRET").message == "CRON_SECRET is not configured"
    assert AuthenticationException("Unauthorized").error_code == "AUTHENTICATION_ERROR"


def test_protected_columns_are_not_updatable():
    assert "id" not in UPDATABLE_DEAL_FIELDS
    assert "created_at" not in UPDATABLE_DEAL_FIELDS
    assert "has_hoa" in UPDATABLE_DEAL_FIELDS


@pytest.mark.parametrize(
    ("field", "raw", "expected"),
    [
        ("has_solar", "yes", True),
        ("has_hoa", False, False),
        ("coe_date", "2024-12-20T17:00:00Z", datetime(2024, 12, 20, 17, 0, tzinfo=UTC)),
        ("emd_due_date", "2024-11-30", date(2024, 11, 30)),
        ("price", 650000, Decimal("650000")),
        ("status", "pending_coe", "pending_coe"),
        ("loan_type", "conventional", "conventional"),
        ("lender_id", None, None),
    ],
)
def test_coerce_deal_value(field, raw, expected):
    assert coerce_deal_value(field, raw) == expected


@pytest.mark.parametrize(
    ("field", "raw"),
    [
        ("id", "deal-2"),
        ("no_such_column", 1),
        ("has_hoa", "maybe"),
        ("emd_due_date", "soon"),
        ("price", "a lot"),
        ("status", "on_hold"),
        ("side", "seller"),
    ],
)
def test_coerce_deal_value_rejects(field, raw):
    with pytest.raises(ValidationException):
        coerce_deal_value(field, raw)
