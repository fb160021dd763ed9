"""Email template rendering (Jinja) against flattened deal data.

Templates are stored in the email_template table. Helpers are registered both
as filters and as globals so templates may write ``{{ coe_date | format_date }}``
or ``{{ format_date(coe_date) }}``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from jinja2 import ChainableUndefined, Environment, Template, TemplateError

from dealflow.application.dtos.deal import DealResult
from dealflow.application.services.date_service import DateService
from dealflow.shared.telemetry.logging import get_logger
from dealflow.shared.utils.datetime import parse_datetime

logger = get_logger(__name__)

PROPERTY_ADDRESS_FALLBACK = "Property Address TBD"

# Deal attributes exposed to templates, in display order.
_DEAL_TEMPLATE_FIELDS: tuple[str, ...] = (
    "side",
    "status",
    "price",
    "offer_acceptance_date",
    "close_date",
    "coe_date",
    "possession_date",
    "emd_amount",
    "emd_due_date",
    "emd_received_at",
    "inspection_deadline",
    "inspection_scheduled_at",
    "buyer_investigation_due_date",
    "inspection_contingency_removed_at",
    "seller_disclosures_due_date",
    "seller_disclosures_sent_at",
    "buyer_disclosures_signed_at",
    "loan_type",
    "down_payment_percent",
    "buyer_appraisal_due_date",
    "buyer_loan_due_date",
    "buyer_insurance_due_date",
    "appraisal_ordered_at",
    "has_hoa",
    "has_solar",
    "hoa_docs_received_at",
    "tc_fee_amount",
    "tc_fee_payer",
    "cda_prepared_at",
    "cda_sent_to_escrow_at",
    "closed_at",
)


def _template_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class TemplateRenderer:
    """Renders subject and body strings for transaction emails."""

    def __init__(self, date_service: DateService | None = None) -> None:
        self._dates = date_service or DateService()
        self._env = Environment(autoescape=False, undefined=ChainableUndefined)
        helpers = {
            "format_date": self.format_date,
            "format_datetime": self.format_datetime,
            "format_currency": self.format_currency,
            "uppercase": self.uppercase,
            "capitalize": self.capitalize,
        }
        self._env.filters.update(helpers)
        self._env.globals.update(helpers)
        self._compiled: dict[str, Template] = {}

    # Helpers

    def format_date(self, value: Any) -> str:
        """'Nov 24, 2024'; 'TBD' when empty or unparsable."""
        try:
            d = self._dates.to_date(value)
        except (TypeError, ValueError):
            return "TBD"
        if d is None:
            return "TBD"
        return f"{d:%b} {d.day}, {d.year}"

    def format_datetime(self, value: Any) -> str:
        """'Nov 24, 2024, 3:05 PM' in the business timezone; 'TBD' when empty."""
        if value is None or value == "":
            return "TBD"
        try:
            dt = parse_datetime(value)
        except (TypeError, ValueError):
            return "TBD"
        local = dt.astimezone(self._dates.tz)
        hour = local.hour % 12 or 12
        meridiem = "AM" if local.hour < 12 else "PM"
        return f"{local:%b} {local.day}, {local.year}, {hour}:{local:%M} {meridiem}"

    @staticmethod
    def format_currency(amount: Any) -> str:
        """'$500,000' (USD, whole dollars); 'TBD' when empty."""
        if amount is None or amount == "":
            return "TBD"
        try:
            value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        except (InvalidOperation, ValueError):
            return "TBD"
        sign = "-" if value < 0 else ""
        return f"{sign}${abs(int(value)):,}"

    @staticmethod
    def uppercase(value: Any) -> str:
        return str(value).upper() if value else ""

    @staticmethod
    def capitalize(value: Any) -> str:
        """Upper-case the first character only (rest unchanged)."""
        if not value:
            return ""
        text = str(value)
        return text[:1].upper() + text[1:]

    # Rendering

    def build_template_data(
        self, deal: DealResult, extra: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Flatten a deal into template variables; ``extra`` overrides deal values."""
        data: dict[str, Any] = {
            "property_address": deal.property_address or PROPERTY_ADDRESS_FALLBACK,
            "deal_id": deal.id,
        }
        for name in _DEAL_TEMPLATE_FIELDS:
            data[name] = _template_value(getattr(deal, name))
        data["estimated_coe_date"] = _template_value(
            deal.estimated_coe_date or deal.coe_date
        )
        data.update(extra or {})
        return data

    def render(self, template: str, data: dict[str, Any]) -> str:
        """Render one template string. Errors render as '[Template Error: ...]'."""
        try:
            compiled = self._compiled.get(template)
            if compiled is None:
                compiled = self._env.from_string(template)
                self._compiled[template] = compiled
            return compiled.render(**data)
        except (TemplateError, TypeError, ValueError) as e:
            logger.error("Template rendering error: %s", e)
            return f"[Template Error: {e}]"

    def render_email(
        self, subject: str, body: str, data: dict[str, Any]
    ) -> tuple[str, str]:
        """Render subject and body; returns (subject, body)."""
        return self.render(subject, data), self.render(body, data)
