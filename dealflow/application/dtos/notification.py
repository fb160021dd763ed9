"""DTOs for transaction email dispatch (templates, ledger, outcomes)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class EmailTemplateResult:
    id: str
    key: str
    name: str
    subject_template: str
    body_html: str
    audience_type: str
    is_active: bool
    body_text: str | None = None
    side: str | None = None


@dataclass(frozen=True)
class EmailLogResult:
    """Row of the transaction email ledger."""

    id: str
    deal_id: str
    template_key: str
    context_date: date | None
    status: str
    sent_at: datetime | None = None
    recipient_emails: list[str] | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str | None = None


@dataclass(frozen=True)
class SendResult:
    """Outcome of one mail transport call. Transports never raise."""

    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class DispatchRequest:
    """One notification to send: template for a deal about a context date."""

    deal_id: str
    template_key: str
    context_date: date | None = None


@dataclass(frozen=True)
class DispatchResult:
    """Structured outcome of NotificationDispatcher.dispatch."""

    success: bool
    sent: bool = False
    skipped: bool = False
    error: str | None = None
    reason: str | None = None

    @classmethod
    def delivered(cls) -> DispatchResult:
        return cls(success=True, sent=True)

    @classmethod
    def skip(cls, reason: str) -> DispatchResult:
        return cls(success=True, skipped=True, reason=reason)

    @classmethod
    def failure(cls, error: str) -> DispatchResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class BatchDispatchResult:
    total: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    results: list[DispatchResult] = field(default_factory=list)

    def add(self, result: DispatchResult) -> None:
        """Count a result: sent, else skipped, else failed."""
        self.total += 1
        self.results.append(result)
        if result.sent:
            self.sent += 1
        elif result.skipped:
            self.skipped += 1
        elif not result.success:
            self.failed += 1


@dataclass
class DailyRulesStats:
    """Totals for one daily rules run. ``considered`` counts active deals."""

    considered: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def add(self, result: DispatchResult) -> None:
        if result.sent:
            self.sent += 1
        elif result.skipped:
            self.skipped += 1
        elif not result.success:
            self.failed += 1

    def to_dict(self) -> dict[str, int]:
        return asdict(self)
