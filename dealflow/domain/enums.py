"""Domain enumerations for deals and workflows.

Enums represent fixed sets of domain values (deal side, status, party role,
workflow trigger and step action kinds).
"""

from enum import Enum


class _ValuesMixin:
    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings (e.g. for validation or serialization)."""
        return [member.value for member in cls]


class DealSide(_ValuesMixin, str, Enum):
    """Which side of the transaction the coordinator represents."""

    BUYING = "buying"
    LISTING = "listing"
    LANDLORD = "landlord"
    TENANT = "tenant"
    DUAL = "dual"


class DealStatus(_ValuesMixin, str, Enum):
    """Deal lifecycle status."""

    DRAFT = "draft"
    LEAD = "lead"
    SEARCHING = "searching"
    UNDER_CONTRACT = "under_contract"
    IN_ESCROW = "in_escrow"
    PENDING_CONTINGENCIES = "pending_contingencies"
    PENDING = "pending"
    PENDING_COE = "pending_coe"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    PRE_APPROVAL = "pre_approval"
    OFFER = "offer"
    PRE_LISTING = "pre_listing"
    ACTIVE = "active"
    OFFER_REVIEW = "offer_review"


# Statuses evaluated by the daily notification rules.
ACTIVE_DEAL_STATUSES: tuple[DealStatus, ...] = (
    DealStatus.IN_ESCROW,
    DealStatus.PENDING_CONTINGENCIES,
    DealStatus.PENDING,
    DealStatus.PENDING_COE,
)


class PartyRole(_ValuesMixin, str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    BUYER_AGENT = "buyer_agent"
    LISTING_AGENT = "listing_agent"
    LENDER = "lender"
    ESCROW = "escrow"
    TITLE = "title"


class AudienceType(_ValuesMixin, str, Enum):
    """Who an email template is addressed to."""

    ESCROW = "escrow"
    LENDER = "lender"
    LISTING_AGENT = "listing_agent"
    BUYING_AGENT = "buying_agent"
    SELLER = "seller"
    BUYER = "buyer"
    ALL_PARTIES = "all_parties"
    INTERNAL_CHAT = "internal_chat"


class WorkflowTriggerType(_ValuesMixin, str, Enum):
    IN_ESCROW = "in_escrow"
    MANUAL = "manual"
    DEAL_CREATED = "deal_created"


class StepActionType(_ValuesMixin, str, Enum):
    SEND_EMAIL = "send_email"
    CREATE_TASK = "create_task"
    UPDATE_FIELD = "update_field"
    WAIT_FOR_EVENT = "wait_for_event"


class RelativeTo(_ValuesMixin, str, Enum):
    """Anchor a step's scheduled date is computed from."""

    COE_DATE = "coe_date"
    INSPECTION_DEADLINE = "inspection_deadline"
    DEAL_CREATED = "deal_created"
    NONE = "none"


class DealEventType(_ValuesMixin, str, Enum):
    """Business events accepted by the deal event endpoint."""

    SET_EMD_RECEIVED = "set-emd-received"
    SET_INSPECTION_DEADLINE = "set-inspection-deadline"
    MARK_INSPECTION_CONTINGENCY_REMOVED = "mark-inspection-contingency-removed"
    SET_COE_DATE = "set-coe-date"
    STATUS_CHANGED = "status-changed"
    SET_INSPECTION_SCHEDULED = "set-inspection-scheduled"


# Deal events that release wait_for_event steps, keyed to the step's event_type.
EVENT_TO_WAIT_EVENT: dict[str, str] = {
    DealEventType.SET_EMD_RECEIVED.value: "emd_received",
    DealEventType.MARK_INSPECTION_CONTINGENCY_REMOVED.value: "inspection_contingency_removed",
}
