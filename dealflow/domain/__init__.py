"""Domain layer: deal and workflow enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from dealflow.domain.enums import (
    ACTIVE_DEAL_STATUSES,
    EVENT_TO_WAIT_EVENT,
    AudienceType,
    DealEventType,
    DealSide,
    DealStatus,
    PartyRole,
    RelativeTo,
    StepActionType,
    WorkflowTriggerType,
)
from dealflow.domain.exceptions import (
    AuthenticationException,
    ConfigurationException,
    DealflowException,
    PermissionDeniedException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    ValidationException,
)

__all__ = [
    # Enums
    "ACTIVE_DEAL_STATUSES",
    "AudienceType",
    "DealEventType",
    "DealSide",
    "DealStatus",
    "EVENT_TO_WAIT_EVENT",
    "PartyRole",
    "RelativeTo",
    "StepActionType",
    "WorkflowTriggerType",
    # Exceptions
    "AuthenticationException",
    "ConfigurationException",
    "DealflowException",
    "PermissionDeniedException",
    "ResourceNotFoundException",
    "SqlNotConfiguredException",
    "ValidationException",
]
