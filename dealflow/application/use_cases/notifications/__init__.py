"""Transaction email use cases: dispatcher and notification rules."""

from dealflow.application.use_cases.notifications.dispatcher import (
    NotificationDispatcher,
    dispatch_batch,
)
from dealflow.application.use_cases.notifications.rules import NotificationRuleEngine

__all__ = ["NotificationDispatcher", "NotificationRuleEngine", "dispatch_batch"]
