"""Application services (stateless helpers shared by use cases)."""

from dealflow.application.services.date_service import DateService

__all__ = ["DateService"]
