"""Columns shared by every dealflow table: CUID2 key and server-side timestamps."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from dealflow.shared.utils.generators import generate_cuid


class EntityModel:
    """``id`` (CUID2, generated client-side) plus ``created_at`` / ``updated_at``.

    Timestamps are timezone-aware and filled by the database; ``updated_at``
    is bumped on every ORM update.
    """

    __abstract__ = True

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
