"""Named storage slot — one serialized work-order collection per row."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fieldflow.models.base import Base, TimestampMixin, ULIDMixin


class StorageSlot(Base, ULIDMixin, TimestampMixin):
    __tablename__ = "storage_slots"

    key: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    payload: Mapped[str] = mapped_column(Text, default="[]")
