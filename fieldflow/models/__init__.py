"""SQLAlchemy ORM models."""

from fieldflow.models.base import Base
from fieldflow.models.storage_slot import StorageSlot

__all__ = ["Base", "StorageSlot"]
