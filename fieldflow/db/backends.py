"""Storage backends for the serialized work-order collection."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fieldflow.db import crud
from fieldflow.errors import PersistenceError

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """Holds one serialized collection. ``load`` returns None when nothing was saved yet."""

    @abstractmethod
    async def load(self) -> str | None:
        ...

    @abstractmethod
    async def save(self, payload: str) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class MemoryBackend(StorageBackend):
    """Keeps the payload in memory. Used by tests and one-off CLI runs."""

    def __init__(self, payload: str | None = None):
        self.payload = payload
        self.saves = 0

    async def load(self) -> str | None:
        return self.payload

    async def save(self, payload: str) -> None:
        self.payload = payload
        self.saves += 1

    async def clear(self) -> None:
        self.payload = None


class SqlSlotBackend(StorageBackend):
    """One named row in the ``storage_slots`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], slot: str):
        self._factory = session_factory
        self.slot = slot

    async def load(self) -> str | None:
        try:
            async with self._factory() as db:
                row = await crud.get_slot(db, self.slot)
                return row.payload if row else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read storage slot {self.slot!r}: {e}") from e

    async def save(self, payload: str) -> None:
        try:
            async with self._factory() as db:
                await crud.put_slot(db, self.slot, payload)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not write storage slot {self.slot!r}: {e}") from e

    async def clear(self) -> None:
        try:
            async with self._factory() as db:
                removed = await crud.delete_slot(db, self.slot)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not clear storage slot {self.slot!r}: {e}") from e
        if removed:
            logger.info(f"Cleared storage slot {self.slot!r}")
