"""CRUD operations for storage slots."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldflow.models import StorageSlot


async def get_slot(db: AsyncSession, key: str) -> StorageSlot | None:
    result = await db.execute(select(StorageSlot).where(StorageSlot.key == key))
    return result.scalars().first()


async def put_slot(db: AsyncSession, key: str, payload: str) -> StorageSlot:
    slot = await get_slot(db, key)
    if slot is None:
        slot = StorageSlot(key=key, payload=payload)
        db.add(slot)
    else:
        slot.payload = payload
    await db.commit()
    await db.refresh(slot)
    return slot


async def delete_slot(db: AsyncSession, key: str) -> bool:
    slot = await get_slot(db, key)
    if slot is None:
        return False
    await db.delete(slot)
    await db.commit()
    return True


