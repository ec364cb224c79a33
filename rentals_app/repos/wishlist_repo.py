import uuid
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from models.models import Apartment, WishlistItem


class WishlistRepo:
    def __init__(self, db):
        self.db = db

    def _available_for(self, user_id: uuid.UUID):
        return (
            WishlistItem.user_id == user_id,
            Apartment.is_available.is_(True),
        )

    async def list_available(
        self, user_id: uuid.UUID, offset: int, limit: int
    ) -> tuple[list[WishlistItem], int]:
        result = await self.db.execute(
            select(WishlistItem)
            .join(Apartment, WishlistItem.apartment_id == Apartment.id)
            .where(*self._available_for(user_id))
            .options(
                selectinload(WishlistItem.apartment).selectinload(Apartment.owner),
                selectinload(WishlistItem.apartment).selectinload(Apartment.images),
            )
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id)
            .offset(offset)
            .limit(limit)
        )
        items = list(result.scalars().all())
        total = await self.count_available(user_id)
        return items, total

    async def count_available(self, user_id: uuid.UUID) -> int:
        total = await self.db.scalar(
            select(func.count(WishlistItem.id))
            .join(Apartment, WishlistItem.apartment_id == Apartment.id)
            .where(*self._available_for(user_id))
        )
        return total or 0

    async def get(
        self, user_id: uuid.UUID, apartment_id: uuid.UUID
    ) -> Optional[WishlistItem]:
        result = await self.db.execute(
            select(WishlistItem).where(
                WishlistItem.user_id == user_id,
                WishlistItem.apartment_id == apartment_id,
            )
        )
        return result.scalar_one_or_none()

    async def add(self, user_id: uuid.UUID, apartment_id: uuid.UUID) -> WishlistItem:
        item = WishlistItem(user_id=user_id, apartment_id=apartment_id)
        self.db.add(item)
        await self.db.flush()
        return item

    async def remove(self, user_id: uuid.UUID, apartment_id: uuid.UUID) -> int:
        result = await self.db.execute(
            delete(WishlistItem).where(
                WishlistItem.user_id == user_id,
                WishlistItem.apartment_id == apartment_id,
            )
        )
        return result.rowcount
