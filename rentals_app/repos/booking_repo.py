from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from core.query_filters import FieldFilter, FilterKind
from models.enums import ACTIVE_BOOKING_STATUSES, BookingStatus
from models.models import Apartment, Booking

BOOKING_FILTERS = (
    FieldFilter("status", FilterKind.EQ, (Booking.status,)),
    FieldFilter("user_id", FilterKind.EQ, (Booking.user_id,)),
    FieldFilter("owner_id", FilterKind.EQ, (Booking.owner_id,)),
)


class BookingRepo:
    def __init__(self, db):
        self.db = db

    def _with_relations(self):
        return select(Booking).options(
            selectinload(Booking.apartment).selectinload(Apartment.images),
            selectinload(Booking.renter),
            selectinload(Booking.owner),
        )

    async def get_by_id(self, booking_id: uuid.UUID) -> Optional[Booking]:
        result = await self.db.execute(select(Booking).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    async def get_for_update(
        self, booking_id: uuid.UUID, payment_intent_id: str | None = None
    ) -> Optional[Booking]:
        stmt = select(Booking).where(Booking.id == booking_id)
        if payment_intent_id is not None:
            stmt = stmt.where(Booking.payment_intent_id == payment_intent_id)
        result = await self.db.execute(stmt.with_for_update())
        return result.scalar_one_or_none()

    async def get_with_relations(self, booking_id: uuid.UUID) -> Optional[Booking]:
        result = await self.db.execute(
            self._with_relations()
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def has_active_booking(
        self, user_id: uuid.UUID, apartment_id: uuid.UUID
    ) -> bool:
        result = await self.db.execute(
            select(Booking.id)
            .where(
                Booking.user_id == user_id,
                Booking.apartment_id == apartment_id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def search(
        self, predicates: Sequence, offset: int, limit: int
    ) -> tuple[list[Booking], int]:
        stmt = (
            self._with_relations()
            .where(*predicates)
            .order_by(Booking.created_at.desc(), Booking.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        items = list(result.scalars().all())
        total = await self.db.scalar(
            select(func.count()).select_from(Booking).where(*predicates)
        )
        return items, total or 0

    async def recent(self, limit: int = 5) -> list[Booking]:
        result = await self.db.execute(
            self._with_relations()
            .order_by(Booking.created_at.desc(), Booking.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, **fields) -> Booking:
        booking = Booking(**fields)
        self.db.add(booking)
        await self.db.flush()
        return booking

    async def set_status(self, booking: Booking, status: BookingStatus) -> Booking:
        booking.status = status
        await self.db.flush()
        return booking

    async def set_payment_intent(self, booking: Booking, intent_id: str) -> Booking:
        booking.payment_intent_id = intent_id
        await self.db.flush()
        return booking
