import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.orm import selectinload

from models.enums import PaymentStatus
from models.models import Booking, Payment


class PaymentRepo:
    def __init__(self, db):
        self.db = db

    def _with_relations(self):
        return select(Payment).options(
            selectinload(Payment.booking).selectinload(Booking.apartment),
            selectinload(Payment.user),
        )

    async def get_for_update(self, payment_id: uuid.UUID) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment).where(Payment.id == payment_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_with_relations(self, payment_id: uuid.UUID) -> Optional[Payment]:
        result = await self.db.execute(
            self._with_relations().where(Payment.id == payment_id)
        )
        return result.scalars().first()

    async def list_for_user(
        self, user_id: uuid.UUID, offset: int, limit: int
    ) -> tuple[list[Payment], int]:
        result = await self.db.execute(
            self._with_relations()
            .where(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc(), Payment.id)
            .offset(offset)
            .limit(limit)
        )
        items = list(result.scalars().all())
        total = await self.db.scalar(
            select(func.count()).select_from(Payment).where(Payment.user_id == user_id)
        )
        return items, total or 0

    async def create(self, **fields) -> Payment:
        payment = Payment(**fields)
        self.db.add(payment)
        await self.db.flush()
        return payment

    async def set_status(self, payment: Payment, status: PaymentStatus) -> Payment:
        payment.payment_status = status
        await self.db.flush()
        return payment

    async def totals_since(self, since: datetime) -> dict:
        completed = Payment.payment_status == PaymentStatus.COMPLETED
        row = (
            await self.db.execute(
                select(
                    func.count(Payment.id).label("total_count"),
                    func.coalesce(func.sum(Payment.amount), 0).label("total_amount"),
                    func.count(case((completed, 1))).label("completed_count"),
                    func.coalesce(
                        func.sum(case((completed, Payment.amount), else_=0)), 0
                    ).label("completed_amount"),
                ).where(Payment.created_at >= since)
            )
        ).one()
        return dict(row._mapping)

    async def daily_trends_since(self, since: datetime) -> Sequence:
        day = func.date(Payment.created_at)
        result = await self.db.execute(
            select(
                day.label("date"),
                func.count(Payment.id).label("count"),
                func.coalesce(func.sum(Payment.amount), 0).label("amount"),
            )
            .where(Payment.created_at >= since)
            .group_by(day)
            .order_by(day.desc())
        )
        return result.all()

    async def method_distribution_since(self, since: datetime) -> Sequence:
        result = await self.db.execute(
            select(
                Payment.payment_method,
                func.count(Payment.id).label("count"),
                func.coalesce(func.sum(Payment.amount), 0).label("amount"),
            )
            .where(Payment.created_at >= since)
            .group_by(Payment.payment_method)
            .order_by(Payment.payment_method)
        )
        return result.all()
