import uuid
from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from core.query_filters import FieldFilter, FilterKind
from models.enums import PaymentStatus
from models.models import AdminLog, Apartment, Booking, Payment, User

ADMIN_LOG_FILTERS = (
    FieldFilter("action", FilterKind.EQ, (AdminLog.action,)),
    FieldFilter("admin_id", FilterKind.EQ, (AdminLog.admin_id,)),
)


class AdminRepo:
    def __init__(self, db):
        self.db = db

    async def _count(self, model) -> int:
        return await self.db.scalar(select(func.count()).select_from(model)) or 0

    async def totals(self) -> dict:
        revenue = await self.db.scalar(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.payment_status == PaymentStatus.COMPLETED
            )
        )
        return {
            "total_users": await self._count(User),
            "total_apartments": await self._count(Apartment),
            "total_bookings": await self._count(Booking),
            "total_payments": await self._count(Payment),
            "total_revenue": revenue or 0,
        }

    def _month_bucket(self):
        if self.db.bind.dialect.name == "sqlite":
            return func.strftime("%Y-%m", Payment.created_at)
        return func.to_char(func.date_trunc("month", Payment.created_at), "YYYY-MM")

    async def monthly_revenue_since(self, since: datetime) -> Sequence:
        month = self._month_bucket()
        result = await self.db.execute(
            select(
                month.label("month"),
                func.coalesce(func.sum(Payment.amount), 0).label("revenue"),
            )
            .where(
                Payment.payment_status == PaymentStatus.COMPLETED,
                Payment.created_at >= since,
            )
            .group_by(month)
            .order_by(month)
        )
        return result.all()

    async def user_type_distribution(self) -> Sequence:
        result = await self.db.execute(
            select(User.user_type, func.count(User.id).label("count"))
            .group_by(User.user_type)
            .order_by(User.user_type)
        )
        return result.all()

    async def availability_distribution(self) -> Sequence:
        result = await self.db.execute(
            select(Apartment.is_available, func.count(Apartment.id).label("count"))
            .group_by(Apartment.is_available)
            .order_by(Apartment.is_available.desc())
        )
        return result.all()

    async def add_log(
        self,
        *,
        admin_id: uuid.UUID,
        action: str,
        target_type: str,
        target_id: uuid.UUID | None,
        details: dict,
    ) -> AdminLog:
        log = AdminLog(
            admin_id=admin_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details,
        )
        self.db.add(log)
        await self.db.flush()
        return log

    async def list_logs(
        self, predicates: Sequence, offset: int, limit: int
    ) -> tuple[list[AdminLog], int]:
        result = await self.db.execute(
            select(AdminLog)
            .options(selectinload(AdminLog.admin))
            .where(*predicates)
            .order_by(AdminLog.created_at.desc(), AdminLog.id)
            .offset(offset)
            .limit(limit)
        )
        items = list(result.scalars().all())
        total = await self.db.scalar(
            select(func.count()).select_from(AdminLog).where(*predicates)
        )
        return items, total or 0

    async def database_time(self):
        return await self.db.scalar(select(func.now()))
