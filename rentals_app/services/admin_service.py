import logging
import platform
import resource
import time
import uuid
from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from core.check_permission import CheckRolePermission
from core.get_db import atomic
from core.mapper import ORMMapper
from core.paginate import PageRequest, PaginatePage
from core.query_filters import build_predicates
from models.enums import MODERATION_OUTCOMES, AvailabilityStatus
from models.utils import as_money, utcnow
from repos.admin_repo import ADMIN_LOG_FILTERS, AdminRepo
from repos.apartment_repo import ADMIN_APARTMENT_FILTERS, ApartmentRepo
from repos.booking_repo import BookingRepo
from repos.payment_repo import PaymentRepo
from repos.user_repo import UserRepo
from schemas.schema import AdminLogOut, ApartmentOut, RecentBookingOut, UserOut

logger = logging.getLogger(__name__)

PROCESS_STARTED_AT = time.monotonic()
REVENUE_WINDOW_MONTHS = 6
RECENT_ACTIVITY_LIMIT = 5


def money(value) -> float:
    return float(as_money(Decimal(str(value or 0))))


class AdminService:
    def __init__(self, db):
        self.db = db
        self.repo: AdminRepo = AdminRepo(db)
        self.user_repo: UserRepo = UserRepo(db)
        self.apartment_repo: ApartmentRepo = ApartmentRepo(db)
        self.booking_repo: BookingRepo = BookingRepo(db)
        self.payment_repo: PaymentRepo = PaymentRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper = ORMMapper()
        self.paginate: PaginatePage = PaginatePage()

    async def dashboard(self):
        totals = await self.repo.totals()
        totals["total_revenue"] = money(totals["total_revenue"])

        recent_users = await self.user_repo.recent(RECENT_ACTIVITY_LIMIT)
        recent_bookings = await self.booking_repo.recent(RECENT_ACTIVITY_LIMIT)

        since = utcnow() - relativedelta(months=REVENUE_WINDOW_MONTHS)
        monthly = await self.repo.monthly_revenue_since(since)
        user_types = await self.repo.user_type_distribution()
        availability = await self.repo.availability_distribution()

        return {
            "statistics": totals,
            "recent_activity": {
                "users": self.mapper.many_json(recent_users, UserOut),
                "bookings": self.mapper.many_json(recent_bookings, RecentBookingOut),
            },
            "revenue": {
                "monthly": [
                    {"month": str(row.month), "revenue": money(row.revenue)}
                    for row in monthly
                ]
            },
            "distributions": {
                "user_types": [
                    {"user_type": row.user_type.value, "count": row.count}
                    for row in user_types
                ],
                "apartment_status": [
                    {
                        "status": (
                            AvailabilityStatus.AVAILABLE
                            if row.is_available
                            else AvailabilityStatus.UNAVAILABLE
                        ).value,
                        "count": row.count,
                    }
                    for row in availability
                ],
            },
        }

    async def list_apartments(
        self,
        status: AvailabilityStatus | None,
        owner_id: uuid.UUID | None,
        city: str | None,
        page_request: PageRequest,
    ):
        is_available = None
        if status is not None:
            is_available = status == AvailabilityStatus.AVAILABLE

        predicates = build_predicates(
            ADMIN_APARTMENT_FILTERS,
            {"is_available": is_available, "owner_id": owner_id, "city": city},
        )
        items, total = await self.apartment_repo.search(
            predicates, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "apartments",
            self.mapper.many_json(items, ApartmentOut),
            page_request,
            total,
        )

    async def moderate_apartment(self, apartment_id: uuid.UUID, data, current_user):
        is_available, log_action, past_tense = MODERATION_OUTCOMES[data.action]

        async with atomic(self.db):
            apartment = await self.apartment_repo.get_for_update(apartment_id)
            if not apartment:
                raise HTTPException(status_code=404, detail="Apartment not found")
            await self.apartment_repo.set_availability(apartment, is_available)
            await self.repo.add_log(
                admin_id=current_user.id,
                action=log_action,
                target_type="apartment",
                target_id=apartment_id,
                details={"reason": data.reason},
            )

        logger.info(
            f"Apartment {apartment_id} {past_tense} by admin {current_user.id}"
        )
        return {
            "message": f"Apartment {past_tense} successfully",
            "apartment_id": str(apartment_id),
            "action": data.action.value,
        }

    async def payment_analytics(self, period: int):
        since = utcnow() - timedelta(days=period)

        totals = await self.payment_repo.totals_since(since)
        daily = await self.payment_repo.daily_trends_since(since)
        methods = await self.payment_repo.method_distribution_since(since)

        return {
            "period_days": period,
            "statistics": {
                "total_count": totals["total_count"],
                "total_amount": money(totals["total_amount"]),
                "completed_count": totals["completed_count"],
                "completed_amount": money(totals["completed_amount"]),
            },
            "daily_trends": [
                {"date": str(row.date), "count": row.count, "amount": money(row.amount)}
                for row in daily
            ],
            "payment_methods": [
                {
                    "payment_method": row.payment_method,
                    "count": row.count,
                    "amount": money(row.amount),
                }
                for row in methods
            ],
        }

    async def list_logs(self, filters: dict, page_request: PageRequest):
        predicates = build_predicates(ADMIN_LOG_FILTERS, filters)
        items, total = await self.repo.list_logs(
            predicates, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "logs",
            self.mapper.many_json(items, AdminLogOut),
            page_request,
            total,
        )

    async def health(self):
        try:
            db_time = await self.repo.database_time()
        except SQLAlchemyError as e:
            logger.error(f"Health check database error: {e}", exc_info=True)
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "error": "Database unavailable"},
            )

        usage = resource.getrusage(resource.RUSAGE_SELF)
        return {
            "status": "healthy",
            "database": {"status": "connected", "timestamp": str(db_time)},
            "system": {
                "python_version": platform.python_version(),
                "platform": platform.platform(),
                "max_rss_kb": usage.ru_maxrss,
                "uptime": round(time.monotonic() - PROCESS_STARTED_AT, 3),
                "timestamp": utcnow().isoformat(),
            },
        }
