import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_admin
from core.get_db import get_db_async
from core.paginate import PageParams, PageRequest
from core.safe_handler import safe_handler
from models.enums import AvailabilityStatus, BookingStatus, UserRole
from models.models import User
from schemas.schema import ModerationRequest
from services.admin_service import AdminService
from services.booking_service import BookingService
from services.user_service import UserService

router = APIRouter(tags=["Admin"])

admin_page = PageParams(default_limit=20)
log_page = PageParams(default_limit=50)


@cbv(router=router)
class AdminRoutes:
    db: AsyncSession = Depends(get_db_async)
    current_user: User = Depends(get_current_admin)

    @router.get("/dashboard")
    @safe_handler
    async def dashboard(self, request: Request):
        return await AdminService(self.db).dashboard()

    @router.get("/users")
    @safe_handler
    async def users(
        self,
        request: Request,
        user_type: Optional[UserRole] = None,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page_request: PageRequest = Depends(admin_page),
    ):
        return await UserService(self.db).list_users(
            filters={"user_type": user_type, "search": search, "is_active": is_active},
            page_request=page_request,
        )

    @router.get("/apartments")
    @safe_handler
    async def apartments(
        self,
        request: Request,
        status: Optional[AvailabilityStatus] = None,
        owner_id: Optional[uuid.UUID] = None,
        city: Optional[str] = None,
        page_request: PageRequest = Depends(admin_page),
    ):
        return await AdminService(self.db).list_apartments(
            status=status, owner_id=owner_id, city=city, page_request=page_request
        )

    @router.put("/apartments/{apartment_id}/moderate")
    @safe_handler
    async def moderate(
        self,
        request: Request,
        apartment_id: uuid.UUID,
        data: ModerationRequest,
    ):
        return await AdminService(self.db).moderate_apartment(
            apartment_id=apartment_id, data=data, current_user=self.current_user
        )

    @router.get("/bookings")
    @safe_handler
    async def bookings(
        self,
        request: Request,
        status: Optional[BookingStatus] = None,
        user_id: Optional[uuid.UUID] = None,
        owner_id: Optional[uuid.UUID] = None,
        page_request: PageRequest = Depends(admin_page),
    ):
        return await BookingService(self.db).list_all(
            filters={"status": status, "user_id": user_id, "owner_id": owner_id},
            page_request=page_request,
        )

    @router.get("/payments/analytics")
    @safe_handler
    async def payment_analytics(
        self,
        request: Request,
        period: int = Query(30, ge=1, le=365),
    ):
        return await AdminService(self.db).payment_analytics(period=period)

    @router.get("/logs")
    @safe_handler
    async def logs(
        self,
        request: Request,
        action: Optional[str] = None,
        admin_id: Optional[uuid.UUID] = None,
        page_request: PageRequest = Depends(log_page),
    ):
        return await AdminService(self.db).list_logs(
            filters={"action": action, "admin_id": admin_id},
            page_request=page_request,
        )

    @router.get("/health")
    @safe_handler
    async def health(self, request: Request):
        return await AdminService(self.db).health()
