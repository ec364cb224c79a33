import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.paginate import PageParams, PageRequest
from core.root_routes import alias_root_routes
from core.safe_handler import safe_handler
from models.enums import BookingStatus
from models.models import User
from schemas.schema import BookingCreate, BookingStatusUpdate
from services.booking_service import BookingService

router = APIRouter(tags=["Bookings"])

booking_page = PageParams(default_limit=20)


@cbv(router=router)
class BookingRoutes:
    @router.get("/")
    @safe_handler
    async def my_bookings(
        self,
        request: Request,
        status: Optional[BookingStatus] = None,
        page_request: PageRequest = Depends(booking_page),
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BookingService(db).list_for_renter(
            current_user=current_user, status=status, page_request=page_request
        )

    @router.get("/owner")
    @safe_handler
    async def owner_bookings(
        self,
        request: Request,
        status: Optional[BookingStatus] = None,
        page_request: PageRequest = Depends(booking_page),
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BookingService(db).list_for_owner(
            current_user=current_user, status=status, page_request=page_request
        )

    @router.get("/{booking_id}")
    @safe_handler
    async def get_booking(
        self,
        request: Request,
        booking_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BookingService(db).get_booking(
            booking_id=booking_id, current_user=current_user
        )

    @router.post("/", status_code=201)
    @safe_handler
    async def create(
        self,
        request: Request,
        data: BookingCreate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BookingService(db).create_booking(
            data=data, current_user=current_user
        )

    @router.put("/{booking_id}/status")
    @safe_handler
    async def update_status(
        self,
        request: Request,
        booking_id: uuid.UUID,
        data: BookingStatusUpdate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BookingService(db).update_status(
            booking_id=booking_id, data=data, current_user=current_user
        )

    @router.put("/{booking_id}/cancel")
    @safe_handler
    async def cancel(
        self,
        request: Request,
        booking_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
    ):
        return await BookingService(db).cancel_booking(
            booking_id=booking_id, current_user=current_user
        )


alias_root_routes(router)
