import logging
import uuid

from fastapi import HTTPException

from core.check_permission import CheckRolePermission
from core.get_db import atomic
from core.mapper import ORMMapper
from core.paginate import PageRequest, PaginatePage
from core.query_filters import build_predicates
from core.settings import settings
from models.enums import BOOKING_TRANSITIONS, BookingStatus
from models.models import Booking
from models.utils import as_money, percentage_of, within_tolerance
from repos.apartment_repo import ApartmentRepo
from repos.booking_repo import BOOKING_FILTERS, BookingRepo
from schemas.schema import BookingDetailOut, BookingOut

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, db):
        self.db = db
        self.repo: BookingRepo = BookingRepo(db)
        self.apartment_repo: ApartmentRepo = ApartmentRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper = ORMMapper()
        self.paginate: PaginatePage = PaginatePage()

    async def _page(self, predicates, page_request: PageRequest):
        items, total = await self.repo.search(
            predicates, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "bookings",
            self.mapper.many_json(items, BookingDetailOut),
            page_request,
            total,
        )

    async def _detail(self, booking_id: uuid.UUID) -> dict:
        booking = await self.repo.get_with_relations(booking_id)
        return self.mapper.one_json(booking, BookingDetailOut)

    async def list_for_renter(
        self, current_user, status: BookingStatus | None, page_request: PageRequest
    ):
        predicates = build_predicates(BOOKING_FILTERS, {"status": status})
        predicates.append(Booking.user_id == current_user.id)
        return await self._page(predicates, page_request)

    async def list_for_owner(
        self, current_user, status: BookingStatus | None, page_request: PageRequest
    ):
        await self.permission.check_owner(current_user)
        predicates = build_predicates(BOOKING_FILTERS, {"status": status})
        predicates.append(Booking.owner_id == current_user.id)
        return await self._page(predicates, page_request)

    async def list_all(self, filters: dict, page_request: PageRequest):
        return await self._page(build_predicates(BOOKING_FILTERS, filters), page_request)

    async def get_booking(self, booking_id: uuid.UUID, current_user):
        booking = await self.repo.get_with_relations(booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        if current_user.id not in (
            booking.user_id,
            booking.owner_id,
        ) and not self.permission.is_admin(current_user):
            raise HTTPException(status_code=403, detail="Access denied")

        return {"booking": self.mapper.one_json(booking, BookingDetailOut)}

    async def create_booking(self, data, current_user):
        await self.permission.check_student(current_user)

        async with atomic(self.db):
            apartment = await self.apartment_repo.get_for_update(data.apartment_id)
            if not apartment:
                raise HTTPException(status_code=404, detail="Apartment not found")
            if not apartment.is_available:
                raise HTTPException(status_code=400, detail="Apartment is not available")

            if await self.repo.has_active_booking(current_user.id, apartment.id):
                raise HTTPException(
                    status_code=400,
                    detail="You already have a booking for this apartment",
                )

            expected = percentage_of(data.total_amount, apartment.deposit_percentage)
            if not within_tolerance(
                data.deposit_amount, expected, settings.AMOUNT_TOLERANCE
            ):
                raise HTTPException(
                    status_code=400,
                    detail=(
                        f"Deposit amount should be {apartment.deposit_percentage}% "
                        f"of total amount (${as_money(expected)})"
                    ),
                )

            booking = await self.repo.create(
                user_id=current_user.id,
                apartment_id=apartment.id,
                owner_id=apartment.owner_id,
                move_in_date=data.move_in_date,
                move_out_date=data.move_out_date,
                total_amount=as_money(data.total_amount),
                deposit_amount=as_money(data.deposit_amount),
                status=BookingStatus.PENDING,
            )

        logger.info(
            f"Booking {booking.id} created by {current_user.id} for apartment {apartment.id}"
        )
        return {
            "message": "Booking created successfully",
            "booking": self.mapper.one_json(booking, BookingOut),
        }

    async def update_status(self, booking_id: uuid.UUID, data, current_user):
        new_status = data.status

        async with atomic(self.db):
            booking = await self.repo.get_for_update(booking_id)
            if not booking:
                raise HTTPException(status_code=404, detail="Booking not found")

            await self.permission.check_owner_or_admin(current_user, booking.owner_id)

            if new_status not in BOOKING_TRANSITIONS[booking.status]:
                raise HTTPException(
                    status_code=400,
                    detail=(
                        f"Cannot change booking status from "
                        f"{booking.status.value} to {new_status.value}"
                    ),
                )

            await self.repo.set_status(booking, new_status)
            if new_status == BookingStatus.CONFIRMED:
                apartment = await self.apartment_repo.get_for_update(
                    booking.apartment_id
                )
                await self.apartment_repo.set_availability(apartment, False)

        logger.info(f"Booking {booking_id} moved to {new_status.value} by {current_user.id}")
        return {
            "message": "Booking status updated successfully",
            "booking": await self._detail(booking_id),
        }

    async def cancel_booking(self, booking_id: uuid.UUID, current_user):
        await self.permission.check_student(current_user)

        async with atomic(self.db):
            booking = await self.repo.get_for_update(booking_id)
            if not booking:
                raise HTTPException(status_code=404, detail="Booking not found")
            if booking.user_id != current_user.id:
                raise HTTPException(status_code=403, detail="Access denied")
            if booking.status != BookingStatus.PENDING:
                raise HTTPException(
                    status_code=400, detail="Only pending bookings can be cancelled"
                )
            await self.repo.set_status(booking, BookingStatus.CANCELLED)

        logger.info(f"Booking {booking_id} cancelled by renter {current_user.id}")
        return {
            "message": "Booking cancelled successfully",
            "booking": await self._detail(booking_id),
        }
