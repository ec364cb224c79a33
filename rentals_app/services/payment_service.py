import logging
import uuid

from fastapi import HTTPException

from core.breaker import CircuitOpenError
from core.check_permission import CheckRolePermission
from core.get_db import atomic
from core.mapper import ORMMapper
from core.paginate import PageRequest, PaginatePage
from core.settings import settings
from fintechs.gateway import GatewayError, GatewayNotConfigured, PaymentGateway
from models.enums import BookingStatus, PaymentStatus
from models.utils import as_money, to_cents, within_tolerance
from repos.admin_repo import AdminRepo
from repos.apartment_repo import ApartmentRepo
from repos.booking_repo import BookingRepo
from repos.payment_repo import PaymentRepo
from schemas.schema import PaymentDetailOut, PaymentOut

logger = logging.getLogger(__name__)

REFUND_REASON = "requested_by_customer"


class PaymentService:
    def __init__(self, db, gateway: PaymentGateway):
        self.db = db
        self.gateway = gateway
        self.repo: PaymentRepo = PaymentRepo(db)
        self.booking_repo: BookingRepo = BookingRepo(db)
        self.apartment_repo: ApartmentRepo = ApartmentRepo(db)
        self.admin_repo: AdminRepo = AdminRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: ORMMapper = ORMMapper()
        self.paginate: PaginatePage = PaginatePage()

    def _require_gateway(self):
        if not self.gateway.configured:
            raise HTTPException(
                status_code=503, detail="Payment processing is not configured"
            )

    async def _call_gateway(self, func, *args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except GatewayNotConfigured:
            raise HTTPException(
                status_code=503, detail="Payment processing is not configured"
            )
        except CircuitOpenError:
            raise HTTPException(
                status_code=503, detail="Payment provider is temporarily unavailable"
            )
        except GatewayError as e:
            logger.error(f"Payment gateway error: {e}")
            raise HTTPException(status_code=502, detail=f"Payment provider error: {e}")

    async def create_intent(self, data, current_user):
        await self.permission.check_student(current_user)

        booking = await self.booking_repo.get_by_id(data.booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.user_id != current_user.id:
            raise HTTPException(status_code=403, detail="Access denied")
        if booking.status != BookingStatus.PENDING:
            raise HTTPException(
                status_code=400, detail="Booking is not in pending status"
            )
        if not within_tolerance(
            data.amount, booking.deposit_amount, settings.AMOUNT_TOLERANCE
        ):
            raise HTTPException(
                status_code=400,
                detail=f"Amount must be exactly ${as_money(booking.deposit_amount)}",
            )
        self._require_gateway()

        intent = await self._call_gateway(
            self.gateway.create_intent,
            amount_cents=to_cents(data.amount),
            currency=settings.STRIPE_CURRENCY,
            payment_method_types=list(data.payment_method_types),
            metadata={
                "booking_id": str(booking.id),
                "user_id": str(current_user.id),
                "type": "deposit",
            },
        )

        async with atomic(self.db):
            locked = await self.booking_repo.get_for_update(booking.id)
            await self.booking_repo.set_payment_intent(locked, intent.id)

        logger.info(f"Payment intent {intent.id} attached to booking {booking.id}")
        return {
            "client_secret": intent.client_secret,
            "payment_intent_id": intent.id,
        }

    async def confirm_payment(self, data, current_user):
        await self.permission.check_student(current_user)
        self._require_gateway()

        intent = await self._call_gateway(
            self.gateway.retrieve_intent, data.payment_intent_id
        )
        if not intent.succeeded:
            raise HTTPException(status_code=400, detail="Payment has not been completed")

        async with atomic(self.db):
            booking = await self.booking_repo.get_for_update(
                data.booking_id, payment_intent_id=data.payment_intent_id
            )
            if not booking:
                raise HTTPException(status_code=404, detail="Booking not found")
            if booking.user_id != current_user.id:
                raise HTTPException(status_code=403, detail="Access denied")
            if booking.status != BookingStatus.PENDING:
                raise HTTPException(
                    status_code=400, detail="Booking is not in pending status"
                )

            payment = await self.repo.create(
                booking_id=booking.id,
                user_id=current_user.id,
                amount=booking.deposit_amount,
                payment_method="card",
                payment_status=PaymentStatus.COMPLETED,
                stripe_payment_intent_id=data.payment_intent_id,
            )
            await self.booking_repo.set_status(booking, BookingStatus.CONFIRMED)
            apartment = await self.apartment_repo.get_for_update(booking.apartment_id)
            await self.apartment_repo.set_availability(apartment, False)

        logger.info(
            f"Payment {payment.id} confirmed for booking {booking.id} "
            f"(intent {data.payment_intent_id})"
        )
        return {
            "message": "Payment confirmed successfully",
            "payment": self.mapper.one_json(payment, PaymentOut),
            "booking_status": BookingStatus.CONFIRMED.value,
        }

    async def payment_history(self, current_user, page_request: PageRequest):
        items, total = await self.repo.list_for_user(
            current_user.id, page_request.offset, page_request.limit
        )
        return self.paginate.page_response(
            "payments",
            self.mapper.many_json(items, PaymentDetailOut),
            page_request,
            total,
        )

    async def get_payment(self, payment_id: uuid.UUID, current_user):
        payment = await self.repo.get_with_relations(payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        await self.permission.check_self_or_admin(current_user, payment.user_id)
        return {"payment": self.mapper.one_json(payment, PaymentDetailOut)}

    async def refund_payment(self, payment_id: uuid.UUID, data, current_user):
        await self.permission.check_admin(current_user)

        async with atomic(self.db):
            payment = await self.repo.get_for_update(payment_id)
            if not payment:
                raise HTTPException(status_code=404, detail="Payment not found")
            if payment.payment_status != PaymentStatus.COMPLETED:
                raise HTTPException(
                    status_code=400, detail="Only completed payments can be refunded"
                )
            self._require_gateway()
            if not payment.stripe_payment_intent_id:
                raise HTTPException(
                    status_code=400, detail="Payment has no payment intent to refund"
                )

            refund = await self._call_gateway(
                self.gateway.create_refund,
                payment_intent_id=payment.stripe_payment_intent_id,
                reason=REFUND_REASON,
            )

            await self.repo.set_status(payment, PaymentStatus.REFUNDED)
            booking = await self.booking_repo.get_for_update(payment.booking_id)
            await self.booking_repo.set_status(booking, BookingStatus.CANCELLED)
            apartment = await self.apartment_repo.get_for_update(booking.apartment_id)
            await self.apartment_repo.set_availability(apartment, True)
            await self.admin_repo.add_log(
                admin_id=current_user.id,
                action="payment_refunded",
                target_type="payment",
                target_id=payment.id,
                details={"reason": data.reason, "refund_id": refund.id},
            )

        logger.info(f"Payment {payment_id} refunded ({refund.id}): {data.reason}")
        return {
            "message": "Refund processed successfully",
            "refund_id": refund.id,
            "payment_status": PaymentStatus.REFUNDED.value,
        }
