import uuid

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.paginate import PageParams, PageRequest
from core.safe_handler import safe_handler
from fintechs.gateway import PaymentGateway
from fintechs.stripe_gateway import get_payment_gateway
from models.models import User
from schemas.schema import PaymentConfirm, PaymentIntentCreate, RefundRequest
from services.payment_service import PaymentService
from webhooks.service_webhooks import PaymentWebhooks

router = APIRouter(tags=["Payments"])

payment_page = PageParams(default_limit=20)


@cbv(router=router)
class PaymentRoutes:
    @router.post("/create-intent")
    @safe_handler
    async def create_intent(
        self,
        request: Request,
        data: PaymentIntentCreate,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        return await PaymentService(db, gateway).create_intent(
            data=data, current_user=current_user
        )

    @router.post("/confirm")
    @safe_handler
    async def confirm(
        self,
        request: Request,
        data: PaymentConfirm,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        return await PaymentService(db, gateway).confirm_payment(
            data=data, current_user=current_user
        )

    @router.get("/history")
    @safe_handler
    async def history(
        self,
        request: Request,
        page_request: PageRequest = Depends(payment_page),
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        return await PaymentService(db, gateway).payment_history(
            current_user=current_user, page_request=page_request
        )

    @router.post("/webhook")
    @safe_handler
    async def stripe_webhook(
        self,
        request: Request,
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        return await PaymentWebhooks(request=request, gateway=gateway).stripe_webhook()

    @router.get("/{payment_id}")
    @safe_handler
    async def get_payment(
        self,
        request: Request,
        payment_id: uuid.UUID,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        return await PaymentService(db, gateway).get_payment(
            payment_id=payment_id, current_user=current_user
        )

    @router.post("/{payment_id}/refund")
    @safe_handler
    async def refund(
        self,
        request: Request,
        payment_id: uuid.UUID,
        data: RefundRequest,
        db: AsyncSession = Depends(get_db_async),
        current_user: User = Depends(get_current_user),
        gateway: PaymentGateway = Depends(get_payment_gateway),
    ):
        return await PaymentService(db, gateway).refund_payment(
            payment_id=payment_id, data=data, current_user=current_user
        )
