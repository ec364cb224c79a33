import json
import logging

import stripe
from fastapi import Request

from core.asyncio_threads import AsyncioBaseService
from core.breaker import CircuitBreaker
from core.settings import settings

from .gateway import (
    GatewayError,
    GatewayEvent,
    GatewayNotConfigured,
    InvalidSignature,
    PaymentGateway,
    PaymentIntent,
    Refund,
)

logger = logging.getLogger(__name__)


class StripeGateway(AsyncioBaseService):
    """Stripe payment intents and refunds.

    The API key is passed on every call instead of being set on the
    ``stripe`` module, so several gateways (or none) can coexist in one
    process. SDK calls are blocking and run in the default executor.
    """

    def __init__(
        self,
        api_key: str | None,
        webhook_secret: str | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.breaker = breaker or CircuitBreaker(
            name="stripe",
            failure_threshold=settings.GATEWAY_FAILURE_THRESHOLD,
            base_recovery_time=settings.GATEWAY_RECOVERY_SECONDS,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def webhook_configured(self) -> bool:
        return bool(self.api_key and self.webhook_secret)

    async def _call(self, func, *args, **kwargs):
        if not self.configured:
            raise GatewayNotConfigured("Stripe API key is not configured")

        async def _run():
            return await self.run_blocking(func, *args, api_key=self.api_key, **kwargs)

        try:
            return await self.breaker.call(_run)
        except stripe.StripeError as e:
            message = getattr(e, "user_message", None) or str(e)
            raise GatewayError(message) from e

    @staticmethod
    def _intent(obj) -> PaymentIntent:
        return PaymentIntent(
            id=obj.id,
            status=obj.status,
            amount=obj.amount,
            currency=obj.currency,
            client_secret=getattr(obj, "client_secret", None),
            metadata=dict(getattr(obj, "metadata", None) or {}),
        )

    async def create_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        payment_method_types: list[str],
        metadata: dict[str, str],
    ) -> PaymentIntent:
        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=amount_cents,
            currency=currency,
            payment_method_types=payment_method_types,
            metadata=metadata,
        )
        logger.info(f"Created payment intent {intent.id} for {amount_cents} {currency}")
        return self._intent(intent)

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        intent = await self._call(stripe.PaymentIntent.retrieve, intent_id)
        return self._intent(intent)

    async def create_refund(self, *, payment_intent_id: str, reason: str) -> Refund:
        refund = await self._call(
            stripe.Refund.create,
            payment_intent=payment_intent_id,
            reason=reason,
        )
        logger.info(f"Created refund {refund.id} for {payment_intent_id}")
        return Refund(
            id=refund.id,
            status=refund.status,
            payment_intent_id=payment_intent_id,
        )

    def construct_event(self, payload: bytes, signature: str | None) -> GatewayEvent:
        if not self.webhook_configured:
            raise GatewayNotConfigured("Stripe webhook secret is not configured")
        if not signature:
            raise InvalidSignature("Missing stripe-signature header")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature(str(e)) from e
        except ValueError as e:
            raise InvalidSignature(f"Invalid payload: {e}") from e

        event = json.loads(payload)
        obj = event.get("data", {}).get("object", {}) or {}
        return GatewayEvent(
            id=event.get("id", ""),
            type=event.get("type", ""),
            object_id=obj.get("id"),
            data=obj,
        )


def build_payment_gateway() -> StripeGateway:
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
    )


def get_payment_gateway(request: Request) -> PaymentGateway:
    """Gateway attached to the application at startup.

    Built lazily when the app runs without its lifespan hook.
    """
    gateway = getattr(request.app.state, "payment_gateway", None)
    if gateway is None:
        gateway = build_payment_gateway()
        request.app.state.payment_gateway = gateway
    return gateway
