import logging

from fastapi import HTTPException, Request

from fintechs.gateway import GatewayNotConfigured, InvalidSignature, PaymentGateway

logger = logging.getLogger(__name__)


class PaymentWebhooks:
    def __init__(self, request: Request, gateway: PaymentGateway):
        self.request = request
        self.gateway = gateway

    async def stripe_webhook(self):
        raw_body = await self.request.body()
        signature = self.request.headers.get("stripe-signature")

        try:
            event = self.gateway.construct_event(raw_body, signature)
        except GatewayNotConfigured:
            raise HTTPException(
                status_code=503, detail="Payment processing is not configured"
            )
        except InvalidSignature as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")

        if event.type == "payment_intent.succeeded":
            metadata = event.data.get("metadata") or {}
            logger.info(
                f"Payment succeeded: {event.object_id} "
                f"for booking {metadata.get('booking_id')}"
            )
        elif event.type == "payment_intent.payment_failed":
            error = event.data.get("last_payment_error") or {}
            logger.info(f"Payment failed: {event.object_id}: {error.get('message')}")
        else:
            logger.info(f"Unhandled event type: {event.type}")

        return {"received": True}
