from dataclasses import dataclass, field
from typing import Any, Protocol


class GatewayNotConfigured(Exception):
    """Raised when the payment gateway has no credentials."""


class GatewayError(Exception):
    """Raised when the payment gateway rejects or fails a request."""


class InvalidSignature(Exception):
    """Raised when a webhook payload does not match its signature header."""


@dataclass
class PaymentIntent:
    id: str
    status: str
    amount: int
    currency: str
    client_secret: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


@dataclass
class Refund:
    id: str
    status: str
    payment_intent_id: str


@dataclass
class GatewayEvent:
    id: str
    type: str
    object_id: str | None
    data: dict[str, Any] = field(default_factory=dict)


class PaymentGateway(Protocol):
    @property
    def configured(self) -> bool: ...

    @property
    def webhook_configured(self) -> bool: ...

    async def create_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        payment_method_types: list[str],
        metadata: dict[str, str],
    ) -> PaymentIntent: ...

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent: ...

    async def create_refund(
        self, *, payment_intent_id: str, reason: str
    ) -> Refund: ...

    def construct_event(self, payload: bytes, signature: str | None) -> GatewayEvent: ...
