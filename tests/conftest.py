import json
import os
import uuid
from datetime import date
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./bootstrap.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app import app
from core.get_db import Base, get_db_async
from fintechs.gateway import (
    GatewayError,
    GatewayEvent,
    GatewayNotConfigured,
    InvalidSignature,
    PaymentIntent,
    Refund,
)
from fintechs.stripe_gateway import get_payment_gateway
from models.enums import UserRole
from models.models import Apartment, ApartmentImage, User
from security.tokens import create_access_token

STUB_SIGNATURE = "t=1,v1=stub"


class StubPaymentGateway:
    def __init__(self, configured: bool = True, webhook_secret: str | None = "whsec_test"):
        self.configured = configured
        self.webhook_secret = webhook_secret
        self.intents: dict[str, PaymentIntent] = {}
        self.refunds: list[Refund] = []

    @property
    def webhook_configured(self) -> bool:
        return bool(self.configured and self.webhook_secret)

    def _require(self):
        if not self.configured:
            raise GatewayNotConfigured("stub gateway disabled")

    async def create_intent(self, *, amount_cents, currency, payment_method_types, metadata):
        self._require()
        intent_id = f"pi_{uuid.uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount_cents,
            currency=currency,
            client_secret=f"{intent_id}_secret_stub",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        return intent

    def succeed(self, intent_id: str):
        self.intents[intent_id].status = "succeeded"

    async def retrieve_intent(self, intent_id):
        self._require()
        if intent_id not in self.intents:
            raise GatewayError(f"No such payment_intent: '{intent_id}'")
        return self.intents[intent_id]

    async def create_refund(self, *, payment_intent_id, reason):
        self._require()
        refund = Refund(
            id=f"re_{uuid.uuid4().hex[:16]}",
            status="succeeded",
            payment_intent_id=payment_intent_id,
        )
        self.refunds.append(refund)
        return refund

    def construct_event(self, payload, signature):
        if not self.webhook_configured:
            raise GatewayNotConfigured("stub webhook disabled")
        if signature != STUB_SIGNATURE:
            raise InvalidSignature("No signatures found matching the expected signature")
        event = json.loads(payload)
        obj = event.get("data", {}).get("object", {})
        return GatewayEvent(
            id=event.get("id", ""),
            type=event.get("type", ""),
            object_id=obj.get("id"),
            data=obj,
        )


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rentals.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway():
    return StubPaymentGateway()


@pytest.fixture
async def client(session_factory, gateway):
    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_async] = override_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    async def _make(user_type: UserRole = UserRole.STUDENT, **fields) -> User:
        suffix = uuid.uuid4().hex[:8]
        user = User(
            email=fields.pop("email", f"{user_type.value}-{suffix}@example.com"),
            first_name=fields.pop("first_name", user_type.value.title()),
            last_name=fields.pop("last_name", suffix),
            user_type=user_type,
            **fields,
        )
        db.add(user)
        await db.commit()
        return user

    return _make


@pytest.fixture
def make_apartment(db):
    async def _make(owner: User, images=(), **fields) -> Apartment:
        values = {
            "title": "Sunny studio",
            "description": "Close to campus",
            "address": "1 College Ave",
            "city": "Boston",
            "state": "MA",
            "zip_code": "02115",
            "monthly_rent": Decimal("1000.00"),
            "deposit_percentage": 20,
            "min_contract_months": 12,
            "bedrooms": 1,
            "bathrooms": 1,
            "available_from": date(2026, 9, 1),
            "amenities": [],
        }
        values.update(fields)
        apartment = Apartment(owner_id=owner.id, **values)
        db.add(apartment)
        await db.flush()
        for position, url in enumerate(images):
            db.add(
                ApartmentImage(
                    apartment_id=apartment.id,
                    image_url=url,
                    is_primary=position == 0,
                    position=position,
                )
            )
        await db.commit()
        return apartment

    return _make


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def student(make_user):
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def owner(make_user):
    return await make_user(UserRole.OWNER)


@pytest.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN)
