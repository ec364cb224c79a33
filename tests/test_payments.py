import json
import logging
import uuid

import pytest
from sqlalchemy import select

from conftest import STUB_SIGNATURE, auth
from fintechs.gateway import GatewayError
from models.enums import BookingStatus, PaymentStatus
from models.models import AdminLog, Apartment, Booking, Payment


@pytest.fixture
async def pending_booking(client, student, owner, make_apartment):
    apartment = await make_apartment(owner)
    res = await client.post(
        "/bookings",
        json={
            "apartment_id": str(apartment.id),
            "move_in_date": "2026-09-01",
            "total_amount": 12000,
            "deposit_amount": 2400,
        },
        headers=auth(student),
    )
    return res.json()["booking"]


async def start_intent(client, student, booking, amount=2400):
    return await client.post(
        "/payments/create-intent",
        json={"booking_id": booking["id"], "amount": amount},
        headers=auth(student),
    )


async def pay(client, gateway, student, booking):
    res = await start_intent(client, student, booking)
    intent_id = res.json()["payment_intent_id"]
    gateway.succeed(intent_id)
    res = await client.post(
        "/payments/confirm",
        json={"payment_intent_id": intent_id, "booking_id": booking["id"]},
        headers=auth(student),
    )
    assert res.status_code == 200, res.text
    return res.json()["payment"]


async def test_create_intent_stores_intent_on_booking(
    client, gateway, student, pending_booking
):
    res = await start_intent(client, student, pending_booking)

    assert res.status_code == 200
    body = res.json()
    intent = gateway.intents[body["payment_intent_id"]]
    assert body["client_secret"] == intent.client_secret
    assert intent.amount == 240000
    assert intent.currency == "usd"
    assert intent.metadata == {
        "booking_id": pending_booking["id"],
        "user_id": str(student.id),
        "type": "deposit",
    }

    res = await client.get(f"/bookings/{pending_booking['id']}", headers=auth(student))
    assert res.json()["booking"]["payment_intent_id"] == body["payment_intent_id"]


async def test_create_intent_amount_must_match_deposit(
    client, student, pending_booking
):
    res = await start_intent(client, student, pending_booking, amount=2000)

    assert res.status_code == 400
    assert res.json() == {"error": "Amount must be exactly $2400.00"}


async def test_create_intent_for_someone_elses_booking(
    client, make_user, pending_booking
):
    other = await make_user()

    res = await start_intent(client, other, pending_booking)

    assert res.status_code == 403


async def test_create_intent_unknown_booking(client, student):
    res = await client.post(
        "/payments/create-intent",
        json={"booking_id": str(uuid.uuid4()), "amount": 10},
        headers=auth(student),
    )

    assert res.status_code == 404


async def test_unconfigured_gateway_is_503(client, gateway, student, pending_booking):
    gateway.configured = False

    res = await start_intent(client, student, pending_booking)

    assert res.status_code == 503
    assert res.json() == {"error": "Payment processing is not configured"}


async def test_confirm_requires_succeeded_intent(client, student, pending_booking):
    res = await start_intent(client, student, pending_booking)

    res = await client.post(
        "/payments/confirm",
        json={
            "payment_intent_id": res.json()["payment_intent_id"],
            "booking_id": pending_booking["id"],
        },
        headers=auth(student),
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Payment has not been completed"}


async def test_confirm_with_foreign_intent_is_404(
    client, gateway, student, pending_booking
):
    intent = await gateway.create_intent(
        amount_cents=100, currency="usd", payment_method_types=["card"], metadata={}
    )
    gateway.succeed(intent.id)

    res = await client.post(
        "/payments/confirm",
        json={"payment_intent_id": intent.id, "booking_id": pending_booking["id"]},
        headers=auth(student),
    )

    assert res.status_code == 404


async def test_gateway_errors_surface_as_502(client, student, pending_booking):
    res = await client.post(
        "/payments/confirm",
        json={"payment_intent_id": "pi_missing", "booking_id": pending_booking["id"]},
        headers=auth(student),
    )

    assert res.status_code == 502


async def test_deposit_flow_confirm_then_refund(
    client, db, gateway, student, admin, pending_booking
):
    payment = await pay(client, gateway, student, pending_booking)

    assert payment["payment_status"] == "completed"
    assert payment["amount"] == 2400.0
    assert payment["payment_method"] == "card"

    res = await client.get(f"/bookings/{pending_booking['id']}", headers=auth(student))
    assert res.json()["booking"]["status"] == "confirmed"
    apartment_id = uuid.UUID(pending_booking["apartment_id"])
    apartment = await db.scalar(
        select(Apartment)
        .where(Apartment.id == apartment_id)
        .execution_options(populate_existing=True)
    )
    assert apartment.is_available is False

    res = await client.post(
        f"/payments/{payment['id']}/refund",
        json={"reason": "Student withdrew"},
        headers=auth(admin),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["payment_status"] == "refunded"
    assert body["refund_id"] == gateway.refunds[0].id
    assert gateway.refunds[0].payment_intent_id == payment["stripe_payment_intent_id"]

    res = await client.get(f"/bookings/{pending_booking['id']}", headers=auth(student))
    assert res.json()["booking"]["status"] == "cancelled"
    apartment = await db.scalar(
        select(Apartment)
        .where(Apartment.id == apartment_id)
        .execution_options(populate_existing=True)
    )
    assert apartment.is_available is True

    log = await db.scalar(select(AdminLog).where(AdminLog.action == "payment_refunded"))
    assert log.details["reason"] == "Student withdrew"

    res = await client.post(
        f"/payments/{payment['id']}/refund",
        json={"reason": "again"},
        headers=auth(admin),
    )
    assert res.status_code == 400
    assert res.json() == {"error": "Only completed payments can be refunded"}


async def test_confirm_twice_is_rejected(client, gateway, student, pending_booking):
    payment = await pay(client, gateway, student, pending_booking)

    res = await client.post(
        "/payments/confirm",
        json={
            "payment_intent_id": payment["stripe_payment_intent_id"],
            "booking_id": pending_booking["id"],
        },
        headers=auth(student),
    )

    assert res.status_code == 400
    assert res.json() == {"error": "Booking is not in pending status"}


async def test_refund_requires_admin_and_reason(
    client, gateway, student, admin, pending_booking
):
    payment = await pay(client, gateway, student, pending_booking)
    url = f"/payments/{payment['id']}/refund"

    res = await client.post(url, json={"reason": "x"}, headers=auth(student))
    assert res.status_code == 403

    res = await client.post(url, json={}, headers=auth(admin))
    assert res.status_code == 400

    res = await client.post(
        f"/payments/{uuid.uuid4()}/refund", json={"reason": "x"}, headers=auth(admin)
    )
    assert res.status_code == 404


async def test_history_and_detail(
    client, gateway, student, admin, make_user, pending_booking
):
    payment = await pay(client, gateway, student, pending_booking)

    res = await client.get("/payments/history", headers=auth(student))
    body = res.json()
    assert body["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}
    entry = body["payments"][0]
    assert entry["booking"]["move_in_date"] == "2026-09-01"
    assert entry["booking"]["apartment"]["title"] == "Sunny studio"

    res = await client.get(f"/payments/{payment['id']}", headers=auth(admin))
    assert res.status_code == 200
    assert res.json()["payment"]["user"]["first_name"] == student.first_name

    stranger = await make_user()
    res = await client.get(f"/payments/{payment['id']}", headers=auth(stranger))
    assert res.status_code == 403

    res = await client.get(f"/payments/{uuid.uuid4()}", headers=auth(admin))
    assert res.status_code == 404


async def test_webhook_acknowledges_signed_events(client):
    payload = json.dumps(
        {
            "id": "evt_1",
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_1"}},
        }
    )

    res = await client.post(
        "/payments/webhook",
        content=payload,
        headers={"stripe-signature": STUB_SIGNATURE},
    )

    assert res.status_code == 200
    assert res.json() == {"received": True}


async def test_webhook_rejects_bad_signature(client):
    res = await client.post(
        "/payments/webhook",
        content=b'{"type": "payment_intent.succeeded"}',
        headers={"stripe-signature": "t=1,v1=forged"},
    )

    assert res.status_code == 400
    assert res.json()["error"].startswith("Webhook Error")


async def test_webhook_without_secret_is_503(client, gateway):
    gateway.webhook_secret = None

    res = await client.post("/payments/webhook", content=b"{}")

    assert res.status_code == 503


async def test_failed_refund_leaves_rows_untouched(
    client, db, gateway, student, admin, pending_booking, monkeypatch
):
    payment = await pay(client, gateway, student, pending_booking)

    async def declined(**kwargs):
        raise GatewayError("card_declined")

    monkeypatch.setattr(gateway, "create_refund", declined)

    res = await client.post(
        f"/payments/{payment['id']}/refund",
        json={"reason": "Student withdrew"},
        headers=auth(admin),
    )

    assert res.status_code == 502
    assert res.json() == {"error": "Payment provider error: card_declined"}

    row = await db.scalar(
        select(Payment)
        .where(Payment.id == uuid.UUID(payment["id"]))
        .execution_options(populate_existing=True)
    )
    assert row.payment_status == PaymentStatus.COMPLETED
    booking = await db.scalar(
        select(Booking)
        .where(Booking.id == uuid.UUID(pending_booking["id"]))
        .execution_options(populate_existing=True)
    )
    assert booking.status == BookingStatus.CONFIRMED
    apartment = await db.scalar(
        select(Apartment)
        .where(Apartment.id == booking.apartment_id)
        .execution_options(populate_existing=True)
    )
    assert apartment.is_available is False
    log = await db.scalar(select(AdminLog).where(AdminLog.action == "payment_refunded"))
    assert log is None


async def test_refund_with_unconfigured_gateway_is_503(
    client, gateway, student, admin, pending_booking
):
    payment = await pay(client, gateway, student, pending_booking)
    gateway.configured = False

    res = await client.post(
        f"/payments/{payment['id']}/refund",
        json={"reason": "Student withdrew"},
        headers=auth(admin),
    )

    assert res.status_code == 503
    assert res.json() == {"error": "Payment processing is not configured"}

    res = await client.get(f"/payments/{payment['id']}", headers=auth(admin))
    assert res.json()["payment"]["payment_status"] == "completed"


async def test_webhook_logs_booking_of_succeeded_intent(client, caplog):
    caplog.set_level(logging.INFO, logger="webhooks.service_webhooks")
    payload = json.dumps(
        {
            "id": "evt_2",
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_2", "metadata": {"booking_id": "b-42"}}},
        }
    )

    res = await client.post(
        "/payments/webhook",
        content=payload,
        headers={"stripe-signature": STUB_SIGNATURE},
    )

    assert res.status_code == 200
    assert "Payment succeeded: pi_2 for booking b-42" in caplog.text
