"""HTTP tests for reservation payments, refunds and payment intent confirmation."""

import json
from datetime import datetime, timedelta, timezone

from castbooking.domain.entities.reservation import ReservationStatus
from castbooking.infrastructure.payments.stripe_webhook import StripeWebhookParser

START = datetime(2099, 2, 1, 10, 0, tzinfo=timezone.utc)
END = START + timedelta(hours=1)


def paid_booking(**overrides) -> dict:
    body = {
        "customerId": "cust-1",
        "staffId": "cast-1",
        "serviceId": "course-60",
        "startTime": START.isoformat(),
        "endTime": END.isoformat(),
    }
    body.update(overrides)
    return body


def test_pay_and_confirm(client):
    response = client.post("/api/v1/reservations/payments", json=paid_booking())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["reservation"]["status"] == "confirmed"
    assert body["reservation"]["paymentStatus"] == "PAID"
    assert body["transaction"]["status"] == "completed"
    assert body["transaction"]["amount"] == "8000"


def test_declined_card_returns_402(client, api_bundle):
    api_bundle["providers"]["stripe"].decline_reason = "Card declined"

    response = client.post("/api/v1/reservations/payments", json=paid_booking())

    assert response.status_code == 402
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Payment failed: Card declined"
    assert body["reservation"]["status"] == "cancelled"
    assert body["reservation"]["paymentStatus"] == "FAILED"


def test_conflicting_payment_booking_returns_409(client):
    client.post("/api/v1/reservations/payments", json=paid_booking())

    response = client.post("/api/v1/reservations/payments", json=paid_booking())

    assert response.status_code == 409
    assert len(response.json()["conflicts"]) == 1


def test_invalid_payment_booking_returns_400(client):
    response = client.post(
        "/api/v1/reservations/payments", json=paid_booking(customerId="ghost")
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Customer not found"


def test_cash_with_manual_provider(client):
    response = client.post(
        "/api/v1/reservations/payments",
        json=paid_booking(paymentMethod="cash", paymentProvider="manual"),
    )

    assert response.status_code == 201
    assert response.json()["transaction"]["provider"] == "manual"


def test_payment_intent_then_confirm(client):
    created = client.post(
        "/api/v1/reservations/payments", json=paid_booking(usePaymentIntent=True)
    )

    assert created.status_code == 201
    body = created.json()
    assert body["reservation"]["status"] == "pending"
    assert body["paymentIntent"]["clientSecret"]

    confirmed = client.post(f"/api/v1/payments/intents/{body['paymentIntent']['id']}/confirm")

    assert confirmed.status_code == 200
    assert confirmed.json()["reservation"]["status"] == "confirmed"
    assert confirmed.json()["reservation"]["paymentStatus"] == "PAID"


def test_payment_intent_declined_on_confirm(client, api_bundle):
    body = client.post(
        "/api/v1/reservations/payments", json=paid_booking(usePaymentIntent=True)
    ).json()
    api_bundle["providers"]["stripe"].decline_reason = "Insufficient funds"

    response = client.post(f"/api/v1/payments/intents/{body['paymentIntent']['id']}/confirm")

    assert response.status_code == 402
    assert response.json()["error"] == "Payment failed: Insufficient funds"


def test_confirm_unknown_intent_returns_404(client):
    response = client.post("/api/v1/payments/intents/pi_missing/confirm")

    assert response.status_code == 404


def test_reservation_payments_history(client):
    paid = client.post("/api/v1/reservations/payments", json=paid_booking()).json()

    response = client.get(f"/api/v1/reservations/{paid['reservation']['id']}/payments")

    assert response.status_code == 200
    assert [p["id"] for p in response.json()["payments"]] == [paid["transaction"]["id"]]


def test_full_refund(client):
    paid = client.post("/api/v1/reservations/payments", json=paid_booking()).json()

    response = client.post(f"/api/v1/reservations/{paid['reservation']['id']}/refund")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["refundAmount"] == "8000"
    assert body["reservation"]["status"] == "cancelled"
    assert body["reservation"]["paymentStatus"] == "REFUNDED"


def test_partial_refund(client):
    paid = client.post("/api/v1/reservations/payments", json=paid_booking()).json()

    response = client.post(
        f"/api/v1/reservations/{paid['reservation']['id']}/refund", json={"refundAmount": 3000}
    )

    assert response.status_code == 200
    assert response.json()["reservation"]["paymentStatus"] == "PARTIALLY_REFUNDED"


def test_refund_without_payment_returns_400(client):
    created = client.post("/api/v1/reservations", json=paid_booking()).json()

    response = client.post(f"/api/v1/reservations/{created['id']}/refund")

    assert response.status_code == 400
    assert response.json()["error"] == f"No completed payment found for reservation {created['id']}"


def test_completed_reservation_refund_returns_400(client, api_bundle):
    paid = client.post("/api/v1/reservations/payments", json=paid_booking()).json()
    reservation_id = paid["reservation"]["id"]
    api_bundle["reservation_repo"].reservations[reservation_id].status = ReservationStatus.COMPLETED

    response = client.post(f"/api/v1/reservations/{reservation_id}/refund")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_RESERVATION_STATUS"
    transaction = api_bundle["payment_repo"].transactions[paid["transaction"]["id"]]
    assert transaction.refund_amount is None


def stripe_event(event_type: str, obj: dict) -> bytes:
    return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj}}).encode()


def test_webhook_settles_payment_intent(client, api_bundle):
    body = client.post(
        "/api/v1/reservations/payments", json=paid_booking(usePaymentIntent=True)
    ).json()
    provider_id = api_bundle["payment_repo"].intents[body["paymentIntent"]["id"]].provider_id

    response = client.post(
        "/api/v1/payments/webhook",
        content=stripe_event("payment_intent.succeeded", {"id": provider_id}),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}
    reservation = client.get(f"/api/v1/reservations/{body['reservation']['id']}").json()
    assert reservation["status"] == "confirmed"
    assert reservation["paymentStatus"] == "PAID"


def test_webhook_failed_payment_cancels_reservation(client, api_bundle):
    body = client.post(
        "/api/v1/reservations/payments", json=paid_booking(usePaymentIntent=True)
    ).json()
    provider_id = api_bundle["payment_repo"].intents[body["paymentIntent"]["id"]].provider_id

    response = client.post(
        "/api/v1/payments/webhook",
        content=stripe_event("payment_intent.payment_failed", {"id": provider_id}),
    )

    assert response.status_code == 200
    reservation = client.get(f"/api/v1/reservations/{body['reservation']['id']}").json()
    assert reservation["status"] == "cancelled"
    assert reservation["paymentStatus"] == "FAILED"


def test_webhook_unknown_intent_returns_404(client):
    response = client.post(
        "/api/v1/payments/webhook",
        content=stripe_event("payment_intent.succeeded", {"id": "pi_unknown"}),
    )

    assert response.status_code == 404


def test_webhook_invalid_body_returns_400(client):
    response = client.post("/api/v1/payments/webhook", content=b"not json")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PAYMENT_WEBHOOK"


def test_webhook_with_signing_secret_requires_signature(client, api_bundle):
    api_bundle["webhook_parser"] = StripeWebhookParser("whsec_test")

    response = client.post(
        "/api/v1/payments/webhook",
        content=stripe_event("payment_intent.succeeded", {"id": "pi_1"}),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Missing Stripe-Signature header"
