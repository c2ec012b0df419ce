"""Integration tests for Payment API endpoints via TestClient."""

import asyncio
import json
import time

import pytest
from protean.utils.globals import current_domain

from bookstore.ordering.order.order import Order, OrderStatus
from bookstore.payments.gateway import FakeGateway, set_gateway
from bookstore.payments.gateway.fake_adapter import FAKE_WEBHOOK_SECRET
from bookstore.payments.gateway.port import compute_signature
from bookstore.payments.payment.payment import Payment, PaymentStatus

PROOF = ("receipt.png", b"\x89PNG bank receipt", "image/png")


@pytest.fixture()
def headers(place, auth_headers):
    # ``place`` registers reader@example.com
    return auth_headers("reader@example.com")


@pytest.fixture()
def admin_headers(create_admin, auth_headers):
    create_admin()
    return auth_headers("admin@example.com")


def _status(order_id):
    return current_domain.repository_for(Order).get(order_id).status


def _signed(client, event_type, resource_id, attributes=None, secret=FAKE_WEBHOOK_SECRET, signed_at=None):
    body = json.dumps(
        {
            "data": {
                "attributes": {
                    "type": event_type,
                    "data": {"id": resource_id, "attributes": attributes or {}},
                }
            }
        }
    ).encode()
    timestamp = str(int(signed_at if signed_at is not None else time.time()))
    signature = compute_signature(secret, timestamp, body)
    return client.post(
        "/api/payment/webhook",
        content=body,
        headers={"Paymongo-Signature": f"t={timestamp},te={signature},li="},
    )


class TestCardPayments:
    def test_create_intent_and_confirm(self, client, gateway, place, headers):
        order = place("credit_card")

        created = client.post("/api/payment/create-intent", json={"order_id": str(order.id)}, headers=headers)
        assert created.status_code == 201, created.text
        intent_id = created.json()["payment_intent_id"]
        assert created.json()["client_key"]

        confirmed = client.post(
            "/api/payment/confirm",
            json={"payment_intent_id": intent_id, "order_id": str(order.id)},
            headers=headers,
        )

        assert confirmed.json() == {"status": "succeeded", "order_status": "completed", "next_action": None}
        status = client.get(f"/api/payment/status/{intent_id}", headers=headers).json()
        assert status["status"] == "succeeded"

    def test_gateway_outage_is_bad_gateway(self, client, gateway, place, headers):
        order = place("credit_card")
        gateway.configure(should_succeed=False, failure_reason="Service unavailable")

        response = client.post("/api/payment/create-intent", json={"order_id": str(order.id)}, headers=headers)

        assert response.status_code == 502
        assert response.json() == {"error": "Service unavailable"}

    def test_configure_endpoint_steers_outcome(self, client, gateway, place, headers):
        order = place("credit_card")
        client.post(
            "/api/payment/gateway/configure",
            json={"should_succeed": True, "intent_outcome": "awaiting_next_action"},
        )
        intent_id = client.post(
            "/api/payment/create-intent", json={"order_id": str(order.id)}, headers=headers
        ).json()["payment_intent_id"]

        confirmed = client.post(
            "/api/payment/confirm",
            json={"payment_intent_id": intent_id, "order_id": str(order.id)},
            headers=headers,
        ).json()

        assert confirmed["status"] == "requires_action"
        assert confirmed["order_status"] == "pending"
        assert confirmed["next_action"]["type"] == "redirect"

    def test_other_customer_cannot_pay(self, client, gateway, place, headers, register_customer, auth_headers):
        order = place("credit_card")
        register_customer(email="other@example.com", username="other")

        response = client.post(
            "/api/payment/create-intent",
            json={"order_id": str(order.id)},
            headers=auth_headers("other@example.com"),
        )

        assert response.status_code == 403


class TestWalletPayments:
    def test_gcash_then_webhooks(self, client, gateway, place, headers):
        order = place("gcash")

        created = client.post("/api/payment/gcash", json={"order_id": str(order.id)}, headers=headers)
        assert created.status_code == 201
        source_id = created.json()["source_id"]
        assert created.json()["checkout_url"].startswith("https://fake.test/sources/")

        assert _signed(client, "source.chargeable", source_id).status_code == 200
        assert _status(order.id) == OrderStatus.PENDING.value

        paid = _signed(client, "payment.paid", "pay_wallet_1", {"source": {"id": source_id, "type": "gcash"}})

        assert paid.json() == {"received": True, "status": "succeeded"}
        assert _status(order.id) == OrderStatus.COMPLETED.value

    def test_maya_on_gcash_order(self, client, gateway, place, headers):
        order = place("gcash")
        response = client.post("/api/payment/maya", json={"order_id": str(order.id)}, headers=headers)
        assert response.status_code == 400


class TestWebhookEndpoint:
    def test_bad_signature(self, client, gateway):
        response = _signed(client, "payment.paid", "pay_1", secret="whsk_wrong")
        assert response.status_code == 401

    def test_replayed_delivery(self, client, gateway):
        response = _signed(client, "payment.paid", "pay_1", signed_at=time.time() - 3600)
        assert response.status_code == 401

    def test_missing_signature(self, client, gateway):
        response = client.post("/api/payment/webhook", content=b"{}")
        assert response.status_code == 401

    def test_unknown_payment_acknowledged(self, client, gateway):
        response = _signed(client, "payment_intent.succeeded", "pi_unknown")
        assert response.json() == {"received": True, "status": None}


class TestManualVerification:
    def test_proof_upload_and_approval(self, client, place, headers, admin_headers):
        order = place("bank_transfer")

        submitted = client.post(
            f"/api/payment/verify/{order.id}",
            files={"paymentProof": PROOF},
            data={"notes": "BDO deposit"},
            headers=headers,
        )
        assert submitted.status_code == 200, submitted.text
        assert submitted.json()["status"] == "processing"
        assert submitted.json()["payment_proof"]["customer_notes"] == "BDO deposit"

        pending = client.get("/api/payment/pending-verifications", headers=admin_headers).json()
        assert [o["id"] for o in pending] == [str(order.id)]

        proof = client.get(f"/api/payment/proof/{order.id}", headers=admin_headers)
        assert proof.content == b"\x89PNG bank receipt"

        approved = client.post(
            f"/api/payment/approve/{order.id}", json={"approved": True, "admin_notes": "Matched"}, headers=admin_headers
        )
        assert approved.json()["status"] == "completed"
        assert approved.json()["access_granted"] is True

    def test_customer_cannot_approve(self, client, place, headers):
        order = place("bank_transfer")
        response = client.post(f"/api/payment/approve/{order.id}", json={"approved": True}, headers=headers)
        assert response.status_code == 403

    def test_proof_must_be_image_or_pdf(self, client, place, headers):
        order = place("bank_transfer")
        response = client.post(
            f"/api/payment/verify/{order.id}",
            files={"paymentProof": ("receipt.txt", b"paid", "text/plain")},
            headers=headers,
        )
        assert response.status_code == 400


class TestRefunds:
    def test_request_and_process_gateway_refund(self, client, gateway, place, headers, admin_headers):
        order = place("credit_card")
        intent_id = client.post(
            "/api/payment/create-intent", json={"order_id": str(order.id)}, headers=headers
        ).json()["payment_intent_id"]
        client.post(
            "/api/payment/confirm",
            json={"payment_intent_id": intent_id, "order_id": str(order.id)},
            headers=headers,
        )

        requested = client.post(
            "/api/payment/refund/request", json={"order_id": str(order.id), "reason": "Duplicate"}, headers=headers
        )
        assert requested.status_code == 200

        processed = client.post("/api/payment/refund/process", json={"order_id": str(order.id)}, headers=admin_headers)

        assert processed.json()["status"] == "refunded"
        assert processed.json()["access_granted"] is False
        payment = current_domain.repository_for(Payment).by_reference(intent_id)
        assert payment.status == PaymentStatus.REFUNDED.value

    def test_refund_of_pending_order(self, client, place, headers):
        order = place("bank_transfer")
        response = client.post(
            "/api/payment/refund/request", json={"order_id": str(order.id), "reason": "Nope"}, headers=headers
        )
        assert response.status_code == 400


class LoopRecordingGateway(FakeGateway):
    """Fake gateway noting whether each call ran on the event loop thread."""

    def __init__(self):
        super().__init__()
        self.on_event_loop = []

    def _check(self):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.on_event_loop.append(False)
        else:
            self.on_event_loop.append(True)
        super()._check()


class TestGatewayCallsLeaveTheEventLoop:
    @pytest.fixture()
    def recorder(self):
        gateway = LoopRecordingGateway()
        set_gateway(gateway)
        return gateway

    def test_card_checkout_and_refund(self, client, recorder, place, headers, admin_headers):
        order = place("credit_card")
        intent_id = client.post(
            "/api/payment/create-intent", json={"order_id": str(order.id)}, headers=headers
        ).json()["payment_intent_id"]
        client.post(
            "/api/payment/confirm",
            json={"payment_intent_id": intent_id, "order_id": str(order.id)},
            headers=headers,
        )
        client.post("/api/payment/refund/request", json={"order_id": str(order.id), "reason": "Dup"}, headers=headers)
        processed = client.post("/api/payment/refund/process", json={"order_id": str(order.id)}, headers=admin_headers)

        assert processed.json()["status"] == "refunded"
        assert len(recorder.on_event_loop) == 3
        assert not any(recorder.on_event_loop)

    def test_wallet_source_and_webhook(self, client, recorder, place, headers):
        order = place("gcash")
        source_id = client.post("/api/payment/gcash", json={"order_id": str(order.id)}, headers=headers).json()[
            "source_id"
        ]

        assert _signed(client, "source.chargeable", source_id).status_code == 200
        assert len(recorder.on_event_loop) == 2
        assert not any(recorder.on_event_loop)
