"""Tests for quota, checkout and the Stripe webhook."""

import time
from unittest.mock import MagicMock, patch

import pytest
import stripe

from fakes import checkout_completed_payload, stripe_signature
from web.deps import get_config
from web.user_store import count_events, get_persona_quota


@pytest.fixture
def stripe_env(client, monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
    monkeypatch.setenv("APP_URL", "https://personasim.example.com")
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def _completed_event(**session):
    return {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": session},
    }


def _post_webhook(client, signature="t=1,v1=abc"):
    headers = {"stripe-signature": signature} if signature else {}
    return client.post("/api/billing/webhook", content=b'{"id": "evt_1"}', headers=headers)


def test_quota(client, auth_headers):
    res = client.get("/api/billing/quota", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {
        "persona_quota": 2,
        "persona_count": 0,
        "remaining": 2,
        "price_pounds": 2.0,
        "currency": "gbp",
        "personas_per_purchase": 1,
        "stripe_enabled": False,
    }


def test_simulated_checkout(client, auth_headers):
    res = client.post("/api/billing/checkout", headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is True
    assert data["new_quota"] == 3
    assert data["message"] == "Payment successful (Simulated). 1 persona slot(s) added."
    assert data["checkout_url"] is None
    assert get_persona_quota("user-123", 2) == 3


def test_stripe_checkout(client, auth_headers, stripe_env):
    session = MagicMock(id="cs_test_1", url="https://checkout.stripe.com/c/cs_test_1")
    with patch("billing.stripe_gateway.stripe.checkout.Session.create", return_value=session) as create:
        res = client.post("/api/billing/checkout", headers=auth_headers)

    data = res.json()
    assert data["success"] is True
    assert data["checkout_url"] == "https://checkout.stripe.com/c/cs_test_1"
    assert data["session_id"] == "cs_test_1"
    assert get_persona_quota("user-123", 2) == 2

    kwargs = create.call_args.kwargs
    assert kwargs["client_reference_id"] == "user-123"
    assert kwargs["metadata"] == {"userId": "user-123", "item": "persona_slot"}
    assert kwargs["mode"] == "payment"
    assert kwargs["success_url"].startswith("https://personasim.example.com/payment/success")


def test_stripe_checkout_error(client, auth_headers, stripe_env):
    with patch(
        "billing.stripe_gateway.stripe.checkout.Session.create",
        side_effect=stripe.StripeError("card declined"),
    ):
        res = client.post("/api/billing/checkout", headers=auth_headers)
    assert res.json()["success"] is False


class TestWebhook:
    def test_not_configured(self, client):
        res = _post_webhook(client)
        assert res.status_code == 500

    def test_missing_signature(self, client, stripe_env):
        assert _post_webhook(client, signature=None).status_code == 400

    def test_completed_grants_slot(self, client, auth_headers, stripe_env):
        client.get("/api/user/me", headers=auth_headers)
        event = _completed_event(client_reference_id="user-123")
        with patch("billing.stripe_gateway.construct_event", return_value=event) as construct:
            res = _post_webhook(client)

        assert res.status_code == 200
        assert res.json() == {"received": True}
        assert get_persona_quota("user-123", 2) == 3
        assert count_events("checkout_completed", "user-123") == 1
        assert construct.call_args.args == (b'{"id": "evt_1"}', "t=1,v1=abc", "whsec_test")

    def test_user_id_from_metadata(self, client, auth_headers, stripe_env):
        client.get("/api/user/me", headers=auth_headers)
        event = _completed_event(metadata={"userId": "user-123"})
        with patch("billing.stripe_gateway.construct_event", return_value=event):
            assert _post_webhook(client).status_code == 200
        assert get_persona_quota("user-123", 2) == 3

    def test_missing_user_id(self, client, stripe_env):
        with patch("billing.stripe_gateway.construct_event", return_value=_completed_event()):
            assert _post_webhook(client).status_code == 400

    def test_unknown_user(self, client, stripe_env):
        event = _completed_event(client_reference_id="ghost")
        with patch("billing.stripe_gateway.construct_event", return_value=event):
            assert _post_webhook(client).status_code == 404

    def test_other_events_acknowledged(self, client, stripe_env):
        event = {"id": "evt_2", "type": "payment_intent.succeeded", "data": {"object": {}}}
        with patch("billing.stripe_gateway.construct_event", return_value=event):
            res = _post_webhook(client)
        assert res.status_code == 200
        assert res.json() == {"received": True}


class TestSignedWebhook:
    """Webhooks signed with the real Stripe scheme, no verification mocks."""

    def _post(self, client, payload, signature):
        return client.post(
            "/api/billing/webhook", content=payload, headers={"stripe-signature": signature}
        )

    def test_valid_signature_grants_slot(self, client, auth_headers, stripe_env):
        client.get("/api/user/me", headers=auth_headers)
        payload = checkout_completed_payload(client_reference_id="user-123")

        res = self._post(client, payload, stripe_signature(payload))

        assert res.status_code == 200
        assert res.json() == {"received": True}
        assert get_persona_quota("user-123", 2) == 3
        assert count_events("checkout_completed", "user-123") == 1

    def test_metadata_user_id(self, client, auth_headers, stripe_env):
        client.get("/api/user/me", headers=auth_headers)
        payload = checkout_completed_payload(metadata={"userId": "user-123", "item": "persona_slot"})
        assert self._post(client, payload, stripe_signature(payload)).status_code == 200
        assert get_persona_quota("user-123", 2) == 3

    def test_tampered_payload_rejected(self, client, auth_headers, stripe_env):
        client.get("/api/user/me", headers=auth_headers)
        signed = checkout_completed_payload(client_reference_id="user-456")
        tampered = checkout_completed_payload(client_reference_id="user-123")

        res = self._post(client, tampered, stripe_signature(signed))

        assert res.status_code == 400
        assert res.json()["error"].startswith("Webhook Error")
        assert get_persona_quota("user-123", 2) == 2

    def test_wrong_secret_rejected(self, client, auth_headers, stripe_env):
        client.get("/api/user/me", headers=auth_headers)
        payload = checkout_completed_payload(client_reference_id="user-123")
        res = self._post(client, payload, stripe_signature(payload, secret="whsec_other"))
        assert res.status_code == 400
        assert get_persona_quota("user-123", 2) == 2

    def test_stale_timestamp_rejected(self, client, stripe_env):
        payload = checkout_completed_payload(client_reference_id="user-123")
        stale = stripe_signature(payload, timestamp=int(time.time()) - 3600)
        assert self._post(client, payload, stale).status_code == 400

    def test_signed_non_object_payload_rejected(self, client, stripe_env):
        payload = b"[1, 2, 3]"
        assert self._post(client, payload, stripe_signature(payload)).status_code == 400
