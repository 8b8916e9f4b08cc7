"""Test doubles shared across test packages."""

import hashlib
import hmac
import json
import time

from llm import LLMProvider


class FakeProvider(LLMProvider):
    """Records calls and replays canned responses (strings or exceptions)."""

    provider_name = "fake"

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def generate(self, messages, system=None, max_tokens=2000, json_mode=False, temperature=None):
        self.calls.append(
            {"messages": messages, "system": system, "max_tokens": max_tokens, "json_mode": json_mode}
        )
        if not self.responses:
            return ""
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def json_reply(**fields) -> str:
    return json.dumps(fields)


SAMPLE_CHAT = (
    "Alex: hey! did you see the game last night? it was amazing\n"
    "Sam: no I missed it, was working late again\n"
    "Alex: you work too much haha. we should grab coffee this weekend\n"
    "Sam: sounds great, I'd love that\n"
)


def stripe_signature(payload: bytes, secret: str = "whsec_test", timestamp: int | None = None) -> str:
    """A ``stripe-signature`` header computed the way Stripe signs webhooks."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def checkout_completed_payload(**session) -> bytes:
    event = {
        "id": "evt_test_1",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_test_1", "object": "checkout.session", **session}},
    }
    return json.dumps(event).encode()
