"""Tests for settings routes (per-user)."""

from unittest.mock import patch

from fakes import FakeProvider
from llm import LLMAuthError


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_get_settings_unauthed(client):
    res = client.get("/api/settings")
    # HTTPBearer returns 403 when no Authorization header
    assert res.status_code in (401, 403)


def test_get_settings_defaults(client, auth_headers):
    res = client.get("/api/settings", headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["llm_provider"] == "gemini"
    assert data["llm_api_key_set"] is False
    assert data["gemini_api_key_set"] is False


def test_put_settings(client, auth_headers):
    res = client.put(
        "/api/settings",
        headers=auth_headers,
        json={"llm_api_key": "sk-test1234", "llm_provider": "claude"},
    )
    assert res.status_code == 200
    data = res.json()
    assert data["llm_api_key_set"] is True
    assert data["llm_api_key_hint"] == "...1234"
    assert data["llm_provider"] == "claude"


def test_put_settings_rejects_unknown_provider(client, auth_headers):
    res = client.put("/api/settings", headers=auth_headers, json={"llm_provider": "mystery"})
    assert res.status_code == 422


def test_settings_isolated_between_users(client, auth_headers, auth_headers_b):
    client.put("/api/settings", headers=auth_headers, json={"gemini_api_key": "AIza-user-a"})
    res = client.get("/api/settings", headers=auth_headers_b)
    assert res.json()["gemini_api_key_set"] is False


def test_test_llm_requires_own_key(client, auth_headers):
    res = client.post("/api/settings/test-llm", headers=auth_headers)
    assert res.status_code == 400


def test_test_llm_ok(client, auth_headers):
    client.put("/api/settings", headers=auth_headers, json={"gemini_api_key": "AIza-mine-1234"})
    provider = FakeProvider(["ok "])
    with patch("web.routes.settings.create_llm_provider", return_value=provider) as factory:
        res = client.post("/api/settings/test-llm", headers=auth_headers)

    assert res.status_code == 200
    assert res.json() == {"ok": True, "provider": "fake", "response": "ok"}
    assert factory.call_args.kwargs["api_key"] == "AIza-mine-1234"


def test_test_llm_bad_key(client, auth_headers):
    client.put("/api/settings", headers=auth_headers, json={"gemini_api_key": "AIza-bad"})
    provider = FakeProvider([LLMAuthError("Gemini auth failed")])
    with patch("web.routes.settings.create_llm_provider", return_value=provider):
        res = client.post("/api/settings/test-llm", headers=auth_headers)
    assert res.status_code == 422
    assert "auth failed" in res.json()["detail"]
