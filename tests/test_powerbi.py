"""
Unit tests for PowerBI embed token generation (network faked).
"""

import pytest
import requests

from rls_identity import powerbi
from rls_identity.schema import parse_schema


# ── Helpers / Fakes ──────────────────────────────────────────────────

class FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeMsalApp:
    result = {"access_token": "aad-token"}

    def __init__(self, client_id, authority=None, client_credential=None):
        self.authority = authority

    def acquire_token_for_client(self, scopes):
        return self.result


def trend_schema(with_target=True):
    raw = {
        "dataset_table": "sales",
        "rls_role": "Viewer",
        "parameters": [{"name": "Region", "allowed": ["West"]}],
    }
    if with_target:
        raw["powerbi"] = {"workspace_id": "ws", "report_id": "rep", "dataset_id": "ds"}
    return parse_schema("regional-trend", raw)


# ── Tests ────────────────────────────────────────────────────────────

def test_build_token_request_binds_identity():
    body = powerbi.build_token_request(trend_schema(), "West")
    assert body["accessLevel"] == "View"
    assert body["datasets"] == [{"id": "ds"}]
    assert body["identities"] == [{"username": "West", "roles": ["Viewer"], "datasets": ["ds"]}]


def test_get_access_token(monkeypatch):
    monkeypatch.setattr(powerbi.msal, "ConfidentialClientApplication", FakeMsalApp)
    assert powerbi.get_access_token() == "aad-token"


def test_get_access_token_failure(monkeypatch):
    class Failing(FakeMsalApp):
        result = {"error_description": "bad secret"}

    monkeypatch.setattr(powerbi.msal, "ConfidentialClientApplication", Failing)
    with pytest.raises(powerbi.PowerBIError, match="bad secret"):
        powerbi.get_access_token()


def test_generate_embed_token(monkeypatch):
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append(("GET", url, None))
        return FakeResponse({"embedUrl": "https://app.powerbi.com/reportEmbed?reportId=rep"})

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append(("POST", url, json))
        return FakeResponse({"token": "embed-token", "tokenId": "tid", "expiration": "2030-01-01T00:00:00Z"})

    monkeypatch.setattr(powerbi, "get_access_token", lambda: "aad-token")
    monkeypatch.setattr(powerbi.requests, "get", fake_get)
    monkeypatch.setattr(powerbi.requests, "post", fake_post)

    result = powerbi.generate_embed_token(trend_schema(), "West")
    assert result["token"] == "embed-token"
    assert result["reportId"] == "rep"
    assert result["embedUrl"].startswith("https://app.powerbi.com/")
    assert calls[1][1].endswith("/groups/ws/reports/rep/GenerateToken")
    assert calls[1][2]["identities"][0]["username"] == "West"


def test_generate_embed_token_http_error(monkeypatch):
    monkeypatch.setattr(powerbi, "get_access_token", lambda: "aad-token")
    monkeypatch.setattr(powerbi.requests, "get", lambda *a, **k: FakeResponse({}, status=403))
    with pytest.raises(powerbi.PowerBIError, match="PowerBI request failed"):
        powerbi.generate_embed_token(trend_schema(), "West")


def test_generate_embed_token_requires_target():
    with pytest.raises(powerbi.PowerBIError, match="no PowerBI target"):
        powerbi.generate_embed_token(trend_schema(with_target=False), "West")


def test_is_configured(monkeypatch):
    monkeypatch.setattr(powerbi, "PBI_TENANT_ID", "t")
    monkeypatch.setattr(powerbi, "PBI_CLIENT_ID", "c")
    monkeypatch.setattr(powerbi, "PBI_CLIENT_SECRET", "")
    assert powerbi.is_configured() is False
    monkeypatch.setattr(powerbi, "PBI_CLIENT_SECRET", "s")
    assert powerbi.is_configured() is True
