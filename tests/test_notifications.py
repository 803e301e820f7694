"""Tests for the webhook notification client."""

import json
from datetime import datetime, timezone

import httpx

from src.config import SLATarget
from src.infrastructure.notifications import WebhookNotificationClient


DEADLINE = datetime(2024, 1, 9, 6, 0, tzinfo=timezone.utc)


def _client(handler, **kwargs):
    kwargs.setdefault("webhook_url", "https://hooks.example/notify")
    kwargs.setdefault("max_retries", 1)
    return WebhookNotificationClient(
        timeout_seconds=5,
        frontend_url="https://app.xploitarena.example/",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


async def test_breach_payload_is_posted():
    received = []

    def handler(request):
        received.append(json.loads(request.content))
        return httpx.Response(204)

    client = _client(handler)

    sent = await client.send_sla_breach(
        to="security@acme.example",
        report_id="r-1",
        report_title="Stored XSS",
        program_name="Acme Web",
        target=SLATarget.FIRST_RESPONSE,
        deadline=DEADLINE,
    )
    await client.close()

    assert sent is True
    payload = received[0]
    assert payload["kind"] == "sla_breach"
    assert payload["to"] == "security@acme.example"
    assert payload["subject"] == "URGENT: SLA Breach - Stored XSS"
    assert "https://app.xploitarena.example/reports/r-1" in payload["text"]
    assert payload["data"]["target"] == "firstResponse"


async def test_budget_alert_payload():
    received = []

    def handler(request):
        received.append(json.loads(request.content))
        return httpx.Response(200)

    client = _client(handler)

    assert await client.send_budget_alert("security@acme.example", "p-1", "Acme Web", 90, "10") is True
    assert received[0]["subject"] == "Budget Alert: 90% Consumed - Acme Web"
    assert received[0]["data"]["remaining"] == "10"


async def test_server_error_reports_failure():
    client = _client(lambda request: httpx.Response(500))

    assert await client.send_budget_alert("a@b.example", "p-1", "Acme Web", 75, "25") is False


async def test_transport_error_reports_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)

    assert await client.send_budget_alert("a@b.example", "p-1", "Acme Web", 75, "25") is False


async def test_unconfigured_webhook_skips_delivery():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    client = _client(handler, webhook_url="")

    assert await client.send_budget_alert("a@b.example", "p-1", "Acme Web", 75, "25") is False
    assert calls == []


async def test_circuit_opens_after_repeated_failures():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    client = _client(handler)
    for _ in range(5):
        await client.send_budget_alert("a@b.example", "p-1", "Acme Web", 75, "25")

    assert await client.send_budget_alert("a@b.example", "p-1", "Acme Web", 75, "25") is False
    assert len(calls) == 5
