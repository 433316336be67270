"""Tests for transactional emails."""

import httpx
import pytest

from mediature.core.config import settings
from mediature.services import mailer
from mediature.services.mailer import _deliver as real_deliver


@pytest.fixture
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(mailer, "MAILER_RETRY_BASE_DELAY", 0)
    monkeypatch.setattr(mailer, "MAILER_RETRY_MAX_DELAY", 0)


@pytest.mark.asyncio
async def test_post_with_retries_retries_on_status(no_retry_delay):
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"id": "msg-1"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await mailer._post_with_retries(client, {"to": ["a@example.com"]}, {})

    assert calls["count"] == 2
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_post_with_retries_raises_after_max_attempts(no_retry_delay):
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("boom", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.RequestError):
            await mailer._post_with_retries(client, {}, {})

    assert calls["count"] == mailer.MAILER_MAX_ATTEMPTS


@pytest.mark.asyncio
async def test_post_with_retries_does_not_retry_client_errors(no_retry_delay):
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(422)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await mailer._post_with_retries(client, {}, {})

    assert calls["count"] == 1
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deliver_without_api_key_is_a_failure():
    result = await real_deliver(to_email="a@example.com", subject="s", html="<p>h</p>", text="h")

    assert result["success"] is False
    assert "MAILER_API_KEY" in result["error"]


@pytest.mark.asyncio
async def test_deliver_posts_to_mail_api(monkeypatch):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = request.read()
        return httpx.Response(200, json={"id": "msg-42"})

    original_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return original_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(settings, "MAILER_API_KEY", "re_test_key")
    monkeypatch.setattr(mailer.httpx, "AsyncClient", client_factory)

    result = await real_deliver(
        to_email="a@example.com", subject="Sujet", html="<p>Corps</p>", text="Corps"
    )

    assert result == {"success": True, "message_id": "msg-42"}
    assert captured["auth"] == "Bearer re_test_key"
    assert b"a@example.com" in captured["body"]


@pytest.mark.asyncio
async def test_notify_swallows_exceptions(caplog):
    async def failing_send(**kwargs):
        raise RuntimeError("boom")

    result = await mailer.notify(failing_send, recipient="a@example.com")

    assert result["success"] is False
    assert "boom" in result["error"]
    assert "failing_send" in caplog.text


@pytest.mark.asyncio
async def test_notify_passes_results_through(sent_emails):
    result = await mailer.notify(
        mailer.send_authority_agent_removed,
        recipient="agent@example.com",
        firstname="Sophie",
        authority_name="Ville de Paris",
    )

    assert result["success"] is True
    assert sent_emails[0]["subject"] == "Vous ne faites plus partie de Ville de Paris"
    assert sent_emails[0]["text"].startswith("Bonjour Sophie,")
    assert sent_emails[0]["html"].startswith("<p>Bonjour Sophie,</p>")


@pytest.mark.asyncio
async def test_html_body_is_escaped(sent_emails):
    await mailer.send_new_authority_as_agent(
        recipient="agent@example.com",
        firstname="<script>",
        authority_name="Ville",
        authority_url="http://localhost:3000/dashboard",
    )

    assert "<script>" not in sent_emails[0]["html"]
    assert "&lt;script&gt;" in sent_emails[0]["html"]
