"""Tests for structured logging helpers."""
import uuid

from mediature.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        authority_id="authority-1",
        request_id="req-1",
        route="/agents",
        method="GET",
    )

    assert context == {
        "user_id": "user-1",
        "authority_id": "authority-1",
        "request_id": "req-1",
        "route": "/agents",
        "method": "GET",
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        user_id="",
        authority_id=None,
        request_id="req-1",
    )

    assert context == {"request_id": "req-1"}


def test_build_log_context_stringifies_ids():
    user_id = uuid.uuid4()
    assert build_log_context(user_id=user_id) == {"user_id": str(user_id)}
