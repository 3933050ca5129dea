"""Request context middleware: X-Request-ID on every response, completion log line."""

from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    custom_id = "my-custom-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": custom_id})
    assert resp.headers.get("x-request-id") == custom_id


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/progress/bulk")  # no X-User-Id → 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_completion_line_carries_user_and_status(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="algoarena.middleware.request_context"):
        client.get(
            "/v1/progress/stats",
            headers={"X-User-Id": "user-7", "X-Request-ID": "req-42"},
        )

    [line] = [r for r in caplog.records if r.name == "algoarena.middleware.request_context"]
    assert line.user_id == "user-7"  # type: ignore[attr-defined]
    assert line.status_code == 200  # type: ignore[attr-defined]
    assert line.request_id == "req-42"  # type: ignore[attr-defined]
    assert line.path == "/v1/progress/stats"  # type: ignore[attr-defined]
