import asyncio

from unittest.mock import MagicMock

import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from api.middleware.request_context import (
    REQUEST_ID_PREFIX,
    RequestContext,
    RequestContextMiddleware,
    clear_request_context,
    client_address,
    extract_document_id,
    generate_request_id,
    get_request_context,
    get_request_id,
    loggable_path,
    set_request_context,
    update_request_context,
)

TOKEN = "0123456789abcdef0123456789abcdef"


class TestRequestContext:
    def test_log_context_omits_unset_ids(self) -> None:
        fields = RequestContext(request_id="req_1", path="/api/v1/documents", method="GET").to_log_context()

        assert fields["request_id"] == "req_1"
        assert fields["elapsed_ms"] >= 0
        assert "user_id" not in fields
        assert "document_id" not in fields

    def test_update_sets_known_fields_and_collects_the_rest(self) -> None:
        set_request_context(RequestContext(request_id="req_1"))
        try:
            update_request_context(user_id="user_1", link_status="viewed", request_id="spoofed")
            ctx = get_request_context()

            assert ctx is not None
            assert ctx.user_id == "user_1"
            assert ctx.request_id == "req_1"
            assert ctx.extra == {"link_status": "viewed", "request_id": "spoofed"}
        finally:
            clear_request_context()

    def test_update_outside_request_is_ignored(self) -> None:
        update_request_context(user_id="user_1")

        assert get_request_context() is None

    def test_generate_request_id(self) -> None:
        first, second = generate_request_id(), generate_request_id()

        assert first.startswith(REQUEST_ID_PREFIX)
        assert len(first) == len(REQUEST_ID_PREFIX) + 16
        assert first != second

    @pytest.mark.asyncio
    async def test_concurrent_requests_do_not_share_context(self) -> None:
        async def handle(request_id: str, delay: float) -> str | None:
            set_request_context(RequestContext(request_id=request_id))
            await asyncio.sleep(delay)
            return get_request_id()

        assert await asyncio.gather(handle("req_a", 0.02), handle("req_b", 0.0)) == ["req_a", "req_b"]


class TestPathHelpers:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            (f"/api/v1/sign/{TOKEN}", "/api/v1/sign/012345..."),
            (f"/api/v1/sign/{TOKEN}/view", "/api/v1/sign/012345.../view"),
            ("/api/v1/documents/abc/signing-links", "/api/v1/documents/abc/signing-links"),
        ],
    )
    def test_loggable_path(self, path: str, expected: str) -> None:
        assert loggable_path(path) == expected

    def test_extract_document_id(self) -> None:
        assert extract_document_id("/api/v1/documents/abc/fields") == "abc"
        assert extract_document_id("/api/v1/documents") is None
        assert extract_document_id(f"/api/v1/sign/{TOKEN}") is None

    def test_client_address(self) -> None:
        request = MagicMock(spec=Request)
        request.headers = {}
        request.client.host = "198.51.100.7"
        assert client_address(request) == "198.51.100.7"

        request.headers = {"X-Forwarded-For": "203.0.113.50, 10.0.0.1"}
        assert client_address(request) == "203.0.113.50"

        request.headers = {}
        request.client = None
        assert client_address(request) == "unknown"


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/api/v1/documents/{document_id}/fields")
    def document_fields(document_id: str) -> dict[str, str | None]:
        ctx = get_request_context()
        assert ctx is not None
        return {"request_id": ctx.request_id, "document_id": ctx.document_id, "client_ip": ctx.client_ip}

    @app.get("/api/v1/sign/{token}")
    def signing_page(token: str) -> dict[str, str | None]:
        ctx = get_request_context()
        assert ctx is not None
        return {"path": ctx.path}

    return TestClient(app)


def test_response_carries_request_id_and_timing(client: TestClient) -> None:
    response = client.get("/api/v1/documents/doc_1/fields")

    assert response.headers["x-request-id"].startswith(REQUEST_ID_PREFIX)
    assert response.headers["x-response-time"].endswith("ms")
    assert response.json()["request_id"] == response.headers["x-request-id"]


def test_upstream_request_id_is_kept(client: TestClient) -> None:
    response = client.get("/api/v1/documents/doc_1/fields", headers={"X-Request-ID": "edge_123"})

    assert response.headers["x-request-id"] == "edge_123"
    assert response.json()["request_id"] == "edge_123"


def test_document_id_and_client_ip_recorded(client: TestClient) -> None:
    data = client.get("/api/v1/documents/doc_abc/fields", headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.2"}).json()

    assert data["document_id"] == "doc_abc"
    assert data["client_ip"] == "10.0.0.1"


def test_signing_token_masked_in_context(client: TestClient) -> None:
    path = client.get(f"/api/v1/sign/{TOKEN}").json()["path"]

    assert TOKEN not in path
    assert path == "/api/v1/sign/012345..."


def test_context_cleared_after_request(client: TestClient) -> None:
    client.get("/api/v1/documents/doc_1/fields")

    assert get_request_context() is None
