"""Tests for the Airtable record store client."""

import asyncio
import json

import httpx
import pytest

from baby_tracker.adapters.airtable_client import HttpxAirtableClient
from baby_tracker.domain.records import SortSpec
from baby_tracker.errors import (
    NotConfiguredError,
    RateLimitedError,
    RecordStoreConnectionError,
    RemoteError,
    UnauthorizedError,
)
from baby_tracker.services.credentials import (
    CredentialsService,
    RecordStoreCredentials,
)
from tests.conftest import RecordingNotifier


def _client(
    handler, notifier: RecordingNotifier, credentials: CredentialsService | None = None
) -> tuple[HttpxAirtableClient, list[float]]:
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    client = HttpxAirtableClient(
        credentials=credentials
        or CredentialsService(RecordStoreCredentials("pat-1", "appBASE", "Baby Log")),
        notifier=notifier,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        api_url="https://api.test/v0",
        sleep=fake_sleep,
    )
    return client, sleeps


def test_create_record_posts_fields_and_returns_record() -> None:
    notifier = RecordingNotifier()
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(
            200, json={"records": [{"id": "rec1", "fields": {"Type": "pee"}}]}
        )

    client, _ = _client(handler, notifier)
    record = asyncio.run(client.create_record({"Type": "pee"}))

    assert record.id == "rec1"
    assert record.type == "pee"
    assert seen["method"] == "POST"
    assert seen["path"] == "/v0/appBASE/Baby Log"
    assert seen["auth"] == "Bearer pat-1"
    assert seen["body"] == {"records": [{"fields": {"Type": "pee"}}]}
    assert notifier.messages == []


def test_delete_record_targets_record_path() -> None:
    notifier = RecordingNotifier()
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"deleted": True, "id": "rec9"})

    client, _ = _client(handler, notifier)
    asyncio.run(client.delete_record("rec9"))

    assert seen == [("DELETE", "/v0/appBASE/Baby Log/rec9")]


def test_list_records_builds_query_and_reads_offset() -> None:
    notifier = RecordingNotifier()
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(
            200,
            json={
                "records": [
                    {"id": "rec1", "fields": {"Type": "poop"}},
                    {"id": "rec2", "fields": {"Type": "pee"}},
                ],
                "offset": "itrNEXT",
            },
        )

    client, _ = _client(handler, notifier)
    page = asyncio.run(
        client.list_records(
            filter_formula="{Type} = 'pee'",
            sort=[SortSpec(field="Timestamp", direction="desc")],
            page_size=100,
            offset="itrPREV",
        )
    )

    assert [record.id for record in page.records] == ["rec1", "rec2"]
    assert page.offset == "itrNEXT"
    assert seen == {
        "filterByFormula": "{Type} = 'pee'",
        "pageSize": "100",
        "offset": "itrPREV",
        "sort[0][field]": "Timestamp",
        "sort[0][direction]": "desc",
    }


def test_list_records_without_offset_is_last_page() -> None:
    notifier = RecordingNotifier()

    def handler(request: httpx.Request) -> httpx.Response:
        assert "offset" not in request.url.params
        return httpx.Response(200, json={"records": []})

    client, _ = _client(handler, notifier)
    page = asyncio.run(client.list_records())

    assert page.records == []
    assert page.offset is None


def test_rate_limit_retries_then_succeeds() -> None:
    notifier = RecordingNotifier()
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) < 3:
            return httpx.Response(429, json={"errors": "RATE_LIMIT_REACHED"})
        return httpx.Response(200, json={"records": []})

    client, sleeps = _client(handler, notifier)
    page = asyncio.run(client.list_records())

    assert page.records == []
    assert len(attempts) == 3
    assert sleeps == [30, 30]
    assert notifier.messages == []


def test_rate_limit_exhausted_after_three_attempts() -> None:
    notifier = RecordingNotifier()
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(429)

    client, sleeps = _client(handler, notifier)

    with pytest.raises(RemoteError) as excinfo:
        asyncio.run(client.list_records())

    assert isinstance(excinfo.value, RateLimitedError)
    assert excinfo.value.status_code == 429
    assert len(attempts) == 3
    assert sleeps == [30, 30]
    assert notifier.messages == [("error", "Error 429")]


def test_rate_limit_without_retries_fails_after_one_attempt() -> None:
    notifier = RecordingNotifier()
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(429)

    client, sleeps = _client(handler, notifier)
    client.max_retries = 0

    with pytest.raises(RateLimitedError):
        asyncio.run(client.list_records())

    assert len(attempts) == 1
    assert sleeps == []
    assert notifier.messages == [("error", "Error 429")]


def test_unauthorized_is_not_retried() -> None:
    notifier = RecordingNotifier()
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(401, json={"error": {"message": "bad token"}})

    client, sleeps = _client(handler, notifier)

    with pytest.raises(UnauthorizedError):
        asyncio.run(client.create_record({"Type": "pee"}))

    assert len(attempts) == 1
    assert sleeps == []
    assert notifier.messages == [("error", "Invalid API token. Check settings.")]


def test_remote_error_uses_body_message() -> None:
    notifier = RecordingNotifier()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            422,
            json={"error": {"type": "INVALID_VALUE", "message": "Unknown field Side"}},
        )

    client, _ = _client(handler, notifier)

    with pytest.raises(RemoteError) as excinfo:
        asyncio.run(client.create_record({"Side": "up"}))

    assert excinfo.value.message == "Unknown field Side"
    assert excinfo.value.status_code == 422
    assert notifier.messages == [("error", "Unknown field Side")]


def test_remote_error_without_body_uses_status() -> None:
    notifier = RecordingNotifier()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=b"<html>down</html>")

    client, _ = _client(handler, notifier)

    with pytest.raises(RemoteError, match="Error 503"):
        asyncio.run(client.delete_record("rec1"))

    assert notifier.messages == [("error", "Error 503")]


def test_network_failure_raises_connection_error() -> None:
    notifier = RecordingNotifier()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    client, _ = _client(handler, notifier)

    with pytest.raises(RecordStoreConnectionError):
        asyncio.run(client.list_records())

    assert notifier.messages == [("error", "Connection error. Check your internet.")]


def test_not_configured_requests_configuration_without_calling() -> None:
    notifier = RecordingNotifier()
    credentials = CredentialsService(RecordStoreCredentials("", "appBASE", "BabyLog"))
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={})

    client, _ = _client(handler, notifier, credentials)

    with pytest.raises(NotConfiguredError):
        asyncio.run(client.create_record({"Type": "pee"}))

    assert calls == []
    assert credentials.configuration_requested is True
    assert notifier.messages == []
