"""Airtable record store client."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

import httpx

from baby_tracker.domain.records import EventRecord, RecordPage, SortSpec
from baby_tracker.errors import (
    NotConfiguredError,
    RateLimitedError,
    RecordStoreConnectionError,
    RemoteError,
    UnauthorizedError,
)
from baby_tracker.services.credentials import CredentialsService
from baby_tracker.services.notifications import Notifier

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401
HTTP_TOO_MANY_REQUESTS = 429


class RecordStoreClient(Protocol):
    """Interface for the remote record table."""

    async def create_record(self, fields: dict[str, object]) -> EventRecord:
        """Create a record and return it with its assigned id."""

    async def delete_record(self, record_id: str) -> None:
        """Delete a record by id."""

    async def list_records(
        self,
        *,
        filter_formula: str | None = None,
        sort: list[SortSpec] | None = None,
        page_size: int | None = None,
        offset: str | None = None,
    ) -> RecordPage:
        """Return one page of records and the continuation token, if any."""


@dataclass
class HttpxAirtableClient(RecordStoreClient):
    """Airtable client implemented with httpx.

    Rate-limited responses are retried after a fixed delay. Every failure
    shows exactly one error toast before the matching error is raised.
    """

    credentials: CredentialsService
    notifier: Notifier
    http_client: httpx.AsyncClient
    api_url: str = "https://api.airtable.com/v0"
    retry_delay_seconds: float = 30
    max_retries: int = 2
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        credentials: CredentialsService,
        notifier: Notifier,
        api_url: str,
        retry_delay_seconds: float = 30,
        max_retries: int = 2,
    ) -> "HttpxAirtableClient":
        """Create an Airtable client with a managed httpx session."""
        return cls(
            credentials=credentials,
            notifier=notifier,
            http_client=httpx.AsyncClient(),
            api_url=api_url,
            retry_delay_seconds=retry_delay_seconds,
            max_retries=max_retries,
        )

    async def create_record(self, fields: dict[str, object]) -> EventRecord:
        """Create a record via a single POST."""
        self._ensure_configured()
        payload = await self._request(
            "POST", self._table_url(), json={"records": [{"fields": fields}]}
        )
        records = payload.get("records")
        if not isinstance(records, list) or not records:
            self.notifier.error("Error: empty create response")
            raise RemoteError("Error: empty create response", status_code=200)
        return EventRecord.from_api(records[0])

    async def delete_record(self, record_id: str) -> None:
        """Delete a record via DELETE /{id}."""
        self._ensure_configured()
        url = f"{self._table_url()}/{quote(record_id, safe='')}"
        await self._request("DELETE", url)

    async def list_records(
        self,
        *,
        filter_formula: str | None = None,
        sort: list[SortSpec] | None = None,
        page_size: int | None = None,
        offset: str | None = None,
    ) -> RecordPage:
        """List one page of records."""
        self._ensure_configured()
        params: dict[str, str] = {}
        if filter_formula:
            params["filterByFormula"] = filter_formula
        if page_size:
            params["pageSize"] = str(page_size)
        if offset:
            params["offset"] = offset
        for index, clause in enumerate(sort or []):
            params[f"sort[{index}][field]"] = clause.field
            params[f"sort[{index}][direction]"] = clause.direction
        payload = await self._request("GET", self._table_url(), params=params)
        raw_records = payload.get("records") or []
        next_offset = payload.get("offset")
        return RecordPage(
            records=[
                EventRecord.from_api(item)
                for item in raw_records
                if isinstance(item, dict)
            ],
            offset=str(next_offset) if next_offset else None,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _ensure_configured(self) -> None:
        if not self.credentials.is_configured():
            self.credentials.request_configuration()
            raise NotConfiguredError

    def _table_url(self) -> str:
        current = self.credentials.current
        table = quote(current.table_name.strip(), safe="")
        return f"{self.api_url}/{current.base_id.strip()}/{table}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.credentials.current.token}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
    ) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                response = await self.http_client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=self._headers(),
                    timeout=15,
                )
            except httpx.TransportError as exc:
                self.notifier.error("Connection error. Check your internet.")
                raise RecordStoreConnectionError(str(exc)) from exc
            if (
                response.status_code != HTTP_TOO_MANY_REQUESTS
                or attempt >= self.max_retries
            ):
                break
            attempt += 1
            logger.warning(
                "Rate limited by record store, retrying in %ss (attempt %s of %s)",
                self.retry_delay_seconds,
                attempt + 1,
                self.max_retries + 1,
            )
            await self.sleep(self.retry_delay_seconds)

        if response.status_code == HTTP_UNAUTHORIZED:
            self.notifier.error("Invalid API token. Check settings.")
            raise UnauthorizedError
        if response.is_error:
            message = _error_message(response)
            self.notifier.error(message)
            if response.status_code == HTTP_TOO_MANY_REQUESTS:
                raise RateLimitedError(message, status_code=response.status_code)
            raise RemoteError(message, status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}


def _error_message(response: httpx.Response) -> str:
    """Extract `error.message` from an error body, else a generic message."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"Error {response.status_code}"
