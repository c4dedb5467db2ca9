# src/opsdesk/api/client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.ports import JsonDict
from ..errors import RemoteFailure

logger = logging.getLogger(__name__)


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    # keep read >= connect as a sane baseline
    read_s = max(read_s, connect_s)
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            val = body.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
    return response.reason_phrase or f"HTTP {response.status_code}"


def _unwrap_list(body: Any) -> list[JsonDict]:
    """List endpoints answer either [...] or a paginated {"data": [...], ...}."""
    if isinstance(body, dict):
        body = body.get("data", [])
    if not isinstance(body, list):
        return []
    return [row for row in body if isinstance(row, dict)]


class ApiClient:
    """
    Async client for the dashboard REST API.

    Implements TaskGateway, OrderGateway and CatalogGateway.

    IMPORTANT:
    - No retries: a failed call surfaces as RemoteFailure to the caller.
    - Timeouts belong to this client, not to the workflows.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise RuntimeError("API base URL is not set. Set OPSDESK_API_BASE_URL in your .env.")

        headers = {"Accept": "application/json"}
        if token and token.strip():
            headers["Authorization"] = f"Bearer {token.strip()}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=_make_timeout(connect_timeout, read_timeout),
            transport=transport or httpx.AsyncHTTPTransport(retries=0),
        )

    @classmethod
    def from_settings(cls, settings: Any, *, transport: httpx.AsyncBaseTransport | None = None) -> ApiClient:
        return cls(
            str(getattr(settings, "api_base_url", "") or ""),
            token=getattr(settings, "api_token", None),
            connect_timeout=float(getattr(settings, "connect_timeout_seconds", 5.0)),
            read_timeout=float(getattr(settings, "read_timeout_seconds", 20.0)),
            transport=transport,
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- low-level ----

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        logger.debug("API %s %s", method, path)
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            raise RemoteFailure(f"{method} {path} timed out", method=method, path=path) from e
        except httpx.HTTPError as e:
            raise RemoteFailure(
                f"{method} {path} failed: {e.__class__.__name__}", method=method, path=path
            ) from e

        if response.is_error:
            msg = _error_message(response)
            logger.info("API %s %s -> %s (%s)", method, path, response.status_code, msg)
            raise RemoteFailure(
                f"{method} {path} -> {response.status_code}: {msg}",
                method=method,
                path=path,
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteFailure(
                f"{method} {path} returned invalid JSON",
                method=method,
                path=path,
                status_code=response.status_code,
            ) from e

    async def _request_object(self, method: str, path: str, **kwargs: Any) -> JsonDict:
        body = await self._request(method, path, **kwargs)
        if not isinstance(body, dict):
            raise RemoteFailure(f"{method} {path} returned no record", method=method, path=path)
        return body

    # ---- tasks ----

    async def get_task(self, task_id: str) -> JsonDict:
        return await self._request_object("GET", f"/tasks/{task_id}")

    async def update_task(self, task_id: str, changes: JsonDict) -> JsonDict:
        return await self._request_object("PATCH", f"/tasks/{task_id}", json=changes)

    async def list_task_statuses(self) -> list[JsonDict]:
        return _unwrap_list(await self._request("GET", "/tasks/taskStatus"))

    # ---- orders ----

    async def get_order(self, order_id: str) -> JsonDict:
        return await self._request_object("GET", f"/orders/{order_id}")

    async def create_order(self, order: JsonDict) -> JsonDict:
        return await self._request_object("POST", "/orders", json=order)

    async def update_order(self, order_id: str, order: JsonDict) -> JsonDict:
        return await self._request_object("PATCH", f"/orders/{order_id}", json=order)

    async def validate_order(self, order_id: str) -> JsonDict:
        return await self._request_object("POST", f"/orders/{order_id}/validate")

    async def confirm_order(self, order_id: str) -> JsonDict:
        return await self._request_object("POST", f"/orders/{order_id}/confirm")

    async def deliver_order(self, order_id: str) -> JsonDict:
        return await self._request_object("POST", f"/orders/{order_id}/deliver")

    async def cancel_order(self, order_id: str, reason: str) -> JsonDict:
        return await self._request_object("POST", f"/orders/{order_id}/cancel", json={"reason": reason})

    async def list_order_statuses(self) -> list[JsonDict]:
        return _unwrap_list(await self._request("GET", "/orders/statutcmds"))

    async def list_order_line_statuses(self) -> list[JsonDict]:
        return _unwrap_list(await self._request("GET", "/orders/statutartcmds"))

    # ---- catalog ----

    async def list_articles(self, *, search: str | None = None) -> list[JsonDict]:
        params = {"searchTerm": search} if search else None
        return _unwrap_list(await self._request("GET", "/articles", params=params))
