# src/opsdesk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the workflows.

The controllers depend on Protocols instead of the concrete HTTP client.
The remote API stays the source of truth; these calls are the only way the
workflows reach it, which keeps tests on in-memory fakes.
"""

from typing import Any, Protocol

JsonDict = dict[str, Any]


class TaskGateway(Protocol):
    async def get_task(self, task_id: str) -> JsonDict: ...

    async def update_task(self, task_id: str, changes: JsonDict) -> JsonDict:
        """PATCH /tasks/{id} with {statut_tache, ...transition fields}."""
        ...

    async def list_task_statuses(self) -> list[JsonDict]: ...


class OrderGateway(Protocol):
    async def get_order(self, order_id: str) -> JsonDict: ...
    async def create_order(self, order: JsonDict) -> JsonDict: ...
    async def update_order(self, order_id: str, order: JsonDict) -> JsonDict: ...

    # Server-side status changes (POST /orders/{id}/<action>).
    async def validate_order(self, order_id: str) -> JsonDict: ...
    async def confirm_order(self, order_id: str) -> JsonDict: ...
    async def deliver_order(self, order_id: str) -> JsonDict: ...
    async def cancel_order(self, order_id: str, reason: str) -> JsonDict: ...

    async def list_order_statuses(self) -> list[JsonDict]: ...
    async def list_order_line_statuses(self) -> list[JsonDict]: ...


class CatalogGateway(Protocol):
    async def list_articles(self, *, search: str | None = None) -> list[JsonDict]: ...
