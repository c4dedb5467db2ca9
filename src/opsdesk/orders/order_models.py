# src/opsdesk/orders/order_models.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any


class QuantityField(StrEnum):
    ORDERED = "quantite_cmd"
    VALIDATED = "quantite_valid"
    CONFIRMED = "quantite_confr"


def _status_name(raw: Any) -> Any:
    # Status documents look like {"_id": ..., "description": "VALIDATED", "value": ...}.
    if isinstance(raw, dict):
        return raw.get("description") or raw.get("value") or raw.get("name")
    return raw


class OrderStatus(StrEnum):
    """
    Order-level status.

    VALIDATION means "waiting for the validator"; it is the status of a freshly
    captured order.
    """

    VALIDATION = "VALIDATION"
    VALIDATED = "VALIDATED"
    CONFIRMED = "CONFIRMED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @classmethod
    def from_api(cls, raw: Any) -> OrderStatus:
        if isinstance(raw, OrderStatus):
            return raw
        raw = _status_name(raw)
        if not isinstance(raw, str) or not raw.strip():
            raise ValueError(f"Invalid order status: {raw!r}")
        key = raw.strip().upper()
        if key in ("PENDING", "EN_ATTENTE"):
            key = cls.VALIDATION.value
        if key == "CANCELED":
            key = cls.CANCELLED.value
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Invalid order status: {raw!r}") from None


class LineStatus(StrEnum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"

    @classmethod
    def from_api(cls, raw: Any) -> LineStatus:
        if isinstance(raw, LineStatus):
            return raw
        raw = _status_name(raw)
        if not isinstance(raw, str) or not raw.strip():
            return cls.PENDING
        key = raw.strip().upper()
        if key == "VALIDATION":
            return cls.PENDING
        if key == "CANCELED":
            return cls.CANCELLED
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Invalid order line status: {raw!r}") from None


class OrderStatusCatalog:
    """
    Maps order and line statuses <-> server reference ids.

    The API keeps both statut_cmd and statut_art_cmd as references into
    /orders/statutcmds and /orders/statutartcmds. Until those collections are
    loaded the catalog is empty and status names go over the wire as-is.
    """

    def __init__(
        self,
        orders: dict[OrderStatus, str] | None = None,
        lines: dict[LineStatus, str] | None = None,
    ) -> None:
        self._orders: dict[OrderStatus, str] = dict(orders or {})
        self._lines: dict[LineStatus, str] = dict(lines or {})
        self._order_refs = {v: k for k, v in self._orders.items()}
        self._line_refs = {v: k for k, v in self._lines.items()}

    @classmethod
    def from_api(
        cls,
        order_rows: list[dict[str, Any]],
        line_rows: list[dict[str, Any]],
    ) -> OrderStatusCatalog:
        return cls(_refs(order_rows, OrderStatus.from_api), _refs(line_rows, LineStatus.from_api))

    def __len__(self) -> int:
        return len(self._orders) + len(self._lines)

    def order_to_api(self, status: OrderStatus) -> str:
        return self._orders.get(status, status.value)

    def line_to_api(self, status: LineStatus) -> str:
        return self._lines.get(status, status.value)

    def resolve_order(self, raw: Any) -> OrderStatus:
        ref = _bare_ref(raw)
        if ref in self._order_refs:
            return self._order_refs[ref]
        return OrderStatus.from_api(raw)

    def resolve_line(self, raw: Any) -> LineStatus:
        ref = _bare_ref(raw)
        if ref in self._line_refs:
            return self._line_refs[ref]
        return LineStatus.from_api(raw)


def _refs(rows: list[dict[str, Any]], parse) -> dict:
    out: dict = {}
    for row in rows:
        ref = row.get("_id")
        if not ref:
            continue
        try:
            out[parse(row)] = str(ref)
        except ValueError:
            continue
    return out


def _bare_ref(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict) and not _status_name(raw):
        ref = raw.get("_id")
        return str(ref) if ref else None
    return None


_EMPTY_CATALOG = OrderStatusCatalog()


def _int(raw: Any) -> int:
    if raw is None or raw == "":
        return 0
    return int(raw)


def _ref_id(raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        ref = raw.get("_id") or raw.get("id")
        return str(ref) if ref else None
    return str(raw)


@dataclass(slots=True, frozen=True)
class OrderLine:
    article_id: str
    quantite_cmd: int = 1
    quantite_valid: int = 0
    quantite_confr: int = 0
    status: LineStatus = LineStatus.PENDING
    notes: str = ""

    def get(self, qty_field: QuantityField) -> int:
        return int(getattr(self, qty_field.value))

    def with_quantity(self, qty_field: QuantityField, value: int) -> OrderLine:
        return replace(self, **{qty_field.value: int(value)})

    @classmethod
    def from_api(cls, data: dict[str, Any], catalog: OrderStatusCatalog | None = None) -> OrderLine:
        article_id = _ref_id(data.get("id_article"))
        if not article_id:
            raise ValueError("Order line has no id_article")
        return cls(
            article_id=article_id,
            quantite_cmd=_int(data.get("quantite_cmd")),
            quantite_valid=_int(data.get("quantite_valid")),
            quantite_confr=_int(data.get("quantite_confr")),
            status=(catalog or _EMPTY_CATALOG).resolve_line(data.get("statut_art_cmd")),
            notes=str(data.get("notes_cmd") or ""),
        )

    def to_api(self, catalog: OrderStatusCatalog | None = None) -> dict[str, Any]:
        return {
            "id_article": self.article_id,
            "quantite_cmd": self.quantite_cmd,
            "quantite_valid": self.quantite_valid,
            "quantite_confr": self.quantite_confr,
            "statut_art_cmd": (catalog or _EMPTY_CATALOG).line_to_api(self.status),
            "notes_cmd": self.notes,
        }


@dataclass(slots=True)
class Order:
    client_id: str
    collaborator_id: str
    order_date: str
    status: OrderStatus = OrderStatus.VALIDATION
    lines: list[OrderLine] = field(default_factory=list)
    delivery_date: str | None = None
    notes: str = ""
    id: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any], catalog: OrderStatusCatalog | None = None) -> Order:
        catalog = catalog or _EMPTY_CATALOG
        order_id = data.get("_id") or data.get("id")
        return cls(
            id=str(order_id) if order_id else None,
            client_id=_ref_id(data.get("id_client")) or "",
            collaborator_id=_ref_id(data.get("id_collaborateur")) or "",
            order_date=str(data.get("date_cmd") or ""),
            delivery_date=data.get("date_livraison") or None,
            notes=str(data.get("notes_cmd") or ""),
            status=catalog.resolve_order(data.get("statut_cmd") or OrderStatus.VALIDATION.value),
            lines=[OrderLine.from_api(row, catalog) for row in data.get("articles") or []],
        )

    def to_api(self, catalog: OrderStatusCatalog | None = None) -> dict[str, Any]:
        catalog = catalog or _EMPTY_CATALOG
        payload: dict[str, Any] = {
            "id_client": self.client_id,
            "id_collaborateur": self.collaborator_id,
            "date_cmd": self.order_date,
            "statut_cmd": catalog.order_to_api(self.status),
            "notes_cmd": self.notes,
            "articles": [line.to_api(catalog) for line in self.lines],
        }
        if self.delivery_date:
            payload["date_livraison"] = self.delivery_date
        return payload

    def with_lines(self, lines: list[OrderLine]) -> Order:
        return replace(self, lines=list(lines))
