# src/opsdesk/orders/reconciliation.py

from __future__ import annotations

"""
Order quantity reconciliation.

Three quantities per line, each owned by one role:
- quantite_cmd   -> author (what was asked for)
- quantite_valid -> validator (what the back office grants)
- quantite_confr -> client / collaborator (what is accepted), never above quantite_valid

Line edits are pure list transforms. Nothing reaches the API until submit(),
which sends the whole order in a single call. Order-level status changes
(validate / confirm / deliver / cancel) are server-side actions gated by the
role checks in permissions.py.
"""

import logging
from collections.abc import Awaitable, Callable

from ..core.inflight import InFlight
from ..core.ports import JsonDict, OrderGateway
from ..core.roles import Actor, Role
from ..errors import (
    FieldNotEditable,
    IncompleteConfirmation,
    IncompleteValidation,
    MissingField,
    NotAllowed,
    OrderNotEditable,
    PreconditionFailed,
    QuantityExceedsValidated,
)
from .order_models import Order, OrderLine, OrderStatus, OrderStatusCatalog, QuantityField
from .permissions import (
    can_cancel_order,
    can_confirm_order,
    can_deliver_order,
    can_edit_field,
    can_edit_order,
    can_validate_order,
)

logger = logging.getLogger(__name__)

MIN_QUANTITY = 1


def adjust_quantity(
    lines: list[OrderLine],
    index: int,
    delta: int,
    qty_field: QuantityField | str,
    role: Role,
) -> list[OrderLine]:
    """
    Step one quantity of one line by delta (stepper +1/-1, or any signed int).

    Returns a new list; the input list is left untouched, also on rejection.
    """
    qty_field = QuantityField(qty_field)
    if not can_edit_field(role, qty_field):
        raise FieldNotEditable(role.value, qty_field.value)
    if index < 0 or index >= len(lines):
        raise IndexError(f"Order line {index} does not exist")

    line = lines[index]
    # Once a line carries a confirmed quantity its validated quantity is frozen.
    if qty_field == QuantityField.VALIDATED and line.quantite_confr > 0:
        raise FieldNotEditable(role.value, qty_field.value, f"line {index} is already confirmed")

    new_value = max(MIN_QUANTITY, line.get(qty_field) + int(delta))

    if qty_field == QuantityField.CONFIRMED and new_value > line.quantite_valid:
        raise QuantityExceedsValidated(index, new_value, line.quantite_valid)

    out = list(lines)
    out[index] = line.with_quantity(qty_field, new_value)
    return out


def remove_line(lines: list[OrderLine], index: int) -> list[OrderLine]:
    if index < 0 or index >= len(lines):
        raise IndexError(f"Order line {index} does not exist")
    return [line for i, line in enumerate(lines) if i != index]


def validate_for_submit(lines: list[OrderLine], role: Role) -> None:
    if not lines:
        raise PreconditionFailed("At least one article is required.")

    for i, line in enumerate(lines):
        if line.quantite_cmd < MIN_QUANTITY:
            raise PreconditionFailed(f"Line {i}: quantity must be at least {MIN_QUANTITY}.")
        if line.quantite_confr > line.quantite_valid:
            raise QuantityExceedsValidated(i, line.quantite_confr, line.quantite_valid)

    if role.is_privileged:
        missing = [i for i, line in enumerate(lines) if line.quantite_valid <= 0]
        if missing:
            raise IncompleteValidation(missing)
    elif role.is_confirmer:
        missing = [i for i, line in enumerate(lines) if line.quantite_confr <= 0]
        if missing:
            raise IncompleteConfirmation(missing)


class OrderReconciliation:
    def __init__(self, gateway: OrderGateway, catalog: OrderStatusCatalog | None = None) -> None:
        self._gateway = gateway
        self._catalog = catalog or OrderStatusCatalog()
        self._inflight = InFlight("order")

    @property
    def catalog(self) -> OrderStatusCatalog:
        return self._catalog

    def is_busy(self, order_id: str) -> bool:
        return self._inflight.is_busy(order_id)

    async def load_statuses(self) -> OrderStatusCatalog:
        """Fetch both status collections so payloads carry reference ids."""
        order_rows = await self._gateway.list_order_statuses()
        line_rows = await self._gateway.list_order_line_statuses()
        self._catalog = OrderStatusCatalog.from_api(order_rows, line_rows)
        logger.info("Loaded %d order status references", len(self._catalog))
        return self._catalog

    async def get(self, order_id: str) -> Order:
        raw = await self._gateway.get_order(order_id)
        return Order.from_api(raw, self._catalog)

    async def submit(self, order: Order, actor: Actor) -> Order:
        """
        Validate the whole order for the actor's role, then create or update it.

        All or nothing: one API call carrying the header and every line.
        """
        if order.id is not None and not can_edit_order(actor.role, order.status):
            raise OrderNotEditable(actor.role.value, order.status.value)
        validate_for_submit(order.lines, actor.role)

        key = order.id or "new"
        with self._inflight.claim(key):
            payload = order.to_api(self._catalog)
            if order.id is None:
                logger.info(
                    "Creating order client=%s lines=%d (by %s/%s)",
                    order.client_id,
                    len(order.lines),
                    actor.user_id,
                    actor.role.value,
                )
                raw = await self._gateway.create_order(payload)
            else:
                logger.info(
                    "Updating order %s lines=%d (by %s/%s)",
                    order.id,
                    len(order.lines),
                    actor.user_id,
                    actor.role.value,
                )
                raw = await self._gateway.update_order(order.id, payload)

        return Order.from_api(raw, self._catalog)

    # ---- order-level status changes ----

    async def validate(self, order_id: str, actor: Actor) -> Order:
        """Validator closes the VALIDATION step; every line must carry a validated quantity."""
        return await self._act(
            "validate", order_id, actor, can_validate_order, self._gateway.validate_order, check_lines=True
        )

    async def confirm(self, order_id: str, actor: Actor) -> Order:
        """Client/collaborator accepts the validated quantities; every line must be confirmed."""
        return await self._act(
            "confirm", order_id, actor, can_confirm_order, self._gateway.confirm_order, check_lines=True
        )

    async def deliver(self, order_id: str, actor: Actor) -> Order:
        return await self._act("deliver", order_id, actor, can_deliver_order, self._gateway.deliver_order)

    async def cancel(self, order_id: str, actor: Actor, reason: str | None) -> Order:
        if reason is None or not reason.strip():
            raise MissingField("cancel", "reason")
        text = reason.strip()

        async def call(oid: str) -> JsonDict:
            return await self._gateway.cancel_order(oid, text)

        return await self._act("cancel", order_id, actor, can_cancel_order, call)

    async def _act(
        self,
        action: str,
        order_id: str,
        actor: Actor,
        allowed: Callable[[Role, OrderStatus], bool],
        call: Callable[[str], Awaitable[JsonDict]],
        *,
        check_lines: bool = False,
    ) -> Order:
        with self._inflight.claim(order_id):
            order = await self.get(order_id)
            if not allowed(actor.role, order.status):
                raise NotAllowed(
                    f"Role {actor.role.value} cannot {action} an order in status {order.status.value}."
                )
            if check_lines:
                validate_for_submit(order.lines, actor.role)

            logger.info(
                "Order %s: %s from %s (by %s/%s)",
                order_id,
                action,
                order.status.value,
                actor.user_id,
                actor.role.value,
            )
            raw = await call(order_id)

        return Order.from_api(raw, self._catalog)
