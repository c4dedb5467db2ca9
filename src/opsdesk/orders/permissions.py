# src/opsdesk/orders/permissions.py

"""
Role capability checks.

One place answers "may this role touch this?" for both the stepper controls
(adjust_quantity) and submit-time validation, instead of each screen carrying
its own conditionals.
"""

from __future__ import annotations

from ..core.roles import Role
from .order_models import OrderStatus, QuantityField

_EDITABLE_FIELD: dict[Role, QuantityField] = {
    Role.ADMIN: QuantityField.VALIDATED,
    Role.COLLABORATEUR: QuantityField.CONFIRMED,
    Role.CLIENT: QuantityField.CONFIRMED,
    Role.AUTHOR: QuantityField.ORDERED,
}


def editable_field(role: Role) -> QuantityField:
    return _EDITABLE_FIELD[role]


def can_edit_field(role: Role, qty_field: QuantityField | str) -> bool:
    return _EDITABLE_FIELD.get(role) == QuantityField(qty_field)


def can_edit_order(role: Role, status: OrderStatus) -> bool:
    if role.is_privileged:
        return status in (OrderStatus.VALIDATION, OrderStatus.VALIDATED)
    if role.is_confirmer:
        return status == OrderStatus.VALIDATED
    return status == OrderStatus.VALIDATION


def can_validate_order(role: Role, status: OrderStatus) -> bool:
    return role.is_privileged and status == OrderStatus.VALIDATION


def can_confirm_order(role: Role, status: OrderStatus) -> bool:
    return role.is_confirmer and status == OrderStatus.VALIDATED


def can_deliver_order(role: Role, status: OrderStatus) -> bool:
    return role.is_privileged and status == OrderStatus.CONFIRMED


def can_cancel_order(role: Role, status: OrderStatus) -> bool:
    return role.is_privileged and status in (OrderStatus.VALIDATED, OrderStatus.CONFIRMED)
