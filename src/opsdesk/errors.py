# src/opsdesk/errors.py

"""
Workflow errors.

Every guard failure is raised before any remote call is made, so a rejected
operation never leaves partial state on the server. RemoteFailure is the only
error that originates after a round-trip.
"""

from __future__ import annotations

from collections.abc import Iterable


class WorkflowError(Exception):
    """Base class for every error raised by the task/order workflows."""


class InvalidTransition(WorkflowError):
    def __init__(self, operation: str, current: str, expected: Iterable[str]) -> None:
        self.operation = operation
        self.current = current
        self.expected = tuple(expected)
        super().__init__(
            f"Cannot {operation} a task in status {current} "
            f"(allowed from: {', '.join(self.expected) or 'none'})."
        )


class MissingField(WorkflowError):
    def __init__(self, operation: str, field: str) -> None:
        self.operation = operation
        self.field = field
        super().__init__(f"{operation}: field {field!r} is required.")


class PreconditionFailed(WorkflowError):
    """A business precondition does not hold (e.g. execution date without assignee)."""


class NotAllowed(PreconditionFailed):
    """The acting user may not perform this operation on this entity."""


class FieldNotEditable(PreconditionFailed):
    def __init__(self, role: str, field: str, reason: str | None = None) -> None:
        self.role = role
        self.field = field
        self.reason = reason
        msg = f"Role {role} cannot edit {field}"
        super().__init__(f"{msg} ({reason})." if reason else f"{msg}.")


class OrderNotEditable(PreconditionFailed):
    def __init__(self, role: str, status: str) -> None:
        self.role = role
        self.status = status
        super().__init__(f"Role {role} cannot edit an order in status {status}.")


class QuantityExceedsValidated(WorkflowError):
    def __init__(self, index: int, requested: int, validated: int) -> None:
        self.index = index
        self.requested = requested
        self.validated = validated
        super().__init__(
            f"Line {index}: confirmed quantity {requested} cannot exceed "
            f"validated quantity {validated}."
        )


class _IncompleteLines(WorkflowError):
    label = "quantities"

    def __init__(self, indices: Iterable[int]) -> None:
        self.indices = tuple(indices)
        super().__init__(
            f"All articles must have valid {self.label} "
            f"(offending lines: {', '.join(str(i) for i in self.indices)})."
        )


class IncompleteValidation(_IncompleteLines):
    label = "validated quantities"


class IncompleteConfirmation(_IncompleteLines):
    label = "confirmed quantities"


class OperationInFlight(WorkflowError):
    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"Another operation on {entity} {entity_id} is still in progress.")


class RemoteFailure(WorkflowError):
    """The remote API call failed (transport error or non-success status)."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        path: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.method = method
        self.path = path
        self.status_code = status_code
        super().__init__(message)


def friendly_error_message(err: Exception) -> str:
    """Turn a workflow error into a short message for the console surface."""
    if isinstance(err, RemoteFailure):
        if err.status_code in (401, 403):
            return "API refused the request (check OPSDESK_API_TOKEN)."
        if err.status_code == 404:
            return "Not found on the API."
        if err.status_code is None:
            return "API unreachable. Check OPSDESK_API_BASE_URL or try again later."
        return f"API error ({err.status_code})."
    msg = str(err).strip()
    return msg or err.__class__.__name__
