# src/opsdesk/tasks/task_lifecycle.py

from __future__ import annotations

"""
Task lifecycle controller.

Every status change goes through one named operation that:
- checks the task's current status against the transition table,
- checks the fields the transition requires,
- sends one partial update (new status + transition fields) to the API,
- returns the task as the API returned it.

Nothing is applied locally before the API answers; the returned task is the
authoritative one.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..core.inflight import InFlight
from ..core.ports import TaskGateway
from ..core.roles import Actor
from ..errors import InvalidTransition, MissingField, NotAllowed, PreconditionFailed
from .task_models import (
    FIELD_ADDRESS,
    FIELD_COLLABORATOR,
    FIELD_EXECUTION_DATE,
    FIELD_REPORT,
    FIELD_STATUS,
    StatusCatalog,
    Task,
    TaskStatus,
)

logger = logging.getLogger(__name__)

_NON_TERMINAL = tuple(s for s in TaskStatus if not s.is_terminal)


@dataclass(slots=True, frozen=True)
class Transition:
    operation: str
    sources: tuple[TaskStatus, ...]
    target: TaskStatus
    required: tuple[str, ...] = ()


TRANSITIONS: dict[str, Transition] = {
    t.operation: t
    for t in (
        Transition("assign", (TaskStatus.SAISIE,), TaskStatus.AFFECTEE, (FIELD_COLLABORATOR,)),
        Transition("accept", (TaskStatus.AFFECTEE,), TaskStatus.ACCEPTEE),
        Transition(
            "plan",
            (TaskStatus.ACCEPTEE,),
            TaskStatus.PLANIFIEE,
            (FIELD_EXECUTION_DATE, FIELD_ADDRESS),
        ),
        Transition("report", (TaskStatus.PLANIFIEE,), TaskStatus.REPORTEE, (FIELD_REPORT,)),
        Transition("complete", (TaskStatus.REPORTEE,), TaskStatus.CLOTUREE, (FIELD_REPORT,)),
        Transition("cancel", _NON_TERMINAL, TaskStatus.ANNULEE, (FIELD_REPORT,)),
    )
}


@dataclass(slots=True, frozen=True)
class StatusView:
    """What a screen needs to render the status control."""

    current: TaskStatus
    allowed_operations: tuple[str, ...]
    status_editable: bool

    @property
    def terminal(self) -> bool:
        return self.current.is_terminal


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def may_accept(task: Task, actor: Actor) -> bool:
    return actor.role.is_privileged or (
        task.collaborator_id is not None and task.collaborator_id == actor.user_id
    )


def allowed_operations(task: Task, actor: Actor) -> tuple[str, ...]:
    ops: list[str] = []
    for name, t in TRANSITIONS.items():
        if task.status not in t.sources:
            continue
        if name == "accept" and not may_accept(task, actor):
            continue
        ops.append(name)
    return tuple(ops)


def status_view(task: Task, actor: Actor) -> StatusView:
    """
    Current status + the operations this actor may trigger next.

    Non-privileged users only get an editable status control on planned tasks.
    """
    return StatusView(
        current=task.status,
        allowed_operations=allowed_operations(task, actor),
        status_editable=actor.role.is_privileged or task.status == TaskStatus.PLANIFIEE,
    )


class TaskLifecycle:
    def __init__(self, gateway: TaskGateway, catalog: StatusCatalog | None = None) -> None:
        self._gateway = gateway
        self._catalog = catalog or StatusCatalog()
        self._inflight = InFlight("task")

    @property
    def catalog(self) -> StatusCatalog:
        return self._catalog

    def is_busy(self, task_id: str) -> bool:
        return self._inflight.is_busy(task_id)

    async def load_statuses(self) -> StatusCatalog:
        """Fetch the server's status collection so PATCHes carry reference ids."""
        rows = await self._gateway.list_task_statuses()
        self._catalog = StatusCatalog.from_api(rows)
        logger.info("Loaded %d task status references", len(self._catalog))
        return self._catalog

    async def get(self, task_id: str) -> Task:
        raw = await self._gateway.get_task(task_id)
        return Task.from_api(raw, self._catalog)

    # ---- operations ----

    async def assign(
        self,
        task_id: str,
        actor: Actor,
        collaborator_id: str | None,
        *,
        execution_date: str | None = None,
    ) -> Task:
        fields: dict[str, Any] = {FIELD_COLLABORATOR: collaborator_id}
        if not _blank(execution_date):
            fields[FIELD_EXECUTION_DATE] = execution_date
        return await self._apply("assign", task_id, actor, fields)

    async def accept(self, task_id: str, actor: Actor) -> Task:
        return await self._apply("accept", task_id, actor, {})

    async def plan(
        self, task_id: str, actor: Actor, execution_date: str | None, address: str | None
    ) -> Task:
        return await self._apply(
            "plan",
            task_id,
            actor,
            {FIELD_EXECUTION_DATE: execution_date, FIELD_ADDRESS: address},
        )

    async def report(self, task_id: str, actor: Actor, text: str | None) -> Task:
        return await self._apply("report", task_id, actor, {FIELD_REPORT: text})

    async def complete(self, task_id: str, actor: Actor, text: str | None) -> Task:
        return await self._apply("complete", task_id, actor, {FIELD_REPORT: text})

    async def cancel(self, task_id: str, actor: Actor, reason: str | None) -> Task:
        return await self._apply("cancel", task_id, actor, {FIELD_REPORT: reason})

    # ---- internals ----

    def _check(self, transition: Transition, task: Task, actor: Actor, fields: dict[str, Any]) -> None:
        # Execution dates are meaningless without an assignee.
        if not _blank(fields.get(FIELD_EXECUTION_DATE)) and _blank(
            fields.get(FIELD_COLLABORATOR, task.collaborator_id)
        ):
            raise PreconditionFailed(
                "Please select a collaborator before setting an execution date."
            )

        if task.status not in transition.sources:
            raise InvalidTransition(
                transition.operation, task.status.value, (s.value for s in transition.sources)
            )

        for name in transition.required:
            if _blank(fields.get(name)):
                raise MissingField(transition.operation, name)

        if transition.operation == "accept" and not may_accept(task, actor):
            raise NotAllowed(
                f"Only the assigned collaborator or an admin can accept task {task.id}."
            )

    async def _apply(self, operation: str, task_id: str, actor: Actor, fields: dict[str, Any]) -> Task:
        transition = TRANSITIONS[operation]
        with self._inflight.claim(task_id):
            task = await self.get(task_id)
            self._check(transition, task, actor, fields)

            changes: dict[str, Any] = {FIELD_STATUS: self._catalog.to_api(transition.target)}
            for key, value in fields.items():
                if not _blank(value):
                    changes[key] = value.strip() if isinstance(value, str) else value

            logger.info(
                "Task %s: %s %s -> %s (by %s/%s)",
                task_id,
                operation,
                task.status.value,
                transition.target.value,
                actor.user_id,
                actor.role.value,
            )
            raw = await self._gateway.update_task(task_id, changes)

        updated = Task.from_api(raw, self._catalog)
        if updated.status != transition.target:
            logger.warning(
                "Task %s: API returned status %s after %s (expected %s)",
                task_id,
                updated.status.value,
                operation,
                transition.target.value,
            )
        return updated
