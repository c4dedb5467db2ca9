# tests/test_task_lifecycle.py

from __future__ import annotations

import asyncio

import pytest

from opsdesk.core.roles import Actor, Role
from opsdesk.errors import (
    InvalidTransition,
    MissingField,
    NotAllowed,
    OperationInFlight,
    PreconditionFailed,
    RemoteFailure,
)
from opsdesk.tasks.task_lifecycle import TaskLifecycle, allowed_operations, status_view
from opsdesk.tasks.task_models import StatusCatalog, Task, TaskStatus

from .fakes import FakeApi, make_task

ADMIN = Actor("admin1", Role.ADMIN)
C1 = Actor("C1", Role.COLLABORATEUR)
C2 = Actor("C2", Role.COLLABORATEUR)


@pytest.mark.asyncio
async def test_full_lifecycle_to_closed() -> None:
    api = FakeApi(tasks=[make_task("t1", "SAISIE")])
    tasks = TaskLifecycle(api)

    task = await tasks.assign("t1", ADMIN, "C1")
    assert task.status == TaskStatus.AFFECTEE
    assert task.collaborator_id == "C1"

    task = await tasks.accept("t1", C1)
    assert task.status == TaskStatus.ACCEPTEE

    task = await tasks.plan("t1", C1, "2024-06-01", "X")
    assert task.status == TaskStatus.PLANIFIEE
    assert task.execution_date == "2024-06-01"
    assert task.address == "X"

    task = await tasks.report("t1", C1, "done")
    assert task.status == TaskStatus.REPORTEE
    assert task.report == "done"

    task = await tasks.complete("t1", C1, "confirmed")
    assert task.status == TaskStatus.CLOTUREE
    assert task.report == "confirmed"

    writes_before = len(api.writes)
    for call in (
        tasks.assign("t1", ADMIN, "C2"),
        tasks.accept("t1", ADMIN),
        tasks.plan("t1", ADMIN, "2024-06-02", "Y"),
        tasks.report("t1", ADMIN, "again"),
        tasks.complete("t1", ADMIN, "again"),
        tasks.cancel("t1", ADMIN, "too late"),
    ):
        with pytest.raises(InvalidTransition):
            await call
    assert len(api.writes) == writes_before


@pytest.mark.asyncio
async def test_transition_sends_only_status_and_transition_fields() -> None:
    api = FakeApi(tasks=[make_task("t1", "ACCEPTEE", id_collaborateur="C1")])
    await TaskLifecycle(api).plan("t1", C1, " 2024-06-01 ", "12 rue de la Paix")

    assert api.writes == [
        (
            "update_task",
            "t1",
            {
                "statut_tache": "PLANIFIEE",
                "date_execution_tache": "2024-06-01",
                "adresse_tache": "12 rue de la Paix",
            },
        )
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["SAISIE", "ACCEPTEE", "PLANIFIEE", "REPORTEE", "CLOTUREE", "ANNULEE"])
async def test_accept_outside_affectee_is_rejected(status: str) -> None:
    api = FakeApi(tasks=[make_task("t1", status, id_collaborateur="C1")])
    tasks = TaskLifecycle(api)

    with pytest.raises(InvalidTransition) as exc:
        await tasks.accept("t1", C1)

    assert exc.value.current == status
    assert api.writes == []
    assert (await tasks.get("t1")).status == TaskStatus(status)


@pytest.mark.asyncio
async def test_accept_requires_assignee_or_admin() -> None:
    api = FakeApi(tasks=[make_task("t1", "AFFECTEE", id_collaborateur="C1")])
    tasks = TaskLifecycle(api)

    with pytest.raises(NotAllowed):
        await tasks.accept("t1", C2)
    assert api.writes == []

    task = await tasks.accept("t1", ADMIN)
    assert task.status == TaskStatus.ACCEPTEE


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["SAISIE", "ACCEPTEE", "PLANIFIEE"])
async def test_plan_with_date_but_no_collaborator_fails(status: str) -> None:
    api = FakeApi(tasks=[make_task("t1", status)])

    with pytest.raises(PreconditionFailed):
        await TaskLifecycle(api).plan("t1", ADMIN, "2024-06-01", "X")
    assert api.writes == []


@pytest.mark.asyncio
async def test_assign_with_date_but_no_collaborator_fails() -> None:
    api = FakeApi(tasks=[make_task("t1", "SAISIE")])

    with pytest.raises(PreconditionFailed):
        await TaskLifecycle(api).assign("t1", ADMIN, None, execution_date="2024-06-01")
    assert api.writes == []


@pytest.mark.asyncio
async def test_assign_with_collaborator_and_date_sets_both() -> None:
    api = FakeApi(tasks=[make_task("t1", "SAISIE")])

    task = await TaskLifecycle(api).assign("t1", ADMIN, "C1", execution_date="2024-06-01")

    assert task.status == TaskStatus.AFFECTEE
    assert task.execution_date == "2024-06-01"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "operation", "args", "missing"),
    [
        ("SAISIE", "assign", ("",), "id_collaborateur"),
        ("ACCEPTEE", "plan", (None, "X"), "date_execution_tache"),
        ("ACCEPTEE", "plan", ("2024-06-01", "  "), "adresse_tache"),
        ("PLANIFIEE", "report", ("",), "compte_rendu_tache"),
        ("REPORTEE", "complete", (None,), "compte_rendu_tache"),
        ("AFFECTEE", "cancel", ("   ",), "compte_rendu_tache"),
    ],
)
async def test_missing_required_field(status: str, operation: str, args: tuple, missing: str) -> None:
    api = FakeApi(tasks=[make_task("t1", status, id_collaborateur="C1")])
    tasks = TaskLifecycle(api)

    with pytest.raises(MissingField) as exc:
        await getattr(tasks, operation)("t1", ADMIN, *args)

    assert exc.value.field == missing
    assert api.writes == []


@pytest.mark.asyncio
async def test_cancel_twice_is_rejected_the_second_time() -> None:
    api = FakeApi(tasks=[make_task("t1", "PLANIFIEE", id_collaborateur="C1")])
    tasks = TaskLifecycle(api)

    task = await tasks.cancel("t1", ADMIN, "client moved")
    assert task.status == TaskStatus.ANNULEE
    assert task.report == "client moved"

    with pytest.raises(InvalidTransition):
        await tasks.cancel("t1", ADMIN, "again")
    assert len(api.writes) == 1
    assert (await tasks.get("t1")).report == "client moved"


@pytest.mark.asyncio
async def test_postponed_task_can_be_cancelled() -> None:
    api = FakeApi(tasks=[make_task("t1", "REPORTEE", id_collaborateur="C1")])

    task = await TaskLifecycle(api).cancel("t1", C1, "no longer needed")

    assert task.status == TaskStatus.ANNULEE


@pytest.mark.asyncio
async def test_remote_failure_propagates_without_local_change() -> None:
    api = FakeApi(tasks=[make_task("t1", "SAISIE")])
    api.fail_next = 500
    tasks = TaskLifecycle(api)

    with pytest.raises(RemoteFailure) as exc:
        await tasks.assign("t1", ADMIN, "C1")

    assert exc.value.status_code == 500
    assert (await tasks.get("t1")).status == TaskStatus.SAISIE
    assert not tasks.is_busy("t1")


@pytest.mark.asyncio
async def test_second_transition_while_first_in_flight_is_rejected() -> None:
    gate = asyncio.Event()

    class SlowApi(FakeApi):
        async def update_task(self, task_id, changes):
            await gate.wait()
            return await super().update_task(task_id, changes)

    api = SlowApi(tasks=[make_task("t1", "SAISIE")])
    tasks = TaskLifecycle(api)

    first = asyncio.create_task(tasks.assign("t1", ADMIN, "C1"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert tasks.is_busy("t1")

    with pytest.raises(OperationInFlight):
        await tasks.cancel("t1", ADMIN, "oops")

    gate.set()
    task = await first
    assert task.status == TaskStatus.AFFECTEE
    assert not tasks.is_busy("t1")


@pytest.mark.asyncio
async def test_status_references_are_sent_once_loaded() -> None:
    api = FakeApi(
        tasks=[make_task("t1", {"_id": "s1", "nom_statut_tch": "SAISIE"})],
        statuses=[
            {"_id": "s1", "nom_statut_tch": "SAISIE"},
            {"_id": "s2", "nom_statut_tch": "AFFECTED"},
        ],
    )
    tasks = TaskLifecycle(api)
    await tasks.load_statuses()

    task = await tasks.assign("t1", ADMIN, "C1")

    assert api.writes[0][2]["statut_tache"] == "s2"
    assert task.status == TaskStatus.AFFECTEE


def test_allowed_operations_follow_the_table() -> None:
    saisie = Task(id="t", status=TaskStatus.SAISIE)
    assert allowed_operations(saisie, ADMIN) == ("assign", "cancel")

    affectee = Task(id="t", status=TaskStatus.AFFECTEE, collaborator_id="C1")
    assert allowed_operations(affectee, C1) == ("accept", "cancel")
    assert allowed_operations(affectee, C2) == ("cancel",)

    reportee = Task(id="t", status=TaskStatus.REPORTEE, collaborator_id="C1")
    assert allowed_operations(reportee, C1) == ("complete", "cancel")

    closed = Task(id="t", status=TaskStatus.CLOTUREE, collaborator_id="C1")
    assert allowed_operations(closed, ADMIN) == ()


def test_status_view_read_only_for_non_privileged_unless_planned() -> None:
    accepted = Task(id="t", status=TaskStatus.ACCEPTEE, collaborator_id="C1")
    planned = Task(id="t", status=TaskStatus.PLANIFIEE, collaborator_id="C1")

    assert status_view(accepted, ADMIN).status_editable
    assert not status_view(accepted, C1).status_editable
    assert status_view(planned, C1).status_editable
    assert status_view(planned, C1).allowed_operations == ("report", "cancel")
    assert not status_view(planned, C1).terminal


def test_catalog_to_api_falls_back_to_enum_value() -> None:
    assert StatusCatalog().to_api(TaskStatus.PLANIFIEE) == "PLANIFIEE"
