# tests/test_task_models.py

from __future__ import annotations

import pytest

from opsdesk.tasks.task_models import StatusCatalog, Task, TaskStatus


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("SAISIE", TaskStatus.SAISIE),
        ("planifiee", TaskStatus.PLANIFIEE),
        ("AFFECTED", TaskStatus.AFFECTEE),
        ("CANCELED", TaskStatus.ANNULEE),
        ({"_id": "x", "nom_statut_tch": "CLOSED"}, TaskStatus.CLOTUREE),
        (TaskStatus.REPORTEE, TaskStatus.REPORTEE),
    ],
)
def test_status_from_api_accepts_every_shape(raw, expected) -> None:
    assert TaskStatus.from_api(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "DONE", {"_id": "x"}, 3])
def test_unknown_status_is_rejected(raw) -> None:
    with pytest.raises(ValueError):
        TaskStatus.from_api(raw)


def test_terminal_statuses() -> None:
    assert {s for s in TaskStatus if s.is_terminal} == {TaskStatus.CLOTUREE, TaskStatus.ANNULEE}


def test_catalog_resolves_bare_reference_ids() -> None:
    catalog = StatusCatalog.from_api(
        [
            {"_id": "s4", "nom_statut_tch": "PLANIFIED"},
            {"_id": "bad", "nom_statut_tch": "WHATEVER"},
            {"nom_statut_tch": "SAISIE"},
        ]
    )

    assert len(catalog) == 1
    assert catalog.resolve("s4") == TaskStatus.PLANIFIEE
    assert catalog.resolve({"_id": "s4"}) == TaskStatus.PLANIFIEE
    assert catalog.resolve("SAISIE") == TaskStatus.SAISIE
    assert catalog.to_api(TaskStatus.PLANIFIEE) == "s4"


def test_task_from_api_with_populated_references() -> None:
    task = Task.from_api(
        {
            "_id": "t9",
            "title_tache": "Fix boiler",
            "id_client": {"_id": "client1", "nom": "ACME"},
            "id_collaborateur": {"_id": "C1"},
            "statut_tache": {"_id": "s", "nom_statut_tch": "PLANIFIED"},
            "date_execution_tache": "2024-06-01T00:00:00.000Z",
            "adresse_tache": "",
            "updatedAt": "2024-06-01",
        }
    )

    assert task.id == "t9"
    assert task.client_id == "client1"
    assert task.collaborator_id == "C1"
    assert task.status == TaskStatus.PLANIFIEE
    assert task.execution_date == "2024-06-01"
    assert task.address is None
    assert task.extra == {"updatedAt": "2024-06-01"}


def test_task_from_api_defaults_to_saisie_and_requires_id() -> None:
    assert Task.from_api({"id": "t1"}).status == TaskStatus.SAISIE
    with pytest.raises(ValueError):
        Task.from_api({"title_tache": "no id"})
