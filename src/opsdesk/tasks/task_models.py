# src/opsdesk/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

# Reference names used by the API's task status collection (nom_statut_tch).
_API_ALIASES: dict[str, str] = {
    "AFFECTED": "AFFECTEE",
    "ACCEPTED": "ACCEPTEE",
    "PLANIFIED": "PLANIFIEE",
    "PLANNED": "PLANIFIEE",
    "REPORTED": "REPORTEE",
    "CLOSED": "CLOTUREE",
    "CANCELED": "ANNULEE",
    "CANCELLED": "ANNULEE",
}


class TaskStatus(StrEnum):
    """Task lifecycle phase."""

    SAISIE = "SAISIE"
    AFFECTEE = "AFFECTEE"
    ACCEPTEE = "ACCEPTEE"
    PLANIFIEE = "PLANIFIEE"
    REPORTEE = "REPORTEE"
    CLOTUREE = "CLOTUREE"
    ANNULEE = "ANNULEE"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.CLOTUREE, TaskStatus.ANNULEE)

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def from_api(cls, raw: Any) -> TaskStatus:
        """
        Translate whatever the API sent into a TaskStatus.

        Accepted shapes:
        - "SAISIE" / "PLANIFIEE" (French workflow names)
        - "AFFECTED" / "CLOSED" / ... (status collection names)
        - {"_id": ..., "nom_statut_tch": "..."} reference objects

        Anything else raises ValueError: an unknown status is never guessed.
        """
        if isinstance(raw, TaskStatus):
            return raw
        if isinstance(raw, dict):
            raw = raw.get("nom_statut_tch") or raw.get("name") or raw.get("id")
        if not isinstance(raw, str) or not raw.strip():
            raise ValueError(f"Invalid task status: {raw!r}")
        key = raw.strip().upper()
        key = _API_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Invalid task status: {raw!r}") from None


_LABELS: dict[TaskStatus, str] = {
    TaskStatus.SAISIE: "Saisie",
    TaskStatus.AFFECTEE: "Affectée",
    TaskStatus.ACCEPTEE: "Acceptée",
    TaskStatus.PLANIFIEE: "Planifiée",
    TaskStatus.REPORTEE: "Reportée",
    TaskStatus.CLOTUREE: "Clôturée",
    TaskStatus.ANNULEE: "Annulée",
}


class StatusCatalog:
    """
    Maps TaskStatus <-> server reference ids.

    Some API deployments store statuses as documents and expect their _id in
    PATCH payloads. When the catalog is empty, the enum value itself is sent.
    """

    def __init__(self, refs: dict[TaskStatus, str] | None = None) -> None:
        self._by_status: dict[TaskStatus, str] = dict(refs or {})
        self._by_ref: dict[str, TaskStatus] = {v: k for k, v in self._by_status.items()}

    @classmethod
    def from_api(cls, rows: list[dict[str, Any]]) -> StatusCatalog:
        refs: dict[TaskStatus, str] = {}
        for row in rows:
            ref = row.get("_id")
            if not ref:
                continue
            try:
                status = TaskStatus.from_api(row)
            except ValueError:
                continue
            refs[status] = str(ref)
        return cls(refs)

    def __len__(self) -> int:
        return len(self._by_status)

    def to_api(self, status: TaskStatus) -> str:
        return self._by_status.get(status, status.value)

    def resolve(self, raw: Any) -> TaskStatus:
        """Like TaskStatus.from_api, but also understands bare reference ids."""
        if isinstance(raw, str) and raw in self._by_ref:
            return self._by_ref[raw]
        if isinstance(raw, dict) and raw.get("_id") in self._by_ref and not raw.get("nom_statut_tch"):
            return self._by_ref[raw["_id"]]
        return TaskStatus.from_api(raw)


def _ref_id(raw: Any) -> str | None:
    """References come back either populated ({_id, ...}) or as bare ids."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        ref = raw.get("_id") or raw.get("id")
        return str(ref) if ref else None
    return str(raw)


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw)
    return s if s.strip() else None


@dataclass(slots=True)
class Task:
    id: str
    status: TaskStatus
    title: str = ""
    type_id: str | None = None
    client_id: str | None = None
    project_id: str | None = None
    collaborator_id: str | None = None
    created_on: str | None = None
    execution_date: str | None = None
    description: str | None = None
    address: str | None = None
    report: str | None = None
    notes: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any], catalog: StatusCatalog | None = None) -> Task:
        task_id = data.get("_id") or data.get("id")
        if not task_id:
            raise ValueError("Task payload has no id")
        raw_status = data.get("statut_tache", TaskStatus.SAISIE.value)
        status = catalog.resolve(raw_status) if catalog else TaskStatus.from_api(raw_status)

        execution_date = _opt_str(data.get("date_execution_tache"))
        if execution_date and "T" in execution_date:
            execution_date = execution_date.split("T", 1)[0]

        return cls(
            id=str(task_id),
            status=status,
            title=str(data.get("title_tache") or ""),
            type_id=_ref_id(data.get("type_tache")),
            client_id=_ref_id(data.get("id_client")),
            project_id=_ref_id(data.get("id_projet")),
            collaborator_id=_ref_id(data.get("id_collaborateur")),
            created_on=_opt_str(data.get("date_tache")),
            execution_date=execution_date,
            description=_opt_str(data.get("description_tache")),
            address=_opt_str(data.get("adresse_tache")),
            report=_opt_str(data.get("compte_rendu_tache")),
            notes=_opt_str(data.get("notes_tache")),
            extra={k: v for k, v in data.items() if k in ("createdAt", "updatedAt")},
        )

    def with_changes(self, **changes: Any) -> Task:
        return replace(self, **changes)


# Partial update keys, as the API names them.
FIELD_COLLABORATOR = "id_collaborateur"
FIELD_EXECUTION_DATE = "date_execution_tache"
FIELD_ADDRESS = "adresse_tache"
FIELD_REPORT = "compte_rendu_tache"
FIELD_STATUS = "statut_tache"
