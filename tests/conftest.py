# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from opsdesk.cli.bootstrap import create_initial_state
from opsdesk.core.state import AppState

from .fakes import FakeApi, make_order, make_task


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="opsdesk-test",
        log_level="DEBUG",
        api_base_url="http://api.test",
        api_token=None,
        connect_timeout_seconds=1.0,
        read_timeout_seconds=1.0,
        load_status_refs=False,
        user_id="admin1",
        role="admin",
        console_enabled=False,
        data_dir=tmp_path / "data",
    )


@pytest.fixture()
def api() -> FakeApi:
    return FakeApi(
        tasks=[
            make_task("t1", "SAISIE"),
            make_task("t2", "AFFECTEE", id_collaborateur="C1"),
        ],
        orders=[
            make_order(
                "o1",
                "VALIDATED",
                [
                    {"id_article": "A1", "quantite_cmd": 3, "quantite_valid": 5, "quantite_confr": 0},
                    {"id_article": "A2", "quantite_cmd": 1, "quantite_valid": 1, "quantite_confr": 0},
                ],
            )
        ],
        articles=[
            {"_id": "A1", "art_id": "LAP-01", "art_designation": "Premium Laptop", "art_cat_niv_1": "Electronics"},
            {"_id": "A2", "art_id": "MOU-02", "art_designation": "Wireless Mouse", "art_cat_niv_1": "Accessories"},
            {"_id": "A3", "art_id": "MON-03", "art_designation": "External Monitor", "art_cat_niv_1": "Electronics"},
        ],
    )


@pytest.fixture()
def state(settings: SimpleNamespace, api: FakeApi) -> AppState:
    """AppState wired with the in-memory API fake."""
    return create_initial_state(settings=settings, api=api)  # type: ignore[arg-type]
