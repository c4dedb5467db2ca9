# src/opsdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the API client into the workflow controllers,
- builds the acting user from settings (passed explicitly from here on).
"""

from __future__ import annotations

import logging

from ..api.client import ApiClient
from ..config import get_settings
from ..core.roles import Actor, Role
from ..core.state import AppState
from ..orders.reconciliation import OrderReconciliation
from ..tasks.task_lifecycle import TaskLifecycle

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def actor_from_settings(settings) -> Actor:
    user_id = str(getattr(settings, "user_id", "") or "").strip() or "anonymous"
    return Actor(user_id=user_id, role=Role.parse(getattr(settings, "role", None)))


def create_initial_state(*, settings=None, api: ApiClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the API client) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if api is None:
        api = ApiClient.from_settings(settings)

    actor = actor_from_settings(settings)
    logger.info("Acting as user=%s role=%s", actor.user_id, actor.role.value)

    return AppState(
        settings=settings,
        actor=actor,
        tasks=TaskLifecycle(api),
        orders=OrderReconciliation(api),
        catalog=api,
    )
