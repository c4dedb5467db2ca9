# src/opsdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..orders.catalog import ArticleSelection
from ..orders.order_models import Order
from ..orders.reconciliation import OrderReconciliation
from ..tasks.task_lifecycle import TaskLifecycle
from .ports import CatalogGateway
from .roles import Actor


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    actor: Actor
    tasks: TaskLifecycle
    orders: OrderReconciliation
    catalog: CatalogGateway

    # Orders being edited in this session, keyed by order id. Nothing here is
    # persisted until /submit.
    drafts: dict[str, Order] = field(default_factory=dict)
    selection: ArticleSelection = field(default_factory=ArticleSelection)
