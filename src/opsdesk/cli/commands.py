# src/opsdesk/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.roles import Actor, Role
from ..core.state import AppState
from ..orders.catalog import Article, filter_articles
from ..orders.order_models import Order
from ..orders.permissions import editable_field
from ..orders.reconciliation import adjust_quantity, remove_line
from ..tasks.task_lifecycle import status_view
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console and one-shot CLI (/help, /task, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Workflow errors propagate; the caller decides how to present them.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def format_task(task: Task, actor: Actor) -> str:
    view = status_view(task, actor)
    ops = ", ".join(view.allowed_operations) or "none"
    lines = [
        f"Task {task.id}: {task.title or '(untitled)'}",
        f"  Status: {task.status.label} ({task.status.value})"
        + ("" if view.status_editable else " [read-only]"),
        f"  Collaborator: {task.collaborator_id or '-'}",
        f"  Execution date: {task.execution_date or '-'}",
        f"  Address: {task.address or '-'}",
    ]
    if task.report:
        lines.append(f"  Report: {task.report}")
    lines.append(f"  Next: {ops}")
    return "\n".join(lines)


def format_order(order: Order) -> str:
    lines = [f"Order {order.id or '(new)'} [{order.status.value}] client={order.client_id}"]
    if not order.lines:
        lines.append("  (no lines)")
    for i, line in enumerate(order.lines):
        lines.append(
            f"  {i}. {line.article_id}  cmd={line.quantite_cmd} "
            f"valid={line.quantite_valid} confr={line.quantite_confr} [{line.status.value}]"
        )
    return "\n".join(lines)


def _rest(args: list[str], start: int) -> str:
    return " ".join(args[start:]).strip()


async def _draft(state: AppState, order_id: str) -> Order:
    order = state.drafts.get(order_id)
    if order is None:
        order = await state.orders.get(order_id)
        state.drafts[order_id] = order
    return order


# ---- session ----


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_whoami(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return f"user={state.actor.user_id} role={state.actor.role.value}"


async def cmd_as(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/as <user_id> [role]"""
    if not args:
        return "Usage: /as <user_id> [admin|collaborateur|client|author]"
    role = Role.parse(args[1]) if len(args) > 1 else state.actor.role
    state.actor = Actor(user_id=args[0], role=role)
    logger.debug("Actor switched to user=%s role=%s", state.actor.user_id, role.value)
    return f"Now acting as user={state.actor.user_id} role={role.value}"


# ---- tasks ----


async def cmd_task(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /task <id>"
    task = await state.tasks.get(args[0])
    return format_task(task, state.actor)


async def cmd_assign(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/assign <task_id> <collaborator_id> [execution_date]"""
    if not args:
        return "Usage: /assign <task_id> <collaborator_id> [execution_date]"
    collaborator = args[1] if len(args) > 1 else None
    execution_date = args[2] if len(args) > 2 else None
    task = await state.tasks.assign(
        args[0], state.actor, collaborator, execution_date=execution_date
    )
    return format_task(task, state.actor)


async def cmd_accept(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /accept <task_id>"
    task = await state.tasks.accept(args[0], state.actor)
    return format_task(task, state.actor)


async def cmd_plan(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/plan <task_id> <YYYY-MM-DD> <address...>"""
    if not args:
        return "Usage: /plan <task_id> <YYYY-MM-DD> <address...>"
    execution_date = args[1] if len(args) > 1 else None
    task = await state.tasks.plan(args[0], state.actor, execution_date, _rest(args, 2))
    return format_task(task, state.actor)


async def cmd_report(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /report <task_id> <text...>"
    task = await state.tasks.report(args[0], state.actor, _rest(args, 1))
    return format_task(task, state.actor)


async def cmd_complete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /complete <task_id> <report...>"
    task = await state.tasks.complete(args[0], state.actor, _rest(args, 1))
    return format_task(task, state.actor)


async def cmd_cancel(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /cancel <task_id> <reason...>"
    task = await state.tasks.cancel(args[0], state.actor, _rest(args, 1))
    return format_task(task, state.actor)


# ---- orders ----


async def cmd_order(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /order <id>         -> load (or show the local draft of) an order
    /order <id> reload  -> drop local edits and reload from the API
    """
    if not args:
        return "Usage: /order <id> [reload]"
    if len(args) > 1 and args[1].lower() == "reload":
        state.drafts.pop(args[0], None)
    order = await _draft(state, args[0])
    return format_order(order)


async def cmd_qty(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/qty <order_id> <line> <delta>: steps the quantity this role owns."""
    if len(args) < 3:
        return "Usage: /qty <order_id> <line> <delta>"
    try:
        index, delta = int(args[1]), int(args[2])
    except ValueError:
        return "Line and delta must be integers."
    order = await _draft(state, args[0])
    qty_field = editable_field(state.actor.role)
    state.drafts[args[0]] = order.with_lines(
        adjust_quantity(order.lines, index, delta, qty_field, state.actor.role)
    )
    return format_order(state.drafts[args[0]])


async def cmd_find(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/find [search] [--cat <category>]"""
    category = None
    if "--cat" in args:
        i = args.index("--cat")
        category = _rest(args, i + 1) or None
        args = args[:i]
    rows = await state.catalog.list_articles(search=_rest(args, 0) or None)
    articles = filter_articles((Article.from_api(r) for r in rows), _rest(args, 0), category)
    if not articles:
        return "No articles match."
    return "\n".join(f"  {a.id}  {a.designation} ({', '.join(a.categories) or '-'})" for a in articles)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/add <order_id> <article_id>[:qty] ...: merges articles into the draft."""
    if len(args) < 2:
        return "Usage: /add <order_id> <article_id>[:qty] ..."
    order = await _draft(state, args[0])
    state.selection.clear()
    for token in args[1:]:
        article_id, _, qty = token.partition(":")
        n = int(qty) if qty.isdigit() else 1
        # the same article listed twice adds up
        if article_id in state.selection:
            state.selection.adjust(article_id, n)
        else:
            state.selection.select(article_id, n)
    state.drafts[args[0]] = order.with_lines(state.selection.apply(order.lines))
    return format_order(state.drafts[args[0]])


async def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2 or not args[1].isdigit():
        return "Usage: /rm <order_id> <line>"
    order = await _draft(state, args[0])
    state.drafts[args[0]] = order.with_lines(remove_line(order.lines, int(args[1])))
    return format_order(state.drafts[args[0]])


async def cmd_submit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /submit <order_id>"
    order = state.drafts.get(args[0])
    if order is None:
        return f"No local edits for order {args[0]}. Use /order {args[0]} first."
    if emit:
        emit(f"Submitting order {args[0]}...")
    saved = await state.orders.submit(order, state.actor)
    state.drafts.pop(args[0], None)
    return "Order saved.\n" + format_order(saved)


def _after_action(state: AppState, order_id: str, saved: Order, verb: str) -> str:
    # the server changed the order; a local draft would be stale
    state.drafts.pop(order_id, None)
    return f"Order {verb}.\n" + format_order(saved)


async def cmd_validate(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /validate <order_id>"
    saved = await state.orders.validate(args[0], state.actor)
    return _after_action(state, args[0], saved, "validated")


async def cmd_confirm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /confirm <order_id>"
    saved = await state.orders.confirm(args[0], state.actor)
    return _after_action(state, args[0], saved, "confirmed")


async def cmd_deliver(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /deliver <order_id>"
    saved = await state.orders.deliver(args[0], state.actor)
    return _after_action(state, args[0], saved, "delivered")


async def cmd_void(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/void <order_id> <reason...>: cancels an order (/cancel is the task operation)."""
    if not args:
        return "Usage: /void <order_id> <reason...>"
    saved = await state.orders.cancel(args[0], state.actor, _rest(args, 1))
    return _after_action(state, args[0], saved, "cancelled")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("whoami", cmd_whoami, help_text="Show the acting user and role.")
registry.register("as", cmd_as, help_text="Act as another user: /as <user_id> [role].")
registry.register("task", cmd_task, help_text="Show a task and its next operations: /task <id>.")
registry.register("assign", cmd_assign, help_text="Assign: /assign <id> <collaborator> [date].")
registry.register("accept", cmd_accept, help_text="Accept an assigned task: /accept <id>.")
registry.register("plan", cmd_plan, help_text="Plan: /plan <id> <date> <address...>.")
registry.register("report", cmd_report, help_text="Postpone with a report: /report <id> <text...>.")
registry.register("complete", cmd_complete, help_text="Close: /complete <id> <report...>.")
registry.register("cancel", cmd_cancel, help_text="Cancel: /cancel <id> <reason...>.")
registry.register("order", cmd_order, help_text="Load/show an order draft: /order <id> [reload].")
registry.register("qty", cmd_qty, help_text="Step your quantity: /qty <order> <line> <delta>.")
registry.register("find", cmd_find, help_text="Search the catalog: /find [text] [--cat <category>].")
registry.register("add", cmd_add, help_text="Add articles: /add <order> <article>[:qty] ...")
registry.register("rm", cmd_rm, help_text="Remove a line: /rm <order> <line>.")
registry.register("submit", cmd_submit, help_text="Validate and save an order: /submit <order>.")
registry.register("validate", cmd_validate, help_text="Mark an order validated (admin): /validate <order>.")
registry.register("confirm", cmd_confirm, help_text="Confirm a validated order: /confirm <order>.")
registry.register("deliver", cmd_deliver, help_text="Mark an order delivered (admin): /deliver <order>.")
registry.register(
    "void",
    cmd_void,
    help_text="Cancel an order (admin): /void <order> <reason...>.",
    aliases=["cancel-order"],
)
