"""opsdesk: task lifecycle and order reconciliation workflows for the ops dashboard."""

__version__ = "0.1.0"
