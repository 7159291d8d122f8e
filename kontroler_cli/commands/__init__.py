"""CLI commands for Kontroler."""

from . import dags, logs, runs, tasks

__all__ = [
    "dags",
    "runs",
    "tasks",
    "logs",
]
