"""Kontroler CLI - manage DAGs, runs and pod logs from the command line."""

from kontroler_sdk import __version__

__all__ = ["__version__"]
