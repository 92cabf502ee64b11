"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Provider archive clients (HTTP)
- Configuration loading (environment/files)
- Background refresh timer

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.archive_client import ArchiveClient, create_archive_clients
from src.shell.config_loader import load_config
from src.shell.refresh_scheduler import RefreshScheduler

__all__ = [
    "ArchiveClient",
    "create_archive_clients",
    "load_config",
    "RefreshScheduler",
]
