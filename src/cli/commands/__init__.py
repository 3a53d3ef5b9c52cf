"""CLI command modules.

Commands:
- sync: Fetch remote PostgreSQL dumps over SSH and restore them locally
"""

from .sync import sync

__all__ = [
    "sync",
]
