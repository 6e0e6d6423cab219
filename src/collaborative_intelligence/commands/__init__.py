"""CLI commands for ci."""

from collaborative_intelligence.commands.key_cmd import key_app

__all__ = [
    "key_app",
]
