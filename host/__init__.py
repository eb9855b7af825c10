"""WebSocket host package: wraps the baccarat round engine with networking."""

from .server import ClientSession, TableServer

__all__ = ["ClientSession", "TableServer"]
