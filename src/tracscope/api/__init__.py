"""API components - dashboard HTTP/SSE server."""

from tracscope.api.server import DashboardServer

__all__ = ["DashboardServer"]
