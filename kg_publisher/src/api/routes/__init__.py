"""HTTP API route handlers."""

from . import graph, publish, spaces, tags

__all__ = ["graph", "publish", "spaces", "tags"]
