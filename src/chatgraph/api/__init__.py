"""HTTP API for chatgraph."""

from chatgraph.api.app import create_app

__all__ = ["create_app"]
