"""HTTP API for type-deps (requires the ``web`` extra)."""

from type_deps.web.app import create_app

__all__ = ["create_app"]
