"""FastAPI application factory."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI

from type_deps import __version__
from type_deps.web.api import router


def create_app(allowed_root: Path | None = None) -> FastAPI:
    """Build the API app. Requested paths must live under ``allowed_root``
    (the user's home directory by default)."""
    app = FastAPI(title="type-deps", version=__version__)
    app.state.allowed_root = Path(allowed_root or Path.home()).expanduser().resolve()
    app.include_router(router)
    return app
