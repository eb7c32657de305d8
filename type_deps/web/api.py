"""FastAPI routes: whole-tree and single-unit analysis."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from type_deps.errors import AnalysisError, CapacityExceeded, InvalidRoot
from type_deps.models import (
    DEFAULT_EXCLUDED_PREFIXES,
    AnalysisConfig,
    FailurePolicy,
    OverflowStrategy,
)
from type_deps.orchestrator import Orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# --- Request models ---

class AnalyzeRequest(BaseModel):
    path: str
    limit: int = Field(default=1000, ge=1)
    overflow: OverflowStrategy = OverflowStrategy.ERROR
    best_effort: bool = False
    exclude: list[str] = Field(default_factory=list)
    include_imports: bool = False

class UnitRequest(BaseModel):
    path: str
    exclude: list[str] = Field(default_factory=list)


# --- Path safety ---

def _validate_path(p: str, allowed_root: Path) -> Path:
    """Ensure path exists and is under the allowed root."""
    resolved = Path(p).expanduser().resolve()
    if not resolved.is_relative_to(allowed_root):
        raise HTTPException(403, f"Path must be under {allowed_root}")
    if not resolved.exists():
        raise HTTPException(404, f"Path not found: {resolved}")
    return resolved


def _error_detail(error: AnalysisError) -> dict:
    return {
        "error": type(error).__name__,
        "message": str(error),
        "unit": str(error.unit) if error.unit is not None else None,
    }


def _http_error(error: AnalysisError) -> HTTPException:
    if isinstance(error, InvalidRoot):
        status = 404
    elif isinstance(error, CapacityExceeded):
        status = 503
    else:
        status = 422
    return HTTPException(status, _error_detail(error))


# --- Endpoints ---

@router.post("/analyze")
async def analyze(req: AnalyzeRequest, request: Request):
    root = _validate_path(req.path, request.app.state.allowed_root)
    if not root.is_dir():
        raise HTTPException(400, "Path must be a directory")

    config = AnalysisConfig(
        excluded_prefixes=DEFAULT_EXCLUDED_PREFIXES + tuple(req.exclude),
        include_imports=req.include_imports,
        backpressure_limit=req.limit,
        overflow=req.overflow,
        failure_policy=FailurePolicy.BEST_EFFORT if req.best_effort else FailurePolicy.FAIL_FAST,
    )
    try:
        result = await Orchestrator(config).analyze(root)
    except AnalysisError as e:
        logger.warning("Analysis of %s failed: %s", root, e)
        raise _http_error(e)
    return result.to_dict()


@router.post("/unit")
async def analyze_unit(req: UnitRequest, request: Request):
    path = _validate_path(req.path, request.app.state.allowed_root)
    if not path.is_file():
        raise HTTPException(400, "Path must be a file")

    config = AnalysisConfig(excluded_prefixes=DEFAULT_EXCLUDED_PREFIXES + tuple(req.exclude))
    try:
        report = await Orchestrator(config).analyze_unit(path)
    except AnalysisError as e:
        raise _http_error(e)
    return report.to_dict()
