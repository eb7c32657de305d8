"""Data models for the type-deps analysis pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_EXCLUDED_PREFIXES: tuple[str, ...] = (
    "java.lang", "java.util", "java.io", "java.math",
    "java.time", "java.text", "java.nio", "java.net",
)

DEFAULT_SKIP_DIRS: tuple[str, ...] = (
    ".git", ".svn", ".hg", ".idea", ".gradle", "node_modules",
    "build", "target", "out", "dist", ".venv", "venv",
)


class DependencyKind(enum.Enum):
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    FIELD = "field"
    METHOD_PARAMETER = "method_parameter"
    METHOD_RETURN = "method_return"
    INSTANTIATION = "instantiation"
    IMPORT = "import"


class RunState(enum.Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    CLASSIFYING = "classifying"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"


class FailurePolicy(enum.Enum):
    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"


class OverflowStrategy(enum.Enum):
    ERROR = "error"
    BLOCK = "block"


@dataclass(frozen=True)
class DependencyEdge:
    """A typed, located reference from one type to another."""
    source_type: str
    target_type: str
    kind: DependencyKind
    snippet: str = ""
    line: int = -1

    def __str__(self) -> str:
        return f"{self.target_type} ({self.kind.value}: {self.snippet} at line: {self.line})"

    def to_dict(self) -> dict:
        return {
            "source": self.source_type,
            "target": self.target_type,
            "kind": self.kind.value,
            "snippet": self.snippet,
            "line": self.line,
        }


@dataclass
class UnitFailure:
    """A unit that could not be classified under the best-effort policy."""
    path: Path
    error: Exception

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "error": type(self.error).__name__,
            "message": str(self.error),
        }


@dataclass
class AnalysisConfig:
    """Configuration for an analysis run."""
    extensions: tuple[str, ...] = (".java",)
    skip_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_SKIP_DIRS))
    excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES
    include_imports: bool = False
    backpressure_limit: int = 1000
    overflow: OverflowStrategy = OverflowStrategy.ERROR
    admission_timeout: float | None = 30.0
    unit_timeout: float | None = 60.0
    max_workers: int | None = None
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST

    def __post_init__(self):
        if self.backpressure_limit < 1:
            raise ValueError(
                f"backpressure_limit must be a positive integer, got {self.backpressure_limit!r}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers!r}")
        for name in ("admission_timeout", "unit_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive or None, got {value!r}")
        if not self.extensions:
            raise ValueError("at least one file extension is required")
