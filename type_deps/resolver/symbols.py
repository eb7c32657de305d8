"""Tree-wide symbol index used for cross-file type resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class SymbolIndex:
    """Dotted names of every type a source root can provide.

    A unit at ``<root>/com/acme/Order.java`` registers ``Order``,
    ``acme.Order`` and ``com.acme.Order``: the root does not have to be
    the source root for the package-qualified name to be found.
    """
    names: frozenset[str] = frozenset()

    @classmethod
    def build(cls, root: Path, unit_paths: Iterable[Path]) -> SymbolIndex:
        root = Path(root)
        names: set[str] = set()
        for path in unit_paths:
            try:
                relative = Path(path).relative_to(root)
            except ValueError:
                relative = Path(Path(path).name)
            parts = list(relative.parent.parts) + [relative.stem]
            for i in range(len(parts)):
                names.add(".".join(parts[i:]))
        return cls(names=frozenset(names))

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self.names

    def __len__(self) -> int:
        return len(self.names)
