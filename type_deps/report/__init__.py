"""Report hierarchy and rendering."""

from __future__ import annotations

from type_deps.report.models import GroupingReport, UnitReport, WholeTreeReport
from type_deps.report.text import render_grouping, render_tree, render_unit

__all__ = [
    "GroupingReport",
    "UnitReport",
    "WholeTreeReport",
    "render_grouping",
    "render_tree",
    "render_unit",
]
