"""Identifier propagation across a graph of program versions.

Flow:
1) build a version graph from ingested versions, existing ID tables and diff edges
2) pick anchors (versions with a bin) or bootstrap the smallest version
3) walk the graph breadth-first, one frontier level at a time
4) plan each version of a level against neighbours resolved earlier
5) reserve fresh IDs for the level in version order and attach the tables
"""

from __future__ import annotations

from .counter import GlobalIdCounter
from .engine import PropagationEngine, resolve
from .graph import VersionGraph, build_version_graph
from .policy import InheritancePolicy
from .report import AmbiguityDiagnostic, ResolutionReport, VersionOutcome
from .resolve import CategoryPlan, ResolvedNeighbour, VersionPlan, plan_bootstrap, plan_version

__all__ = [
    "AmbiguityDiagnostic",
    "CategoryPlan",
    "GlobalIdCounter",
    "InheritancePolicy",
    "PropagationEngine",
    "ResolutionReport",
    "ResolvedNeighbour",
    "VersionGraph",
    "VersionOutcome",
    "VersionPlan",
    "build_version_graph",
    "plan_bootstrap",
    "plan_version",
    "resolve",
]
