"""Parallelism analysis over recorded transaction dependencies."""

from parastate.analysis.dag import ConflictDAG

__all__ = ["ConflictDAG"]
