"""Reconciliation engine and its observable state."""

from fridgelist.engine.reconciler import ReconciliationEngine, clamp_quantity, merge_local_edits
from fridgelist.engine.state import ListState, LoadStatus

__all__ = [
    "ReconciliationEngine",
    "ListState",
    "LoadStatus",
    "clamp_quantity",
    "merge_local_edits",
]
