"""Public plan exports for drivemirror."""

from __future__ import annotations

from .actions import Action, ActionKind, Materialize, NoOp, Remove, validate_unique_targets
from .reconcile import ReconciliationEngine
from .sync_plan import SyncPlan

__all__ = [
    "Action",
    "ActionKind",
    "Materialize",
    "Remove",
    "NoOp",
    "SyncPlan",
    "ReconciliationEngine",
    "validate_unique_targets",
]
