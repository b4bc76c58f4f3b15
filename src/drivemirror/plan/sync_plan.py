"""SyncPlan model."""

from __future__ import annotations

from dataclasses import dataclass, field

from drivemirror.models import UntrackedItem

from .actions import Action, ActionKind, Materialize, NoOp, Remove


@dataclass(slots=True)
class SyncPlan:
    """Ordered actions for one target plus the remote items left untracked."""

    actions: list[Action] = field(default_factory=list)
    untracked: list[UntrackedItem] = field(default_factory=list)

    @property
    def materializations(self) -> list[Materialize]:
        return [a for a in self.actions if isinstance(a, Materialize)]

    @property
    def removals(self) -> list[Remove]:
        return [a for a in self.actions if isinstance(a, Remove)]

    @property
    def noops(self) -> list[NoOp]:
        return [a for a in self.actions if isinstance(a, NoOp)]

    @property
    def has_changes(self) -> bool:
        return any(a.kind is not ActionKind.NOOP for a in self.actions)

    def summary(self) -> dict[str, int]:
        return {
            "materialize": len(self.materializations),
            "remove": len(self.removals),
            "noop": len(self.noops),
            "untracked": len(self.untracked),
        }
