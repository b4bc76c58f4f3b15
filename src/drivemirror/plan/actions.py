"""Plan actions for drivemirror."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from drivemirror.classify.strategy import Strategy
from drivemirror.errors import InvalidStateError
from drivemirror.models import RemoteItem


class ActionKind(str, Enum):
    """Supported plan actions."""

    MATERIALIZE = "MATERIALIZE"
    REMOVE = "REMOVE"
    NOOP = "NOOP"


@dataclass(slots=True, frozen=True)
class Materialize:
    """
    Write the sidecar (and content file, if any) for a remote item.

    `stale_paths` are earlier artifacts of the same item (rename or move)
    that are deleted once the new ones are written.
    """

    item: RemoteItem
    strategy: Strategy
    path: str
    sidecar_path: str
    content_path: Optional[str] = None
    stale_paths: tuple[str, ...] = ()
    reason: str = ""

    @property
    def kind(self) -> ActionKind:
        return ActionKind.MATERIALIZE

    @property
    def target_path(self) -> str:
        return self.content_path or self.sidecar_path

    def targets(self) -> tuple[str, ...]:
        written = (self.sidecar_path,) if self.content_path is None else (self.sidecar_path, self.content_path)
        return written + self.stale_paths


@dataclass(slots=True, frozen=True)
class Remove:
    local_path: str
    remote_id: str
    reason: str = ""

    @property
    def kind(self) -> ActionKind:
        return ActionKind.REMOVE

    @property
    def target_path(self) -> str:
        return self.local_path

    def targets(self) -> tuple[str, ...]:
        return (self.local_path,)


@dataclass(slots=True, frozen=True)
class NoOp:
    path: str
    remote_id: str
    content_path: Optional[str] = None

    @property
    def kind(self) -> ActionKind:
        return ActionKind.NOOP

    @property
    def target_path(self) -> str:
        return self.content_path or self.path

    def targets(self) -> tuple[str, ...]:
        return (self.path,) if self.content_path is None else (self.path, self.content_path)


Action = Union[Materialize, Remove, NoOp]


def validate_unique_targets(actions: Iterable[Action]) -> None:
    """
    Ensure no local path is claimed by more than one action.

    Raises:
        InvalidStateError: listing every path claimed twice.
    """
    counts = Counter(path for action in actions for path in action.targets())
    duplicates = sorted(path for path, n in counts.items() if n > 1)
    if duplicates:
        raise InvalidStateError(
            "Plan targets the same local path more than once",
            details={"paths": duplicates},
        )
