"""Handling of remote items that are not mirrored locally."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Iterable, Optional

from drivemirror.config.sync_config import UNTRACK_POLICIES
from drivemirror.errors import DriveMirrorError, NotFoundError, ValidationError, describe_error
from drivemirror.models import UntrackedItem, UntrackedResolution
from drivemirror.util.cancel import CancellationToken

logger = logging.getLogger(__name__)


class UntrackedPolicy:
    """
    Resolve untracked items according to `on_untrack`.

    - ignore: report only, no remote call.
    - remove: move the item to the trash; an already missing item counts as resolved.
    - request: ask the owner to transfer ownership to the service identity.

    Every item is handled on its own; a failure never stops the others.
    """

    def __init__(
        self,
        drive: Any,
        on_untrack: str,
        service_identity: Optional[str],
        cancel: Optional[CancellationToken] = None,
    ) -> None:
        if on_untrack not in UNTRACK_POLICIES:
            raise ValidationError(
                "on_untrack must be one of: ignore, remove, request",
                details={"on_untrack": on_untrack},
            )
        self._drive = drive
        self._on_untrack = on_untrack
        self._service_identity = service_identity
        self._cancel = cancel or CancellationToken()

    @property
    def removes_local_artifacts(self) -> bool:
        return self._on_untrack == "remove"

    def resolve(self, items: Iterable[UntrackedItem]) -> list[UntrackedResolution]:
        results: list[UntrackedResolution] = []
        for item in items:
            if self._cancel.cancelled:
                results.append(UntrackedResolution(item=item, status="skipped"))
                continue
            results.append(self._resolve_one(item))

        if results:
            counts: dict[str, int] = {}
            for r in results:
                counts[r.status] = counts.get(r.status, 0) + 1
            logger.info("Untracked items (%s): %s", self._on_untrack, counts)
        return results

    def _resolve_one(self, item: UntrackedItem) -> UntrackedResolution:
        if self._on_untrack == "ignore":
            logger.info("Untracked item %s (%s) left in place", item.path, item.id)
            return UntrackedResolution(item=item, status="reported")

        if self._on_untrack == "remove":
            return self._trash(item)

        return self._request_transfer(item)

    def _trash(self, item: UntrackedItem) -> UntrackedResolution:
        try:
            self._drive.trash(item.id)
        except NotFoundError:
            logger.info("Untracked item %s (%s) is already gone", item.path, item.id)
            return UntrackedResolution(item=item, status="resolved")
        except DriveMirrorError as exc:
            logger.warning("Could not trash untracked item %s (%s): %s", item.path, item.id, describe_error(exc))
            return _failed(item, exc)
        logger.info("Trashed untracked item %s (%s)", item.path, item.id)
        return UntrackedResolution(item=item, status="resolved")

    def _request_transfer(self, item: UntrackedItem) -> UntrackedResolution:
        if not item.owner_email or not self._service_identity or item.owner_email == self._service_identity:
            logger.debug("Untracked item %s needs no ownership transfer", item.path)
            return UntrackedResolution(item=item, status="skipped")

        try:
            self._drive.request_ownership_transfer(item.id, self._service_identity)
        except DriveMirrorError as exc:
            logger.warning(
                "Ownership transfer request for %s (%s) failed: %s",
                item.path,
                item.id,
                describe_error(exc),
            )
            return _failed(item, exc)

        logger.info(
            "Requested ownership transfer of %s from %s to %s",
            item.path,
            item.owner_email,
            self._service_identity,
        )
        requested = dataclasses.replace(item, ownership_transfer_requested=True)
        return UntrackedResolution(item=requested, status="resolved")


def _failed(item: UntrackedItem, exc: BaseException) -> UntrackedResolution:
    return UntrackedResolution(
        item=item,
        status="failed",
        error_type=exc.__class__.__name__,
        error_message=str(exc),
    )
