"""Acceptance of ownership transfers addressed to the service identity."""

from __future__ import annotations

import logging
from typing import Any, Optional

from drivemirror.errors import DriveMirrorError, describe_error
from drivemirror.models import RemoteTree
from drivemirror.util.cancel import CancellationToken

logger = logging.getLogger(__name__)


def accept_pending_transfers(
    drive: Any,
    remote_tree: RemoteTree,
    service_identity: Optional[str],
    cancel: Optional[CancellationToken] = None,
) -> list[str]:
    """
    Accept every pending transfer whose new owner is the service identity.

    Works from the permissions already fetched by the scan. Failures are
    logged per item. Returns the ids of items whose transfer was accepted.
    """
    if not service_identity:
        return []

    accepted: list[str] = []
    for path, item in remote_tree.files:
        pending = [
            p
            for p in item.permissions
            if p.pending_transfer and p.principal == service_identity and p.permission_id
        ]
        for perm in pending:
            if cancel is not None and cancel.cancelled:
                return accepted
            try:
                drive.accept_ownership_transfer(item.id, perm.permission_id)
            except DriveMirrorError as exc:
                logger.warning(
                    "Failed to accept ownership of %s (%s): %s",
                    path,
                    item.id,
                    describe_error(exc),
                )
                continue
            logger.info("Accepted ownership of %s (%s)", path, item.id)
            accepted.append(item.id)
            break
    return accepted
