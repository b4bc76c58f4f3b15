from __future__ import annotations

import os
import re
import uuid

_UNSAFE_BRANCH_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def new_run_id() -> str:
    """
    Identifier for one sync run.

    Uses GITHUB_RUN_ID when running inside a workflow so PR bodies point back to it.
    """
    return os.environ.get("GITHUB_RUN_ID", "").strip() or str(uuid.uuid4())


def branch_safe(value: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with '_'."""
    return _UNSAFE_BRANCH_CHARS.sub("_", value)
