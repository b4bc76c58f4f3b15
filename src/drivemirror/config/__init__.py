from .context import RunContext
from .sync_config import (
    UNTRACK_POLICIES,
    DriveTarget,
    SourceConfig,
    SyncConfig,
    load_sync_config,
    parse_sync_config,
)

__all__ = [
    "RunContext",
    "UNTRACK_POLICIES",
    "DriveTarget",
    "SourceConfig",
    "SyncConfig",
    "load_sync_config",
    "parse_sync_config",
]
