from .sidecar import (
    SIDECAR_SUFFIX,
    is_sidecar_name,
    parse_sidecar,
    parse_sidecar_name,
    sidecar_name,
    sidecar_suffix,
    write_sidecar,
)
from .strategy import Strategy, StrategyKind, classify, content_filename

__all__ = [
    "Strategy",
    "StrategyKind",
    "classify",
    "content_filename",
    "SIDECAR_SUFFIX",
    "sidecar_suffix",
    "sidecar_name",
    "is_sidecar_name",
    "parse_sidecar_name",
    "write_sidecar",
    "parse_sidecar",
]
