from .cancel import CancellationToken
from .hashing import hash_bytes, hash_file, hash_stream
from .ids import branch_safe, new_run_id
from .mime import (
    FOLDER_MIME,
    GOOGLE_APP_MIMES,
    PDF_MIME,
    SHORTCUT_MIME,
    is_folder,
    is_google_app,
)
from .time import (
    now_utc,
    parse_rfc3339,
    parse_rfc3339_or_none,
    same_instant,
    to_rfc3339,
)

__all__ = [
    "CancellationToken",
    "hash_bytes",
    "hash_file",
    "hash_stream",
    "new_run_id",
    "branch_safe",
    "FOLDER_MIME",
    "GOOGLE_APP_MIMES",
    "PDF_MIME",
    "SHORTCUT_MIME",
    "is_folder",
    "is_google_app",
    "now_utc",
    "parse_rfc3339",
    "parse_rfc3339_or_none",
    "to_rfc3339",
    "same_instant",
]
