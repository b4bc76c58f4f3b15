from .ignore import ALWAYS_IGNORED, IgnoreRules, glob_to_regex, load_gitignore, translate_gitignore
from .local_scanner import LocalTreeScanner
from .remote_scanner import RemoteTreeScanner, safe_segment

__all__ = [
    "ALWAYS_IGNORED",
    "IgnoreRules",
    "glob_to_regex",
    "load_gitignore",
    "translate_gitignore",
    "LocalTreeScanner",
    "RemoteTreeScanner",
    "safe_segment",
]
