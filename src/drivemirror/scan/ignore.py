"""Ignore rules: glob matching and `.gitignore` translation."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

ALWAYS_IGNORED: tuple[str, ...] = (".git/**",)


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Compile a glob into an anchored regex over '/'-separated paths.

    `**` matches across directories; `*`, `?` and `[...]` stay within one
    path segment. `dir/**` also matches `dir` itself.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                if pattern.startswith("**/", i):
                    out.append("(?:.*/)?")
                    i += 3
                    continue
                if out and out[-1] == "/" and i + 2 == n:
                    # trailing '/**': the directory itself or anything below it
                    out[-1] = "(?:/.*)?"
                    i += 2
                    continue
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body.replace(chr(92), chr(92) * 2)}]")
                i = end
        elif c == "/":
            out.append("/")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


def translate_gitignore(lines: Iterable[str]) -> list[str]:
    """
    Turn `.gitignore` lines into glob patterns.

    This is a heuristic, not gitignore semantics: negations are dropped,
    anchoring is ignored and a plain name is treated as a directory.
    """
    patterns: list[str] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("!"):
            logger.debug("Skipping unsupported negated .gitignore pattern: %s", line)
            continue
        if line.endswith("/"):
            patterns.append(line + "**")
        elif "*" not in line and "?" not in line:
            patterns.append(line + "/**")
        else:
            patterns.append(line)
    return patterns


def load_gitignore(root: Path) -> list[str]:
    """Translated patterns from `<root>/.gitignore`; unreadable files are a warning."""
    path = root / ".gitignore"
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return []
    patterns = translate_gitignore(text.splitlines())
    logger.debug("Added patterns from .gitignore: %s", ", ".join(patterns))
    return patterns


class IgnoreRules:
    """A set of glob patterns matched against relative '/'-separated paths."""

    def __init__(self, patterns: Sequence[str] = ()) -> None:
        self._patterns = tuple(p for p in patterns if p)
        self._compiled = tuple(glob_to_regex(p) for p in self._patterns)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def extended(self, patterns: Sequence[str]) -> "IgnoreRules":
        return IgnoreRules(self._patterns + tuple(patterns))

    def matches(self, relative_path: str) -> bool:
        path = relative_path.strip("/")
        return any(rx.match(path) for rx in self._compiled)

    __call__ = matches
