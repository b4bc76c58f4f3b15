"""Scan of the local working tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence, Union

from drivemirror.classify.sidecar import parse_sidecar, parse_sidecar_name
from drivemirror.errors import LocalScanError, ValidationError
from drivemirror.models import LocalItem, LocalTree, SidecarRecord
from drivemirror.util.hashing import hash_file

from .ignore import ALWAYS_IGNORED, IgnoreRules, load_gitignore

logger = logging.getLogger(__name__)


class LocalTreeScanner:
    """
    Hash every regular file under a root, honouring ignore rules.

    Symlinks are neither followed nor reported. Files named like sidecars are
    also parsed into SidecarRecords.
    """

    def __init__(self, ignore_patterns: Sequence[str] = ()) -> None:
        self._ignore_patterns = tuple(ignore_patterns)

    def rules_for(self, root: Path) -> IgnoreRules:
        """Configured patterns plus `.git/**` plus `<root>/.gitignore`."""
        return IgnoreRules(self._ignore_patterns + ALWAYS_IGNORED).extended(load_gitignore(root))

    def scan(self, root: Union[str, Path]) -> LocalTree:
        root_path = Path(root)
        if not root_path.is_dir():
            raise LocalScanError(
                "Local root is missing or not a directory",
                details={"root": str(root_path)},
            )
        try:
            os.listdir(root_path)
        except OSError as exc:
            raise LocalScanError(
                "Local root cannot be read",
                details={"root": str(root_path)},
                cause=exc,
            ) from exc

        rules = self.rules_for(root_path)
        logger.info("Using ignore patterns: %s", ", ".join(rules.patterns))

        tree = LocalTree(root=root_path)
        for dirpath, dirnames, filenames in os.walk(root_path, followlinks=False, onerror=_log_walk_error):
            rel_dir = Path(dirpath).relative_to(root_path).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir

            kept_dirs = []
            for d in sorted(dirnames):
                rel = f"{rel_dir}/{d}" if rel_dir else d
                if os.path.islink(os.path.join(dirpath, d)):
                    logger.debug("Skipping symlinked directory: %s", rel)
                elif rules.matches(rel):
                    logger.debug("Ignoring directory: %s", rel)
                else:
                    kept_dirs.append(d)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                rel = f"{rel_dir}/{filename}" if rel_dir else filename
                full = os.path.join(dirpath, filename)
                if rules.matches(rel):
                    continue
                if os.path.islink(full) or not os.path.isfile(full):
                    logger.debug("Ignoring non-file item: %s", rel)
                    continue
                try:
                    digest = hash_file(full)
                except OSError as exc:
                    logger.warning("Could not read local file %s: %s", rel, exc)
                    continue
                tree.items[rel] = LocalItem(relative_path=rel, content_hash=digest)

                parsed_name = parse_sidecar_name(filename)
                if parsed_name is not None:
                    tree.sidecars[rel] = _read_sidecar(full, rel, parsed_name)

        logger.info(
            "Found %d local file(s), %d sidecar(s) under %s",
            len(tree.items),
            len(tree.sidecars),
            root_path,
        )
        return tree


def _read_sidecar(full_path: str, rel: str, parsed_name: tuple[str, str]) -> SidecarRecord:
    name, item_id = parsed_name
    try:
        with open(full_path, "r", encoding="utf-8") as f:
            record = parse_sidecar(f.read())
    except (OSError, UnicodeDecodeError, ValidationError) as exc:
        logger.warning("Unparseable sidecar %s, keeping only its id: %s", rel, exc)
        return SidecarRecord(id=item_id, name=name)

    if record.id != item_id:
        logger.warning(
            "Sidecar %s names id %s but contains id %s; using the file name",
            rel,
            item_id,
            record.id,
        )
        return SidecarRecord(id=item_id, name=name)
    return record


def _log_walk_error(exc: OSError) -> None:
    logger.warning("Could not list directory %s: %s", exc.filename, exc)
