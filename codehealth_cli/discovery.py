"""Source file discovery for JavaScript / TypeScript repositories."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Set

logger = logging.getLogger(__name__)

# Extension -> Tree-sitter language name
LANGUAGE_MAP: Dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

DEFAULT_PATTERNS: Sequence[str] = ("**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx")

SKIP_DIRS: Set[str] = {
    "node_modules", "dist", "build", ".next", "coverage", ".git",
}

# Matched against the POSIX path relative to the repository root
DEFAULT_IGNORE: Sequence[str] = ("*.d.ts",)


def language_for(path: Path) -> str | None:
    """Return the grammar name for *path*, or ``None`` when unsupported."""
    if path.name.endswith(".d.ts"):
        return None
    return LANGUAGE_MAP.get(path.suffix.lower())


def _is_ignored(rel: Path, ignore: Iterable[str]) -> bool:
    if any(part in SKIP_DIRS for part in rel.parts[:-1]):
        return True
    rel_posix = rel.as_posix()
    return any(fnmatch.fnmatch(rel_posix, pat) or fnmatch.fnmatch(rel.name, pat) for pat in ignore)


def find_files(
    repo_path: Path,
    patterns: Sequence[str] = DEFAULT_PATTERNS,
    ignore: Sequence[str] = DEFAULT_IGNORE,
) -> List[Path]:
    """Find source files under *repo_path* matching *patterns*.

    Paths are absolute and de-duplicated. Order is pattern order, then
    sorted path order within a pattern, so repeated runs see the same
    sequence. Build output and dependency directories are excluded.
    """
    root = Path(repo_path).resolve()
    if not root.is_dir():
        logger.warning("Repository path %s is not a directory", root)
        return []

    seen: Set[Path] = set()
    files: List[Path] = []
    for pattern in patterns:
        for path in sorted(root.glob(pattern)):
            if not path.is_file() or path in seen:
                continue
            if _is_ignored(path.relative_to(root), ignore):
                continue
            seen.add(path)
            files.append(path)

    logger.debug("Discovered %d source files under %s", len(files), root)
    return files
