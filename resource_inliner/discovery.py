"""Candidate source file discovery under a project root."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List


def _is_excluded(relative: str, exclude: Iterable[str]) -> bool:
    for pattern in exclude:
        if fnmatch(relative, pattern):
            return True
        # "**/x" should also match "x" at the project root
        if pattern.startswith("**/") and fnmatch(relative, pattern[3:]):
            return True
    return False


def find_candidate_files(root: Path, include: Iterable[str], exclude: Iterable[str] = ()) -> List[Path]:
    """Return the sorted, de-duplicated files under ``root`` matching ``include``."""
    root = Path(root)
    exclude = list(exclude)
    found = set()
    for pattern in include:
        for path in root.glob(pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if _is_excluded(relative, exclude):
                continue
            found.add(path)
    return sorted(found)
