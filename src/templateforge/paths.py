"""
templateforge.paths - Directory and File Renames
================================================

Renames every directory and file whose *name* contains the placeholder.
Only the final path segment is rewritten; the parent part of a path is
never edited as a string.

Planning and applying are separate:

    1. ``plan_renames`` walks the tree (read-only) and returns directories
       ordered parents-first, then files.
    2. ``apply_renames`` performs them. A directory rename invalidates the
       planned paths of everything beneath it, so each source is
       re-resolved through a :class:`PathMap` of the renames applied so far.

A rename whose target already exists is skipped with a warning; the run
continues with the remaining renames.
"""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from templateforge.errors import PathConflictError
from templateforge.models import MatchMode, PathRename
from templateforge.naming import replace_token


if TYPE_CHECKING:
    from collections.abc import Iterable


console = Console()


# =============================================================================
# Path Resolution
# =============================================================================

class PathMap:
    """
    Maps planned (original) paths to where they live now.

    Examples
    --------
    >>> moves = PathMap()
    >>> moves.record(Path("src/YourLibrary"), Path("src/Acme"))
    >>> moves.resolve(Path("src/YourLibrary/Class1.cs"))
    PosixPath('src/Acme/Class1.cs')
    """

    def __init__(self) -> None:
        self._moves: dict[Path, Path] = {}

    def record(self, original: Path, current: Path) -> None:
        self._moves[original] = current

    def resolve(self, original: Path) -> Path:
        # The deepest moved ancestor already carries every rename above it.
        for candidate in (original, *original.parents):
            moved = self._moves.get(candidate)
            if moved is not None:
                return moved / original.relative_to(candidate)
        return original

    def __len__(self) -> int:
        return len(self._moves)


# =============================================================================
# Planning
# =============================================================================

def _walk(
    root: Path,
    excluded_dirs: Iterable[str],
) -> Iterable[tuple[Path, list[str], list[str]]]:
    excluded = set(excluded_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        # Pruning in place keeps os.walk out of build output and VCS metadata
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        yield Path(dirpath), dirnames, sorted(filenames)


def renamed(path: Path, old: str, new: str, mode: MatchMode = MatchMode.LITERAL) -> Path:
    """Return ``path`` with the placeholder replaced in its last segment only."""
    name, _ = replace_token(path.name, old, new, mode)
    return path.with_name(name)


def plan_renames(
    root: Path,
    old: str,
    new: str,
    *,
    mode: MatchMode = MatchMode.LITERAL,
    excluded_dirs: Iterable[str] = (),
) -> list[PathRename]:
    """
    Compute the renames needed to retarget ``root`` from ``old`` to ``new``.

    Parameters
    ----------
    root : Path
        Tree to scan. The root itself is never renamed.

    old, new : str
        Placeholder and replacement.

    mode : MatchMode, default=MatchMode.LITERAL
        How the placeholder is found in names.

    excluded_dirs : Iterable[str]
        Directory names that are neither renamed nor descended into.

    Returns
    -------
    list[PathRename]
        Directories ordered parents-first, followed by files. Paths are as
        found on disk now.
    """
    directories: list[PathRename] = []
    files: list[PathRename] = []

    for current, dirnames, filenames in _walk(root, excluded_dirs):
        for dirname in dirnames:
            source = current / dirname
            target = renamed(source, old, new, mode)
            if target != source:
                directories.append(PathRename(source, target, is_dir=True))

        for filename in filenames:
            source = current / filename
            target = renamed(source, old, new, mode)
            if target != source:
                files.append(PathRename(source, target))

    directories.sort(key=lambda op: (len(op.source.parts), str(op.source)))
    return directories + files


# =============================================================================
# Applying
# =============================================================================

@dataclass
class RenameReport:
    """
    Outcome of applying a batch of renames.

    Attributes
    ----------
    applied : list[tuple[Path, Path]]
        ``(source, target)`` as actually renamed on disk.

    skipped : list[PathRename]
        Renames skipped because the target already existed.

    failed : list[tuple[PathRename, str]]
        Renames that raised an ``OSError``.

    warnings : list[str]
        One message per skipped or failed rename.
    """

    applied: list[tuple[Path, Path]] = field(default_factory=list)
    skipped: list[PathRename] = field(default_factory=list)
    failed: list[tuple[PathRename, str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _same_entry(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def rename_path(source: Path, target: Path) -> None:
    """
    Rename ``source`` to ``target``.

    A case-only rename on a case-insensitive file system goes through a
    temporary name, because the target "exists" as the source itself.

    Raises
    ------
    PathConflictError
        If ``target`` exists and is a different entry.
    OSError
        If the rename itself fails.
    """
    if target.exists():
        if not _same_entry(source, target):
            raise PathConflictError(source, target)
        temp = source.with_name(f".__templateforge_{uuid.uuid4().hex[:8]}__{source.name}")
        source.rename(temp)
        temp.rename(target)
        return
    source.rename(target)


def apply_renames(
    renames: Iterable[PathRename],
    moves: PathMap,
    *,
    verbose: bool = True,
) -> RenameReport:
    """
    Apply planned renames in order, re-resolving each source through ``moves``.

    Every applied rename is recorded in ``moves`` so later renames and content
    rewrites find their files. Conflicts and ``OSError``s are reported and
    skipped; they never abort the batch.
    """
    report = RenameReport()

    for op in renames:
        source = moves.resolve(op.source)
        target = source.with_name(op.target.name)

        try:
            rename_path(source, target)
        except PathConflictError as e:
            report.skipped.append(op)
            report.warnings.append(str(e))
            if verbose:
                console.print(f"  [yellow]⚠[/] Skipped {source.name}: {target} already exists")
            continue
        except OSError as e:
            report.failed.append((op, str(e)))
            report.warnings.append(f"Failed to rename {source}: {e}")
            if verbose:
                console.print(f"  [red]✗[/] Failed to rename {source.name}: {e}")
            continue

        moves.record(op.source, target)
        report.applied.append((source, target))
        if verbose:
            console.print(f"  Renamed {source.name} → {target.name}")

    return report
