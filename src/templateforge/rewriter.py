"""
templateforge.rewriter - Placeholder Substitution in File Contents
==================================================================

Rewrites the placeholder inside text files of the configured categories.

Rules
-----
- Files are selected by path alone. Excluded directories and binary
  suffixes are filtered out before any file is opened.
- Replacement is literal (or identifier-aware, see ``MatchMode``); every
  other byte of the file is preserved, line endings and a missing final
  newline included.
- A file is written back only when at least one replacement happened.
- Each file is independent: a read or write failure is recorded and the
  pass moves on to the next file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from rich.console import Console

from templateforge.models import FileTarget, MatchMode
from templateforge.naming import replace_token


if TYPE_CHECKING:
    from collections.abc import Iterable

    from templateforge.models import RenameConfig
    from templateforge.paths import PathMap


console = Console()


# =============================================================================
# Target Collection
# =============================================================================

def collect_targets(root: Path, config: RenameConfig) -> list[FileTarget]:
    """
    List the files under ``root`` whose contents should be rewritten.

    No file is read here. Excluded directories are pruned from the walk and
    binary suffixes are dropped before categorisation.

    Returns
    -------
    list[FileTarget]
        Categorised files in a stable (sorted) order.
    """
    targets: list[FileTarget] = []
    excluded = set(config.excluded_dirs)

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        current = Path(dirpath)

        for filename in sorted(filenames):
            path = current / filename
            relative = PurePosixPath(path.relative_to(root).as_posix())
            if config.is_excluded(relative):
                continue
            category = config.category_for(relative)
            if category is not None:
                targets.append(FileTarget(path, category))

    return targets


# =============================================================================
# Single File Rewrite
# =============================================================================

def rewrite_file(
    path: Path,
    old: str,
    new: str,
    mode: MatchMode = MatchMode.LITERAL,
) -> bool:
    """
    Replace every occurrence of ``old`` with ``new`` in one file.

    Parameters
    ----------
    path : Path
        File to rewrite. Read and written as UTF-8.

    old, new : str
        Placeholder and replacement.

    mode : MatchMode, default=MatchMode.LITERAL
        How occurrences are matched.

    Returns
    -------
    bool
        True if the file changed and was written back.

    Raises
    ------
    OSError
        If the file cannot be read or written.
    UnicodeDecodeError
        If the file is not UTF-8 text.
    """
    return rewrite_file_counted(path, old, new, mode) > 0


def rewrite_file_counted(
    path: Path,
    old: str,
    new: str,
    mode: MatchMode = MatchMode.LITERAL,
) -> int:
    """Like :func:`rewrite_file` but return the number of replacements."""
    # newline="" disables newline translation in both directions
    with open(path, encoding="utf-8", newline="") as f:
        content = f.read()

    updated, count = replace_token(content, old, new, mode)
    if count == 0:
        return 0

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(updated)

    return count


# =============================================================================
# Batch Rewrite
# =============================================================================

@dataclass
class RewriteReport:
    """
    Outcome of one rewrite pass.

    Attributes
    ----------
    updated : list[Path]
        Files that contained the placeholder and were written back.

    unchanged : list[Path]
        Files without any occurrence.

    failed : list[tuple[Path, str]]
        Files that could not be read or written, with the reason.

    replacements : int
        Total number of occurrences replaced.
    """

    updated: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    failed: list[tuple[Path, str]] = field(default_factory=list)
    replacements: int = 0


def rewrite_files(
    targets: Iterable[FileTarget],
    old: str,
    new: str,
    *,
    mode: MatchMode = MatchMode.LITERAL,
    moves: PathMap | None = None,
    root: Path | None = None,
    verbose: bool = True,
) -> RewriteReport:
    """
    Rewrite a batch of files, continuing past per-file failures.

    Parameters
    ----------
    targets : Iterable[FileTarget]
        Files as planned. When ``moves`` is given each path is first resolved
        to its post-rename location.

    root : Path, optional
        Used only to print shorter paths.
    """
    report = RewriteReport()

    for target in targets:
        path = moves.resolve(target.path) if moves is not None else target.path
        shown = path.relative_to(root) if root is not None and path.is_relative_to(root) else path

        try:
            count = rewrite_file_counted(path, old, new, mode)
        except (OSError, UnicodeDecodeError) as e:
            report.failed.append((path, str(e)))
            if verbose:
                console.print(f"  [red]✗[/] {shown}: {e}")
            continue

        if count:
            report.updated.append(path)
            report.replacements += count
            if verbose:
                console.print(f"  Updated {shown} ({count}×)")
        else:
            report.unchanged.append(path)

    return report
