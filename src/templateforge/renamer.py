"""
templateforge.renamer - Template Rename Workflow
================================================

This module retargets a class library template from its placeholder name
(``YourLibrary``) to a user-chosen name. It sequences the individual
components in a fixed, linear order:

    VALIDATE
    CHECK_PRECONDITIONS
    RENAME_DIRECTORIES
    RENAME_FILES
    REWRITE_SOURCE
    REWRITE_MANIFESTS
    REWRITE_SOLUTION
    RENAME_SOLUTION_FILE
    REWRITE_DOCS
    REWRITE_CONFIG
    BUILD            (optional)
    TEST             (optional)
    VCS_INIT         (optional)
    DONE

The plan is computed in full before the first mutation. There is no
rollback: a failure after step N leaves steps 1..N applied. Build, test and
VCS failures therefore tell the user how to finish the remaining phase by
hand instead of rerunning the whole workflow.

Usage Example
-------------
>>> from pathlib import Path
>>> from templateforge.models import RenameConfig
>>> from templateforge.renamer import rename_template
>>> config = RenameConfig(
...     new_token="Acme.Widgets",
...     root=Path("~/src/my-template").expanduser(),
...     dry_run=True,
... )
>>> result = rename_template(config)  # doctest: +SKIP
>>> result.exit_code  # doctest: +SKIP
0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from templateforge.commands import (
    BuildVerifier,
    CommandRunner,
    RepositoryInitializer,
    SubprocessRunner,
)
from templateforge.errors import ExternalToolError, NameValidationError
from templateforge.models import FileCategory, RenameConfig, RenamePlan
from templateforge.naming import require_valid_name
from templateforge.paths import PathMap, apply_renames, plan_renames
from templateforge.rewriter import collect_targets, rewrite_files


if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from templateforge.models import PathRename
    from templateforge.paths import RenameReport
    from templateforge.rewriter import RewriteReport


# Console for rich output
console = Console()


# =============================================================================
# Workflow States
# =============================================================================

class RenameState(str, Enum):
    """Steps of the rename workflow, plus its terminal failure states."""

    VALIDATE = "validate"
    CHECK_PRECONDITIONS = "check_preconditions"
    RENAME_DIRECTORIES = "rename_directories"
    RENAME_FILES = "rename_files"
    REWRITE_SOURCE = "rewrite_source"
    REWRITE_MANIFESTS = "rewrite_manifests"
    REWRITE_SOLUTION = "rewrite_solution"
    RENAME_SOLUTION_FILE = "rename_solution_file"
    REWRITE_DOCS = "rewrite_docs"
    REWRITE_CONFIG = "rewrite_config"
    BUILD = "build"
    TEST = "test"
    VCS_INIT = "vcs_init"
    DONE = "done"

    VALIDATION_FAILED = "validation_failed"
    ABORTED = "aborted"
    BUILD_FAILED = "build_failed"
    TEST_FAILED = "test_failed"
    VCS_FAILED = "vcs_failed"

    @property
    def is_failure(self) -> bool:
        return self in {
            RenameState.VALIDATION_FAILED,
            RenameState.ABORTED,
            RenameState.BUILD_FAILED,
            RenameState.TEST_FAILED,
            RenameState.VCS_FAILED,
        }


_PHASE_FAILURES = {
    "build": RenameState.BUILD_FAILED,
    "test": RenameState.TEST_FAILED,
    "vcs": RenameState.VCS_FAILED,
}


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class RenameResult:
    """
    Outcome of a rename-template run.

    Attributes
    ----------
    state : RenameState
        ``DONE`` on completion, else the state the run stopped in.

    plan : RenamePlan | None
        The computed plan. None if the run stopped before planning.

    renames_applied : list[tuple[Path, Path]]
        Directory and file renames performed on disk.

    renames_skipped : list[PathRename]
        Renames skipped because their target already existed.

    files_updated, files_unchanged : list[Path]
        Files rewritten, and files scanned without any occurrence.

    files_failed : list[tuple[Path, str]]
        Files or renames that failed with an I/O error.

    warnings, errors : list[str]
        Messages collected along the way.
    """

    state: RenameState = RenameState.VALIDATE
    plan: RenamePlan | None = None
    renames_applied: list[tuple[Path, Path]] = field(default_factory=list)
    renames_skipped: list[PathRename] = field(default_factory=list)
    files_updated: list[Path] = field(default_factory=list)
    files_unchanged: list[Path] = field(default_factory=list)
    files_failed: list[tuple[Path, str]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is RenameState.DONE and not self.files_failed

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def add_renames(self, report: RenameReport) -> None:
        self.renames_applied.extend(report.applied)
        self.renames_skipped.extend(report.skipped)
        self.files_failed.extend((op.source, reason) for op, reason in report.failed)
        self.warnings.extend(report.warnings)

    def add_rewrites(self, report: RewriteReport) -> None:
        self.files_updated.extend(report.updated)
        self.files_unchanged.extend(report.unchanged)
        self.files_failed.extend(report.failed)


# =============================================================================
# Planning (read-only phase)
# =============================================================================

def build_plan(config: RenameConfig) -> RenamePlan:
    """
    Compute every rename and rewrite of a run without touching the tree.

    Solution manifests are planned separately from other file renames
    because the workflow rewrites their contents before renaming them.

    Raises
    ------
    NotADirectoryError
        If ``config.root`` is not a directory.
    """
    root = config.root
    if not root.is_dir():
        raise NotADirectoryError(f"Template root '{root}' is not a directory")

    def is_solution(relative: PurePosixPath) -> bool:
        return config.category_for(relative) is FileCategory.SOLUTION_MANIFEST

    renames = plan_renames(
        root,
        config.old_token,
        config.new_token,
        mode=config.match_mode,
        excluded_dirs=config.excluded_dirs,
    )

    plan = RenamePlan(rewrites=collect_targets(root, config))
    for op in renames:
        if op.is_dir:
            plan.directory_renames.append(op)
        elif is_solution(PurePosixPath(op.source.relative_to(root).as_posix())):
            plan.solution_renames.append(op)
        else:
            plan.file_renames.append(op)

    return plan


def print_plan(plan: RenamePlan, root: Path) -> None:
    """Show a plan as a table, the way ``--dry-run`` presents it."""
    table = Table(title="Rename Plan", show_header=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Step", style="cyan")
    table.add_column("Path")
    table.add_column("Change", style="green")

    rows: list[tuple[str, str, str]] = []
    for label, ops in (
        ("directory", plan.directory_renames),
        ("file", plan.file_renames),
        ("solution", plan.solution_renames),
    ):
        rows.extend(
            (label, str(op.source.relative_to(root)), f"→ {op.target.name}")
            for op in ops
        )
    rows.extend(
        (f"rewrite {t.category.value}", str(t.path.relative_to(root)), "contents")
        for t in plan.rewrites
    )

    for i, (step, path, change) in enumerate(rows, 1):
        table.add_row(str(i), step, path, change)

    console.print(table)


# =============================================================================
# Workflow Steps
# =============================================================================

def _step(title: str, verbose: bool) -> None:
    if verbose:
        console.print()
        console.print(f"[bold]{title}[/]")


def _done(message: str, verbose: bool) -> None:
    if verbose:
        console.print(f"  [green]✓[/] {message}")


def _skip(message: str, verbose: bool) -> None:
    if verbose:
        console.print(f"  [yellow]⚠[/] {message}")


def _rename_step(
    result: RenameResult,
    ops: Iterable[PathRename],
    moves: PathMap,
    noun: str,
    verbose: bool,
) -> None:
    ops = list(ops)
    if not ops:
        _skip(f"No {noun} to rename", verbose)
        return
    report = apply_renames(ops, moves, verbose=verbose)
    result.add_renames(report)
    _done(f"{len(report.applied)} of {len(ops)} {noun} renamed", verbose)


def _rewrite_step(
    result: RenameResult,
    plan: RenamePlan,
    config: RenameConfig,
    moves: PathMap,
    *categories: FileCategory,
    verbose: bool,
) -> None:
    targets = plan.targets_for(*categories)
    if not targets:
        _skip("No matching files", verbose)
        return
    report = rewrite_files(
        targets,
        config.old_token,
        config.new_token,
        mode=config.match_mode,
        moves=moves,
        root=config.root,
        verbose=verbose,
    )
    result.add_rewrites(report)
    summary = f"{len(report.updated)} updated, {len(report.unchanged)} unchanged"
    if report.failed:
        _skip(f"{summary}, {len(report.failed)} failed", verbose)
    else:
        _done(summary, verbose)


def _fail(result: RenameResult, error: ExternalToolError, verbose: bool) -> RenameResult:
    result.state = _PHASE_FAILURES.get(error.phase, RenameState.ABORTED)
    result.errors.append(str(error))
    if verbose:
        console.print(f"  [red]✗[/] {error}")
        if error.output.strip():
            console.print(Panel(error.output.rstrip(), title="Output", border_style="red"))
        if error.hint:
            console.print(f"  [dim]{error.hint}[/]")
    return result


def _print_summary(result: RenameResult, config: RenameConfig) -> None:
    counts = (
        f"Renamed: {len(result.renames_applied)} | "
        f"Skipped: {len(result.renames_skipped)} | "
        f"Files updated: {len(result.files_updated)} | "
        f"Unchanged: {len(result.files_unchanged)} | "
        f"Failed: {len(result.files_failed)}"
    )
    console.print()
    if result.success:
        console.print(Panel(
            f"[bold green]✨ Template renamed to {config.new_token}![/]\n\n"
            f"[dim]{counts}[/]",
            title="[bold green]Success[/]",
            border_style="green",
        ))
    else:
        headline = (
            f"Rename did not complete ({result.state.value})"
            if result.state.is_failure
            else "Rename completed, but some files could not be processed"
        )
        console.print(Panel(
            f"[bold red]{headline}[/]\n\n"
            f"[dim]{counts}[/]",
            title="[bold red]Failed[/]",
            border_style="red",
        ))


# =============================================================================
# Main Workflow Function
# =============================================================================

def rename_template(
    config: RenameConfig,
    *,
    runner: CommandRunner | None = None,
    confirm: Callable[[str], bool] | None = None,
    verbose: bool = True,
) -> RenameResult:
    """
    Retarget the template at ``config.root`` to ``config.new_token``.

    Parameters
    ----------
    config : RenameConfig
        Complete, immutable run configuration.

    runner : CommandRunner, optional
        Runs build, test and VCS commands. Defaults to a
        :class:`SubprocessRunner`.

    confirm : Callable[[str], bool], optional
        Asked when the template looks already customized. Without it (and
        without ``config.assume_yes``) such a run is aborted.

    verbose : bool, default=True
        Print progress to the console.

    Returns
    -------
    RenameResult
        Final state and counts. Never raises for validation, conflicts,
        per-file I/O errors or external tool failures.

    Raises
    ------
    NotADirectoryError
        If ``config.root`` is not a directory.
    """
    runner = runner or SubprocessRunner()
    result = RenameResult()
    root = config.root

    if verbose:
        console.print()
        console.print(Panel(
            f"[bold blue]Renaming template:[/] [cyan]{config.old_token}[/] → "
            f"[green]{config.new_token}[/]\n"
            f"[dim]Root: {root} | Match: {config.match_mode.value}[/]",
            title="[bold]templateforge[/]",
            border_style="blue",
        ))

    # Step 1: Validate the new name before anything else
    result.state = RenameState.VALIDATE
    _step("🔎 Validating name...", verbose)
    try:
        require_valid_name(config.new_token)
    except NameValidationError as e:
        result.state = RenameState.VALIDATION_FAILED
        result.errors.append(str(e))
        if verbose:
            console.print(f"  [red]✗[/] {e}")
            _print_summary(result, config)
        return result
    if config.new_token == config.old_token:
        result.warnings.append("New name equals the placeholder; nothing will change")
        _skip(result.warnings[-1], verbose)
    else:
        _done(f"'{config.new_token}' is a valid name", verbose)

    # Step 2: Guard against renaming an already-renamed tree
    result.state = RenameState.CHECK_PRECONDITIONS
    _step("📋 Checking preconditions...", verbose)
    if not root.is_dir():
        raise NotADirectoryError(f"Template root '{root}' is not a directory")
    placeholder = config.placeholder_dir
    if placeholder.is_dir():
        _done(f"Found {placeholder.relative_to(root)}/", verbose)
    else:
        message = (
            f"{placeholder.relative_to(root)}/ not found; "
            "the template may already be customized"
        )
        result.warnings.append(message)
        _skip(message, verbose)
        if not config.assume_yes and not (confirm is not None and confirm(
            "Template may already be customized. Continue anyway?"
        )):
            result.state = RenameState.ABORTED
            result.errors.append("Aborted: template may already be customized")
            if verbose:
                console.print("  [red]✗[/] Aborted")
                _print_summary(result, config)
            return result

    plan = build_plan(config)
    result.plan = plan

    if config.dry_run:
        if verbose:
            console.print()
            console.print("[yellow]DRY RUN - No changes will be made[/]")
            print_plan(plan, root)
        result.state = RenameState.DONE
        return result

    moves = PathMap()

    # Step 3-4: Directories first, their renames move every descendant
    result.state = RenameState.RENAME_DIRECTORIES
    _step("📁 Renaming directories...", verbose)
    _rename_step(result, plan.directory_renames, moves, "directories", verbose)

    result.state = RenameState.RENAME_FILES
    _step("📄 Renaming files...", verbose)
    _rename_step(result, plan.file_renames, moves, "files", verbose)

    # Step 5-10: Contents, one category group at a time
    result.state = RenameState.REWRITE_SOURCE
    _step(f"📝 Rewriting {FileCategory.SOURCE.description}...", verbose)
    _rewrite_step(result, plan, config, moves, FileCategory.SOURCE, verbose=verbose)

    result.state = RenameState.REWRITE_MANIFESTS
    _step(f"📝 Rewriting {FileCategory.PROJECT_MANIFEST.description}...", verbose)
    _rewrite_step(result, plan, config, moves, FileCategory.PROJECT_MANIFEST, verbose=verbose)

    result.state = RenameState.REWRITE_SOLUTION
    _step(f"📝 Rewriting {FileCategory.SOLUTION_MANIFEST.description}...", verbose)
    _rewrite_step(result, plan, config, moves, FileCategory.SOLUTION_MANIFEST, verbose=verbose)

    result.state = RenameState.RENAME_SOLUTION_FILE
    _step("📄 Renaming solution file...", verbose)
    _rename_step(result, plan.solution_renames, moves, "solution files", verbose)

    result.state = RenameState.REWRITE_DOCS
    _step(f"📝 Rewriting {FileCategory.DOCUMENTATION.description}...", verbose)
    _rewrite_step(result, plan, config, moves, FileCategory.DOCUMENTATION, verbose=verbose)

    result.state = RenameState.REWRITE_CONFIG
    _step("📝 Rewriting editor and build configuration...", verbose)
    _rewrite_step(
        result,
        plan,
        config,
        moves,
        FileCategory.EDITOR_CONFIG,
        FileCategory.BUILD_CONFIG,
        verbose=verbose,
    )

    # Step 11-12: Optional build and test
    if config.skip_build:
        _step("🔨 Build and test", verbose)
        _skip("Skipped (--skip-build)", verbose)
    else:
        verifier = BuildVerifier(runner, root, config.build_command, config.test_command)
        try:
            result.state = RenameState.BUILD
            _step("🔨 Building...", verbose)
            verifier.build()
            _done("Build succeeded", verbose)

            result.state = RenameState.TEST
            _step("🧪 Running tests...", verbose)
            verifier.test()
            _done("Tests passed", verbose)
        except ExternalToolError as e:
            _fail(result, e, verbose)
            if verbose:
                _print_summary(result, config)
            return result

    # Step 13: Optional repository
    result.state = RenameState.VCS_INIT
    _step("🔧 Initializing git repository...", verbose)
    repository = RepositoryInitializer(
        runner, root, config.vcs_command, config.commit_message
    )
    if config.skip_vcs_init:
        _skip("Skipped (--skip-vcs-init)", verbose)
    elif repository.is_repository():
        result.warnings.append("Repository already exists; skipped initialization")
        _skip(result.warnings[-1], verbose)
    else:
        try:
            repository.initialize()
        except ExternalToolError as e:
            _fail(result, e, verbose)
            if verbose:
                _print_summary(result, config)
            return result
        _done("Repository initialized with a first commit", verbose)

    result.state = RenameState.DONE
    if verbose:
        _print_summary(result, config)

    return result
