"""
templateforge.cli - Command Line Interface
==========================================

This module provides the command-line interface for templateforge using
Typer.

Architecture
------------
    app (main entry point)
    ├── rename-template  - Retarget the template to a new library name
    └── install-plugins  - Pre-fetch developer tooling plugins

Both commands are scriptable. ``--yes`` skips the only interactive prompt
(the already-customized confirmation).

Usage Examples
--------------
    $ templateforge rename-template Acme.Widgets
    $ templateforge rename-template Acme.Widgets --skip-build --skip-vcs-init
    $ templateforge rename-template Acme.Widgets --dry-run
    $ templateforge install-plugins --verify-only

Exit Codes
----------
    0  success
    1  validation failure, aborted run, build/test/VCS failure,
       missing or invalid manifest, failed plugin download
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import questionary
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel

from templateforge import __version__
from templateforge.errors import ExternalToolError
from templateforge.models import DEFAULT_PLACEHOLDER, MatchMode, RenameConfig
from templateforge.plugins import DEFAULT_MANIFEST, DEFAULT_RUNNER, install_plugins
from templateforge.renamer import rename_template


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="templateforge",
    help="Retarget a class library template and provision its tooling.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(Panel(
            f"[bold green]templateforge[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Class library template renamer[/]",
            border_style="green",
        ))
        raise typer.Exit()


def confirm_prompt(message: str) -> bool:
    """Ask a yes/no question; Ctrl-C counts as no."""
    return bool(questionary.confirm(message, default=False).ask())


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]templateforge[/] - class library template automation.

    [bold]Quick Start:[/]

        templateforge rename-template Acme.Widgets
    """


# =============================================================================
# Rename Command
# =============================================================================

@app.command("rename-template")
def rename_template_command(
    new_name: Annotated[
        str,
        typer.Argument(
            help="New library name, e.g. Acme.Widgets",
            show_default=False,
        ),
    ],
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Root of the template (default: the config file's directory, else .)",
            exists=True,
            file_okay=False,
            dir_okay=True,
            show_default=False,
        ),
    ] = None,
    old_name: Annotated[
        str | None,
        typer.Option(
            "--old-name",
            help=f"Placeholder to replace (default: {DEFAULT_PLACEHOLDER})",
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="templateforge.toml with a [rename] table",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    match: Annotated[
        MatchMode | None,
        typer.Option(
            "--match",
            "-m",
            help="literal: substring replace; identifier: whole identifiers only",
            case_sensitive=False,
        ),
    ] = None,
    skip_build: Annotated[
        bool,
        typer.Option("--skip-build", help="Do not run the build and tests"),
    ] = False,
    skip_vcs_init: Annotated[
        bool,
        typer.Option("--skip-vcs-init", help="Do not create a git repository"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would change without changing it"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Continue even if the template looks renamed"),
    ] = False,
) -> None:
    """
    Rename the template's placeholder to a new library name.

    Renames directories and files, rewrites sources, project and solution
    manifests, documentation and configuration, then optionally builds,
    tests and commits the result.

    [bold]Examples:[/]

        templateforge rename-template Acme.Widgets
        templateforge rename-template Acme.Widgets --skip-build --dry-run
    """
    overrides = {
        "new_token": new_name,
        "old_token": old_name,
        "match_mode": match,
        # Flags only override the file when set
        "skip_build": skip_build or None,
        "skip_vcs_init": skip_vcs_init or None,
        "dry_run": dry_run or None,
        "assume_yes": yes or None,
    }

    try:
        if config_file is not None:
            if path is not None:
                overrides["root"] = path.resolve()
            config = RenameConfig.from_toml(config_file, **overrides)
        else:
            config = RenameConfig(
                root=(path or Path(".")).resolve(),
                **{k: v for k, v in overrides.items() if v is not None},
            )
    except (ValidationError, ValueError) as e:
        rprint(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    try:
        result = rename_template(config, confirm=confirm_prompt)
    except NotADirectoryError as e:
        rprint(f"[red]Error:[/] {e}")
        raise typer.Exit(1)

    raise typer.Exit(result.exit_code)


# =============================================================================
# Install Plugins Command
# =============================================================================

@app.command("install-plugins")
def install_plugins_command(
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            "-p",
            help="Repository root",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
    manifest: Annotated[
        Path,
        typer.Option("--manifest", help="Plugin manifest, relative to the root"),
    ] = DEFAULT_MANIFEST,
    runner_name: Annotated[
        str,
        typer.Option("--runner", help="Package runner command"),
    ] = DEFAULT_RUNNER,
    verify_only: Annotated[
        bool,
        typer.Option("--verify-only", help="Check the runner and list plugins only"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Bypass the runner's package cache"),
    ] = False,
) -> None:
    """
    Pre-fetch the packages of every enabled plugin in the manifest.

    [bold]Examples:[/]

        templateforge install-plugins
        templateforge install-plugins --verify-only
    """
    root = path.resolve()

    try:
        result = install_plugins(
            root,
            manifest_path=manifest,
            runner_name=runner_name,
            verify_only=verify_only,
            force=force,
        )
    except ExternalToolError as e:
        rprint(f"[red]Error:[/] {e}")
        if e.hint:
            rprint(f"[dim]{e.hint}[/]")
        raise typer.Exit(1)

    if not result.success:
        raise typer.Exit(1)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    app()
