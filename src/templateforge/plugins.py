"""
templateforge.plugins - Developer Tooling Plugin Installer
==========================================================

Pre-fetches the packages of the plugins listed in the workspace manifest
(``.mcp.json``) so editors can start them without a download on first use.

Manifest Format
---------------
.. code-block:: json

    {
      "mcpServers": {
        "docs": {"command": "npx", "args": ["-y", "@acme/docs-server"]},
        "local": {"command": "dotnet", "args": ["run"]},
        "old": {"command": "npx", "args": ["old-server"], "disabled": true}
      }
    }

For every enabled entry launched through the package runner (``npx``) the
first non-flag argument is the package identifier. Disabled entries are
skipped; entries launched by any other command need no installation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from templateforge.commands import CommandRunner, SubprocessRunner
from templateforge.errors import ExternalToolError
from templateforge.models import PluginEntry, PluginManifest


console = Console()

DEFAULT_MANIFEST = Path(".mcp.json")
DEFAULT_RUNNER = "npx"


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class InstallResult:
    """
    Outcome of an install-plugins run.

    Attributes
    ----------
    installed : list[str]
        Plugins whose package was fetched.

    verified : list[str]
        Plugins that would be fetched (``verify_only`` runs).

    not_applicable : list[str]
        Enabled plugins not launched through the runner.

    skipped : list[str]
        Disabled plugins.

    failed : list[tuple[str, str]]
        Plugin name and reason.
    """

    manifest_path: Path
    installed: list[str] = field(default_factory=list)
    verified: list[str] = field(default_factory=list)
    not_applicable: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        """Number of enabled plugins handled, whatever their outcome."""
        return (
            len(self.installed)
            + len(self.verified)
            + len(self.not_applicable)
            + len(self.failed)
        )

    @property
    def success(self) -> bool:
        return not self.failed


# =============================================================================
# Manifest Loading
# =============================================================================

def load_manifest(path: Path) -> PluginManifest:
    """
    Read and validate the plugin manifest.

    Raises
    ------
    ExternalToolError
        If the manifest is missing or cannot be parsed.
    """
    try:
        return PluginManifest.from_file(path)
    except FileNotFoundError as e:
        raise ExternalToolError(
            f"Plugin manifest not found: {path}",
            phase="manifest",
            hint="Run from the repository root or pass --manifest.",
        ) from e
    except (OSError, ValidationError) as e:
        raise ExternalToolError(
            f"Invalid plugin manifest {path}: {e}",
            phase="manifest",
        ) from e


def fetch_arguments(package: str, *, force: bool = False) -> list[str]:
    """
    Runner arguments that download ``package`` into the runner's cache.

    The package is only installed, then a trivial ``node --version`` runs in
    its place, so servers that would otherwise wait on stdin are never
    started.
    """
    args = ["--yes"]
    if force:
        args.append("--prefer-online")
    args.extend(["--package", package, "node", "--version"])
    return args


# =============================================================================
# Main Install Function
# =============================================================================

def install_plugins(
    root: Path,
    *,
    manifest_path: Path | None = None,
    runner_name: str = DEFAULT_RUNNER,
    verify_only: bool = False,
    force: bool = False,
    runner: CommandRunner | None = None,
    verbose: bool = True,
) -> InstallResult:
    """
    Pre-fetch the packages of every enabled plugin in the manifest.

    Parameters
    ----------
    root : Path
        Repository root; the manifest path and the runner's working
        directory are relative to it.

    manifest_path : Path, optional
        Defaults to ``root / ".mcp.json"``.

    runner_name : str, default="npx"
        Launch command whose entries need a package download.

    verify_only : bool, default=False
        Only check the runner is available and list what would be fetched.

    force : bool, default=False
        Ask the runner to bypass its cache.

    runner : CommandRunner, optional
        Defaults to a :class:`SubprocessRunner`.

    Returns
    -------
    InstallResult
        Per-plugin outcomes. A failed download does not stop the others.

    Raises
    ------
    ExternalToolError
        If the manifest is missing or invalid, or runner entries exist but
        the runner itself is not installed.
    """
    runner = runner or SubprocessRunner()
    path = manifest_path or root / DEFAULT_MANIFEST
    if not path.is_absolute():
        path = root / path

    manifest = load_manifest(path)
    result = InstallResult(manifest_path=path)

    if verbose:
        console.print()
        console.print(f"[bold]📦 Plugins from {path.name}[/]")
        if verify_only:
            console.print("[yellow]VERIFY ONLY - Nothing will be downloaded[/]")

    wanted: list[tuple[str, PluginEntry]] = []
    for name, entry in manifest.plugins.items():
        if entry.disabled:
            result.skipped.append(name)
        elif not entry.uses_runner(runner_name):
            result.not_applicable.append(name)
        else:
            wanted.append((name, entry))

    if wanted and not runner.available(runner_name):
        raise ExternalToolError(
            f"'{runner_name}' was not found on PATH",
            phase="install",
            hint=f"Install the toolchain that provides '{runner_name}' (Node.js for npx).",
        )

    for name, entry in wanted:
        package = entry.package
        if package is None:
            result.failed.append((name, "no package identifier in args"))
            continue

        if verify_only:
            result.verified.append(name)
            continue

        if verbose:
            console.print(f"  Fetching {package}...")
        outcome = runner.run(runner_name, fetch_arguments(package, force=force), cwd=root)
        if outcome.ok:
            result.installed.append(name)
        else:
            lines = outcome.output.strip().splitlines()
            reason = lines[-1] if lines else f"exit code {outcome.exit_code}"
            result.failed.append((name, reason))
            if verbose:
                console.print(f"  [red]✗[/] {name}: {reason}")

    if verbose:
        _print_report(result, manifest)

    return result


def _print_report(result: InstallResult, manifest: PluginManifest) -> None:
    table = Table(title="Plugins", show_header=True)
    table.add_column("Plugin", style="cyan")
    table.add_column("Package")
    table.add_column("Status")

    failures = dict(result.failed)
    for name, entry in manifest.plugins.items():
        if name in result.installed:
            status = "[green]✓ installed[/]"
        elif name in result.verified:
            status = "[green]✓ would install[/]"
        elif name in result.not_applicable:
            status = "[dim]not applicable[/]"
        elif name in result.skipped:
            status = "[yellow]skipped (disabled)[/]"
        else:
            status = f"[red]✗ {failures.get(name, 'failed')}[/]"
        table.add_row(name, entry.package or "", status)

    console.print(table)
    console.print(
        f"[bold]Summary:[/] {result.processed_count} processed, "
        f"{len(result.skipped)} skipped, {len(result.failed)} failed"
    )
