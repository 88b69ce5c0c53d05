"""
templateforge.commands - External Tool Invocation
=================================================

Every external program templateforge runs (build, test, git, the plugin
package runner) goes through a :class:`CommandRunner`. The orchestrator
receives one as a parameter, so tests substitute a fake and no real
toolchain is needed.

Child processes block until they exit. Their output is captured and only
shown to the user when the command fails.
"""

from __future__ import annotations

import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from templateforge.errors import ExternalToolError


if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


# Conventional shell exit codes
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


# =============================================================================
# Runner Capability
# =============================================================================

@dataclass(frozen=True)
class CommandResult:
    """Exit code and combined stdout/stderr of a finished command."""

    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(ABC):
    """Runs external commands on behalf of the workflow."""

    @abstractmethod
    def run(
        self,
        name: str,
        args: Sequence[str] = (),
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Run ``name`` with ``args`` and wait for it to exit."""

    @abstractmethod
    def available(self, name: str) -> bool:
        """Whether ``name`` can be found on this machine."""


class SubprocessRunner(CommandRunner):
    """
    :class:`CommandRunner` backed by :func:`subprocess.run`.

    A missing executable yields exit code 127 and a timeout yields 124,
    so callers only ever deal with :class:`CommandResult`.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(
        self,
        name: str,
        args: Sequence[str] = (),
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        # Windows shims such as npx.cmd are only found through PATHEXT
        executable = shutil.which(name) or name
        try:
            completed = subprocess.run(
                [executable, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return CommandResult(EXIT_NOT_FOUND, f"{name}: command not found")
        except subprocess.TimeoutExpired:
            return CommandResult(EXIT_TIMEOUT, f"{name}: timed out after {self.timeout}s")

        output = (completed.stdout or "") + (completed.stderr or "")
        return CommandResult(completed.returncode, output)

    def available(self, name: str) -> bool:
        return shutil.which(name) is not None


# =============================================================================
# Build Verification
# =============================================================================

class BuildVerifier:
    """
    Runs the build and test commands of the renamed project.

    Parameters
    ----------
    runner : CommandRunner
        Used to launch both commands.

    root : Path
        Working directory for both commands.

    build_command, test_command : Sequence[str]
        Full command lines, executable first.
    """

    def __init__(
        self,
        runner: CommandRunner,
        root: Path,
        build_command: Sequence[str],
        test_command: Sequence[str],
    ) -> None:
        self.runner = runner
        self.root = root
        self.build_command = list(build_command)
        self.test_command = list(test_command)

    def _run(self, phase: str, command: list[str]) -> CommandResult:
        result = self.runner.run(command[0], command[1:], cwd=self.root)
        if not result.ok:
            shown = " ".join(command)
            raise ExternalToolError(
                f"'{shown}' failed with exit code {result.exit_code}",
                phase=phase,
                exit_code=result.exit_code,
                output=result.output,
                hint=f"Rerun with --skip-build and run '{shown}' manually.",
            )
        return result

    def build(self) -> CommandResult:
        """
        Raises
        ------
        ExternalToolError
            If the build command exits non-zero.
        """
        return self._run("build", self.build_command)

    def test(self) -> CommandResult:
        """
        Raises
        ------
        ExternalToolError
            If the test command exits non-zero.
        """
        return self._run("test", self.test_command)


# =============================================================================
# Repository Initialization
# =============================================================================

class RepositoryInitializer:
    """Creates a repository with a first commit of the renamed tree."""

    def __init__(
        self,
        runner: CommandRunner,
        root: Path,
        vcs_command: str = "git",
        commit_message: str = "Initial commit",
    ) -> None:
        self.runner = runner
        self.root = root
        self.vcs_command = vcs_command
        self.commit_message = commit_message

    def is_repository(self) -> bool:
        return (self.root / ".git").exists()

    def initialize(self) -> None:
        """
        Run ``git init``, ``git add .`` and ``git commit``.

        Raises
        ------
        ExternalToolError
            On the first step that fails. Earlier steps are not undone.
        """
        steps = [
            ["init"],
            ["add", "."],
            ["commit", "-m", self.commit_message],
        ]
        for args in steps:
            result = self.runner.run(self.vcs_command, args, cwd=self.root)
            if not result.ok:
                shown = " ".join([self.vcs_command, *args])
                raise ExternalToolError(
                    f"'{shown}' failed with exit code {result.exit_code}",
                    phase="vcs",
                    exit_code=result.exit_code,
                    output=result.output,
                    hint=(
                        "Rerun with --skip-vcs-init and create the repository "
                        f"manually ({self.vcs_command} init, add, commit)."
                    ),
                )
