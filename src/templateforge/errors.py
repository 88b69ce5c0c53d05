"""
templateforge.errors - Exception Taxonomy
=========================================

Every failure templateforge can report falls in one of these classes.
The orchestrator decides which ones are fatal:

    TemplateForgeError
    ├── NameValidationError   fatal, raised before any mutation
    ├── PathConflictError     recoverable, the single rename is skipped
    └── ExternalToolError     fatal for its phase (manifest, build, test, VCS)

Per-file I/O failures are plain ``OSError``/``UnicodeDecodeError`` and are
recorded on the result objects rather than wrapped.
"""

from __future__ import annotations

from pathlib import Path


class TemplateForgeError(RuntimeError):
    """Base class for all templateforge errors."""


class NameValidationError(TemplateForgeError):
    """Raised when the new name does not satisfy the identifier rule."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Invalid name '{name}'. Names must start with an ASCII letter or "
            "underscore and contain only letters, digits, '.' and '_'."
        )


class PathConflictError(TemplateForgeError):
    """Raised when a rename target already exists."""

    def __init__(self, source: Path, target: Path) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Cannot rename '{source}': '{target}' already exists")


class ExternalToolError(TemplateForgeError):
    """
    Raised when an external tool or its input fails.

    Attributes
    ----------
    phase : str
        Workflow phase that failed (``build``, ``test``, ``vcs``, ``manifest``).
    exit_code : int | None
        Exit code of the child process, if one ran.
    output : str
        Captured output of the child process.
    hint : str | None
        What the user should do to finish the phase by hand.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: str,
        exit_code: int | None = None,
        output: str = "",
        hint: str | None = None,
    ) -> None:
        self.phase = phase
        self.exit_code = exit_code
        self.output = output
        self.hint = hint
        super().__init__(message)
