"""
templateforge.models - Configuration and Plan Models
====================================================

This module defines the data models used throughout templateforge.
Configuration that comes from the user (CLI flags, a templateforge.toml
file, a plugin manifest) is modelled with Pydantic so bad input fails with
a clear message. Plan items computed from the file system are plain
dataclasses: they are built once and never come from user input.

Architecture Notes
------------------
    RenameConfig (main, frozen)
    ├── MatchMode (enum)
    └── categories: dict[FileCategory, CategoryRule]

    RenamePlan (computed, read-only phase)
    ├── directory_renames: list[PathRename]
    ├── file_renames: list[PathRename]
    ├── solution_renames: list[PathRename]
    └── rewrites: list[FileTarget]

    PluginManifest
    └── plugins: dict[str, PluginEntry]

Usage Example
-------------
>>> from templateforge.models import RenameConfig
>>> config = RenameConfig(new_token="My.Library")
>>> config.placeholder_dir.name
'YourLibrary'
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator

from templateforge.naming import MatchMode, validate_name


__all__ = [
    "DEFAULT_PLACEHOLDER",
    "CategoryRule",
    "FileCategory",
    "FileTarget",
    "MatchMode",
    "PathRename",
    "PluginEntry",
    "PluginManifest",
    "RenameConfig",
    "RenamePlan",
    "default_categories",
]


DEFAULT_PLACEHOLDER = "YourLibrary"


# =============================================================================
# Enumerations
# =============================================================================

class FileCategory(str, Enum):
    """
    Kinds of text files whose contents are rewritten.

    Order matters: a file belongs to the first category whose rule matches,
    and the orchestrator rewrites categories in workflow order.
    """

    SOURCE = "source"
    PROJECT_MANIFEST = "project"
    SOLUTION_MANIFEST = "solution"
    DOCUMENTATION = "docs"
    EDITOR_CONFIG = "editor"
    BUILD_CONFIG = "build"

    @property
    def description(self) -> str:
        """Human-readable label for progress output."""
        descriptions = {
            FileCategory.SOURCE: "source files",
            FileCategory.PROJECT_MANIFEST: "project manifests",
            FileCategory.SOLUTION_MANIFEST: "solution manifest",
            FileCategory.DOCUMENTATION: "documentation",
            FileCategory.EDITOR_CONFIG: "editor configuration",
            FileCategory.BUILD_CONFIG: "build configuration",
        }
        return descriptions[self]


# =============================================================================
# Configuration Sub-Models
# =============================================================================

class CategoryRule(BaseModel):
    """
    Which files belong to a :class:`FileCategory`.

    Attributes
    ----------
    suffixes : list[str]
        File name endings, compared case-insensitively (``.cs``,
        ``.editorconfig``).

    patterns : list[str]
        fnmatch patterns tested against the root-relative POSIX path
        (``.vscode/*.json``).
    """

    model_config = ConfigDict(frozen=True)

    suffixes: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)

    @field_validator("suffixes")
    @classmethod
    def normalize_suffixes(cls, v: list[str]) -> list[str]:
        return [s.lower() for s in v]

    def matches(self, relative_path: PurePosixPath) -> bool:
        name = relative_path.name.lower()
        if any(name.endswith(suffix) for suffix in self.suffixes):
            return True
        posix = relative_path.as_posix()
        return any(fnmatch.fnmatchcase(posix, pattern) for pattern in self.patterns)


def default_categories() -> dict[FileCategory, CategoryRule]:
    """
    Category rules for a .NET class library template.

    Returns
    -------
    dict[FileCategory, CategoryRule]
        One rule per category, in :class:`FileCategory` order.
    """
    return {
        FileCategory.SOURCE: CategoryRule(suffixes=[".cs", ".fs", ".vb"]),
        FileCategory.PROJECT_MANIFEST: CategoryRule(
            suffixes=[".csproj", ".fsproj", ".vbproj", ".props", ".targets"],
        ),
        FileCategory.SOLUTION_MANIFEST: CategoryRule(suffixes=[".sln", ".slnx"]),
        FileCategory.DOCUMENTATION: CategoryRule(suffixes=[".md", ".txt"]),
        FileCategory.EDITOR_CONFIG: CategoryRule(
            suffixes=[".editorconfig"],
            patterns=[".vscode/*.json", ".devcontainer/*"],
        ),
        FileCategory.BUILD_CONFIG: CategoryRule(
            suffixes=[".yml", ".yaml"],
            patterns=["global.json", "nuget.config", ".config/*.json", ".mcp.json"],
        ),
    }


DEFAULT_EXCLUDED_DIRS = [
    ".git",
    ".vs",
    "bin",
    "obj",
    "node_modules",
    "artifacts",
    "packages",
    "TestResults",
]

DEFAULT_BINARY_SUFFIXES = [
    ".dll",
    ".exe",
    ".pdb",
    ".nupkg",
    ".snupkg",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".zip",
    ".snk",
]


# =============================================================================
# Main Configuration Model
# =============================================================================

class RenameConfig(BaseModel):
    """
    Complete configuration for one rename-template run.

    Replaces ambient process state (current directory, global error
    preference) with an explicit object handed to the orchestrator. The
    model is frozen: it cannot change once execution starts.

    The new name is deliberately *not* rejected here. Validation is the
    first step of the workflow so that an invalid name is reported as a
    ``VALIDATION_FAILED`` outcome rather than a construction error.

    Attributes
    ----------
    new_token : str
        The name that replaces the placeholder.

    old_token : str
        The placeholder the template ships with.

    root : Path
        Root of the template tree.

    skip_build, skip_vcs_init : bool
        Skip the optional build/test and repository phases.

    assume_yes : bool
        Answer yes to the already-customized confirmation.

    dry_run : bool
        Compute and show the plan without applying it.

    match_mode : MatchMode
        Literal substring (default) or identifier-aware matching.

    source_dir : str
        Directory expected to hold ``<old_token>/`` before the first run.

    Examples
    --------
    >>> config = RenameConfig(new_token="Acme.Widgets", skip_build=True)
    >>> config.name_is_valid
    True
    """

    model_config = ConfigDict(frozen=True)

    # -------------------------------------------------------------------------
    # Required Fields
    # -------------------------------------------------------------------------
    new_token: str = Field(description="Name replacing the placeholder")

    # -------------------------------------------------------------------------
    # Fields with Defaults
    # -------------------------------------------------------------------------
    old_token: str = Field(
        default=DEFAULT_PLACEHOLDER,
        description="Placeholder identifier shipped with the template",
        min_length=1,
    )
    root: Path = Field(
        default_factory=Path.cwd,
        description="Root directory of the template",
    )
    skip_build: bool = Field(default=False, description="Skip build and test")
    skip_vcs_init: bool = Field(default=False, description="Skip git init and commit")
    assume_yes: bool = Field(default=False, description="Do not ask for confirmation")
    dry_run: bool = Field(default=False, description="Show the plan only")
    match_mode: MatchMode = Field(
        default=MatchMode.LITERAL,
        description="How placeholder occurrences are matched",
    )
    source_dir: str = Field(
        default="src",
        description="Directory that holds the placeholder project",
    )
    build_command: list[str] = Field(
        default_factory=lambda: ["dotnet", "build"],
        min_length=1,
    )
    test_command: list[str] = Field(
        default_factory=lambda: ["dotnet", "test", "--no-build"],
        min_length=1,
    )
    vcs_command: str = Field(default="git")
    commit_message: str = Field(default="Initial commit")
    excluded_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))
    binary_suffixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BINARY_SUFFIXES),
    )
    categories: dict[FileCategory, CategoryRule] = Field(
        default_factory=default_categories,
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("old_token")
    @classmethod
    def validate_old_token(cls, v: str) -> str:
        """The placeholder must itself be a valid name."""
        if not validate_name(v):
            msg = f"Invalid placeholder '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("binary_suffixes")
    @classmethod
    def normalize_binary_suffixes(cls, v: list[str]) -> list[str]:
        return [s.lower() for s in v]

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def name_is_valid(self) -> bool:
        return validate_name(self.new_token)

    @property
    def placeholder_dir(self) -> Path:
        """Directory that exists only while the template is uncustomized."""
        return self.root / self.source_dir / self.old_token

    def category_for(self, relative_path: PurePosixPath) -> FileCategory | None:
        """
        Return the category of a root-relative path, or None.

        Categories are tried in :class:`FileCategory` order so the result
        does not depend on the order of the ``categories`` mapping.
        """
        for category in FileCategory:
            rule = self.categories.get(category)
            if rule is not None and rule.matches(relative_path):
                return category
        return None

    def is_excluded(self, relative_path: PurePosixPath) -> bool:
        """True for build output, VCS metadata and binary files."""
        if any(part in self.excluded_dirs for part in relative_path.parts):
            return True
        return relative_path.name.lower().endswith(tuple(self.binary_suffixes))

    # -------------------------------------------------------------------------
    # Serialization Methods
    # -------------------------------------------------------------------------

    @classmethod
    def from_toml(cls, path: Path, **overrides: object) -> RenameConfig:
        """
        Load configuration from a TOML file.

        Settings are read from the ``[rename]`` table when present, else from
        the top level. Keyword overrides whose value is not None win over the
        file. A relative ``root`` is resolved against the file's directory,
        and a missing one defaults to that directory.

        Raises
        ------
        FileNotFoundError
            If the config file doesn't exist.
        ValidationError
            If the config file has invalid values.
        """
        import tomli

        with open(path, "rb") as f:
            data = tomli.load(f)

        data = dict(data.get("rename", data))
        data.update({k: v for k, v in overrides.items() if v is not None})

        root = Path(data.get("root", "."))
        if not root.is_absolute():
            root = path.parent / root
        data["root"] = root

        return cls(**data)


# =============================================================================
# Plan Items
# =============================================================================

@dataclass(frozen=True)
class FileTarget:
    """A text file whose contents are rewritten, tagged with its category."""

    path: Path
    category: FileCategory


@dataclass(frozen=True)
class PathRename:
    """
    One planned rename. Paths are as found during planning; descendants of
    renamed directories are re-resolved when the rename is applied.
    """

    source: Path
    target: Path
    is_dir: bool = False


@dataclass
class RenamePlan:
    """
    Every file-system mutation of a run, computed before any is applied.

    Attributes
    ----------
    directory_renames : list[PathRename]
        Parents before children.

    file_renames : list[PathRename]
        Files whose name contains the placeholder, solution files excluded.

    solution_renames : list[PathRename]
        Solution manifests, renamed after their contents are rewritten.

    rewrites : list[FileTarget]
        Files whose contents are scanned for the placeholder.
    """

    directory_renames: list[PathRename] = field(default_factory=list)
    file_renames: list[PathRename] = field(default_factory=list)
    solution_renames: list[PathRename] = field(default_factory=list)
    rewrites: list[FileTarget] = field(default_factory=list)

    def targets_for(self, *categories: FileCategory) -> list[FileTarget]:
        return [t for t in self.rewrites if t.category in categories]

    @property
    def rename_count(self) -> int:
        return (
            len(self.directory_renames)
            + len(self.file_renames)
            + len(self.solution_renames)
        )

    @property
    def is_empty(self) -> bool:
        return self.rename_count == 0 and not self.rewrites


# =============================================================================
# Plugin Manifest
# =============================================================================

class PluginEntry(BaseModel):
    """
    One developer-tooling plugin in the manifest.

    Unknown keys (``env``, ``type``, ...) are accepted and ignored.
    """

    model_config = ConfigDict(extra="ignore")

    command: str | None = Field(
        default=None,
        min_length=1,
        description="Launch command; remote (url-based) servers have none",
    )
    args: list[str] = Field(default_factory=list, description="Launch arguments")
    disabled: bool = Field(default=False)

    @property
    def package(self) -> str | None:
        """First argument that is not a flag: the package to pre-fetch."""
        return next((a for a in self.args if not a.startswith("-")), None)

    def uses_runner(self, runner: str) -> bool:
        """True when the launch command is ``runner`` (``npx``, ``npx.cmd``)."""
        if self.command is None:
            return False
        return Path(self.command).stem.lower() == runner.lower()


class PluginManifest(BaseModel):
    """
    Declarative list of plugins, stored as JSON under ``mcpServers``.

    Examples
    --------
    >>> PluginManifest.model_validate(
    ...     {"mcpServers": {"docs": {"command": "npx", "args": ["-y", "pkg"]}}}
    ... ).plugins["docs"].package
    'pkg'
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    plugins: dict[str, PluginEntry] = Field(
        default_factory=dict,
        alias="mcpServers",
    )

    @classmethod
    def from_file(cls, path: Path) -> PluginManifest:
        """
        Load a manifest from a JSON file.

        Raises
        ------
        FileNotFoundError
            If the manifest doesn't exist.
        ValidationError
            If the file is not valid JSON or has invalid entries.
        """
        return cls.model_validate_json(path.read_text(encoding="utf-8"))
