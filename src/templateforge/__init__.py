"""
templateforge - Class Library Template Automation
=================================================

Tools that turn a freshly cloned class library template into a real
project.

Features
--------
- **rename-template**: Replace the ``YourLibrary`` placeholder in directory
  names, file names, sources, project and solution manifests, docs and
  configuration, then optionally build, test and commit.
- **install-plugins**: Pre-fetch the developer tooling plugins listed in
  the workspace manifest.

Quick Start
-----------
```bash
templateforge rename-template Acme.Widgets
templateforge install-plugins
```

Example
-------
>>> from pathlib import Path
>>> from templateforge import RenameConfig, rename_template
>>> config = RenameConfig(new_token="Acme.Widgets", root=Path("my-template"), dry_run=True)
>>> result = rename_template(config)  # doctest: +SKIP
>>> result.success  # doctest: +SKIP
True

Architecture
------------
- ``cli``: Typer-based command line interface
- ``renamer``: The ordered rename workflow
- ``paths``: Directory and file renames
- ``rewriter``: Placeholder substitution in file contents
- ``naming``: Name validation and token matching
- ``commands``: Build, test, git and package runner invocation
- ``plugins``: Manifest-driven plugin installation
- ``models``: Pydantic configuration models
- ``errors``: Exception taxonomy
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================

from templateforge.models import RenameConfig
from templateforge.naming import validate_name
from templateforge.plugins import install_plugins
from templateforge.renamer import rename_template


__all__ = [
    "RenameConfig",
    "__version__",
    "install_plugins",
    "rename_template",
    "validate_name",
]
