"""
pytest configuration and shared fixtures for templateforge tests.

Fixtures
--------
template_root : Path
    A miniature class library template using the ``YourLibrary``
    placeholder, freshly created for each test.

fake_runner : FakeRunner
    A CommandRunner that records commands instead of running them.

snapshot : Callable[[Path], dict[str, bytes]]
    Captures every file under a directory, for before/after comparisons.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.fakes import FakeRunner


# Files of the miniature template, relative path -> content
TEMPLATE_FILES: dict[str, str] = {
    "YourLibrary.sln": (
        "Microsoft Visual Studio Solution File, Format Version 12.00\r\n"
        'Project("{FAE04EC0}") = "YourLibrary", '
        '"src\\YourLibrary\\YourLibrary.csproj", "{1111}"\r\n'
        'Project("{FAE04EC0}") = "YourLibrary.Tests", '
        '"tests\\YourLibrary.Tests\\YourLibrary.Tests.csproj", "{2222}"\r\n'
    ),
    "README.md": (
        "# YourLibrary\n\n"
        "Install with `dotnet add package YourLibrary`.\n\n"
        "See the YourLibrary docs for details.\n"
    ),
    "Directory.Build.props": "<Project>\n  <PropertyGroup />\n</Project>\n",
    ".vscode/settings.json": '{\n  "dotnet.defaultSolution": "YourLibrary.sln"\n}\n',
    ".github/workflows/ci.yml": "name: ci\njobs:\n  build:\n    steps:\n      - run: dotnet test YourLibrary.sln\n",
    "src/YourLibrary/YourLibrary.csproj": (
        "<Project Sdk=\"Microsoft.NET.Sdk\">\n"
        "  <PropertyGroup>\n"
        "    <RootNamespace>YourLibrary</RootNamespace>\n"
        "  </PropertyGroup>\n"
        "</Project>\n"
    ),
    "src/YourLibrary/Class1.cs": (
        "namespace YourLibrary;\n\n"
        "public class Class1\n{\n"
        "    public string Greet(string name) => $\"Hello, {name}!\";\n"
        "}\n"
    ),
    "tests/YourLibrary.Tests/YourLibrary.Tests.csproj": (
        "<Project Sdk=\"Microsoft.NET.Sdk\">\n"
        "  <ItemGroup>\n"
        "    <ProjectReference Include=\"..\\..\\src\\YourLibrary\\YourLibrary.csproj\" />\n"
        "  </ItemGroup>\n"
        "</Project>\n"
    ),
    "tests/YourLibrary.Tests/UnitTests/Class1Tests.cs": (
        "namespace YourLibrary.Tests.UnitTests;\n\n"
        "public class Class1Tests { }\n"
    ),
}

# Build output that must never be read or rewritten
BINARY_FILES: dict[str, bytes] = {
    "src/YourLibrary/bin/Debug/YourLibrary.dll": b"MZ\x90\x00YourLibrary\xff\xfe",
    "src/YourLibrary/obj/project.assets.json": b'{"project": "YourLibrary"}',
}


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """
    Create the miniature template in a temporary directory.

    Returns
    -------
    Path
        Root of the template.
    """
    root = tmp_path / "template"
    for relative, content in TEMPLATE_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))
    for relative, data in BINARY_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


@pytest.fixture
def fake_runner() -> FakeRunner:
    """A runner on which every command succeeds."""
    return FakeRunner()


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


@pytest.fixture
def snapshot() -> Callable[[Path], dict[str, bytes]]:
    """Return a function capturing all files below a directory."""
    return _snapshot


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external tools (git, dotnet)"
    )
