"""
Tests for templateforge.plugins
===============================

Test Organization
-----------------
- TestLoadManifest: Missing and malformed manifests
- TestFetchArguments: Runner argument construction
- TestInstallPlugins: Per-plugin outcomes with a FakeRunner
"""

import json
from pathlib import Path

import pytest

from templateforge.commands import CommandResult
from templateforge.errors import ExternalToolError
from templateforge.plugins import fetch_arguments, install_plugins, load_manifest
from tests.fakes import FakeRunner


def write_manifest(root: Path, servers: dict, name: str = ".mcp.json") -> Path:
    path = root / name
    path.write_text(json.dumps({"mcpServers": servers}))
    return path


FIVE_PLUGINS = {
    "docs": {"command": "npx", "args": ["-y", "@acme/docs-server"]},
    "search": {"command": "npx", "args": ["-y", "search-server", "--port", "9000"]},
    "fs": {"command": "npx", "args": ["@acme/fs-server"]},
    "memory": {"command": "npx", "args": ["-y", "memory-server"]},
    "legacy": {"command": "npx", "args": ["-y", "legacy-server"], "disabled": True},
}


# =============================================================================
# Manifest Loading Tests
# =============================================================================

class TestLoadManifest:
    """Tests for load_manifest."""

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(ExternalToolError) as exc_info:
            load_manifest(tmp_path / ".mcp.json")

        assert exc_info.value.phase == "manifest"
        assert exc_info.value.hint

    def test_malformed_manifest(self, tmp_path: Path) -> None:
        path = tmp_path / ".mcp.json"
        path.write_text('{"mcpServers": {"docs": {"command": "npx", "args": "docs-server"}}}')

        with pytest.raises(ExternalToolError, match="Invalid plugin manifest"):
            load_manifest(path)


# =============================================================================
# Argument Tests
# =============================================================================

class TestFetchArguments:
    """Tests for fetch_arguments."""

    def test_default(self) -> None:
        assert fetch_arguments("@acme/docs") == [
            "--yes", "--package", "@acme/docs", "node", "--version",
        ]

    def test_force_bypasses_cache(self) -> None:
        assert "--prefer-online" in fetch_arguments("@acme/docs", force=True)


# =============================================================================
# Install Tests
# =============================================================================

class TestInstallPlugins:
    """Tests for install_plugins."""

    def test_five_plugins_one_disabled(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, FIVE_PLUGINS)
        runner = FakeRunner()

        result = install_plugins(tmp_path, runner=runner, verbose=False)

        assert result.processed_count == 4
        assert result.skipped == ["legacy"]
        assert sorted(result.installed) == ["docs", "fs", "memory", "search"]
        assert result.success
        assert len(runner.calls) == 4
        assert all(cwd == tmp_path for _, _, cwd in runner.calls)
        assert "legacy-server" not in " ".join(runner.command_lines)

    def test_package_identifier_passed_to_runner(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, {"docs": FIVE_PLUGINS["docs"]})
        runner = FakeRunner()

        install_plugins(tmp_path, runner=runner, verbose=False)

        assert runner.calls[0][:2] == ("npx", fetch_arguments("@acme/docs-server"))

    def test_force(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, {"docs": FIVE_PLUGINS["docs"]})
        runner = FakeRunner()

        install_plugins(tmp_path, runner=runner, force=True, verbose=False)

        assert "--prefer-online" in runner.calls[0][1]

    def test_verify_only_downloads_nothing(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, FIVE_PLUGINS)
        runner = FakeRunner()

        result = install_plugins(tmp_path, runner=runner, verify_only=True, verbose=False)

        assert runner.calls == []
        assert sorted(result.verified) == ["docs", "fs", "memory", "search"]
        assert result.processed_count == 4

    def test_failed_download_does_not_stop_others(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, FIVE_PLUGINS)

        def handler(name: str, args: list[str]) -> CommandResult:
            if "search-server" in args:
                return CommandResult(1, "npm ERR! code E404\nnpm ERR! 404 Not Found")
            return CommandResult(0)

        result = install_plugins(
            tmp_path, runner=FakeRunner(handler=handler), verbose=False
        )

        assert result.failed == [("search", "npm ERR! 404 Not Found")]
        assert len(result.installed) == 3
        assert result.processed_count == 4
        assert not result.success

    def test_failure_without_output_reports_exit_code(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, {"docs": FIVE_PLUGINS["docs"]})
        runner = FakeRunner({"npx": CommandResult(2)})

        result = install_plugins(tmp_path, runner=runner, verbose=False)

        assert result.failed == [("docs", "exit code 2")]

    def test_entry_without_package(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, {"broken": {"command": "npx", "args": ["-y"]}})

        result = install_plugins(tmp_path, runner=FakeRunner(), verbose=False)

        assert result.failed == [("broken", "no package identifier in args")]

    def test_other_commands_not_applicable(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, {
            "local": {"command": "dotnet", "args": ["run", "--project", "tools/Server"]},
            "docs": FIVE_PLUGINS["docs"],
        })
        runner = FakeRunner()

        result = install_plugins(tmp_path, runner=runner, verbose=False)

        assert result.not_applicable == ["local"]
        assert result.installed == ["docs"]
        assert result.processed_count == 2
        assert [name for name, _, _ in runner.calls] == ["npx"]

    def test_entries_without_command(self, tmp_path: Path) -> None:
        """Remote servers have a url instead of a command and need no fetch."""
        write_manifest(tmp_path, {
            "docs": FIVE_PLUGINS["docs"],
            "remote": {"type": "http", "url": "https://mcp.acme.dev", "disabled": True},
            "hosted": {"type": "sse", "url": "https://mcp.acme.dev/sse"},
        })
        runner = FakeRunner()

        result = install_plugins(tmp_path, runner=runner, verbose=False)

        assert result.installed == ["docs"]
        assert result.skipped == ["remote"]
        assert result.not_applicable == ["hosted"]
        assert result.success
        assert len(runner.calls) == 1

    def test_missing_runner(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, FIVE_PLUGINS)

        with pytest.raises(ExternalToolError) as exc_info:
            install_plugins(tmp_path, runner=FakeRunner(missing=["npx"]), verbose=False)

        assert exc_info.value.phase == "install"

    def test_missing_runner_irrelevant_without_runner_entries(self, tmp_path: Path) -> None:
        write_manifest(tmp_path, {"local": {"command": "dotnet", "args": ["run"]}})

        result = install_plugins(
            tmp_path, runner=FakeRunner(missing=["npx"]), verbose=False
        )

        assert result.success
        assert result.not_applicable == ["local"]

    def test_custom_manifest_path(self, tmp_path: Path) -> None:
        (tmp_path / "config").mkdir()
        write_manifest(tmp_path, {"docs": FIVE_PLUGINS["docs"]}, name="config/plugins.json")

        result = install_plugins(
            tmp_path,
            manifest_path=Path("config/plugins.json"),
            runner=FakeRunner(),
            verbose=False,
        )

        assert result.manifest_path == tmp_path / "config" / "plugins.json"
        assert result.installed == ["docs"]

    def test_verbose_report(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        write_manifest(tmp_path, FIVE_PLUGINS)

        install_plugins(tmp_path, runner=FakeRunner())

        out = capsys.readouterr().out
        assert "Summary:" in out
        assert "4 processed" in out
        assert "1 skipped" in out
