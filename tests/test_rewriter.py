"""
Tests for templateforge.rewriter
================================

Test Organization
-----------------
- TestCollectTargets: Path-only selection of files to rewrite
- TestRewriteFile: Single-file substitution and byte preservation
- TestRewriteFiles: Batch passes and per-file failure isolation
"""

import os
from pathlib import Path
from unittest.mock import patch

from templateforge.models import FileCategory, FileTarget, MatchMode, RenameConfig
from templateforge.paths import PathMap
from templateforge.rewriter import collect_targets, rewrite_file, rewrite_files


# =============================================================================
# Target Collection Tests
# =============================================================================

class TestCollectTargets:
    """Tests for collect_targets."""

    def test_categorises_template_files(self, template_root: Path) -> None:
        config = RenameConfig(new_token="Acme", root=template_root)

        targets = {
            t.path.relative_to(template_root).as_posix(): t.category
            for t in collect_targets(template_root, config)
        }

        assert targets == {
            "YourLibrary.sln": FileCategory.SOLUTION_MANIFEST,
            "README.md": FileCategory.DOCUMENTATION,
            "Directory.Build.props": FileCategory.PROJECT_MANIFEST,
            ".vscode/settings.json": FileCategory.EDITOR_CONFIG,
            ".github/workflows/ci.yml": FileCategory.BUILD_CONFIG,
            "src/YourLibrary/YourLibrary.csproj": FileCategory.PROJECT_MANIFEST,
            "src/YourLibrary/Class1.cs": FileCategory.SOURCE,
            "tests/YourLibrary.Tests/YourLibrary.Tests.csproj": FileCategory.PROJECT_MANIFEST,
            "tests/YourLibrary.Tests/UnitTests/Class1Tests.cs": FileCategory.SOURCE,
        }

    def test_no_file_is_opened(self, template_root: Path) -> None:
        """Filtering happens on paths alone, before any I/O."""
        config = RenameConfig(new_token="Acme", root=template_root)

        with patch("builtins.open", side_effect=AssertionError("opened a file")):
            targets = collect_targets(template_root, config)

        assert targets

    def test_binary_suffix_outside_excluded_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "YourLibrary.md.png").write_bytes(b"\x89PNG")
        (tmp_path / "notes.md").write_text("x")
        config = RenameConfig(new_token="Acme", root=tmp_path)

        targets = collect_targets(tmp_path, config)

        assert [t.path.name for t in targets] == ["notes.md"]


# =============================================================================
# Single File Tests
# =============================================================================

class TestRewriteFile:
    """Tests for rewrite_file."""

    def test_replaces_exactly_n_occurrences(self, tmp_path: Path) -> None:
        """Every occurrence is replaced; all other bytes stay identical."""
        parts = ["alpha ", " beta\n", "\tgamma ", "", " delta"]
        original = "YourLibrary".join(parts)
        path = tmp_path / "file.cs"
        path.write_bytes(original.encode("utf-8"))

        assert rewrite_file(path, "YourLibrary", "Acme.Core") is True

        assert path.read_bytes() == "Acme.Core".join(parts).encode("utf-8")

    def test_documentation_with_three_occurrences(self, template_root: Path) -> None:
        readme = template_root / "README.md"
        original = readme.read_bytes()
        assert original.count(b"YourLibrary") == 3

        rewrite_file(readme, "YourLibrary", "My.Library")

        content = readme.read_bytes()
        assert content.count(b"My.Library") == 3
        assert b"YourLibrary" not in content
        assert content == original.replace(b"YourLibrary", b"My.Library")

    def test_preserves_crlf_line_endings(self, tmp_path: Path) -> None:
        path = tmp_path / "Lib.sln"
        path.write_bytes(b"line YourLibrary\r\nnext\r\nmixed\nend YourLibrary\r\n")

        rewrite_file(path, "YourLibrary", "Acme")

        assert path.read_bytes() == b"line Acme\r\nnext\r\nmixed\nend Acme\r\n"

    def test_no_trailing_newline_added(self, tmp_path: Path) -> None:
        path = tmp_path / "a.md"
        path.write_bytes(b"YourLibrary")

        rewrite_file(path, "YourLibrary", "Acme")

        assert path.read_bytes() == b"Acme"

    def test_preserves_byte_order_mark(self, tmp_path: Path) -> None:
        path = tmp_path / "Class1.cs"
        path.write_bytes(b"\xef\xbb\xbfnamespace YourLibrary;\r\n")

        rewrite_file(path, "YourLibrary", "Acme")

        assert path.read_bytes() == b"\xef\xbb\xbfnamespace Acme;\r\n"

    def test_unchanged_file_is_not_written(self, tmp_path: Path) -> None:
        path = tmp_path / "a.cs"
        path.write_text("nothing to see")
        os.utime(path, (1_000_000, 1_000_000))

        assert rewrite_file(path, "YourLibrary", "Acme") is False
        assert path.stat().st_mtime == 1_000_000

    def test_identifier_mode(self, tmp_path: Path) -> None:
        path = tmp_path / "a.cs"
        path.write_text("using YourLibrary;\nclass YourLibraryExtensions {}\n")

        rewrite_file(path, "YourLibrary", "Acme", MatchMode.IDENTIFIER)

        assert path.read_text() == "using Acme;\nclass YourLibraryExtensions {}\n"


# =============================================================================
# Batch Tests
# =============================================================================

class TestRewriteFiles:
    """Tests for rewrite_files."""

    def test_failure_does_not_stop_the_pass(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.cs"
        bad.write_bytes(b"\xff\xfe YourLibrary \x80")
        missing = tmp_path / "missing.cs"
        good = tmp_path / "good.cs"
        good.write_text("YourLibrary")
        plain = tmp_path / "plain.cs"
        plain.write_text("nothing")

        targets = [FileTarget(p, FileCategory.SOURCE) for p in (bad, missing, good, plain)]
        report = rewrite_files(targets, "YourLibrary", "Acme", verbose=False)

        assert [p for p, _ in report.failed] == [bad, missing]
        assert report.updated == [good]
        assert report.unchanged == [plain]
        assert report.replacements == 1
        assert good.read_text() == "Acme"
        assert bad.read_bytes() == b"\xff\xfe YourLibrary \x80"

    def test_resolves_paths_through_moves(self, tmp_path: Path) -> None:
        planned = tmp_path / "YourLibrary" / "Class1.cs"
        actual = tmp_path / "Acme" / "Class1.cs"
        actual.parent.mkdir()
        actual.write_text("namespace YourLibrary;")
        moves = PathMap()
        moves.record(tmp_path / "YourLibrary", tmp_path / "Acme")

        report = rewrite_files(
            [FileTarget(planned, FileCategory.SOURCE)],
            "YourLibrary",
            "Acme",
            moves=moves,
            root=tmp_path,
            verbose=False,
        )

        assert report.updated == [actual]
        assert actual.read_text() == "namespace Acme;"
