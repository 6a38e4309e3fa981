"""Tests for file utility functions."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from korrektly.ingestion.gitignore import IgnorePattern
from korrektly.utils.files import DiscoveryError, iter_markdown_paths


def _touch(path: Path, text: str = "# Title\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestIterMarkdownPaths:
    """Test iter_markdown_paths function."""

    def test_collects_md_and_mdx(self, tmp_path: Path) -> None:
        """Should yield markdown and MDX files only."""
        _touch(tmp_path / "a.md")
        _touch(tmp_path / "b.mdx")
        _touch(tmp_path / "c.txt")

        names = {path.name for path in iter_markdown_paths(tmp_path)}

        assert names == {"a.md", "b.mdx"}

    def test_nested_directories_sorted(self, tmp_path: Path) -> None:
        """Should recurse and keep a stable order."""
        _touch(tmp_path / "guide" / "intro.md")
        _touch(tmp_path / "api" / "ref.md")
        _touch(tmp_path / "index.md")

        relative = [p.relative_to(tmp_path).as_posix() for p in iter_markdown_paths(tmp_path)]

        assert relative == ["api/ref.md", "guide/intro.md", "index.md"]

    def test_skips_node_modules(self, tmp_path: Path) -> None:
        _touch(tmp_path / "node_modules" / "pkg" / "README.md")
        _touch(tmp_path / "docs.md")

        paths = list(iter_markdown_paths(tmp_path, respect_gitignore=False))

        assert [p.name for p in paths] == ["docs.md"]

    def test_respects_gitignore(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("drafts/\n", encoding="utf-8")
        _touch(tmp_path / "drafts" / "wip.md")
        _touch(tmp_path / "guide.md")

        names = [p.name for p in iter_markdown_paths(tmp_path)]

        assert names == ["guide.md"]

    def test_gitignore_disabled(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("drafts/\n", encoding="utf-8")
        _touch(tmp_path / "drafts" / "wip.md")
        _touch(tmp_path / "guide.md")

        names = {p.name for p in iter_markdown_paths(tmp_path, respect_gitignore=False)}

        assert names == {"wip.md", "guide.md"}

    def test_explicit_patterns(self, tmp_path: Path) -> None:
        _touch(tmp_path / "private" / "notes.md")
        _touch(tmp_path / "public.md")

        paths = list(iter_markdown_paths(tmp_path, patterns=[IgnorePattern("private")]))

        assert [p.name for p in paths] == ["public.md"]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DiscoveryError):
            list(iter_markdown_paths(tmp_path / "missing"))

    def test_unreadable_subdirectory_is_skipped(self, tmp_path: Path) -> None:
        """A subdirectory that cannot be listed contributes no files."""
        _touch(tmp_path / "broken" / "hidden.md")
        _touch(tmp_path / "ok.md")
        real_iterdir = Path.iterdir

        def fake_iterdir(self: Path):
            if self.name == "broken":
                raise PermissionError("denied")
            return real_iterdir(self)

        with patch.object(Path, "iterdir", fake_iterdir):
            names = [p.name for p in iter_markdown_paths(tmp_path)]

        assert names == ["ok.md"]

    def test_symlinked_directories_not_followed(self, tmp_path: Path) -> None:
        """A directory symlink pointing back at the root must not be walked."""
        _touch(tmp_path / "intro.md")
        try:
            os.symlink(tmp_path, tmp_path / "loop", target_is_directory=True)
            os.symlink(tmp_path, tmp_path / "again", target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported on this platform")

        relative = [p.relative_to(tmp_path).as_posix() for p in iter_markdown_paths(tmp_path)]

        assert relative == ["intro.md"]
