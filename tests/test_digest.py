"""Tests for skillctl.sync.digest: directory content digests.

Covers:
- Determinism and independence from mtimes
- Path participation (renames and moves change the digest)
- Path/content boundary ambiguity
- Algorithm selection
- Ignore patterns, including ``{a,b}`` alternation and zero-directory ``**/``
- Hard errors on symlinks, special files, and missing directories
"""

from __future__ import annotations

import hashlib
import os
import sys
from pathlib import Path

import pytest

from skillctl.errors import ConfigurationError, ExecutionError
from skillctl.sync.digest import (
    IgnoreSet,
    compile_ignore_patterns,
    digest_dir,
    short_digest,
)
from skillctl.sync.models import HashAlgo

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="requires POSIX symlinks and FIFOs"
)

# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------


class TestDigestDeterminism:
    """Equal trees hash equal; content or path changes do not."""

    def test_same_tree_same_digest(self, tmp_path: Path, write_skill):
        files = {"SKILL.md": "# demo\n", "lib/util.py": "x = 1\n"}
        a = write_skill(tmp_path / "a", "demo", files)
        b = write_skill(tmp_path / "b", "demo", files)
        assert digest_dir(a) == digest_dir(b)

    def test_mtime_ignored(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "hello"})
        before = digest_dir(skill)
        os.utime(skill / "SKILL.md", (0, 0))
        assert digest_dir(skill) == before

    def test_content_change_changes_digest(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "v1"})
        before = digest_dir(skill)
        (skill / "SKILL.md").write_text("v2")
        assert digest_dir(skill) != before

    def test_rename_changes_digest(self, tmp_path: Path, write_skill):
        a = write_skill(tmp_path / "a", "demo", {"one.txt": "same"})
        b = write_skill(tmp_path / "b", "demo", {"two.txt": "same"})
        assert digest_dir(a) != digest_dir(b)

    def test_path_boundary_not_ambiguous(self, tmp_path: Path, write_skill):
        """``a/b.txt`` and ``ab.txt`` with equal content differ."""
        a = write_skill(tmp_path / "a", "demo", {"a/b.txt": "x"})
        b = write_skill(tmp_path / "b", "demo", {"ab.txt": "x"})
        assert digest_dir(a) != digest_dir(b)

    def test_content_boundary_not_ambiguous(self, tmp_path: Path, write_skill):
        """Moving bytes between adjacent files changes the digest."""
        a = write_skill(tmp_path / "a", "demo", {"a": "xy", "b": "z"})
        b = write_skill(tmp_path / "b", "demo", {"a": "x", "b": "yz"})
        assert digest_dir(a) != digest_dir(b)

    def test_empty_directories_do_not_contribute(self, tmp_path: Path, write_skill):
        a = write_skill(tmp_path / "a", "demo", {"SKILL.md": "x"})
        b = write_skill(tmp_path / "b", "demo", {"SKILL.md": "x"})
        (b / "empty").mkdir()
        assert digest_dir(a) == digest_dir(b)

    def test_empty_directory_digest(self, tmp_path: Path):
        empty = tmp_path / "empty"
        empty.mkdir()
        digest = digest_dir(empty, HashAlgo.SHA256)
        assert digest.hexdigest == hashlib.sha256().hexdigest()


# ---------------------------------------------------------------------------
# Algorithms
# ---------------------------------------------------------------------------


class TestDigestAlgorithms:
    """Tests for algorithm selection."""

    def test_default_is_blake3(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "x"})
        digest = digest_dir(skill)
        assert digest.algo == HashAlgo.BLAKE3
        assert len(digest.hexdigest) == 64

    def test_sha256_matches_framing(self, tmp_path: Path, write_skill):
        """The SHA-256 digest is ``path NUL content NUL`` per sorted file."""
        skill = write_skill(
            tmp_path, "demo", {"b.txt": "bee", "a/z.txt": "zed"}
        )
        expected = hashlib.sha256(
            b"a/z.txt\0zed\0" + b"b.txt\0bee\0"
        ).hexdigest()
        assert digest_dir(skill, HashAlgo.SHA256).hexdigest == expected

    def test_algorithms_not_equal(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "x"})
        assert digest_dir(skill, HashAlgo.SHA256) != digest_dir(
            skill, HashAlgo.BLAKE3
        )

    def test_large_file_streams(self, tmp_path: Path, write_skill):
        data = "0123456789abcdef" * 4096
        skill = write_skill(tmp_path, "demo", {"big.bin": data})
        expected = hashlib.sha256(
            b"big.bin\0" + data.encode() + b"\0"
        ).hexdigest()
        assert digest_dir(skill, HashAlgo.SHA256).hexdigest == expected


# ---------------------------------------------------------------------------
# Ignore patterns
# ---------------------------------------------------------------------------


class TestIgnorePatterns:
    """Tests for IgnoreSet and ignore-aware digests."""

    def test_ignored_file_does_not_change_digest(self, tmp_path: Path, write_skill):
        ignore = compile_ignore_patterns(["**/.DS_Store", "*.tmp"])
        a = write_skill(tmp_path / "a", "demo", {"SKILL.md": "x"})
        b = write_skill(
            tmp_path / "b",
            "demo",
            {"SKILL.md": "x", ".DS_Store": "junk", "sub/c.tmp": "junk"},
        )
        assert digest_dir(a, ignore=ignore) == digest_dir(b, ignore=ignore)
        assert digest_dir(a) != digest_dir(b)

    def test_double_star_prefix_matches_top_level(self):
        ignore = IgnoreSet(["**/.DS_Store"])
        assert ignore.matches(".DS_Store")
        assert ignore.matches("a/b/.DS_Store")
        assert not ignore.matches("DS_Store")

    def test_star_crosses_directories(self):
        ignore = IgnoreSet(["*.tmp"])
        assert ignore.matches("x.tmp")
        assert ignore.matches("deep/dir/x.tmp")
        assert not ignore.matches("x.tmpl")

    def test_brace_alternation_with_double_star_prefix(self):
        ignore = IgnoreSet(["**/*.{tmp,bak}"])
        assert ignore.matches("x.tmp")
        assert ignore.matches("x.bak")
        assert ignore.matches("a/b/c.bak")
        assert not ignore.matches("x.txt")
        assert not ignore.matches("x.{tmp,bak}")

    def test_nested_brace_alternation(self):
        ignore = IgnoreSet(["*.{md,{tmp,bak}}"])
        assert ignore.matches("a.md")
        assert ignore.matches("a.tmp")
        assert ignore.matches("a.bak")
        assert not ignore.matches("a.py")

    def test_braces_inside_class_are_literal(self):
        ignore = IgnoreSet(["x[{]"])
        assert ignore.matches("x{")
        assert not ignore.matches("x")

    def test_mid_double_star_matches_zero_directories(self):
        ignore = IgnoreSet(["cache/**/*.bin"])
        assert ignore.matches("cache/a.bin")
        assert ignore.matches("cache/x/a.bin")
        assert ignore.matches("cache/x/y/a.bin")
        assert not ignore.matches("other/a.bin")
        assert not ignore.matches("cache.bin")

    def test_repeated_mid_double_star(self):
        ignore = IgnoreSet(["a/**/b/**/c.txt"])
        assert ignore.matches("a/b/c.txt")
        assert ignore.matches("a/x/b/c.txt")
        assert ignore.matches("a/b/y/c.txt")
        assert not ignore.matches("a/c.txt")

    def test_brace_ignored_file_does_not_change_digest(
        self, tmp_path: Path, write_skill
    ):
        ignore = compile_ignore_patterns(["**/*.{tmp,bak}", "cache/**/*.bin"])
        a = write_skill(tmp_path / "a", "demo", {"SKILL.md": "x"})
        b = write_skill(
            tmp_path / "b",
            "demo",
            {
                "SKILL.md": "x",
                "top.tmp": "junk",
                "sub/old.bak": "junk",
                "cache/a.bin": "junk",
            },
        )
        assert digest_dir(a, ignore=ignore) == digest_dir(b, ignore=ignore)

    def test_unclosed_brace_rejected(self):
        with pytest.raises(ConfigurationError, match=r"\*\.\{tmp") as exc_info:
            compile_ignore_patterns(["*.{tmp,bak"])
        assert "'{'" in exc_info.value.hint

    def test_empty_set_is_falsy(self):
        assert not IgnoreSet()
        assert IgnoreSet(["*.tmp"])

    def test_empty_pattern_rejected(self):
        with pytest.raises(ConfigurationError, match="pattern is empty"):
            compile_ignore_patterns(["*.tmp", ""])

    def test_unclosed_class_rejected(self):
        with pytest.raises(ConfigurationError, match=r"\[abc"):
            compile_ignore_patterns(["[abc"])


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestDigestErrors:
    """Unsupported entries are hard errors."""

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(ExecutionError, match="Directory not found"):
            digest_dir(tmp_path / "absent")

    def test_file_instead_of_directory(self, tmp_path: Path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(ExecutionError, match="Directory not found"):
            digest_dir(path)

    @posix_only
    def test_nested_symlink_rejected(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "x"})
        (skill / "link.md").symlink_to(skill / "SKILL.md")
        with pytest.raises(ExecutionError, match="Symlinks are not supported"):
            digest_dir(skill)

    @posix_only
    def test_ignored_symlink_still_rejected(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "x"})
        (skill / "link.tmp").symlink_to(skill / "SKILL.md")
        with pytest.raises(ExecutionError):
            digest_dir(skill, ignore=IgnoreSet(["*.tmp"]))

    @posix_only
    def test_root_symlink_rejected(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "x"})
        link = tmp_path / "link"
        link.symlink_to(skill, target_is_directory=True)
        with pytest.raises(ExecutionError, match="Symlinks are not supported"):
            digest_dir(link)

    @posix_only
    def test_fifo_rejected(self, tmp_path: Path, write_skill):
        skill = write_skill(tmp_path, "demo", {"SKILL.md": "x"})
        os.mkfifo(skill / "pipe")
        with pytest.raises(ExecutionError, match="Unsupported file type"):
            digest_dir(skill)


class TestShortDigest:
    """Tests for short_digest()."""

    def test_abbreviates(self):
        assert short_digest("abcdef0123456789") == "abc...789"

    def test_short_values_unchanged(self):
        assert short_digest("abcdef") == "abcdef"
        assert short_digest("") == ""
