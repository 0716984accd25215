"""Deterministic content digest of a skill directory tree.

The digest depends only on each regular file's relative path and bytes:

* Files are collected recursively; symlinks and special files (sockets,
  FIFOs, devices) anywhere in the tree are hard errors, because later stages
  replace or delete these trees and must never traverse a link.
* Relative paths use ``/`` separators on every platform.
* Paths matching an ignore glob are excluded.
* Remaining files are sorted by relative path, then fed into one streaming
  hash as ``path NUL content NUL``.  Including the path stops
  ``a/b.txt="x"`` from colliding with ``ab.txt="x"``; the NUL separators make
  file boundaries unambiguous.

Modification times never enter the digest.
"""

from __future__ import annotations

import fnmatch
import hashlib
import itertools
import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path

from blake3 import blake3

from skillctl.errors import ConfigurationError, ExecutionError, wrap_os_error
from skillctl.sync.models import Digest, HashAlgo

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192

# ---------------------------------------------------------------------------
# Ignore patterns
# ---------------------------------------------------------------------------


def _class_end(pattern: str, start: int) -> int:
    """Return the index of the ``]`` closing the class opened at *start*, or -1."""
    j, n = start + 1, len(pattern)
    if j < n and pattern[j] == "!":
        j += 1
    if j < n and pattern[j] == "]":
        j += 1
    while j < n and pattern[j] != "]":
        j += 1
    return j if j < n else -1


def _unterminated_class(pattern: str) -> bool:
    """Return ``True`` if *pattern* opens a ``[...]`` class it never closes."""
    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue
        end = _class_end(pattern, i)
        if end == -1:
            return True
        i = end + 1
    return False


def _expand_braces(pattern: str) -> list[str]:
    """Expand the first ``{a,b}`` group in *pattern*, recursively.

    Braces inside a ``[...]`` class are literal.  Groups may nest, so
    ``*.{md,{tmp,bak}}`` yields three patterns.

    Raises:
        ConfigurationError: If a ``{`` is never closed.
    """
    i, n = 0, len(pattern)
    while i < n and pattern[i] != "{":
        i = _class_end(pattern, i) + 1 if pattern[i] == "[" else i + 1
    if i >= n:
        return [pattern]

    start, depth = i, 0
    options: list[str] = []
    item_start = start + 1
    while i < n:
        ch = pattern[i]
        if ch == "[":
            i = _class_end(pattern, i) + 1
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                break
        elif ch == "," and depth == 1:
            options.append(pattern[item_start:i])
            item_start = i + 1
        i += 1
    else:
        raise ConfigurationError(
            f"Invalid ignore pattern: {pattern}",
            hint="Unclosed alternation group '{'.",
        )
    options.append(pattern[item_start:i])

    head, tail = pattern[:start], pattern[i + 1:]
    expanded: list[str] = []
    for option in options:
        expanded.extend(_expand_braces(head + option + tail))
    return expanded


def _globstar_variants(pattern: str) -> list[str]:
    """Spell out the zero-directory forms of ``**/`` and ``/**/``."""
    bases = [pattern]
    if pattern.startswith("**/"):
        bases.append(pattern[3:])
    variants: list[str] = []
    for base in bases:
        parts = base.split("/**/")
        for joins in itertools.product(("/**/", "/"), repeat=len(parts) - 1):
            variants.append(
                "".join(part + join for part, join in zip(parts, joins))
                + parts[-1]
            )
    return list(dict.fromkeys(variants))


class IgnoreSet:
    """Compiled set of ignore globs matched against relative file paths.

    Patterns use ``fnmatch`` syntax against the ``/``-separated path relative
    to the skill directory, plus ``{a,b}`` alternation.  ``*`` may cross
    directory boundaries.  ``**/`` also matches zero directories, both as a
    prefix and in the middle of a pattern: ``**/*.{tmp,bak}`` ignores
    ``x.tmp`` and ``a/b/x.bak``, and ``cache/**/*.bin`` ignores
    ``cache/a.bin``.

    Args:
        patterns: Glob patterns.  Compiled eagerly.

    Raises:
        ConfigurationError: If any pattern is empty or malformed.
    """

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.patterns: tuple[str, ...] = tuple(patterns)
        self._regexes: list[re.Pattern[str]] = []
        for pattern in self.patterns:
            self._regexes.extend(_compile_pattern(pattern))

    def __bool__(self) -> bool:
        return bool(self._regexes)

    def matches(self, rel_path: str) -> bool:
        """Return ``True`` if *rel_path* matches any ignore pattern."""
        return any(rx.match(rel_path) for rx in self._regexes)


def _compile_pattern(pattern: str) -> list[re.Pattern[str]]:
    if not pattern or not pattern.strip():
        raise ConfigurationError(
            "Invalid ignore pattern: pattern is empty",
            hint="Remove empty entries from hash.ignore in the config file.",
        )
    if _unterminated_class(pattern):
        raise ConfigurationError(
            f"Invalid ignore pattern: {pattern}",
            hint="Unclosed character class '['.",
        )
    sources: list[str] = []
    for expanded in _expand_braces(pattern):
        sources.extend(_globstar_variants(expanded))
    try:
        return [re.compile(fnmatch.translate(src)) for src in dict.fromkeys(sources)]
    except re.error as exc:
        raise ConfigurationError(
            f"Invalid ignore pattern: {pattern}", hint=str(exc)
        ) from exc


def compile_ignore_patterns(patterns: Iterable[str]) -> IgnoreSet:
    """Compile ignore globs once, before any file I/O."""
    return IgnoreSet(patterns)


# ---------------------------------------------------------------------------
# Tree walk
# ---------------------------------------------------------------------------


def _collect_files(
    root: Path, ignore: IgnoreSet | None
) -> list[tuple[str, Path]]:
    """Return ``(rel_path, abs_path)`` for every regular file under *root*."""
    files: list[tuple[str, Path]] = []
    stack: list[tuple[Path, str]] = [(root, "")]
    while stack:
        directory, prefix = stack.pop()
        try:
            entries = list(os.scandir(directory))
        except OSError as exc:
            raise wrap_os_error(
                f"Failed to read directory: {directory}", exc
            ) from exc
        for entry in entries:
            rel = f"{prefix}{entry.name}"
            full = Path(entry.path)
            try:
                if entry.is_symlink():
                    raise ExecutionError(
                        f"Symlinks are not supported: {full}",
                        hint="Replace the link with a regular file or directory.",
                    )
                if entry.is_dir(follow_symlinks=False):
                    stack.append((full, f"{rel}/"))
                    continue
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as exc:
                raise wrap_os_error(
                    f"Failed to inspect entry: {full}", exc
                ) from exc
            if not is_file:
                raise ExecutionError(
                    f"Unsupported file type: {full}",
                    hint="Skills may only contain regular files and directories.",
                )
            if ignore and ignore.matches(rel):
                continue
            files.append((rel, full))
    files.sort(key=lambda pair: pair[0])
    return files


def _new_hasher(algo: HashAlgo):
    if algo == HashAlgo.SHA256:
        return hashlib.sha256()
    return blake3()


def _hash_file(hasher, path: Path) -> None:
    try:
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as exc:
        raise wrap_os_error(f"Failed to read file: {path}", exc) from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def digest_dir(
    path: Path,
    algo: HashAlgo = HashAlgo.BLAKE3,
    ignore: IgnoreSet | None = None,
) -> Digest:
    """Compute the content digest of the directory tree at *path*.

    Args:
        path: Directory to digest.
        algo: Hash algorithm.
        ignore: Compiled ignore patterns (see ``compile_ignore_patterns``).

    Returns:
        ``Digest`` tagged with *algo*.

    Raises:
        ExecutionError: If *path* is not a directory, is a symlink, contains
            a symlink or special file, or a file cannot be read.
    """
    path = Path(path)
    if path.is_symlink():
        raise ExecutionError(
            f"Symlinks are not supported: {path}",
            hint="Replace the link with a regular directory.",
        )
    if not path.is_dir():
        raise ExecutionError(
            f"Directory not found: {path}",
            hint="Check the target path.",
        )

    files = _collect_files(path, ignore)

    hasher = _new_hasher(algo)
    for rel, full in files:
        hasher.update(rel.encode("utf-8", "surrogateescape"))
        hasher.update(b"\0")
        _hash_file(hasher, full)
        hasher.update(b"\0")

    digest = Digest(algo=algo, hexdigest=hasher.hexdigest())
    logger.debug(
        "Digested %s (%d files, %s): %s",
        path,
        len(files),
        algo.value,
        digest.hexdigest,
    )
    return digest


def short_digest(digest: str) -> str:
    """Abbreviate a hex digest for tables: ``abc...xyz``."""
    if len(digest) <= 6:
        return digest
    return f"{digest[:3]}...{digest[-3:]}"
