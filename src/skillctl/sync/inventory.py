"""Skill inventory: the immediate sub-directories of a root.

Directory names are the skill identity.  A symlink at the top level fails
the whole listing, since every listed name must denote a real directory that
later stages may replace or delete.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from skillctl.errors import ConfigurationError, ExecutionError, wrap_os_error

logger = logging.getLogger(__name__)


def ensure_root_dir(root: Path) -> None:
    """Raise ``ConfigurationError`` unless *root* is an existing directory."""
    if not Path(root).is_dir():
        raise ConfigurationError(
            f"Root does not exist: {root}",
            hint="Check the paths in the config file.",
        )


def list_skills(root: Path) -> list[str]:
    """List the skill ids directly under *root*, sorted.

    Regular files at the top level are not skills and are ignored.

    Args:
        root: Global or target root directory.

    Returns:
        Sorted list of directory names.

    Raises:
        ConfigurationError: If *root* is not a directory or cannot be read.
        ExecutionError: If any top-level entry is a symlink.
    """
    ensure_root_dir(root)
    skills: list[str] = []
    try:
        entries = list(os.scandir(root))
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read directory: {root}",
            hint=exc.strerror or str(exc),
        ) from exc

    for entry in entries:
        try:
            if entry.is_symlink():
                raise ExecutionError(
                    f"Symlinks are not supported: {entry.path}",
                    hint="Place a regular directory there instead.",
                )
            if entry.is_dir(follow_symlinks=False):
                skills.append(entry.name)
        except OSError as exc:
            raise wrap_os_error(
                f"Cannot read directory: {root}", exc
            ) from exc

    skills.sort()
    logger.debug("Listed %d skills in %s", len(skills), root)
    return skills
