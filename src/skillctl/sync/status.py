"""Read-only comparison of the global root with one target."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from skillctl.sync.digest import compile_ignore_patterns, digest_dir
from skillctl.sync.inventory import ensure_root_dir, list_skills
from skillctl.sync.models import StatusRow, StatusState

if TYPE_CHECKING:
    from skillctl.config_schema import SkillctlConfig, TargetConfig

logger = logging.getLogger(__name__)


def status_for_target(
    config: SkillctlConfig, target: TargetConfig
) -> list[StatusRow]:
    """Compare every skill in global and *target*.

    Returns one row per skill in the union of both inventories, sorted by
    skill id:

    - ``missing`` -- only in global.
    - ``extra``   -- only in the target.
    - ``same``    -- in both, digests equal.
    - ``diff``    -- in both, digests differ.

    Raises:
        ConfigurationError: If either root is not a directory.
        ExecutionError: On a symlink, special file, or read failure.
    """
    global_root = Path(config.global_root)
    target_root = Path(target.root)
    ensure_root_dir(global_root)
    ensure_root_dir(target_root)

    skills = sorted(
        set(list_skills(global_root)) | set(list_skills(target_root))
    )

    algo = config.hash.algo
    ignore = compile_ignore_patterns(config.hash.ignore)
    rows: list[StatusRow] = []
    for skill in skills:
        global_path = global_root / skill
        target_path = target_root / skill
        global_digest = (
            digest_dir(global_path, algo, ignore)
            if global_path.is_dir()
            else None
        )
        target_digest = (
            digest_dir(target_path, algo, ignore)
            if target_path.is_dir()
            else None
        )

        if global_digest is not None and target_digest is not None:
            state = (
                StatusState.SAME
                if global_digest == target_digest
                else StatusState.DIFF
            )
        elif global_digest is not None:
            state = StatusState.MISSING
        elif target_digest is not None:
            state = StatusState.EXTRA
        else:
            continue

        rows.append(
            StatusRow(
                skill=skill,
                state=state,
                global_digest=global_digest,
                target_digest=target_digest,
            )
        )

    logger.debug(
        "Status for target '%s': %d skills", target.name, len(rows)
    )
    return rows
