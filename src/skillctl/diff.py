"""Run the configured external diff between a global and a target skill."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from .errors import ExecutionError
from .validators import validate_skill_id

if TYPE_CHECKING:
    from .config_schema import SkillctlConfig, TargetConfig

logger = logging.getLogger(__name__)


def build_diff_command(
    config: SkillctlConfig, target: TargetConfig, skill: str
) -> list[str]:
    """Substitute ``{left}`` (global) and ``{right}`` (target) into the
    configured diff command."""
    left = str(config.global_root / skill)
    right = str(target.root / skill)
    return [
        arg.replace("{left}", left).replace("{right}", right)
        for arg in config.diff.command
    ]


def run_diff(
    config: SkillctlConfig, target: TargetConfig, skill: str
) -> int:
    """Run the diff command for *skill*; output goes to the terminal.

    Diff tools exit 1 when they find differences, so 0 and 1 both count as
    success.

    Returns:
        The command's exit status (0 or 1).

    Raises:
        ConfigurationError: If *skill* is not a valid skill id.
        ExecutionError: If either side is missing, the command cannot be
            started, or it exits with a status other than 0 or 1.
    """
    validate_skill_id(skill)
    left = config.global_root / skill
    right = target.root / skill
    if not left.is_dir() or not right.is_dir():
        raise ExecutionError(
            f"Diff paths do not exist: {skill}",
            hint="Run push or import first, then diff again.",
        )

    args = build_diff_command(config, target, skill)
    logger.debug("Running diff: %s", args)
    try:
        result = subprocess.run(args, check=False)
    except OSError as exc:
        raise ExecutionError(
            f"Failed to start diff command: {args[0]}",
            hint=exc.strerror or str(exc),
        ) from exc

    if result.returncode not in (0, 1):
        raise ExecutionError(
            f"Diff command failed with exit code {result.returncode}",
            hint="Check diff.command in the config file.",
        )
    return result.returncode
