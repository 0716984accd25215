"""Reconciliation planner: decide what a push or import must do.

Candidates and classification per direction (source/dest bound by
direction -- push: global -> target, import: target -> global):

======  ======  =======  ===============================================
source  dest    equal    operation
======  ======  =======  ===============================================
yes     no      --       install
yes     yes     yes      skip
yes     yes     no       update (push; import only with ``overwrite``),
                         otherwise ``skip (diff)``
no      yes     --       push + prune: prune; push: ``skip (extra)``
no      no      --       omitted
======  ======  =======  ===============================================

Import only considers skills present in the target, so global-only skills
never appear in an import plan and the global root is never pruned.

Planning is all-or-nothing: any digest failure aborts and no plan is
returned.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from skillctl.errors import ExecutionError
from skillctl.sync.digest import IgnoreSet, compile_ignore_patterns, digest_dir
from skillctl.sync.inventory import list_skills
from skillctl.sync.models import Direction, Plan, PlanOp, Selection
from skillctl.validators import validate_skill_id

if TYPE_CHECKING:
    from skillctl.config_schema import SkillctlConfig, TargetConfig

logger = logging.getLogger(__name__)


class ReconciliationPlanner:
    """Build plans between the global root and one target.

    Args:
        config: Validated skillctl configuration.
        target: The target to reconcile against.
    """

    def __init__(
        self, config: SkillctlConfig, target: TargetConfig
    ) -> None:
        self.config = config
        self.target = target
        self.global_root = Path(config.global_root)
        self.target_root = Path(target.root)

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def plan(
        self,
        selection: Selection,
        direction: Direction,
        *,
        prune: bool = False,
        overwrite: bool = False,
    ) -> Plan:
        """Build a plan for *selection* in *direction*.

        Args:
            selection: Every skill, or one skill id.
            direction: Push or import.
            prune: Push only -- remove target skills absent from global.
            overwrite: Import only -- replace differing global skills.

        Returns:
            A ``Plan`` sorted by skill id.

        Raises:
            ConfigurationError: Invalid skill id or missing root.
            ExecutionError: Selected skill absent, or a digest failure.
        """
        if direction == Direction.PUSH and overwrite:
            raise ValueError("overwrite applies to import only")
        if direction == Direction.IMPORT and prune:
            raise ValueError("prune applies to push only")

        if not selection.is_all:
            validate_skill_id(selection.skill)

        global_skills = list_skills(self.global_root)
        target_skills = list_skills(self.target_root)

        candidates = self._candidates(
            selection, direction, global_skills, target_skills, prune
        )

        ignore = compile_ignore_patterns(self.config.hash.ignore)
        ops: list[PlanOp] = []
        for skill in sorted(candidates):
            op = self._classify(skill, direction, ignore, prune, overwrite)
            if op is not None:
                logger.debug("Planned %s %s", op.kind.value, skill)
                ops.append(op)

        plan = Plan(direction=direction, ops=ops)
        logger.info(
            "%s plan for target '%s': %s",
            direction.value,
            self.target.name,
            plan.counts(),
        )
        return plan

    # ------------------------------------------------------------------
    # Candidate selection
    # ------------------------------------------------------------------

    def _candidates(
        self,
        selection: Selection,
        direction: Direction,
        global_skills: list[str],
        target_skills: list[str],
        prune: bool,
    ) -> set[str]:
        if selection.is_all:
            if direction == Direction.IMPORT:
                return set(target_skills)
            candidates = set(global_skills)
            if prune:
                candidates.update(target_skills)
            return candidates

        skill = selection.skill
        if direction == Direction.PUSH:
            in_global = skill in global_skills
            in_target = skill in target_skills
            if not in_global and not (prune and in_target):
                raise ExecutionError(
                    f"Skill not found in global: {skill}",
                    hint="Run `skillctl list --global` to see available skills.",
                )
        elif skill not in target_skills:
            raise ExecutionError(
                f"Skill not found in target '{self.target.name}': {skill}",
                hint=(
                    f"Run `skillctl list --target {self.target.name}` "
                    "to see available skills."
                ),
            )
        return {skill}

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def _classify(
        self,
        skill: str,
        direction: Direction,
        ignore: IgnoreSet,
        prune: bool,
        overwrite: bool,
    ) -> PlanOp | None:
        global_path = self.global_root / skill
        target_path = self.target_root / skill
        if direction == Direction.PUSH:
            src, dest = global_path, target_path
        else:
            src, dest = target_path, global_path

        src_exists = src.is_dir()
        dest_exists = dest.is_dir()

        if src_exists and not dest_exists:
            return PlanOp.install(skill, src, dest)

        if src_exists and dest_exists:
            algo = self.config.hash.algo
            if digest_dir(src, algo, ignore) == digest_dir(dest, algo, ignore):
                return PlanOp.skip(skill)
            if direction == Direction.PUSH or overwrite:
                return PlanOp.update(skill, src, dest)
            return PlanOp.skip(skill, note="diff")

        if dest_exists:
            # Only push reaches here: import candidates all exist in target.
            if prune:
                return PlanOp.prune(skill, dest)
            return PlanOp.skip(skill, note="extra")

        return None


def plan_push(
    config: SkillctlConfig,
    target: TargetConfig,
    selection: Selection,
    prune: bool = False,
) -> Plan:
    """Plan copying skills from the global root to *target*."""
    return ReconciliationPlanner(config, target).plan(
        selection, Direction.PUSH, prune=prune
    )


def plan_import(
    config: SkillctlConfig,
    target: TargetConfig,
    selection: Selection,
    overwrite: bool = False,
) -> Plan:
    """Plan copying skills from *target* into the global root."""
    return ReconciliationPlanner(config, target).plan(
        selection, Direction.IMPORT, overwrite=overwrite
    )
