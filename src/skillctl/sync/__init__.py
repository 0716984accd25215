"""Skill directory sync engine.

Public API for reconciling the global skill root with one target root.

Architecture
------------
The engine is stateless: every invocation lists both roots, digests the
skills it needs to compare, builds a plan, and applies it.  Nothing is
cached between runs, so re-running after any failure re-derives the state
from the filesystem and converges.

Modules:

- ``digest``    -- ``digest_dir``: content fingerprint of a tree.
- ``inventory`` -- ``list_skills``: immediate sub-directories of a root.
- ``planner``   -- ``plan_push`` / ``plan_import``: build a ``Plan``.
- ``executor``  -- ``execute_plan``: apply a plan with atomic replace.
- ``status``    -- ``status_for_target``: four-state comparison rows.
- ``models``    -- ``Digest``, ``PlanOp``, ``Plan``, ``StatusRow`` and enums.
- ``reporter``  -- Human-readable and JSON formatting.

Usage example
-------------
::

    from skillctl.config_loader import load_raw_config
    from skillctl.config_schema import build_config
    from skillctl.sync import Selection, execute_plan, plan_push, summarize_plan

    config = build_config(load_raw_config())
    target = config.target_by_name("claude")

    plan = plan_push(config, target, Selection.all(), prune=False)
    for line in summarize_plan(plan):
        print(line)

    execute_plan(plan, dry_run=False)
"""

from .digest import IgnoreSet, compile_ignore_patterns, digest_dir, short_digest
from .executor import PlanExecutionError, execute_plan
from .inventory import list_skills
from .models import (
    Digest,
    Direction,
    ExecutionReport,
    HashAlgo,
    Plan,
    PlanKind,
    PlanOp,
    Selection,
    StatusRow,
    StatusState,
)
from .planner import ReconciliationPlanner, plan_import, plan_push
from .reporter import (
    plan_to_json,
    render_status_table,
    status_to_json,
    summarize_plan,
)
from .status import status_for_target

__all__ = [
    "Digest",
    "Direction",
    "ExecutionReport",
    "HashAlgo",
    "IgnoreSet",
    "Plan",
    "PlanKind",
    "PlanExecutionError",
    "PlanOp",
    "ReconciliationPlanner",
    "Selection",
    "StatusRow",
    "StatusState",
    "compile_ignore_patterns",
    "digest_dir",
    "execute_plan",
    "list_skills",
    "plan_import",
    "plan_push",
    "plan_to_json",
    "render_status_table",
    "short_digest",
    "status_for_target",
    "status_to_json",
    "summarize_plan",
]
