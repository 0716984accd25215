"""Plan and status formatting functions.

Provides human-readable and machine-readable output for sync operations:

- ``summarize_plan`` -- one line per operation (``install my-skill``).
- ``render_status_table`` -- aligned ``status`` table.
- ``plan_to_json`` / ``status_to_json`` -- structured dicts for ``--json``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ExecutionReport, Plan, StatusRow

from .digest import short_digest

# ------------------------------------------------------------------
# Plan summary
# ------------------------------------------------------------------


def summarize_plan(plan: Plan) -> list[str]:
    """Return one ``"<kind> <skill> [(note)]"`` line per operation."""
    lines: list[str] = []
    for op in plan.ops:
        line = f"{op.kind.value} {op.skill}"
        if op.note:
            line += f" ({op.note})"
        lines.append(line)
    return lines


# ------------------------------------------------------------------
# Status table
# ------------------------------------------------------------------

_STATUS_HEADER = ("SKILL", "STATE", "GLOBAL_DIGEST", "TARGET_DIGEST")


def _short_or_dash(digest) -> str:
    return short_digest(str(digest)) if digest is not None else "-"


def render_status_table(rows: list[StatusRow]) -> str:
    """Render *rows* as a column-aligned table ending with a newline.

    Digests are abbreviated with ``short_digest``; an absent side shows
    ``-``.
    """
    table: list[tuple[str, ...]] = [_STATUS_HEADER]
    for row in rows:
        table.append(
            (
                row.skill,
                row.state.value,
                _short_or_dash(row.global_digest),
                _short_or_dash(row.target_digest),
            )
        )

    widths = [
        max(len(line[col]) for line in table)
        for col in range(len(_STATUS_HEADER) - 1)
    ]
    out: list[str] = []
    for line in table:
        cells = [
            cell.ljust(width + 2) for cell, width in zip(line, widths)
        ]
        cells.append(line[-1])
        out.append("".join(cells))
    return "\n".join(out) + "\n"


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def plan_to_json(
    plan: Plan,
    report: ExecutionReport | None = None,
    error: str | None = None,
) -> dict:
    """Convert a plan (and its execution report) to a JSON-ready dict.

    Args:
        plan: The plan.
        report: Execution outcome, when the plan was executed.  After a
            failure this is the partial report.
        error: Message of the operation that stopped execution, if any.

    Returns:
        Dict with direction, counts, and per-operation details.
    """
    ops_list = []
    for op in plan.ops:
        entry: dict = {"kind": op.kind.value, "skill": op.skill}
        if op.src is not None:
            entry["src"] = str(op.src)
        if op.dest is not None:
            entry["dest"] = str(op.dest)
        if op.note:
            entry["note"] = op.note
        ops_list.append(entry)

    result: dict = {
        "direction": plan.direction.value,
        "counts": {
            "install": len(plan.installs),
            "update": len(plan.updates),
            "prune": len(plan.prunes),
            "skip": len(plan.skips),
        },
        "ops": ops_list,
    }
    if report is not None:
        result["dry_run"] = report.dry_run
        result["applied"] = [op.skill for op in report.applied]
    if error is not None:
        result["error"] = error
    return result


def _digest_or_none(digest) -> str | None:
    return str(digest) if digest is not None else None


def status_to_json(target_name: str, rows: list[StatusRow]) -> dict:
    """Convert status rows for one target to a JSON-ready dict."""
    skills = []
    for row in rows:
        present = (
            row.global_digest
            if row.global_digest is not None
            else row.target_digest
        )
        skills.append(
            {
                "skill": row.skill,
                "state": row.state.value,
                "global_digest": _digest_or_none(row.global_digest),
                "target_digest": _digest_or_none(row.target_digest),
                "algo": present.algo.value if present is not None else None,
            }
        )
    return {"target": target_name, "skills": skills}
