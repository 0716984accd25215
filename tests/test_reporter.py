"""Tests for sync plan and status formatting."""

from __future__ import annotations

import json
from pathlib import Path

from skillctl.sync.models import (
    Digest,
    Direction,
    ExecutionReport,
    HashAlgo,
    Plan,
    PlanOp,
    StatusRow,
    StatusState,
)
from skillctl.sync.reporter import (
    plan_to_json,
    render_status_table,
    status_to_json,
    summarize_plan,
)

G = Path("/g")
T = Path("/t")


def _plan() -> Plan:
    return Plan(
        direction=Direction.PUSH,
        ops=[
            PlanOp.install("a", G / "a", T / "a"),
            PlanOp.skip("b", note="diff"),
            PlanOp.prune("c", T / "c"),
            PlanOp.skip("d"),
        ],
    )


def _digest(hexdigest: str) -> Digest:
    return Digest(algo=HashAlgo.SHA256, hexdigest=hexdigest)


# ---------------------------------------------------------------------------
# Plan summary
# ---------------------------------------------------------------------------


class TestSummarizePlan:
    """Tests for summarize_plan()."""

    def test_one_line_per_op(self):
        assert summarize_plan(_plan()) == [
            "install a",
            "skip b (diff)",
            "prune c",
            "skip d",
        ]

    def test_empty_plan(self):
        assert summarize_plan(Plan(direction=Direction.IMPORT)) == []

    def test_counts(self):
        assert _plan().counts() == "1 install, 0 update, 1 prune, 2 skip"


# ---------------------------------------------------------------------------
# Status table
# ---------------------------------------------------------------------------


class TestRenderStatusTable:
    """Tests for render_status_table()."""

    def test_aligned_columns(self):
        rows = [
            StatusRow(
                skill="alpha",
                state=StatusState.SAME,
                global_digest=_digest("abcdef123456"),
                target_digest=_digest("abcdef123456"),
            ),
            StatusRow(
                skill="b",
                state=StatusState.MISSING,
                global_digest=_digest("0123456789"),
            ),
        ]

        out = render_status_table(rows)

        assert out.endswith("\n")
        lines = out.splitlines()
        assert lines[0] == "SKILL  STATE    GLOBAL_DIGEST  TARGET_DIGEST"
        assert lines[1] == "alpha  same     abc...456      abc...456"
        assert lines[2] == "b      missing  012...789      -"

    def test_header_only_when_empty(self):
        assert render_status_table([]) == (
            "SKILL  STATE  GLOBAL_DIGEST  TARGET_DIGEST\n"
        )


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class TestJsonOutput:
    """Tests for plan_to_json() and status_to_json()."""

    def test_plan_to_json(self):
        data = plan_to_json(_plan())

        assert data["direction"] == "push"
        assert data["counts"] == {
            "install": 1,
            "update": 0,
            "prune": 1,
            "skip": 2,
        }
        assert data["ops"][0] == {
            "kind": "install",
            "skill": "a",
            "src": str(G / "a"),
            "dest": str(T / "a"),
        }
        assert data["ops"][1] == {"kind": "skip", "skill": "b", "note": "diff"}
        assert "dry_run" not in data
        json.dumps(data)

    def test_plan_to_json_with_report(self):
        plan = _plan()
        report = ExecutionReport(
            direction=plan.direction,
            dry_run=True,
            applied=[plan.ops[0], plan.ops[2]],
        )

        data = plan_to_json(plan, report)

        assert data["dry_run"] is True
        assert data["applied"] == ["a", "c"]
        assert "error" not in data

    def test_plan_to_json_with_partial_report_and_error(self):
        plan = _plan()
        partial = ExecutionReport(
            direction=plan.direction, dry_run=False, applied=[plan.ops[0]]
        )

        data = plan_to_json(plan, partial, error="Failed to remove: /t/c")

        assert data["applied"] == ["a"]
        assert data["error"] == "Failed to remove: /t/c"
        assert len(data["ops"]) == 4
        json.dumps(data)

    def test_status_to_json(self):
        rows = [
            StatusRow(
                skill="x",
                state=StatusState.EXTRA,
                target_digest=_digest("ff00"),
            )
        ]

        data = status_to_json("claude", rows)

        assert data == {
            "target": "claude",
            "skills": [
                {
                    "skill": "x",
                    "state": "extra",
                    "global_digest": None,
                    "target_digest": "ff00",
                    "algo": "sha256",
                }
            ],
        }
