"""Structural checks for a skill root.

``doctor_root`` collects problems instead of raising on the first one, so a
single run reports everything that would make ``push``/``import`` fail:

- skill ids that are not plain directory names,
- a missing ``SKILL.md``, or one that is a symlink or not a regular file,
- symlinks or special files anywhere inside a skill.

I/O failures while inspecting still raise ``ExecutionError``.
"""

from __future__ import annotations

import logging
import os
import stat
from collections import defaultdict
from pathlib import Path

from pydantic import BaseModel

from .errors import wrap_os_error
from .sync.inventory import list_skills
from .validators import check_skill_id

logger = logging.getLogger(__name__)

SKILL_MANIFEST = "SKILL.md"


class DoctorIssue(BaseModel):
    """One problem found in one skill."""

    skill: str
    message: str

    model_config = {"frozen": True}


class DoctorReport(BaseModel):
    """Result of checking a root.

    Attributes:
        root: The checked root.
        skills: Skill ids found.
        issues: Problems found, in skill order.
    """

    root: Path
    skills: list[str] = []
    issues: list[DoctorIssue] = []

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return not self.issues


def _check_manifest(skill_root: Path, skill: str) -> list[DoctorIssue]:
    manifest = skill_root / SKILL_MANIFEST
    try:
        st = manifest.lstat()
    except FileNotFoundError:
        return [DoctorIssue(skill=skill, message=f"{SKILL_MANIFEST} is missing")]
    except OSError as exc:
        raise wrap_os_error(f"Failed to inspect {manifest}", exc) from exc

    if stat.S_ISLNK(st.st_mode):
        return [DoctorIssue(skill=skill, message=f"{SKILL_MANIFEST} is a symlink")]
    if not stat.S_ISREG(st.st_mode):
        return [
            DoctorIssue(
                skill=skill,
                message=f"{SKILL_MANIFEST} is not a regular file",
            )
        ]
    return []


def _check_contents(skill_root: Path, skill: str) -> list[DoctorIssue]:
    issues: list[DoctorIssue] = []
    stack: list[tuple[Path, str]] = [(skill_root, "")]
    while stack:
        directory, prefix = stack.pop()
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            raise wrap_os_error(
                f"Failed to scan skill: {directory}", exc
            ) from exc
        for entry in entries:
            rel = f"{prefix}{entry.name}"
            if rel == SKILL_MANIFEST:
                continue
            try:
                if entry.is_symlink():
                    issues.append(
                        DoctorIssue(
                            skill=skill,
                            message=f"Symlinks are not supported: {rel}",
                        )
                    )
                elif entry.is_dir(follow_symlinks=False):
                    stack.append((Path(entry.path), f"{rel}/"))
                elif not entry.is_file(follow_symlinks=False):
                    issues.append(
                        DoctorIssue(
                            skill=skill,
                            message=f"Unsupported file type: {rel}",
                        )
                    )
            except OSError as exc:
                raise wrap_os_error(
                    f"Failed to inspect entry: {entry.path}", exc
                ) from exc
    return issues


def doctor_root(root: Path) -> DoctorReport:
    """Check every skill under *root*.

    Raises:
        ConfigurationError: If *root* is not a directory.
        ExecutionError: If a top-level entry is a symlink or I/O fails.
    """
    root = Path(root)
    skills = list_skills(root)
    issues: list[DoctorIssue] = []
    for skill in skills:
        is_valid, reason = check_skill_id(skill)
        if not is_valid:
            issues.append(DoctorIssue(skill=skill, message=reason))
        skill_root = root / skill
        issues.extend(_check_manifest(skill_root, skill))
        issues.extend(_check_contents(skill_root, skill))

    logger.info(
        "Doctor checked %d skills in %s: %d issues",
        len(skills),
        root,
        len(issues),
    )
    return DoctorReport(root=root, skills=skills, issues=issues)


def group_issues_by_skill(
    issues: list[DoctorIssue],
) -> dict[str, list[DoctorIssue]]:
    """Group *issues* by skill id, sorted by skill id."""
    grouped: dict[str, list[DoctorIssue]] = defaultdict(list)
    for issue in issues:
        grouped[issue.skill].append(issue)
    return dict(sorted(grouped.items()))


def format_doctor_report(report: DoctorReport) -> str:
    """Format a doctor report as human-readable text."""
    lines = [
        f"Root: {report.root}",
        f"Skills: {len(report.skills)}",
        f"Issues: {len(report.issues)}",
    ]
    for skill, issues in group_issues_by_skill(report.issues).items():
        lines.append("")
        lines.append(f"{skill}:")
        for issue in issues:
            lines.append(f"  - {issue.message}")
    return "\n".join(lines)
