"""Plan executor: apply a reconciliation plan to the filesystem.

Install and update replace the destination directory via a sibling
temporary directory:

1. ``mkdtemp`` next to the destination (same parent, same filesystem).
2. Copy the source tree into it; anything other than regular files and
   directories fails the copy.  Every copied directory, the temporary root
   included, takes its source directory's permission bits; ``mkdtemp``
   alone would leave the root at 0700.
3. Remove the existing destination, if any.
4. Rename the temporary directory onto the destination.

Readers see either the complete old tree or the complete new tree.  The
scheme is remove-then-rename, not an atomic swap: a crash between steps 3
and 4 leaves the destination absent.  Re-running the same push or import
re-plans from the filesystem and converges.

The first failing operation stops the run with a ``PlanExecutionError``
whose ``report`` lists the operations applied before it.  Those are not
rolled back.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from skillctl.errors import ExecutionError, wrap_os_error
from skillctl.sync.models import ExecutionReport, Plan, PlanKind, PlanOp

logger = logging.getLogger(__name__)


class PlanExecutionError(ExecutionError):
    """An operation failed partway through a plan.

    Carries the failing operation's message and hint, plus ``report``: the
    operations applied before the failure.
    """

    def __init__(self, cause: ExecutionError, report: ExecutionReport) -> None:
        super().__init__(cause.message, hint=cause.hint)
        self.report = report


# ------------------------------------------------------------------
# Tree copy / replace
# ------------------------------------------------------------------


def copy_tree(src: Path, dest: Path) -> None:
    """Recursively copy the regular files and directories of *src* into *dest*.

    Directory permission bits are copied along with file contents.

    Raises:
        ExecutionError: On a symlink or special file, or any I/O failure.
    """
    try:
        dest.mkdir(parents=True, exist_ok=True)
        entries = list(os.scandir(src))
    except OSError as exc:
        raise wrap_os_error(f"Failed to copy directory: {src}", exc) from exc

    for entry in entries:
        src_path = Path(entry.path)
        dest_path = dest / entry.name
        try:
            if entry.is_symlink():
                raise ExecutionError(
                    f"Unsupported file type: {src_path}",
                    hint="Include only regular files and directories.",
                )
            if entry.is_dir(follow_symlinks=False):
                copy_tree(src_path, dest_path)
            elif entry.is_file(follow_symlinks=False):
                shutil.copy(src_path, dest_path)
            else:
                raise ExecutionError(
                    f"Unsupported file type: {src_path}",
                    hint="Include only regular files and directories.",
                )
        except OSError as exc:
            raise wrap_os_error(
                f"Failed to copy file: {src_path} -> {dest_path}", exc
            ) from exc

    # Applied last so a read-only source directory can still be filled.
    try:
        shutil.copymode(src, dest)
    except OSError as exc:
        raise wrap_os_error(
            f"Failed to copy permissions: {src} -> {dest}", exc
        ) from exc


def replace_dir(src: Path, dest: Path) -> None:
    """Replace *dest* with a copy of *src* via a sibling temporary directory."""
    parent = dest.parent
    try:
        tmp = Path(
            tempfile.mkdtemp(prefix=f".{dest.name}.skillctl-", dir=parent)
        )
    except OSError as exc:
        raise wrap_os_error(
            f"Failed to create temporary directory in: {parent}", exc
        ) from exc

    try:
        copy_tree(src, tmp)
        if dest.exists():
            try:
                shutil.rmtree(dest)
            except OSError as exc:
                raise wrap_os_error(
                    f"Failed to remove existing directory: {dest}", exc
                ) from exc
        try:
            os.rename(tmp, dest)
        except OSError as exc:
            raise wrap_os_error(
                f"Failed to replace directory: {dest}", exc
            ) from exc
    except BaseException:
        # Clean up temp dir on any failure.
        shutil.rmtree(tmp, ignore_errors=True)
        raise


def remove_dir(dest: Path) -> None:
    """Recursively remove *dest*."""
    try:
        shutil.rmtree(dest)
    except OSError as exc:
        raise wrap_os_error(f"Failed to remove: {dest}", exc) from exc


# ------------------------------------------------------------------
# Plan execution
# ------------------------------------------------------------------


def _required(op: PlanOp, field: str) -> Path:
    value = getattr(op, field)
    if value is None:
        raise ExecutionError(
            f"{field} is not set for {op.kind.value} {op.skill}",
            hint="This is a bug in skillctl; please report it.",
        )
    return value


def _apply(op: PlanOp, dry_run: bool, prefix: str) -> bool:
    """Apply one operation.  Returns ``False`` for skips."""
    if op.kind in (PlanKind.INSTALL, PlanKind.UPDATE):
        src = _required(op, "src")
        dest = _required(op, "dest")
        logger.info("%s%s %s: %s -> %s", prefix, op.kind.value, op.skill, src, dest)
        if not dry_run:
            replace_dir(src, dest)
        return True
    if op.kind == PlanKind.PRUNE:
        dest = _required(op, "dest")
        logger.info("%sprune %s: %s", prefix, op.skill, dest)
        if not dry_run:
            remove_dir(dest)
        return True
    return False


def execute_plan(plan: Plan, dry_run: bool = False) -> ExecutionReport:
    """Apply *plan*, or only validate it when *dry_run* is set.

    Args:
        plan: Plan produced by ``plan_push`` or ``plan_import``.
        dry_run: If ``True``, nothing is created, removed, or renamed.

    Returns:
        ``ExecutionReport`` listing the non-skip operations applied (or that
        would have been applied).

    Raises:
        PlanExecutionError: On the first failing operation, with the
            operations applied before it.
    """
    prefix = "[dry-run] " if dry_run else ""
    applied: list[PlanOp] = []

    for op in plan.ops:
        try:
            if _apply(op, dry_run, prefix):
                applied.append(op)
        except ExecutionError as exc:
            logger.info(
                "%s %s failed after %d applied operation(s)",
                op.kind.value, op.skill, len(applied),
            )
            partial = ExecutionReport(
                direction=plan.direction, dry_run=dry_run, applied=list(applied)
            )
            raise PlanExecutionError(exc, partial) from exc

    return ExecutionReport(
        direction=plan.direction, dry_run=dry_run, applied=applied
    )
