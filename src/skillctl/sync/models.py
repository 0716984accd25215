"""Pydantic models for the skill sync engine.

Defines the core data contracts used across all sync modules:

- ``HashAlgo``: Digest algorithm selector.
- ``Digest``: Content fingerprint tagged with its algorithm.
- ``Direction``: Push (global -> target) or import (target -> global).
- ``Selection``: Every skill or one named skill.
- ``PlanKind`` / ``PlanOp`` / ``Plan``: Reconciliation operations.
- ``StatusState`` / ``StatusRow``: Per-skill comparison for ``status``.
- ``ExecutionReport``: What an executed (or dry-run) plan touched.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, model_validator


class HashAlgo(str, Enum):
    """Supported digest algorithms."""

    BLAKE3 = "blake3"
    SHA256 = "sha256"


class Digest(BaseModel):
    """Content fingerprint of a directory tree.

    Two digests are only comparable when produced with the same algorithm
    (and the same ignore set); equality checks both fields.

    Attributes:
        algo: Algorithm used to produce the digest.
        hexdigest: Lowercase hex string.
    """

    algo: HashAlgo
    hexdigest: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return self.hexdigest


class Direction(str, Enum):
    """Synchronization direction."""

    PUSH = "push"
    IMPORT = "import"


class Selection(BaseModel):
    """Which skills a plan covers.

    ``skill is None`` means every skill.
    """

    skill: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def all(cls) -> Selection:
        return cls()

    @classmethod
    def one(cls, skill: str) -> Selection:
        return cls(skill=skill)

    @property
    def is_all(self) -> bool:
        return self.skill is None


class PlanKind(str, Enum):
    """Possible reconciliation operations for one skill."""

    INSTALL = "install"
    UPDATE = "update"
    SKIP = "skip"
    PRUNE = "prune"


class PlanOp(BaseModel):
    """One planned operation.

    The fields a kind carries are fixed: install/update copy ``src`` onto
    ``dest``, prune removes ``dest``, skip touches nothing.

    Attributes:
        kind: Operation kind.
        skill: Skill id (directory name).
        src: Source skill directory (install/update only).
        dest: Destination skill directory (install/update/prune).
        note: Short reason shown next to skip operations.
    """

    kind: PlanKind
    skill: str
    src: Path | None = None
    dest: Path | None = None
    note: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_kind_fields(self) -> PlanOp:
        if self.kind in (PlanKind.INSTALL, PlanKind.UPDATE):
            if self.src is None or self.dest is None:
                raise ValueError(
                    f"{self.kind.value} requires both src and dest"
                )
        elif self.kind == PlanKind.PRUNE:
            if self.dest is None or self.src is not None:
                raise ValueError("prune requires dest and no src")
        elif self.src is not None or self.dest is not None:
            raise ValueError("skip carries no paths")
        return self

    @classmethod
    def install(cls, skill: str, src: Path, dest: Path) -> PlanOp:
        return cls(kind=PlanKind.INSTALL, skill=skill, src=src, dest=dest)

    @classmethod
    def update(cls, skill: str, src: Path, dest: Path) -> PlanOp:
        return cls(kind=PlanKind.UPDATE, skill=skill, src=src, dest=dest)

    @classmethod
    def skip(cls, skill: str, note: str | None = None) -> PlanOp:
        return cls(kind=PlanKind.SKIP, skill=skill, note=note)

    @classmethod
    def prune(cls, skill: str, dest: Path) -> PlanOp:
        return cls(kind=PlanKind.PRUNE, skill=skill, dest=dest)


class Plan(BaseModel):
    """Ordered reconciliation operations for one direction.

    Attributes:
        direction: Direction the plan was built for.
        ops: Operations sorted by ascending skill id.
    """

    direction: Direction
    ops: list[PlanOp] = []

    model_config = {"frozen": True}

    def _of_kind(self, kind: PlanKind) -> list[PlanOp]:
        return [op for op in self.ops if op.kind == kind]

    @property
    def installs(self) -> list[PlanOp]:
        """Operations where kind is INSTALL."""
        return self._of_kind(PlanKind.INSTALL)

    @property
    def updates(self) -> list[PlanOp]:
        """Operations where kind is UPDATE."""
        return self._of_kind(PlanKind.UPDATE)

    @property
    def skips(self) -> list[PlanOp]:
        """Operations where kind is SKIP."""
        return self._of_kind(PlanKind.SKIP)

    @property
    def prunes(self) -> list[PlanOp]:
        """Operations where kind is PRUNE."""
        return self._of_kind(PlanKind.PRUNE)

    @property
    def is_noop(self) -> bool:
        """True when every operation is a skip."""
        return all(op.kind == PlanKind.SKIP for op in self.ops)

    def counts(self) -> str:
        """One-line count summary, e.g. ``1 install, 0 update, ...``."""
        return (
            f"{len(self.installs)} install, "
            f"{len(self.updates)} update, "
            f"{len(self.prunes)} prune, "
            f"{len(self.skips)} skip"
        )


class StatusState(str, Enum):
    """Comparison state of one skill between global and a target."""

    MISSING = "missing"
    SAME = "same"
    DIFF = "diff"
    EXTRA = "extra"


class StatusRow(BaseModel):
    """One row of the ``status`` table.

    Attributes:
        skill: Skill id.
        state: Comparison state.
        global_digest: Digest of the global copy, if present.
        target_digest: Digest of the target copy, if present.
    """

    skill: str
    state: StatusState
    global_digest: Digest | None = None
    target_digest: Digest | None = None

    model_config = {"frozen": True}


class ExecutionReport(BaseModel):
    """Outcome of executing a plan.

    Attributes:
        direction: Direction of the executed plan.
        dry_run: Whether this was a dry-run (no changes applied).
        applied: Non-skip operations applied (or that would be applied).
    """

    direction: Direction
    dry_run: bool = False
    applied: list[PlanOp] = []

    model_config = {"frozen": True}
