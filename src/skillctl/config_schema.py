"""Configuration schema for skillctl.

Defines Pydantic models for the config structure: the global root, the named
targets, digest settings, and the external diff command.

Usage:
    from skillctl.config_loader import load_raw_config
    from skillctl.config_schema import build_config

    config = build_config(load_raw_config())
    target = config.target_by_name("claude")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigurationError
from .sync.digest import compile_ignore_patterns
from .sync.models import HashAlgo

logger = logging.getLogger(__name__)

DEFAULT_DIFF_COMMAND = ["git", "diff", "--no-index", "--", "{left}", "{right}"]


def expand_path(value: str | Path) -> Path:
    """Expand ``~`` and ``$VAR`` in *value* and make it absolute."""
    expanded = os.path.expandvars(os.path.expanduser(str(value)))
    return Path(expanded).absolute()


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class TargetConfig(BaseModel):
    """A named deployment root."""

    name: str = Field(description="Unique target name")
    root: Path = Field(description="Target skill root")

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("target name is empty")
        return value

    @field_validator("root", mode="before")
    @classmethod
    def _expand_root(cls, value: str | Path) -> Path:
        return expand_path(value)


class HashConfig(BaseModel):
    """Digest settings.

    Attributes:
        algo: ``blake3`` (default) or ``sha256``.
        ignore: Glob patterns for files excluded from digests.
    """

    algo: HashAlgo = Field(default=HashAlgo.BLAKE3, description="Digest algorithm")
    ignore: list[str] = Field(
        default_factory=list, description="Ignored file globs"
    )

    model_config = {"frozen": True}

    @field_validator("ignore")
    @classmethod
    def _patterns_compile(cls, value: list[str]) -> list[str]:
        try:
            compile_ignore_patterns(value)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc
        return value


class DiffConfig(BaseModel):
    """External diff command.

    ``{left}`` is replaced with the global skill path and ``{right}`` with
    the target skill path.
    """

    command: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DIFF_COMMAND),
        description="Diff command and arguments",
    )

    model_config = {"frozen": True}

    @field_validator("command")
    @classmethod
    def _has_placeholders(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("diff.command is empty")
        has_left = any("{left}" in arg for arg in value)
        has_right = any("{right}" in arg for arg in value)
        if not (has_left and has_right):
            raise ValueError(
                "diff.command must include {left} and {right}"
            )
        return value


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class SkillctlConfig(BaseModel):
    """Top-level skillctl configuration."""

    global_root: Path
    targets: list[TargetConfig]
    hash: HashConfig = Field(default_factory=HashConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)

    model_config = {"frozen": True}

    @field_validator("global_root", mode="before")
    @classmethod
    def _expand_global_root(cls, value: str | Path) -> Path:
        return expand_path(value)

    @model_validator(mode="after")
    def _targets_unique(self) -> SkillctlConfig:
        if not self.targets:
            raise ValueError("targets is empty")
        seen: set[str] = set()
        for target in self.targets:
            if target.name in seen:
                raise ValueError(
                    f"targets.name is duplicated: {target.name}"
                )
            seen.add(target.name)
        return self

    def target_by_name(self, name: str) -> TargetConfig:
        """Return the target called *name*.

        Raises:
            ConfigurationError: If no target has that name.
        """
        for target in self.targets:
            if target.name == name:
                return target
        raise ConfigurationError(
            f"Target not found: {name}",
            hint="Run `skillctl targets` to see available names.",
        )


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "config"
        msg = err["msg"].removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}")
    return "; ".join(parts)


def build_config(raw_data: dict) -> SkillctlConfig:
    """Construct a ``SkillctlConfig`` from the raw dict returned by
    ``load_raw_config()``.

    Args:
        raw_data: Parsed configuration dictionary.

    Returns:
        Validated ``SkillctlConfig`` instance.

    Raises:
        ConfigurationError: If the data does not satisfy the schema.
    """
    try:
        return SkillctlConfig(**(raw_data or {}))
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid configuration: {_format_validation_error(exc)}",
            hint="Fix the config file and retry.",
        ) from exc
