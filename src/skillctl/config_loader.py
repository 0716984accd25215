"""
Configuration file loader for skillctl.

Provides convention-based config file discovery, YAML !include support and
env var interpolation.

Usage:
    from skillctl.config_loader import load_raw_config
    from skillctl.config_schema import build_config

    config = build_config(load_raw_config())
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "SKILLCTL_CONFIG"

# ---------------------------------------------------------------------------
# 1. ${VAR} expansion in config values
# ---------------------------------------------------------------------------

# ${NAME} or ${NAME:-fallback}; an unterminated "${" is not a reference.
_ENV_REF = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str, key: str = "") -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` references in *value*.

    An empty variable counts as unset, so ``${NAME:-fallback}`` covers both.
    A bare ``${NAME}`` that is unset is an error rather than an empty
    string: ``${SKILLS}/global`` must not silently become ``/global``.

    Args:
        value: A string value from the config file.
        key: Dotted location of *value* (``targets[0].root``), for errors.

    Raises:
        ConfigurationError: If a reference without a fallback is unset.
    """

    def _expand(ref: re.Match) -> str:
        name, fallback = ref.group(1), ref.group(2)
        current = os.environ.get(name)
        if current:
            return current
        if fallback is not None:
            return fallback
        where = f" (in {key})" if key else ""
        raise ConfigurationError(
            f"Environment variable {name} is not set{where}",
            hint=f"Export {name} or give a fallback: ${{{name}:-default}}.",
        )

    return _ENV_REF.sub(_expand, value)


def _interpolate_config(node: Any, key: str = "") -> Any:
    """Expand env references in every string of a loaded config tree."""
    if isinstance(node, str):
        return interpolate_env_vars(node, key)
    if isinstance(node, dict):
        return {
            name: _interpolate_config(child, f"{key}.{name}" if key else str(name))
            for name, child in node.items()
        }
    if isinstance(node, list):
        return [
            _interpolate_config(child, f"{key}[{index}]")
            for index, child in enumerate(node)
        ]
    return node


# ---------------------------------------------------------------------------
# 2. !include (splitting targets or hash settings into their own files)
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """``SafeLoader`` that also understands ``!include other.yml``.

    Registered on this subclass only; plain ``yaml.safe_load`` still rejects
    the tag.  ``include_chain`` holds the files being loaded, outermost
    first.
    """

    include_chain: tuple[Path, ...] = ()


def _include_site(loader: ConfigLoader, node: yaml.Node) -> str:
    return f"line {node.start_mark.line + 1} of {Path(loader.name).name}"


def _include_constructor(loader: ConfigLoader, node: yaml.Node) -> Any:
    """Load the file named by an ``!include`` tag in place of the node."""
    site = _include_site(loader, node)
    including = Path(loader.name).resolve()
    if not isinstance(node, yaml.ScalarNode):
        raise ConfigurationError(
            f"!include takes a single file path ({site})",
            hint=f"Write `!include file.yml` in {including}.",
        )

    target = (including.parent / loader.construct_scalar(node)).resolve()
    if target in loader.include_chain:
        chain = " -> ".join(p.name for p in (*loader.include_chain, target))
        raise ConfigurationError(
            f"Circular include: {chain} ({site})",
            hint="Remove one of the !include tags that form the cycle.",
        )
    if not target.is_file():
        raise ConfigurationError(
            f"Included file not found: {target} ({site})",
            hint=f"Fix the !include path in {including}; relative paths "
            "are resolved from that file's directory.",
        )

    logger.debug("Including %s (%s)", target, site)
    return _load_yaml_with_includes(
        target, _include_chain=(*loader.include_chain, target)
    )


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path, *, _include_chain: tuple[Path, ...] | None = None
) -> Any:
    """Parse *path* with ``ConfigLoader``, following ``!include`` tags."""
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader.include_chain = _include_chain or (path,)
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# 3. Convention-based file discovery
# ---------------------------------------------------------------------------


def default_config_path() -> Path:
    """Return ``$XDG_CONFIG_HOME/skillctl/config.yml``.

    Falls back to ``~/.config`` when ``XDG_CONFIG_HOME`` is unset or empty.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "skillctl" / "config.yml"


def resolve_config_path(explicit: str | Path | None = None) -> Path:
    """Return the config file path that should be used.

    Search order:
        1. *explicit* (``--config`` CLI option).
        2. ``SKILLCTL_CONFIG`` env var.
        3. ``$XDG_CONFIG_HOME/skillctl/config.yml`` (or ``~/.config/...``).
        4. The same directory with a ``config.yaml`` name.

    Explicit and env var paths are returned even when missing so the caller
    can report exactly which file was expected.  For the conventional
    location the ``.yml`` path is returned when neither file exists.
    """
    if explicit:
        return Path(explicit).expanduser()

    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(os.path.expandvars(env_path)).expanduser()

    default = default_config_path()
    alternate = default.with_suffix(".yaml")
    if not default.exists() and alternate.exists():
        return alternate
    return default


# ---------------------------------------------------------------------------
# 3a. Config bootstrapping
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# skillctl configuration
#
# global_root is the canonical skill repository; every target receives
# skills with `skillctl push` and can contribute them back with
# `skillctl import`.  Paths may use ~ and ${VAR}.

global_root: ~/skills

targets:
  - name: claude
    root: ~/.claude/skills
#  - name: codex
#    root: ~/.codex/skills

# hash:
#   algo: blake3            # or sha256
#   ignore:
#     - "**/.DS_Store"
#     - "**/*.tmp"
#
# diff:
#   command: ["git", "diff", "--no-index", "--", "{left}", "{right}"]
"""


def write_starter_config(path: Path) -> Path:
    """Write a starter config file at *path*, creating parent directories.

    Raises:
        ConfigurationError: If *path* already exists.
    """
    if path.exists():
        raise ConfigurationError(
            f"Config file already exists: {path}",
            hint="Edit the existing file instead.",
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path


# ---------------------------------------------------------------------------
# 4. Loading
# ---------------------------------------------------------------------------


def load_raw_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load the config file as a dict, with includes and interpolation.

    Args:
        path: Explicit config path; see ``resolve_config_path`` for the
            search order when omitted.

    Returns:
        The parsed mapping, with env vars interpolated in every string.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not valid
            YAML, or its root is not a mapping.
    """
    config_path = resolve_config_path(path)
    logger.debug("Loading config: %s", config_path)

    try:
        data = _load_yaml_with_includes(config_path)
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Config file not found: {config_path}",
            hint=f"Create {config_path} (e.g. `skillctl init`) and retry.",
        ) from exc
    except PermissionError as exc:
        raise ConfigurationError(
            f"Cannot read config file: {config_path}",
            hint="Check file permissions.",
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Failed to read config file: {config_path}",
            hint=exc.strerror or str(exc),
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Failed to parse config file: {config_path}",
            hint=str(exc),
        ) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {config_path} has non-mapping root "
            f"({type(data).__name__})",
            hint="The top level must be a mapping with global_root and targets.",
        )

    return _interpolate_config(data)
