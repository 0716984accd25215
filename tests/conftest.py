"""Shared pytest fixtures for skillctl tests."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

from skillctl.config_schema import SkillctlConfig, build_config

load_dotenv()


@pytest.fixture
def write_skill():
    """Helper creating ``root/skill`` from a ``{relative path: text}`` dict."""

    def _write(root: Path, skill: str, files: dict[str, str]) -> Path:
        skill_dir = root / skill
        skill_dir.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = skill_dir / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return skill_dir

    return _write


@pytest.fixture(autouse=True)
def _isolate_config_env(monkeypatch):
    """Keep a developer's SKILLCTL_CONFIG and LOG_LEVEL out of the tests."""
    monkeypatch.delenv("SKILLCTL_CONFIG", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture
def global_root(tmp_path: Path) -> Path:
    root = tmp_path / "global"
    root.mkdir()
    return root


@pytest.fixture
def target_root(tmp_path: Path) -> Path:
    root = tmp_path / "target"
    root.mkdir()
    return root


@pytest.fixture
def make_config(global_root: Path, target_root: Path):
    """Factory fixture building a ``SkillctlConfig`` for the tmp roots."""

    def _make(**overrides) -> SkillctlConfig:
        raw = {
            "global_root": str(global_root),
            "targets": [{"name": "claude", "root": str(target_root)}],
        }
        raw.update(overrides)
        return build_config(raw)

    return _make


@pytest.fixture
def config(make_config) -> SkillctlConfig:
    return make_config()


@pytest.fixture
def target(config):
    return config.target_by_name("claude")
