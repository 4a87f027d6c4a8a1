"""Configuration for CodeHealth: TOML file under the home directory plus environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import toml

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("CODEHEALTH_HOME", str(Path.home() / ".codehealth"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

DEFAULT_TEST_MARKERS: Tuple[str, ...] = (".test.", ".spec.")
DEFAULT_CONFIDENCE = 0.9

# Default configurations for each LLM provider
DEFAULT_LLM_CONFIGS: Dict[str, Dict[str, str]] = {
    "anthropic": {
        "provider": "anthropic",
        "model": "claude-sonnet-4-20250514",
        "endpoint": "https://api.anthropic.com/v1/messages",
    },
    "openai": {
        "provider": "openai",
        "model": "gpt-4o",
        "endpoint": "https://api.openai.com/v1/chat/completions",
    },
    "ollama": {
        "provider": "ollama",
        "model": "qwen2.5-coder:7b",
        "endpoint": "http://127.0.0.1:11434/api/generate",
    },
}


@dataclass
class LLMSettings:
    provider: str = "anthropic"
    model: str = DEFAULT_LLM_CONFIGS["anthropic"]["model"]
    api_key: str = ""
    endpoint: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) or self.provider == "ollama"


@dataclass
class GitLabSettings:
    url: str = "https://gitlab.com"
    token: str = ""
    project_id: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.project_id)


@dataclass
class AnalysisSettings:
    test_markers: Tuple[str, ...] = DEFAULT_TEST_MARKERS
    confidence: float = DEFAULT_CONFIDENCE
    workers: int = 1


@dataclass
class Settings:
    repo_path: Path = field(default_factory=Path.cwd)
    llm: LLMSettings = field(default_factory=LLMSettings)
    gitlab: GitLabSettings = field(default_factory=GitLabSettings)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)


def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    Returns an empty dict when the file is missing or cannot be parsed.
    """
    config_path = path or CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read config file %s: %s", config_path, exc)
        return {}


def _llm_settings(section: Dict[str, Any], env: Dict[str, str]) -> LLMSettings:
    provider = str(section.get("provider", "anthropic"))
    defaults = DEFAULT_LLM_CONFIGS.get(provider, DEFAULT_LLM_CONFIGS["anthropic"])
    api_key = str(section.get("api_key", ""))
    if provider == "anthropic" and env.get("ANTHROPIC_API_KEY"):
        api_key = env["ANTHROPIC_API_KEY"]
    elif provider == "openai" and env.get("OPENAI_API_KEY"):
        api_key = env["OPENAI_API_KEY"]
    return LLMSettings(
        provider=provider,
        model=str(section.get("model", defaults["model"])),
        api_key=api_key,
        endpoint=str(section.get("endpoint", defaults["endpoint"])),
    )


def _gitlab_settings(section: Dict[str, Any], env: Dict[str, str]) -> GitLabSettings:
    return GitLabSettings(
        url=env.get("GITLAB_URL") or str(section.get("url", "https://gitlab.com")),
        token=env.get("GITLAB_TOKEN") or str(section.get("token", "")),
        project_id=env.get("GITLAB_PROJECT_ID") or str(section.get("project_id", "")),
    )


def _analysis_settings(section: Dict[str, Any]) -> AnalysisSettings:
    markers = section.get("test_markers") or DEFAULT_TEST_MARKERS
    try:
        confidence = float(section.get("confidence", DEFAULT_CONFIDENCE))
    except (TypeError, ValueError):
        logger.warning("Invalid analysis.confidence %r, using %s", section.get("confidence"), DEFAULT_CONFIDENCE)
        confidence = DEFAULT_CONFIDENCE
    try:
        workers = max(1, int(section.get("workers", 1)))
    except (TypeError, ValueError):
        workers = 1
    return AnalysisSettings(
        test_markers=tuple(str(m) for m in markers),
        confidence=min(max(confidence, 0.0), 1.0),
        workers=workers,
    )


def load_settings(
    config_path: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
) -> Settings:
    """Build :class:`Settings` from the TOML file, then apply environment overrides."""
    env = dict(os.environ) if env is None else env
    config = load_config_file(config_path)
    repo = env.get("REPO_PATH")
    return Settings(
        repo_path=Path(repo).expanduser() if repo else Path.cwd(),
        llm=_llm_settings(config.get("llm", {}), env),
        gitlab=_gitlab_settings(config.get("gitlab", {}), env),
        analysis=_analysis_settings(config.get("analysis", {})),
    )
