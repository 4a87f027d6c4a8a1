"""Pytest configuration and fixtures for CodeHealth CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator
from unittest.mock import MagicMock

import pytest

from codehealth_cli.config import AnalysisSettings, GitLabSettings, LLMSettings, Settings

ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "GITLAB_TOKEN",
    "GITLAB_PROJECT_ID",
    "GITLAB_URL",
    "REPO_PATH",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Keep tests away from the network, npm and the user's config.

    LLMClient.generate() would post to a real provider and ``npm outdated``
    would hit the registry. Both are replaced with instant no-ops; tests
    that exercise them patch them again explicitly.
    """
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("codehealth_cli.config.CONFIG_FILE", tmp_path / "missing-config.toml")
    monkeypatch.setattr("codehealth_cli.llm.LLMClient.generate", lambda self, prompt, **kwargs: None)

    def _no_npm(*args, **kwargs):
        raise FileNotFoundError("npm")

    monkeypatch.setattr("codehealth_cli.dependency_analyzer.subprocess.run", _no_npm)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_repo_path() -> Path:
    """Get path to the sample TypeScript / JavaScript repository."""
    return Path(__file__).parent / "fixtures" / "sample_repo"


@pytest.fixture
def sample_repo_copy(temp_dir: Path, sample_repo_path: Path) -> Path:
    """A writable copy of the sample repository."""
    target = temp_dir / "sample_repo"
    shutil.copytree(sample_repo_path, target)
    return target


@pytest.fixture
def write_repo(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative path: source}`` into a fresh repository and return its root."""

    def _write(files: Dict[str, str]) -> Path:
        root = temp_dir / "repo"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _write


@pytest.fixture
def offline_settings(sample_repo_copy: Path) -> Settings:
    """Settings pointing at the sample repository with no LLM and no GitLab."""
    return Settings(
        repo_path=sample_repo_copy,
        llm=LLMSettings(provider="anthropic", api_key=""),
        gitlab=GitLabSettings(),
        analysis=AnalysisSettings(),
    )


@pytest.fixture
def mock_llm() -> MagicMock:
    """An enabled LLM client whose responses tests configure."""
    llm = MagicMock()
    llm.enabled = True
    llm.generate.return_value = None
    return llm
