"""Tests for configuration loading."""

from pathlib import Path

from codehealth_cli.config import DEFAULT_TEST_MARKERS, load_config_file, load_settings


def _write_config(temp_dir: Path, text: str) -> Path:
    path = temp_dir / "config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config_file(temp_dir: Path):
    settings = load_settings(config_path=temp_dir / "nope.toml", env={})

    assert settings.repo_path == Path.cwd()
    assert settings.llm.provider == "anthropic"
    assert settings.llm.model == "claude-sonnet-4-20250514"
    assert not settings.llm.enabled
    assert not settings.gitlab.enabled
    assert settings.analysis.test_markers == DEFAULT_TEST_MARKERS
    assert settings.analysis.confidence == 0.9
    assert settings.analysis.workers == 1


def test_config_file_sections(temp_dir: Path):
    path = _write_config(temp_dir, """
[llm]
provider = "openai"
model = "gpt-4o-mini"
api_key = "file-key"

[gitlab]
url = "https://gitlab.internal"
token = "file-token"
project_id = "12"

[analysis]
test_markers = [".test.", "__tests__/"]
confidence = 0.75
workers = 4
""")
    settings = load_settings(config_path=path, env={})

    assert settings.llm.provider == "openai"
    assert settings.llm.model == "gpt-4o-mini"
    assert settings.llm.endpoint == "https://api.openai.com/v1/chat/completions"
    assert settings.llm.enabled
    assert settings.gitlab.url == "https://gitlab.internal"
    assert settings.gitlab.enabled
    assert settings.analysis.test_markers == (".test.", "__tests__/")
    assert settings.analysis.confidence == 0.75
    assert settings.analysis.workers == 4


def test_environment_overrides_file(temp_dir: Path):
    path = _write_config(temp_dir, '[gitlab]\ntoken = "file-token"\nproject_id = "1"\n')
    env = {
        "ANTHROPIC_API_KEY": "env-key",
        "GITLAB_TOKEN": "env-token",
        "GITLAB_PROJECT_ID": "99",
        "REPO_PATH": str(temp_dir),
    }
    settings = load_settings(config_path=path, env=env)

    assert settings.llm.api_key == "env-key"
    assert settings.gitlab.token == "env-token"
    assert settings.gitlab.project_id == "99"
    assert settings.repo_path == temp_dir


def test_invalid_analysis_values_are_clamped(temp_dir: Path):
    path = _write_config(temp_dir, '[analysis]\nconfidence = 3.5\nworkers = -2\n')
    settings = load_settings(config_path=path, env={})
    assert settings.analysis.confidence == 1.0
    assert settings.analysis.workers == 1


def test_malformed_config_file_is_ignored(temp_dir: Path):
    path = _write_config(temp_dir, "[llm\nprovider = ")
    assert load_config_file(path) == {}
