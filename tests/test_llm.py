"""Tests for the LLM provider adapters."""

from unittest.mock import MagicMock

import pytest
import requests

from codehealth_cli.config import LLMSettings
from codehealth_cli.llm import (
    AnthropicProvider,
    LLMClient,
    OllamaProvider,
    OpenAIProvider,
    extract_json,
)


@pytest.fixture
def fake_post(monkeypatch):
    def _install(payload=None, error=None):
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        post = MagicMock(side_effect=error) if error else MagicMock(return_value=response)
        monkeypatch.setattr("codehealth_cli.llm.requests.post", post)
        return post

    return _install


def test_client_selects_provider():
    assert isinstance(LLMClient(LLMSettings(provider="anthropic", api_key="k")).provider, AnthropicProvider)
    assert isinstance(LLMClient(LLMSettings(provider="openai", model="gpt-4o", api_key="k")).provider, OpenAIProvider)
    assert isinstance(LLMClient(LLMSettings(provider="ollama", model="m")).provider, OllamaProvider)
    assert isinstance(LLMClient(LLMSettings(provider="mystery", api_key="k")).provider, AnthropicProvider)


def test_client_enabled_requires_key_for_cloud_providers():
    assert not LLMClient(LLMSettings(provider="anthropic")).enabled
    assert LLMClient(LLMSettings(provider="anthropic", api_key="k")).enabled
    assert LLMClient(LLMSettings(provider="ollama")).enabled


def test_anthropic_generate(fake_post):
    post = fake_post({"content": [{"type": "text", "text": "hello"}]})
    provider = AnthropicProvider("claude-sonnet-4-20250514", "secret")

    assert provider.generate("hi", max_tokens=1500, system="be brief") == "hello"

    _args, kwargs = post.call_args
    assert kwargs["headers"]["x-api-key"] == "secret"
    assert kwargs["json"]["max_tokens"] == 1500
    assert kwargs["json"]["system"] == "be brief"
    assert kwargs["json"]["messages"] == [{"role": "user", "content": "hi"}]


def test_anthropic_without_key_does_not_call_api(fake_post):
    post = fake_post({})
    assert AnthropicProvider("m", "").generate("hi") is None
    post.assert_not_called()


def test_openai_generate_with_system_message(fake_post):
    post = fake_post({"choices": [{"message": {"content": "ok"}}]})
    assert OpenAIProvider("gpt-4o", "k").generate("q", system="sys") == "ok"
    messages = post.call_args[1]["json"]["messages"]
    assert messages[0] == {"role": "system", "content": "sys"}


def test_ollama_generate(fake_post):
    fake_post({"response": "local answer"})
    assert OllamaProvider("qwen2.5-coder:7b").generate("q") == "local answer"


def test_transport_error_returns_none(fake_post):
    fake_post(error=requests.ConnectionError("down"))
    assert AnthropicProvider("m", "k").generate("hi") is None


def test_unexpected_shape_returns_none(fake_post):
    fake_post({"unexpected": True})
    assert OpenAIProvider("m", "k").generate("hi") is None


def test_extract_json():
    assert extract_json('prefix {"a": 1} suffix') == {"a": 1}
    assert extract_json("noise [1, 2] noise", array=True) == [1, 2]
    assert extract_json("{broken") is None
    assert extract_json(None) is None
