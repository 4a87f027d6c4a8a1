"""Multi-provider LLM adapter supporting Anthropic, OpenAI, and Ollama."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from .config import DEFAULT_LLM_CONFIGS, LLMSettings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class LLMProvider:
    """Base class for LLM providers."""

    def generate(self, prompt: str, max_tokens: int = 1024, system: Optional[str] = None) -> Optional[str]:
        """Generate a response from the LLM. Returns ``None`` on any transport error."""
        raise NotImplementedError

    def _post(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            response = requests.post(url, headers=headers, json=payload, timeout=DEFAULT_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("LLM request to %s failed: %s", url, exc)
            return None


class AnthropicProvider(LLMProvider):
    """Anthropic Claude API provider."""

    def __init__(self, model: str, api_key: str, endpoint: str = DEFAULT_LLM_CONFIGS["anthropic"]["endpoint"]):
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint

    def generate(self, prompt: str, max_tokens: int = 1024, system: Optional[str] = None) -> Optional[str]:
        if not self.api_key:
            return None

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }
        if system:
            payload["system"] = system

        parsed = self._post(
            self.endpoint,
            {
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
            },
            payload,
        )
        if parsed is None:
            return None
        try:
            return parsed["content"][0]["text"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected Anthropic response shape")
            return None


class OpenAIProvider(LLMProvider):
    """OpenAI API provider (also works with other OpenAI-compatible APIs)."""

    def __init__(self, model: str, api_key: str, endpoint: str = DEFAULT_LLM_CONFIGS["openai"]["endpoint"]):
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint

    def generate(self, prompt: str, max_tokens: int = 1024, system: Optional[str] = None) -> Optional[str]:
        if not self.api_key:
            return None

        messages: List[Dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        parsed = self._post(
            self.endpoint,
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            {
                "model": self.model,
                "messages": messages,
                "temperature": 0.1,
                "max_tokens": max_tokens,
            },
        )
        if parsed is None:
            return None
        try:
            return parsed["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected OpenAI response shape")
            return None


class OllamaProvider(LLMProvider):
    """Ollama local LLM provider."""

    def __init__(self, model: str, endpoint: str = DEFAULT_LLM_CONFIGS["ollama"]["endpoint"]):
        self.model = model
        self.endpoint = endpoint

    def generate(self, prompt: str, max_tokens: int = 1024, system: Optional[str] = None) -> Optional[str]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": 0.1, "num_predict": max_tokens},
        }
        if system:
            payload["system"] = system

        parsed = self._post(self.endpoint, {"Content-Type": "application/json"}, payload)
        if parsed is None:
            return None
        return parsed.get("response")


class LLMClient:
    """Configured LLM provider behind a single ``generate`` call."""

    def __init__(self, settings: Optional[LLMSettings] = None):
        self.settings = settings or LLMSettings()
        self.provider = self._create_provider()

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def _create_provider(self) -> LLMProvider:
        """Create the appropriate provider based on configuration."""
        name = self.settings.provider.lower()
        defaults = DEFAULT_LLM_CONFIGS.get(name, DEFAULT_LLM_CONFIGS["anthropic"])
        endpoint = self.settings.endpoint or defaults["endpoint"]

        if name == "openai":
            return OpenAIProvider(self.settings.model, self.settings.api_key, endpoint)
        if name == "ollama":
            return OllamaProvider(self.settings.model, endpoint)
        if name != "anthropic":
            logger.warning("Unknown LLM provider %r, falling back to anthropic", self.settings.provider)
        return AnthropicProvider(self.settings.model, self.settings.api_key, endpoint)

    def generate(self, prompt: str, max_tokens: int = 1024, system: Optional[str] = None) -> Optional[str]:
        return self.provider.generate(prompt, max_tokens=max_tokens, system=system)


_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def extract_json(text: Optional[str], array: bool = False) -> Any:
    """Pull the first JSON object (or array) out of a model response.

    Returns ``None`` when the text holds nothing parseable.
    """
    if not text:
        return None
    match = (_JSON_ARRAY if array else _JSON_OBJECT).search(text)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.debug("Model response is not valid JSON: %.200s", text)
        return None
