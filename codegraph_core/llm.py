"""Enrichment providers for Ollama, Groq, OpenAI-compatible APIs, Anthropic and Gemini.

Every provider implements ``generate(prompt) -> Optional[str]`` and returns
``None`` instead of raising on transport or decoding problems; the
enrichment controller treats ``None`` as a transport failure.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .config import LLMConfig

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 60.0

# Used as the system prompt (or prompt preamble) for enrichment requests
SYSTEM_PROMPT = """You are a senior software architect analysing a code base.
You receive a project summary, the file list, per-file structural summaries
and the import relationships resolved so far.

Return STRICT VALID JSON only, with this shape:
{
  "summary": "string",
  "patterns": [{"type": "string", "name": "string", "line": number,
                "description": "string", "severity": "info" | "warning" | "error"}],
  "recommendations": ["string"],
  "complexityScore": number,
  "qualityScore": number between 0 and 100,
  "complexityFactors": ["string"],
  "architecture": {"type": "string", "patterns": ["string"], "issues": ["string"]},
  "graphOverlay": {
    "nodes": [{"id": "<exact path from the file list>", "label": "string"}],
    "edges": [{"source": "<exact path>", "target": "<exact path>",
               "kind": "import" | "dependency_injection" | "implements" | "extends"
                       | "calls" | "references",
               "weight": number}]
  }
}
Every node id and edge endpoint MUST be an exact path from the file list."""


class LLMProvider:
    """Base class for LLM providers."""

    name = "base"

    def __init__(self, model: str, endpoint: str = "", api_key: str = "",
                 timeout: float = DEFAULT_REQUEST_TIMEOUT, max_tokens: int = 4096,
                 temperature: float = 0.1):
        self.model = model
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate(self, prompt: str) -> Optional[str]:
        """Generate a response from the LLM."""
        raise NotImplementedError

    def _post(self, url: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Optional[Dict[str, Any]]:
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            logger.warning("%s request failed: %s", self.name, exc)
        except ValueError as exc:
            logger.warning("%s returned a non-JSON body: %s", self.name, exc)
        return None


class OllamaProvider(LLMProvider):
    """Ollama local LLM provider."""

    name = "ollama"

    def generate(self, prompt: str) -> Optional[str]:
        parsed = self._post(
            self.endpoint,
            {
                "model": self.model,
                "prompt": f"{SYSTEM_PROMPT}\n\n{prompt}",
                "stream": False,
                "options": {"temperature": self.temperature},
            },
            {"Content-Type": "application/json"},
        )
        if parsed is None:
            return None
        return parsed.get("response")


class OpenAIProvider(LLMProvider):
    """OpenAI API provider (also works with OpenRouter and other OpenAI-compatible APIs)."""

    name = "openai"

    def generate(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            logger.warning("%s provider has no API key configured", self.name)
            return None
        parsed = self._post(
            self.endpoint,
            {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "temperature": self.temperature,
                "max_tokens": self.max_tokens,
            },
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
        )
        if parsed is None:
            return None
        return self._extract_response(parsed)

    @staticmethod
    def _extract_response(parsed: Dict[str, Any]) -> Optional[str]:
        """Extract response text, handling reasoning models that return empty content."""
        try:
            msg = parsed["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected chat completion response shape")
            return None
        content = msg.get("content") or ""
        if content.strip():
            return content
        reasoning = msg.get("reasoning") or ""
        if reasoning.strip():
            return reasoning
        return content or None


class GroqProvider(OpenAIProvider):
    """Groq cloud API provider."""

    name = "groq"


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter API provider (OpenAI-compatible, multi-model gateway)."""

    name = "openrouter"


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API provider."""

    name = "anthropic"

    def generate(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            logger.warning("%s provider has no API key configured", self.name)
            return None
        parsed = self._post(
            self.endpoint,
            {
                "model": self.model,
                "system": SYSTEM_PROMPT,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
            {
                "Content-Type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
            },
        )
        if parsed is None:
            return None
        try:
            return parsed["content"][0]["text"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected %s response shape", self.name)
            return None


class GeminiProvider(LLMProvider):
    """Google Gemini API provider."""

    name = "gemini"

    def generate(self, prompt: str) -> Optional[str]:
        if not self.api_key:
            logger.warning("%s provider has no API key configured", self.name)
            return None
        url = f"{self.endpoint.rstrip('/')}/{self.model}:generateContent?key={self.api_key}"
        parsed = self._post(
            url,
            {
                "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": self.temperature,
                    "maxOutputTokens": self.max_tokens,
                },
            },
            {"Content-Type": "application/json"},
        )
        if parsed is None:
            return None
        try:
            return parsed["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Unexpected %s response shape", self.name)
            return None


PROVIDERS = {
    "ollama": OllamaProvider,
    "openai": OpenAIProvider,
    "groq": GroqProvider,
    "openrouter": OpenRouterProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


def create_provider(config: LLMConfig, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> LLMProvider:
    """Create the provider named by ``config.provider`` (unknown names fall back to Ollama)."""
    provider_cls = PROVIDERS.get(config.provider)
    if provider_cls is None:
        logger.warning("Unknown LLM provider '%s'; using ollama", config.provider)
        config = LLMConfig(provider="ollama")
        provider_cls = OllamaProvider
    return provider_cls(
        model=config.model,
        endpoint=config.endpoint,
        api_key=config.api_key,
        timeout=timeout,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
    )
