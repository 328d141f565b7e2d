"""Pipeline and provider configuration, optionally loaded from a TOML file.

Example ``config.toml``::

    [pipeline]
    max_cycles = 20            # -1 disables the cap
    enrichment_timeout = 60.0
    context_char_limit = 20000
    max_workers = 8
    skip_dirs = ["node_modules", ".git"]

    [llm]
    provider = "ollama"
    model = "qwen2.5-coder:7b"
    endpoint = "http://127.0.0.1:11434/api/generate"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union

import toml

logger = logging.getLogger(__name__)

SKIP_DIRS: Set[str] = {
    ".venv", "venv", "__pycache__", "node_modules", ".git",
    "site-packages", ".tox", ".pytest_cache", "build", "dist",
    ".mypy_cache", ".ruff_cache", "htmlcov", ".eggs", ".idea",
    ".vscode", "target", "vendor", ".gradle", ".next",
}

# Default settings for each provider
DEFAULT_PROVIDER_CONFIGS: Dict[str, Dict[str, str]] = {
    "ollama": {
        "model": "qwen2.5-coder:7b",
        "endpoint": "http://127.0.0.1:11434/api/generate",
    },
    "groq": {
        "model": "llama-3.3-70b-versatile",
        "endpoint": "https://api.groq.com/openai/v1/chat/completions",
    },
    "openai": {
        "model": "gpt-4o-mini",
        "endpoint": "https://api.openai.com/v1/chat/completions",
    },
    "openrouter": {
        "model": "google/gemini-2.0-flash-exp:free",
        "endpoint": "https://openrouter.ai/api/v1/chat/completions",
    },
    "anthropic": {
        "model": "claude-3-5-sonnet-20241022",
        "endpoint": "https://api.anthropic.com/v1/messages",
    },
    "gemini": {
        "model": "gemini-2.0-flash",
        "endpoint": "https://generativelanguage.googleapis.com/v1beta/models",
    },
}


@dataclass
class LLMConfig:
    provider: str = "ollama"
    model: str = ""
    api_key: str = ""
    endpoint: str = ""
    max_tokens: int = 4096
    temperature: float = 0.1

    def __post_init__(self) -> None:
        self.provider = (self.provider or "ollama").lower()
        defaults = DEFAULT_PROVIDER_CONFIGS.get(self.provider, {})
        self.model = self.model or defaults.get("model", "")
        self.endpoint = self.endpoint or defaults.get("endpoint", "")


@dataclass
class PipelineConfig:
    """Tunables of one :class:`~codegraph_core.pipeline.CodeGraphPipeline`."""

    max_cycles: Optional[int] = 20
    enrichment_timeout: float = 60.0
    context_char_limit: int = 20000
    max_workers: Optional[int] = None
    skip_dirs: Set[str] = field(default_factory=lambda: set(SKIP_DIRS))
    llm: LLMConfig = field(default_factory=LLMConfig)

    def __post_init__(self) -> None:
        if self.max_cycles is not None and self.max_cycles < 0:
            self.max_cycles = None
        if self.enrichment_timeout <= 0:
            raise ValueError("enrichment_timeout must be positive")
        if self.context_char_limit <= 0:
            raise ValueError("context_char_limit must be positive")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")


_PIPELINE_TYPES = {
    "max_cycles": int,
    "enrichment_timeout": (int, float),
    "context_char_limit": int,
    "max_workers": int,
    "skip_dirs": list,
}


def _pipeline_kwargs(table: Dict[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for key, value in table.items():
        expected = _PIPELINE_TYPES.get(key)
        if expected is None:
            logger.warning("Ignoring unknown [pipeline] setting '%s'", key)
            continue
        if isinstance(value, bool) or not isinstance(value, expected):
            logger.warning("Ignoring [pipeline] %s: unexpected value %r", key, value)
            continue
        kwargs[key] = set(value) if key == "skip_dirs" else value
    return kwargs


def _llm_kwargs(table: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(LLMConfig)}
    return {k: v for k, v in table.items() if k in names}


def load_config(path: Optional[Union[str, Path]] = None) -> PipelineConfig:
    """Load a :class:`PipelineConfig` from *path*.

    A missing file, unreadable TOML or invalid values give the defaults
    (bad individual keys are skipped with a warning).
    """
    if path is None:
        return PipelineConfig()
    path = Path(path)
    if not path.exists():
        logger.debug("Config file %s not found; using defaults", path)
        return PipelineConfig()

    try:
        data = toml.load(path)
    except (toml.TomlDecodeError, OSError) as exc:
        logger.warning("Could not read config %s: %s", path, exc)
        return PipelineConfig()

    pipeline_table = data.get("pipeline", {})
    llm_table = data.get("llm", {})
    try:
        llm = LLMConfig(**_llm_kwargs(llm_table if isinstance(llm_table, dict) else {}))
        return PipelineConfig(llm=llm, **_pipeline_kwargs(pipeline_table if isinstance(pipeline_table, dict) else {}))
    except (TypeError, ValueError) as exc:
        logger.warning("Invalid configuration in %s: %s", path, exc)
        return PipelineConfig()


def save_config(config: PipelineConfig, path: Union[str, Path]) -> bool:
    """Write *config* as TOML; returns False when the file cannot be written."""
    path = Path(path)
    pipeline: Dict[str, Any] = {
        "max_cycles": -1 if config.max_cycles is None else config.max_cycles,
        "enrichment_timeout": config.enrichment_timeout,
        "context_char_limit": config.context_char_limit,
        "skip_dirs": sorted(config.skip_dirs),
    }
    if config.max_workers is not None:
        pipeline["max_workers"] = config.max_workers
    llm = {
        "provider": config.llm.provider,
        "model": config.llm.model,
        "endpoint": config.llm.endpoint,
    }
    if config.llm.api_key:
        llm["api_key"] = config.llm.api_key
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            toml.dump({"pipeline": pipeline, "llm": llm}, f)
        return True
    except OSError as exc:
        logger.warning("Could not write config %s: %s", path, exc)
        return False
