from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Optional
import logging
import os

import yaml

Provider = Literal["openai", "openrouter", "deepseek", "oai_compatible"]

_DEFAULT_CONFIG_PATH = Path("configs/llm.yaml")
_DEFAULT_MODEL = "gpt-4o"
_logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    provider: Provider = "openai"
    model: str = _DEFAULT_MODEL

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    # Number of candidate completions requested per call.
    n: int = 1

    api_key_env: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None

    default_headers: Dict[str, str] = field(default_factory=dict)

    timeout_s: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LLMConfig":
        if not isinstance(data, dict):
            return cls()
        default_headers = data.get("default_headers") or {}
        provider = _to_str_or_none(data.get("provider"))
        if provider:
            provider = provider.lower()
        return cls(
            provider=provider or None,  # type: ignore[arg-type]
            model=_to_str_or_none(data.get("model")) or "",
            temperature=_to_float(data.get("temperature")),
            max_tokens=_to_int(data.get("max_tokens")),
            n=_to_int(data.get("n")) or 1,
            api_key_env=_to_str_or_none(data.get("api_key_env")),
            api_key=_to_str_or_none(data.get("api_key")),
            base_url=_to_str_or_none(data.get("base_url")),
            default_headers=dict(default_headers) if isinstance(default_headers, dict) else {},
            timeout_s=_to_float(data.get("timeout_s")),
        )

    @classmethod
    def from_env(cls) -> "LLMConfig":
        cfg = cls(provider=None, model="")  # type: ignore[arg-type]
        cfg.apply_env_fallbacks()
        return cfg

    @classmethod
    def from_env_or_file(cls, path: Optional[str] = None) -> "LLMConfig":
        config_path = Path(path) if path else Path(os.getenv("MINIMALPROMPT_LLM_CONFIG", str(_DEFAULT_CONFIG_PATH)))
        if not config_path.exists():
            if path:
                raise FileNotFoundError(f"LLM config not found: {config_path}")
            return cls.from_env()
        _logger.info("loading LLM config from %s", config_path)
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"LLM config must be a mapping: {config_path}")
        cfg = cls.from_dict(raw)
        cfg.apply_env_fallbacks()
        return cfg

    def apply_env_fallbacks(self) -> None:
        if not self.provider:
            env_provider = os.getenv("MINIMALPROMPT_LLM_PROVIDER", "").strip().lower()
            self.provider = env_provider or "openai"  # type: ignore[assignment]
        if not self.model:
            model = os.getenv("MINIMALPROMPT_LLM_MODEL", "").strip()
            self.model = model or _DEFAULT_MODEL
        if self.api_key_env is None:
            env_name = os.getenv("MINIMALPROMPT_API_KEY_ENV", "").strip()
            self.api_key_env = env_name or _default_api_key_env(self.provider)
        if self.base_url is None:
            env_base = os.getenv("MINIMALPROMPT_BASE_URL", "").strip()
            if env_base:
                self.base_url = env_base
            elif self.provider == "openrouter":
                self.base_url = "https://openrouter.ai/api/v1"
            elif self.provider == "deepseek":
                self.base_url = "https://api.deepseek.com"
        if self.temperature is None:
            self.temperature = _to_float(os.getenv("MINIMALPROMPT_TEMPERATURE", ""))

    def resolve_api_key(self) -> str:
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            key = os.getenv(self.api_key_env, "")
            if key:
                return key
        raise ValueError(f"Missing API key. Set env {self.api_key_env!r} or provide api_key in config.")


def _default_api_key_env(provider: str) -> str:
    if provider == "openrouter":
        return "OPENROUTER_API_KEY"
    if provider == "deepseek":
        return "DEEPSEEK_API_KEY"
    return "OPENAI_API_KEY"


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _to_str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["LLMConfig", "Provider"]
