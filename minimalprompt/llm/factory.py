from __future__ import annotations

from minimalprompt.llm.config import LLMConfig
from minimalprompt.llm.driver import ToolCallingDriver

_CHAT_COMPLETIONS_PROVIDERS = ("openai", "openrouter", "deepseek", "oai_compatible")


def build_driver(cfg: LLMConfig) -> ToolCallingDriver:
    if cfg.provider not in _CHAT_COMPLETIONS_PROVIDERS:
        raise ValueError(f"Unsupported provider: {cfg.provider}")

    from minimalprompt.llm.openai_chat_completions_driver import OpenAIChatCompletionsDriver

    return OpenAIChatCompletionsDriver(
        model=cfg.model,
        api_key=cfg.resolve_api_key(),
        base_url=cfg.base_url,
        default_headers=cfg.default_headers or None,
        n=cfg.n,
        temperature=cfg.temperature,
        max_tokens=cfg.max_tokens,
        timeout_s=cfg.timeout_s,
    )


__all__ = ["build_driver"]
