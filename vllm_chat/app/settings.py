from __future__ import annotations

import os
from dataclasses import dataclass

from vllm_chat.domain.options import DEFAULT_TOKEN_LIMIT


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v


def _env_choice(name: str, default: str, allowed: set[str]) -> str:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    val = v.strip().lower()
    return val if val in allowed else default


@dataclass(frozen=True)
class BackendSettings:
    api_url: str = ""
    api_key: str = ""
    forced_model: str = ""
    token_limit: int = DEFAULT_TOKEN_LIMIT

    models_timeout_s: float = 5.0
    chat_timeout_s: float = 30.0

    llm_backend: str = "openai"        # openai | mock


@dataclass(frozen=True)
class TokenizerSettings:
    tokenizer_backend: str = "approx"  # approx | tiktoken
    tiktoken_encoding: str = "cl100k_base"


@dataclass(frozen=True)
class AppSettings:
    backend: BackendSettings = BackendSettings()
    tokenizer: TokenizerSettings = TokenizerSettings()

    @staticmethod
    def from_env() -> "AppSettings":
        backend = BackendSettings(
            api_url=_env_str("VLLM_URL", BackendSettings.api_url),
            api_key=_env_str("VLLM_API_KEY", BackendSettings.api_key),
            forced_model=_env_str("VLLM_MODEL", BackendSettings.forced_model),
            token_limit=_env_int("VLLM_TOKEN_LIMIT", BackendSettings.token_limit),

            models_timeout_s=_env_float("VLLM_MODELS_TIMEOUT", BackendSettings.models_timeout_s),
            chat_timeout_s=_env_float("VLLM_CHAT_TIMEOUT", BackendSettings.chat_timeout_s),

            llm_backend=_env_choice("VLLM_LLM", BackendSettings.llm_backend, {"openai", "mock"}),
        )

        tok = TokenizerSettings(
            tokenizer_backend=_env_choice("VLLM_TOKENIZER", TokenizerSettings.tokenizer_backend, {"approx", "tiktoken"}),
            tiktoken_encoding=_env_str("VLLM_TIKTOKEN_ENCODING", TokenizerSettings.tiktoken_encoding),
        )

        return AppSettings(backend=backend, tokenizer=tok)
