from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_TOKEN_LIMIT = 4096
RESERVED_RESPONSE_TOKENS = 512
MAX_TOKEN_LIMIT = 100_000

DEFAULT_TEMPERATURE = 0.9
DEFAULT_TOP_P = 0.95


@dataclass(frozen=True)
class ChatOptions:
    """Per-request chat settings, as edited in the client settings panel."""

    selected_model: str = ""
    system_prompt: str = ""
    temperature: float = DEFAULT_TEMPERATURE

    api_url: str = ""
    api_key: str = ""
    max_tokens: int = DEFAULT_TOKEN_LIMIT
    top_p: float = DEFAULT_TOP_P

    omit_max_tokens: bool = False
    omit_top_p: bool = False
    bypass_models_check: bool = False

    def normalized(self) -> "ChatOptions":
        max_tokens = int(self.max_tokens or 0)
        if max_tokens <= 0:
            max_tokens = DEFAULT_TOKEN_LIMIT
        max_tokens = max(1, min(MAX_TOKEN_LIMIT, max_tokens))

        top_p = float(self.top_p) if self.top_p is not None else DEFAULT_TOP_P
        top_p = min(1.0, max(0.0, top_p))

        return replace(self, max_tokens=max_tokens, top_p=top_p)


@dataclass(frozen=True)
class GenerationParams:
    temperature: float = DEFAULT_TEMPERATURE
    top_p: Optional[float] = DEFAULT_TOP_P
    max_tokens: Optional[int] = DEFAULT_TOKEN_LIMIT

    @staticmethod
    def from_options(options: ChatOptions, *, max_tokens: int) -> "GenerationParams":
        return GenerationParams(
            temperature=options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE,
            top_p=None if options.omit_top_p else options.top_p,
            max_tokens=None if options.omit_max_tokens else max_tokens,
        )
