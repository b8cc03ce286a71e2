from __future__ import annotations

from dataclasses import dataclass

from vllm_chat.domain.options import RESERVED_RESPONSE_TOKENS


@dataclass(frozen=True)
class Budget:
    token_limit: int
    reserved_response_tokens: int = RESERVED_RESPONSE_TOKENS

    @property
    def token_limit_remaining(self) -> int:
        # not clamped: a limit below the reserve leaves nothing for messages
        return int(self.token_limit) - int(self.reserved_response_tokens)
