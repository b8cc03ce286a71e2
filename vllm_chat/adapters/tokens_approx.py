from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from vllm_chat.domain.models import Message
from vllm_chat.ports.tokens import TokenCounter


@dataclass
class ApproxTokenCounter(TokenCounter):
    """
    Network-free estimate used by default:
    - 1 token ~ 4 characters (rounded up)
    - every message pays a fixed overhead for role/separators
    """
    chars_per_token: int = 4
    tokens_per_message: int = 4

    def count_text(self, text: str) -> int:
        n = len(text or "")
        return (n + self.chars_per_token - 1) // self.chars_per_token

    def count_messages(self, messages: Sequence[Message]) -> int:
        total = 0
        for m in messages:
            total += self.tokens_per_message
            total += self.count_text(m.content or "")
        return total
