from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import tiktoken

from vllm_chat.domain.models import Message
from vllm_chat.ports.tokens import TokenCounter


@dataclass
class TiktokenTokenCounter(TokenCounter):
    """
    BPE count of the content plus a fixed per-message overhead for the chat
    template. No reply-priming tokens are added, so a batch costs exactly the
    sum of its messages.
    """
    encoding_name: str = "cl100k_base"
    per_message_overhead: int = 3

    def __post_init__(self) -> None:
        self._enc = tiktoken.get_encoding(self.encoding_name)

    def count_text(self, text: str) -> int:
        return len(self._enc.encode(text or ""))

    def count_messages(self, messages: Sequence[Message]) -> int:
        return sum(self.per_message_overhead + self.count_text(m.content) for m in messages)
