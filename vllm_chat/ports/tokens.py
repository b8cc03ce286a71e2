from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from vllm_chat.domain.models import Message


@runtime_checkable
class TokenCounter(Protocol):
    """
    Counts tokens.
    count_messages([m]) is the full cost of one message (content + per-message
    overhead), so the trimmer can charge each message separately.
    """

    def count_text(self, text: str) -> int:
        ...

    def count_messages(self, messages: Sequence[Message]) -> int:
        ...
