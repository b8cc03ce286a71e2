from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from vllm_chat.domain.models import Message
from vllm_chat.ports.tokens import TokenCounter


@runtime_checkable
class TruncationStrategy(Protocol):
    """Trims history so that it fits the token limit minus the reply reserve."""

    def fit(
        self,
        messages: Sequence[Message],
        *,
        counter: TokenCounter,
        token_limit: int,
    ) -> list[Message]:
        ...
