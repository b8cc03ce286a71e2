from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Sequence

from vllm_chat.domain.models import SUPPORTED_ROLES, Message
from vllm_chat.domain.options import DEFAULT_TOKEN_LIMIT, RESERVED_RESPONSE_TOKENS
from vllm_chat.ports.tokens import TokenCounter
from vllm_chat.ports.truncation import TruncationStrategy

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MiddleOutTruncation(TruncationStrategy):
    """
    - messages with roles other than system/user/assistant are dropped
    - each kept message is costed separately: counter.count_messages([m])
    - over budget: evict at len(messages) // 2 of the *input* length, every round,
      until the total fits token_limit - RESERVED_RESPONSE_TOKENS
    - the system message is not protected
    """

    def fit(
        self,
        messages: Sequence[Message],
        *,
        counter: TokenCounter,
        token_limit: int = DEFAULT_TOKEN_LIMIT,
    ) -> List[Message]:
        kept: List[Message] = []
        costs: List[int] = []

        for m in messages:
            if m.role not in SUPPORTED_ROLES:
                continue
            kept.append(Message(role=m.role, content=m.content, meta=dict(m.meta)))
            costs.append(counter.count_messages([m]))

        token_count = sum(costs)
        remaining = token_limit - RESERVED_RESPONSE_TOKENS

        if token_count <= remaining:
            return kept

        before = len(kept)
        middle = len(messages) // 2

        while token_count > remaining and kept:
            # the index stays anchored to the input length; once the list has
            # shrunk under it, evict the last survivor instead
            idx = min(middle, len(kept) - 1)
            kept.pop(idx)
            token_count -= costs.pop(idx)

        log.info(json.dumps({
            "event": "trim",
            "token_limit": token_limit,
            "token_limit_remaining": remaining,
            "evicted": before - len(kept),
            "kept": len(kept),
            "tokens": token_count,
        }))
        return kept
