from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from vllm_chat.domain.errors import NoModelSelectedError, NotConfiguredError
from vllm_chat.domain.models import Message
from vllm_chat.domain.options import DEFAULT_TOKEN_LIMIT, ChatOptions, GenerationParams
from vllm_chat.ports.llm import LLMClient
from vllm_chat.ports.tokens import TokenCounter
from vllm_chat.ports.truncation import TruncationStrategy
from vllm_chat.use_cases.budget import Budget
from vllm_chat.use_cases.system_prompt import inject_system_prompt

log = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], LLMClient]


@dataclass
class ChatRelay:
    """
    One chat turn: resolve config -> inject system prompt -> trim -> stream from backend.
    Per-request options win over the process defaults (env).
    """
    counter: TokenCounter
    truncation: TruncationStrategy
    client_factory: ClientFactory

    default_api_url: str = ""
    default_api_key: str = ""
    default_token_limit: int = DEFAULT_TOKEN_LIMIT

    def resolve_options(self, options: ChatOptions) -> ChatOptions:
        resolved = replace(
            options,
            api_url=options.api_url or self.default_api_url,
            api_key=options.api_key or self.default_api_key,
            max_tokens=options.max_tokens or self.default_token_limit,
        ).normalized()

        if not resolved.api_url:
            raise NotConfiguredError(
                "API URL not configured. Please set it in settings.",
                code="API_NOT_CONFIGURED",
            )
        if not resolved.selected_model:
            raise NoModelSelectedError("No model selected. Please wait for connection or check settings.")
        return resolved

    def prepare(
        self,
        messages: Optional[Sequence[Message]],
        options: ChatOptions,
    ) -> Tuple[List[Message], Dict[str, Any]]:
        """Messages that will be sent for an already resolved `options`, plus trim stats."""
        with_system = inject_system_prompt(messages, options.system_prompt) or []
        budget = Budget(token_limit=options.max_tokens)

        fitted = self.truncation.fit(
            with_system,
            counter=self.counter,
            token_limit=budget.token_limit,
        )

        meta: Dict[str, Any] = {
            "model": options.selected_model,
            "budget": {
                "token_limit": budget.token_limit,
                "reserved_response_tokens": budget.reserved_response_tokens,
                "token_limit_remaining": budget.token_limit_remaining,
            },
            "messages_in": len(with_system),
            "messages_out": len(fitted),
            "context_tokens_after_fit": self.counter.count_messages(fitted),
        }
        return fitted, meta

    def stream(
        self,
        messages: Optional[Sequence[Message]],
        options: ChatOptions,
    ) -> Tuple[Iterator[str], Dict[str, Any]]:
        resolved = self.resolve_options(options)
        fitted, meta = self.prepare(messages, resolved)

        params = GenerationParams.from_options(resolved, max_tokens=resolved.max_tokens)
        client = self.client_factory(resolved.api_url, resolved.api_key)

        log.info(json.dumps({"event": "chat", **meta}, ensure_ascii=False))
        chunks = client.stream_chat(fitted, model=resolved.selected_model, params=params)
        return chunks, meta
