from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence

from vllm_chat.domain.models import Message
from vllm_chat.domain.options import GenerationParams
from vllm_chat.ports.llm import LLMClient, ModelInfo, ConnectionResult


def _last_user(messages: Sequence[Message]) -> Optional[Message]:
    return next((m for m in reversed(messages) if m.role == "user"), None)


@dataclass
class EchoMockLLM(LLMClient):
    models: List[str] = field(default_factory=lambda: ["mock-model"])
    calls: List[Dict[str, object]] = field(default_factory=list, repr=False)

    def list_models(self) -> List[ModelInfo]:
        return [ModelInfo(id=m, owned_by="mock") for m in self.models]

    def stream_chat(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        params: GenerationParams,
    ) -> Iterator[str]:
        self.calls.append({"messages": list(messages), "model": model, "params": params})
        last_user = _last_user(messages)
        text = f"[mock] reply to: {last_user.content if last_user else ''}"
        words = text.split(" ")
        return iter([words[0]] + [" " + w for w in words[1:]])

    def check_chat(self, *, model: str) -> ConnectionResult:
        return ConnectionResult(success=True, message="Connected to chat completions endpoint!", status=200)

    def check_models(self) -> ConnectionResult:
        n = len(self.models)
        return ConnectionResult(
            success=True,
            message=f"Connected successfully! Found {n} model{'' if n == 1 else 's'}",
            status=200,
            model_count=n,
        )

