from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from vllm_chat.domain.models import Message
from vllm_chat.domain.options import GenerationParams


@dataclass(frozen=True)
class ModelInfo:
    id: str
    object: str = "model"
    created: Optional[int] = None
    owned_by: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "object": self.object}
        if self.created is not None:
            out["created"] = self.created
        if self.owned_by is not None:
            out["owned_by"] = self.owned_by
        return out


@dataclass(frozen=True)
class ConnectionResult:
    success: bool
    message: str
    status: Optional[int] = None
    model_count: Optional[int] = None


@runtime_checkable
class LLMClient(Protocol):
    """OpenAI-compatible backend (real or mock)."""

    def list_models(self) -> list[ModelInfo]:
        ...

    def stream_chat(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        params: GenerationParams,
    ) -> Iterator[str]:
        ...

    def check_chat(self, *, model: str) -> ConnectionResult:
        ...

    def check_models(self) -> ConnectionResult:
        ...
