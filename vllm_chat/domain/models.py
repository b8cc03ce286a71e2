from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet

SUPPORTED_ROLES: FrozenSet[str] = frozenset({"system", "user", "assistant"})


@dataclass(frozen=True)
class Message:
    role: str
    content: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content or ""}


def system_message(content: str) -> Message:
    return Message(role="system", content=content)
