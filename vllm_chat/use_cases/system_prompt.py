from __future__ import annotations

from typing import List, Optional, Sequence

from vllm_chat.domain.models import Message, system_message


def inject_system_prompt(
    messages: Optional[Sequence[Message]],
    system_prompt: Optional[str],
) -> Optional[Sequence[Message]]:
    """
    Keeps a single leading system message in sync with `system_prompt`.

    Without a prompt the input is returned as is: an existing system message
    is never removed. Otherwise a new list is returned with the first message
    replaced (if it is a system message) or the prompt inserted in front.
    """
    if not system_prompt:
        return messages

    if not messages:
        return [system_message(system_prompt)]

    out: List[Message] = list(messages)
    first = out[0]
    if first.role == "system":
        out[0] = Message(role="system", content=system_prompt, meta=dict(first.meta))
    else:
        out.insert(0, system_message(system_prompt))
    return out
