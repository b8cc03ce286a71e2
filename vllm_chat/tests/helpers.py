from typing import List, Sequence

from vllm_chat.domain.models import Message


class StubCounter:
    """Charges meta["cost"] per message (default 1) and records every call."""

    def __init__(self) -> None:
        self.calls: List[List[Message]] = []

    def count_text(self, text: str) -> int:
        return len(text or "")

    def count_messages(self, messages: Sequence[Message]) -> int:
        self.calls.append(list(messages))
        return sum(int(m.meta.get("cost", 1)) for m in messages)


def msg(role: str, content: str, cost: int = 1) -> Message:
    return Message(role=role, content=content, meta={"cost": cost})


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, lines=(), reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._json = json_data
        self._lines = list(lines)
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def content(self) -> bytes:
        return b"" if self._json is None else b"{}"

    @property
    def text(self) -> str:
        return "" if self._json is None else str(self._json)

    def json(self):
        if self._json is None:
            raise ValueError("no body")
        return self._json

    def iter_lines(self, decode_unicode=False):
        yield from self._lines

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stands in for requests.Session: returns `response` or raises `exc`."""

    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def _call(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response

    def get(self, url, **kwargs):
        return self._call("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._call("POST", url, **kwargs)


def sse(*deltas: str):
    import json

    lines = []
    for d in deltas:
        lines.append("data: " + json.dumps({"choices": [{"delta": {"content": d}}]}))
        lines.append("")
    lines.append("data: [DONE]")
    return lines
