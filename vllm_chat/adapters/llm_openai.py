from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

import requests

from vllm_chat.domain.errors import (
    BackendAuthError,
    BackendConnectionError,
    BackendResponseError,
    BackendTimeoutError,
)
from vllm_chat.domain.models import Message
from vllm_chat.domain.options import GenerationParams
from vllm_chat.ports.llm import LLMClient, ModelInfo, ConnectionResult

log = logging.getLogger(__name__)


def _strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def parse_sse_line(line: str) -> Optional[str]:
    """Text delta carried by one `data: {...}` line of a chat completion stream."""
    if not line or not line.startswith("data:"):
        return None
    data = line[len("data:"):].strip()
    if not data or data == "[DONE]":
        return None

    try:
        chunk = json.loads(data)
    except ValueError:
        log.warning("skipping malformed stream chunk: %s", data[:200])
        return None

    choices = chunk.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content") or None


@dataclass
class OpenAICompatibleClient(LLMClient):
    base_url: str
    api_key: str = ""
    models_timeout_s: float = 5.0
    chat_timeout_s: float = 30.0

    session: Optional[requests.Session] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.base_url = _strip_trailing_slash(self.base_url)
        if self.session is None:
            self.session = requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["api-key"] = self.api_key
        return headers

    def list_models(self) -> List[ModelInfo]:
        assert self.session is not None

        try:
            r = self.session.get(
                f"{self.base_url}/v1/models",
                headers=self._headers(),
                timeout=self.models_timeout_s,
            )
        except requests.Timeout:
            raise BackendTimeoutError("Request timeout - server may be slow or unresponsive")
        except requests.RequestException as e:
            log.error("Failed to fetch models: %s", e)
            raise BackendConnectionError("Failed to connect to vLLM server", details=str(e))

        if not r.ok:
            log.error("vLLM /v1/models response error: %s", r.text)
            raise BackendResponseError(f"vLLM server error: {r.reason}", status=r.status_code, reason=r.reason)

        data = r.json() if r.content else {}
        models: List[ModelInfo] = []
        for item in data.get("data") or []:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            models.append(
                ModelInfo(
                    id=str(item["id"]),
                    object=str(item.get("object") or "model"),
                    created=item.get("created"),
                    owned_by=item.get("owned_by"),
                )
            )
        return models

    def stream_chat(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        params: GenerationParams,
    ) -> Iterator[str]:
        """
        Opens the completion request eagerly so that connection/auth failures
        surface here, before the caller starts streaming the response body.
        """
        assert self.session is not None

        payload: Dict[str, Any] = {
            "model": model,
            "messages": [m.to_wire() for m in messages],
            "stream": True,
            "temperature": float(params.temperature),
        }
        if params.top_p is not None:
            payload["top_p"] = float(params.top_p)
        if params.max_tokens is not None:
            payload["max_tokens"] = int(params.max_tokens)

        try:
            r = self.session.post(
                f"{self.base_url}/v1/chat/completions",
                json=payload,
                headers=self._headers(),
                timeout=self.chat_timeout_s,
                stream=True,
            )
        except requests.Timeout:
            raise BackendTimeoutError("Request timeout - server may be slow or unresponsive")
        except requests.RequestException as e:
            log.error("vLLM API error: %s", e)
            raise BackendConnectionError(
                "Cannot connect to API server. Please check your settings.",
                code="CONNECTION_FAILED",
                details=str(e),
            )

        if r.status_code == 401:
            r.close()
            raise BackendAuthError("Authentication failed. Please check your API key.")
        if not r.ok:
            body = r.text
            r.close()
            log.error("vLLM API error: %s %s", r.status_code, body[:500])
            raise BackendResponseError(f"vLLM server error: {r.reason}", status=r.status_code, reason=r.reason)

        return self._iter_deltas(r)

    @staticmethod
    def _iter_deltas(r: requests.Response) -> Iterator[str]:
        try:
            for line in r.iter_lines(decode_unicode=True):
                text = parse_sse_line(line)
                if text:
                    yield text
        finally:
            r.close()

    def check_chat(self, *, model: str) -> ConnectionResult:
        """Connection test that skips /v1/models: any non-404 answer below 500 counts as reachable."""
        assert self.session is not None

        payload = {
            "model": model or "test",
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 1,
            "stream": False,
        }
        try:
            r = self.session.post(
                f"{self.base_url}/v1/chat/completions",
                json=payload,
                headers=self._headers(),
                timeout=self.models_timeout_s,
            )
        except requests.Timeout:
            return ConnectionResult(False, f"Connection failed: Request timeout ({self.models_timeout_s:g}s)")
        except requests.RequestException as e:
            log.error("chat connection check failed: %s", e)
            return ConnectionResult(False, "Connection failed: Could not reach server. Check if it's running.")

        status = r.status_code
        if status == 404:
            return ConnectionResult(False, "Chat completions endpoint not found", status)
        if status in (401, 403):
            return ConnectionResult(True, "Connected! (Authentication may be required)", status)
        if 200 <= status < 500:
            return ConnectionResult(True, "Connected to chat completions endpoint!", status)
        return ConnectionResult(False, f"Server error: HTTP {status}", status)

    def check_models(self) -> ConnectionResult:
        assert self.session is not None

        try:
            r = self.session.get(
                f"{self.base_url}/v1/models",
                headers=self._headers(),
                timeout=self.models_timeout_s,
            )
        except requests.Timeout:
            return ConnectionResult(False, f"Connection failed: Request timeout ({self.models_timeout_s:g}s)")
        except requests.RequestException as e:
            log.error("models connection check failed: %s", e)
            return ConnectionResult(False, "Connection failed: Could not reach server. Check if it's running.")

        status = r.status_code
        if r.ok:
            try:
                data = r.json() if r.content else {}
            except ValueError:
                data = {}
            n = len(data.get("data") or []) if isinstance(data, dict) else 0
            return ConnectionResult(
                True,
                f"Connected successfully! Found {_plural(n, 'model')}",
                status,
                model_count=n,
            )
        if status == 404:
            return ConnectionResult(True, "Connected! (Models endpoint not found, but server responded)", status)
        return ConnectionResult(False, f"Connection failed: HTTP {status}", status)
