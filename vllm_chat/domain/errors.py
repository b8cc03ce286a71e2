from __future__ import annotations

from typing import Any, Dict, Optional


class ChatProxyError(Exception):
    """Base error rendered to HTTP callers as {"error", "code"}."""

    code: str = "INTERNAL_ERROR"
    status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status: Optional[int] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class NotConfiguredError(ChatProxyError):
    code = "NOT_CONFIGURED"
    status = 503


class NoModelSelectedError(ChatProxyError):
    code = "NO_MODEL_SELECTED"
    status = 400


class BackendConnectionError(ChatProxyError):
    code = "CONNECTION_ERROR"
    status = 503


class BackendAuthError(ChatProxyError):
    code = "AUTH_FAILED"
    status = 401


class BackendTimeoutError(ChatProxyError):
    code = "TIMEOUT"
    status = 504


class BackendResponseError(ChatProxyError):
    """Upstream answered with a non-OK status; `reason` is its status text."""

    code = "API_ERROR"

    def __init__(self, message: str, *, status: int, reason: str = "", **kwargs: Any) -> None:
        super().__init__(message, status=status, **kwargs)
        self.reason = reason

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["status"] = self.status
        return payload
