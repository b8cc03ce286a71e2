from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from vllm_chat.app.settings import AppSettings
from vllm_chat.app.wiring import build_bundle
from vllm_chat.domain.errors import (
    BackendResponseError,
    BackendTimeoutError,
    ChatProxyError,
    NotConfiguredError,
)
from vllm_chat.domain.models import Message
from vllm_chat.domain.options import ChatOptions
from vllm_chat.use_cases.model_catalog import select_model

logging.basicConfig(level=logging.INFO, format="%(message)s")
log = logging.getLogger("vllm_chat")

app = FastAPI(title="vllm_chat")
settings = AppSettings.from_env()


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MessageIn(_CamelModel):
    role: str
    content: str = ""


class ChatOptionsIn(_CamelModel):
    selected_model: str = Field(default="", alias="selectedModel")
    system_prompt: str = Field(default="", alias="systemPrompt")
    temperature: Optional[float] = None
    api_url: str = Field(default="", alias="apiUrl")
    api_key: str = Field(default="", alias="apiKey")
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    top_p: Optional[float] = Field(default=None, alias="topP")
    omit_max_tokens: bool = Field(default=False, alias="omitMaxTokens")
    omit_top_p: bool = Field(default=False, alias="omitTopP")
    bypass_models_check: bool = Field(default=False, alias="bypassModelsCheck")

    def to_options(self) -> ChatOptions:
        defaults = ChatOptions()
        return ChatOptions(
            selected_model=self.selected_model or "",
            system_prompt=self.system_prompt or "",
            temperature=defaults.temperature if self.temperature is None else self.temperature,
            api_url=self.api_url or "",
            api_key=self.api_key or "",
            # 0 lets the relay fall back to VLLM_TOKEN_LIMIT
            max_tokens=self.max_tokens or 0,
            top_p=defaults.top_p if self.top_p is None else self.top_p,
            omit_max_tokens=self.omit_max_tokens,
            omit_top_p=self.omit_top_p,
            bypass_models_check=self.bypass_models_check,
        )


class ChatRequest(_CamelModel):
    messages: Optional[List[MessageIn]] = None
    chat_options: ChatOptionsIn = Field(default_factory=ChatOptionsIn, alias="chatOptions")


class ModelsRequest(_CamelModel):
    api_url: str = Field(default="", alias="apiUrl")
    api_key: str = Field(default="", alias="apiKey")
    selected_model: str = Field(default="", alias="selectedModel")


class ConnectionTestResponse(_CamelModel):
    success: bool
    message: str
    status: Optional[int] = None
    model_count: Optional[int] = Field(default=None, alias="modelCount")


@app.exception_handler(ChatProxyError)
async def _chat_proxy_error(request: Request, exc: ChatProxyError) -> JSONResponse:
    return JSONResponse(exc.to_payload(), status_code=exc.status)


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/api/chat")
def chat(req: ChatRequest):
    bundle = build_bundle(settings)
    messages = None
    if req.messages is not None:
        messages = [Message(role=m.role, content=m.content) for m in req.messages]

    try:
        chunks, _meta = bundle.relay.stream(messages, req.chat_options.to_options())
    except ChatProxyError:
        raise
    except Exception as e:
        log.exception("chat request failed")
        return JSONResponse({"success": False, "error": str(e) or "Unknown error"}, status_code=500)

    return StreamingResponse(chunks, media_type="text/plain; charset=utf-8")


def _models_payload(models) -> Dict[str, Any]:
    return {"object": "list", "data": [m.to_dict() for m in models]}


@app.get("/api/models")
def get_models():
    bundle = build_bundle(settings)
    try:
        models = bundle.catalog.list_models(missing_url_message="VLLM_URL is not set")
    except NotConfiguredError:
        raise
    except BackendResponseError as e:
        return JSONResponse({"success": False, "error": e.reason}, status_code=e.status)
    except BackendTimeoutError:
        return JSONResponse({"success": False, "error": "Request timeout", "code": "TIMEOUT"}, status_code=504)
    except Exception as e:
        log.exception("models request failed")
        message = e.message if isinstance(e, ChatProxyError) else str(e)
        return JSONResponse({"success": False, "error": message or "Unknown error"}, status_code=500)
    return _models_payload(models)


@app.post("/api/models")
def post_models(req: ModelsRequest):
    bundle = build_bundle(settings)
    try:
        models = bundle.catalog.list_models(req.api_url, req.api_key)
    except ChatProxyError:
        raise
    except Exception as e:
        log.exception("models request failed")
        return JSONResponse(
            {"error": "Internal server error", "code": "INTERNAL_ERROR", "details": str(e)},
            status_code=500,
        )

    payload = _models_payload(models)
    payload["selected"] = select_model(models, req.selected_model)
    log.info(json.dumps({"event": "models_selected", "selected": payload["selected"]}))
    return payload


@app.post("/api/connection-test", response_model=ConnectionTestResponse)
def connection_test(opts: ChatOptionsIn):
    bundle = build_bundle(settings)
    result = bundle.catalog.check_connection(opts.to_options())
    return ConnectionTestResponse(
        success=result.success,
        message=result.message,
        status=result.status,
        model_count=result.model_count,
    )
