from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Tuple

from vllm_chat.app.settings import AppSettings

from vllm_chat.ports.llm import LLMClient
from vllm_chat.ports.tokens import TokenCounter

from vllm_chat.adapters.trunc_middle import MiddleOutTruncation

from vllm_chat.use_cases.chat_relay import ChatRelay, ClientFactory
from vllm_chat.use_cases.model_catalog import ModelCatalog


@dataclass(frozen=True)
class AppBundle:
    relay: ChatRelay
    catalog: ModelCatalog
    counter: TokenCounter


# -----------------------
# Internal shared cache
# -----------------------
_cache_lock = Lock()
_counters: Dict[Tuple[Any, ...], TokenCounter] = {}


def _build_counter(settings: AppSettings) -> TokenCounter:
    tok = settings.tokenizer
    key = (tok.tokenizer_backend, tok.tiktoken_encoding)

    with _cache_lock:
        counter = _counters.get(key)
        if counter is None:
            if tok.tokenizer_backend == "tiktoken":
                from vllm_chat.adapters.tokens_tiktoken import TiktokenTokenCounter
                counter = TiktokenTokenCounter(encoding_name=tok.tiktoken_encoding)
            else:
                from vllm_chat.adapters.tokens_approx import ApproxTokenCounter
                counter = ApproxTokenCounter()
            _counters[key] = counter
    return counter


def make_client_factory(settings: AppSettings) -> ClientFactory:
    b = settings.backend

    if b.llm_backend == "mock":
        from vllm_chat.adapters.llm_mock import EchoMockLLM

        def mock_factory(api_url: str, api_key: str) -> LLMClient:
            return EchoMockLLM()

        return mock_factory

    from vllm_chat.adapters.llm_openai import OpenAICompatibleClient

    def factory(api_url: str, api_key: str) -> LLMClient:
        return OpenAICompatibleClient(
            base_url=api_url,
            api_key=api_key,
            models_timeout_s=b.models_timeout_s,
            chat_timeout_s=b.chat_timeout_s,
        )

    return factory


def build_bundle(settings: AppSettings) -> AppBundle:
    b = settings.backend
    counter = _build_counter(settings)
    factory = make_client_factory(settings)

    relay = ChatRelay(
        counter=counter,
        truncation=MiddleOutTruncation(),
        client_factory=factory,
        default_api_url=b.api_url,
        default_api_key=b.api_key,
        default_token_limit=b.token_limit,
    )
    catalog = ModelCatalog(
        client_factory=factory,
        default_api_url=b.api_url,
        default_api_key=b.api_key,
        forced_model=b.forced_model,
    )
    return AppBundle(relay=relay, catalog=catalog, counter=counter)
