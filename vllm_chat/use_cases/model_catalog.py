from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from vllm_chat.domain.errors import NotConfiguredError
from vllm_chat.domain.options import ChatOptions
from vllm_chat.ports.llm import ModelInfo, ConnectionResult
from vllm_chat.use_cases.chat_relay import ClientFactory

log = logging.getLogger(__name__)


def select_model(models: Sequence[ModelInfo], current: Optional[str]) -> Optional[str]:
    """Keeps `current` if the backend still serves it, otherwise falls back to the first model."""
    if not models:
        return None
    if current and any(m.id == current for m in models):
        return current
    return models[0].id


@dataclass
class ModelCatalog:
    client_factory: ClientFactory
    default_api_url: str = ""
    default_api_key: str = ""
    forced_model: str = ""

    def list_models(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        missing_url_message: str = "API URL not configured",
    ) -> List[ModelInfo]:
        base_url = api_url or self.default_api_url
        key = api_key or self.default_api_key
        if not base_url:
            raise NotConfiguredError(missing_url_message)

        if self.forced_model:
            return [ModelInfo(id=self.forced_model)]

        models = self.client_factory(base_url, key).list_models()
        log.info(json.dumps({"event": "models", "url": base_url, "count": len(models)}))
        return models

    def check_connection(self, options: ChatOptions) -> ConnectionResult:
        """
        Normal mode asks /v1/models. With bypass_models_check the server may not
        expose a models list, so a one-token chat completion is tried instead.
        """
        if not options.api_url:
            return ConnectionResult(False, "Please enter an API URL")

        client = self.client_factory(options.api_url, options.api_key)
        if options.bypass_models_check:
            result = client.check_chat(model=options.selected_model)
        else:
            result = client.check_models()

        log.info(json.dumps({
            "event": "connection_test",
            "url": options.api_url,
            "bypass": options.bypass_models_check,
            "success": result.success,
            "status": result.status,
        }))
        return result
