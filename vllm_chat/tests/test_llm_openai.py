import pytest
import requests

from vllm_chat.adapters.llm_openai import OpenAICompatibleClient, parse_sse_line
from vllm_chat.domain.errors import (
    BackendAuthError,
    BackendConnectionError,
    BackendResponseError,
    BackendTimeoutError,
)
from vllm_chat.domain.models import Message
from vllm_chat.domain.options import GenerationParams
from vllm_chat.tests.helpers import FakeResponse, FakeSession, sse


def _client(session, api_key="secret"):
    return OpenAICompatibleClient(base_url="http://vllm:8000/", api_key=api_key, session=session)


def test_list_models_parses_data_and_sends_auth_headers():
    session = FakeSession(FakeResponse(json_data={
        "object": "list",
        "data": [{"id": "llama", "object": "model", "owned_by": "vllm"}, {"object": "model"}],
    }))
    models = _client(session).list_models()

    assert [m.id for m in models] == ["llama"]
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("GET", "http://vllm:8000/v1/models")
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["headers"]["api-key"] == "secret"
    assert kwargs["timeout"] == 5.0


def test_no_auth_headers_without_key():
    session = FakeSession(FakeResponse(json_data={"data": []}))
    _client(session, api_key="").list_models()
    headers = session.calls[0][2]["headers"]
    assert "Authorization" not in headers
    assert "api-key" not in headers


def test_list_models_error_mapping():
    with pytest.raises(BackendTimeoutError) as e:
        _client(FakeSession(exc=requests.Timeout("slow"))).list_models()
    assert e.value.status == 504

    with pytest.raises(BackendConnectionError) as e:
        _client(FakeSession(exc=requests.ConnectionError("refused"))).list_models()
    assert e.value.code == "CONNECTION_ERROR"

    with pytest.raises(BackendResponseError) as e:
        _client(FakeSession(FakeResponse(status_code=502, reason="Bad Gateway"))).list_models()
    assert e.value.status == 502
    assert e.value.code == "API_ERROR"
    assert e.value.reason == "Bad Gateway"
    assert e.value.to_payload()["status"] == 502


def test_stream_chat_yields_deltas_and_builds_payload():
    resp = FakeResponse(lines=sse("Hel", "lo", "!"))
    session = FakeSession(resp)
    params = GenerationParams(temperature=0.5, top_p=None, max_tokens=128)

    chunks = _client(session).stream_chat(
        [Message(role="user", content="hi")], model="llama", params=params
    )
    assert "".join(chunks) == "Hello!"
    assert resp.closed

    method, url, kwargs = session.calls[0]
    assert url == "http://vllm:8000/v1/chat/completions"
    assert kwargs["stream"] is True
    payload = kwargs["json"]
    assert payload["messages"] == [{"role": "user", "content": "hi"}]
    assert payload["temperature"] == 0.5
    assert payload["max_tokens"] == 128
    assert "top_p" not in payload


def test_stream_chat_error_mapping():
    params = GenerationParams()
    msgs = [Message(role="user", content="hi")]

    with pytest.raises(BackendAuthError):
        _client(FakeSession(FakeResponse(status_code=401))).stream_chat(msgs, model="m", params=params)

    with pytest.raises(BackendConnectionError) as e:
        _client(FakeSession(exc=requests.ConnectionError("ECONNREFUSED"))).stream_chat(
            msgs, model="m", params=params
        )
    assert e.value.code == "CONNECTION_FAILED"
    assert e.value.status == 503


def test_parse_sse_line_ignores_noise():
    assert parse_sse_line("") is None
    assert parse_sse_line(": keep-alive") is None
    assert parse_sse_line("data: [DONE]") is None
    assert parse_sse_line("data: {not json") is None
    assert parse_sse_line('data: {"choices": [{"delta": {"role": "assistant"}}]}') is None
    assert parse_sse_line('data: {"choices": [{"delta": {"content": "x"}}]}') == "x"


@pytest.mark.parametrize("status,success", [
    (200, True), (400, True), (401, True), (403, True), (404, False), (500, False),
])
def test_check_chat_classifies_status(status, success):
    session = FakeSession(FakeResponse(status_code=status))
    result = _client(session).check_chat(model="")

    assert result.success is success
    assert result.status == status
    payload = session.calls[0][2]["json"]
    assert payload["model"] == "test"
    assert payload["max_tokens"] == 1


def test_check_models():
    ok = _client(FakeSession(FakeResponse(json_data={"data": [{"id": "a"}]}))).check_models()
    assert ok.success
    assert ok.message == "Connected successfully! Found 1 model"
    assert ok.model_count == 1

    missing = _client(FakeSession(FakeResponse(status_code=404))).check_models()
    assert missing.success

    broken = _client(FakeSession(FakeResponse(status_code=500))).check_models()
    assert not broken.success
    assert broken.message == "Connection failed: HTTP 500"

    timeout = _client(FakeSession(exc=requests.Timeout())).check_models()
    assert not timeout.success
    assert "timeout" in timeout.message
