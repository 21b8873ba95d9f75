import asyncio
import json

import httpx
import pytest

from studykit.core.errors import ConfigurationError, ExternalServiceError, InvalidModelError
from studykit.services.llm.providers import ChatProvider, ProviderRegistry, is_invalid_model_response


def _completion(content):
    return {
        "id": "cmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "m",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


def _provider(handler, api_key="sk-test", **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatProvider("groq", "https://llm.test/v1", api_key, http_client=client, **kwargs)


def test_chat_returns_stripped_content_and_sends_options():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        seen["headers"] = request.headers
        return httpx.Response(200, json=_completion("  hello  "))

    provider = _provider(handler, default_headers={"X-Title": "Super Student Kit"})
    out = asyncio.run(
        provider.chat(
            "llama-3.3-70b-versatile",
            [{"role": "user", "content": "hi"}],
            temperature=0.3,
            max_tokens=50,
            response_format={"type": "json_object"},
        )
    )

    assert out == "hello"
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["body"]["model"] == "llama-3.3-70b-versatile"
    assert seen["body"]["max_tokens"] == 50
    assert seen["body"]["response_format"] == {"type": "json_object"}
    assert seen["headers"]["x-title"] == "Super Student Kit"
    assert seen["headers"]["authorization"] == "Bearer sk-test"


def test_invalid_model_response_maps_to_invalid_model_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "xyz is not a valid model ID"}})

    with pytest.raises(InvalidModelError) as ei:
        asyncio.run(_provider(handler).chat("xyz", [{"role": "user", "content": "hi"}]))
    assert ei.value.status_code == 400


def test_other_status_maps_to_external_service_error():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "boom"}})

    with pytest.raises(ExternalServiceError) as ei:
        asyncio.run(_provider(handler).chat("m", [{"role": "user", "content": "hi"}]))

    assert not isinstance(ei.value, InvalidModelError)
    assert ei.value.status_code == 500
    # SDK retries are off
    assert len(calls) == 1


def test_missing_api_key_is_configuration_error():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ConfigurationError):
        asyncio.run(_provider(handler, api_key=None).chat("m", []))


def test_is_invalid_model_response():
    assert is_invalid_model_response(400, "Foo is not a valid model id")
    assert not is_invalid_model_response(400, "bad request")
    assert is_invalid_model_response(404, "model not found")
    assert not is_invalid_model_response(500, "not a valid model id")


def test_registry_unknown_provider():
    with pytest.raises(ConfigurationError):
        ProviderRegistry().get("groq")
