"""Unit tests for the chat completion client."""

import json

import httpx
import pytest

from mro_ops.core import llm_client as llm_client_module
from mro_ops.core.exceptions import APIClientError, ConfigurationError
from mro_ops.core.llm_client import ChatCompletionClient, create_llm_client_from_settings

API_URL = "https://llm.test/v1/chat/completions"


@pytest.fixture
def mock_transport(monkeypatch):
    """Route the client's httpx traffic through a handler list; returns recorded requests."""
    real_client = httpx.AsyncClient
    state = {"handler": None, "requests": []}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        return state["handler"](request)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(llm_client_module.httpx, "AsyncClient", client_factory)
    return state


def chat_reply(content):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


class TestChatCompletionClient:

    @pytest.mark.asyncio
    async def test_returns_first_choice(self, mock_transport):
        mock_transport["handler"] = lambda request: chat_reply("maintenance_visit")
        client = ChatCompletionClient(api_key="sk-test", base_url=API_URL, model="gpt-4o-mini")

        answer = await client.complete([{"role": "user", "content": "hi"}], max_tokens=100)

        assert answer == "maintenance_visit"
        request = mock_transport["requests"][0]
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4o-mini"
        assert body["max_completion_tokens"] == 100

    @pytest.mark.asyncio
    async def test_model_override(self, mock_transport):
        mock_transport["handler"] = lambda request: chat_reply("ok")
        client = ChatCompletionClient(api_key="sk-test", base_url=API_URL, model="gpt-4o-mini")

        await client.complete([{"role": "user", "content": "hi"}], model="gpt-4o")

        body = json.loads(mock_transport["requests"][0].content)
        assert body["model"] == "gpt-4o"
        assert "max_completion_tokens" not in body

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, mock_transport):
        mock_transport["handler"] = lambda request: httpx.Response(401, json={"error": "bad key"})
        client = ChatCompletionClient(
            api_key="sk-bad", base_url=API_URL, model="gpt-4o-mini", max_retries=3, retry_delay=0
        )

        with pytest.raises(APIClientError, match="401"):
            await client.complete([{"role": "user", "content": "hi"}])

        assert len(mock_transport["requests"]) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self, mock_transport):
        responses = iter([httpx.Response(503), chat_reply("recovered")])
        mock_transport["handler"] = lambda request: next(responses)
        client = ChatCompletionClient(
            api_key="sk-test", base_url=API_URL, model="gpt-4o-mini", max_retries=2, retry_delay=0
        )

        answer = await client.complete([{"role": "user", "content": "hi"}])

        assert answer == "recovered"
        assert len(mock_transport["requests"]) == 2

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self, mock_transport):
        mock_transport["handler"] = lambda request: httpx.Response(500)
        client = ChatCompletionClient(api_key="sk-test", base_url=API_URL, model="gpt-4o-mini")

        with pytest.raises(APIClientError):
            await client.complete([{"role": "user", "content": "hi"}])

        assert len(mock_transport["requests"]) == 1

    @pytest.mark.asyncio
    async def test_empty_content_raises(self, mock_transport):
        mock_transport["handler"] = lambda request: chat_reply("")
        client = ChatCompletionClient(api_key="sk-test", base_url=API_URL, model="gpt-4o-mini")

        with pytest.raises(APIClientError, match="No response from LLM"):
            await client.complete([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_malformed_response_raises(self, mock_transport):
        mock_transport["handler"] = lambda request: httpx.Response(200, json={"unexpected": True})
        client = ChatCompletionClient(api_key="sk-test", base_url=API_URL, model="gpt-4o-mini")

        with pytest.raises(APIClientError, match="Malformed"):
            await client.complete([{"role": "user", "content": "hi"}])


def test_factory_requires_api_key():
    with pytest.raises(ConfigurationError):
        create_llm_client_from_settings()
