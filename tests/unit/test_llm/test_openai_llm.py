"""Unit tests for the OpenAI chat-completions client."""

import json

import httpx
import pytest

from trustreport.llm.base_llm import (
    LLMAuthenticationError,
    LLMError,
    LLMMessage,
    LLMRequest,
    LLMRole,
    LLMTimeoutError,
    LLMValidationError,
)
from trustreport.llm.openai_llm import OpenAILLM


def completion(content="Análisis generado", model="gpt-4o-mini", total_tokens=120):
    return {
        "id": "chatcmpl-1",
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 80, "completion_tokens": 40, "total_tokens": total_tokens},
    }


def make_llm(handler, max_retries=0):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAILLM(
        api_key="sk-test",
        base_url="https://api.test/v1",
        max_retries=max_retries,
        backoff_seconds=0,
        http_client=http_client,
    )


@pytest.fixture
def sample_request():
    return LLMRequest(
        messages=[
            LLMMessage(role=LLMRole.SYSTEM, content="Eres un psicólogo organizacional."),
            LLMMessage(role=LLMRole.USER, content="Analiza los resultados."),
        ],
        model="gpt-4o-mini",
        temperature=0.7,
        max_tokens=1500,
        purpose="reliability_analysis",
    )


class TestOpenAILLM:
    """Test suite for OpenAILLM."""

    @pytest.mark.asyncio
    async def test_generate_success(self, sample_request):
        # Arrange
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion())

        llm = make_llm(handler)

        # Act
        response = await llm.generate(sample_request)
        await llm.close()

        # Assert
        assert response.content == "Análisis generado"
        assert response.model == "gpt-4o-mini"
        assert response.usage.total_tokens == 120
        assert response.finish_reason == "stop"

        assert seen["url"] == "https://api.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["max_completion_tokens"] == 1500
        assert seen["body"]["temperature"] == 0.7
        assert seen["body"]["messages"][0] == {"role": "system", "content": "Eres un psicólogo organizacional."}

    @pytest.mark.asyncio
    async def test_new_model_family_omits_temperature(self, sample_request):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion(model="gpt-5"))

        llm = make_llm(handler)
        await llm.generate(sample_request.model_copy(update={"model": "gpt-5"}))
        await llm.close()

        assert "temperature" not in seen["body"]
        assert "max_tokens" not in seen["body"]

    @pytest.mark.asyncio
    async def test_authentication_error_not_retried(self, sample_request):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        llm = make_llm(handler, max_retries=2)

        with pytest.raises(LLMAuthenticationError):
            await llm.generate(sample_request)
        await llm.close()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self, sample_request):
        responses = [httpx.Response(503), httpx.Response(200, json=completion(content="ok"))]

        llm = make_llm(lambda request: responses.pop(0), max_retries=1)
        response = await llm.generate(sample_request)
        await llm.close()

        assert response.content == "ok"
        assert responses == []

    @pytest.mark.asyncio
    async def test_timeout_raises_after_retries(self, sample_request):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectTimeout("timed out", request=request)

        llm = make_llm(handler, max_retries=1)

        with pytest.raises(LLMTimeoutError):
            await llm.generate(sample_request)
        await llm.close()

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_bad_request_surfaces_api_message(self, sample_request):
        llm = make_llm(lambda request: httpx.Response(400, json={"error": {"message": "Unsupported parameter"}}))

        with pytest.raises(LLMValidationError) as exc_info:
            await llm.generate(sample_request)
        await llm.close()

        assert exc_info.value.message == "Unsupported parameter"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_response_without_choices(self, sample_request):
        llm = make_llm(lambda request: httpx.Response(200, json={"choices": []}))

        with pytest.raises(LLMValidationError):
            await llm.generate(sample_request)
        await llm.close()

    @pytest.mark.asyncio
    async def test_empty_message_rejected_before_request(self, sample_request):
        calls = []
        llm = make_llm(lambda request: calls.append(request) or httpx.Response(200, json=completion()))
        bad_request = sample_request.model_copy(
            update={"messages": [LLMMessage(role=LLMRole.USER, content="   ")]}
        )

        with pytest.raises(LLMError):
            await llm.generate(bad_request)
        await llm.close()

        assert calls == []
