"""OpenAI LLM integration for TrustReport.

This module talks to the OpenAI chat-completions endpoint over httpx. The
request body is shaped by the model capability table; transient failures
(timeouts, connection errors, 429 and 5xx) are retried with exponential
backoff up to ``max_retries`` times.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from trustreport.core.config import get_settings
from trustreport.llm.base_llm import (
    BaseLLM,
    LLMAuthenticationError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    LLMRequest,
    LLMResponse,
    LLMTimeoutError,
    LLMUsage,
    LLMValidationError,
)
from trustreport.llm.model_capabilities import build_completion_payload
from trustreport.utils.logger import get_llm_logger, log_llm_request

settings = get_settings()
logger = get_llm_logger()

RETRYABLE_ERRORS = (LLMTimeoutError, LLMRateLimitError)


class OpenAILLM(BaseLLM):
    """OpenAI chat-completions client."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize OpenAI LLM.

        Args:
            api_key: OpenAI API key
            base_url: Base URL for OpenAI API
            timeout: Request timeout in seconds
            max_retries: Retries for transient failures
            backoff_seconds: Base delay of the exponential backoff
            http_client: Pre-built client (tests, shared pools)
        """
        self.base_url = base_url or settings.OPENAI_BASE_URL
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.OPENAI_RETRY_BACKOFF_SECONDS
        )

        super().__init__(
            api_key,
            timeout=timeout or settings.OPENAI_TIMEOUT,
            max_retries=max_retries if max_retries is not None else settings.OPENAI_MAX_RETRIES,
            http_client=http_client,
        )

    def _setup_client(self, http_client: Optional[httpx.AsyncClient] = None, **kwargs) -> None:
        """Setup OpenAI HTTP client."""
        if http_client is not None:
            self.client = http_client
            return

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate a completion.

        Args:
            request: LLM request

        Returns:
            LLMResponse: Generated response

        Raises:
            LLMError: On any failure after retries, or on a malformed response
        """
        self._validate_common_params(request)
        start_time = time.time()

        payload = self._prepare_api_request(request)
        response_data = await self._make_request_with_retries(payload)

        latency_ms = (time.time() - start_time) * 1000
        response = self._parse_response(response_data, request, latency_ms)

        log_llm_request(
            model=response.model,
            prompt_type=request.purpose or "completion",
            tokens=response.usage.total_tokens,
            duration_ms=latency_ms,
            logger=logger,
        )
        return response

    def _prepare_api_request(self, request: LLMRequest) -> Dict[str, Any]:
        messages = [{"role": msg.role.value, "content": msg.content} for msg in request.messages]
        return build_completion_payload(
            model=request.model,
            messages=messages,
            max_tokens=request.max_tokens or 1500,
            temperature=request.temperature,
        )

    async def _make_request_with_retries(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Make API request with exponential backoff retries.

        Args:
            payload: Request payload

        Returns:
            Dict[str, Any]: Response data
        """
        last_exception: Optional[LLMError] = None

        for attempt in range(self.max_retries + 1):
            try:
                return await self._post(payload)
            except RETRYABLE_ERRORS as e:
                last_exception = e
            except LLMError as e:
                if e.status_code is None or e.status_code < 500:
                    raise
                last_exception = e

            if attempt < self.max_retries:
                wait_time = self.backoff_seconds * (2 ** attempt)
                logger.warning(
                    f"OpenAI request failed, retrying in {wait_time}s (attempt {attempt + 1})",
                    extra={"model": payload["model"], "error": last_exception.message},
                )
                await asyncio.sleep(wait_time)

        raise last_exception

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        model = payload["model"]

        try:
            response = await self.client.post(
                f"{self.base_url.rstrip('/')}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(
                f"Request timed out after {self.timeout}s", model=model, original_error=e
            )
        except httpx.TransportError as e:
            # Connection failures are as transient as timeouts
            raise LLMTimeoutError(f"Request failed: {str(e)}", model=model, original_error=e)

        if response.status_code == 200:
            try:
                return response.json()
            except ValueError as e:
                raise LLMValidationError("Response is not valid JSON", model=model, original_error=e)

        error_message = self._error_message(response)

        if response.status_code == 401:
            raise LLMAuthenticationError("Invalid API key", model=model, status_code=401)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise LLMRateLimitError(
                error_message or "Rate limit exceeded",
                model=model,
                status_code=429,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if response.status_code == 400:
            raise LLMValidationError(error_message or "Invalid request", model=model, status_code=400)

        raise LLMError(
            f"API request failed: {error_message or 'Unknown error'}",
            model=model,
            status_code=response.status_code,
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            error = response.json().get("error", {})
        except ValueError:
            return None
        if isinstance(error, dict):
            return error.get("message")
        return str(error)

    def _parse_response(self, response_data: Dict[str, Any], request: LLMRequest, latency_ms: float) -> LLMResponse:
        """Parse OpenAI API response.

        Raises:
            LLMValidationError: When there is no choice or the content is not text
        """
        choices = response_data.get("choices") if isinstance(response_data, dict) else None
        if not choices:
            raise LLMValidationError("Response contains no choices", model=request.model)

        choice = choices[0] or {}
        content = (choice.get("message") or {}).get("content")
        if not isinstance(content, str):
            raise LLMValidationError("Response content is not text", model=request.model)

        usage_data = response_data.get("usage") or {}

        return LLMResponse(
            content=content,
            model=response_data.get("model") or request.model,
            usage=LLMUsage(
                prompt_tokens=usage_data.get("prompt_tokens", 0),
                completion_tokens=usage_data.get("completion_tokens", 0),
                total_tokens=usage_data.get("total_tokens", 0),
            ),
            finish_reason=choice.get("finish_reason"),
            response_id=response_data.get("id"),
            provider=LLMProvider.OPENAI,
            latency_ms=latency_ms,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


__all__ = ["OpenAILLM"]
