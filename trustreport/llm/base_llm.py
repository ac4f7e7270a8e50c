"""Base LLM interface and common types for TrustReport.

This module defines the abstract base class and common data structures
for the chat-completion provider used to write report narratives.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from trustreport.utils.datetime_utils import utc_now
from trustreport.utils.exceptions import ExternalServiceError
from trustreport.utils.logger import get_llm_logger

logger = get_llm_logger()


class LLMProvider(str, Enum):
    """Enumeration of supported LLM providers."""

    OPENAI = "openai"


class LLMRole(str, Enum):
    """Message roles in LLM conversations."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    """A message in an LLM conversation."""

    role: LLMRole = Field(..., description="Role of the message sender")
    content: str = Field(..., description="Message content")

    model_config = {
        "json_schema_extra": {
            "example": {
                "role": "user",
                "content": "Analiza los siguientes resultados de una evaluación de confiabilidad laboral",
            }
        }
    }


class LLMUsage(BaseModel):
    """Token usage information from LLM response."""

    prompt_tokens: int = Field(0, ge=0, description="Tokens used in the prompt")
    completion_tokens: int = Field(0, ge=0, description="Tokens used in the completion")
    total_tokens: int = Field(0, ge=0, description="Total tokens used")


class LLMRequest(BaseModel):
    """Request to an LLM provider.

    ``temperature`` is only forwarded to models that accept it; see
    ``trustreport.llm.model_capabilities``.
    """

    messages: List[LLMMessage] = Field(..., min_length=1, description="Conversation messages")
    model: str = Field(..., min_length=1, description="Model to use")
    temperature: Optional[float] = Field(default=None, ge=0, le=2, description="Sampling temperature")
    max_tokens: Optional[int] = Field(default=None, ge=1, description="Maximum tokens to generate")

    # Request metadata
    purpose: Optional[str] = Field(None, description="Prompt subtype, for logging")


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    content: str = Field(..., description="Generated content")
    model: str = Field(..., description="Model that generated the response")
    usage: LLMUsage = Field(default_factory=LLMUsage, description="Token usage information")
    finish_reason: Optional[str] = Field(None, description="Reason the generation stopped")

    # Response metadata
    response_id: Optional[str] = Field(None, description="Unique response identifier")
    created_at: datetime = Field(default_factory=utc_now, description="Response timestamp")
    provider: LLMProvider = Field(LLMProvider.OPENAI, description="LLM provider used")
    latency_ms: Optional[float] = Field(None, ge=0, description="Response latency in milliseconds")


class LLMError(ExternalServiceError):
    """Base exception for LLM-related errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[LLMProvider] = LLMProvider.OPENAI,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
        **kwargs
    ):
        """Initialize LLM error.

        Args:
            message: Error message
            provider: LLM provider where error occurred
            model: Model being used when error occurred
            status_code: HTTP status returned by the provider
            original_error: Original exception that caused this error
            **kwargs: Additional arguments for parent class
        """
        kwargs.setdefault("error_code", "LLM_ERROR")
        super().__init__(
            message,
            service=provider.value if provider else None,
            status_code=status_code,
            cause=original_error,
            **kwargs
        )
        self.provider = provider
        self.model = model
        self.original_error = original_error


class LLMRateLimitError(LLMError):
    """Exception raised when rate limits are exceeded."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[float] = None, **kwargs):
        kwargs.setdefault("error_code", "LLM_RATE_LIMIT")
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class LLMAuthenticationError(LLMError):
    """Exception raised when authentication fails."""
    pass


class LLMValidationError(LLMError):
    """Exception raised when request validation fails or the response is malformed."""
    pass


class LLMTimeoutError(LLMError):
    """Exception raised when requests timeout."""
    pass


class BaseLLM(ABC):
    """Abstract base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 60.0,
        max_retries: int = 1,
        **kwargs
    ):
        """Initialize base LLM.

        Args:
            api_key: API key for the provider
            timeout: Request timeout in seconds
            max_retries: Retries after the first attempt for transient failures
            **kwargs: Additional provider-specific arguments
        """
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries

        self._setup_client(**kwargs)

    @abstractmethod
    def _setup_client(self, **kwargs) -> None:
        """Setup the provider-specific client."""
        pass

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate a response from the LLM.

        Args:
            request: LLM request with messages and parameters

        Returns:
            LLMResponse: Generated response with usage information

        Raises:
            LLMError: If generation fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    def _validate_common_params(self, request: LLMRequest) -> None:
        """Validate common request parameters.

        Args:
            request: Request to validate

        Raises:
            LLMValidationError: If validation fails
        """
        for i, message in enumerate(request.messages):
            if not message.content.strip():
                raise LLMValidationError(f"Message {i} cannot be empty", model=request.model)


__all__ = [
    "LLMProvider",
    "LLMRole",
    "LLMMessage",
    "LLMUsage",
    "LLMRequest",
    "LLMResponse",
    "LLMError",
    "LLMRateLimitError",
    "LLMAuthenticationError",
    "LLMValidationError",
    "LLMTimeoutError",
    "BaseLLM",
]
