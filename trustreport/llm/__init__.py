"""LLM integration module for TrustReport.

This module wraps the OpenAI chat-completion API, the per-model capability
table, prompt templates and the report narrative generator.
"""

from .base_llm import BaseLLM, LLMError, LLMMessage, LLMRequest, LLMResponse, LLMUsage
from .model_capabilities import ModelCapabilities, get_capabilities
from .narrative_generator import NarrativeGenerator, NarrativeResult
from .openai_llm import OpenAILLM
from .prompt_manager import PromptManager, PromptTemplate

__all__ = [
    "BaseLLM",
    "LLMError",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "ModelCapabilities",
    "get_capabilities",
    "NarrativeGenerator",
    "NarrativeResult",
    "OpenAILLM",
    "PromptManager",
    "PromptTemplate",
]
