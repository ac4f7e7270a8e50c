"""Request-shape capabilities of chat-completion models.

Newer OpenAI model families reject ``max_tokens`` and ignore or reject
``temperature``; older ones require ``max_tokens``. The table below is
matched by longest prefix so that dated snapshots (``gpt-4.1-2025-04-14``)
resolve to their family.
"""

from typing import Dict, NamedTuple

MAX_COMPLETION_TOKENS = "max_completion_tokens"
MAX_TOKENS = "max_tokens"


class ModelCapabilities(NamedTuple):
    token_param: str
    supports_temperature: bool


# Unknown models are treated like the newest family
DEFAULT_CAPABILITIES = ModelCapabilities(MAX_COMPLETION_TOKENS, False)

_CAPABILITIES: Dict[str, ModelCapabilities] = {
    "gpt-5": ModelCapabilities(MAX_COMPLETION_TOKENS, False),
    "gpt-4.1": ModelCapabilities(MAX_COMPLETION_TOKENS, False),
    "o1": ModelCapabilities(MAX_COMPLETION_TOKENS, False),
    "o3": ModelCapabilities(MAX_COMPLETION_TOKENS, False),
    "o4": ModelCapabilities(MAX_COMPLETION_TOKENS, False),
    "gpt-4o": ModelCapabilities(MAX_COMPLETION_TOKENS, True),
    "gpt-4": ModelCapabilities(MAX_TOKENS, True),
    "gpt-3.5": ModelCapabilities(MAX_TOKENS, True),
}


def get_capabilities(model: str) -> ModelCapabilities:
    """Resolve the capabilities of a model by its longest matching prefix.

    Args:
        model: Model identifier as sent to the API

    Returns:
        ModelCapabilities: Token parameter name and temperature support
    """
    name = (model or "").strip().lower()
    matches = [prefix for prefix in _CAPABILITIES if name.startswith(prefix)]
    if not matches:
        return DEFAULT_CAPABILITIES
    return _CAPABILITIES[max(matches, key=len)]


def register_model(prefix: str, token_param: str = MAX_COMPLETION_TOKENS, supports_temperature: bool = False) -> None:
    """Add or replace a model family in the capability table."""
    if token_param not in (MAX_COMPLETION_TOKENS, MAX_TOKENS):
        raise ValueError(f"Unknown token parameter: {token_param}")
    _CAPABILITIES[prefix.strip().lower()] = ModelCapabilities(token_param, supports_temperature)


def build_completion_payload(model: str, messages: list, max_tokens: int, temperature: float = None) -> dict:
    """Build a chat-completion body honoring the model's capabilities.

    Args:
        model: Model identifier
        messages: ``[{role, content}]`` list
        max_tokens: Completion token budget
        temperature: Sampling temperature, dropped when unsupported

    Returns:
        dict: ``{model, messages, <token_param>, temperature?}``
    """
    capabilities = get_capabilities(model)
    payload = {
        "model": model,
        "messages": messages,
        capabilities.token_param: max_tokens,
    }
    if capabilities.supports_temperature and temperature is not None:
        payload["temperature"] = temperature
    return payload


__all__ = [
    "DEFAULT_CAPABILITIES",
    "MAX_COMPLETION_TOKENS",
    "MAX_TOKENS",
    "ModelCapabilities",
    "build_completion_payload",
    "get_capabilities",
    "register_model",
]
