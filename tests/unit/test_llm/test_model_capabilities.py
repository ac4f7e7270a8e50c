"""Unit tests for the model capability table."""

import pytest

from trustreport.llm import model_capabilities
from trustreport.llm.model_capabilities import (
    DEFAULT_CAPABILITIES,
    MAX_COMPLETION_TOKENS,
    MAX_TOKENS,
    build_completion_payload,
    get_capabilities,
    register_model,
)


class TestGetCapabilities:

    @pytest.mark.parametrize("model,token_param,temperature", [
        ("gpt-5", MAX_COMPLETION_TOKENS, False),
        ("gpt-4.1-2025-04-14", MAX_COMPLETION_TOKENS, False),
        ("o3-mini", MAX_COMPLETION_TOKENS, False),
        ("gpt-4o-mini", MAX_COMPLETION_TOKENS, True),
        ("gpt-4-turbo", MAX_TOKENS, True),
        ("GPT-3.5-turbo", MAX_TOKENS, True),
    ])
    def test_known_families(self, model, token_param, temperature):
        capabilities = get_capabilities(model)

        assert capabilities.token_param == token_param
        assert capabilities.supports_temperature is temperature

    def test_longest_prefix_wins(self):
        # gpt-4.1 and gpt-4o both start with gpt-4
        assert get_capabilities("gpt-4.1-mini").token_param == MAX_COMPLETION_TOKENS
        assert get_capabilities("gpt-4").token_param == MAX_TOKENS

    def test_unknown_model_uses_default(self):
        assert get_capabilities("some-new-model") == DEFAULT_CAPABILITIES
        assert get_capabilities("") == DEFAULT_CAPABILITIES

    def test_register_model(self, monkeypatch):
        monkeypatch.setattr(model_capabilities, "_CAPABILITIES", dict(model_capabilities._CAPABILITIES))

        register_model("custom-llm", MAX_TOKENS, True)

        assert get_capabilities("custom-llm-large").token_param == MAX_TOKENS

    def test_register_model_rejects_unknown_param(self):
        with pytest.raises(ValueError):
            register_model("custom-llm", "max_output_tokens")


class TestBuildCompletionPayload:

    def test_new_family_drops_temperature(self):
        payload = build_completion_payload("gpt-5", [{"role": "user", "content": "hola"}], 1500, temperature=0.7)

        assert payload == {
            "model": "gpt-5",
            "messages": [{"role": "user", "content": "hola"}],
            "max_completion_tokens": 1500,
        }

    def test_legacy_family_uses_max_tokens(self):
        payload = build_completion_payload("gpt-4", [], 800, temperature=0.7)

        assert payload["max_tokens"] == 800
        assert payload["temperature"] == 0.7
        assert "max_completion_tokens" not in payload

    def test_gpt4o_keeps_temperature(self):
        payload = build_completion_payload("gpt-4o", [], 800, temperature=0.3)

        assert payload["max_completion_tokens"] == 800
        assert payload["temperature"] == 0.3
