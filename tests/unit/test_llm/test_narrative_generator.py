"""Unit tests for NarrativeGenerator."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from trustreport.llm.base_llm import LLMError, LLMResponse, LLMUsage
from trustreport.llm.narrative_generator import NarrativeGenerator, NarrativeResult, ocean_conclusions_settings
from trustreport.models.profile import Profile
from trustreport.models.report_config import ModelSettings, SystemConfig
from trustreport.services.scoring_service import CategoryResult, ReliabilityResult, ScoringService
from trustreport.utils.constants import OceanDimension, RiskLevel


def llm_response(content, model="gpt-4o-mini", tokens=100):
    return LLMResponse(content=content, model=model, usage=LLMUsage(total_tokens=tokens))


@pytest.fixture
def mock_llm():
    llm = Mock()
    llm.generate = AsyncMock(side_effect=[llm_response("Análisis", tokens=300), llm_response("Conclusiones", tokens=200)])
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def profile():
    return Profile(full_name="Ana Pérez", email="ana@example.com", company="Acme", area="Finanzas")


@pytest.fixture
def reliability_result():
    category = CategoryResult(
        category_name="Honestidad",
        total_questions=5,
        total_score=6,
        average=1.2,
        percentage=40.0,
        national_average=1.5,
        difference=-0.3,
        risk=RiskLevel.MEDIUM,
    )
    return ReliabilityResult(
        categories=[category],
        total_score=6,
        total_questions=5,
        overall_risk=RiskLevel.MEDIUM,
    )


@pytest.fixture
def ocean_profile():
    return ScoringService().build_ocean_profile({dim: 55 for dim in OceanDimension})


class TestNarrativeGenerator:
    """Test suite for NarrativeGenerator."""

    @pytest.mark.asyncio
    async def test_without_api_key_skips_generation(self, profile, reliability_result):
        factory = Mock()
        generator = NarrativeGenerator(api_key="", llm_factory=factory)

        result = await generator.generate_reliability_narrative(profile, reliability_result)

        assert result == NarrativeResult()
        factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_reliability_narrative(self, mock_llm, profile, reliability_result):
        # Arrange
        config = SystemConfig(
            confiabilidad_analisis_modelo="gpt-4o-mini",
            confiabilidad_conclusiones_modelo="gpt-4",
            confiabilidad_conclusiones_max_tokens=700,
        )
        generator = NarrativeGenerator(system_config=config, llm=mock_llm)

        # Act
        result = await generator.generate_reliability_narrative(profile, reliability_result)

        # Assert
        assert result.analysis == "Análisis"
        assert result.conclusions == "Conclusiones"
        assert result.tokens_used == 500
        assert result.model_used == "gpt-4o-mini"
        assert result.is_complete

        analysis_request, conclusions_request = [c.args[0] for c in mock_llm.generate.await_args_list]
        assert analysis_request.model == "gpt-4o-mini"
        assert analysis_request.max_tokens == 1500
        assert "Honestidad" in analysis_request.messages[1].content
        assert conclusions_request.model == "gpt-4"
        assert conclusions_request.max_tokens == 700
        assert "ANÁLISIS PREVIO: Análisis" in conclusions_request.messages[1].content

    @pytest.mark.asyncio
    async def test_missing_candidate_name_skips_completion(self, mock_llm, reliability_result):
        generator = NarrativeGenerator(llm=mock_llm)

        result = await generator.generate_reliability_narrative(None, reliability_result)

        assert result.analysis is None
        mock_llm.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_conclusions_degrade_whole_narrative(self, profile, reliability_result):
        llm = Mock()
        llm.generate = AsyncMock(side_effect=[
            llm_response("Análisis"),
            LLMError("upstream 500", model="gpt-4o-mini", status_code=500),
        ])
        generator = NarrativeGenerator(llm=llm)

        with patch("trustreport.llm.narrative_generator.logger") as mock_logger:
            result = await generator.generate_reliability_narrative(profile, reliability_result)

        assert result == NarrativeResult()
        extra = mock_logger.warning.call_args.kwargs["extra"]
        assert extra["event_type"] == "upstream_degraded"
        assert extra["report_type"] == "reliability"

    @pytest.mark.asyncio
    async def test_ocean_narrative_with_selected_model(self, mock_llm, profile, ocean_profile):
        config = SystemConfig(ocean_modelo="gpt-4o", ocean_temperatura=0.9, ocean_max_tokens=2000)
        generator = NarrativeGenerator(system_config=config, llm=mock_llm)

        result = await generator.generate_ocean_narrative(profile, ocean_profile, selected_model="gpt-5")

        assert result.is_complete
        analysis_request, conclusions_request = [c.args[0] for c in mock_llm.generate.await_args_list]
        assert analysis_request.model == "gpt-5"
        assert analysis_request.temperature == 0.9
        assert "EMAIL: ana@example.com" in analysis_request.messages[1].content
        assert conclusions_request.model == "gpt-5"
        assert conclusions_request.temperature == pytest.approx(0.8)
        assert conclusions_request.max_tokens == 1200

    @pytest.mark.asyncio
    async def test_ocean_failure_returns_empty(self, profile, ocean_profile):
        llm = Mock()
        llm.generate = AsyncMock(side_effect=LLMError("timeout"))
        generator = NarrativeGenerator(llm=llm)

        result = await generator.generate_ocean_narrative(profile, ocean_profile)

        assert not result.is_complete
        assert result.analysis is None

    @pytest.mark.asyncio
    async def test_llm_built_lazily_from_api_key(self, profile, reliability_result, mock_llm):
        factory = Mock(return_value=mock_llm)
        generator = NarrativeGenerator(api_key="sk-test", llm_factory=factory)

        await generator.generate_reliability_narrative(profile, reliability_result)
        await generator.close()

        factory.assert_called_once_with("sk-test")
        mock_llm.close.assert_awaited_once()


class TestOceanConclusionsSettings:

    def test_temperature_floor_and_token_budget(self):
        settings = ocean_conclusions_settings(ModelSettings(model="gpt-4o", temperature=0.5, max_tokens=2000))

        assert settings.temperature == 0.6
        assert settings.max_tokens == 1200
        assert settings.model == "gpt-4o"

    def test_temperature_lowered(self):
        settings = ocean_conclusions_settings(ModelSettings(model="gpt-4o", temperature=1.0, max_tokens=1001))

        assert settings.temperature == pytest.approx(0.9)
        assert settings.max_tokens == 600
