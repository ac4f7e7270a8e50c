"""Unit tests for prompt rendering and validation."""

import pytest
from unittest.mock import patch

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from trustreport.llm.base_llm import LLMRole
from trustreport.llm.prompt_manager import (
    PromptManager,
    PromptTemplate,
    convert_legacy_placeholders,
    format_category_results,
    format_factor_analysis,
    validate_ocean_variables,
    validate_reliability_variables,
)
from trustreport.models.report_config import SystemConfig
from trustreport.services.scoring_service import CategoryResult, ScoringService
from trustreport.utils.constants import OceanDimension, PromptType, RiskLevel


@pytest.fixture
def reliability_variables():
    return {
        "candidate_name": "Ana Pérez",
        "candidate_area": "Finanzas",
        "candidate_company": None,
        "category_results": "- Honestidad: ...",
        "overall_risk": "RIESGO MEDIO",
        "total_score": 12,
        "total_questions": 10,
    }


def render_source(source, **params):
    return SandboxedEnvironment(keep_trailing_newline=True).from_string(source).render(**params)


class TestLegacyPlaceholders:

    def test_known_placeholders_translated(self):
        text = "Candidato ${examAttempt.profiles?.full_name} riesgo ${ categoryData.overallRisk }"

        assert convert_legacy_placeholders(text) == (
            "{% raw %}Candidato {% endraw %}{{ candidate_name }}"
            "{% raw %} riesgo {% endraw %}{{ overall_risk }}"
        )

    def test_unknown_placeholder_kept(self):
        source = convert_legacy_placeholders("${otra.cosa}")

        assert render_source(source) == "${otra.cosa}"

    @pytest.mark.parametrize("text", [
        "Usa el formato {# seccion #} para cada bloque.",
        "{{ cycler.__init__.__globals__.os.getcwd() }}",
        "{% for x in range(3) %}{{ x }}{% endfor %}",
        "Cierra con {% endraw %} y {%- raw %} o {%+ endraw %}",
        "{%{%%}%}{{",
    ])
    def test_template_syntax_is_literal(self, text):
        assert render_source(convert_legacy_placeholders(text), candidate_name="Ana") == text


class TestValidation:

    def test_valid_reliability_variables(self, reliability_variables):
        assert validate_reliability_variables(reliability_variables) == []

    def test_reliability_requires_candidate_and_questions(self, reliability_variables):
        reliability_variables.update({"candidate_name": "  ", "total_questions": 0})

        errors = validate_reliability_variables(reliability_variables)

        assert "Nombre del candidato es requerido" in errors
        assert "Número total de preguntas es requerido" in errors

    def test_ocean_requires_factor_analysis(self):
        errors = validate_ocean_variables({"candidate_name": "Ana", "factor_analysis": ""})

        assert errors == ["Análisis de factores es requerido"]


class TestFormatting:

    def test_format_category_results(self):
        category = CategoryResult(
            category_name="Honestidad",
            total_questions=4,
            total_score=9,
            average=2.25,
            percentage=75.0,
            national_average=1.5,
            difference=0.75,
            risk=RiskLevel.HIGH,
        )

        text = format_category_results([category])

        assert "- Honestidad:" in text
        assert "Puntaje: 9/12 (75.0%)" in text
        assert "Diferencia: +0.75" in text
        assert "Evaluación: RIESGO ALTO" in text

    def test_format_factor_analysis(self):
        profile = ScoringService().build_ocean_profile(
            {OceanDimension.APERTURA: 90, OceanDimension.AMABILIDAD: 50},
            motivations={"logro": 70},
        )

        text = format_factor_analysis(profile)

        assert "- Apertura a la Experiencia: 90.0/100 (Percentil 90% - Muy Alto)" in text
        assert "Rasgo Dominante: Apertura a la Experiencia" in text
        assert "MOTIVACIONES ADICIONALES:" in text
        assert "- Logro: 70.0" in text


class TestPromptManager:
    """Test suite for PromptManager."""

    def test_render_default_reliability_prompt(self, reliability_variables):
        messages = PromptManager().render(PromptType.RELIABILITY_ANALYSIS, reliability_variables)

        assert [m.role for m in messages] == [LLMRole.SYSTEM, LLMRole.USER]
        assert "CANDIDATO: Ana Pérez" in messages[1].content
        assert "Puntaje Total: 12/10" in messages[1].content
        # Missing optional values fall back to a printable default
        assert "EMPRESA: No especificada" in messages[1].content

    def test_invalid_variables_return_none(self, reliability_variables):
        reliability_variables["category_results"] = ""

        assert PromptManager().render(PromptType.RELIABILITY_ANALYSIS, reliability_variables) is None

    def test_override_with_legacy_placeholders(self, reliability_variables):
        config = SystemConfig(
            confiabilidad_analisis_user_prompt="Evalúa a ${examAttempt.profiles?.full_name}: ${categoryData.overallRisk}",
            confiabilidad_analisis_system_prompt="   ",
        )

        messages = PromptManager(config).render(PromptType.RELIABILITY_ANALYSIS, reliability_variables)

        assert messages[1].content == "Evalúa a Ana Pérez: RIESGO MEDIO"
        # Blank override keeps the default system prompt
        assert messages[0].content.startswith("Eres un experto en análisis de riesgo laboral")

    def test_override_text_is_not_executed(self, reliability_variables):
        config = SystemConfig(
            confiabilidad_analisis_system_prompt="{{ cycler.__init__.__globals__.os.getcwd() }}",
            confiabilidad_analisis_user_prompt=(
                "Usa el formato {# seccion #} para cada bloque. "
                "Evalua a ${examAttempt.profiles?.full_name}. {{ candidate_name "
            ),
        )

        messages = PromptManager(config).render(PromptType.RELIABILITY_ANALYSIS, reliability_variables)

        assert messages[0].content == "{{ cycler.__init__.__globals__.os.getcwd() }}"
        assert messages[1].content == (
            "Usa el formato {# seccion #} para cada bloque. Evalua a Ana Pérez. {{ candidate_name"
        )

    def test_templates_render_in_sandbox(self):
        template = PromptTemplate(
            type=PromptType.RELIABILITY_ANALYSIS,
            system_template="{{ cycler.__init__.__globals__.os.getcwd() }}",
            user_template="{{ candidate_name }}",
        )

        with pytest.raises(TemplateError):
            template.render(candidate_name="Ana")

    def test_render_failure_returns_none(self, reliability_variables):
        broken = PromptTemplate(
            type=PromptType.RELIABILITY_ANALYSIS,
            system_template="Sistema",
            user_template="{{ candidate_name ",
        )

        with patch.object(PromptManager, "get_template", return_value=broken):
            assert PromptManager().render(PromptType.RELIABILITY_ANALYSIS, reliability_variables) is None

    def test_ocean_conclusions_prompt_uses_analysis(self):
        messages = PromptManager().render(
            PromptType.OCEAN_CONCLUSIONS,
            {"candidate_name": "Luis", "analysis_result": "Perfil creativo", "dominant_trait": "Apertura"},
        )

        assert "Perfil creativo" in messages[1].content
        assert "Perfil dominante: Apertura" in messages[1].content
