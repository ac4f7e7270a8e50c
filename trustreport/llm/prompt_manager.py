"""Prompt management for the report narratives.

This module holds the built-in Spanish prompts, renders them (or the
administrator's overrides stored in ``system_config``) with Jinja2 and
validates that the data a prompt needs is actually present before any
completion is requested.

Overrides are plain text with ``${examAttempt.profiles?.full_name}``-style
placeholders. Only the known placeholders become Jinja2 variables; the rest of
an override is rendered verbatim, and every template runs in a sandbox.
"""

import re
from typing import Any, Dict, List, Optional

from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment
from pydantic import BaseModel, Field

from trustreport.llm.base_llm import LLMMessage, LLMRole
from trustreport.models.report_config import SystemConfig
from trustreport.services.scoring_service import CategoryResult, OceanProfile
from trustreport.utils.constants import MAX_ANSWER_SCORE, PromptType
from trustreport.utils.logger import get_llm_logger

logger = get_llm_logger()

_ENVIRONMENT = SandboxedEnvironment(keep_trailing_newline=True)


# ============================================================================
# DEFAULT PROMPTS
# ============================================================================

RELIABILITY_ANALYSIS_SYSTEM_PROMPT = (
    "Eres un experto en análisis de riesgo laboral y evaluación psicométrica. Tu especialidad es "
    "interpretar resultados de evaluaciones de confiabilidad y proporcionar análisis detallados y "
    "objetivos para la toma de decisiones en recursos humanos."
)

RELIABILITY_ANALYSIS_USER_PROMPT = """Analiza los siguientes resultados de una evaluación de confiabilidad laboral:

CANDIDATO: {{ candidate_name }}
ÁREA: {{ candidate_area }}
EMPRESA: {{ candidate_company }}

RESULTADOS POR CATEGORÍA:
{{ category_results }}

EVALUACIÓN GENERAL:
- Riesgo General: {{ overall_risk }}
- Puntaje Total: {{ total_score }}/{{ total_questions }}

Proporciona un análisis detallado que incluya:
1. Interpretación de los resultados por categoría
2. Identificación de fortalezas y áreas de riesgo
3. Análisis del perfil de confiabilidad general
4. Factores de riesgo específicos detectados

Responde de manera profesional y objetiva, enfocándote en la evaluación de riesgo laboral."""

RELIABILITY_CONCLUSIONS_SYSTEM_PROMPT = (
    "Eres un consultor especializado en recursos humanos con expertise en evaluaciones de "
    "confiabilidad. Tu función es proporcionar conclusiones prácticas y recomendaciones basadas en "
    "análisis de riesgo laboral."
)

RELIABILITY_CONCLUSIONS_USER_PROMPT = """Basándote en el análisis de confiabilidad realizado:

CANDIDATO: {{ candidate_name }}
ANÁLISIS PREVIO: {{ analysis_result }}

RESULTADOS GENERALES:
- Riesgo General: {{ overall_risk }}
- Puntaje Total: {{ total_score }}/{{ total_questions }}

Proporciona conclusiones y recomendaciones que incluyan:
1. Recomendación final sobre la confiabilidad del candidato
2. Estrategias de mitigación de riesgos identificados
3. Recomendaciones para el proceso de selección
4. Sugerencias de seguimiento o evaluaciones adicionales

Mantén un enfoque práctico y orientado a la toma de decisiones en recursos humanos."""

OCEAN_SYSTEM_PROMPT = (
    "Eres un experto en psicología organizacional especializado en evaluaciones de personalidad "
    "OCEAN (Big Five). Proporciona análisis profesionales y objetivos basados en los datos de "
    "personalidad para aplicaciones en desarrollo organizacional y selección de personal."
)

OCEAN_USER_PROMPT = """Analiza los siguientes resultados de una evaluación de personalidad OCEAN (Big Five):

CANDIDATO: {{ candidate_name }}
EMAIL: {{ candidate_email }}
POSICIÓN: {{ candidate_area }}
EMPRESA: {{ candidate_company }}

ANÁLISIS DE FACTORES:
{{ factor_analysis }}

Por favor proporciona:
1. Un análisis detallado del perfil de personalidad OCEAN
2. Fortalezas y áreas de desarrollo basadas en el perfil
3. Recomendaciones para roles y ambientes de trabajo apropiados
4. Estrategias de gestión y desarrollo personal

Responde en español y de manera profesional, enfocándote en aplicaciones prácticas para el desarrollo laboral."""

OCEAN_CONCLUSIONS_SYSTEM_PROMPT = (
    "Proporciona conclusiones específicas y recomendaciones para desarrollo organizacional "
    "basadas en perfiles OCEAN."
)

OCEAN_CONCLUSIONS_USER_PROMPT = """Basándote en el análisis anterior, proporciona 4-6 conclusiones específicas y accionables para la gestión y desarrollo de {{ candidate_name or 'este candidato' }}.

ANÁLISIS PREVIO:
{{ analysis_result }}

Considera:
- Perfil dominante: {{ dominant_trait }}
- Tipo de personalidad: {{ profile_type }}
- Dimensiones más altas y más bajas
- Recomendaciones para: ROLES APROPIADOS / ESTILO DE GESTIÓN / DESARROLLO PROFESIONAL / COLABORACIÓN EN EQUIPO

Responde en formato de lista numerada, de manera concisa y profesional, enfocándote en aplicaciones prácticas."""


# ============================================================================
# LEGACY PLACEHOLDERS
# ============================================================================

LEGACY_VARIABLES: Dict[str, str] = {
    "examAttempt.profiles?.full_name": "candidate_name",
    "examAttempt.profiles?.area": "candidate_area",
    "examAttempt.profiles?.company": "candidate_company",
    "categoryData.categoryResults": "category_results",
    "categoryData.overallRisk": "overall_risk",
    "categoryData.totalScore": "total_score",
    "categoryData.totalQuestions": "total_questions",
    "analysisResult": "analysis_result",
    "userInfo.name": "candidate_name",
    "userInfo.email": "candidate_email",
    "userInfo.area": "candidate_area",
    "userInfo.company": "candidate_company",
    "factorAnalysis": "factor_analysis",
}

LEGACY_PLACEHOLDER_PATTERN = re.compile(r"\$\{\s*([^}]+?)\s*\}")

# Optional chaining is irrelevant for lookup
_LEGACY_LOOKUP = {key.replace("?", ""): value for key, value in LEGACY_VARIABLES.items()}

# Values printed when optional data is missing
VARIABLE_FALLBACKS: Dict[str, Any] = {
    "candidate_name": "No especificado",
    "candidate_email": "No especificado",
    "candidate_area": "No especificada",
    "candidate_company": "No especificada",
    "category_results": "No disponible",
    "overall_risk": "No calculado",
    "total_score": 0,
    "total_questions": 0,
    "analysis_result": "No disponible",
    "factor_analysis": "No disponible",
}


def _literal(text: str) -> str:
    """Jinja2 source that renders ``text`` verbatim.

    Every ``{%`` is emitted outside the raw block so the text can never close
    it early.
    """
    return '{{ "{" }}%'.join(
        "{% raw %}" + chunk + "{% endraw %}" if chunk else ""
        for chunk in text.split("{%")
    )


def convert_legacy_placeholders(text: str) -> str:
    """Translate an override into a Jinja2 template.

    Known ``${...}`` placeholders become variables; everything else,
    including unknown placeholders and Jinja2 syntax, is kept as literal text.
    """
    parts = []
    position = 0
    for match in LEGACY_PLACEHOLDER_PATTERN.finditer(text):
        parts.append(_literal(text[position:match.start()]))
        variable = _LEGACY_LOOKUP.get(match.group(1).replace("?", ""))
        parts.append("{{ " + variable + " }}" if variable else _literal(match.group(0)))
        position = match.end()
    parts.append(_literal(text[position:]))
    return "".join(parts)


# ============================================================================
# VARIABLE BUILDERS
# ============================================================================

def format_category_results(categories: List[CategoryResult]) -> str:
    """Describe each category for the reliability prompt."""
    blocks = []
    for category in categories:
        sign = "+" if category.difference > 0 else ""
        blocks.append(
            f"- {category.category_name}:\n"
            f"  * Puntaje: {category.total_score}/{category.total_questions * MAX_ANSWER_SCORE} "
            f"({category.percentage}%)\n"
            f"  * Promedio: {category.average}/3.0\n"
            f"  * Media Nacional: {category.national_average}/3.0\n"
            f"  * Diferencia: {sign}{category.difference}\n"
            f"  * Evaluación: {category.risk.value}\n"
            f"  * Preguntas evaluadas: {category.total_questions}"
        )
    return "\n\n".join(blocks)


def format_factor_analysis(profile: OceanProfile) -> str:
    """Describe dimensions, overall profile and motivations for the OCEAN prompt."""
    lines = ["PUNTUACIONES OCEAN:"]
    for dimension in profile.dimensions:
        lines.append(
            f"- {dimension.name}: {dimension.normalized_score}/100 "
            f"(Percentil {dimension.percentile}% - {dimension.level.value})"
        )
        lines.append(f"  * {dimension.description}")
        lines.append(f"  * Rasgos clave: {', '.join(dimension.traits)}")

    overall = profile.overall
    lines.extend([
        "",
        "PERFIL GENERAL:",
        f"- Rasgo Dominante: {overall.dominant_trait}",
        f"- Rasgo Secundario: {overall.secondary_trait}",
        f"- Tipo de Perfil: {overall.profile_type.value}",
        f"- Promedio General: {overall.average_score}/100",
    ])

    if profile.motivations:
        lines.extend(["", "MOTIVACIONES ADICIONALES:"])
        lines.extend(f"- {m.name}: {m.score}" for m in profile.motivations)

    return "\n".join(lines)


def validate_reliability_variables(variables: Dict[str, Any]) -> List[str]:
    """Return the validation errors of a reliability prompt (empty when valid)."""
    errors = []
    if not str(variables.get("candidate_name") or "").strip():
        errors.append("Nombre del candidato es requerido")
    if not str(variables.get("category_results") or "").strip():
        errors.append("Resultados por categoría son requeridos")
    if not str(variables.get("overall_risk") or "").strip():
        errors.append("Evaluación de riesgo general es requerida")
    if not variables.get("total_questions") or variables["total_questions"] <= 0:
        errors.append("Número total de preguntas es requerido")
    return errors


def validate_ocean_variables(variables: Dict[str, Any]) -> List[str]:
    """Return the validation errors of an OCEAN prompt (empty when valid)."""
    errors = []
    if not str(variables.get("candidate_name") or "").strip():
        errors.append("Nombre del usuario es requerido")
    if not str(variables.get("factor_analysis") or "").strip():
        errors.append("Análisis de factores es requerido")
    return errors


# ============================================================================
# TEMPLATES
# ============================================================================

class PromptTemplate(BaseModel):
    """A system/user prompt pair for one completion subtype."""

    type: PromptType = Field(..., description="Completion subtype")
    system_template: str = Field(..., description="System message template")
    user_template: str = Field(..., description="User message template")

    def render(self, **params) -> List[LLMMessage]:
        """Render the template with provided parameters.

        Args:
            **params: Template parameters

        Returns:
            List[LLMMessage]: System and user messages

        Raises:
            jinja2.TemplateError: If a template cannot be parsed or rendered
        """
        system_content = _ENVIRONMENT.from_string(self.system_template).render(**params)
        user_content = _ENVIRONMENT.from_string(self.user_template).render(**params)

        return [
            LLMMessage(role=LLMRole.SYSTEM, content=system_content.strip()),
            LLMMessage(role=LLMRole.USER, content=user_content.strip()),
        ]


DEFAULT_TEMPLATES: Dict[PromptType, PromptTemplate] = {
    PromptType.RELIABILITY_ANALYSIS: PromptTemplate(
        type=PromptType.RELIABILITY_ANALYSIS,
        system_template=RELIABILITY_ANALYSIS_SYSTEM_PROMPT,
        user_template=RELIABILITY_ANALYSIS_USER_PROMPT,
    ),
    PromptType.RELIABILITY_CONCLUSIONS: PromptTemplate(
        type=PromptType.RELIABILITY_CONCLUSIONS,
        system_template=RELIABILITY_CONCLUSIONS_SYSTEM_PROMPT,
        user_template=RELIABILITY_CONCLUSIONS_USER_PROMPT,
    ),
    PromptType.OCEAN: PromptTemplate(
        type=PromptType.OCEAN,
        system_template=OCEAN_SYSTEM_PROMPT,
        user_template=OCEAN_USER_PROMPT,
    ),
    PromptType.OCEAN_CONCLUSIONS: PromptTemplate(
        type=PromptType.OCEAN_CONCLUSIONS,
        system_template=OCEAN_CONCLUSIONS_SYSTEM_PROMPT,
        user_template=OCEAN_CONCLUSIONS_USER_PROMPT,
    ),
}

VALIDATORS = {
    PromptType.RELIABILITY_ANALYSIS: validate_reliability_variables,
    PromptType.RELIABILITY_CONCLUSIONS: validate_reliability_variables,
    PromptType.OCEAN: validate_ocean_variables,
}


class PromptManager:
    """Resolves, validates and renders the prompts of one report request."""

    def __init__(self, system_config: Optional[SystemConfig] = None):
        """Initialize prompt manager.

        Args:
            system_config: Holder of the administrator's prompt overrides
        """
        self.system_config = system_config or SystemConfig()

    def get_template(self, prompt_type: PromptType) -> PromptTemplate:
        """Default template with any non-empty override applied."""
        default = DEFAULT_TEMPLATES[prompt_type]
        overrides = self.system_config.prompt_overrides(prompt_type)

        system_override = (overrides.get("system") or "").strip()
        user_override = (overrides.get("user") or "").strip()

        return PromptTemplate(
            type=prompt_type,
            system_template=convert_legacy_placeholders(system_override) if system_override else default.system_template,
            user_template=convert_legacy_placeholders(user_override) if user_override else default.user_template,
        )

    def render(self, prompt_type: PromptType, variables: Dict[str, Any]) -> Optional[List[LLMMessage]]:
        """Validate the variables and render the prompt.

        Args:
            prompt_type: Completion subtype
            variables: Raw prompt variables (missing values allowed)

        Returns:
            List[LLMMessage], or None when validation or rendering fails
        """
        validator = VALIDATORS.get(prompt_type)
        errors = validator(variables) if validator else []
        if errors:
            logger.warning(
                "Prompt validation failed, skipping completion",
                extra={"prompt_type": prompt_type.value, "errors": errors}
            )
            return None

        params = dict(VARIABLE_FALLBACKS)
        params.update({k: v for k, v in variables.items() if v not in (None, "")})

        try:
            return self.get_template(prompt_type).render(**params)
        except TemplateError as e:
            logger.error(
                f"Failed to render prompt: {str(e)}",
                extra={"prompt_type": prompt_type.value}
            )
            return None


__all__ = [
    "DEFAULT_TEMPLATES",
    "LEGACY_VARIABLES",
    "PromptManager",
    "PromptTemplate",
    "convert_legacy_placeholders",
    "format_category_results",
    "format_factor_analysis",
    "validate_ocean_variables",
    "validate_reliability_variables",
]
