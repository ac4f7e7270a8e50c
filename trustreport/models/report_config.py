"""Report layout and system-wide configuration models.

Both documents are maintained through the admin screens of the exam
collaborator; this service only reads them.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from trustreport.core.config import get_settings
from trustreport.models.base import BaseDocument, DocumentId
from trustreport.utils.constants import DEFAULT_MAX_TOKENS, PromptType

settings = get_settings()


class IncludeSections(BaseModel):
    """Toggles for the optional blocks of a report."""

    model_config = ConfigDict(extra="allow")

    personal_info: bool = True
    category_scores: bool = True
    personality_scores: bool = True
    risk_analysis: bool = True
    ocean_analysis: bool = True
    recommendations: bool = True
    charts: bool = True
    detailed_breakdown: bool = True
    conclusion: bool = True


class ReportConfig(BaseDocument):
    """Branding and layout of the reports generated for an exam."""

    exam_id: Optional[DocumentId] = None
    include_sections: IncludeSections = Field(default_factory=IncludeSections)
    font_family: str = "Arial"
    font_size: int = 12
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    company_phone: Optional[str] = None
    company_email: Optional[str] = None
    header_logo_url: Optional[str] = None
    footer_logo_url: Optional[str] = None
    custom_template: Optional[str] = None


class ModelSettings(BaseModel):
    """Chat-completion parameters resolved for one prompt subtype."""

    model: str
    temperature: float
    max_tokens: int


class SystemConfig(BaseDocument):
    """Singleton holding system branding and AI overrides."""

    system_name: Optional[str] = None
    logo_url: Optional[str] = None

    openai_model: Optional[str] = None
    ocean_modelo: Optional[str] = None
    ocean_temperatura: Optional[float] = None
    ocean_max_tokens: Optional[int] = None
    confiabilidad_analisis_modelo: Optional[str] = None
    confiabilidad_analisis_temperatura: Optional[float] = None
    confiabilidad_analisis_max_tokens: Optional[int] = None
    confiabilidad_conclusiones_modelo: Optional[str] = None
    confiabilidad_conclusiones_temperatura: Optional[float] = None
    confiabilidad_conclusiones_max_tokens: Optional[int] = None

    ocean_system_prompt: Optional[str] = None
    ocean_user_prompt: Optional[str] = None
    confiabilidad_analisis_system_prompt: Optional[str] = None
    confiabilidad_analisis_user_prompt: Optional[str] = None
    confiabilidad_conclusiones_system_prompt: Optional[str] = None
    confiabilidad_conclusiones_user_prompt: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.system_name or settings.DEFAULT_SYSTEM_NAME

    def model_settings(self, prompt_type: PromptType) -> ModelSettings:
        """Resolve model, temperature and token budget for a prompt subtype.

        Unset administrator overrides fall back to the service defaults.
        """
        prefix = {
            PromptType.OCEAN: "ocean",
            PromptType.RELIABILITY_ANALYSIS: "confiabilidad_analisis",
            PromptType.RELIABILITY_CONCLUSIONS: "confiabilidad_conclusiones",
        }.get(prompt_type)

        if prefix is None:
            return ModelSettings(
                model=self.openai_model or settings.OPENAI_DEFAULT_MODEL,
                temperature=settings.OPENAI_TEMPERATURE,
                max_tokens=1500,
            )

        model = getattr(self, f"{prefix}_modelo")
        temperature = getattr(self, f"{prefix}_temperatura")
        max_tokens = getattr(self, f"{prefix}_max_tokens")

        return ModelSettings(
            model=model or settings.OPENAI_DEFAULT_MODEL,
            temperature=temperature if temperature is not None else settings.OPENAI_TEMPERATURE,
            max_tokens=max_tokens or DEFAULT_MAX_TOKENS[prompt_type],
        )

    def prompt_overrides(self, prompt_type: PromptType) -> Dict[str, Optional[str]]:
        """Return the administrator's ``system``/``user`` prompts for a subtype."""
        prefix = {
            PromptType.OCEAN: "ocean",
            PromptType.RELIABILITY_ANALYSIS: "confiabilidad_analisis",
            PromptType.RELIABILITY_CONCLUSIONS: "confiabilidad_conclusiones",
        }.get(prompt_type)

        if prefix is None:
            return {"system": None, "user": None}

        return {
            "system": getattr(self, f"{prefix}_system_prompt"),
            "user": getattr(self, f"{prefix}_user_prompt"),
        }


__all__ = ["IncludeSections", "ReportConfig", "ModelSettings", "SystemConfig"]
