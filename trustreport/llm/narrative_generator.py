"""AI narrative generation for reports.

Each report gets two texts: a detailed analysis and, written from that
analysis, conclusions and recommendations. The two completions run strictly
in sequence. Narrative failures never fail a report: every error is logged
as a degraded upstream and turned into a missing text.
"""

import math
from typing import Callable, List, Optional

from pydantic import BaseModel

from trustreport.core.config import get_settings
from trustreport.llm.base_llm import BaseLLM, LLMError, LLMMessage, LLMRequest
from trustreport.llm.openai_llm import OpenAILLM
from trustreport.llm.prompt_manager import PromptManager, format_category_results, format_factor_analysis
from trustreport.models.profile import Profile
from trustreport.models.report_config import ModelSettings, SystemConfig
from trustreport.services.scoring_service import OceanProfile, ReliabilityResult
from trustreport.utils.constants import PromptType
from trustreport.utils.logger import get_llm_logger

settings = get_settings()
logger = get_llm_logger()


class NarrativeResult(BaseModel):
    """Analysis and conclusions produced for one report."""

    analysis: Optional[str] = None
    conclusions: Optional[str] = None
    model_used: Optional[str] = None
    tokens_used: int = 0

    @property
    def is_complete(self) -> bool:
        return bool(self.analysis) and bool(self.conclusions)


def ocean_conclusions_settings(base: ModelSettings) -> ModelSettings:
    """Shorter, slightly cooler settings for the OCEAN conclusions call."""
    return ModelSettings(
        model=base.model,
        temperature=max(0.6, base.temperature - 0.1),
        max_tokens=math.floor(base.max_tokens * 0.6),
    )


class NarrativeGenerator:
    """Writes report narratives through the chat-completion API."""

    def __init__(
        self,
        system_config: Optional[SystemConfig] = None,
        llm: Optional[BaseLLM] = None,
        api_key: Optional[str] = None,
        llm_factory: Optional[Callable[[str], BaseLLM]] = None,
    ):
        """Initialize narrative generator.

        Args:
            system_config: Model and prompt overrides
            llm: Pre-built client (takes precedence over the API key)
            api_key: OpenAI API key (defaults to the configured one)
            llm_factory: Builds a client from an API key
        """
        self.system_config = system_config or SystemConfig()
        self.prompts = PromptManager(self.system_config)
        self._llm = llm
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.llm_factory = llm_factory or (lambda key: OpenAILLM(api_key=key))

    @property
    def is_configured(self) -> bool:
        return self._llm is not None or bool(self.api_key)

    def _get_llm(self) -> BaseLLM:
        if self._llm is None:
            self._llm = self.llm_factory(self.api_key)
        return self._llm

    async def close(self) -> None:
        if self._llm is not None:
            await self._llm.close()

    async def _complete(self, messages: List[LLMMessage], model_settings: ModelSettings, purpose: str):
        request = LLMRequest(
            messages=messages,
            model=model_settings.model,
            temperature=model_settings.temperature,
            max_tokens=model_settings.max_tokens,
            purpose=purpose,
        )
        return await self._get_llm().generate(request)

    # Reliability

    async def generate_reliability_narrative(
        self,
        profile: Optional[Profile],
        result: ReliabilityResult,
    ) -> NarrativeResult:
        """Write the analysis and conclusions of a reliability report.

        Args:
            profile: Candidate profile
            result: Scored attempt

        Returns:
            NarrativeResult: Empty when the API key is missing, a prompt is
            invalid or a call fails; analysis only when the conclusions
            prompt is invalid
        """
        if not self.is_configured:
            logger.info("OpenAI API key not configured, skipping AI analysis")
            return NarrativeResult()

        profile = profile or Profile()
        variables = {
            "candidate_name": profile.full_name,
            "candidate_area": profile.area,
            "candidate_company": profile.company,
            "category_results": format_category_results(result.categories),
            "overall_risk": result.effective_risk.value,
            "total_score": result.total_score,
            "total_questions": result.total_questions,
        }

        analysis_messages = self.prompts.render(PromptType.RELIABILITY_ANALYSIS, variables)
        if analysis_messages is None:
            return NarrativeResult()

        analysis_settings = self.system_config.model_settings(PromptType.RELIABILITY_ANALYSIS)
        conclusions_settings = self.system_config.model_settings(PromptType.RELIABILITY_CONCLUSIONS)

        try:
            analysis = await self._complete(
                analysis_messages, analysis_settings, PromptType.RELIABILITY_ANALYSIS.value
            )

            conclusions_messages = self.prompts.render(
                PromptType.RELIABILITY_CONCLUSIONS,
                {**variables, "analysis_result": analysis.content},
            )
            if conclusions_messages is None:
                return NarrativeResult(
                    analysis=analysis.content,
                    model_used=analysis.model,
                    tokens_used=analysis.usage.total_tokens,
                )

            conclusions = await self._complete(
                conclusions_messages, conclusions_settings, PromptType.RELIABILITY_CONCLUSIONS.value
            )
        except LLMError as e:
            self._log_degraded(e, "reliability")
            return NarrativeResult()

        return NarrativeResult(
            analysis=analysis.content,
            conclusions=conclusions.content,
            model_used=analysis.model,
            tokens_used=analysis.usage.total_tokens + conclusions.usage.total_tokens,
        )

    # OCEAN

    async def generate_ocean_narrative(
        self,
        profile: Optional[Profile],
        ocean_profile: OceanProfile,
        selected_model: Optional[str] = None,
    ) -> NarrativeResult:
        """Write the analysis and conclusions of an OCEAN report.

        Args:
            profile: Candidate profile
            ocean_profile: Interpreted dimension scores
            selected_model: Model chosen in the request, overriding the configured one

        Returns:
            NarrativeResult: Empty on any failure
        """
        if not self.is_configured:
            logger.info("OpenAI API key not configured, skipping AI analysis")
            return NarrativeResult()

        profile = profile or Profile()
        variables = {
            "candidate_name": profile.full_name,
            "candidate_email": profile.email,
            "candidate_area": profile.area,
            "candidate_company": profile.company,
            "factor_analysis": format_factor_analysis(ocean_profile),
            "dominant_trait": ocean_profile.overall.dominant_trait,
            "profile_type": ocean_profile.overall.profile_type.value,
        }

        analysis_messages = self.prompts.render(PromptType.OCEAN, variables)
        if analysis_messages is None:
            return NarrativeResult()

        model_settings = self.system_config.model_settings(PromptType.OCEAN)
        if selected_model:
            model_settings = model_settings.model_copy(update={"model": selected_model})

        try:
            analysis = await self._complete(analysis_messages, model_settings, PromptType.OCEAN.value)

            conclusions_messages = self.prompts.render(
                PromptType.OCEAN_CONCLUSIONS,
                {**variables, "analysis_result": analysis.content},
            )
            if conclusions_messages is None:
                return NarrativeResult(
                    analysis=analysis.content,
                    model_used=analysis.model,
                    tokens_used=analysis.usage.total_tokens,
                )

            conclusions = await self._complete(
                conclusions_messages,
                ocean_conclusions_settings(model_settings),
                PromptType.OCEAN_CONCLUSIONS.value,
            )
        except LLMError as e:
            self._log_degraded(e, "ocean")
            return NarrativeResult()

        return NarrativeResult(
            analysis=analysis.content,
            conclusions=conclusions.content,
            model_used=analysis.model,
            tokens_used=analysis.usage.total_tokens + conclusions.usage.total_tokens,
        )

    @staticmethod
    def _log_degraded(error: LLMError, report_type: str) -> None:
        logger.warning(
            f"AI narrative unavailable: {error.message}",
            extra={
                "event_type": "upstream_degraded",
                "upstream": "openai",
                "report_type": report_type,
                "status_code": error.status_code,
                "model": error.model,
            }
        )


__all__ = ["NarrativeGenerator", "NarrativeResult", "ocean_conclusions_settings"]
