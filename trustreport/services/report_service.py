"""Report generation service for TrustReport.

Orchestrates the report pipeline: load the scored record and its context,
aggregate and classify, apply the personal adjustment, reuse or generate the
AI narrative and render the HTML document. Only a missing input record fails
a report; every collaborator failure degrades the output instead.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, ValidationError as SchemaValidationError

from trustreport.cache.analysis_cache import AnalysisCache
from trustreport.cache.cache_keys import CacheKeys
from trustreport.cache.cache_manager import CacheManager
from trustreport.core.config import get_settings
from trustreport.database.mongodb import MongoDBOperations, id_filter, to_object_id
from trustreport.llm.narrative_generator import NarrativeGenerator, NarrativeResult
from trustreport.models.ai_analysis_cache import AnalysisResult
from trustreport.models.exam_attempt import AttemptQuestion, Exam, ExamAttempt, ExamSession
from trustreport.models.personality_result import (
    PersonalityQuestion,
    PersonalityResponse,
    PersonalityResult,
)
from trustreport.models.profile import PersonalFactors, Profile
from trustreport.models.report_config import ReportConfig, SystemConfig
from trustreport.reports.html_builder import OceanReportBuilder, ReliabilityReportBuilder
from trustreport.reports.template_renderer import (
    DEFAULT_RELIABILITY_TEMPLATE,
    build_template_context,
    render_template,
)
from trustreport.schemas.base import MessageResponse
from trustreport.schemas.report_schemas import (
    OceanReportRequest,
    ReliabilityReportRequest,
    ReportMetadata,
    ReportResponse,
    SaveAnalysisRequest,
    TemplateReportData,
    TemplateReportRequest,
    TemplateReportResponse,
)
from trustreport.services.adjustment_service import AdjustmentClient, AdjustmentOutcome, AdjustmentService
from trustreport.services.scoring_service import OceanProfile, ReliabilityResult, ScoringService
from trustreport.utils.constants import AnalysisType, Collections, OceanDimension, UNCATEGORIZED_LABEL
from trustreport.utils.datetime_utils import utc_now
from trustreport.utils.exceptions import CacheError, DatabaseError, ResourceNotFoundError
from trustreport.utils.logger import PerformanceLogger, get_logger

settings = get_settings()
logger = get_logger(__name__)

OCEAN_TEST_TITLE = "Evaluación de Personalidad OCEAN"
NO_NAME = "Sin nombre"
NO_TITLE = "Sin título"

RowModel = TypeVar("RowModel", bound=BaseModel)


def _any_id(value: Any) -> Dict[str, List[Any]]:
    """Match a reference stored either as ObjectId or as a string."""
    converted = to_object_id(value)
    if isinstance(converted, ObjectId):
        return {"$in": [converted, str(value)]}
    return {"$in": [value]}


def _validate_rows(model: Type[RowModel], docs: List[Dict[str, Any]], kind: str) -> List[RowModel]:
    """Validate raw rows, skipping the ones that do not fit the model."""
    rows = []
    for doc in docs:
        try:
            rows.append(model.model_validate(doc))
        except SchemaValidationError as e:
            logger.warning(
                f"Skipping invalid {kind}: {e.error_count()} validation errors",
                extra={"row_id": str(doc.get("_id")), "kind": kind}
            )
    return rows


class ReliabilityReportData(BaseModel):
    """Everything loaded and computed for one reliability attempt."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    attempt: ExamAttempt
    exam: Optional[Exam] = None
    profile: Optional[Profile] = None
    result: ReliabilityResult
    session_id: Optional[str] = None
    personal_factors: Optional[PersonalFactors] = None
    report_config: ReportConfig
    system_config: SystemConfig


class OceanReportData(BaseModel):
    """Everything loaded and computed for one personality result."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    personality_result: PersonalityResult
    profile: Optional[Profile] = None
    ocean_profile: OceanProfile
    adjusted_scores: Dict[str, float]
    report_config: ReportConfig
    system_config: SystemConfig


class ReportService:
    """Builds reliability and OCEAN reports."""

    def __init__(
        self,
        db=None,
        cache_manager: Optional[CacheManager] = None,
        analysis_cache: Optional[AnalysisCache] = None,
        adjustment_client: Optional[AdjustmentClient] = None,
        scoring_service: Optional[ScoringService] = None,
        narrative_factory: Optional[Callable[[SystemConfig], NarrativeGenerator]] = None,
    ):
        """Initialize report service.

        Args:
            db: Data access facade (defaults to MongoDBOperations)
            cache_manager: Redis cache for configuration documents
            analysis_cache: Narrative cache
            adjustment_client: Personal adjustment collaborator
            scoring_service: Scoring and classification
            narrative_factory: Builds a narrative generator for a system configuration
        """
        self.db = db or MongoDBOperations
        self.cache = cache_manager or CacheManager()
        self.analysis_cache = analysis_cache or AnalysisCache(self.db)
        self.adjustment = adjustment_client or AdjustmentClient(local_service=AdjustmentService(self.db))
        self.scoring = scoring_service or ScoringService()
        self.narrative_factory = narrative_factory or NarrativeGenerator

    # ========================================================================
    # RELIABILITY
    # ========================================================================

    async def generate_reliability_report(self, request: ReliabilityReportRequest) -> ReportResponse:
        """Generate the HTML reliability report of an exam attempt.

        Args:
            request: Report request

        Returns:
            ReportResponse: HTML document and metadata

        Raises:
            ResourceNotFoundError: If the attempt does not exist
        """
        with PerformanceLogger("reliability_report", logger, warn_after_ms=30000):
            data = await self._prepare_reliability(request.exam_attempt_id)

            narrative = NarrativeResult()
            if request.include_analysis:
                narrative = await self._reliability_narrative(data, request.force_regenerate)

            builder = ReliabilityReportBuilder(
                report_config=data.report_config,
                system_name=data.system_config.display_name,
                logo_url=data.system_config.logo_url,
            )
            html = builder.build(
                attempt=data.attempt,
                result=data.result,
                profile=data.profile,
                exam=data.exam,
                analysis=narrative.analysis,
                conclusions=narrative.conclusions,
                include_charts=request.include_charts,
                include_analysis=request.include_analysis,
            )

        logger.info(
            "Reliability report generated",
            extra={
                "exam_attempt_id": request.exam_attempt_id,
                "overall_risk": data.result.effective_risk.value,
                "has_analysis": narrative.analysis is not None,
            }
        )

        return ReportResponse(
            html=html,
            success=True,
            metadata=ReportMetadata(
                candidate=(data.profile.full_name if data.profile else None) or NO_NAME,
                exam=(data.exam.title if data.exam else None) or NO_TITLE,
                date=utc_now().isoformat(),
            ),
        )

    async def generate_template_report(self, request: TemplateReportRequest) -> TemplateReportResponse:
        """Render a reliability attempt through the placeholder template.

        The request template wins over the exam's configured template, which
        wins over the built-in one.

        Raises:
            ResourceNotFoundError: If the attempt does not exist
        """
        data = await self._prepare_reliability(request.exam_attempt_id)

        narrative = NarrativeResult()
        if request.include_analysis:
            narrative = await self._reliability_narrative(data, force_regenerate=False)

        context = build_template_context(
            attempt=data.attempt,
            result=data.result,
            profile=data.profile,
            exam=data.exam,
            personal_factors=data.personal_factors,
            report_config=data.report_config,
            analysis=narrative.analysis,
            conclusions=narrative.conclusions,
        )
        template = request.custom_template or data.report_config.custom_template or DEFAULT_RELIABILITY_TEMPLATE
        html = render_template(template, context.to_placeholders())

        return TemplateReportResponse(
            html_content=html,
            report_data=TemplateReportData(
                candidate_name=(data.profile.full_name if data.profile else None) or NO_NAME,
                exam_title=(data.exam.title if data.exam else None) or NO_TITLE,
                total_score=data.result.total_score,
                risk_level=data.result.effective_risk.value,
            ),
        )

    async def _prepare_reliability(self, exam_attempt_id: str) -> ReliabilityReportData:
        attempt = ExamAttempt.from_mongo(
            await self.db.find_one(Collections.EXAM_ATTEMPTS, id_filter(exam_attempt_id))
        )
        if attempt is None:
            raise ResourceNotFoundError(
                "No se encontró el intento de examen",
                resource_type="exam_attempt",
                resource_id=exam_attempt_id,
            )

        exam = await self._load_exam(attempt.exam_id)
        profile = await self._load_profile(attempt.user_id)
        questions = await self._enrich_questions(attempt.questions)
        report_config = await self._load_report_config(attempt.exam_id)
        system_config = await self._load_system_config()

        result = self.scoring.score_reliability(questions, attempt.answers)

        session_id = await self._find_session_id(attempt.exam_id, attempt.user_id)
        outcome = await self.adjustment.calculate(
            session_id=session_id,
            base_scores=result.total_score,
            result_type=AnalysisType.RELIABILITY.value,
            attempt_id=attempt.id,
        )
        if outcome is not None and isinstance(outcome.adjusted_scores, (int, float)):
            result = self.scoring.apply_adjustment(
                result,
                outcome.adjusted_scores,
                adjustment=outcome.adjustment,
                personal_factors=outcome.personal_factors,
            )

        return ReliabilityReportData(
            attempt=attempt,
            exam=exam,
            profile=profile,
            result=result,
            session_id=session_id,
            personal_factors=self._personal_factors(outcome, session_id),
            report_config=report_config,
            system_config=system_config,
        )

    async def _reliability_narrative(self, data: ReliabilityReportData, force_regenerate: bool) -> NarrativeResult:
        attempt = data.attempt
        result = data.result
        input_data = self.analysis_cache.build_input_data(
            exam_id=attempt.exam_id,
            user_id=attempt.user_id,
            categories={c.category_name: c.total_score for c in result.categories},
            total_score=(
                result.adjusted_total_score if result.adjusted_total_score is not None else result.total_score
            ),
            overall_risk=result.effective_risk.value,
        )

        async def generate() -> NarrativeResult:
            generator = self.narrative_factory(data.system_config)
            try:
                return await generator.generate_reliability_narrative(data.profile, result)
            finally:
                await generator.close()

        narrative, generated = await self._cached_narrative(
            user_id=attempt.user_id,
            scope_id=attempt.exam_id,
            analysis_type=AnalysisType.RELIABILITY.value,
            input_data=input_data,
            force_regenerate=force_regenerate,
            generate=generate,
        )

        if generated and narrative.is_complete:
            await self._mirror_narrative(
                Collections.EXAM_ATTEMPTS, attempt.id, "ai_analysis", narrative
            )
        return narrative

    # ========================================================================
    # OCEAN
    # ========================================================================

    async def generate_ocean_report(self, request: OceanReportRequest) -> ReportResponse:
        """Generate the HTML OCEAN report of a personality result.

        Args:
            request: Report request

        Returns:
            ReportResponse: HTML document and metadata

        Raises:
            ResourceNotFoundError: If the personality result does not exist
        """
        with PerformanceLogger("ocean_report", logger, warn_after_ms=30000):
            data = await self._prepare_ocean(request.personality_result_id)

            narrative = NarrativeResult()
            if request.include_analysis:
                narrative = await self._ocean_narrative(data, request.force_regenerate, request.selected_model)

            builder = OceanReportBuilder(
                report_config=data.report_config,
                system_name=data.system_config.display_name,
                logo_url=data.system_config.logo_url,
            )
            html = builder.build(
                personality_result=data.personality_result,
                profile_data=data.ocean_profile,
                profile=data.profile,
                analysis=narrative.analysis,
                conclusions=narrative.conclusions,
                include_charts=request.include_charts,
                include_analysis=request.include_analysis,
            )

        logger.info(
            "OCEAN report generated",
            extra={
                "personality_result_id": request.personality_result_id,
                "profile_type": data.ocean_profile.overall.profile_type.value,
                "has_analysis": narrative.analysis is not None,
            }
        )

        return ReportResponse(
            html=html,
            success=True,
            metadata=ReportMetadata(
                candidate=(data.profile.full_name if data.profile else None) or NO_NAME,
                test=OCEAN_TEST_TITLE,
                date=utc_now().isoformat(),
            ),
        )

    async def _prepare_ocean(self, personality_result_id: str) -> OceanReportData:
        personality_result = PersonalityResult.from_mongo(
            await self.db.find_one(Collections.PERSONALITY_RESULTS, id_filter(personality_result_id))
        )
        if personality_result is None:
            raise ResourceNotFoundError(
                "No se encontró el resultado de personalidad",
                resource_type="personality_result",
                resource_id=personality_result_id,
            )

        profile = await self._load_profile(personality_result.user_id)
        report_config = await self._load_default_report_config()
        system_config = await self._load_system_config()

        total_responses = 0
        if personality_result.has_dimension_scores():
            base_scores = {dim.value: score or 0.0 for dim, score in personality_result.dimension_scores().items()}
        else:
            derived, total_responses = await self._derive_ocean_scores(personality_result)
            base_scores = {dim.value: derived.get(dim, 0.0) for dim in OceanDimension}

        adjusted_scores = dict(base_scores)
        outcome = await self.adjustment.calculate(
            session_id=personality_result.session_id,
            base_scores=base_scores,
            result_type=AnalysisType.OCEAN.value,
            personality_result_id=personality_result.id,
        )
        if outcome is not None and isinstance(outcome.adjusted_scores, dict):
            adjusted_scores.update({
                key: float(value) for key, value in outcome.adjusted_scores.items()
                if key in base_scores and isinstance(value, (int, float))
            })

        ocean_profile = self.scoring.build_ocean_profile(
            {OceanDimension(key): value for key, value in adjusted_scores.items()},
            motivations=personality_result.motivation_scores(),
            total_responses=total_responses,
        )

        return OceanReportData(
            personality_result=personality_result,
            profile=profile,
            ocean_profile=ocean_profile,
            adjusted_scores=adjusted_scores,
            report_config=report_config,
            system_config=system_config,
        )

    async def _derive_ocean_scores(self, personality_result: PersonalityResult) -> Tuple[Dict[OceanDimension, float], int]:
        """Score a personality session from its raw responses."""
        if not personality_result.session_id:
            return {}, 0

        response_docs = await self.db.find(
            Collections.PERSONALITY_RESPONSES,
            {"session_id": _any_id(personality_result.session_id)},
        )
        responses = _validate_rows(PersonalityResponse, response_docs, "personality response")
        if not responses:
            return {}, 0

        question_ids = list({str(r.question_id) for r in responses})
        question_docs = await self.db.find(
            Collections.PERSONALITY_QUESTIONS,
            {"_id": {"$in": [to_object_id(qid) for qid in question_ids] + question_ids}},
        )
        questions = {
            str(question.id): question
            for question in _validate_rows(PersonalityQuestion, question_docs, "personality question")
        }

        logger.info(
            "Derived OCEAN scores from raw responses",
            extra={"session_id": personality_result.session_id, "responses": len(responses)}
        )
        return self.scoring.score_ocean_responses(responses, questions), len(responses)

    async def _ocean_narrative(
        self,
        data: OceanReportData,
        force_regenerate: bool,
        selected_model: Optional[str],
    ) -> NarrativeResult:
        personality_result = data.personality_result
        profile = data.profile or Profile()
        input_data = self.analysis_cache.build_input_data(
            ocean_scores=data.adjusted_scores,
            motivations=personality_result.motivation_scores(),
            user_profile={"company": profile.company, "area": profile.area, "section": profile.section},
        )

        async def generate() -> NarrativeResult:
            generator = self.narrative_factory(data.system_config)
            try:
                return await generator.generate_ocean_narrative(data.profile, data.ocean_profile, selected_model)
            finally:
                await generator.close()

        narrative, generated = await self._cached_narrative(
            user_id=personality_result.user_id,
            scope_id=personality_result.psychometric_test_id,
            analysis_type=AnalysisType.OCEAN.value,
            input_data=input_data,
            force_regenerate=force_regenerate,
            generate=generate,
        )

        if generated and narrative.is_complete:
            await self._mirror_narrative(
                Collections.PERSONALITY_RESULTS, personality_result.id, "ai_interpretation", narrative
            )
        return narrative

    # ========================================================================
    # ANALYSIS CACHE
    # ========================================================================

    async def save_analysis(self, request: SaveAnalysisRequest) -> MessageResponse:
        """Store an externally produced narrative for a session.

        Raises:
            ResourceNotFoundError: If no user can be resolved for the session
            CacheError: If the narrative could not be stored
        """
        analysis_type = AnalysisType(request.analysis_type)
        user_id, scope_id = await self._resolve_session_owner(request.session_id, analysis_type)
        if not user_id:
            raise ResourceNotFoundError(
                "No se pudo determinar el usuario para el análisis",
                resource_type="session",
                resource_id=request.session_id,
            )

        entry_id = await self.analysis_cache.save_manual(
            user_id=user_id,
            scope_id=scope_id or request.session_id,
            analysis_type=analysis_type.value,
            analysis=request.analysis,
            model=request.model,
        )
        if entry_id is None:
            raise CacheError("Error al guardar análisis en cache", operation="save_manual")

        narrative = NarrativeResult(analysis=request.analysis, model_used=request.model)
        if analysis_type == AnalysisType.OCEAN:
            await self._mirror_narrative_where(
                Collections.PERSONALITY_RESULTS,
                {"session_id": _any_id(request.session_id)},
                "ai_interpretation",
                narrative,
            )
        elif scope_id:
            await self._mirror_narrative_where(
                Collections.EXAM_ATTEMPTS,
                {"exam_id": _any_id(scope_id), "user_id": _any_id(user_id)},
                "ai_analysis",
                narrative,
            )

        logger.info(
            "Analysis saved manually",
            extra={"session_id": request.session_id, "analysis_type": analysis_type.value, "entry_id": entry_id}
        )
        return MessageResponse(success=True, message="Análisis guardado exitosamente")

    async def _resolve_session_owner(
        self, session_id: str, analysis_type: AnalysisType
    ) -> Tuple[Optional[str], Optional[str]]:
        """Return the user and cache scope behind a session id."""
        if analysis_type == AnalysisType.OCEAN:
            result = PersonalityResult.from_mongo(
                await self.db.find_one(Collections.PERSONALITY_RESULTS, {"session_id": _any_id(session_id)})
            )
            if result is None:
                return None, None
            return result.user_id, result.psychometric_test_id

        session = ExamSession.from_mongo(
            await self.db.find_one(Collections.EXAM_SESSIONS, id_filter(session_id))
        )
        if session is None:
            return None, None

        user_id = session.user_id
        # Older sessions reference the candidate by email
        if user_id and "@" in user_id:
            profile = Profile.from_mongo(
                await self.db.find_one(Collections.PROFILES, {"email": user_id})
            )
            user_id = profile.id if profile else None

        return user_id, session.exam_id

    async def _cached_narrative(
        self,
        user_id: Optional[str],
        scope_id: Optional[str],
        analysis_type: str,
        input_data: Dict[str, Any],
        force_regenerate: bool,
        generate: Callable[[], Awaitable[NarrativeResult]],
    ) -> Tuple[NarrativeResult, bool]:
        """Reuse a cached narrative or generate and store a new one.

        Returns:
            The narrative and whether it was freshly generated
        """
        if not user_id:
            return await generate(), True

        fingerprint = self.analysis_cache.compute_fingerprint(input_data)

        if not force_regenerate:
            entry = await self.analysis_cache.lookup(user_id, scope_id, analysis_type, fingerprint)
            if entry is not None:
                cached = entry.ai_analysis_result
                return NarrativeResult(
                    analysis=cached.analysis,
                    conclusions=cached.conclusions,
                    model_used=cached.model_used or entry.model_used,
                    tokens_used=entry.tokens_used,
                ), False

        narrative = await generate()

        if narrative.is_complete:
            await self.analysis_cache.store(
                user_id=user_id,
                scope_id=scope_id,
                analysis_type=analysis_type,
                input_data=input_data,
                result=AnalysisResult(
                    analysis=narrative.analysis,
                    conclusions=narrative.conclusions,
                    model_used=narrative.model_used,
                ),
                tokens_used=narrative.tokens_used,
                model_used=narrative.model_used,
                requested_by=user_id,
            )
        else:
            logger.info(
                "Incomplete narrative, not caching",
                extra={"user_id": user_id, "analysis_type": analysis_type}
            )

        return narrative, True

    async def _mirror_narrative(self, collection: str, record_id: Optional[str], field: str, narrative: NarrativeResult) -> None:
        if record_id:
            await self._mirror_narrative_where(collection, id_filter(record_id), field, narrative)

    async def _mirror_narrative_where(
        self, collection: str, filter_dict: Dict[str, Any], field: str, narrative: NarrativeResult
    ) -> None:
        """Copy the narrative onto the scored record for older readers."""
        payload = {"analysis": narrative.analysis}
        if narrative.conclusions is not None:
            payload["conclusions"] = narrative.conclusions

        try:
            await self.db.update_many(
                collection,
                filter_dict,
                {"$set": {field: payload, "ai_analysis_generated_at": utc_now()}},
            )
        except DatabaseError as e:
            logger.error(
                f"Failed to mirror narrative onto {collection}: {e.message}",
                extra={"event_type": "cache_write_failure", "collection": collection}
            )

    # ========================================================================
    # LOADERS
    # ========================================================================

    async def _load_exam(self, exam_id: Optional[str]) -> Optional[Exam]:
        if not exam_id:
            return None
        return Exam.from_mongo(await self.db.find_one(Collections.EXAMS, id_filter(exam_id)))

    async def _load_profile(self, user_id: Optional[str]) -> Optional[Profile]:
        if not user_id:
            return None
        return Profile.from_mongo(await self.db.find_one(Collections.PROFILES, id_filter(user_id)))

    async def _find_session_id(self, exam_id: Optional[str], user_id: Optional[str]) -> Optional[str]:
        """Newest exam session of the candidate for the exam."""
        if not exam_id or not user_id:
            return None

        session = ExamSession.from_mongo(await self.db.find_one(
            Collections.EXAM_SESSIONS,
            {"exam_id": _any_id(exam_id), "user_id": _any_id(user_id)},
            sort=[("created_at", -1)],
        ))
        return session.id if session else None

    @staticmethod
    def _personal_factors(outcome: Optional[AdjustmentOutcome], session_id: Optional[str]) -> Optional[PersonalFactors]:
        if outcome is None:
            return None
        return PersonalFactors(
            session_id=session_id,
            ajuste_total=outcome.adjustment,
            **{
                k: v for k, v in outcome.personal_factors.items()
                if k in PersonalFactors.model_fields and k not in ("ajuste_total", "session_id")
            },
        )

    async def _enrich_questions(self, questions: List[AttemptQuestion]) -> List[AttemptQuestion]:
        """Overlay text, category and population average from the question bank."""
        ids = [str(q.id) for q in questions if q.id is not None]
        if not ids:
            return questions

        docs = await self.db.find(
            Collections.QUESTIONS,
            {"_id": {"$in": [to_object_id(qid) for qid in ids] + ids}},
        )
        details = {}
        for doc in docs:
            detail = AttemptQuestion.model_validate(doc)
            details[str(detail.id)] = detail

        enriched = []
        for question in questions:
            detail = details.get(str(question.id))
            if detail is None:
                enriched.append(question)
                continue

            enriched.append(question.model_copy(update={
                "question_text": detail.question_text or question.question_text,
                "category_name": (
                    detail.category_name if detail.category_name != UNCATEGORIZED_LABEL else question.category_name
                ),
                "national_average": (
                    detail.national_average if detail.national_average is not None else question.national_average
                ),
            }))

        return enriched

    async def _load_report_config(self, exam_id: Optional[str]) -> ReportConfig:
        if not exam_id:
            return await self._load_default_report_config()

        async def fetch():
            doc = await self.db.find_one(Collections.REPORT_CONFIGS, {"exam_id": _any_id(exam_id)})
            return ReportConfig.from_mongo(doc).model_dump(mode="json") if doc else None

        data = await self.cache.get_or_set(
            CacheKeys.report_config(exam_id), fetch, ttl=settings.CONFIG_CACHE_TTL_SECONDS
        )
        return ReportConfig.model_validate(data) if data else ReportConfig()

    async def _load_default_report_config(self) -> ReportConfig:
        """First stored report configuration; OCEAN results have no exam."""
        async def fetch():
            doc = await self.db.find_one(Collections.REPORT_CONFIGS, {}, sort=[("created_at", 1)])
            return ReportConfig.from_mongo(doc).model_dump(mode="json") if doc else None

        data = await self.cache.get_or_set(
            CacheKeys.default_report_config(), fetch, ttl=settings.CONFIG_CACHE_TTL_SECONDS
        )
        return ReportConfig.model_validate(data) if data else ReportConfig()

    async def _load_system_config(self) -> SystemConfig:
        async def fetch():
            doc = await self.db.find_one(Collections.SYSTEM_CONFIG, {})
            return SystemConfig.from_mongo(doc).model_dump(mode="json") if doc else None

        data = await self.cache.get_or_set(
            CacheKeys.system_config(), fetch, ttl=settings.CONFIG_CACHE_TTL_SECONDS
        )
        return SystemConfig.model_validate(data) if data else SystemConfig()


__all__ = ["ReportService", "ReliabilityReportData", "OceanReportData", "OCEAN_TEST_TITLE"]
