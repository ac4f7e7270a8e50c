"""Unit tests for ReportService."""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

from trustreport.cache.analysis_cache import AnalysisCache
from trustreport.llm.narrative_generator import NarrativeResult
from trustreport.models.ai_analysis_cache import AIAnalysisCacheEntry, AnalysisResult
from trustreport.schemas.report_schemas import (
    OceanReportRequest,
    ReliabilityReportRequest,
    SaveAnalysisRequest,
    TemplateReportRequest,
)
from trustreport.services.adjustment_service import AdjustmentOutcome
from trustreport.services.report_service import OCEAN_TEST_TITLE, ReportService
from trustreport.utils.constants import Collections
from trustreport.utils.exceptions import CacheError, DatabaseError, ResourceNotFoundError

EXAM_ID = "exam-1"
USER_ID = "user-1"
ATTEMPT_ID = "attempt-1"


def route_find_one(documents):
    """Serve ``find_one`` from a ``{collection: document}`` mapping."""
    async def find_one(collection, filter_dict=None, **kwargs):
        return documents.get(collection)
    return find_one


@pytest.fixture
def attempt_doc():
    return {
        "_id": ATTEMPT_ID,
        "exam_id": EXAM_ID,
        "user_id": USER_ID,
        "status": "completed",
        "completed_at": datetime(2026, 10, 1, 15, 0, tzinfo=timezone.utc),
        "questions": [
            {"_id": "q1", "question_text": "Pregunta 1", "category": "Honestidad", "media_poblacional_pregunta": 1.5},
            {"_id": "q2", "question_text": "Pregunta 2", "category": "Honestidad", "media_poblacional_pregunta": 1.5},
            {"_id": "q3", "question_text": "Pregunta 3", "category": "Lealtad", "media_poblacional_pregunta": 1.0},
        ],
        "answers": {"q1": "A veces", "q2": "Frecuentemente", "q3": "Nunca"},
    }


@pytest.fixture
def documents(attempt_doc):
    return {
        Collections.EXAM_ATTEMPTS: attempt_doc,
        Collections.EXAMS: {"_id": EXAM_ID, "title": "Confiabilidad Operativa"},
        Collections.PROFILES: {"_id": USER_ID, "full_name": "Ana Pérez", "email": "ana@example.com"},
    }


@pytest.fixture
def generator():
    generator = Mock()
    generator.generate_reliability_narrative = AsyncMock(return_value=NarrativeResult(
        analysis="Análisis generado", conclusions="Conclusiones generadas", model_used="gpt-4o", tokens_used=420,
    ))
    generator.generate_ocean_narrative = AsyncMock(return_value=NarrativeResult(
        analysis="Perfil abierto", conclusions="Roles creativos", model_used="gpt-4o", tokens_used=300,
    ))
    generator.close = AsyncMock()
    return generator


@pytest.fixture
def analysis_cache(mock_db):
    cache = AnalysisCache(mock_db)
    cache.lookup = AsyncMock(return_value=None)
    cache.store = AsyncMock(return_value="entry-1")
    cache.save_manual = AsyncMock(return_value="entry-2")
    return cache


@pytest.fixture
def adjustment_client():
    client = Mock()
    client.calculate = AsyncMock(return_value=None)
    return client


@pytest.fixture
def service(mock_db, mock_cache, analysis_cache, adjustment_client, generator, documents):
    mock_db.find_one = AsyncMock(side_effect=route_find_one(documents))
    return ReportService(
        db=mock_db,
        cache_manager=mock_cache,
        analysis_cache=analysis_cache,
        adjustment_client=adjustment_client,
        narrative_factory=Mock(return_value=generator),
    )


class TestReliabilityReport:
    """Test suite for reliability report generation."""

    @pytest.mark.asyncio
    async def test_missing_attempt_raises_not_found(self, service, documents):
        documents.pop(Collections.EXAM_ATTEMPTS)

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.generate_reliability_report(ReliabilityReportRequest(exam_attempt_id="missing"))

        assert exc_info.value.details["resource_type"] == "exam_attempt"

    @pytest.mark.asyncio
    async def test_report_without_analysis(self, service, generator):
        # Act
        response = await service.generate_reliability_report(
            ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID, include_analysis=False)
        )

        # Assert
        assert response.success is True
        assert response.metadata.candidate == "Ana Pérez"
        assert response.metadata.exam == "Confiabilidad Operativa"
        assert "Honestidad" in response.html
        assert "Lealtad" in response.html
        assert "<svg" in response.html
        assert "Análisis no disponible" not in response.html
        service.narrative_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_metadata_fallbacks(self, service, documents):
        documents.pop(Collections.PROFILES)
        documents.pop(Collections.EXAMS)

        response = await service.generate_reliability_report(
            ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID, include_analysis=False)
        )

        assert response.metadata.candidate == "Sin nombre"
        assert response.metadata.exam == "Sin título"

    @pytest.mark.asyncio
    async def test_generated_narrative_is_cached_and_mirrored(self, service, analysis_cache, mock_db):
        # Act
        response = await service.generate_reliability_report(ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID))

        # Assert
        assert "Análisis generado" in response.html
        assert "Conclusiones generadas" in response.html

        store_kwargs = analysis_cache.store.await_args.kwargs
        assert store_kwargs["user_id"] == USER_ID
        assert store_kwargs["scope_id"] == EXAM_ID
        assert store_kwargs["analysis_type"] == "reliability"
        assert store_kwargs["tokens_used"] == 420
        assert store_kwargs["input_data"]["categories"] == {"Honestidad": 5, "Lealtad": 0}
        assert store_kwargs["input_data"]["total_score"] == 5
        assert "analysis_version" in store_kwargs["input_data"]

        mirror_collection, _, update = mock_db.update_many.await_args.args
        assert mirror_collection == Collections.EXAM_ATTEMPTS
        assert update["$set"]["ai_analysis"] == {
            "analysis": "Análisis generado",
            "conclusions": "Conclusiones generadas",
        }

    @pytest.mark.asyncio
    async def test_cache_hit_skips_generation(self, service, analysis_cache, generator):
        # Arrange
        analysis_cache.lookup.return_value = AIAnalysisCacheEntry(
            user_id=USER_ID,
            scope_id=EXAM_ID,
            analysis_type="reliability",
            input_data_hash="abc",
            ai_analysis_result=AnalysisResult(analysis="Análisis previo", conclusions="Conclusiones previas"),
            tokens_used=99,
            expires_at=datetime.now(timezone.utc) + timedelta(days=1),
        )

        # Act
        response = await service.generate_reliability_report(ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID))

        # Assert
        assert "Análisis previo" in response.html
        generator.generate_reliability_narrative.assert_not_awaited()
        analysis_cache.store.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_force_regenerate_bypasses_lookup(self, service, analysis_cache, generator):
        await service.generate_reliability_report(
            ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID, force_regenerate=True)
        )

        analysis_cache.lookup.assert_not_awaited()
        generator.generate_reliability_narrative.assert_awaited_once()
        analysis_cache.store.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_incomplete_narrative_not_cached(self, service, analysis_cache, generator):
        generator.generate_reliability_narrative.return_value = NarrativeResult()

        response = await service.generate_reliability_report(ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID))

        assert "Análisis no disponible" in response.html
        assert "Conclusiones no disponibles" in response.html
        analysis_cache.store.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mirror_failure_does_not_fail_report(self, service, mock_db):
        mock_db.update_many.side_effect = DatabaseError("write failed", operation="update_many")

        response = await service.generate_reliability_report(ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID))

        assert response.success is True

    @pytest.mark.asyncio
    async def test_personal_adjustment_applied(self, service, adjustment_client, documents):
        # Arrange
        documents[Collections.EXAM_SESSIONS] = {"_id": "session-1", "exam_id": EXAM_ID, "user_id": USER_ID}
        adjustment_client.calculate.return_value = AdjustmentOutcome(
            adjusted_scores=5.5,
            adjustment=0.1,
            personal_factors={"estado_civil": "Casado"},
        )

        # Act
        response = await service.generate_reliability_report(
            ReliabilityReportRequest(exam_attempt_id=ATTEMPT_ID, include_analysis=False)
        )

        # Assert
        kwargs = adjustment_client.calculate.await_args.kwargs
        assert kwargs["session_id"] == "session-1"
        assert kwargs["base_scores"] == 5
        assert kwargs["result_type"] == "reliability"
        assert "Puntaje Ajustado" in response.html


class TestTemplateReport:

    @pytest.mark.asyncio
    async def test_request_template_wins(self, service):
        response = await service.generate_template_report(TemplateReportRequest(
            exam_attempt_id=ATTEMPT_ID,
            include_analysis=False,
            custom_template="<p>{{CANDIDATE_NAME}} - {{OVERALL_SCORE}} - {{UNKNOWN_TOKEN}}</p>",
        ))

        assert response.html_content == "<p>Ana Pérez - 5/9 - {{UNKNOWN_TOKEN}}</p>"
        assert response.report_data.candidate_name == "Ana Pérez"
        assert response.report_data.exam_title == "Confiabilidad Operativa"
        assert response.report_data.total_score == 5

    @pytest.mark.asyncio
    async def test_default_template(self, service):
        response = await service.generate_template_report(
            TemplateReportRequest(exam_attempt_id=ATTEMPT_ID, include_analysis=False)
        )

        assert "Ana Pérez" in response.html_content
        assert "{{CANDIDATE_NAME}}" not in response.html_content


class TestOceanReport:
    """Test suite for OCEAN report generation."""

    @pytest.fixture
    def personality_doc(self):
        return {
            "_id": "result-1",
            "session_id": "ps-1",
            "user_id": USER_ID,
            "psychometric_test_id": "test-1",
            "apertura_score": 85,
            "responsabilidad_score": 70,
            "extraversion_score": 55,
            "amabilidad_score": 40,
            "neuroticismo_score": 15,
            "logro_score": 4.2,
        }

    @pytest.mark.asyncio
    async def test_missing_result_raises_not_found(self, service):
        with pytest.raises(ResourceNotFoundError):
            await service.generate_ocean_report(OceanReportRequest(personality_result_id="missing"))

    @pytest.mark.asyncio
    async def test_ocean_report(self, service, documents, personality_doc, generator, analysis_cache):
        # Arrange
        documents[Collections.PERSONALITY_RESULTS] = personality_doc

        # Act
        response = await service.generate_ocean_report(
            OceanReportRequest(personality_result_id="result-1", selected_model="gpt-5")
        )

        # Assert
        assert response.metadata.test == OCEAN_TEST_TITLE
        assert response.metadata.candidate == "Ana Pérez"
        assert "Perfil abierto" in response.html
        assert generator.generate_ocean_narrative.await_args.args[2] == "gpt-5"

        store_kwargs = analysis_cache.store.await_args.kwargs
        assert store_kwargs["scope_id"] == "test-1"
        assert store_kwargs["analysis_type"] == "ocean"
        assert store_kwargs["input_data"]["ocean_scores"]["apertura"] == 85.0

    @pytest.mark.asyncio
    async def test_ocean_adjustment_only_updates_known_dimensions(
        self, service, documents, personality_doc, adjustment_client, analysis_cache
    ):
        documents[Collections.PERSONALITY_RESULTS] = personality_doc
        adjustment_client.calculate.return_value = AdjustmentOutcome(
            adjusted_scores={"apertura": 89.25, "unknown": 10},
            adjustment=0.05,
            personal_factors={},
        )

        await service.generate_ocean_report(OceanReportRequest(personality_result_id="result-1"))

        scores = analysis_cache.store.await_args.kwargs["input_data"]["ocean_scores"]
        assert scores["apertura"] == 89.25
        assert scores["responsabilidad"] == 70.0
        assert "unknown" not in scores

    @pytest.mark.asyncio
    async def test_scores_derived_from_responses_skip_invalid_rows(
        self, service, documents, mock_db, analysis_cache
    ):
        # Arrange
        documents[Collections.PERSONALITY_RESULTS] = {"_id": "result-1", "session_id": "ps-1", "user_id": USER_ID}
        rows = {
            Collections.PERSONALITY_RESPONSES: [
                {"_id": "r1", "question_id": "q1", "response_value": 4},
                {"_id": "r2", "question_id": "q2", "response_value": None},
            ],
            Collections.PERSONALITY_QUESTIONS: [
                {"_id": "q1", "ocean_factor": "apertura"},
                {"_id": "q2", "ocean_factor": "amabilidad"},
                {"_id": "q3", "ocean_factor": 5},
            ],
        }

        async def find(collection, filter_dict=None, **kwargs):
            return rows.get(collection, [])

        mock_db.find = AsyncMock(side_effect=find)

        # Act
        response = await service.generate_ocean_report(OceanReportRequest(personality_result_id="result-1"))

        # Assert
        assert response.success is True
        scores = analysis_cache.store.await_args.kwargs["input_data"]["ocean_scores"]
        assert scores["apertura"] == 75.0
        assert scores["amabilidad"] == 0.0


class TestSaveAnalysis:
    """Test suite for manually saved analyses."""

    @pytest.mark.asyncio
    async def test_reliability_session_with_email_owner(self, service, documents, analysis_cache, mock_db):
        # Arrange
        documents[Collections.EXAM_SESSIONS] = {"_id": "session-1", "exam_id": EXAM_ID, "user_id": "ana@example.com"}

        # Act
        response = await service.save_analysis(SaveAnalysisRequest(
            session_id="session-1", analysis_type="reliability", analysis="Texto manual", model="gpt-4o",
        ))

        # Assert
        assert response.success is True
        analysis_cache.save_manual.assert_awaited_once_with(
            user_id=USER_ID,
            scope_id=EXAM_ID,
            analysis_type="reliability",
            analysis="Texto manual",
            model="gpt-4o",
        )
        assert mock_db.update_many.await_args.args[0] == Collections.EXAM_ATTEMPTS

    @pytest.mark.asyncio
    async def test_unknown_session_raises_not_found(self, service, analysis_cache):
        with pytest.raises(ResourceNotFoundError):
            await service.save_analysis(SaveAnalysisRequest(
                session_id="missing", analysis_type="reliability", analysis="Texto",
            ))

        analysis_cache.save_manual.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_write_raises_cache_error(self, service, documents, analysis_cache):
        documents[Collections.PERSONALITY_RESULTS] = {"_id": "result-1", "session_id": "ps-1", "user_id": USER_ID}
        analysis_cache.save_manual.return_value = None

        with pytest.raises(CacheError):
            await service.save_analysis(SaveAnalysisRequest(
                session_id="ps-1", analysis_type="ocean", analysis="Texto",
            ))

    @pytest.mark.asyncio
    async def test_ocean_scope_falls_back_to_session(self, service, documents, analysis_cache, mock_db):
        documents[Collections.PERSONALITY_RESULTS] = {"_id": "result-1", "session_id": "ps-1", "user_id": USER_ID}

        await service.save_analysis(SaveAnalysisRequest(session_id="ps-1", analysis_type="ocean", analysis="Texto"))

        assert analysis_cache.save_manual.await_args.kwargs["scope_id"] == "ps-1"
        collection, _, update = mock_db.update_many.await_args.args
        assert collection == Collections.PERSONALITY_RESULTS
        assert update["$set"]["ai_interpretation"] == {"analysis": "Texto"}
