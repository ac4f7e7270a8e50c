"""Unit tests for personal score adjustment.

Covers the scaling rules, the in-process service backed by
``personal_factors`` and the client used by the report pipeline, including
its remote mode over httpx.
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from trustreport.schemas.report_schemas import AdjustmentRequest
from trustreport.services.adjustment_service import (
    AdjustmentClient,
    AdjustmentService,
    apply_personal_adjustment,
)
from trustreport.utils.constants import Collections
from trustreport.utils.exceptions import ResourceNotFoundError, ValidationError


class TestApplyPersonalAdjustment:
    """Tests for the scaling rules."""

    def test_ocean_scores_scaled_and_clamped(self):
        scores = {"apertura": 50.0, "responsabilidad": 98.0, "extraversion": "n/a"}

        adjusted = apply_personal_adjustment(scores, 0.05, "ocean")

        assert adjusted["apertura"] == pytest.approx(52.5)
        assert adjusted["responsabilidad"] == 100.0
        assert adjusted["extraversion"] == "n/a"

    def test_reliability_total_floored_at_zero(self):
        assert apply_personal_adjustment(40, 0.1, "reliability") == pytest.approx(44.0)
        assert apply_personal_adjustment(40, -1.5, "reliability") == 0.0

    def test_unknown_result_type_unchanged(self):
        assert apply_personal_adjustment(40, 0.1, "other") == 40


class TestAdjustmentService:
    """Test suite for AdjustmentService."""

    @pytest.fixture
    def adjustment_service(self, mock_db):
        return AdjustmentService(db=mock_db)

    @pytest.fixture
    def factors_doc(self):
        return {
            "_id": "pf-1",
            "session_id": "session-1",
            "ajuste_total": 0.1,
            "estado_civil": "Casado",
            "tiene_hijos": True,
            "situacion_habitacional": "Propia",
            "edad": 34,
        }

    @pytest.mark.asyncio
    async def test_reliability_adjustment_recorded_on_attempt(self, adjustment_service, mock_db, factors_doc):
        # Arrange
        mock_db.find_one.return_value = factors_doc
        request = AdjustmentRequest(
            session_id="session-1",
            base_scores=30,
            result_type="reliability",
            attempt_id="attempt-1",
        )

        # Act
        response = await adjustment_service.calculate(request)

        # Assert
        assert response.success is True
        assert response.adjusted_scores == pytest.approx(33.0)
        assert response.adjustment == 0.1
        assert response.personal_factors["estado_civil"] == "Casado"

        mock_db.find_one.assert_awaited_once_with(Collections.PERSONAL_FACTORS, {"session_id": "session-1"})
        collection, query, update = mock_db.update_one.await_args.args
        assert collection == Collections.EXAM_ATTEMPTS
        assert query == {"_id": "attempt-1"}
        assert update["$set"]["personal_adjustment"] == 0.1

    @pytest.mark.asyncio
    async def test_ocean_adjustment_recorded_on_result(self, adjustment_service, mock_db, factors_doc):
        mock_db.find_one.return_value = factors_doc
        request = AdjustmentRequest.model_validate({
            "sessionId": "session-1",
            "baseScores": {"apertura": 60},
            "resultType": "ocean",
            "personalityResultId": "result-1",
        })

        response = await adjustment_service.calculate(request)

        assert response.adjusted_scores == {"apertura": pytest.approx(66.0)}
        assert mock_db.update_one.await_args.args[0] == Collections.PERSONALITY_RESULTS

    @pytest.mark.asyncio
    async def test_missing_factors_raises_not_found(self, adjustment_service, mock_db):
        mock_db.find_one.return_value = None
        request = AdjustmentRequest(session_id="nope", base_scores=10, result_type="reliability")

        with pytest.raises(ResourceNotFoundError):
            await adjustment_service.calculate(request)

        mock_db.update_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ocean_requires_dimension_dict(self, adjustment_service):
        request = AdjustmentRequest(session_id="session-1", base_scores=10, result_type="ocean")

        with pytest.raises(ValidationError):
            await adjustment_service.calculate(request)


class TestAdjustmentClient:
    """Tests for the pipeline-facing client."""

    @pytest.mark.asyncio
    async def test_without_session_returns_none(self):
        local = Mock()
        local.calculate = AsyncMock()
        client = AdjustmentClient(base_url="", local_service=local)

        assert await client.calculate(None, 10, "reliability") is None
        local.calculate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_in_process_success(self, mock_db):
        mock_db.find_one.return_value = {"session_id": "session-1", "ajuste_total": 0.2}
        client = AdjustmentClient(base_url="", local_service=AdjustmentService(db=mock_db))

        outcome = await client.calculate("session-1", 10, "reliability")

        assert outcome.adjusted_scores == pytest.approx(12.0)
        assert outcome.adjustment == 0.2

    @pytest.mark.asyncio
    async def test_in_process_failure_degrades(self, mock_db):
        mock_db.find_one.return_value = None
        client = AdjustmentClient(base_url="", local_service=AdjustmentService(db=mock_db))

        with pytest.MonkeyPatch.context() as mp:
            mock_logger = Mock()
            mp.setattr("trustreport.services.adjustment_service.logger", mock_logger)
            outcome = await client.calculate("session-1", 10, "reliability")

        assert outcome is None
        extra = mock_logger.warning.call_args.kwargs["extra"]
        assert extra["event_type"] == "upstream_degraded"

    @pytest.mark.asyncio
    async def test_remote_call_uses_collaborator_contract(self):
        # Arrange
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json={
                "success": True,
                "adjustedScores": {"apertura": 63.0},
                "adjustment": 0.05,
                "personalFactors": {"edad": 30},
            })

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = AdjustmentClient(base_url="http://adjust.test/calculate", http_client=http_client)

        # Act
        outcome = await client.calculate(
            "session-1", {"apertura": 60.0}, "ocean", personality_result_id="result-1"
        )
        await http_client.aclose()

        # Assert
        assert seen["payload"] == {
            "sessionId": "session-1",
            "baseScores": {"apertura": 60.0},
            "resultType": "ocean",
            "personalityResultId": "result-1",
        }
        assert outcome.adjusted_scores == {"apertura": 63.0}
        assert outcome.personal_factors == {"edad": 30}

    @pytest.mark.asyncio
    async def test_remote_error_status_degrades(self):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        client = AdjustmentClient(base_url="http://adjust.test/calculate", http_client=http_client)

        outcome = await client.calculate("session-1", 10, "reliability")
        await http_client.aclose()

        assert outcome is None

    @pytest.mark.asyncio
    async def test_remote_timeout_degrades(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = AdjustmentClient(base_url="http://adjust.test/calculate", http_client=http_client)

        outcome = await client.calculate("session-1", 10, "reliability")
        await http_client.aclose()

        assert outcome is None
