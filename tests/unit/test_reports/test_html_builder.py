"""Unit tests for the HTML report builders."""

from datetime import datetime, timezone

import pytest

from trustreport.models.exam_attempt import Exam, ExamAttempt
from trustreport.models.personality_result import PersonalityResult
from trustreport.models.profile import Profile
from trustreport.models.report_config import IncludeSections, ReportConfig
from trustreport.reports.html_builder import CandidateInfo, OceanReportBuilder, ReliabilityReportBuilder
from trustreport.services.scoring_service import CategoryResult, ReliabilityResult, ScoringService
from trustreport.utils.constants import OceanDimension, RiskLevel

GENERATED_AT = datetime(2026, 10, 19, 17, 30, tzinfo=timezone.utc)


@pytest.fixture
def result():
    categories = [
        CategoryResult(
            category_name="Honestidad",
            total_questions=2,
            total_score=5,
            average=2.5,
            percentage=83.33,
            national_average=1.5,
            difference=1.0,
            risk=RiskLevel.HIGH,
        ),
        CategoryResult(
            category_name="Lealtad",
            total_questions=2,
            total_score=1,
            average=0.5,
            percentage=16.67,
            national_average=1.0,
            difference=-0.5,
            risk=RiskLevel.LOW,
        ),
    ]
    return ReliabilityResult(
        categories=categories,
        total_score=6,
        total_questions=4,
        answered_questions=4,
        overall_risk=RiskLevel.MEDIUM,
    )


@pytest.fixture
def attempt():
    return ExamAttempt(completed_at=datetime(2026, 10, 1, 15, 0, tzinfo=timezone.utc))


@pytest.fixture
def ocean_profile():
    scores = {
        OceanDimension.APERTURA: 85,
        OceanDimension.RESPONSABILIDAD: 72.5,
        OceanDimension.EXTRAVERSION: 64,
        OceanDimension.AMABILIDAD: 50,
        OceanDimension.NEUROTICISMO: 10,
    }
    return ScoringService().build_ocean_profile(scores, motivations={"logro": 4.25})


class TestCandidateInfo:

    def test_fallbacks(self):
        info = CandidateInfo(None)

        assert info.name == "Sin nombre"
        assert info.email == "Sin email"
        assert info.area == "Sin área"
        assert info.date == "Sin fecha"

    def test_date_in_report_timezone(self):
        info = CandidateInfo(Profile(full_name="Ana"), datetime(2026, 10, 2, 3, 0, tzinfo=timezone.utc))

        assert info.name == "Ana"
        assert info.date == "01/10/2026"


class TestReliabilityReportBuilder:
    """Test suite for ReliabilityReportBuilder."""

    def test_complete_document(self, attempt, result):
        # Arrange
        builder = ReliabilityReportBuilder(
            report_config=ReportConfig(company_name="Acme", company_phone="555-0101"),
            system_name="Avsec",
            generated_at=GENERATED_AT,
        )

        # Act
        html = builder.build(
            attempt=attempt,
            result=result,
            profile=Profile(full_name="Ana Pérez"),
            exam=Exam(title="Confiabilidad Operativa"),
            analysis="Texto del análisis",
            conclusions="Texto de conclusiones",
        )

        # Assert
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>Reporte de Evaluación de Confiabilidad - Ana Pérez</title>" in html
        assert "Confiabilidad Operativa" in html
        assert "Tel: 555-0101" in html
        assert "+1.00" in html
        assert "-0.50" in html
        assert "6/12" in html
        assert "<svg" in html
        assert "Análisis de Avsec" in html
        assert "Texto del análisis" in html
        assert "Texto de conclusiones" in html
        assert "19/10/2026" in html

    def test_missing_narrative_shows_fallback(self, attempt, result):
        html = ReliabilityReportBuilder().build(attempt=attempt, result=result)

        assert "Análisis no disponible" in html
        assert "Conclusiones no disponibles" in html

    def test_request_toggles(self, attempt, result):
        html = ReliabilityReportBuilder().build(
            attempt=attempt, result=result, include_charts=False, include_analysis=False
        )

        assert "<svg" not in html
        assert "Análisis no disponible" not in html

    def test_config_sections_disabled(self, attempt, result):
        config = ReportConfig(include_sections=IncludeSections(personal_info=False, category_scores=False, charts=False))

        html = ReliabilityReportBuilder(report_config=config).build(attempt=attempt, result=result)

        assert "Información del Candidato" not in html
        assert "Puntuaciones por Categoría" not in html
        assert "<svg" not in html

    def test_narrative_is_escaped(self, attempt, result):
        html = ReliabilityReportBuilder().build(
            attempt=attempt, result=result, analysis="<b>riesgo</b>", conclusions="ok"
        )

        assert "&lt;b&gt;riesgo&lt;/b&gt;" in html
        assert "<b>riesgo</b>" not in html

    def test_adjusted_and_simulation_summary(self, attempt, result):
        adjusted = result.model_copy(update={
            "adjusted_total_score": 6.3,
            "adjusted_overall_risk": RiskLevel.MEDIUM,
            "personal_adjustment": 0.05,
            "simulation_alerts": ["Lealtad"],
        })

        html = ReliabilityReportBuilder().build(attempt=attempt, result=adjusted, include_analysis=False)

        assert "Puntaje Ajustado:</strong> 6.30 (ajuste personal +5.0%)" in html
        assert "Posible simulación en: Lealtad" in html


class TestOceanReportBuilder:
    """Test suite for OceanReportBuilder."""

    def test_complete_document(self, ocean_profile):
        # Arrange
        builder = OceanReportBuilder(system_name="Avsec", generated_at=GENERATED_AT)

        # Act
        html = builder.build(
            personality_result=PersonalityResult(created_at=GENERATED_AT),
            profile_data=ocean_profile,
            profile=Profile(full_name="Luis Gómez", company="Acme"),
            analysis="Perfil creativo",
            conclusions="Asignar a innovación",
        )

        # Assert
        assert "<title>Reporte de Personalidad OCEAN - Luis Gómez</title>" in html
        assert "Generado el 19/10/2026 a las 12:30:00" in html
        assert "85.0/100" in html
        assert "72.5/100" in html
        assert "Motivaciones Adicionales" in html
        assert "4.25" in html
        assert "Análisis Profesional de Avsec" in html
        assert "Perfil creativo" in html
        assert "Perfil de Personalidad OCEAN (Big Five)" in html

    def test_without_motivations_or_charts(self):
        profile = ScoringService().build_ocean_profile({dim: 50 for dim in OceanDimension})

        html = OceanReportBuilder().build(
            personality_result=PersonalityResult(),
            profile_data=profile,
            include_charts=False,
        )

        assert "Motivaciones Adicionales" not in html
        assert "<svg" not in html
        assert "Sin nombre" in html
