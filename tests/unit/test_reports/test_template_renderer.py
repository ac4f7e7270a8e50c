"""Unit tests for placeholder template rendering."""

from datetime import datetime, timezone

import pytest

from trustreport.models.exam_attempt import Exam, ExamAttempt
from trustreport.models.profile import PersonalFactors, Profile
from trustreport.models.report_config import ReportConfig
from trustreport.reports.template_renderer import (
    DEFAULT_RELIABILITY_TEMPLATE,
    PLACEHOLDER_PATTERN,
    build_category_rows,
    build_template_context,
    render_template,
)
from trustreport.services.scoring_service import CategoryResult, ReliabilityResult
from trustreport.utils.constants import RiskLevel


@pytest.fixture
def result():
    category = CategoryResult(
        category_name="Honestidad",
        total_questions=4,
        total_score=6,
        average=1.5,
        percentage=50.0,
        national_average=1.2,
        difference=0.3,
        risk=RiskLevel.MEDIUM,
    )
    return ReliabilityResult(
        categories=[category],
        total_score=6,
        total_questions=4,
        answered_questions=4,
        overall_risk=RiskLevel.MEDIUM,
    )


@pytest.fixture
def attempt():
    return ExamAttempt(
        _id="attempt-1",
        started_at=datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc),
        completed_at=datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc),
    )


class TestRenderTemplate:
    """Test suite for render_template."""

    def test_known_placeholders_replaced(self):
        rendered = render_template("Hola {{CANDIDATE_NAME}}, riesgo {{RISK_LEVEL}}", {
            "CANDIDATE_NAME": "Ana",
            "RISK_LEVEL": "RIESGO BAJO",
        })

        assert rendered == "Hola Ana, riesgo RIESGO BAJO"

    def test_unknown_placeholders_left_in_place(self):
        assert render_template("{{NEW_FIELD}} {{NAME}}", {"NAME": "Ana"}) == "{{NEW_FIELD}} Ana"

    def test_none_renders_empty(self):
        assert render_template("[{{AGE}}]", {"AGE": None}) == "[]"

    def test_repeated_placeholders(self):
        assert render_template("{{X}}-{{X}}", {"X": 1}) == "1-1"

    def test_lowercase_tokens_ignored(self):
        assert render_template("{{name}}", {"name": "Ana"}) == "{{name}}"


class TestCategoryRows:

    def test_row_content(self, result):
        rows = build_category_rows(result.categories)

        assert "<td>Honestidad</td>" in rows
        assert "<td>6</td>" in rows
        assert "<td>1.2</td>" in rows
        assert "<td>50%</td>" in rows
        assert 'class="risk-medium"' in rows

    def test_missing_population_average(self, result):
        category = result.categories[0].model_copy(update={"national_average": 0.0})

        assert "<td>N/A</td>" in build_category_rows([category])


class TestBuildTemplateContext:
    """Test suite for build_template_context."""

    def test_full_context(self, attempt, result):
        # Arrange
        profile = Profile(full_name="Ana <Pérez>", email="ana@example.com", area="Caja")
        factors = PersonalFactors(ajuste_total=0.05, estado_civil="Casado", tiene_hijos=True, edad=34)
        config = ReportConfig(company_name="Acme", header_logo_url="https://cdn.example.com/logo.png")

        # Act
        context = build_template_context(
            attempt=attempt,
            result=result,
            profile=profile,
            exam=Exam(title="Confiabilidad", duracion_minutos=45),
            personal_factors=factors,
            report_config=config,
            analysis="Linea 1\nLinea 2",
            generated_at=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        )
        placeholders = context.to_placeholders()

        # Assert
        assert placeholders["COMPANY_NAME"] == "Acme"
        assert placeholders["CANDIDATE_NAME"] == "Ana &lt;Pérez&gt;"
        assert placeholders["GENERATION_DATE"] == "19/10/2026"
        assert placeholders["EXAM_DATE"] == "10/03/2026"
        assert placeholders["EXAM_DURATION"] == "45"
        assert placeholders["EXAM_STATUS"] == "Completado"
        assert placeholders["OVERALL_SCORE"] == "6/12"
        assert placeholders["QUESTIONS_ANSWERED"] == "4/4"
        assert placeholders["RISK_LEVEL"] == "RIESGO MEDIO"
        assert placeholders["RISK_LEVEL_CLASS"] == "risk-medium"
        assert placeholders["MARITAL_STATUS"] == "Casado"
        assert placeholders["HAS_CHILDREN"] == "Sí"
        assert placeholders["AGE"] == "34"
        assert placeholders["PERSONAL_ADJUSTMENT"] == "5.0"
        assert placeholders["AI_DETAILED_ANALYSIS"] == "Linea 1<br>Linea 2"
        assert placeholders["AI_CONCLUSIONS"] == "Conclusiones no disponibles"
        assert "logo.png" in placeholders["FOOTER_LOGO"]

    def test_defaults_without_optional_data(self, result):
        context = build_template_context(attempt=ExamAttempt(), result=result)

        assert context.company_name == "Avsec Trust"
        assert context.exam_duration == 60
        assert context.exam_status == "En progreso"
        assert context.exam_date == ""
        assert context.marital_status == "No especificado"
        assert context.has_children == "No"
        assert context.personal_adjustment == "0.0"
        assert context.ai_detailed_analysis == "Análisis no disponible"
        assert context.company_logo == ""

    def test_adjusted_risk_used(self, attempt, result):
        adjusted = result.model_copy(update={"adjusted_overall_risk": RiskLevel.HIGH})

        context = build_template_context(attempt=attempt, result=adjusted)

        assert context.risk_level == "RIESGO ALTO"
        assert context.risk_level_class == "risk-high"

    def test_default_template_fully_rendered(self, attempt, result):
        context = build_template_context(attempt=attempt, result=result, profile=Profile(full_name="Ana"))

        rendered = render_template(DEFAULT_RELIABILITY_TEMPLATE, context.to_placeholders())

        assert PLACEHOLDER_PATTERN.search(rendered) is None
        assert "Ana" in rendered
