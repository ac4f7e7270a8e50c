"""Placeholder template rendering for reliability reports.

Administrators can upload an HTML template containing ``{{KEY}}`` tokens;
the report service fills it from a typed context. Tokens the context does not
know are left in place so a template written for a newer context still
renders.
"""

import re
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel

from trustreport.core.config import get_settings
from trustreport.models.exam_attempt import Exam, ExamAttempt
from trustreport.models.profile import PersonalFactors, Profile
from trustreport.models.report_config import ReportConfig
from trustreport.reports.charts import build_comparison_chart
from trustreport.services.scoring_service import CategoryResult, ReliabilityResult
from trustreport.utils.constants import ANALYSIS_UNAVAILABLE, CONCLUSIONS_UNAVAILABLE, NOT_SPECIFIED
from trustreport.utils.datetime_utils import format_date_es, utc_now

settings = get_settings()

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z0-9_]+)\}\}")
DEFAULT_EXAM_DURATION = 60


def render_template(template: str, context: Mapping[str, Any]) -> str:
    """Replace every ``{{KEY}}`` whose key is in ``context``.

    Args:
        template: Template text
        context: Placeholder values; ``None`` renders as an empty string

    Returns:
        str: Rendered text with unknown placeholders untouched
    """
    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in context:
            return match.group(0)
        value = context[key]
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


class ReliabilityTemplateContext(BaseModel):
    """Values for every placeholder of the reliability template.

    Field names are the placeholder tokens in lowercase. Text fields that
    come from user data are expected to be escaped already; ``category_rows``,
    ``comparison_chart`` and the logo fields carry markup.
    """

    company_name: str
    company_logo: str = ""
    generation_date: str
    candidate_name: str = ""
    candidate_email: str = ""
    candidate_company: str = ""
    candidate_area: str = ""
    candidate_section: str = ""
    exam_date: str = ""
    exam_duration: int = DEFAULT_EXAM_DURATION
    exam_status: str
    overall_score: str
    risk_level: str
    risk_level_class: str
    questions_answered: str
    category_rows: str = ""
    comparison_chart: str = ""
    marital_status: str = NOT_SPECIFIED
    has_children: str = "No"
    housing_status: str = NOT_SPECIFIED
    age: str = NOT_SPECIFIED
    personal_adjustment: str = "0.0"
    ai_detailed_analysis: str = ANALYSIS_UNAVAILABLE
    ai_conclusions: str = CONCLUSIONS_UNAVAILABLE
    footer_logo: str = ""
    company_address: str = ""
    company_phone: str = ""
    company_email: str = ""

    def to_placeholders(self) -> Dict[str, str]:
        return {name.upper(): str(value) for name, value in self}


def build_category_rows(categories: List[CategoryResult]) -> str:
    """Table rows for the ``CATEGORY_ROWS`` placeholder."""
    rows = []
    for category in categories:
        percentile = round(category.total_score / category.max_score * 100) if category.max_score else 0
        rows.append(
            "<tr>"
            f"<td>{escape(category.category_name)}</td>"
            f"<td>{category.total_score}</td>"
            f"<td>{category.national_average or 'N/A'}</td>"
            f"<td>{percentile}%</td>"
            f'<td class="{category.risk.css_class}">{escape(category.risk.value)}</td>'
            "</tr>"
        )
    return "\n".join(rows)


def _logo(url: Optional[str], alt: str) -> str:
    if not url:
        return ""
    return f'<img src="{escape(url)}" alt="{escape(alt)}" style="max-width: 100%; max-height: 100%;">'


def _paragraphs(text: Optional[str], fallback: str) -> str:
    if not text:
        return fallback
    return escape(text).replace("\n", "<br>")


def build_template_context(
    attempt: ExamAttempt,
    result: ReliabilityResult,
    profile: Optional[Profile] = None,
    exam: Optional[Exam] = None,
    personal_factors: Optional[PersonalFactors] = None,
    report_config: Optional[ReportConfig] = None,
    analysis: Optional[str] = None,
    conclusions: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> ReliabilityTemplateContext:
    """Assemble the placeholder context of a reliability report.

    Args:
        attempt: Scored exam attempt
        result: Aggregated (possibly adjusted) result of the attempt
        profile: Candidate profile
        exam: Exam definition
        personal_factors: Factors behind the personal adjustment
        report_config: Branding of the exam's reports
        analysis: AI detailed analysis
        conclusions: AI conclusions
        generated_at: Generation timestamp (now when omitted)

    Returns:
        ReliabilityTemplateContext: Fully populated context
    """
    config = report_config or ReportConfig()
    profile = profile or Profile()
    factors = personal_factors
    tz = settings.REPORT_TIMEZONE
    risk = result.effective_risk

    return ReliabilityTemplateContext(
        company_name=escape(config.company_name or settings.DEFAULT_COMPANY_NAME),
        company_logo=_logo(config.header_logo_url, "Logo"),
        generation_date=format_date_es(generated_at or utc_now(), tz),
        candidate_name=escape(profile.full_name or ""),
        candidate_email=escape(profile.email or ""),
        candidate_company=escape(profile.company or ""),
        candidate_area=escape(profile.area or ""),
        candidate_section=escape(profile.section or ""),
        exam_date=format_date_es(attempt.started_at, tz),
        exam_duration=(exam.duracion_minutos if exam and exam.duracion_minutos else DEFAULT_EXAM_DURATION),
        exam_status="Completado" if attempt.is_completed else "En progreso",
        overall_score=f"{result.total_score}/{result.max_possible_score}",
        risk_level=risk.value,
        risk_level_class=risk.css_class,
        questions_answered=f"{result.answered_questions}/{result.total_questions}",
        category_rows=build_category_rows(result.categories),
        comparison_chart=build_comparison_chart(result.categories),
        marital_status=escape(factors.estado_civil) if factors and factors.estado_civil else NOT_SPECIFIED,
        has_children="Sí" if factors and factors.tiene_hijos else "No",
        housing_status=(
            escape(factors.situacion_habitacional)
            if factors and factors.situacion_habitacional else NOT_SPECIFIED
        ),
        age=str(factors.edad) if factors and factors.edad else NOT_SPECIFIED,
        personal_adjustment=f"{(factors.ajuste_total if factors else 0.0) * 100:.1f}",
        ai_detailed_analysis=_paragraphs(analysis, ANALYSIS_UNAVAILABLE),
        ai_conclusions=_paragraphs(conclusions, CONCLUSIONS_UNAVAILABLE),
        footer_logo=_logo(config.footer_logo_url or config.header_logo_url, "Logo"),
        company_address=escape(config.company_address or ""),
        company_phone=escape(config.company_phone or ""),
        company_email=escape(config.company_email or ""),
    )


DEFAULT_RELIABILITY_TEMPLATE = """<!DOCTYPE html>
<html lang="es">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Reporte de Confiabilidad</title>
    <style>
        body {
            font-family: Arial, sans-serif;
            font-size: 12pt;
            line-height: 1.4;
            margin: 0;
            padding: 20px;
            color: #333;
        }
        .header {
            text-align: center;
            border-bottom: 2px solid #4A90E2;
            padding-bottom: 20px;
            margin-bottom: 30px;
        }
        .logo-section {
            display: flex;
            align-items: center;
            justify-content: center;
            gap: 20px;
            margin-bottom: 15px;
        }
        .logo-box {
            width: 80px;
            height: 80px;
            display: flex;
            align-items: center;
            justify-content: center;
        }
        .company-info h1 {
            color: #4A90E2;
            font-size: 24pt;
            margin: 0;
            font-weight: bold;
        }
        .report-title {
            color: #666;
            font-size: 16pt;
            margin: 5px 0 0 0;
        }
        .section {
            margin: 25px 0;
            page-break-inside: avoid;
        }
        .section-title {
            background-color: #f5f5f5;
            padding: 10px;
            font-weight: bold;
            font-size: 14pt;
            border-left: 4px solid #4A90E2;
            margin-bottom: 15px;
        }
        .info-grid {
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 20px;
            margin: 15px 0;
        }
        .info-item {
            padding: 8px;
            border-bottom: 1px solid #eee;
        }
        .info-label {
            font-weight: bold;
            color: #666;
        }
        .summary-grid {
            display: grid;
            grid-template-columns: 1fr 1fr 1fr;
            gap: 20px;
            text-align: center;
        }
        .summary-card {
            padding: 15px;
            background-color: #f8f9fa;
            border-radius: 5px;
        }
        .score-table {
            width: 100%;
            border-collapse: collapse;
            margin: 15px 0;
            font-size: 11pt;
        }
        .score-table th,
        .score-table td {
            border: 1px solid #ddd;
            padding: 8px;
            text-align: left;
        }
        .score-table th {
            background-color: #f8f9fa;
            font-weight: bold;
        }
        .risk-high { color: #d32f2f; font-weight: bold; }
        .risk-medium { color: #f57c00; font-weight: bold; }
        .risk-low { color: #388e3c; font-weight: bold; }
        .chart-box {
            width: 100%;
            display: flex;
            align-items: center;
            justify-content: center;
            margin: 20px 0;
        }
        .analysis-section {
            background-color: #f9f9f9;
            padding: 15px;
            border-left: 4px solid #4A90E2;
            margin: 20px 0;
        }
        .risk-guide {
            display: grid;
            grid-template-columns: 1fr 1fr 1fr;
            gap: 15px;
        }
        .risk-guide div.guide-low { padding: 15px; background-color: #e8f5e8; border-left: 4px solid #388e3c; }
        .risk-guide div.guide-medium { padding: 15px; background-color: #fff3e0; border-left: 4px solid #f57c00; }
        .risk-guide div.guide-high { padding: 15px; background-color: #ffebee; border-left: 4px solid #d32f2f; }
        .footer {
            border-top: 2px solid #4A90E2;
            padding-top: 20px;
            margin-top: 40px;
            text-align: center;
            font-size: 10pt;
            color: #666;
        }
        .page-break { page-break-before: always; }
        @media print {
            body { margin: 0; padding: 15px; }
        }
    </style>
</head>
<body>
    <div class="header">
        <div class="logo-section">
            <div class="logo-box">{{COMPANY_LOGO}}</div>
            <div class="company-info">
                <h1>{{COMPANY_NAME}}</h1>
                <div class="report-title">Reporte de Evaluación de Confiabilidad</div>
            </div>
        </div>
        <div style="font-size: 11pt; color: #666;">
            Fecha de generación: {{GENERATION_DATE}}
        </div>
    </div>

    <div class="section">
        <div class="section-title">Información Personal del Candidato</div>
        <div class="info-grid">
            <div class="info-item"><div class="info-label">Nombre Completo:</div><div>{{CANDIDATE_NAME}}</div></div>
            <div class="info-item"><div class="info-label">Email:</div><div>{{CANDIDATE_EMAIL}}</div></div>
            <div class="info-item"><div class="info-label">Empresa:</div><div>{{CANDIDATE_COMPANY}}</div></div>
            <div class="info-item"><div class="info-label">Área:</div><div>{{CANDIDATE_AREA}}</div></div>
            <div class="info-item"><div class="info-label">Sección:</div><div>{{CANDIDATE_SECTION}}</div></div>
            <div class="info-item"><div class="info-label">Fecha de Evaluación:</div><div>{{EXAM_DATE}}</div></div>
            <div class="info-item"><div class="info-label">Duración del Examen:</div><div>{{EXAM_DURATION}} minutos</div></div>
            <div class="info-item"><div class="info-label">Estado:</div><div>{{EXAM_STATUS}}</div></div>
        </div>
    </div>

    <div class="section">
        <div class="section-title">Resumen Ejecutivo</div>
        <div class="summary-grid">
            <div class="summary-card">
                <div style="font-size: 24pt; font-weight: bold; color: #4A90E2;">{{OVERALL_SCORE}}</div>
                <div>Puntaje General</div>
            </div>
            <div class="summary-card">
                <div style="font-size: 18pt; font-weight: bold;" class="{{RISK_LEVEL_CLASS}}">{{RISK_LEVEL}}</div>
                <div>Nivel de Riesgo</div>
            </div>
            <div class="summary-card">
                <div style="font-size: 18pt; font-weight: bold; color: #666;">{{QUESTIONS_ANSWERED}}</div>
                <div>Preguntas Respondidas</div>
            </div>
        </div>
    </div>

    <div class="section">
        <div class="section-title">Puntajes por Categoría</div>
        <table class="score-table">
            <thead>
                <tr>
                    <th>Categoría</th>
                    <th>Puntaje Obtenido</th>
                    <th>Promedio Nacional</th>
                    <th>Percentil</th>
                    <th>Nivel de Riesgo</th>
                </tr>
            </thead>
            <tbody>
                {{CATEGORY_ROWS}}
            </tbody>
        </table>
    </div>

    <div class="section">
        <div class="section-title">Comparación con Promedio Nacional</div>
        <div class="chart-box">
            {{COMPARISON_CHART}}
        </div>
    </div>

    <div class="page-break"></div>

    <div class="section">
        <div class="section-title">Factores Personales de Ajuste</div>
        <div class="info-grid">
            <div class="info-item"><div class="info-label">Estado Civil:</div><div>{{MARITAL_STATUS}}</div></div>
            <div class="info-item"><div class="info-label">Tiene Hijos:</div><div>{{HAS_CHILDREN}}</div></div>
            <div class="info-item"><div class="info-label">Situación Habitacional:</div><div>{{HOUSING_STATUS}}</div></div>
            <div class="info-item"><div class="info-label">Edad:</div><div>{{AGE}} años</div></div>
        </div>
        <div style="margin-top: 15px;">
            <div class="info-label">Ajuste Personal Total:</div>
            <div style="font-size: 14pt; font-weight: bold; color: #4A90E2;">{{PERSONAL_ADJUSTMENT}}%</div>
        </div>
    </div>

    <div class="section">
        <div class="section-title">Análisis Detallado</div>
        <div class="analysis-section">
            {{AI_DETAILED_ANALYSIS}}
        </div>
    </div>

    <div class="section">
        <div class="section-title">Conclusiones y Recomendaciones</div>
        <div class="analysis-section">
            {{AI_CONCLUSIONS}}
        </div>
    </div>

    <div class="section">
        <div class="section-title">Interpretación de Niveles de Riesgo</div>
        <div class="risk-guide">
            <div class="guide-low">
                <div class="risk-low">RIESGO BAJO</div>
                <div style="font-size: 10pt;">Comportamiento confiable y consistente con las normas organizacionales.</div>
            </div>
            <div class="guide-medium">
                <div class="risk-medium">RIESGO MEDIO</div>
                <div style="font-size: 10pt;">Requiere supervisión adicional y seguimiento periódico.</div>
            </div>
            <div class="guide-high">
                <div class="risk-high">RIESGO ALTO</div>
                <div style="font-size: 10pt;">Requiere evaluación adicional antes de la contratación.</div>
            </div>
        </div>
    </div>

    <div class="footer">
        <div class="logo-box" style="width: 50px; height: 50px; margin: 0 auto 10px;">{{FOOTER_LOGO}}</div>
        <div style="font-weight: bold;">{{COMPANY_NAME}}</div>
        {{COMPANY_ADDRESS}}<br>
        Teléfono: {{COMPANY_PHONE}}<br>
        Email: {{COMPANY_EMAIL}}<br>
        <div style="margin-top: 10px; font-style: italic;">
            Reporte generado automáticamente el {{GENERATION_DATE}}
        </div>
    </div>
</body>
</html>
"""


__all__ = [
    "DEFAULT_RELIABILITY_TEMPLATE",
    "ReliabilityTemplateContext",
    "build_category_rows",
    "build_template_context",
    "render_template",
]
