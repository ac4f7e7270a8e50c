"""
HTML report builders

Produces the self-contained HTML documents returned by the report
endpoints. Each builder takes already-scored data and the report
configuration of the exam; it performs no I/O.

Features:
- Branded header, company block and confidential footer
- Reliability category table with population comparison
- OCEAN dimension cards, personality summary and motivations
- Inline SVG charts
- Escaped AI narrative sections with an explicit fallback text
"""

from datetime import datetime
from html import escape
from typing import List, Optional

from trustreport.core.config import get_settings
from trustreport.models.exam_attempt import Exam, ExamAttempt
from trustreport.models.personality_result import PersonalityResult
from trustreport.models.profile import Profile
from trustreport.models.report_config import ReportConfig
from trustreport.reports.charts import build_ocean_chart, build_reliability_chart
from trustreport.services.scoring_service import OceanProfile, ReliabilityResult
from trustreport.utils.constants import (
    ANALYSIS_UNAVAILABLE,
    CONCLUSIONS_UNAVAILABLE,
    RISK_LEVEL_DESCRIPTIONS,
    RiskLevel,
)
from trustreport.utils.datetime_utils import convert_timezone, format_date_es, utc_now

settings = get_settings()


class CandidateInfo:
    """Candidate header fields with the fallbacks printed when data is missing."""

    def __init__(self, profile: Optional[Profile], evaluated_at=None):
        profile = profile or Profile()
        self.name = profile.full_name or "Sin nombre"
        self.email = profile.email or "Sin email"
        self.area = profile.area or "Sin área"
        self.company = profile.company or "Sin empresa"
        self.section = profile.section or "Sin sección"
        self.date = format_date_es(evaluated_at, settings.REPORT_TIMEZONE, default="Sin fecha")


class BaseReportBuilder:
    """
    Shared layout of the HTML reports.

    Subclasses provide the body sections; header styles, company block,
    footer and document wrapper live here.
    """

    # Titles
    DOCUMENT_TITLE = "Reporte"

    def __init__(
        self,
        report_config: Optional[ReportConfig] = None,
        system_name: Optional[str] = None,
        logo_url: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ):
        """
        Initialize the builder.

        Args:
            report_config: Branding and section toggles of the exam
            system_name: Name the AI sections are attributed to
            logo_url: System logo shown in the header
            generated_at: Generation timestamp (now when omitted)
        """
        self.config = report_config or ReportConfig()
        self.system_name = system_name or settings.DEFAULT_SYSTEM_NAME
        self.logo_url = logo_url
        self.generated_at = generated_at or utc_now()

    @property
    def sections(self):
        return self.config.include_sections

    @property
    def font_size(self) -> int:
        return self.config.font_size

    def _generation_date(self) -> str:
        return format_date_es(self.generated_at, settings.REPORT_TIMEZONE)

    def _generation_time(self) -> str:
        return convert_timezone(self.generated_at, settings.REPORT_TIMEZONE).strftime("%H:%M:%S")

    def _base_css(self) -> str:
        size = self.font_size
        return f"""
        body {{
          font-family: "{escape(self.config.font_family)}", sans-serif;
          font-size: {size}pt;
          margin: 40px;
          line-height: 1.6;
          color: #333;
        }}
        .header {{
          text-align: center;
          border-bottom: 3px solid #1e40af;
          padding-bottom: 20px;
          margin-bottom: 30px;
        }}
        .header-logo {{ max-height: 80px; margin-bottom: 15px; }}
        .company-info {{
          text-align: right;
          margin-bottom: 20px;
          font-size: {max(size - 2, 8)}pt;
          color: #666;
          border-left: 3px solid #3b82f6;
          padding-left: 15px;
        }}
        .section {{
          margin: 25px 0;
          padding: 20px;
          border-left: 4px solid #3b82f6;
          background-color: #f8fafc;
          border-radius: 0 8px 8px 0;
          page-break-inside: avoid;
        }}
        .section h2 {{
          color: #1e40af;
          margin-top: 0;
          font-size: {size + 4}pt;
        }}
        .section h3 {{
          color: #3b82f6;
          font-size: {size + 2}pt;
        }}
        .risk-high {{ color: #dc2626; font-weight: bold; }}
        .risk-medium {{ color: #f59e0b; font-weight: bold; }}
        .risk-low {{ color: #16a34a; font-weight: bold; }}
        .narrative {{ white-space: pre-wrap; word-wrap: break-word; }}
        .footer {{
          margin-top: 50px;
          padding-top: 20px;
          border-top: 2px solid #e5e7eb;
          text-align: center;
          font-size: {max(size - 2, 8)}pt;
          color: #6b7280;
        }}
        .footer-logo {{ max-height: 40px; margin-bottom: 10px; }}
        .page-break {{ page-break-before: always; }}
        @media print {{
          body {{ margin: 20px; }}
          .section {{ page-break-inside: avoid; }}
        }}
        """

    def _extra_css(self) -> str:
        return ""

    def _build_company_info(self) -> str:
        if not self.config.company_name:
            return ""

        lines = [f"<strong>{escape(self.config.company_name)}</strong>"]
        if self.config.company_address:
            lines.append(escape(self.config.company_address))
        if self.config.company_phone:
            lines.append(f"Tel: {escape(self.config.company_phone)}")
        if self.config.company_email:
            lines.append(f"Email: {escape(self.config.company_email)}")

        return f'<div class="company-info">{"<br>".join(lines)}</div>'

    def _build_footer(self) -> str:
        logo = ""
        if self.config.footer_logo_url:
            logo = f'<img src="{escape(self.config.footer_logo_url)}" alt="Logo" class="footer-logo">'

        return f"""
      <div class="footer">
        {logo}
        <p>Reporte generado el {self._generation_date()} por el Sistema de Evaluación Psicométrica</p>
        <p>&copy; {convert_timezone(self.generated_at, settings.REPORT_TIMEZONE).year} - Documento Confidencial</p>
        <p style="font-size: {max(self.font_size - 3, 7)}pt; color: #999;">
          Este reporte es confidencial y debe ser tratado de acuerdo con las políticas de privacidad de la organización.
        </p>
      </div>"""

    def _build_narrative(self, title: str, text: Optional[str], fallback: str, css_class: str) -> str:
        body = escape(text) if text else f"<em>{fallback}</em>"
        return f"""
      <div class="section {css_class}">
        <h2>{escape(title)}</h2>
        <div class="narrative">{body}</div>
      </div>"""

    def _wrap_html(self, title: str, body: str) -> str:
        return f"""<!DOCTYPE html>
<html lang="es">
<head>
  <meta charset="utf-8">
  <title>{escape(title)}</title>
  <style>{self._base_css()}{self._extra_css()}</style>
</head>
<body>
{body}
</body>
</html>
"""


class ReliabilityReportBuilder(BaseReportBuilder):
    """Full reliability report: candidate, categories, chart and narrative."""

    DOCUMENT_TITLE = "Reporte de Evaluación de Confiabilidad"

    def _extra_css(self) -> str:
        size = self.font_size
        return f"""
        .score-table {{
          width: 100%;
          border-collapse: collapse;
          margin: 15px 0;
          font-size: {max(size - 1, 8)}pt;
        }}
        .score-table th, .score-table td {{
          border: 1px solid #d1d5db;
          padding: 12px 15px;
          text-align: left;
        }}
        .score-table th {{
          background-color: #1e40af;
          color: white;
          font-weight: bold;
        }}
        .score-table tr:nth-child(even) {{ background-color: #f9fafb; }}
        .summary-row {{ font-weight: bold; }}
        .ai-analysis {{ background-color: #eff6ff; border-left-color: #2563eb; }}
        .conclusions {{ background-color: #f0fdf4; border-left-color: #16a34a; }}
        """

    def build(
        self,
        attempt: ExamAttempt,
        result: ReliabilityResult,
        profile: Optional[Profile] = None,
        exam: Optional[Exam] = None,
        analysis: Optional[str] = None,
        conclusions: Optional[str] = None,
        include_charts: bool = True,
        include_analysis: bool = True,
    ) -> str:
        """
        Build the reliability report document.

        Args:
            attempt: Scored exam attempt
            result: Category breakdown and overall classification
            profile: Candidate profile
            exam: Exam definition, for the subtitle
            analysis: AI analysis text (fallback text when missing)
            conclusions: AI conclusions text (fallback text when missing)
            include_charts: Request-level chart toggle
            include_analysis: Request-level toggle for the AI sections

        Returns:
            Complete HTML document as string
        """
        candidate = CandidateInfo(profile, attempt.completed_at)
        exam_title = exam.title if exam else Exam().title

        parts = [self._build_header(exam_title), self._build_company_info()]

        if self.sections.personal_info:
            parts.append(self._build_candidate_section(candidate))
        if self.sections.category_scores:
            parts.append(self._build_category_table(result))
        if self.sections.charts and include_charts:
            parts.append(build_reliability_chart(result.categories, self.font_size))
        if include_analysis and self.sections.risk_analysis:
            parts.append(self._build_narrative(
                f"Análisis de {self.system_name}", analysis, ANALYSIS_UNAVAILABLE, "ai-analysis"
            ))
        if include_analysis and self.sections.conclusion:
            parts.append(self._build_narrative(
                f"Conclusiones y Recomendaciones ({self.system_name})",
                conclusions,
                CONCLUSIONS_UNAVAILABLE,
                "conclusions",
            ))

        parts.append(self._build_footer())
        return self._wrap_html(f"{self.DOCUMENT_TITLE} - {candidate.name}", "\n".join(parts))

    def _build_header(self, exam_title: str) -> str:
        logo = ""
        if self.logo_url:
            logo = (
                f'<img src="{escape(self.logo_url)}" alt="Logo del Sistema" '
                'style="height: 180px; margin-right: 30px; max-width: 250px; object-fit: contain;">'
            )

        return f"""
      <div class="header">
        <div style="display: flex; align-items: center; justify-content: center; margin-bottom: 30px;">
          {logo}
          <div style="text-align: center;">
            <h1 style="margin: 0; font-size: 28px; color: #1e40af;">{escape(self.system_name)}</h1>
            <h2 style="margin: 10px 0 0 0; font-size: 22px; font-weight: normal; color: #374151;">{self.DOCUMENT_TITLE}</h2>
          </div>
        </div>
        <p style="margin: 0; font-size: 16px; color: #666;">{escape(exam_title)}</p>
      </div>"""

    def _build_candidate_section(self, candidate: CandidateInfo) -> str:
        rows = [
            ("Nombre", candidate.name),
            ("Email", candidate.email),
            ("Área/Posición", candidate.area),
            ("Empresa", candidate.company),
            ("Sección", candidate.section),
            ("Fecha de Evaluación", candidate.date),
        ]
        cells = "".join(
            f'<tr><td style="border: none; padding: 5px 0; width: 180px;"><strong>{label}:</strong></td>'
            f'<td style="border: none; padding: 5px 0;">{escape(value)}</td></tr>'
            for label, value in rows
        )
        return f"""
      <div class="section">
        <h2>Información del Candidato</h2>
        <table style="width: 100%; border: none;">{cells}</table>
      </div>"""

    def _build_category_table(self, result: ReliabilityResult) -> str:
        rows = []
        for category in result.categories:
            color = RiskLevel.HIGH.color if category.difference > 0 else RiskLevel.LOW.color
            sign = "+" if category.difference > 0 else ""
            rows.append(
                "<tr>"
                f"<td><strong>{escape(category.category_name)}</strong></td>"
                f"<td>{category.total_questions}</td>"
                f"<td>{category.average:.2f}</td>"
                f'<td class="{category.risk.css_class}">{escape(category.risk.value)}</td>'
                f"<td>{category.national_average:.2f}</td>"
                f'<td style="color: {color};">{sign}{category.difference:.2f}</td>'
                "</tr>"
            )

        return f"""
      <div class="section">
        <h2>Puntuaciones por Categoría</h2>
        <table class="score-table">
          <thead>
            <tr>
              <th>Categoría</th>
              <th>Total Preguntas</th>
              <th>Puntaje Total</th>
              <th>Interpretación</th>
              <th>Media Poblacional</th>
              <th>Diferencia</th>
            </tr>
          </thead>
          <tbody>{"".join(rows)}</tbody>
        </table>
        {self._build_overall_summary(result)}
      </div>"""

    def _build_overall_summary(self, result: ReliabilityResult) -> str:
        lines = [
            f"<p><strong>Puntaje Total:</strong> {result.total_score}/{result.max_possible_score} "
            f"({result.percentage:.2f}%)</p>",
            f'<p><strong>Riesgo General:</strong> <span class="{result.overall_risk.css_class}">'
            f"{escape(result.overall_risk.value)}</span></p>",
            f"<p>{RISK_LEVEL_DESCRIPTIONS[result.effective_risk]}</p>",
        ]

        if result.adjusted_overall_risk is not None:
            adjustment = (result.personal_adjustment or 0.0) * 100
            lines.append(
                f"<p><strong>Puntaje Ajustado:</strong> {result.adjusted_total_score:.2f} "
                f"(ajuste personal {adjustment:+.1f}%) - "
                f'<span class="{result.adjusted_overall_risk.css_class}">'
                f"{escape(result.adjusted_overall_risk.value)}</span></p>"
            )

        if result.simulation_alerts:
            names = ", ".join(escape(name) for name in result.simulation_alerts)
            lines.append(f'<p class="risk-medium">Posible simulación en: {names}</p>')

        return f'<div class="summary-row">{"".join(lines)}</div>'


class OceanReportBuilder(BaseReportBuilder):
    """Full OCEAN report: summary, dimension cards, chart, motivations and narrative."""

    DOCUMENT_TITLE = "Reporte de Personalidad OCEAN"

    def _extra_css(self) -> str:
        size = self.font_size
        return f"""
        .dimension-card {{
          background: white;
          border: 1px solid #e5e7eb;
          border-radius: 8px;
          padding: 15px;
          margin: 10px 0;
          page-break-inside: avoid;
        }}
        .dimension-header {{
          display: flex;
          justify-content: space-between;
          align-items: center;
          margin-bottom: 10px;
        }}
        .dimension-name {{ font-weight: bold; font-size: {size + 1}pt; color: #1f2937; }}
        .dimension-score {{
          font-weight: bold;
          font-size: {size + 2}pt;
          padding: 5px 12px;
          border-radius: 20px;
          color: white;
        }}
        .score-muy-alto {{ background-color: #16a34a; }}
        .score-alto {{ background-color: #22c55e; }}
        .score-moderado {{ background-color: #fbbf24; }}
        .score-bajo {{ background-color: #f97316; }}
        .score-muy-bajo {{ background-color: #dc2626; }}
        .dimension-description {{ color: #6b7280; font-size: {size - 1}pt; margin-bottom: 8px; }}
        .traits-list {{ display: flex; flex-wrap: wrap; gap: 8px; margin-top: 5px; }}
        .trait-tag {{
          background-color: #e0e7ff;
          color: #3730a3;
          padding: 3px 8px;
          border-radius: 12px;
          font-size: {size - 2}pt;
        }}
        .personality-summary {{
          background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
          color: white;
          padding: 25px;
          border-radius: 12px;
          margin: 20px 0;
        }}
        .summary-title {{ font-size: {size + 3}pt; font-weight: bold; margin-bottom: 15px; text-align: center; }}
        .summary-content {{ display: grid; grid-template-columns: 1fr 1fr; gap: 20px; }}
        .summary-item {{ text-align: center; }}
        .summary-label {{ font-size: {size - 1}pt; opacity: 0.9; margin-bottom: 5px; }}
        .summary-value {{ font-size: {size + 1}pt; font-weight: bold; }}
        .motivations-grid {{
          display: grid;
          grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
          gap: 15px;
          margin: 15px 0;
        }}
        .motivation-card {{
          background: white;
          border: 1px solid #e5e7eb;
          border-radius: 8px;
          padding: 15px;
          text-align: center;
        }}
        .motivation-score {{ font-size: {size + 2}pt; font-weight: bold; color: #3b82f6; }}
        .ai-analysis {{ background-color: #faf5ff; border-left-color: #7c3aed; }}
        .conclusions {{ background-color: #f0fdf4; border-left-color: #16a34a; }}
        """

    def build(
        self,
        personality_result: PersonalityResult,
        profile_data: OceanProfile,
        profile: Optional[Profile] = None,
        analysis: Optional[str] = None,
        conclusions: Optional[str] = None,
        include_charts: bool = True,
        include_analysis: bool = True,
    ) -> str:
        """
        Build the OCEAN report document.

        Args:
            personality_result: Stored personality result
            profile_data: Interpreted OCEAN profile
            profile: Candidate profile
            analysis: AI analysis text (fallback text when missing)
            conclusions: AI conclusions text (fallback text when missing)
            include_charts: Request-level chart toggle
            include_analysis: Request-level toggle for the AI sections

        Returns:
            Complete HTML document as string
        """
        candidate = CandidateInfo(profile, personality_result.created_at)

        parts = [self._build_header(), self._build_company_info()]

        if self.sections.personal_info:
            parts.append(self._build_candidate_section(candidate))
        parts.append(self._build_summary(profile_data))
        if self.sections.personality_scores:
            parts.append(self._build_dimension_cards(profile_data))
        if self.sections.charts and include_charts:
            parts.append(f'<div class="page-break">{build_ocean_chart(profile_data, self.font_size)}</div>')
        if profile_data.motivations:
            parts.append(self._build_motivations(profile_data))
        if include_analysis and self.sections.ocean_analysis:
            parts.append(self._build_narrative(
                f"Análisis Profesional de {self.system_name}", analysis, ANALYSIS_UNAVAILABLE, "ai-analysis"
            ))
        if include_analysis and self.sections.conclusion:
            parts.append(self._build_narrative(
                f"Conclusiones y Recomendaciones ({self.system_name})",
                conclusions,
                CONCLUSIONS_UNAVAILABLE,
                "conclusions",
            ))

        parts.append(self._build_footer())
        return self._wrap_html(f"{self.DOCUMENT_TITLE} - {candidate.name}", "\n".join(parts))

    def _build_header(self) -> str:
        logo_url = self.config.header_logo_url or self.logo_url
        logo = f'<img src="{escape(logo_url)}" alt="Logo" class="header-logo">' if logo_url else ""
        size = self.font_size
        return f"""
      <div class="header">
        {logo}
        <h1 style="font-size: {size + 8}pt; margin: 10px 0; color: #1e40af;">{self.DOCUMENT_TITLE}</h1>
        <p style="font-size: {size + 2}pt; color: #666; margin: 5px 0;">
          Evaluación de los Cinco Grandes Factores de Personalidad
        </p>
        <p style="color: #999;">Generado el {self._generation_date()} a las {self._generation_time()}</p>
      </div>"""

    def _build_candidate_section(self, candidate: CandidateInfo) -> str:
        return f"""
      <div class="section">
        <h2>Información del Evaluado</h2>
        <div style="display: grid; grid-template-columns: 1fr 1fr; gap: 20px;">
          <div>
            <p><strong>Nombre:</strong> {escape(candidate.name)}</p>
            <p><strong>Email:</strong> {escape(candidate.email)}</p>
            <p><strong>Empresa:</strong> {escape(candidate.company)}</p>
          </div>
          <div>
            <p><strong>Área:</strong> {escape(candidate.area)}</p>
            <p><strong>Sección:</strong> {escape(candidate.section)}</p>
            <p><strong>Fecha de Evaluación:</strong> {candidate.date}</p>
          </div>
        </div>
      </div>"""

    def _build_summary(self, profile_data: OceanProfile) -> str:
        overall = profile_data.overall
        items = [
            ("Rasgo Dominante", overall.dominant_trait),
            ("Rasgo Secundario", overall.secondary_trait),
            ("Tipo de Perfil", overall.profile_type.value),
            ("Promedio General", f"{overall.average_score:.1f}/100"),
        ]
        cells = "".join(
            f'<div class="summary-item"><div class="summary-label">{label}</div>'
            f'<div class="summary-value">{escape(value)}</div></div>'
            for label, value in items
        )
        return f"""
      <div class="personality-summary">
        <div class="summary-title">Resumen del Perfil de Personalidad</div>
        <div class="summary-content">{cells}</div>
      </div>"""

    def _build_dimension_cards(self, profile_data: OceanProfile) -> str:
        cards: List[str] = []
        for dimension in profile_data.dimensions:
            traits = "".join(f'<span class="trait-tag">{escape(trait)}</span>' for trait in dimension.traits)
            cards.append(f"""
          <div class="dimension-card">
            <div class="dimension-header">
              <div class="dimension-name">{escape(dimension.name)}</div>
              <div class="dimension-score {dimension.level.css_class}">{dimension.normalized_score:.1f}/100</div>
            </div>
            <div class="dimension-description">{escape(dimension.description)}</div>
            <div>
              <strong>Características asociadas:</strong>
              <div class="traits-list">{traits}</div>
            </div>
            <div style="margin-top: 10px; padding: 10px; background-color: #f3f4f6; border-radius: 6px;">
              <strong>Interpretación:</strong> {escape(dimension.interpretation)} (Percentil {dimension.percentile}%)
            </div>
          </div>""")

        return f"""
      <div class="section">
        <h2>Análisis por Dimensiones OCEAN</h2>
        {"".join(cards)}
      </div>"""

    def _build_motivations(self, profile_data: OceanProfile) -> str:
        cards = "".join(
            f'<div class="motivation-card"><div><strong>{escape(motivation.name)}</strong></div>'
            f'<div class="motivation-score">{motivation.score:.2f}</div></div>'
            for motivation in profile_data.motivations
        )
        return f"""
      <div class="section">
        <h2>Motivaciones Adicionales</h2>
        <div class="motivations-grid">{cards}</div>
      </div>"""


__all__ = [
    "BaseReportBuilder",
    "CandidateInfo",
    "OceanReportBuilder",
    "ReliabilityReportBuilder",
]
