"""Inline SVG charts for reports.

Charts are returned as markup strings so they can be embedded directly in
the HTML document; nothing is rasterized and no browser-side script runs.
Every label that comes from data is escaped.
"""

from html import escape
from typing import List, Optional

from trustreport.services.scoring_service import CategoryResult, OceanProfile
from trustreport.utils.constants import (
    MAX_ANSWER_SCORE,
    MAX_CHART_CATEGORIES,
    OCEAN_LEVEL_RANGES,
    OceanLevel,
    RiskLevel,
)

CANDIDATE_BAR_COLOR = "#3b82f6"
COMPARISON_BAR_COLOR = "#4A90E2"
NATIONAL_LINE_COLOR = "red"

# Reliability chart geometry
RELIABILITY_ROW_SPACING = 35
RELIABILITY_BAR_AREA = 500
RELIABILITY_WIDTH = 1000

# OCEAN chart geometry
OCEAN_ROW_SPACING = 60
OCEAN_BAR_HEIGHT = 30
OCEAN_BAR_AREA = 500
OCEAN_WIDTH = 900


def build_reliability_chart(categories: List[CategoryResult], font_size: int = 12) -> str:
    """Horizontal bar chart of category averages against the population mean.

    Only the first 20 categories are drawn. Bars span the 0-3 answer scale;
    the population average is a red dashed marker over each bar and the risk
    band is printed to the right.

    Args:
        categories: Aggregated categories in report order
        font_size: Base font size of the report

    Returns:
        str: Chart section markup, or an empty string without categories
    """
    shown = categories[:MAX_CHART_CATEGORIES]
    if not shown:
        return ""

    count = len(shown)
    height = count * RELIABILITY_ROW_SPACING + 250
    axis_y = count * RELIABILITY_ROW_SPACING + 10
    label_size = max(font_size - 1, 9)

    rows = []
    for index, category in enumerate(shown):
        y = index * RELIABILITY_ROW_SPACING
        bar_width = min(category.average / MAX_ANSWER_SCORE, 1.0) * RELIABILITY_BAR_AREA
        national_x = min(category.national_average / MAX_ANSWER_SCORE, 1.0) * RELIABILITY_BAR_AREA
        value_x = max(bar_width + 8, 25)

        rows.append(
            f'<text x="-15" y="{y + 18}" text-anchor="end" font-size="{label_size}" '
            f'fill="#374151">{escape(category.category_name)}</text>'
            f'<rect x="0" y="{y + 8}" width="{RELIABILITY_BAR_AREA}" height="1" fill="#e5e7eb"/>'
            f'<rect x="0" y="{y + 5}" width="{bar_width:.1f}" height="20" fill="{CANDIDATE_BAR_COLOR}" '
            f'opacity="0.8" rx="3"/>'
            f'<text x="{value_x:.1f}" y="{y + 19}" font-size="{label_size}" fill="#1f2937">'
            f'{category.average:.2f}</text>'
            f'<line x1="{national_x:.1f}" y1="{y}" x2="{national_x:.1f}" y2="{y + 30}" '
            f'stroke="{NATIONAL_LINE_COLOR}" stroke-width="3" stroke-dasharray="6,4"/>'
            f'<text x="{national_x:.1f}" y="{y - 5}" text-anchor="middle" font-size="9" '
            f'fill="{NATIONAL_LINE_COLOR}">{category.national_average:.2f}</text>'
            f'<text x="515" y="{y + 18}" font-size="{label_size}" font-weight="bold" '
            f'fill="{category.risk.color}">{escape(category.risk.value)}</text>'
        )

    ticks = []
    for value in range(MAX_ANSWER_SCORE + 1):
        x = value / MAX_ANSWER_SCORE * RELIABILITY_BAR_AREA
        ticks.append(
            f'<line x1="{x:.1f}" y1="{axis_y}" x2="{x:.1f}" y2="{axis_y + 6}" stroke="#6b7280"/>'
            f'<text x="{x:.1f}" y="{axis_y + 22}" text-anchor="middle" font-size="11" '
            f'fill="#6b7280">{value:.1f}</text>'
        )

    legend_y = count * RELIABILITY_ROW_SPACING + 120
    legend = (
        f'<g transform="translate(50, {legend_y})">'
        '<rect x="0" y="0" width="900" height="100" fill="#f9fafb" stroke="#d1d5db" rx="6"/>'
        '<text x="20" y="25" font-size="14" font-weight="bold" fill="#111827">Leyenda</text>'
        f'<rect x="20" y="40" width="30" height="14" fill="{CANDIDATE_BAR_COLOR}" opacity="0.8" rx="3"/>'
        '<text x="60" y="52" font-size="12" fill="#374151">Promedio del Candidato</text>'
        f'<line x1="250" y1="40" x2="250" y2="58" stroke="{NATIONAL_LINE_COLOR}" '
        'stroke-width="3" stroke-dasharray="6,4"/>'
        '<text x="265" y="52" font-size="12" fill="#374151">Media Poblacional</text>'
        '<text x="20" y="82" font-size="12" font-weight="bold" fill="#374151">Interpretación:</text>'
        f'<text x="130" y="82" font-size="12" fill="{RiskLevel.LOW.color}">Verde = Riesgo Bajo</text>'
        f'<text x="300" y="82" font-size="12" fill="{RiskLevel.MEDIUM.color}">Amarillo = Riesgo Medio</text>'
        f'<text x="490" y="82" font-size="12" fill="{RiskLevel.HIGH.color}">Rojo = Riesgo Alto</text>'
        '</g>'
    )

    return (
        '<div class="section chart-section">'
        '<h2>Gráfico de Confiabilidad por Categoría</h2>'
        '<p>Promedio del candidato vs. Media poblacional (línea roja punteada)</p>'
        f'<svg width="{RELIABILITY_WIDTH}" height="{height}" viewBox="0 0 {RELIABILITY_WIDTH} {height}" '
        'xmlns="http://www.w3.org/2000/svg" style="max-width: 100%; height: auto;">'
        '<g transform="translate(220, 30)">'
        + "".join(rows)
        + f'<line x1="0" y1="{axis_y}" x2="{RELIABILITY_BAR_AREA}" y2="{axis_y}" stroke="#6b7280"/>'
        + "".join(ticks)
        + f'<text x="{RELIABILITY_BAR_AREA / 2:.0f}" y="{count * RELIABILITY_ROW_SPACING + 55}" '
        'text-anchor="middle" font-size="12" fill="#374151">'
        'Promedio de Respuestas (0=Nunca, 1=Rara vez, 2=A veces, 3=Frecuentemente)</text>'
        '</g>'
        + legend
        + '</svg></div>'
    )


def build_comparison_chart(categories: List[CategoryResult]) -> str:
    """Small vertical bar chart of category totals for the placeholder template."""
    if not categories:
        return ""

    max_score = max(c.total_score for c in categories) or 1

    bars = []
    for index, category in enumerate(categories):
        bar_height = category.total_score / max_score * 200
        bar_y = 220 - bar_height
        x = index * 60 + 50
        bars.append(
            f'<rect x="{x}" y="{bar_y:.1f}" width="40" height="{bar_height:.1f}" '
            f'fill="{COMPARISON_BAR_COLOR}"/>'
            f'<text x="{x + 20}" y="240" text-anchor="middle" font-size="10">'
            f'{escape(category.category_name[:8])}</text>'
            f'<text x="{x + 20}" y="{bar_y - 5:.1f}" text-anchor="middle" font-size="10">'
            f'{category.total_score}</text>'
        )

    return (
        '<svg width="400" height="250" xmlns="http://www.w3.org/2000/svg">'
        + "".join(bars)
        + '<line x1="40" y1="220" x2="380" y2="220" stroke="#333" stroke-width="2"/>'
        '<line x1="40" y1="220" x2="40" y2="20" stroke="#333" stroke-width="2"/>'
        '</svg>'
    )


def build_ocean_chart(profile: Optional[OceanProfile], font_size: int = 12) -> str:
    """Bar chart of Big Five percentiles with the level printed beside each bar.

    Args:
        profile: Interpreted OCEAN profile
        font_size: Base font size of the report

    Returns:
        str: Chart markup, or an empty string without dimensions
    """
    if profile is None or not profile.dimensions:
        return ""

    count = len(profile.dimensions)
    height = max(600, count * OCEAN_ROW_SPACING + 280)
    axis_y = count * OCEAN_ROW_SPACING

    rows = []
    for index, dimension in enumerate(profile.dimensions):
        y = index * OCEAN_ROW_SPACING
        bar_width = max(5, dimension.percentile / 100 * OCEAN_BAR_AREA)
        rows.append(
            f'<text x="-15" y="{y + OCEAN_BAR_HEIGHT / 2 + 5:.0f}" text-anchor="end" '
            f'font-size="{font_size}" font-weight="bold" fill="#374151">{escape(dimension.name)}</text>'
            f'<rect x="0" y="{y}" width="{bar_width:.1f}" height="{OCEAN_BAR_HEIGHT}" '
            f'fill="{dimension.dimension.color}" opacity="0.8" rx="4"/>'
            f'<text x="{bar_width + 10:.1f}" y="{y + OCEAN_BAR_HEIGHT / 2 + 5:.0f}" '
            f'font-size="{font_size}" fill="#1f2937">{dimension.percentile}%</text>'
            f'<text x="530" y="{y + OCEAN_BAR_HEIGHT / 2 + 5:.0f}" font-size="{font_size}" '
            f'font-weight="bold" fill="{dimension.level.color}">{escape(dimension.level.value)}</text>'
        )

    ticks = []
    for percent in (0, 25, 50, 75, 100):
        x = percent / 100 * OCEAN_BAR_AREA
        ticks.append(
            f'<line x1="{x:.0f}" y1="{axis_y}" x2="{x:.0f}" y2="{axis_y + 6}" stroke="#6b7280"/>'
            f'<text x="{x:.0f}" y="{axis_y + 22}" text-anchor="middle" font-size="11" '
            f'fill="#6b7280">{percent}%</text>'
        )

    level_lines = []
    for offset, level in enumerate(OceanLevel):
        level_lines.append(
            f'<rect x="20" y="{38 + offset * 20}" width="12" height="12" fill="{level.color}"/>'
            f'<text x="40" y="{48 + offset * 20}" font-size="12" fill="#374151">'
            f'{escape(level.value)} ({OCEAN_LEVEL_RANGES[level]})</text>'
        )

    legend_y = count * OCEAN_ROW_SPACING + 80 + 60
    legend = (
        f'<g transform="translate(250, {legend_y})">'
        '<rect x="0" y="0" width="400" height="160" fill="#f9fafb" stroke="#d1d5db" rx="6"/>'
        '<text x="20" y="24" font-size="14" font-weight="bold" fill="#111827">'
        'Interpretación de Niveles</text>'
        + "".join(level_lines)
        + '<text x="20" y="150" font-size="12" font-weight="bold" fill="#374151">'
        f'Perfil General: {escape(profile.overall.profile_type.value)}</text>'
        '</g>'
    )

    return (
        '<div class="chart-container">'
        '<h3>Perfil de Personalidad OCEAN (Big Five)</h3>'
        '<p>Puntuaciones por dimensión (percentil 0-100%)</p>'
        f'<svg width="{OCEAN_WIDTH}" height="{height}" viewBox="0 0 {OCEAN_WIDTH} {height}" '
        'xmlns="http://www.w3.org/2000/svg" style="max-width: 100%; height: auto;">'
        '<defs><pattern id="grid" width="50" height="50" patternUnits="userSpaceOnUse">'
        '<path d="M 50 0 L 0 0 0 50" fill="none" stroke="#f3f4f6" stroke-width="1"/>'
        '</pattern></defs>'
        f'<rect width="{OCEAN_WIDTH}" height="{height}" fill="url(#grid)"/>'
        '<g transform="translate(220, 40)">'
        f'<line x1="0" y1="-10" x2="0" y2="{axis_y}" stroke="#6b7280"/>'
        + "".join(rows)
        + f'<line x1="0" y1="{axis_y}" x2="{OCEAN_BAR_AREA}" y2="{axis_y}" stroke="#6b7280"/>'
        + "".join(ticks)
        + f'<text x="{OCEAN_BAR_AREA / 2:.0f}" y="{axis_y + 50}" text-anchor="middle" '
        'font-size="12" fill="#374151">Percentil (0% = Muy Bajo, 100% = Muy Alto)</text>'
        '</g>'
        + legend
        + '</svg></div>'
    )


__all__ = [
    "build_comparison_chart",
    "build_ocean_chart",
    "build_reliability_chart",
]
