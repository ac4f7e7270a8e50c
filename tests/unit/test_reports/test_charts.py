"""Unit tests for the inline SVG charts."""

from trustreport.reports.charts import (
    CANDIDATE_BAR_COLOR,
    build_comparison_chart,
    build_ocean_chart,
    build_reliability_chart,
)
from trustreport.services.scoring_service import CategoryResult, ScoringService
from trustreport.utils.constants import OceanDimension, RiskLevel


def make_category(name, average=1.5, total_score=3, national_average=1.5, risk=RiskLevel.MEDIUM):
    return CategoryResult(
        category_name=name,
        total_questions=2,
        total_score=total_score,
        average=average,
        percentage=round(average / 3 * 100, 2),
        national_average=national_average,
        difference=round(average - national_average, 2),
        risk=risk,
    )


class TestReliabilityChart:

    def test_empty_categories(self):
        assert build_reliability_chart([]) == ""

    def test_bars_and_population_marker(self):
        # Arrange
        categories = [make_category("Honestidad", average=3.0, national_average=1.5, risk=RiskLevel.HIGH)]

        # Act
        svg = build_reliability_chart(categories)

        # Assert
        assert 'width="500.0" height="20"' in svg
        assert f'fill="{CANDIDATE_BAR_COLOR}"' in svg
        assert 'x1="250.0"' in svg
        assert "3.00" in svg
        assert "RIESGO ALTO" in svg

    def test_at_most_twenty_categories(self):
        categories = [make_category(f"Categoria {i:02d}") for i in range(25)]

        svg = build_reliability_chart(categories)

        assert "Categoria 19" in svg
        assert "Categoria 20" not in svg

    def test_labels_are_escaped(self):
        svg = build_reliability_chart([make_category("<script>")])

        assert "<script>" not in svg
        assert "&lt;script&gt;" in svg


class TestComparisonChart:

    def test_empty_categories(self):
        assert build_comparison_chart([]) == ""

    def test_bars_scaled_to_highest_total(self):
        svg = build_comparison_chart([
            make_category("Honestidad", total_score=6),
            make_category("Lealtad", total_score=3),
        ])

        assert 'height="200.0"' in svg
        assert 'height="100.0"' in svg
        assert ">6</text>" in svg
        assert ">3</text>" in svg

    def test_all_zero_totals(self):
        svg = build_comparison_chart([make_category("Honestidad", total_score=0)])

        assert 'height="0.0"' in svg

    def test_long_names_truncated(self):
        svg = build_comparison_chart([make_category("Responsabilidad")])

        assert ">Responsa</text>" in svg


class TestOceanChart:

    def test_missing_profile(self):
        assert build_ocean_chart(None) == ""

    def test_dimension_rows(self):
        profile = ScoringService().build_ocean_profile({
            OceanDimension.APERTURA: 90,
            OceanDimension.RESPONSABILIDAD: 0,
            OceanDimension.EXTRAVERSION: 50,
            OceanDimension.AMABILIDAD: 50,
            OceanDimension.NEUROTICISMO: 50,
        })

        svg = build_ocean_chart(profile)

        assert svg.count('rx="4"') == 5
        assert "90%" in svg
        assert "Muy Alto" in svg
        # Zero-percentile bars keep a visible minimum width
        assert 'width="5.0"' in svg
        assert "Perfil General:" in svg
