"""Scoring for reliability and OCEAN assessments.

Reliability answers are frequency labels scored 0-3, grouped by category,
compared against population averages and classified into risk bands.
OCEAN answers are 1-5 Likert values, inverted for negatively keyed items and
normalized to a 0-100 score per Big Five dimension.

Everything in this module is a pure computation over the attempt snapshot;
nothing is persisted here.
"""

import math
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from trustreport.core.config import get_settings
from trustreport.models.exam_attempt import AttemptQuestion
from trustreport.models.personality_result import PersonalityQuestion, PersonalityResponse
from trustreport.utils.constants import (
    LIKERT_MAX,
    LIKERT_MIN,
    MAX_ANSWER_SCORE,
    MOTIVATION_FIELDS,
    OceanDimension,
    OceanLevel,
    ProfileType,
    RELIABILITY_LABEL_LOOKUP,
    ReliabilityAnswer,
    RiskLevel,
    ScoreOrientation,
    UNCATEGORIZED_LABEL,
)
from trustreport.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

QUESTION_ID_KEYS = ("question_id", "questionId", "id")
ANSWER_KEYS = ("answer", "value", "selected_option", "selectedAnswer", "selected_answer")


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like report readers expect (2.5 -> 3), not banker's rounding."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ============================================================================
# ANSWER NORMALIZATION
# ============================================================================

def normalize_reliability_answer(value: Any, question_id: Optional[str] = None) -> int:
    """Map a frequency label to its 0-3 score.

    Matching ignores case and surrounding whitespace. Unrecognized values
    score 0 like ``Nunca`` but are logged with an ``answer_fallback`` marker
    so that data problems can be told apart from genuine answers.

    Args:
        value: Raw answer as stored on the attempt
        question_id: Question the answer belongs to, for the log record

    Returns:
        int: Score between 0 and 3
    """
    if isinstance(value, str):
        score = RELIABILITY_LABEL_LOOKUP.get(value.strip().lower())
        if score is not None:
            return score

    logger.warning(
        "Unrecognized reliability answer label, scoring as 0",
        extra={
            "event_type": "answer_fallback",
            "answer_fallback": True,
            "raw_answer": repr(value),
            "question_id": question_id,
        }
    )
    return 0


def normalize_likert_answer(score: int, orientation: str = ScoreOrientation.POSITIVE.value) -> int:
    """Apply reverse keying to a 1-5 Likert answer.

    Args:
        score: Raw answer between 1 and 5
        orientation: ``positive`` or ``negative``

    Returns:
        int: ``6 - score`` for negatively keyed items, else ``score``

    Raises:
        ValueError: If the score is outside the Likert range
    """
    if not LIKERT_MIN <= score <= LIKERT_MAX:
        raise ValueError(f"Likert answer {score} outside {LIKERT_MIN}-{LIKERT_MAX}")

    if orientation == ScoreOrientation.NEGATIVE.value:
        return (LIKERT_MAX + 1) - score
    return score


def _pick(entry: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def extract_answer_map(answers: Any, questions: List[AttemptQuestion]) -> Dict[str, Any]:
    """Fold the stored answers into ``{question_id: raw_answer}``.

    Attempts store answers either as a mapping or as a list; list entries
    may be bare labels (matched to questions by position) or objects naming
    the question and the answer under one of several historical keys.
    """
    answer_map: Dict[str, Any] = {}

    if isinstance(answers, Mapping):
        for question_id, value in answers.items():
            if isinstance(value, Mapping):
                value = _pick(value, ANSWER_KEYS)
            answer_map[str(question_id)] = value
        return answer_map

    if not isinstance(answers, list):
        return answer_map

    for position, entry in enumerate(answers):
        positional_id = questions[position].id if position < len(questions) else None

        if isinstance(entry, Mapping):
            question_id = _pick(entry, QUESTION_ID_KEYS) or positional_id
            value = _pick(entry, ANSWER_KEYS)
        else:
            question_id = positional_id
            value = entry

        if question_id is not None:
            answer_map[str(question_id)] = value

    return answer_map


# ============================================================================
# RESULT MODELS
# ============================================================================

class CategoryResult(BaseModel):
    """Aggregated score of one reliability category."""

    category_name: str
    total_questions: int
    total_score: int
    average: float
    percentage: float
    national_average: float
    difference: float
    risk: RiskLevel
    simulation_alert: bool = False

    @property
    def max_score(self) -> int:
        return self.total_questions * MAX_ANSWER_SCORE


class ReliabilityResult(BaseModel):
    """Category breakdown plus overall classification of an attempt."""

    categories: List[CategoryResult] = Field(default_factory=list)
    total_score: int = 0
    total_questions: int = 0
    answered_questions: int = 0
    overall_risk: RiskLevel = RiskLevel.LOW
    overall_average: float = 0.0
    high_risk_areas: List[str] = Field(default_factory=list)
    simulation_alerts: List[str] = Field(default_factory=list)

    adjusted_total_score: Optional[float] = None
    adjusted_overall_risk: Optional[RiskLevel] = None
    adjusted_overall_average: Optional[float] = None
    personal_adjustment: Optional[float] = None
    personal_factors: Optional[Dict[str, Any]] = None

    @property
    def max_possible_score(self) -> int:
        return self.total_questions * MAX_ANSWER_SCORE

    @property
    def percentage(self) -> float:
        if not self.total_questions:
            return 0.0
        return round(self.total_score / self.max_possible_score * 100, 2)

    @property
    def effective_risk(self) -> RiskLevel:
        """Adjusted overall risk when an adjustment was applied, else the raw one."""
        return self.adjusted_overall_risk or self.overall_risk


class OceanDimensionResult(BaseModel):
    """Interpreted score of one Big Five dimension."""

    dimension: OceanDimension
    name: str
    description: str
    traits: List[str]
    score: float
    normalized_score: float
    percentile: int
    level: OceanLevel
    interpretation: str


class Motivation(BaseModel):
    name: str
    score: float


class OceanOverallProfile(BaseModel):
    average_score: float
    dominant_trait: str
    secondary_trait: str
    profile_type: ProfileType


class OceanProfile(BaseModel):
    """Everything the OCEAN report and prompt need about a result."""

    dimensions: List[OceanDimensionResult]
    motivations: List[Motivation] = Field(default_factory=list)
    overall: OceanOverallProfile
    total_responses: int = 0

    def scores(self) -> Dict[str, float]:
        return {d.dimension.value: d.score for d in self.dimensions}


# ============================================================================
# SCORING SERVICE
# ============================================================================

class ScoringService:
    """Scoring and classification with configurable thresholds."""

    def __init__(
        self,
        high_multiplier: Optional[float] = None,
        medium_multiplier: Optional[float] = None,
        simulation_threshold: Optional[float] = None,
        default_national_average: Optional[float] = None,
    ):
        """Initialize scoring service.

        Args:
            high_multiplier: ``total >= n * high`` is RIESGO ALTO
            medium_multiplier: ``total >= n * medium`` is RIESGO MEDIO
            simulation_threshold: Deviation above which simulation is suspected
            default_national_average: Population average for questions without one
        """
        self.high_multiplier = high_multiplier if high_multiplier is not None else settings.RISK_HIGH_MULTIPLIER
        self.medium_multiplier = medium_multiplier if medium_multiplier is not None else settings.RISK_MEDIUM_MULTIPLIER
        self.simulation_threshold = (
            simulation_threshold if simulation_threshold is not None else settings.SIMULATION_ALERT_THRESHOLD
        )
        self.default_national_average = (
            default_national_average if default_national_average is not None else settings.DEFAULT_NATIONAL_AVERAGE
        )

    # Risk classification

    def classify_risk(self, total_score: float, total_questions: int) -> RiskLevel:
        """Classify a summed score against the number of questions.

        Args:
            total_score: Sum of 0-3 answer scores (possibly adjusted)
            total_questions: Number of questions contributing to the sum

        Returns:
            RiskLevel: Risk band
        """
        if total_score >= total_questions * self.high_multiplier:
            return RiskLevel.HIGH
        if total_score >= total_questions * self.medium_multiplier:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def is_simulation_suspected(self, difference: float) -> bool:
        return abs(difference) > self.simulation_threshold

    # Reliability aggregation

    def aggregate_categories(
        self,
        questions: List[AttemptQuestion],
        answers: Any,
    ) -> List[CategoryResult]:
        """Group answer scores by category.

        Questions without a stored answer fall back to the answer embedded in
        the question snapshot and finally to ``Nunca``. Categories keep the
        order in which they first appear.

        Args:
            questions: Question snapshot of the attempt
            answers: Stored answers (mapping or list)

        Returns:
            List[CategoryResult]: One entry per category
        """
        answer_map = extract_answer_map(answers, questions)
        buckets: "OrderedDict[str, List[Tuple[int, float]]]" = OrderedDict()

        for question in questions:
            raw_answer = answer_map.get(str(question.id)) if question.id is not None else None
            if raw_answer is None:
                raw_answer = question.user_answer or ReliabilityAnswer.NUNCA.value

            score = normalize_reliability_answer(raw_answer, question.id)
            national = (
                question.national_average
                if question.national_average is not None
                else self.default_national_average
            )
            category = question.category_name or UNCATEGORIZED_LABEL
            buckets.setdefault(category, []).append((score, national))

        results = []
        for category, entries in buckets.items():
            count = len(entries)
            total = sum(score for score, _ in entries)
            average = total / count
            national_average = sum(national for _, national in entries) / count
            difference = average - national_average

            results.append(CategoryResult(
                category_name=category,
                total_questions=count,
                total_score=total,
                average=round(average, 2),
                percentage=round(total / (count * MAX_ANSWER_SCORE) * 100, 2),
                national_average=round(national_average, 2),
                difference=round(difference, 2),
                risk=self.classify_risk(total, count),
                simulation_alert=self.is_simulation_suspected(difference),
            ))

        return results

    def score_reliability(
        self,
        questions: List[AttemptQuestion],
        answers: Any,
    ) -> ReliabilityResult:
        """Score an attempt and classify it overall.

        Args:
            questions: Question snapshot of the attempt
            answers: Stored answers (mapping or list)

        Returns:
            ReliabilityResult: Unadjusted result
        """
        categories = self.aggregate_categories(questions, answers)
        total_score = sum(c.total_score for c in categories)
        total_questions = sum(c.total_questions for c in categories)
        answer_map = extract_answer_map(answers, questions)

        result = ReliabilityResult(
            categories=categories,
            total_score=total_score,
            total_questions=total_questions,
            answered_questions=len([v for v in answer_map.values() if v is not None]),
            overall_risk=self.classify_risk(total_score, total_questions),
            overall_average=round(total_score / total_questions, 2) if total_questions else 0.0,
            high_risk_areas=[c.category_name for c in categories if c.risk == RiskLevel.HIGH],
            simulation_alerts=[c.category_name for c in categories if c.simulation_alert],
        )

        logger.info(
            "Reliability attempt scored",
            extra={
                "total_score": total_score,
                "total_questions": total_questions,
                "overall_risk": result.overall_risk.value,
                "categories": len(categories),
            }
        )
        return result

    def apply_adjustment(
        self,
        result: ReliabilityResult,
        adjusted_total: float,
        adjustment: Optional[float] = None,
        personal_factors: Optional[Dict[str, Any]] = None,
    ) -> ReliabilityResult:
        """Return a copy of ``result`` carrying the adjusted overall score."""
        adjusted_total = max(0.0, float(adjusted_total))
        return result.model_copy(update={
            "adjusted_total_score": round(adjusted_total, 2),
            "adjusted_overall_risk": self.classify_risk(adjusted_total, result.total_questions),
            "adjusted_overall_average": (
                round(adjusted_total / result.total_questions, 2) if result.total_questions else 0.0
            ),
            "personal_adjustment": adjustment,
            "personal_factors": personal_factors,
        })

    # OCEAN scoring

    def score_ocean_responses(
        self,
        responses: List[PersonalityResponse],
        questions: Mapping[str, PersonalityQuestion],
    ) -> Dict[OceanDimension, float]:
        """Compute 0-100 dimension scores from raw Likert responses.

        Each answer is reverse keyed when its item is negative, averaged per
        dimension and mapped with ``((avg - 1) / 4) * 100``. A dimension with
        no answered items scores 0.

        Args:
            responses: Raw 1-5 responses of the session
            questions: Personality items keyed by id

        Returns:
            Dict[OceanDimension, float]: Score per dimension
        """
        values: Dict[OceanDimension, List[int]] = {dim: [] for dim in OceanDimension}

        for response in responses:
            question = questions.get(str(response.question_id))
            if question is None or not question.ocean_factor:
                continue

            try:
                dimension = OceanDimension(question.ocean_factor.strip().lower())
                value = normalize_likert_answer(response.response_value, question.score_orientation)
            except ValueError as e:
                logger.warning(
                    f"Skipping personality response: {str(e)}",
                    extra={"question_id": str(response.question_id)}
                )
                continue

            values[dimension].append(value)

        scores: Dict[OceanDimension, float] = {}
        for dimension, items in values.items():
            if not items:
                scores[dimension] = 0.0
                continue
            average = sum(items) / len(items)
            normalized = (average - LIKERT_MIN) / (LIKERT_MAX - LIKERT_MIN) * 100
            scores[dimension] = round(min(100.0, max(0.0, normalized)), 2)

        return scores

    def build_ocean_profile(
        self,
        scores: Mapping[OceanDimension, Optional[float]],
        motivations: Optional[Mapping[str, Optional[float]]] = None,
        total_responses: int = 0,
    ) -> OceanProfile:
        """Interpret dimension scores into levels and an overall profile.

        Args:
            scores: 0-100 score per dimension (missing scores count as 0)
            motivations: Optional motivation scores keyed by field prefix
            total_responses: Number of answered items, for the report header

        Returns:
            OceanProfile: Interpreted profile
        """
        dimensions = []
        for dimension in OceanDimension:
            score = float(scores.get(dimension) or 0.0)
            percentile = int(round_half_up(score))
            level = OceanLevel.from_percentile(percentile)

            dimensions.append(OceanDimensionResult(
                dimension=dimension,
                name=dimension.display_name,
                description=dimension.description,
                traits=dimension.traits,
                score=score,
                normalized_score=round(score, 2),
                percentile=percentile,
                level=level,
                interpretation=f"{level.value.capitalize()} en {dimension.display_name}",
            ))

        ranked = sorted(dimensions, key=lambda d: d.normalized_score, reverse=True)
        high = [d for d in dimensions if d.percentile >= 60]
        low = [d for d in dimensions if d.percentile <= 40]

        if len(high) >= 3:
            profile_type = ProfileType.HIGH_BALANCED
        elif len(low) >= 3:
            profile_type = ProfileType.INTROVERTED
        else:
            profile_type = ProfileType.BALANCED

        motivation_list = []
        for key, label in MOTIVATION_FIELDS:
            value = (motivations or {}).get(key)
            if value:
                motivation_list.append(Motivation(name=label, score=float(value)))

        return OceanProfile(
            dimensions=dimensions,
            motivations=motivation_list,
            overall=OceanOverallProfile(
                average_score=round(sum(d.normalized_score for d in dimensions) / len(dimensions), 2),
                dominant_trait=ranked[0].name,
                secondary_trait=ranked[1].name,
                profile_type=profile_type,
            ),
            total_responses=total_responses,
        )


def risk_css_class(label: Optional[str]) -> str:
    """CSS class for a risk label; anything that is not ALTO/MEDIO renders as low."""
    text = (label or "").upper()
    if "ALTO" in text:
        return RiskLevel.HIGH.css_class
    if "MEDIO" in text:
        return RiskLevel.MEDIUM.css_class
    return RiskLevel.LOW.css_class


__all__ = [
    "CategoryResult",
    "ReliabilityResult",
    "OceanDimensionResult",
    "OceanProfile",
    "ScoringService",
    "extract_answer_map",
    "normalize_likert_answer",
    "normalize_reliability_answer",
    "risk_css_class",
    "round_half_up",
]
