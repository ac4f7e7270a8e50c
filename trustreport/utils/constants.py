"""Constants and enums for the TrustReport application.

Labels and descriptive texts are Spanish because they are printed verbatim in
reports delivered to the evaluating companies.
"""

from enum import Enum
from typing import Dict, List, Tuple


# ============================================================================
# RELIABILITY SCORING
# ============================================================================

class ReliabilityAnswer(str, Enum):
    """Frequency labels of the reliability questionnaire."""

    NUNCA = "Nunca"
    RARA_VEZ = "Rara vez"
    A_VECES = "A veces"
    FRECUENTEMENTE = "Frecuentemente"

    @property
    def score(self) -> int:
        return RELIABILITY_ANSWER_SCORES[self]


RELIABILITY_ANSWER_SCORES: Dict[ReliabilityAnswer, int] = {
    ReliabilityAnswer.NUNCA: 0,
    ReliabilityAnswer.RARA_VEZ: 1,
    ReliabilityAnswer.A_VECES: 2,
    ReliabilityAnswer.FRECUENTEMENTE: 3,
}

# Lookup keyed by the lowercase label
RELIABILITY_LABEL_LOOKUP: Dict[str, int] = {
    answer.value.lower(): score for answer, score in RELIABILITY_ANSWER_SCORES.items()
}

MAX_ANSWER_SCORE = 3
UNCATEGORIZED_LABEL = "Sin categoría"
MAX_CHART_CATEGORIES = 20


class RiskLevel(str, Enum):
    """Risk classification of a category or of the whole attempt."""

    HIGH = "RIESGO ALTO"
    MEDIUM = "RIESGO MEDIO"
    LOW = "RIESGO BAJO"

    @property
    def css_class(self) -> str:
        return RISK_CSS_CLASSES[self]

    @property
    def color(self) -> str:
        return RISK_COLORS[self]


RISK_CSS_CLASSES: Dict[RiskLevel, str] = {
    RiskLevel.HIGH: "risk-high",
    RiskLevel.MEDIUM: "risk-medium",
    RiskLevel.LOW: "risk-low",
}

RISK_COLORS: Dict[RiskLevel, str] = {
    RiskLevel.HIGH: "#dc2626",
    RiskLevel.MEDIUM: "#f59e0b",
    RiskLevel.LOW: "#16a34a",
}

RISK_LEVEL_DESCRIPTIONS: Dict[RiskLevel, str] = {
    RiskLevel.LOW: "Comportamiento confiable y consistente con las normas organizacionales.",
    RiskLevel.MEDIUM: "Requiere supervisión adicional y seguimiento periódico.",
    RiskLevel.HIGH: "Requiere evaluación adicional antes de la contratación.",
}


# ============================================================================
# OCEAN / BIG FIVE
# ============================================================================

class ScoreOrientation(str, Enum):
    """Scoring direction of a Likert item."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class OceanDimension(str, Enum):
    """Big Five dimensions, keyed by the short name stored on results."""

    APERTURA = "apertura"
    RESPONSABILIDAD = "responsabilidad"
    EXTRAVERSION = "extraversion"
    AMABILIDAD = "amabilidad"
    NEUROTICISMO = "neuroticismo"

    @property
    def display_name(self) -> str:
        return OCEAN_DIMENSION_INFO[self]["name"]

    @property
    def description(self) -> str:
        return OCEAN_DIMENSION_INFO[self]["description"]

    @property
    def traits(self) -> List[str]:
        return OCEAN_DIMENSION_INFO[self]["traits"]

    @property
    def color(self) -> str:
        return OCEAN_DIMENSION_COLORS.get(self, DEFAULT_DIMENSION_COLOR)

    @property
    def score_field(self) -> str:
        """Field holding the 0-100 score on a personality result."""
        return f"{self.value}_score"


OCEAN_DIMENSION_INFO: Dict[OceanDimension, Dict] = {
    OceanDimension.APERTURA: {
        "name": "Apertura a la Experiencia",
        "description": "Refleja la disposición a experimentar nuevas ideas, valores y comportamientos.",
        "traits": ["Creatividad", "Curiosidad intelectual", "Imaginación", "Originalidad"],
    },
    OceanDimension.RESPONSABILIDAD: {
        "name": "Responsabilidad",
        "description": "Indica el nivel de organización, persistencia y motivación hacia metas.",
        "traits": ["Autodisciplina", "Organización", "Persistencia", "Responsabilidad"],
    },
    OceanDimension.EXTRAVERSION: {
        "name": "Extraversión",
        "description": "Mide la tendencia hacia la sociabilidad y la búsqueda de estimulación externa.",
        "traits": ["Sociabilidad", "Asertividad", "Energía", "Emociones positivas"],
    },
    OceanDimension.AMABILIDAD: {
        "name": "Amabilidad",
        "description": "Refleja la tendencia hacia la cooperación y la confianza en otros.",
        "traits": ["Confianza", "Altruismo", "Cooperación", "Modestia"],
    },
    OceanDimension.NEUROTICISMO: {
        "name": "Neuroticismo",
        "description": "Indica la tendencia a experimentar emociones negativas y inestabilidad emocional.",
        "traits": ["Ansiedad", "Hostilidad", "Depresión", "Impulsividad"],
    },
}

OCEAN_DIMENSION_COLORS: Dict[OceanDimension, str] = {
    OceanDimension.APERTURA: "#8b5cf6",
    OceanDimension.RESPONSABILIDAD: "#3b82f6",
    OceanDimension.EXTRAVERSION: "#f59e0b",
    OceanDimension.AMABILIDAD: "#10b981",
    OceanDimension.NEUROTICISMO: "#ef4444",
}
DEFAULT_DIMENSION_COLOR = "#6b7280"

LIKERT_MIN = 1
LIKERT_MAX = 5


class OceanLevel(str, Enum):
    """Percentile band of a Big Five dimension."""

    MUY_ALTO = "Muy Alto"
    ALTO = "Alto"
    MODERADO = "Moderado"
    BAJO = "Bajo"
    MUY_BAJO = "Muy Bajo"

    @classmethod
    def from_percentile(cls, percentile: float) -> "OceanLevel":
        for threshold, level in OCEAN_LEVEL_THRESHOLDS:
            if percentile >= threshold:
                return level
        return cls.MUY_BAJO

    @property
    def color(self) -> str:
        return OCEAN_LEVEL_COLORS[self]

    @property
    def css_class(self) -> str:
        return "score-" + self.value.lower().replace(" ", "-")


OCEAN_LEVEL_THRESHOLDS: List[Tuple[int, OceanLevel]] = [
    (80, OceanLevel.MUY_ALTO),
    (60, OceanLevel.ALTO),
    (40, OceanLevel.MODERADO),
    (20, OceanLevel.BAJO),
]

OCEAN_LEVEL_RANGES: Dict[OceanLevel, str] = {
    OceanLevel.MUY_ALTO: "80-100%",
    OceanLevel.ALTO: "60-79%",
    OceanLevel.MODERADO: "40-59%",
    OceanLevel.BAJO: "20-39%",
    OceanLevel.MUY_BAJO: "0-19%",
}

OCEAN_LEVEL_COLORS: Dict[OceanLevel, str] = {
    OceanLevel.MUY_ALTO: "#16a34a",
    OceanLevel.ALTO: "#22c55e",
    OceanLevel.MODERADO: "#fbbf24",
    OceanLevel.BAJO: "#f97316",
    OceanLevel.MUY_BAJO: "#dc2626",
}


class ProfileType(str, Enum):
    """Overall OCEAN profile label."""

    HIGH_BALANCED = "Perfil Equilibrado Alto"
    INTROVERTED = "Perfil Introvertido"
    BALANCED = "Perfil Balanceado"


# Motivation score fields and their display names, in report order
MOTIVATION_FIELDS: List[Tuple[str, str]] = [
    ("logro", "Logro"),
    ("poder", "Poder"),
    ("afiliacion", "Afiliación"),
    ("autonomia", "Autonomía"),
    ("seguridad", "Seguridad"),
    ("reconocimiento", "Reconocimiento"),
]


# ============================================================================
# ANALYSIS
# ============================================================================

class AnalysisType(str, Enum):
    """Kind of AI narrative stored in the analysis cache."""

    RELIABILITY = "reliability"
    OCEAN = "ocean"


class PromptType(str, Enum):
    """Chat-completion subtypes, each with its own model configuration."""

    RELIABILITY_ANALYSIS = "reliability_analysis"
    RELIABILITY_CONCLUSIONS = "reliability_conclusions"
    OCEAN = "ocean"
    OCEAN_CONCLUSIONS = "ocean_conclusions"


DEFAULT_MAX_TOKENS: Dict[PromptType, int] = {
    PromptType.RELIABILITY_ANALYSIS: 1500,
    PromptType.RELIABILITY_CONCLUSIONS: 1000,
    PromptType.OCEAN: 2000,
}

ANALYSIS_UNAVAILABLE = "Análisis no disponible"
CONCLUSIONS_UNAVAILABLE = "Conclusiones no disponibles"
NOT_SPECIFIED = "No especificado"


class Collections:
    """MongoDB collection names."""

    EXAM_ATTEMPTS = "exam_attempts"
    EXAMS = "exams"
    EXAM_SESSIONS = "exam_sessions"
    QUESTIONS = "questions"
    PROFILES = "profiles"
    PERSONAL_FACTORS = "personal_factors"
    PERSONALITY_RESULTS = "personality_results"
    PERSONALITY_RESPONSES = "personality_responses"
    PERSONALITY_QUESTIONS = "personality_questions"
    REPORT_CONFIGS = "report_configs"
    SYSTEM_CONFIG = "system_config"
    AI_ANALYSIS_CACHE = "ai_analysis_cache"
