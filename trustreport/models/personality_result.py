"""OCEAN personality result models."""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from trustreport.models.base import BaseDocument, DocumentId
from trustreport.utils.constants import MOTIVATION_FIELDS, OceanDimension


class PersonalityResult(BaseDocument):
    """Per-dimension Big Five scores (0-100) of one personality session."""

    session_id: Optional[DocumentId] = None
    user_id: Optional[DocumentId] = None
    psychometric_test_id: Optional[DocumentId] = None

    apertura_score: Optional[float] = None
    responsabilidad_score: Optional[float] = None
    extraversion_score: Optional[float] = None
    amabilidad_score: Optional[float] = None
    neuroticismo_score: Optional[float] = None

    logro_score: Optional[float] = None
    poder_score: Optional[float] = None
    afiliacion_score: Optional[float] = None
    autonomia_score: Optional[float] = None
    seguridad_score: Optional[float] = None
    reconocimiento_score: Optional[float] = None

    ai_interpretation: Optional[Dict] = None

    def dimension_scores(self) -> Dict[OceanDimension, Optional[float]]:
        return {dim: getattr(self, dim.score_field) for dim in OceanDimension}

    def has_dimension_scores(self) -> bool:
        return any(score is not None for score in self.dimension_scores().values())

    def motivation_scores(self) -> Dict[str, Optional[float]]:
        return {key: getattr(self, f"{key}_score") for key, _ in MOTIVATION_FIELDS}


class PersonalityQuestion(BaseModel):
    """A Likert item tagged with the dimension it measures."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[DocumentId] = Field(default=None, alias="_id")
    ocean_factor: Optional[str] = None
    score_orientation: str = "positive"


class PersonalityResponse(BaseModel):
    """One 1-5 answer to a personality item."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    question_id: DocumentId
    response_value: int

    @model_validator(mode="before")
    @classmethod
    def resolve_aliases(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            data.setdefault("question_id", data.get("questionId"))
            data.setdefault("response_value", data.get("responseValue"))
        return data


__all__ = ["PersonalityResult", "PersonalityQuestion", "PersonalityResponse"]
