"""Reliability exam models.

An ``ExamAttempt`` carries an immutable snapshot of the questions shown to the
candidate together with the answers given; everything derived from it
(category scores, risk) is recomputed on every report request.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from trustreport.models.base import BaseDocument, DocumentId
from trustreport.utils.constants import UNCATEGORIZED_LABEL


class AttemptQuestion(BaseModel):
    """A question as stored in an attempt snapshot.

    Snapshots written by different versions of the exam collaborator use
    different field names; they are folded into one shape here.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[DocumentId] = None
    question_text: str = ""
    category_name: str = UNCATEGORIZED_LABEL
    national_average: Optional[float] = None
    user_answer: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def resolve_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        resolved = dict(data)

        if resolved.get("question_text") is None:
            resolved["question_text"] = ""

        if resolved.get("id") is None:
            resolved["id"] = resolved.get("_id") or resolved.get("question_id")

        category = resolved.get("category_name") or resolved.get("category")
        if isinstance(category, dict):
            category = category.get("name")
        if not category and isinstance(resolved.get("categories"), dict):
            category = resolved["categories"].get("name")
        resolved["category_name"] = category or UNCATEGORIZED_LABEL

        if resolved.get("national_average") is None:
            resolved["national_average"] = resolved.get("media_poblacional_pregunta")

        if resolved.get("user_answer") is None:
            answer = resolved.get("userAnswer") or resolved.get("answer")
            resolved["user_answer"] = answer if isinstance(answer, str) else None

        return resolved


class ExamAttempt(BaseDocument):
    """A candidate's completed (or in-progress) reliability exam."""

    exam_id: Optional[DocumentId] = None
    user_id: Optional[DocumentId] = None
    questions: List[AttemptQuestion] = Field(default_factory=list)
    answers: Union[Dict[str, Any], List[Any], None] = None
    status: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    risk_analysis: Optional[Dict[str, Any]] = None
    personal_adjustment: Optional[float] = None
    ai_analysis: Optional[Dict[str, Any]] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed" or self.completed_at is not None


class Exam(BaseDocument):
    title: str = "Evaluación de Confiabilidad"
    description: Optional[str] = None
    duracion_minutos: Optional[int] = None


class ExamSession(BaseDocument):
    """Link between an exam assignment and the session used for adjustment."""

    exam_id: Optional[DocumentId] = None
    user_id: Optional[DocumentId] = None


__all__ = ["AttemptQuestion", "ExamAttempt", "Exam", "ExamSession"]
