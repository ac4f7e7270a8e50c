"""Candidate profile and personal-factor models."""

from typing import Optional, Union

from trustreport.models.base import BaseDocument, DocumentId


class Profile(BaseDocument):
    """Candidate identity data shown in report headers."""

    full_name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    area: Optional[str] = None
    section: Optional[str] = None


class PersonalFactors(BaseDocument):
    """Personal circumstances that drive the score adjustment.

    ``ajuste_total`` is a fraction: 0.05 raises every score by 5%.
    """

    session_id: Optional[DocumentId] = None
    user_id: Optional[DocumentId] = None
    exam_id: Optional[DocumentId] = None
    ajuste_total: float = 0.0
    estado_civil: Optional[str] = None
    tiene_hijos: Optional[bool] = None
    situacion_habitacional: Optional[str] = None
    edad: Optional[Union[int, str]] = None

    def summary(self) -> dict:
        return {
            "estado_civil": self.estado_civil,
            "tiene_hijos": self.tiene_hijos,
            "situacion_habitacional": self.situacion_habitacional,
            "edad": self.edad,
        }


__all__ = ["Profile", "PersonalFactors"]
