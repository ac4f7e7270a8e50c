"""Base model classes for MongoDB documents.

The collections read by this service are written by another system, so the
models tolerate unknown fields and accept identifiers both as ObjectIds and
as opaque strings.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

T = TypeVar("T", bound="BaseDocument")


def _coerce_id(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


# Identifier stored either as ObjectId or as a UUID string
DocumentId = Annotated[str, BeforeValidator(_coerce_id)]


class BaseDocument(BaseModel):
    """Base model for documents loaded from MongoDB."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    id: Optional[DocumentId] = Field(default=None, alias="_id")
    created_at: Optional[datetime] = None

    @classmethod
    def from_mongo(cls: Type[T], data: Optional[Dict[str, Any]]) -> Optional[T]:
        """Create model instance from a raw MongoDB document.

        Args:
            data: Document as returned by the driver, or None

        Returns:
            Model instance, or None when no document was found
        """
        if data is None:
            return None
        return cls.model_validate(data)


__all__ = ["BaseDocument", "DocumentId"]
