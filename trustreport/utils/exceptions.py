"""Custom exception classes for the TrustReport application.

Every error raised by the service derives from ``TrustReportError`` so that
the API layer can translate it into a consistent ``{error, code, request_id}``
response body.
"""

from typing import Any, Dict, List, Optional


class TrustReportError(Exception):
    """Base exception class for all TrustReport application errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize TrustReport error.

        Args:
            message: Error message
            error_code: Application-specific error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary representation for logging.

        Returns:
            Dict[str, Any]: Exception data
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        if self.details:
            parts.append(f"Details: {self.details}")
        return " | ".join(parts)


class ValidationError(TrustReportError):
    """Exception for input validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        validation_errors: Optional[List[str]] = None,
        **kwargs
    ):
        """Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            value: Invalid value
            validation_errors: List of specific validation errors
            **kwargs: Additional arguments for parent class
        """
        details = kwargs.get("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        if validation_errors:
            details["validation_errors"] = validation_errors

        kwargs["details"] = details
        kwargs.setdefault("error_code", "VALIDATION_ERROR")
        super().__init__(message, **kwargs)

        self.field = field
        self.value = value
        self.validation_errors = validation_errors or []


class ResourceNotFoundError(TrustReportError):
    """Exception for when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        **kwargs
    ):
        """Initialize resource not found error.

        Args:
            message: Error message
            resource_type: Type of resource (exam_attempt, personality_result, ...)
            resource_id: ID of the resource
            **kwargs: Additional arguments for parent class
        """
        details = kwargs.get("details", {})
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = str(resource_id)

        kwargs["details"] = details
        kwargs.setdefault("error_code", "NOT_FOUND")
        super().__init__(message, **kwargs)

        self.resource_type = resource_type
        self.resource_id = resource_id


class DatabaseError(TrustReportError):
    """Exception for database operation failures."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        query: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Initialize database error.

        Args:
            message: Error message
            operation: Database operation (find, insert, update, delete)
            collection: Collection name
            query: Query that failed (sensitive data will be masked)
            **kwargs: Additional arguments for parent class
        """
        details = kwargs.get("details", {})
        if operation:
            details["operation"] = operation
        if collection:
            details["collection"] = collection
        if query:
            details["query"] = _mask_sensitive_query_data(query)

        kwargs["details"] = details
        kwargs.setdefault("error_code", "DATABASE_ERROR")
        super().__init__(message, **kwargs)

        self.operation = operation
        self.collection = collection
        self.query = query


class CacheError(TrustReportError):
    """Exception for cache operation failures."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        cache_key: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.get("details", {})
        if operation:
            details["operation"] = operation
        if cache_key:
            details["cache_key"] = cache_key

        kwargs["details"] = details
        kwargs.setdefault("error_code", "CACHE_ERROR")
        super().__init__(message, **kwargs)

        self.operation = operation
        self.cache_key = cache_key


class ExternalServiceError(TrustReportError):
    """Exception for external service failures."""

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
        **kwargs
    ):
        """Initialize external service error.

        Args:
            message: Error message
            service: External service name (openai, adjustment, ...)
            status_code: HTTP status code if applicable
            response_data: Response data from service
            **kwargs: Additional arguments for parent class
        """
        details = kwargs.get("details", {})
        if service:
            details["service"] = service
        if status_code:
            details["status_code"] = status_code
        if response_data:
            details["response_data"] = response_data

        kwargs["details"] = details
        kwargs.setdefault("error_code", "EXTERNAL_SERVICE_ERROR")
        super().__init__(message, **kwargs)

        self.service = service
        self.status_code = status_code
        self.response_data = response_data


def _mask_sensitive_query_data(query: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive data in database query.

    Args:
        query: Query dictionary

    Returns:
        Dict[str, Any]: Query with sensitive data masked
    """
    sensitive_fields = ["password", "token", "key", "secret", "email"]
    masked_query = {}

    for key, value in query.items():
        if any(field in key.lower() for field in sensitive_fields):
            masked_query[key] = "***MASKED***"
        elif isinstance(value, dict):
            masked_query[key] = _mask_sensitive_query_data(value)
        else:
            masked_query[key] = value

    return masked_query


def create_error_response(
    error: TrustReportError,
    request_id: Optional[str] = None,
    include_details: bool = False
) -> Dict[str, Any]:
    """Create the standard error body returned by the API.

    Args:
        error: Application error instance
        request_id: Correlation id of the failing request
        include_details: Whether to include error details

    Returns:
        Dict[str, Any]: ``{error, code, request_id}`` plus optional details
    """
    response = {
        "error": error.message,
        "code": error.error_code,
        "request_id": request_id,
    }

    if include_details and error.details:
        response["details"] = error.details

    return response


__all__ = [
    "TrustReportError",
    "ValidationError",
    "ResourceNotFoundError",
    "DatabaseError",
    "CacheError",
    "ExternalServiceError",
    "create_error_response",
]
