"""Custom exception hierarchy for the location routing backend.

Resolution itself never raises for user input: any string normalizes, and a
missing match is a first-class outcome. Exceptions are reserved for broken
configuration, broken registry data discovered at load time, and contract
checks run by tests.

Exception Hierarchy:
    ListifyError (base)
    ├── ConfigurationError
    ├── ValidationError
    ├── NotFoundError
    ├── RegistryError
    │   ├── RegistryLoadError
    │   ├── InvalidRegistryEntityError
    │   └── AmbiguousRegistryError
    ├── GuardrailViolationError
    └── ExternalServiceError
"""
from __future__ import annotations

from typing import Optional, Dict, Any, List


class ListifyError(Exception):
    """Base exception for all listify errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ListifyError):
    """Raised when there's a configuration problem.

    Examples:
        - Registry path points at a missing file
        - Invalid listing type default
    """
    pass


class ValidationError(ListifyError):
    """Raised when request validation fails."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code, details)


class NotFoundError(ListifyError):
    """Raised when a requested province or city slug is not in the registry."""

    status_code = 404


# Registry Errors
class RegistryError(ListifyError):
    """Base class for location registry data problems."""
    pass


class RegistryLoadError(RegistryError):
    """Raised when a registry source is structurally unusable.

    This is a startup concern: unreadable file, malformed YAML/JSON, an
    unknown entity type or a record without a name.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.source = source
        details = details or {}
        if source:
            details["source"] = source
        super().__init__(message, code, details)


class InvalidRegistryEntityError(RegistryError):
    """Raised for a single entity that cannot take part in matching.

    The snapshot builder catches this, logs it and drops the entity.
    """

    def __init__(
        self,
        message: str,
        entity_id: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.entity_id = entity_id
        details = details or {}
        if entity_id:
            details["entity_id"] = entity_id
        super().__init__(message, code, details)


class AmbiguousRegistryError(RegistryError):
    """Two entities of the same type share a name or alias.

    Recorded as a data-quality issue; matching recovers with the slug
    tie-break so this is never raised to a caller of resolution.
    """

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        slugs: Optional[List[str]] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.key = key
        self.slugs = list(slugs or [])
        details = details or {}
        if key:
            details["key"] = key
        if self.slugs:
            details["slugs"] = self.slugs
        super().__init__(message, code, details)


class GuardrailViolationError(ListifyError):
    """Raised when a page composition breaks its render-mode contract.

    Attributes:
        violations: The individual contract violations found
    """

    def __init__(
        self,
        message: str,
        violations: Optional[List[Any]] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.violations = list(violations or [])
        details = details or {}
        if self.violations:
            details["violations"] = [str(v) for v in self.violations]
        super().__init__(message, code, details)


class ExternalServiceError(ListifyError):
    """Raised when an external service (remote registry export) fails.

    Attributes:
        service: Name of the external service
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        details = details or {}
        if service:
            details["service"] = service
        super().__init__(message, code, details)


def get_error_response(error: Exception) -> Dict[str, Any]:
    """Convert any exception to an API error response.

    Args:
        error: The exception to convert

    Returns:
        Dictionary suitable for API error response
    """
    if isinstance(error, ListifyError):
        return error.to_dict()

    return {
        "error": "InternalError",
        "message": str(error),
        "details": {},
    }
