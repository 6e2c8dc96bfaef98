"""
Custom exceptions for the site intelligence engine.
Handles lookup failures, validation errors and the structured failure results
returned by the service layer.
"""

import functools
import logging
from typing import Any, Callable, Dict, Optional, List

from fastapi import HTTPException, status
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    """Standard error detail structure"""
    code: str
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class BaseCustomException(HTTPException):
    """Base class for all custom exceptions"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
        field: Optional[str] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.field = field

    def __str__(self) -> str:
        return str(self.detail)


# =============================================================================
# LOOKUP ERRORS
# =============================================================================

class NotFoundError(BaseCustomException):
    """Resource not found exception"""

    def __init__(self, resource: str, identifier: str, message: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=message or f"{resource} with identifier '{identifier}' not found",
            error_code="RESOURCE_NOT_FOUND"
        )
        self.resource = resource
        self.identifier = identifier


class SiteNotFoundError(NotFoundError):
    """Site record is absent"""

    def __init__(self, site_id: str, role: str = "Site"):
        super().__init__(
            resource="Site",
            identifier=site_id,
            message=f"{role} not found: {site_id}"
        )


class ProjectRecordNotFoundError(NotFoundError):
    """Extended project record is absent for a site"""

    def __init__(self, site_id: str):
        super().__init__(
            resource="Site project",
            identifier=site_id,
            message=f"Site extended data not found: {site_id}"
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(BaseCustomException):
    """Base validation error"""

    def __init__(self, message: str, field: str = None, errors: List[ErrorDetail] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=message,
            error_code="VALIDATION_ERROR",
            field=field
        )
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, error: PydanticValidationError, message: str = "Invalid input data",
                      field: str = None) -> "ValidationError":
        """Wrap a pydantic validation failure, one ErrorDetail per failing location"""
        errors = [
            ErrorDetail(
                field=".".join(str(part) for part in detail["loc"]),
                message=detail["msg"],
                code=detail["type"],
            )
            for detail in error.errors()
        ]
        return cls(message, field=field, errors=errors)


class InvalidCoordinatesError(ValidationError):
    """Invalid GPS coordinates error"""

    def __init__(self, latitude: float = None, longitude: float = None):
        if latitude is not None and longitude is not None:
            message = f"Invalid coordinates: latitude={latitude}, longitude={longitude}"
        else:
            message = "Invalid GPS coordinates provided"

        super().__init__(
            message=message,
            field="coordinates",
            errors=[
                ErrorDetail(
                    code="INVALID_COORDINATES",
                    message="Latitude must be between -90 and 90, longitude between -180 and 180",
                    field="coordinates"
                )
            ]
        )
        self.error_code = "INVALID_COORDINATES"


class EmptyVisitListError(ValidationError):
    """Route request resolved to no visitable sites"""

    def __init__(self):
        super().__init__(
            message="No valid sites to visit found",
            field="sites_to_visit",
            errors=[
                ErrorDetail(
                    code="EMPTY_VISIT_LIST",
                    message="At least one known site other than the starting site is required",
                    field="sites_to_visit"
                )
            ]
        )
        self.error_code = "EMPTY_VISIT_LIST"


# =============================================================================
# BUSINESS LOGIC ERRORS
# =============================================================================

class BusinessLogicError(BaseCustomException):
    """Base business logic error"""

    def __init__(self, message: str, error_code: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=message,
            error_code=error_code
        )


class InsufficientDataError(BusinessLogicError):
    """Not enough data for an analysis that has no fallback heuristic"""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INSUFFICIENT_DATA"
        )


# =============================================================================
# RESULT FORMATTING
# =============================================================================

def format_error_response(error: BaseCustomException) -> Dict[str, Any]:
    """Format a custom exception as a structured failure result"""
    response = {
        "success": False,
        "error": error.detail,
        "errorCode": getattr(error, 'error_code', None) or 'UNKNOWN_ERROR',
        "statusCode": error.status_code
    }

    if getattr(error, 'field', None):
        response["field"] = error.field

    if getattr(error, 'errors', None):
        response["errors"] = [err.model_dump() for err in error.errors]

    return response


def handle_service_errors(operation: str) -> Callable:
    """
    Decorator for service entry points.

    Business exceptions and invalid input become ``{"success": False, ...}``
    results and persistence failures are surfaced with their original message.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except BaseCustomException as e:
                logger.warning(f"{operation} failed: {e.detail}")
                return format_error_response(e)
            except PydanticValidationError as e:
                logger.warning(f"{operation} failed: {e.error_count()} invalid fields")
                return format_error_response(ValidationError.from_pydantic(e, f"Invalid {e.title} data"))
            except SQLAlchemyError as e:
                logger.exception(f"{operation} failed in persistence layer")
                return {"success": False, "error": str(e)}
        return wrapper
    return decorator
