"""
Custom exception classes for the stock check application.

Every error carries a code, a human message, an HTTP status and details
so routes can turn it into the standard error response.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MISSING_COLUMN")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Request conflicts with current session state (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


# ===================
# STOCK LIST LOADING
# ===================

class MissingColumnError(ValidationError):
    """Declared unique-id header is not among the detected headers."""

    def __init__(self, header: str, detected_headers: list[str]):
        super().__init__(
            code="MISSING_COLUMN",
            message=f'Unique ID header "{header}" not found in the pasted data headers.',
            details={"header": header, "detected_headers": detected_headers}
        )


class EmptyInputError(ValidationError):
    """Nothing loadable in the supplied text."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="EMPTY_INPUT",
            message=message,
            details=details
        )


class MappingRequiredError(ValidationError):
    """Load attempted without naming the unique-id column."""

    def __init__(self):
        super().__init__(
            code="MAPPING_REQUIRED",
            message="Please specify the unique product/SKU header name.",
            details={"field": "unique_id_header"}
        )


# ===================
# SCANNING
# ===================

class EmptyScanError(ValidationError):
    """Scan token was blank after trimming."""

    def __init__(self):
        super().__init__(
            code="EMPTY_SCAN",
            message="Scan input is empty.",
        )


class StockListNotLoadedError(ConflictError):
    """Operation needs a loaded stock list."""

    def __init__(self, operation: str):
        super().__init__(
            code="STOCK_LIST_NOT_LOADED",
            message="Load a stock list first.",
            details={"operation": operation}
        )


class StockItemNotFoundError(NotFoundError):
    """No expected item with this identifier."""

    def __init__(self, item_id: str):
        super().__init__(
            resource="Stock item",
            identifier=item_id,
            code="STOCK_ITEM_NOT_FOUND"
        )


# ===================
# PERSISTENCE
# ===================

class StateStoreError(AppError):
    """Session snapshot could not be read or written (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="STATE_STORE_ERROR",
            message=f"State {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )
