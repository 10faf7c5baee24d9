"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,

    # Stock list loading
    MissingColumnError,
    EmptyInputError,
    MappingRequiredError,

    # Scanning
    EmptyScanError,
    StockListNotLoadedError,
    StockItemNotFoundError,

    # Persistence
    StateStoreError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",

    # Stock list loading
    "MissingColumnError",
    "EmptyInputError",
    "MappingRequiredError",

    # Scanning
    "EmptyScanError",
    "StockListNotLoadedError",
    "StockItemNotFoundError",

    # Persistence
    "StateStoreError",
]
