"""Exceptions raised by ppcalc."""

from ppcalc.exceptions.domain import (
    CalculationTimeoutError,
    DegenerateInputError,
    FetchError,
    InvalidRequestError,
    PPCalcError,
    StorageError,
    ValidationError,
)

__all__ = [
    "CalculationTimeoutError",
    "DegenerateInputError",
    "FetchError",
    "InvalidRequestError",
    "PPCalcError",
    "StorageError",
    "ValidationError",
]
