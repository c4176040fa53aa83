"""
Domain exceptions for the calculation layer.

These exceptions are raised by the beatmap cache, the hit result estimators
and the performance calculator. Callers (e.g. a bot command handler) map them
to user-facing messages.
"""

from typing import Self


class PPCalcError(Exception):
    """Base exception for all ppcalc-specific errors."""

    def with_context(self, context: str) -> Self:
        """Prefix the message with ``[context]``, e.g. the id of the failed request.

        Args:
            context: Short tag identifying where the error happened

        Returns:
            Self with updated message
        """
        message = self.args[0] if self.args else ""
        self.args = (f"[{context}] {message}".rstrip(), *self.args[1:])
        return self


# Beatmap retrieval
class FetchError(PPCalcError):
    """Raised when a beatmap could not be obtained from the remote store."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        size: int | None = None,
    ) -> None:
        self.status_code = status_code
        self.size = size
        super().__init__(message)


class ValidationError(FetchError):
    """Raised when fetched or cached beatmap content is undersized or corrupt."""

    pass


class StorageError(PPCalcError):
    """Raised when the local beatmap cache cannot be written."""

    pass


# Calculation requests
class InvalidRequestError(PPCalcError):
    """Raised when the caller supplied contradictory or missing inputs."""

    pass


class DegenerateInputError(PPCalcError):
    """Raised when accuracy and judged object counts fall outside the formulas' domain."""

    pass


class CalculationTimeoutError(PPCalcError, TimeoutError):
    """Raised when a calculation exceeds its deadline."""

    def __init__(self, beatmap_id: int, timeout: float) -> None:
        self.beatmap_id = beatmap_id
        self.timeout = timeout
        super().__init__(f"Calculation for beatmap {beatmap_id} exceeded {timeout:g}s")
