"""Error taxonomy for record decoding, writer fetches and write-time validation."""

from typing import Any, Dict, Optional


class AggregatorError(Exception):
    """Base exception for the aggregation service."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class MalformedRecord(AggregatorError):
    """A raw row has the wrong field count or a field that fails to coerce.

    Raised inside the normalizer only; it is turned into a rejection and the
    batch continues.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, error_code="MALFORMED_RECORD", details=details)


class UnknownEnumValue(AggregatorError):
    """An enum-typed field holds a value outside its declared range."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, error_code="UNKNOWN_ENUM_VALUE", details=details)


class WriterFetchFailure(AggregatorError):
    """Fetching one writer's records failed or timed out."""

    def __init__(self, writer: str, reason: str) -> None:
        super().__init__(
            f"Failed to fetch records from writer {writer}: {reason}",
            error_code="WRITER_FETCH_FAILURE",
            details={"writer": writer, "reason": reason},
        )
        self.writer = writer


class ValidationFailure(AggregatorError):
    """A record offered for writing does not satisfy the write-time rules."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, error_code="VALIDATION_FAILURE", details=details)
