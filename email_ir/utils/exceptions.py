"""
Email IR Custom Exceptions

Centralized exception classes for error handling.
"""

from typing import Any, List, Optional


class EmailIRBaseException(Exception):
    """Base exception for all Email IR errors."""
    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


# ============================================================================
# Source Data Exceptions
# ============================================================================

class EmailFetchError(EmailIRBaseException):
    """Source-data provider returned an error or could not be reached."""

    # 4xx statuses that can succeed on a later attempt
    RETRYABLE_CLIENT_STATUSES = (408, 429)

    def __init__(self, message: str, status: Optional[int] = None, body: str = ""):
        self.status = status
        self.body = body[:500] if body else ""
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Client errors other than timeout / rate limit will not change on retry."""
        if self.status is None:
            return True
        if 400 <= self.status < 500:
            return self.status in self.RETRYABLE_CLIENT_STATUSES
        return True


# ============================================================================
# Validation Exceptions
# ============================================================================

class SchemaValidationError(EmailIRBaseException):
    """A payload did not conform to its declared schema."""

    def __init__(self, message: str, schema_name: str = "", errors: Optional[List[Any]] = None):
        self.schema_name = schema_name
        self.errors = errors or []
        super().__init__(message)


# ============================================================================
# Execution Exceptions
# ============================================================================

class RetryExhaustedError(EmailIRBaseException):
    """All retry attempts failed."""

    def __init__(self, operation: str, attempts: int, last_error: Optional[BaseException] = None):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"{operation} failed after {attempts} attempt(s){detail}")


class StageError(EmailIRBaseException):
    """A pipeline stage failed after its retries."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"{stage}: {message}")


class PipelineTimeoutError(StageError):
    """A pipeline join did not finish within its deadline."""
    pass


# ============================================================================
# Storage Exceptions
# ============================================================================

class StorageError(EmailIRBaseException):
    """Report store operation failed."""
    pass
