"""
Email IR Utilities Package
==========================

Common utilities, constants, and helper functions used throughout the application.
"""

from email_ir.utils.exceptions import (
    EmailIRBaseException,
    EmailFetchError,
    SchemaValidationError,
    RetryExhaustedError,
    StageError,
    PipelineTimeoutError,
    StorageError,
)

from email_ir.utils.retry import RetryPolicy, with_retry

from email_ir.utils.validation import validate_payload, format_errors

__all__ = [
    'EmailIRBaseException',
    'EmailFetchError',
    'SchemaValidationError',
    'RetryExhaustedError',
    'StageError',
    'PipelineTimeoutError',
    'StorageError',
    'RetryPolicy',
    'with_retry',
    'validate_payload',
    'format_errors',
]
