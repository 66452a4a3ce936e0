"""
Email IR Schema Validation

Single entry point for checking an untyped payload against a pydantic
schema. Every stage output, provider response and ingress payload passes
through here so failures surface as one exception type.
"""

import logging
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import SchemaValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def format_errors(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to {loc, msg} pairs."""
    return [
        {"loc": ".".join(str(part) for part in item.get("loc", ())), "msg": item.get("msg", "")}
        for item in error.errors()
    ]


def validate_payload(schema: Type[M], data: Any) -> M:
    """
    Validate `data` against `schema`.

    Args:
        schema: Target pydantic model
        data: Parsed JSON (dict) or an existing model instance

    Returns:
        Validated model instance

    Raises:
        SchemaValidationError: with field-level errors
    """
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        errors = format_errors(e)
        fields = ", ".join(err["loc"] or "<root>" for err in errors[:5])
        logger.debug(f"{schema.__name__} validation failed on: {fields}")
        raise SchemaValidationError(
            f"{schema.__name__} validation failed ({len(errors)} error(s): {fields})",
            schema_name=schema.__name__,
            errors=errors,
        )
