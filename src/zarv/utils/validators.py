"""Validation utilities for tool and service input.

Reusable validators so that every entry point rejects bad input the same
way, before anything is written.
"""

from typing import Any

from zarv.exceptions import ValidationError
from zarv.models.diff import DiffMode
from zarv.models.schema import HttpMethod


def validate_required(value: str | None, field_name: str) -> str:
    """Validate that a string is present and not blank.

    Args:
        value: The string to validate
        field_name: Name of the field for error messages

    Returns:
        The stripped string

    Raises:
        ValidationError: If the value is missing or whitespace only
    """
    if value is None or not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    value = value.strip()
    if not value:
        raise ValidationError(f"{field_name} cannot be empty or whitespace only")

    return value


def validate_definition(definition: str | None) -> str:
    """Validate schema definition text.

    The text is opaque here: it only has to be non-blank. It is returned
    unmodified so that history and diffs see exactly what was saved.

    Raises:
        ValidationError: If the definition is missing or blank
    """
    if definition is None or not isinstance(definition, str) or not definition.strip():
        raise ValidationError("definition cannot be empty")
    return definition


def validate_http_method(method: str | HttpMethod | None) -> HttpMethod | None:
    """Validate and convert a string to HttpMethod.

    Args:
        method: Method name (case-insensitive) or None

    Returns:
        The HttpMethod, or None when no method was given

    Raises:
        ValidationError: If the method is not supported
    """
    if method is None or isinstance(method, HttpMethod):
        return method

    try:
        return HttpMethod(method.upper())
    except (AttributeError, ValueError) as e:
        valid = ", ".join(m.value for m in HttpMethod)
        raise ValidationError(
            f"Invalid http_method: '{method}'. Valid methods are: {valid}"
        ) from e


def validate_diff_mode(mode: str | DiffMode) -> DiffMode:
    """Validate and convert a string to DiffMode.

    Raises:
        ValidationError: If the mode is neither unified nor split
    """
    if isinstance(mode, DiffMode):
        return mode

    try:
        return DiffMode(str(mode).lower())
    except ValueError as e:
        raise ValidationError(
            f"Invalid diff mode: '{mode}'. Valid modes are: unified, split"
        ) from e


def validate_positive_int(
    value: Any,
    field_name: str,
    min_value: int = 1,
    max_value: int | None = None,
) -> int:
    """Validate a positive integer within bounds.

    Args:
        value: The integer value to validate
        field_name: Name of the field for error messages
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit

    Returns:
        The validated integer

    Raises:
        ValidationError: If value is out of bounds
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")

    if value < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise ValidationError(f"{field_name} must be at most {max_value}")

    return value
