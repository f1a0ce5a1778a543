"""Shared pydantic types for knowledge items.

Input is normalized once at the boundary:
1. Ids and titles must contain something other than whitespace, but are stored as given
2. Tags accept a list or a comma-separated string and become a sorted set
3. Dates accept datetimes, ISO-8601 or natural language and become aware UTC
"""

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BeforeValidator, ValidationError

from knowledge_store.services.exceptions import InvalidInputError
from knowledge_store.utils import parse_datetime, parse_tags


def validate_not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


def validate_tags(value: Any) -> List[str]:
    """Normalize tag input into a sorted list of unique tags.

    Examples:
        >>> validate_tags("b, a, b")
        ['a', 'b']
        >>> validate_tags(None)
        []
    """
    if value is None:
        return []
    if not isinstance(value, (str, list, tuple, set, frozenset)):
        raise ValueError("tags must be a list of strings or a comma-separated string")
    return parse_tags(value)


def validate_optional_date(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, (str, datetime)):
        raise ValueError("date must be a datetime or a date string")
    return parse_datetime(value)


ItemId = Annotated[str, AfterValidator(validate_not_blank)]
Title = Annotated[str, AfterValidator(validate_not_blank)]
TagList = Annotated[List[str], BeforeValidator(validate_tags)]
FilterDate = Annotated[Optional[datetime], BeforeValidator(validate_optional_date)]


def format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        message = err["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def invalid_input(error: ValidationError, prefix: Optional[str] = None) -> InvalidInputError:
    message = format_validation_error(error)
    return InvalidInputError(f"{prefix}: {message}" if prefix else message)
