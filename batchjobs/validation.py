from typing import Any, Optional

from .errors import InvalidArgumentError


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def blank_as_none(v: Any) -> Any:
    """Collapse empty or whitespace-only strings to None; leave anything else alone."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


def require(value: Any, name: str) -> Any:
    if value is None:
        raise InvalidArgumentError(name)
    return value


def require_non_blank(value: Optional[str], name: str) -> str:
    if value is None:
        raise InvalidArgumentError(name)
    if not _is_non_empty_str(value):
        raise InvalidArgumentError(name, "must be a non-empty string")
    return value
