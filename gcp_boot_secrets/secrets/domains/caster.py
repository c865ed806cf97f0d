"""Casting of raw secret payloads into declared configuration types."""
import re
from typing import Any, Callable, Dict, Optional

from .errors import CastError, MalformedReference
from .models import FetchKey

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def _cast_string(raw: str) -> str:
    return raw


def _cast_integer(raw: str) -> int:
    # int() alone would accept whitespace, underscores and non-ASCII digits
    if not _INTEGER_PATTERN.fullmatch(raw):
        raise ValueError(raw)
    return int(raw, 10)


CASTERS: Dict[str, Callable[[str], Any]] = {
    "string": _cast_string,
    "integer": _cast_integer,
}

SUPPORTED_TYPES = frozenset(CASTERS)


def cast(raw: str, type_tag: str, fetch_key: Optional[FetchKey] = None) -> Any:
    """
    Cast a raw secret payload into the type named by ``type_tag``.

    Args:
        raw: Secret payload text
        type_tag: One of SUPPORTED_TYPES
        fetch_key: Secret the payload came from, used in error messages

    Returns:
        The payload converted to the target type

    Raises:
        CastError: If the payload does not fit the target type
        MalformedReference: If type_tag is not supported
    """
    caster = CASTERS.get(type_tag)
    if caster is None:
        raise MalformedReference(type_tag, f"unknown type {type_tag!r}")

    try:
        return caster(raw)
    except ValueError:
        raise CastError(raw, type_tag, fetch_key) from None
