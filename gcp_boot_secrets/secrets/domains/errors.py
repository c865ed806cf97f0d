"""Error taxonomy for secret resolution.

Every error raised during a resolution pass derives from ResolutionError and
is fatal to the boot sequence. Messages identify the offending reference
(secret name, version, config path) but never contain secret payloads.
"""
from typing import Any, Optional

from .models import FetchKey


class ResolutionError(Exception):
    """Base class for errors that abort a resolution pass."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (at config path '{self.path}')"
        return self.message


class MalformedReference(ResolutionError):
    """A marker-led tuple that does not parse as a secret reference."""

    def __init__(self, node: Any, reason: str, path: Optional[str] = None):
        super().__init__(f"Malformed secret reference {node!r}: {reason}", path)
        self.node = node
        self.reason = reason


class CastError(ResolutionError):
    """A fetched payload does not fit the declared type.

    The offending payload is kept on ``raw`` for programmatic inspection
    only; it is deliberately left out of the message.
    """

    def __init__(self, raw: str, type_tag: str, fetch_key: Optional[FetchKey] = None,
                 path: Optional[str] = None):
        if fetch_key is not None:
            message = f"Cannot cast secret {fetch_key} to {type_tag}"
        else:
            message = f"Cannot cast payload to {type_tag}"
        super().__init__(message, path)
        self.raw = raw
        self.type_tag = type_tag
        self.fetch_key = fetch_key


class PayloadDecodeError(CastError):
    """A fetched payload is not UTF-8 text, whatever type was declared."""

    def __init__(self, fetch_key: FetchKey, path: Optional[str] = None):
        super().__init__("<undecodable bytes>", None, fetch_key, path)
        self.message = f"Secret {fetch_key} payload is not valid UTF-8 text"


class SecretFetchError(ResolutionError):
    """The secret store failed to return a payload for a FetchKey."""

    kind = "fetch failed"

    def __init__(self, fetch_key: FetchKey, reason: str = "", path: Optional[str] = None):
        message = f"Failed to fetch secret {fetch_key}: {self.kind}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, path)
        self.fetch_key = fetch_key
        self.reason = reason


class SecretNotFound(SecretFetchError):
    kind = "not found"


class AccessDenied(SecretFetchError):
    kind = "access denied"


class TransientFailure(SecretFetchError):
    """Network or service error; retried a bounded number of times."""

    kind = "transient failure"
