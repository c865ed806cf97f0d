"""Recognition and parsing of secret references in configuration values.

A secret reference is a tuple led by the literal marker ``"gcp_secret"``::

    ("gcp_secret", "string", "API_KEY")
    ("gcp_secret", "integer", "DB_PORT", "3")

Recognition is purely structural: any other tuple, list or scalar is plain
configuration. Once the marker is present the rest of the tuple must be
well formed, otherwise MalformedReference is raised.
"""
import re
from typing import Any

from .caster import SUPPORTED_TYPES
from .errors import MalformedReference
from .models import LATEST, SecretReference

SECRET_MARKER = "gcp_secret"

# GCP Secret Manager allows only: [a-zA-Z0-9_-]
_SECRET_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")
_VERSION_PATTERN = re.compile(r"[1-9][0-9]*")


def is_reference(node: Any) -> bool:
    """Return True if ``node`` is a tuple led by the secret marker."""
    return (
        isinstance(node, tuple)
        and len(node) > 0
        and isinstance(node[0], str)
        and node[0] == SECRET_MARKER
    )


def parse_reference(node: Any) -> SecretReference:
    """
    Parse a marker-led tuple into a SecretReference.

    Args:
        node: Tuple recognized by is_reference()

    Returns:
        SecretReference with the version normalized to "latest" when omitted

    Raises:
        MalformedReference: If arity, type tag, secret name or version is invalid
    """
    if not is_reference(node):
        raise MalformedReference(node, f"expected a tuple starting with {SECRET_MARKER!r}")

    if len(node) not in (3, 4):
        raise MalformedReference(
            node, f"expected 3 or 4 elements (marker, type, name[, version]), got {len(node)}"
        )

    type_tag, secret_name = node[1], node[2]
    version = node[3] if len(node) == 4 else LATEST

    if not isinstance(type_tag, str) or type_tag not in SUPPORTED_TYPES:
        raise MalformedReference(
            node, f"unknown type {type_tag!r}, expected one of {sorted(SUPPORTED_TYPES)}"
        )

    if not isinstance(secret_name, str) or not secret_name:
        raise MalformedReference(node, "secret name must be a non-empty string")

    if not _SECRET_NAME_PATTERN.fullmatch(secret_name):
        raise MalformedReference(
            node, f"invalid secret name {secret_name!r}, allowed characters: [a-zA-Z0-9_-]"
        )

    if not isinstance(version, str):
        raise MalformedReference(node, f"version must be a string, got {type(version).__name__}")

    if version != LATEST and not _VERSION_PATTERN.fullmatch(version):
        raise MalformedReference(
            node, f"unrecognized version {version!r}, expected 'latest' or a version number"
        )

    return SecretReference(type_tag=type_tag, secret_name=secret_name, version=version)
