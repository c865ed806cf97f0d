"""Tests for secret reference recognition and parsing."""
from collections import namedtuple

import pytest

from gcp_boot_secrets.secrets.domains.errors import MalformedReference
from gcp_boot_secrets.secrets.domains.models import FetchKey, SecretReference
from gcp_boot_secrets.secrets.domains.reference import (
    SECRET_MARKER,
    is_reference,
    parse_reference,
)


class TestIsReference:
    """Structural recognition of the marker tuple."""

    @pytest.mark.parametrize("node", [
        (SECRET_MARKER, "string", "S"),
        (SECRET_MARKER, "integer", "N", "3"),
        (SECRET_MARKER,),
        (SECRET_MARKER, "bogus", "S", "1", "extra"),
    ])
    def test_marker_led_tuples_are_references(self, node):
        assert is_reference(node)

    @pytest.mark.parametrize("node", [
        "gcp_secret",
        [SECRET_MARKER, "string", "S"],
        ("other", "string", "S"),
        ("GCP_SECRET", "string", "S"),
        (1, "string", "S"),
        (),
        {"gcp_secret": "string"},
        None,
        42,
    ])
    def test_other_values_are_not_references(self, node):
        assert not is_reference(node)

    def test_same_arity_application_tuple_is_not_reference(self):
        """An app's own 3-tuple is left alone unless the marker matches exactly."""
        assert not is_reference(("host", "port", "db"))


class TestParseReference:
    """Parsing marker-led tuples into SecretReference."""

    def test_three_element_reference_defaults_to_latest(self):
        ref = parse_reference((SECRET_MARKER, "string", "API_KEY"))
        assert ref == SecretReference("string", "API_KEY", "latest")

    def test_four_element_reference_keeps_version(self):
        ref = parse_reference((SECRET_MARKER, "integer", "DB_PORT", "7"))
        assert ref.type_tag == "integer"
        assert ref.secret_name == "DB_PORT"
        assert ref.version == "7"

    def test_omitted_and_latest_version_share_fetch_key(self):
        omitted = parse_reference((SECRET_MARKER, "string", "S"))
        latest = parse_reference((SECRET_MARKER, "string", "S", "latest"))
        assert omitted.fetch_key == latest.fetch_key == FetchKey("S", "latest")

    def test_different_types_same_secret_share_fetch_key(self):
        as_string = parse_reference((SECRET_MARKER, "string", "N"))
        as_int = parse_reference((SECRET_MARKER, "integer", "N"))
        assert as_string.fetch_key == as_int.fetch_key

    def test_namedtuple_with_marker_is_parsed(self):
        Ref = namedtuple("Ref", "marker type name")
        assert parse_reference(Ref(SECRET_MARKER, "string", "S")).secret_name == "S"

    @pytest.mark.parametrize("node, reason", [
        ((SECRET_MARKER,), "expected 3 or 4 elements"),
        ((SECRET_MARKER, "string"), "expected 3 or 4 elements"),
        ((SECRET_MARKER, "string", "S", "1", "x"), "expected 3 or 4 elements"),
        ((SECRET_MARKER, "not-a-type", "S"), "unknown type"),
        ((SECRET_MARKER, "String", "S"), "unknown type"),
        ((SECRET_MARKER, None, "S"), "unknown type"),
        ((SECRET_MARKER, "string", ""), "non-empty string"),
        ((SECRET_MARKER, "string", 123), "non-empty string"),
        ((SECRET_MARKER, "string", "api.key"), "invalid secret name"),
        ((SECRET_MARKER, "string", "MY SECRET"), "invalid secret name"),
        ((SECRET_MARKER, "string", "API_KEY\n"), "invalid secret name"),
        ((SECRET_MARKER, "string", "API_KEY", "3\n"), "unrecognized version"),
        ((SECRET_MARKER, "string", "S", 3), "version must be a string"),
        ((SECRET_MARKER, "string", "S", "newest"), "unrecognized version"),
        ((SECRET_MARKER, "string", "S", "0"), "unrecognized version"),
        ((SECRET_MARKER, "string", "S", "-1"), "unrecognized version"),
    ])
    def test_malformed_references_raise(self, node, reason):
        with pytest.raises(MalformedReference) as exc_info:
            parse_reference(node)
        assert reason in exc_info.value.reason
        assert exc_info.value.node == node

    def test_non_reference_raises(self):
        with pytest.raises(MalformedReference):
            parse_reference(("host", "string", "S"))
