"""Shared fixtures for gcp-boot-secrets tests."""
import threading
from collections import Counter

import pytest

from gcp_boot_secrets.secrets.domains.errors import SecretNotFound
from gcp_boot_secrets.secrets.domains.models import FetchKey, ResolutionContext


class FakeSecretClient:
    """In-memory secret source that records every access.

    ``secrets`` maps (name, version) to either a payload string or an
    exception factory taking the FetchKey.
    """

    def __init__(self, secrets=None):
        self.secrets = dict(secrets or {})
        self.calls = []
        self._lock = threading.Lock()

    def access_secret(self, project_id, secret_name, version):
        with self._lock:
            self.calls.append((project_id, secret_name, version))
        value = self.secrets.get((secret_name, version))
        if value is None:
            raise SecretNotFound(FetchKey(secret_name, version))
        if callable(value):
            raise value(FetchKey(secret_name, version))
        return value

    def call_counts(self):
        return Counter((name, version) for _, name, version in self.calls)


@pytest.fixture
def fake_client():
    """Fake client preloaded with a few latest-version secrets."""
    return FakeSecretClient({
        ("S", "latest"): "hello",
        ("N", "latest"): "42",
        ("BAD_INT", "latest"): "abc",
        ("DB_PASSWORD", "latest"): "s3cr3t",
        ("DB_PASSWORD", "2"): "older-s3cr3t",
    })


@pytest.fixture
def context():
    return ResolutionContext(project="test-project")
