"""Domain models for secret resolution."""
import threading
from dataclasses import dataclass, field
from typing import Any, Dict

LATEST = "latest"


@dataclass(frozen=True)
class FetchKey:
    """Cache identity of a secret within one resolution pass."""
    secret_name: str
    version: str = LATEST

    def __str__(self) -> str:
        return f"'{self.secret_name}' (version {self.version})"


@dataclass(frozen=True)
class SecretReference:
    """Parsed form of a ``("gcp_secret", type_tag, name[, version])`` tuple."""
    type_tag: str
    secret_name: str
    version: str = LATEST

    @property
    def fetch_key(self) -> FetchKey:
        return FetchKey(self.secret_name, self.version)


@dataclass
class ResolutionContext:
    """State for a single resolution pass; discarded once the pass completes.

    The fetch cache is the only mutable state shared between workers. Each
    FetchKey gets its own lock so that concurrent requests for the same
    secret wait on one another while different secrets fetch in parallel.
    """
    project: str
    credential: Any = None
    cache: Dict[FetchKey, str] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _key_locks: Dict[FetchKey, threading.Lock] = field(default_factory=dict, repr=False)

    def key_lock(self, key: FetchKey) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())
