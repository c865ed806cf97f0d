"""Secret fetching with per-pass caching and bounded retry."""
import logging
from typing import Protocol

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..domains.errors import TransientFailure
from ..domains.models import FetchKey, ResolutionContext

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 30


class SecretSource(Protocol):
    """Remote primitive the fetcher calls; GCPSecretClient implements it."""

    def access_secret(self, project_id: str, secret_name: str, version: str) -> str:
        ...


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception()
    logger.warning(
        f"Transient failure fetching secret {exc.fetch_key} "
        f"(attempt {retry_state.attempt_number}), retrying: {exc.reason}"
    )


class SecretFetcher:
    """
    Fetches secret payloads for one ResolutionContext.

    Each FetchKey is fetched from the source at most once; the payload is
    stored in the context cache before it is returned. Safe to call from
    several threads.
    """

    def __init__(self, context: ResolutionContext, source: SecretSource,
                 max_attempts: int = 3, backoff: float = 0.5):
        self.context = context
        self.source = source
        self.max_attempts = max_attempts
        self.backoff = backoff

    def _retrying(self) -> Retrying:
        return Retrying(
            retry=retry_if_exception_type(TransientFailure),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=MAX_BACKOFF_SECONDS),
            before_sleep=_log_retry,
            reraise=True,
        )

    def fetch(self, key: FetchKey) -> str:
        """
        Return the raw payload for ``key``, fetching it on first use.

        Raises:
            SecretNotFound, AccessDenied: Not retried
            TransientFailure: After max_attempts failed attempts
        """
        with self.context.key_lock(key):
            if key in self.context.cache:
                logger.debug(f"Cache hit for secret {key}")
                return self.context.cache[key]

            payload = self._retrying()(
                self.source.access_secret, self.context.project, key.secret_name, key.version
            )
            self.context.cache[key] = payload
            logger.debug(f"Fetched secret {key} from project {self.context.project}")
            return payload
