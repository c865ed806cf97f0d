"""Boot-time resolution of secret references in application configuration."""
import logging
from typing import Any, Dict, Optional

from ..domains.config_loader import get_project_id, load_settings
from ..domains.gcp_client import GCPSecretClient, load_credentials
from ..domains.models import ResolutionContext
from .fetcher import SecretFetcher, SecretSource
from .walker import ConfigWalker

logger = logging.getLogger(__name__)


def run(raw_config: Any, project: str, credential=None, *,
        client: Optional[SecretSource] = None, max_attempts: int = 3,
        backoff: float = 0.5, max_workers: int = 1) -> Any:
    """
    Resolve every secret reference in ``raw_config``.

    Args:
        raw_config: Nested configuration as loaded by the host
        project: GCP project holding the secrets
        credential: google.auth credentials, or None for Application Default Credentials
        client: Secret source to use instead of a GCPSecretClient built from ``credential``
        max_attempts: Attempts per secret on transient failures
        backoff: Exponential backoff multiplier in seconds
        max_workers: Parallel fetches; 1 resolves sequentially

    Returns:
        A new configuration of the same shape with every reference replaced
        by its resolved value. ``raw_config`` is not modified.

    Raises:
        ResolutionError: On any malformed reference, fetch or cast failure. No
            partially resolved configuration is ever returned; callers must
            treat this as fatal to startup.
    """
    context = ResolutionContext(project=project, credential=credential)
    source = client if client is not None else GCPSecretClient(credentials=credential)
    fetcher = SecretFetcher(context, source, max_attempts=max_attempts, backoff=backoff)

    resolved = ConfigWalker(fetcher, max_workers=max_workers).resolve(raw_config)

    logger.info(f"Resolved {len(context.cache)} secrets from project {project}")
    return resolved


def run_from_settings(raw_config: Any, settings: Optional[Dict[str, Any]] = None,
                      client: Optional[SecretSource] = None,
                      project: Optional[str] = None) -> Any:
    """
    Resolve ``raw_config`` using project, credentials and resolver options
    from the bootstrap settings file. An explicit ``project`` takes priority
    over both GCP_PROJECT and the settings file.

    Raises:
        FileNotFoundError, ConfigError: If settings cannot be loaded
        ResolutionError: As for run()
    """
    if settings is None:
        settings = load_settings()

    credential = load_credentials(settings) if client is None else None
    resolver = settings['resolver']

    return run(
        raw_config,
        project or get_project_id(settings),
        credential,
        client=client,
        max_attempts=resolver['max_attempts'],
        backoff=resolver['backoff_seconds'],
        max_workers=resolver['max_workers'],
    )
