"""Boot-time resolution of GCP Secret Manager references in configuration."""
from .secrets.domains.app_config import load_app_config
from .secrets.domains.config_loader import ConfigError, load_settings
from .secrets.domains.errors import (
    AccessDenied,
    CastError,
    PayloadDecodeError,
    MalformedReference,
    ResolutionError,
    SecretFetchError,
    SecretNotFound,
    TransientFailure,
)
from .secrets.domains.reference import SECRET_MARKER
from .secrets.workflows.bootstrap import run, run_from_settings

__version__ = "0.1.0"

__all__ = [
    "AccessDenied",
    "CastError",
    "ConfigError",
    "MalformedReference",
    "PayloadDecodeError",
    "ResolutionError",
    "SECRET_MARKER",
    "SecretFetchError",
    "SecretNotFound",
    "TransientFailure",
    "load_app_config",
    "load_settings",
    "run",
    "run_from_settings",
]
