"""Configuration loader for gcp-boot-secrets."""
import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GCP_BOOT_SECRETS_CONFIG"
PROJECT_ENV_VAR = "GCP_PROJECT"

SUPPORTED_AUTH_TYPES = ("service_account", "application_default")

RESOLVER_DEFAULTS = {
    "max_attempts": 3,
    "backoff_seconds": 0.5,
    "max_workers": 1,
}


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    return Path.home() / ".config" / "gcp-boot-secrets" / "config.yml"


def locate_settings(path: Optional[str] = None) -> Tuple[Path, str]:
    """
    Work out which settings file to use without requiring it to exist.

    Priority order:
    1. Explicit path argument
    2. GCP_BOOT_SECRETS_CONFIG environment variable
    3. Default location: ~/.config/gcp-boot-secrets/config.yml

    Returns:
        Tuple of (path, source) where source is "argument", "environment" or "default"
    """
    if path:
        return Path(path), "argument"

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), "environment"

    return default_config_path(), "default"


def _get_config_path(path: Optional[str] = None) -> str:
    """
    Get settings file path.

    Raises:
        FileNotFoundError: If the selected settings file doesn't exist
    """
    config_path, source = locate_settings(path)
    if config_path.exists():
        logger.info(f"Using settings from {source}: {config_path}")
        return str(config_path)

    default_config = default_config_path()
    raise FileNotFoundError(
        f"Settings file not found: {config_path} (source: {source}).\n"
        "Please set up your settings file using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing settings file:\n"
        f"   export {CONFIG_ENV_VAR}=/path/to/your/config.yml\n\n"
        "3. Pass it explicitly:\n"
        "   bootsecrets resolve app.yml --settings /path/to/your/config.yml\n"
    )


def _validate_authentication(config: Dict[str, Any], config_path: str) -> None:
    if 'authentication' not in config:
        raise ConfigError(
            f"Missing 'authentication' section in settings at {config_path}\n"
            f"Required format:\n"
            f"authentication:\n"
            f"  type: service_account\n"
            f"  service_account_path: /path/to/service-account.json"
        )

    auth = config['authentication']
    if not isinstance(auth, dict) or 'type' not in auth:
        raise ConfigError("Missing 'authentication.type' in settings")

    if auth['type'] not in SUPPORTED_AUTH_TYPES:
        raise ConfigError(
            f"Unsupported authentication type: {auth['type']}\n"
            f"Supported types: {', '.join(SUPPORTED_AUTH_TYPES)}"
        )

    if auth['type'] != 'service_account':
        return

    if 'service_account_path' not in auth:
        raise ConfigError(
            "Missing 'authentication.service_account_path' in settings\n"
            "Please specify the absolute path to your service account JSON file."
        )

    service_account_path = auth['service_account_path']

    if not os.path.exists(service_account_path):
        raise ConfigError(
            f"Service account file not found at: {service_account_path}\n"
            f"Please ensure the file exists or update the path in {config_path}"
        )

    if not os.path.isfile(service_account_path):
        raise ConfigError(
            f"Service account path is not a file: {service_account_path}"
        )


def _validate_resolver(config: Dict[str, Any]) -> Dict[str, Any]:
    resolver = config.get('resolver') or {}
    if not isinstance(resolver, dict):
        raise ConfigError("'resolver' section must be a mapping")

    unknown = set(resolver) - set(RESOLVER_DEFAULTS)
    if unknown:
        raise ConfigError(f"Unknown keys in 'resolver' section: {', '.join(sorted(unknown))}")

    merged = {**RESOLVER_DEFAULTS, **resolver}

    for key in ('max_attempts', 'max_workers'):
        value = merged[key]
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigError(f"'resolver.{key}' must be a positive integer, got {value!r}")

    backoff = merged['backoff_seconds']
    if not isinstance(backoff, (int, float)) or isinstance(backoff, bool) or backoff < 0:
        raise ConfigError(f"'resolver.backoff_seconds' must be a non-negative number, got {backoff!r}")

    return merged


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate bootstrap settings from YAML file.

    Args:
        path: Explicit settings path (falls back to env var, then default location)

    Returns:
        Dict containing settings with keys:
        - authentication: dict with type and, for service accounts, service_account_path
        - gcp: dict with project_id
        - resolver: dict with max_attempts, backoff_seconds, max_workers (defaults filled)

    Raises:
        FileNotFoundError: If no settings file exists at the selected location
        ConfigError: If the file is invalid or the service account file doesn't exist
    """
    # Resolved on every call so env var changes take effect without a restart
    config_path = _get_config_path(path)

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML settings at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read settings file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Settings file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Settings file at {config_path} must contain a mapping")

    _validate_authentication(config, config_path)

    if not isinstance(config.get('gcp'), dict):
        raise ConfigError(
            f"Missing 'gcp' section in settings at {config_path}\n"
            f"Required format:\n"
            f"gcp:\n"
            f"  project_id: your-project-id"
        )

    if 'project_id' not in config['gcp']:
        raise ConfigError("Missing 'gcp.project_id' in settings")

    config['resolver'] = _validate_resolver(config)

    logger.info(f"Settings loaded successfully from {config_path}")
    logger.debug(f"Using authentication type: {config['authentication']['type']}")
    logger.debug(f"Using project ID: {config['gcp']['project_id']}")

    return config


def get_project_id(settings: Dict[str, Any]) -> str:
    """
    Get GCP project ID from environment variable or settings.

    Priority order:
    1. GCP_PROJECT environment variable (allows override)
    2. Settings file
    """
    gcp_project_env = os.getenv(PROJECT_ENV_VAR)
    if gcp_project_env:
        logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
        return gcp_project_env

    project_id = settings['gcp']['project_id']
    logger.debug(f"Using project_id from settings: {project_id}")
    return project_id
