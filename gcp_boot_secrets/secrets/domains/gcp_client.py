"""GCP Secret Manager client wrapper."""
import logging
from typing import Any, Dict, Optional

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager
from google.oauth2 import service_account

from .errors import (
    AccessDenied,
    PayloadDecodeError,
    SecretFetchError,
    SecretNotFound,
    TransientFailure,
)
from .models import FetchKey

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

_NOT_FOUND = (gcp_exceptions.NotFound, gcp_exceptions.FailedPrecondition)
_ACCESS_DENIED = (
    gcp_exceptions.PermissionDenied,
    gcp_exceptions.Unauthenticated,
    auth_exceptions.RefreshError,
)
_TRANSIENT = (
    gcp_exceptions.ServiceUnavailable,
    gcp_exceptions.DeadlineExceeded,
    gcp_exceptions.InternalServerError,
    gcp_exceptions.TooManyRequests,
    gcp_exceptions.ResourceExhausted,
    gcp_exceptions.Aborted,
    gcp_exceptions.RetryError,
    auth_exceptions.TransportError,
)


def load_credentials(settings: Dict[str, Any]):
    """
    Build the credential object described by the bootstrap settings.

    Args:
        settings: Settings dict as returned by load_settings()

    Returns:
        Service account credentials, or None to use Application Default Credentials
    """
    auth = settings["authentication"]
    if auth["type"] == "application_default":
        logger.debug("Using Application Default Credentials")
        return None

    path = auth["service_account_path"]
    logger.debug(f"Loading service account credentials from {path}")
    return service_account.Credentials.from_service_account_file(
        path, scopes=[CLOUD_PLATFORM_SCOPE]
    )


def secret_version_name(project_id: str, secret_name: str, version: str) -> str:
    return f"projects/{project_id}/secrets/{secret_name}/versions/{version}"


class GCPSecretClient:
    """Wrapper around GCP Secret Manager client."""

    def __init__(self, credentials=None):
        self._credentials = credentials
        self._client = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient(credentials=self._credentials)
        return self._client

    def access_secret(self, project_id: str, secret_name: str, version: str) -> str:
        """
        Fetch one secret version payload from GCP Secret Manager.

        Args:
            project_id: GCP project ID
            secret_name: Name of the secret
            version: Version number or "latest"

        Returns:
            Secret payload decoded as UTF-8

        Raises:
            SecretNotFound: Secret or version does not exist or is disabled/destroyed
            AccessDenied: Credential lacks permission or is rejected
            TransientFailure: Network or service error worth retrying
            SecretFetchError: Any other API or auth error
            PayloadDecodeError: Payload is not valid UTF-8
        """
        key = FetchKey(secret_name, version)
        name = secret_version_name(project_id, secret_name, version)
        try:
            response = self.client.access_secret_version(request={"name": name})
        except _NOT_FOUND as e:
            raise SecretNotFound(key, str(e)) from e
        except _ACCESS_DENIED as e:
            raise AccessDenied(key, str(e)) from e
        except _TRANSIENT as e:
            raise TransientFailure(key, str(e)) from e
        except (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise SecretFetchError(key, str(e)) from e

        try:
            return response.payload.data.decode("UTF-8")
        except UnicodeDecodeError:
            raise PayloadDecodeError(key) from None
