from __future__ import annotations
"""Builds the authenticated storage transport."""
import json
import logging

import google.auth
from google.api_core.client_info import ClientInfo
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from .errors import CredentialsError
from .settings import DEFAULT_USER_AGENT

LOGGER = logging.getLogger(__name__)

FULL_CONTROL_SCOPE = "https://www.googleapis.com/auth/devstorage.full_control"


def load_service_account_credentials(json_key: str):
    """Return ``(credentials, project_id)`` for an inline service-account key."""
    try:
        info = json.loads(json_key)
    except json.JSONDecodeError as exc:
        raise CredentialsError(f"Service account key is not valid JSON: {exc}") from exc
    if not isinstance(info, dict):
        raise CredentialsError("Service account key must be a JSON object")
    try:
        credentials = service_account.Credentials.from_service_account_info(
            info, scopes=[FULL_CONTROL_SCOPE]
        )
    except (ValueError, GoogleAuthError) as exc:
        raise CredentialsError(f"Invalid service account key: {exc}") from exc
    return credentials, info.get("project_id")


def load_default_credentials():
    """Return ``(credentials, project_id)`` discovered from the environment."""
    try:
        return google.auth.default(scopes=[FULL_CONTROL_SCOPE])
    except GoogleAuthError as exc:
        raise CredentialsError(f"Unable to find default credentials: {exc}") from exc


def create_storage_client(*, json_key: str = "", user_agent: str = DEFAULT_USER_AGENT) -> storage.Client:
    """Create a storage client from an inline key, or ambient credentials when empty.

    Raises:
        CredentialsError: when no usable credentials can be loaded.
    """
    if json_key:
        credentials, project = load_service_account_credentials(json_key)
        LOGGER.debug("Using service account credentials for project %s", project)
    else:
        credentials, project = load_default_credentials()
        LOGGER.debug("Using default credentials for project %s", project)

    return storage.Client(
        project=project,
        credentials=credentials,
        client_info=ClientInfo(user_agent=user_agent),
    )
