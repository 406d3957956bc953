"""
Firebase credential provider.

Loads the service account key (inline JSON env var or key file), initializes
the Firebase Admin app used by the SDK-backed services, and mints scoped
OAuth2 access tokens for the REST-backed ones.
"""
import json
import logging
from typing import Iterable, Optional

import firebase_admin
from django.conf import settings
from firebase_admin import credentials
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request

from .errors import CredentialError

logger = logging.getLogger("quickstart")

REMOTE_CONFIG_SCOPE = "https://www.googleapis.com/auth/firebase.remoteconfig"
MESSAGING_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"

# Firebase Admin initialization
_firebase_app = None


def load_credentials() -> credentials.Certificate:
    """
    Build a service account credential.

    FIREBASE_SERVICE_ACCOUNT (inline JSON) wins over the key file at
    FIREBASE_SERVICE_ACCOUNT_PATH.

    Raises:
        CredentialError: the key is missing, unreadable or not a service account
    """
    service_account_json = settings.FIREBASE_SERVICE_ACCOUNT
    service_account_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH

    if service_account_json:
        try:
            sa_dict = json.loads(service_account_json)
        except json.JSONDecodeError as e:
            raise CredentialError(f"Invalid FIREBASE_SERVICE_ACCOUNT JSON: {e}") from e
        source = "FIREBASE_SERVICE_ACCOUNT env var"
        key = sa_dict
    else:
        source = service_account_path
        key = service_account_path

    try:
        cred = credentials.Certificate(key)
    except (IOError, ValueError) as e:
        raise CredentialError(f"Unable to load service account from {source}: {e}") from e

    logger.debug(f"[CRED] Using service account from {source}")
    return cred


def get_project_id() -> str:
    """Project ID from settings, falling back to the key file"""
    if settings.FIREBASE_PROJECT_ID:
        return settings.FIREBASE_PROJECT_ID
    project_id = load_credentials().project_id
    if not project_id:
        raise CredentialError("Service account key does not name a project_id")
    return project_id


def get_firebase_app(database_url: Optional[str] = None) -> firebase_admin.App:
    """Get or initialize the default Firebase Admin app"""
    global _firebase_app

    if _firebase_app is not None:
        return _firebase_app

    cred = load_credentials()
    options = {"databaseURL": database_url or settings.FIREBASE_DATABASE_URL}
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID

    try:
        _firebase_app = firebase_admin.initialize_app(cred, options)
        logger.info("[CRED] Firebase Admin initialized")
    except ValueError:
        # Already initialized
        _firebase_app = firebase_admin.get_app()
        logger.info("[CRED] Firebase Admin already initialized")

    return _firebase_app


def get_access_token(scopes: Iterable[str]) -> str:
    """
    Fetch a fresh access token for the given scopes.

    Nothing is cached; every call performs a token exchange.
    """
    cred = load_credentials()
    scoped = cred.get_credential().with_scopes(list(scopes))
    try:
        scoped.refresh(Request())
    except google_auth_exceptions.GoogleAuthError as e:
        raise CredentialError(f"Token exchange failed: {e}") from e
    return scoped.token
