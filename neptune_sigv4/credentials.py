"""Module containing credential sources for the Signer."""
import os
from typing import Optional

from .exceptions import ConfigurationError, CredentialError
from .models import Credentials


class StaticCredentialsProvider:
    """Provides a fixed set of credentials."""

    def __init__(self, access_key: str, secret_key: str, session_token: Optional[str] = None) -> None:
        if not access_key or not secret_key:
            raise ConfigurationError("Access key and secret key must not be empty")
        self._credentials = Credentials(access_key, secret_key, session_token)

    def get_credentials(self) -> Credentials:
        return self._credentials


class EnvironmentCredentialsProvider:
    """Reads credentials from the process environment on every call.

    Uses AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY and, when set,
    AWS_SESSION_TOKEN.
    """

    def get_credentials(self) -> Credentials:
        """Return the credentials currently in the environment.

        :raise CredentialError: if the access key or secret key is not set.
        :return: Credentials, the environment credentials.
        """
        access_key = os.environ.get('AWS_ACCESS_KEY_ID')
        secret_key = os.environ.get('AWS_SECRET_ACCESS_KEY')

        if not access_key or not secret_key:
            raise CredentialError("AWS credentials not found in environment")

        return Credentials(access_key, secret_key, os.environ.get('AWS_SESSION_TOKEN') or None)
