"""Module containing the AssumeRoleCredentialsProvider for aws."""
import datetime
import logging
import threading
import time
from typing import Callable, Optional
from xml.etree import ElementTree as ET

import requests

from .exceptions import ConfigurationError, RoleAssumeError
from .models import CanonicalRequest, Credentials
from .protocols import CredentialsSource, SigningPrimitive
from .request_signer import RequestSigner, signature_headers

logger = logging.getLogger(__name__)

STS_NAMESPACE = '{https://sts.amazonaws.com/doc/2011-06-15/}'
STS_SERVICE_NAME = 'sts'
STS_API_VERSION = '2011-06-15'


def _parse_expiration(text: str) -> datetime.datetime:
    for fmt in ('%Y-%m-%dT%H:%M:%S.%fZ', '%Y-%m-%dT%H:%M:%SZ'):
        try:
            return datetime.datetime.strptime(text, fmt).replace(tzinfo=datetime.timezone.utc)
        except ValueError:
            continue
    raise RoleAssumeError(f"Invalid expiration timestamp: {text}")


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class AssumeRoleCredentialsProvider:
    """Provides temporary credentials obtained by assuming an IAM role.

    This is an optional credentials source; the Signer works with any
    object exposing get_credentials(), and refresh policy stays the
    source's own concern.

    The STS request is signed with the source credentials. Credentials are
    reused until ``refresh_margin`` seconds before they expire.
    """

    def __init__(
        self,
        role_arn: str,
        source_credentials: CredentialsSource,
        region: str = 'us-east-1',
        external_id: Optional[str] = None,
        session_duration: int = 3600,
        refresh_margin: int = 300,
        timeout: float = 10.0,
        signing_primitive: Optional[SigningPrimitive] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ) -> None:
        if not role_arn:
            raise ConfigurationError("The role ARN must not be empty")
        if source_credentials is None:
            raise ConfigurationError("The source credentials provider must not be null")

        self.role_arn = role_arn
        self.source_credentials = source_credentials
        self.region = region
        self.external_id = external_id
        self.session_duration = session_duration
        self.refresh_margin = datetime.timedelta(seconds=refresh_margin)
        self.timeout = timeout
        self.endpoint = f'https://sts.{region}.amazonaws.com'

        self._signing_primitive = signing_primitive if signing_primitive is not None else RequestSigner()
        self._clock = clock if clock is not None else _utcnow
        self._lock = threading.Lock()
        self._credentials: Optional[Credentials] = None
        self._expiration: Optional[datetime.datetime] = None

    def get_credentials(self) -> Credentials:
        """Return cached credentials, assuming the role again when they are about to expire.

        :raises RoleAssumeError: if role assumption fails.
        :return: Credentials, temporary credentials.
        """
        with self._lock:
            if self._credentials is None or self._clock() >= self._expiration - self.refresh_margin:
                self._credentials, self._expiration = self.assume_role()
            return self._credentials

    def _get_credential_text(self, element: Optional[ET.Element], name: str) -> str:
        """Extract text content from a credential XML element safely.

        :param element: Optional[ET.Element], XML element to search in
        :param name: str, Name of the credential field
        :return str: The text content of the element
        :raises RoleAssumeError: If element is None or text is missing
        """
        if element is None:
            raise RoleAssumeError("Credentials element is None")

        credential = element.find(f'{STS_NAMESPACE}{name}')
        if credential is None:
            raise RoleAssumeError(f"Missing {name} in credentials response")

        if credential.text is None:
            raise RoleAssumeError(f"No text content in {name} element")

        return credential.text

    def assume_role(self):
        """Assume the specified IAM role.

        :raises RoleAssumeError: if role assumption fails.
        :return: Tuple[Credentials, datetime.datetime], temporary credentials and their expiration.
        """
        params = {
            'Action': 'AssumeRole',
            'Version': STS_API_VERSION,
            'RoleArn': self.role_arn,
            'RoleSessionName': f'neptune-session-{int(time.time())}',
            'DurationSeconds': str(self.session_duration)
        }

        if self.external_id:
            params['ExternalId'] = self.external_id

        try:
            # Sign the request
            signature = self._signing_primitive.sign(
                CanonicalRequest.from_bytes(
                    'GET',
                    self.endpoint,
                    '/',
                    parameters={key: [value] for key, value in params.items()},
                ),
                self.region,
                STS_SERVICE_NAME,
                self.source_credentials.get_credentials(),
                self._clock(),
            )

            # Make the request
            logger.debug("Assuming role %s", self.role_arn)
            response = requests.get(
                self.endpoint + '/',
                params=params,
                headers=signature_headers(signature),
                timeout=self.timeout
            )

            if response.status_code == 403:
                raise RoleAssumeError(
                    f"Failed to assume role {self.role_arn}: Access denied"
                )

            response.raise_for_status()

            # Parse XML response
            root = ET.fromstring(response.content)

            creds = root.find(f'.//{STS_NAMESPACE}Credentials')
            if creds is None:
                raise RoleAssumeError("No credentials found in response")

            try:
                credentials = Credentials(
                    self._get_credential_text(creds, 'AccessKeyId'),
                    self._get_credential_text(creds, 'SecretAccessKey'),
                    self._get_credential_text(creds, 'SessionToken'),
                )
                expiration = _parse_expiration(self._get_credential_text(creds, 'Expiration'))
            except RoleAssumeError as e:
                raise RoleAssumeError(f"Invalid credential format: {str(e)}") from e

            logger.debug("Assumed role %s, credentials expire at %s", self.role_arn, expiration)
            return credentials, expiration

        except ET.ParseError as e:
            raise RoleAssumeError(f"Failed to parse XML response: {str(e)}") from e
        except requests.RequestException as e:
            raise RoleAssumeError(f"Failed to call STS: {str(e)}") from e
