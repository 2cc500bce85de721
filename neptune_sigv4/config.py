"""Module resolving signer configuration from the environment."""
import os
from typing import Optional

from .credentials import EnvironmentCredentialsProvider
from .exceptions import ConfigurationError
from .protocols import CredentialsSource
from .request_signer import DEFAULT_EXPIRES, RequestSigner
from .requests_binding import RequestsAdapter, RequestsHeaderAttacher, RequestsPresignedUrlAttacher
from .signer import Signer

REGION_VARIABLES = ('SERVICE_REGION', 'AWS_REGION', 'AWS_DEFAULT_REGION')


def resolve_region(region: Optional[str] = None) -> str:
    """Return the region to sign for.

    :param region: Optional[str], explicit region; wins over the environment.
    :raise ConfigurationError: if no region is given or configured.
    :return: str, the region name.
    """
    if region:
        return region
    for variable in REGION_VARIABLES:
        value = os.environ.get(variable)
        if value:
            return value
    raise ConfigurationError(
        f"No region configured; pass one or set one of {', '.join(REGION_VARIABLES)}"
    )


def create_requests_signer(
    region: Optional[str] = None,
    credentials_source: Optional[CredentialsSource] = None,
    presigned: bool = False,
    expires: int = DEFAULT_EXPIRES,
) -> Signer:
    """Build a Signer for requests.PreparedRequest objects.

    :param region: Optional[str], region; resolved from the environment when omitted.
    :param credentials_source: Optional[CredentialsSource], defaults to environment credentials.
    :param presigned: bool, sign into the URL query string instead of headers.
    :param expires: int, seconds a pre-signed URL stays valid.
    :raise ConfigurationError: if the region cannot be resolved or expires is out of range.
    :return: Signer, ready to sign prepared requests.
    """
    if presigned:
        attacher = RequestsPresignedUrlAttacher()
        signing_primitive = RequestSigner(presign=True, expires=expires)
    else:
        attacher = RequestsHeaderAttacher()
        signing_primitive = RequestSigner()
    return Signer(
        resolve_region(region),
        credentials_source if credentials_source is not None else EnvironmentCredentialsProvider(),
        RequestsAdapter(),
        attacher,
        signing_primitive,
    )
