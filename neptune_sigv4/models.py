"""Module containing the values exchanged while signing a request."""
import io
from typing import BinaryIO, Dict, List, NamedTuple, Optional, Tuple

from .exceptions import ConversionError

HOST = 'Host'
X_AMZ_DATE = 'X-Amz-Date'
X_AMZ_SECURITY_TOKEN = 'X-Amz-Security-Token'
AUTHORIZATION = 'Authorization'

SIGNATURE_HEADER_NAMES = (HOST, X_AMZ_DATE, AUTHORIZATION, X_AMZ_SECURITY_TOKEN)


class Credentials(NamedTuple):
    """Snapshot of the AWS credentials used for one signing call."""

    access_key: str
    secret_key: str
    session_token: Optional[str] = None

    def __repr__(self) -> str:
        return f"Credentials(access_key={self.access_key!r}, secret_key='***')"


class Signature(NamedTuple):
    """Signature values computed for a single request.

    ``query_parameters`` is only set by query (pre-signed URL) signing; it
    holds the authentication parameters in the order they go on the URL,
    ending with ``X-Amz-Signature``.
    """

    host_header: str
    x_amz_date_header: str
    authorization_header: str
    session_token: Optional[str] = None
    query_parameters: Optional[Tuple[Tuple[str, str], ...]] = None


class CanonicalRequest:
    """Request information relevant for signing, extracted from a native request.

    The instance is created and consumed within a single signing call.
    """

    def __init__(
        self,
        method: str,
        endpoint: str,
        resource_path: Optional[str],
        headers: Dict[str, str],
        parameters: Dict[str, List[str]],
        body: BinaryIO,
    ) -> None:
        """Initialize the canonical request.

        :param method: str, HTTP method name, e.g. ``GET``.
        :param endpoint: str, scheme, host and optional port, e.g. ``https://host:8182``.
        :param resource_path: Optional[str], path without query string; empty means root.
        :param headers: Dict[str, str], header name to value, case as supplied.
        :param parameters: Dict[str, List[str]], parameter name to list of values.
        :param body: BinaryIO, request content; use an empty stream for GET requests.
        :raise ConversionError: if a required field is missing.
        """
        _check_present(method, "Http method name must not be null")
        _check_present(endpoint, "Http endpoint URI must not be null")
        _check_present(headers, "Http headers must not be null")
        _check_present(parameters, "Http parameters must not be null")
        _check_present(body, "Http content must not be null")

        self.method = method.upper()
        self.endpoint = endpoint
        self.resource_path = resource_path or ''
        self.headers = dict(headers)
        self.parameters = {name: list(values) for name, values in parameters.items()}
        self.body = body

    @classmethod
    def from_bytes(
        cls,
        method: str,
        endpoint: str,
        resource_path: Optional[str] = '',
        headers: Optional[Dict[str, str]] = None,
        parameters: Optional[Dict[str, List[str]]] = None,
        body: bytes = b'',
    ) -> 'CanonicalRequest':
        """Build a canonical request around an in-memory body."""
        return cls(
            method,
            endpoint,
            resource_path,
            headers if headers is not None else {},
            parameters if parameters is not None else {},
            io.BytesIO(body),
        )

    def host_header_conflict(self) -> bool:
        """Tell whether a Host header would clash with the one added while signing.

        A Host header is accepted only when it is spelled exactly ``Host``;
        any other spelling ends up as a second host header.
        """
        return any(name.lower() == 'host' and name != HOST for name in self.headers)

    def __repr__(self) -> str:
        return (
            f"CanonicalRequest(method={self.method!r}, endpoint={self.endpoint!r}, "
            f"resource_path={self.resource_path!r})"
        )


def _check_present(value: object, message: str) -> None:
    if value is None:
        raise ConversionError(message)
