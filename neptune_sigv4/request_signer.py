"""Module containing the RequestSigner computing AWS Signature Version 4 values."""
import datetime
import hashlib
import hmac
import logging
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, urlsplit

from .exceptions import ConfigurationError, SigningError
from .models import (
    AUTHORIZATION,
    HOST,
    SIGNATURE_HEADER_NAMES,
    X_AMZ_DATE,
    X_AMZ_SECURITY_TOKEN,
    CanonicalRequest,
    Credentials,
    Signature,
)

logger = logging.getLogger(__name__)

ALGORITHM = 'AWS4-HMAC-SHA256'
TERMINATOR = 'aws4_request'

DEFAULT_EXPIRES = 3600
MAX_EXPIRES = 7 * 24 * 3600

# Query parameters carrying a pre-signed URL's authentication
QUERY_AUTH_PARAMETERS = frozenset([
    'X-Amz-Algorithm',
    'X-Amz-Credential',
    X_AMZ_DATE,
    'X-Amz-Expires',
    'X-Amz-SignedHeaders',
    X_AMZ_SECURITY_TOKEN,
    'X-Amz-Signature',
])

_DEFAULT_PORTS = {'http': 80, 'https': 443}
_UNSIGNED_HEADERS = frozenset(['connection', 'x-amzn-trace-id'])
# Left over from an earlier signing of the same request, never signed again
_SIGNATURE_HEADERS = frozenset(name.lower() for name in SIGNATURE_HEADER_NAMES)
_CHUNK_SIZE = 64 * 1024


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode('utf-8'), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, datestamp: str, region: str, service: str) -> bytes:
    """Derive the date, region and service scoped signing key.

    :param secret_key: str, AWS secret key.
    :param datestamp: str, date in ``YYYYMMDD`` form.
    :param region: str, AWS region.
    :param service: str, AWS service name.
    :return: bytes, the signing key.
    """
    k_date = _hmac_sha256(f"AWS4{secret_key}".encode('utf-8'), datestamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, TERMINATOR)


def _utc(timestamp: datetime.datetime) -> datetime.datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=datetime.timezone.utc)
    return timestamp.astimezone(datetime.timezone.utc)


def _host_header(endpoint: str) -> Tuple[str, str]:
    """Return the endpoint path and the Host header value for an endpoint URI."""
    parts = urlsplit(endpoint)
    if not parts.scheme or not parts.hostname:
        raise SigningError(f"Endpoint {endpoint!r} has no scheme or host")
    host = parts.hostname
    if ':' in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme.lower()):
        host = f"{host}:{port}"
    return parts.path, host


def _join_paths(base: str, path: str) -> str:
    if not base:
        return path
    if not path:
        return base
    return base.rstrip('/') + '/' + path.lstrip('/')


def _canonical_uri(path: str) -> str:
    """Normalize dot segments and encode the path once more.

    The path is expected in its wire (percent-encoded) form, so encoding it
    again gives the double encoding required outside of S3.
    """
    if not path:
        return '/'
    segments: List[str] = []
    for segment in path.split('/'):
        if segment == '..':
            if segments:
                segments.pop()
        elif segment and segment != '.':
            segments.append(segment)
    normalized = '/' + '/'.join(segments)
    if path.endswith('/') and normalized != '/':
        normalized += '/'
    return quote(normalized, safe='/~')


def _canonical_query(parameters: Dict[str, List[str]]) -> str:
    encoded = sorted(
        (quote(name, safe='~'), quote(value, safe='~'))
        for name, values in parameters.items()
        for value in values
    )
    return '&'.join(f"{name}={value}" for name, value in encoded)


def _canonical_headers(headers: Dict[str, str]) -> Tuple[str, str]:
    """Return the canonical header block and the signed header list."""
    grouped: Dict[str, List[str]] = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered in _UNSIGNED_HEADERS:
            continue
        grouped.setdefault(lowered, []).append(' '.join(str(value).split()))
    names = sorted(grouped)
    block = ''.join(f"{name}:{','.join(grouped[name])}\n" for name in names)
    return block, ';'.join(names)


def _payload_hash(request: CanonicalRequest) -> str:
    body = request.body
    start = body.tell() if body.seekable() else None
    digest = hashlib.sha256()
    for chunk in iter(lambda: body.read(_CHUNK_SIZE), b''):
        digest.update(chunk)
    if start is not None:
        body.seek(start)
    return digest.hexdigest()


class RequestSigner:
    """Handles AWS request signing using Signature Version 4.

    By default the signature is meant to travel in the Authorization
    header. With ``presign`` the signer produces query authentication
    instead: the ``X-Amz-*`` parameters are part of the signed query string
    and only the Host header is signed, so the URL alone carries the proof.

    The signer holds no per-call state, one instance can serve any number
    of concurrent signing calls.
    """

    def __init__(self, presign: bool = False, expires: int = DEFAULT_EXPIRES) -> None:
        """Initialize the request signer.

        :param presign: bool, sign for a pre-signed URL instead of headers.
        :param expires: int, seconds a pre-signed URL stays valid.
        :raise ConfigurationError: if expires is outside 1 second to 7 days.
        """
        if not isinstance(expires, int) or not 0 < expires <= MAX_EXPIRES:
            raise ConfigurationError(f"Expiry must be between 1 and {MAX_EXPIRES} seconds")
        self.presign = presign
        self.expires = expires

    def sign(
        self,
        request: CanonicalRequest,
        region: str,
        service: str,
        credentials: Credentials,
        timestamp: datetime.datetime,
    ) -> Signature:
        """Create AWS Signature Version 4 values for a request.

        :param request: CanonicalRequest, request to sign; left unmodified.
        :param region: str, AWS region.
        :param service: str, AWS service name.
        :param credentials: Credentials, credentials snapshot.
        :param timestamp: datetime.datetime, signing time; naive values are taken as UTC.
        :raise SigningError: if request signing fails.
        :return: Signature, the host, date and authorization values.
        """
        if request.host_header_conflict():
            raise SigningError(
                "Request carries a host header not named exactly 'Host'; "
                "it would duplicate the Host header added while signing"
            )
        if not credentials.access_key or not credentials.secret_key:
            raise SigningError("Credentials must provide an access key and a secret key")

        try:
            t = _utc(timestamp)
            amzdate = t.strftime('%Y%m%dT%H%M%SZ')
            datestamp = t.strftime('%Y%m%d')
            credential_scope = f"{datestamp}/{region}/{service}/{TERMINATOR}"
            session_token = credentials.session_token or None

            endpoint_path, host = _host_header(request.endpoint)

            if self.presign:
                headers = {HOST: host}
                auth_parameters = self._query_auth_parameters(
                    f"{credentials.access_key}/{credential_scope}", amzdate, session_token)
                parameters = {
                    name: values for name, values in request.parameters.items()
                    if name not in QUERY_AUTH_PARAMETERS
                }
                parameters.update((name, [value]) for name, value in auth_parameters)
            else:
                auth_parameters = None
                headers = {
                    name: value for name, value in request.headers.items()
                    if name.lower() not in _SIGNATURE_HEADERS
                }
                headers[HOST] = host
                headers[X_AMZ_DATE] = amzdate
                if session_token:
                    headers[X_AMZ_SECURITY_TOKEN] = session_token
                parameters = request.parameters

            # Create canonical request
            canonical_headers, signed_headers = _canonical_headers(headers)
            canonical_request = '\n'.join([
                request.method,
                _canonical_uri(_join_paths(endpoint_path, request.resource_path)),
                _canonical_query(parameters),
                canonical_headers,
                signed_headers,
                _payload_hash(request),
            ])

            # Create string to sign
            string_to_sign = (
                f"{ALGORITHM}\n{amzdate}\n{credential_scope}\n"
                f"{hashlib.sha256(canonical_request.encode('utf-8')).hexdigest()}"
            )

            # Calculate signature
            signing_key = derive_signing_key(credentials.secret_key, datestamp, region, service)
            signature = hmac.new(
                signing_key,
                string_to_sign.encode('utf-8'),
                hashlib.sha256
            ).hexdigest()

            # Create authorization header
            authorization_header = (
                f"{ALGORITHM} "
                f"Credential={credentials.access_key}/{credential_scope}, "
                f"SignedHeaders={signed_headers}, "
                f"Signature={signature}"
            )
            logger.debug("Signed %s request for %s with headers %s", request.method, host, signed_headers)

            query_parameters = None
            if auth_parameters is not None:
                query_parameters = tuple(auth_parameters) + (('X-Amz-Signature', signature),)

            return Signature(host, amzdate, authorization_header, session_token, query_parameters)

        except SigningError:
            raise
        except Exception as e:
            raise SigningError(f"Failed to sign request: {str(e)}") from e

    def _query_auth_parameters(
        self, credential: str, amzdate: str, session_token: Optional[str]
    ) -> List[Tuple[str, str]]:
        parameters = [
            ('X-Amz-Algorithm', ALGORITHM),
            ('X-Amz-Credential', credential),
            (X_AMZ_DATE, amzdate),
            ('X-Amz-Expires', str(self.expires)),
            ('X-Amz-SignedHeaders', 'host'),
        ]
        if session_token:
            parameters.append((X_AMZ_SECURITY_TOKEN, session_token))
        return parameters


def signature_headers(signature: Signature) -> Dict[str, str]:
    """Return the headers carrying a signature, keyed by their exact names."""
    headers = {
        HOST: signature.host_header,
        X_AMZ_DATE: signature.x_amz_date_header,
        AUTHORIZATION: signature.authorization_header,
    }
    if signature.session_token:
        headers[X_AMZ_SECURITY_TOKEN] = signature.session_token
    return headers
