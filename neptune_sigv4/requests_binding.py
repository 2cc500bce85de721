"""Module binding the Signer to requests.PreparedRequest.

Usage::

    signer = Signer(region, credentials_source, RequestsAdapter(), RequestsHeaderAttacher())
    requests.get(url, auth=NeptuneSigV4Auth(signer))

Pre-signed URLs need a query signature, so pair RequestsPresignedUrlAttacher
with ``RequestSigner(presign=True)`` as the signing primitive.
"""
import io
import logging
from typing import BinaryIO, Dict
from urllib.parse import quote, unquote_plus, urlsplit, urlunsplit

import requests
from requests.auth import AuthBase

from .exceptions import AttachmentError, ConversionError
from .models import (
    AUTHORIZATION,
    SIGNATURE_HEADER_NAMES,
    X_AMZ_DATE,
    X_AMZ_SECURITY_TOKEN,
    CanonicalRequest,
    Signature,
)
from .query import parse_query_string
from .request_signer import QUERY_AUTH_PARAMETERS, signature_headers
from .signer import Signer

logger = logging.getLogger(__name__)


def _header_value(value) -> str:
    if isinstance(value, bytes):
        return value.decode('latin-1')
    return value


def _body_stream(body) -> BinaryIO:
    """Wrap a prepared request body into a rewindable byte stream."""
    if body is None:
        return io.BytesIO(b'')
    if isinstance(body, (bytes, bytearray)):
        return io.BytesIO(bytes(body))
    if isinstance(body, str):
        # http.client sends str bodies as ISO-8859-1
        return io.BytesIO(body.encode('iso-8859-1'))
    if hasattr(body, 'read') and hasattr(body, 'seekable') and body.seekable():
        return body
    raise ConversionError(
        f"Cannot sign a request with a {type(body).__name__} body; "
        "the body must be bytes, str or a seekable file"
    )


class RequestsAdapter:
    """Converts a requests.PreparedRequest into a CanonicalRequest.

    Host headers are always dropped; the signature provides its own.
    """

    def to_canonical_request(self, request: requests.PreparedRequest) -> CanonicalRequest:
        """Convert the prepared request.

        :param request: requests.PreparedRequest, request to convert.
        :raise ConversionError: if the URL or body cannot be used for signing.
        :return: CanonicalRequest, the request information relevant for signing.
        """
        if not request.url:
            raise ConversionError("Request has no URL")
        try:
            parts = urlsplit(request.url)
            parts.port  # raises ValueError on a malformed port
        except ValueError as e:
            raise ConversionError(f"Malformed URL {request.url!r}: {str(e)}") from e
        if not parts.scheme or not parts.hostname:
            raise ConversionError(f"URL {request.url!r} has no scheme or host")

        netloc = parts.netloc.rpartition('@')[2]
        headers: Dict[str, str] = {
            name: _header_value(value)
            for name, value in (request.headers or {}).items()
            if name.lower() != 'host'
        }

        return CanonicalRequest(
            request.method,
            f"{parts.scheme}://{netloc}",
            parts.path,
            headers,
            parse_query_string(parts.query),
            _body_stream(request.body),
        )


def _remove_headers(headers, names) -> None:
    lowered = {name.lower() for name in names}
    for existing in [n for n in headers if n.lower() in lowered]:
        del headers[existing]


class RequestsHeaderAttacher:
    """Attaches the signature to a prepared request as HTTP headers.

    Signature headers left from an earlier signing are removed first, so a
    stale session token does not outlive the credentials it belonged to.
    """

    def attach_signature(self, request: requests.PreparedRequest, signature: Signature) -> None:
        headers = request.headers
        if headers is None:
            raise AttachmentError("Request has no header mapping")
        try:
            _remove_headers(headers, SIGNATURE_HEADER_NAMES)
            headers.update(signature_headers(signature))
        except (TypeError, AttributeError) as e:
            raise AttachmentError(f"Request headers cannot be modified: {str(e)}") from e


class RequestsPresignedUrlAttacher:
    """Attaches a query signature to a prepared request's URL.

    Works with signatures computed by ``RequestSigner(presign=True)``. Any
    authentication parameters already on the URL are replaced and stale
    signature headers are dropped, since a request may carry only one form
    of authentication. The host is conveyed by the URL itself.
    """

    def attach_signature(self, request: requests.PreparedRequest, signature: Signature) -> None:
        if signature.query_parameters is None:
            raise AttachmentError(
                "Signature carries no query parameters; sign with RequestSigner(presign=True)"
            )

        parts = urlsplit(request.url)
        query = [
            segment for segment in parts.query.split('&')
            if segment and unquote_plus(segment.partition('=')[0]) not in QUERY_AUTH_PARAMETERS
        ]
        query.extend(
            f"{quote(name, safe='~')}={quote(value, safe='~')}"
            for name, value in signature.query_parameters
        )
        try:
            if request.headers is not None:
                _remove_headers(request.headers, [AUTHORIZATION, X_AMZ_DATE, X_AMZ_SECURITY_TOKEN])
            request.url = urlunsplit(parts._replace(query='&'.join(query)))
        except (TypeError, AttributeError) as e:
            raise AttachmentError(f"Request cannot be modified: {str(e)}") from e
        logger.debug("Attached presigned query parameters to %s", parts.netloc)


class NeptuneSigV4Auth(AuthBase):
    """Signs requests sent through requests with a Neptune Signer."""

    def __init__(self, signer: Signer) -> None:
        self.signer = signer

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        self.signer.sign(r)
        return r
