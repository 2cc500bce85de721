"""Module containing the capabilities the Signer is assembled from.

A binding for a native HTTP request type implements a RequestAdapter and a
SignatureAttacher; the Signer drives them and never looks at the native
request itself.
"""
from datetime import datetime
from typing import Any, Protocol

from .models import CanonicalRequest, Credentials, Signature


class CredentialsSource(Protocol):
    """Produces the current credentials on demand.

    Implementations must be safe to call from several threads at once.
    """

    def get_credentials(self) -> Credentials:
        ...


class RequestAdapter(Protocol):
    """Converts a native request into a CanonicalRequest.

    The adapter must carry over the method, endpoint, resource path without
    query string, the headers to be verified, every query parameter and the
    body as a stream. A pre-existing host header must either be left out or
    be named exactly ``Host``, since signing adds its own. Raise
    ConversionError when a required field cannot be extracted.
    """

    def to_canonical_request(self, native_request: Any) -> CanonicalRequest:
        ...


class SignatureAttacher(Protocol):
    """Applies a Signature to the native request, in place.

    Values are written as headers or as query parameters depending on the
    signing style. Existing entries with the same name are overwritten,
    never duplicated. Raise AttachmentError when the request rejects the
    mutation.
    """

    def attach_signature(self, native_request: Any, signature: Signature) -> None:
        ...


class SigningPrimitive(Protocol):
    """Computes the SigV4 signature values for a canonical request.

    Identical inputs, timestamp included, must give identical values; any
    change to the timestamp, headers, parameters or body must change the
    authorization value. Raise SigningError on failure.
    """

    def sign(
        self,
        request: CanonicalRequest,
        region: str,
        service: str,
        credentials: Credentials,
        timestamp: datetime,
    ) -> Signature:
        ...
