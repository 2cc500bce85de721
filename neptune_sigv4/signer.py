"""Module containing the Signer for Neptune requests.

The Signer converts a native request into a CanonicalRequest with its
RequestAdapter, computes the signature with its SigningPrimitive and hands
the result to its SignatureAttacher, which writes it onto the native
request. Only the last step mutates the request, so a failed call leaves
the request as it was.
"""
import datetime
import logging
from typing import Any, Callable, Optional

from .exceptions import (
    AttachmentError,
    ConfigurationError,
    ConversionError,
    SignerError,
    SigningError,
)
from .models import CanonicalRequest, Signature
from .protocols import CredentialsSource, RequestAdapter, SignatureAttacher, SigningPrimitive
from .request_signer import RequestSigner

logger = logging.getLogger(__name__)

NEPTUNE_SERVICE_NAME = 'neptune-db'


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Signer:
    """Signs native HTTP requests for IAM-enabled Neptune endpoints.

    Configuration is fixed at construction, so a single instance may be
    shared by any number of threads.
    """

    def __init__(
        self,
        region: str,
        credentials_source: CredentialsSource,
        adapter: RequestAdapter,
        attacher: SignatureAttacher,
        signing_primitive: Optional[SigningPrimitive] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
    ) -> None:
        """Initialize the signer.

        :param region: str, AWS region the Neptune cluster lives in.
        :param credentials_source: CredentialsSource, provides credentials for each call.
        :param adapter: RequestAdapter, converts native requests.
        :param attacher: SignatureAttacher, writes the signature onto native requests.
        :param signing_primitive: Optional[SigningPrimitive], defaults to RequestSigner.
        :param clock: Optional[Callable], returns the signing time, defaults to UTC now.
        :raise ConfigurationError: if a required argument is missing or invalid.
        """
        if region is None:
            raise ConfigurationError("The region name must not be null")
        if not isinstance(region, str) or not region.strip():
            raise ConfigurationError("The region name must be a non-empty string")
        if credentials_source is None:
            raise ConfigurationError("The credentials provider must not be null")
        if not callable(getattr(credentials_source, 'get_credentials', None)):
            raise ConfigurationError("The credentials provider must expose get_credentials()")
        if adapter is None:
            raise ConfigurationError("The request adapter must not be null")
        if attacher is None:
            raise ConfigurationError("The signature attacher must not be null")

        self._region = region
        self._credentials_source = credentials_source
        self._adapter = adapter
        self._attacher = attacher
        self._signing_primitive = signing_primitive if signing_primitive is not None else RequestSigner()
        self._clock = clock if clock is not None else _utcnow

    @property
    def region(self) -> str:
        return self._region

    @property
    def service_name(self) -> str:
        return NEPTUNE_SERVICE_NAME

    @property
    def credentials_source(self) -> CredentialsSource:
        return self._credentials_source

    def sign(self, native_request: Any) -> None:
        """Sign the native request in place.

        :param native_request: Any, request understood by the configured adapter and attacher.
        :raise SignerError: if any step fails; ``cause`` holds the ConversionError,
            SigningError or AttachmentError describing the failure.
        """
        try:
            canonical_request = self._to_canonical_request(native_request)
            signature = self._compute_signature(canonical_request)
            self._attach(native_request, signature)
        except (ConversionError, SigningError, AttachmentError) as e:
            logger.warning("Failed to sign request: %s", e)
            raise SignerError(f"Failed to sign request: {str(e)}", e) from e

    def _to_canonical_request(self, native_request: Any) -> CanonicalRequest:
        try:
            canonical_request = self._adapter.to_canonical_request(native_request)
        except ConversionError:
            raise
        except Exception as e:
            raise ConversionError(f"Failed to convert request: {str(e)}") from e
        if not isinstance(canonical_request, CanonicalRequest):
            raise ConversionError(
                f"Request adapter returned {type(canonical_request).__name__}, "
                "expected CanonicalRequest"
            )
        logger.debug("Converted request: %r", canonical_request)
        return canonical_request

    def _compute_signature(self, canonical_request: CanonicalRequest) -> Signature:
        try:
            credentials = self._credentials_source.get_credentials()
            timestamp = self._clock()
            signature = self._signing_primitive.sign(
                canonical_request,
                self._region,
                NEPTUNE_SERVICE_NAME,
                credentials,
                timestamp,
            )
        except SigningError:
            raise
        except Exception as e:
            # credential retrieval and clock failures are signing failures too
            raise SigningError(f"Failed to compute signature: {str(e)}") from e
        if not isinstance(signature, Signature):
            raise SigningError(
                f"Signing primitive returned {type(signature).__name__}, expected Signature"
            )
        return signature

    def _attach(self, native_request: Any, signature: Signature) -> None:
        try:
            self._attacher.attach_signature(native_request, signature)
        except AttachmentError:
            raise
        except Exception as e:
            raise AttachmentError(f"Failed to attach signature: {str(e)}") from e
        logger.debug("Attached signature dated %s", signature.x_amz_date_header)
