"""Module for neptune signer exceptions."""


class NeptuneSigV4Error(Exception):
    """Base exception class for neptune signer errors."""


class ConfigurationError(NeptuneSigV4Error):
    """Exception raised when the signer is constructed with invalid inputs."""


class ConversionError(NeptuneSigV4Error):
    """Exception raised when a native request cannot be converted for signing."""


class SigningError(NeptuneSigV4Error):
    """Exception raised when computing the request signature fails."""


class AttachmentError(NeptuneSigV4Error):
    """Exception raised when the signature cannot be attached to the request."""


class CredentialError(NeptuneSigV4Error):
    """Exception raised when credentials cannot be retrieved."""


class RoleAssumeError(CredentialError):
    """Exception raised when role assumption fails."""


class SignerError(NeptuneSigV4Error):
    """Exception raised by Signer.sign when the request could not be signed.

    The stage error (ConversionError, SigningError or AttachmentError) is
    available as ``cause`` and as ``__cause__``.
    """

    def __init__(self, message: str, cause: NeptuneSigV4Error) -> None:
        super().__init__(message)
        self.cause = cause
