"""Custom exception hierarchy for s3xfer.

All library-specific exceptions inherit from ``S3XferError`` so consumers
can catch ``except S3XferError`` to handle any s3xfer failure.
"""


class S3XferError(Exception):
    """Base exception for all s3xfer errors."""


class ConfigError(S3XferError):
    """Raised when client configuration is incomplete or invalid."""


class MissingCredentialError(ConfigError):
    """Raised when a required credential variable is absent from the environment."""

    def __init__(self, name: str) -> None:
        """Initialize with the name of the missing variable."""
        self.name = name
        super().__init__(f"Missing {name}")


class TransferError(S3XferError):
    """Base exception for list / upload / download failures."""


class LocalPathNotFoundError(TransferError):
    """Raised when an upload source path does not exist."""


class InvalidDestinationError(TransferError):
    """Raised when a download destination is missing or not a directory."""


class InvalidKeyError(TransferError):
    """Raised when an object key cannot be mapped to a local file path."""


class NetworkError(TransferError):
    """Raised when the storage service request fails.

    The original botocore exception is kept as ``cause`` (and as
    ``__cause__``) without reinterpretation.
    """

    def __init__(self, message: str, cause: Exception) -> None:
        """Initialize with a summary message and the underlying error."""
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class LocalIOError(TransferError):
    """Raised when reading or writing a local file fails mid-transfer."""

    def __init__(self, message: str, cause: OSError) -> None:
        """Initialize with a summary message and the underlying ``OSError``."""
        self.cause = cause
        super().__init__(f"{message}: {cause}")
