"""s3xfer -- list, upload and download objects in an S3 bucket."""

from s3xfer.client import ObjectStoreClient, create_client
from s3xfer.config import ClientConfig, Credentials, StoreSettings, credentials_from_env
from s3xfer.exceptions import (
    ConfigError,
    InvalidDestinationError,
    InvalidKeyError,
    LocalIOError,
    LocalPathNotFoundError,
    MissingCredentialError,
    NetworkError,
    S3XferError,
    TransferError,
)
from s3xfer.s3_utils import basename_key, guess_content_type, path_as_key
from s3xfer.transfer import (
    download_file,
    iter_keys,
    list_all_keys,
    list_keys,
    upload_file,
)

__all__ = [
    "ClientConfig",
    "ConfigError",
    "Credentials",
    "InvalidDestinationError",
    "InvalidKeyError",
    "LocalIOError",
    "LocalPathNotFoundError",
    "MissingCredentialError",
    "NetworkError",
    "ObjectStoreClient",
    "S3XferError",
    "StoreSettings",
    "TransferError",
    "basename_key",
    "create_client",
    "credentials_from_env",
    "download_file",
    "guess_content_type",
    "iter_keys",
    "list_all_keys",
    "list_keys",
    "path_as_key",
    "upload_file",
]
