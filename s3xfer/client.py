"""Object store client: configuration holder and lazy boto3 factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.config import Config
from loguru import logger

from s3xfer.config import (
    SOURCE_LABEL,
    ClientConfig,
    Credentials,
    StoreSettings,
    credentials_from_env,
)
from s3xfer.exceptions import ConfigError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from s3xfer.s3_types import S3Client


class ObjectStoreClient:
    """Holds the region and credential configuration for one store.

    The boto3 client is only created on first use of :attr:`s3`, so
    constructing an ``ObjectStoreClient`` never touches the network.
    Pass *s3* to use a pre-built (or fake) client instead.
    """

    def __init__(self, config: ClientConfig, s3: S3Client | None = None) -> None:
        """Store *config* and an optional pre-built S3 client."""
        self._config = config
        self._s3 = s3

    def __repr__(self) -> str:
        """Show region and credential source, never the secret."""
        return (
            f"ObjectStoreClient(region={self._config.region!r}, "
            f"source={self._config.source_label!r})"
        )

    @property
    def config(self) -> ClientConfig:
        """The immutable client configuration."""
        return self._config

    @property
    def region(self) -> str:
        """The region every request is sent to."""
        return self._config.region

    @property
    def s3(self) -> S3Client:
        """The underlying boto3 S3 client (built on first access)."""
        if self._s3 is None:
            self._s3 = _make_s3_client(self._config)
        return self._s3

    @classmethod
    def from_env(
        cls,
        settings: StoreSettings,
        environ: Mapping[str, str] | None = None,
    ) -> ObjectStoreClient:
        """Build a client from *settings* and environment credentials."""
        return create_client(
            settings.region,
            credentials_from_env(environ),
            endpoint_url=settings.endpoint_url,
            timeout=settings.timeout,
        )


def create_client(
    region: str,
    credentials: Credentials,
    *,
    endpoint_url: str | None = None,
    timeout: float | None = None,
) -> ObjectStoreClient:
    """Create an :class:`ObjectStoreClient` for *region*.

    Raises
    ------
    ConfigError
        When *region* is empty.

    """
    if not region:
        raise ConfigError("Region must not be empty")
    config = ClientConfig(
        region=region,
        access_key_id=credentials.access_key_id,
        secret_access_key=credentials.secret_access_key,
        source_label=SOURCE_LABEL,
        endpoint_url=endpoint_url,
        timeout=timeout,
    )
    logger.debug(f"Client configured for region={region} ({config.source_label})")
    return ObjectStoreClient(config)


def _make_s3_client(config: ClientConfig) -> S3Client:
    """Create a boto3 S3 client with static credentials and no retries."""
    botocore_config = Config(retries={"max_attempts": 0, "mode": "standard"})
    if config.timeout is not None:
        botocore_config = botocore_config.merge(
            Config(connect_timeout=config.timeout, read_timeout=config.timeout)
        )
    session = boto3.Session(
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        region_name=config.region,
    )
    client: S3Client = session.client(
        "s3",
        endpoint_url=config.endpoint_url or None,
        config=botocore_config,
    )
    return client
