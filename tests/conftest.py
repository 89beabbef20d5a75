"""Shared pytest fixtures for s3xfer tests."""

from __future__ import annotations

import pytest

from s3xfer.client import ObjectStoreClient
from s3xfer.config import ENV_KEY_ID, ENV_KEY_SECRET, ClientConfig
from tests.fixtures.fake_s3 import FakeS3

BUCKET = "test-bucket"


@pytest.fixture
def fake_s3() -> FakeS3:
    """Empty in-memory S3 store."""
    return FakeS3()


@pytest.fixture
def client(fake_s3: FakeS3) -> ObjectStoreClient:
    """ObjectStoreClient wired to the in-memory store."""
    return make_client(fake_s3)


@pytest.fixture
def s3_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set both credential variables and clear store overrides."""
    monkeypatch.setenv(ENV_KEY_ID, "AKIATEST")
    monkeypatch.setenv(ENV_KEY_SECRET, "test-secret")
    for var in (
        "S3XFER_BUCKET",
        "S3XFER_REGION",
        "S3XFER_ENDPOINT_URL",
        "S3XFER_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def make_client(s3: object) -> ObjectStoreClient:
    """Create an ObjectStoreClient backed by a fake or mock S3 client."""
    config = ClientConfig(
        region="us-west-2",
        access_key_id="AKIATEST",
        secret_access_key="test-secret",  # noqa: S106
    )
    return ObjectStoreClient(config, s3=s3)  # type: ignore[arg-type]
