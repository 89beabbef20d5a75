"""Type definitions for S3 client interfaces."""

from __future__ import annotations

from typing import Any, BinaryIO, Protocol


class S3Client(Protocol):
    """Structural protocol for a boto3 S3 client (subset used by s3xfer)."""

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:  # noqa: N803
        """Retrieve an object; ``Body`` is a streaming body."""
        ...

    def list_objects_v2(self, **kwargs: str) -> dict[str, Any]:
        """List one page of objects in a bucket."""
        ...

    def put_object(
        self,
        *,
        Bucket: str,  # noqa: N803
        Key: str,  # noqa: N803
        Body: BinaryIO,  # noqa: N803
        ContentType: str,  # noqa: N803
    ) -> dict[str, Any]:
        """Create or overwrite an object from a file-like body."""
        ...
