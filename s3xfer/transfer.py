"""List, upload and download objects in a bucket.

Each operation builds one request against an :class:`ObjectStoreClient`,
executes it and maps the result to a local form.  Validation errors are
raised before any request is sent; service and local I/O errors abort the
transfer immediately.  Nothing is retried.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from tqdm import tqdm

from s3xfer.exceptions import (
    InvalidDestinationError,
    InvalidKeyError,
    LocalIOError,
    LocalPathNotFoundError,
    NetworkError,
)
from s3xfer.s3_utils import guess_content_type, key_to_relative_parts, path_as_key

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3xfer.client import ObjectStoreClient
    from s3xfer.s3_utils import KeyFunc

DEFAULT_CHUNK_SIZE = 64 * 1024


@contextmanager
def _service_call(description: str) -> Iterator[None]:
    """Translate botocore failures raised inside the block into NetworkError."""
    try:
        yield
    except (BotoCoreError, ClientError) as e:
        logger.debug(f"{description} failed: {e}")
        raise NetworkError(f"{description} failed", e) from e


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------


def _keys_from_page(resp: dict[str, Any]) -> list[str]:
    """Extract keys from a list-objects-v2 page, skipping entries without one."""
    return [obj["Key"] for obj in resp.get("Contents") or [] if obj.get("Key")]


def _list_page(client: ObjectStoreClient, kwargs: dict[str, str]) -> dict[str, Any]:
    with _service_call(f"list_objects_v2 s3://{kwargs['Bucket']}"):
        return client.s3.list_objects_v2(**kwargs)


def _list_kwargs(bucket: str, prefix: str) -> dict[str, str]:
    kwargs: dict[str, str] = {"Bucket": bucket}
    if prefix:
        kwargs["Prefix"] = prefix
    return kwargs


def list_keys(client: ObjectStoreClient, bucket: str, prefix: str = "") -> list[str]:
    """Return the keys of the first listing page under *prefix*.

    Keys come back in service order.  An empty *prefix* matches every
    object.  Only one page is requested: when the bucket holds more
    objects than fit in a page the result is truncated (see
    :func:`list_all_keys`).
    """
    resp = _list_page(client, _list_kwargs(bucket, prefix))
    keys = _keys_from_page(resp)
    if resp.get("IsTruncated"):
        logger.debug(f"Listing of s3://{bucket}/{prefix} truncated after one page")
    return keys


def iter_keys(
    client: ObjectStoreClient,
    bucket: str,
    prefix: str = "",
) -> Iterator[str]:
    """Yield every key under *prefix*, following continuation tokens."""
    kwargs = _list_kwargs(bucket, prefix)
    while True:
        resp = _list_page(client, kwargs)
        yield from _keys_from_page(resp)
        if not resp.get("IsTruncated"):
            return
        token = resp.get("NextContinuationToken")
        if not token:
            logger.warning(
                f"Listing of s3://{bucket}/{prefix} is truncated "
                "but has no continuation token; stopping"
            )
            return
        kwargs["ContinuationToken"] = token


def list_all_keys(
    client: ObjectStoreClient,
    bucket: str,
    prefix: str = "",
) -> list[str]:
    """Pagination-aware variant of :func:`list_keys`."""
    return list(iter_keys(client, bucket, prefix))


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


def upload_file(
    client: ObjectStoreClient,
    bucket: str,
    local_path: str | os.PathLike[str],
    *,
    key_func: KeyFunc = path_as_key,
    content_type: str | None = None,
) -> str:
    """Upload *local_path* to *bucket* and return the key written.

    The key is ``key_func(local_path)``; by default the path string is used
    verbatim, as given by the caller, so ``./src/main.rs`` lands at key
    ``./src/main.rs`` and ``src/main.rs`` at ``src/main.rs``.  The file is
    passed to ``put_object`` as an open binary handle and streamed, never
    read into memory as a whole.  An existing object at the key is
    overwritten.

    Raises
    ------
    LocalPathNotFoundError
        *local_path* does not exist (checked before any request).
    NetworkError
        The service rejected the request or could not be reached.
    LocalIOError
        The file could not be opened or read.

    """
    path = Path(local_path)
    if not path.exists():
        raise LocalPathNotFoundError(f"Path {path} does not exist")
    key = key_func(local_path)
    if not key:
        raise InvalidKeyError(f"Empty key derived from path {path}")
    content_type = content_type or guess_content_type(path)

    logger.debug(f"put_object s3://{bucket}/{key} ({content_type})")
    try:
        with path.open("rb") as fh, _service_call(f"put_object s3://{bucket}/{key}"):
            client.s3.put_object(
                Bucket=bucket,
                Key=key,
                Body=fh,
                ContentType=content_type,
            )
    except OSError as e:
        raise LocalIOError(f"Failed reading {path}", e) from e
    logger.info(f"Uploaded {path} -> s3://{bucket}/{key}")
    return key


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


def _iter_body(body: Any, chunk_size: int, key: str) -> Iterator[bytes]:  # noqa: ANN401
    """Pull chunks from a streaming body, mapping read failures to NetworkError."""
    chunks = body.iter_chunks(chunk_size)
    while True:
        try:
            chunk = next(chunks, None)
        except (BotoCoreError, ClientError, OSError) as e:
            raise NetworkError(f"Reading body of {key!r} failed", e) from e
        if chunk is None:
            return
        yield chunk


def _stream_to_file(chunks: Iterator[bytes], path: Path, bar: tqdm) -> int:
    """Write *chunks* to *path* (truncating it) in arrival order."""
    written = 0
    try:
        with path.open("wb") as fh:
            for chunk in chunks:
                fh.write(chunk)
                written += len(chunk)
                bar.update(len(chunk))
            fh.flush()
    except OSError as e:
        raise LocalIOError(f"Failed writing {path}", e) from e
    return written


def _target_mode(path: Path) -> int:
    """Permission bits a plain ``open(path, "wb")`` would leave on *path*."""
    try:
        return path.stat().st_mode & 0o7777
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _stream_atomically(chunks: Iterator[bytes], path: Path, bar: tqdm) -> int:
    """Write to a temporary sibling of *path* and rename it over *path*.

    The temporary file gets the mode the destination would have had when
    written in place, so ``atomic`` does not change permissions.
    """
    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".part"
        )
        os.close(fd)
    except OSError as e:
        raise LocalIOError(f"Failed creating temporary file next to {path}", e) from e
    tmp_path = Path(tmp_name)
    try:
        written = _stream_to_file(chunks, tmp_path, bar)
        try:
            os.chmod(tmp_path, _target_mode(path))
            os.replace(tmp_path, path)
        except OSError as e:
            raise LocalIOError(f"Failed renaming {tmp_path} to {path}", e) from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return written


def download_file(  # noqa: PLR0913
    client: ObjectStoreClient,
    bucket: str,
    key: str,
    dest_dir: Path | str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    atomic: bool = False,
    progress: bool = False,
) -> Path:
    """Download object *key* into ``dest_dir / key`` and return that path.

    Separators in *key* become nested directories under *dest_dir*; missing
    intermediate directories are created, *dest_dir* itself never is.  The
    body is consumed chunk by chunk, so objects larger than memory are fine.

    Empty and ``.`` segments of *key* are dropped, so ``/a//b`` is written
    to ``dest_dir/a/b``.  Keys containing a ``..`` segment (``a/../b``) are
    refused with :class:`InvalidKeyError`, as are keys that name no file
    (empty, or ending in ``/``).

    By default the destination file is truncated and written in place, and a
    failure part way through leaves the partial file on disk.  With
    ``atomic=True`` the data goes to a temporary file that replaces the
    destination only once every chunk has been written.

    Raises
    ------
    InvalidDestinationError
        *dest_dir* is missing or not a directory (checked before any request).
    InvalidKeyError
        *key* does not name a file under *dest_dir* (checked before any
        request).
    NetworkError
        The request failed or the body could not be read.
    LocalIOError
        Creating directories or writing the file failed.

    """
    dest = Path(dest_dir)
    if not dest.is_dir():
        raise InvalidDestinationError(f"Path {dest} is not a directory")
    file_path = dest.joinpath(*key_to_relative_parts(key))
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LocalIOError(f"Failed creating {file_path.parent}", e) from e

    logger.debug(f"get_object s3://{bucket}/{key}")
    with _service_call(f"get_object s3://{bucket}/{key}"):
        resp = client.s3.get_object(Bucket=bucket, Key=key)

    body = resp["Body"]
    chunks = _iter_body(body, chunk_size, key)
    write = _stream_atomically if atomic else _stream_to_file
    try:
        with tqdm(
            total=resp.get("ContentLength"),
            desc=key,
            unit="B",
            unit_scale=True,
            leave=False,
            disable=not progress,
        ) as bar:
            written = write(chunks, file_path, bar)
    finally:
        body.close()

    logger.info(f"Downloaded s3://{bucket}/{key} -> {file_path} ({written} bytes)")
    return file_path
