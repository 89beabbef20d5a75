"""Key derivation and content-type helpers shared by upload and download."""

from __future__ import annotations

import mimetypes
import os
from collections.abc import Callable
from pathlib import Path

from s3xfer.exceptions import InvalidKeyError

KeyFunc = Callable[[str | os.PathLike[str]], str]
"""Maps a local upload path, exactly as the caller passed it, to the object key."""

OCTET_STREAM = "application/octet-stream"


def path_as_key(path: str | os.PathLike[str]) -> str:
    """Use the local path string verbatim as the object key.

    Directory separators are kept, so ``src/main.rs`` is stored under the
    key ``src/main.rs``.  No normalization is applied: ``./src/main.rs`` and
    ``src//main.rs`` stay as written.  A :class:`~pathlib.Path` argument has
    already been normalized by ``pathlib`` itself.
    """
    return os.fspath(path)


def basename_key(path: str | os.PathLike[str]) -> str:
    """Use only the file name of *path* as the object key."""
    return Path(path).name


def key_to_relative_parts(key: str) -> tuple[str, ...]:
    """Split *key* into the path segments of its local download location.

    Empty and ``.`` segments are dropped, so ``a//b`` and ``/a/b`` both map
    to ``a/b``.  A key that names no file (empty, ends with ``/``, or has no
    usable segments) or that would escape the destination via ``..`` is
    rejected with :class:`InvalidKeyError`.
    """
    if not key or key.endswith("/"):
        raise InvalidKeyError(f"Invalid parent dir for key {key!r}")
    parts = tuple(p for p in key.split("/") if p not in ("", "."))
    if not parts:
        raise InvalidKeyError(f"Invalid parent dir for key {key!r}")
    if ".." in parts:
        raise InvalidKeyError(f"Key {key!r} escapes the destination directory")
    return parts


def guess_content_type(path: Path | str) -> str:
    """Best-effort MIME type from the file extension.

    Unknown or missing extensions fall back to ``application/octet-stream``.
    """
    content_type, _encoding = mimetypes.guess_type(str(path), strict=False)
    return content_type or OCTET_STREAM
