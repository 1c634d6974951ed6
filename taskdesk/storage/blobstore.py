"""Filesystem blobstore for task attachment bytes.

Layout:
  <blobstore_dir>/sha256/<first2>/<sha256>

Blobs are content addressed, so identical uploads share one file. The blob
reference stored on an attachment is the sha256 hex digest.
"""

from __future__ import annotations

import hashlib
import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator

from ..config import settings
from ..errors import FieldError, ValidationFailed


class BlobstoreError(Exception):
    pass


def _normalize_ref(value: str) -> str:
    sha = (value or "").strip().lower()
    if len(sha) != 64:
        raise BlobstoreError(f"blob ref must be 64 chars (got {len(sha)})")
    for ch in sha:
        if ch not in "0123456789abcdef":
            raise BlobstoreError("blob ref must be lowercase [0-9a-f]")
    return sha


@dataclass(frozen=True)
class BlobWriteResult:
    ref: str
    size: int
    path: Path


def check_upload_batch(filenames: list[str]) -> None:
    """Enforce file count and extension limits before any bytes are written."""
    errors: list[FieldError] = []
    if not filenames:
        errors.append(FieldError("attachments", "No files uploaded"))
    if len(filenames) > settings.attachment_max_files:
        errors.append(
            FieldError(
                "attachments",
                f"At most {settings.attachment_max_files} files per upload",
            )
        )
    allowed = settings.allowed_extensions
    for i, name in enumerate(filenames):
        ext = Path(name or "").suffix.lower().lstrip(".")
        if ext not in allowed:
            errors.append(
                FieldError(
                    f"attachments.{i}",
                    "Invalid file type. Only images, PDFs, docs, spreadsheets, and text files are allowed.",
                )
            )
    if errors:
        raise ValidationFailed(errors)


class AttachmentBlobStore:
    """Streaming, size-capped blobstore (sha256 computed while writing)."""

    def __init__(self, root_dir: str | Path, max_bytes: int | None = None):
        self.root_dir = Path(root_dir)
        self.max_bytes = max_bytes
        self.algo_dir = self.root_dir / "sha256"
        self.tmp_dir = self.root_dir / ".tmp"
        self.algo_dir.mkdir(parents=True, exist_ok=True)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, ref: str) -> Path:
        sha = _normalize_ref(ref)
        return self.algo_dir / sha[:2] / sha

    def exists(self, ref: str) -> bool:
        return self.path_for(ref).is_file()

    async def write_stream(
        self, chunks: AsyncIterator[bytes], *, field: str = "attachments"
    ) -> BlobWriteResult:
        tmp_path = self.tmp_dir / f"tmp_{secrets.token_hex(16)}"
        h = hashlib.sha256()
        size = 0

        try:
            with open(tmp_path, "wb") as f:
                async for chunk in chunks:
                    if not chunk:
                        continue
                    if not isinstance(chunk, (bytes, bytearray)):
                        raise BlobstoreError("blob chunks must be bytes")
                    size += len(chunk)
                    if self.max_bytes is not None and size > self.max_bytes:
                        raise ValidationFailed(
                            [FieldError(field, f"File exceeds {self.max_bytes} bytes")]
                        )
                    h.update(chunk)
                    f.write(chunk)

            digest = h.hexdigest()
            final_path = self.path_for(digest)
            final_path.parent.mkdir(parents=True, exist_ok=True)

            # If another request already wrote it, keep the existing bytes.
            if final_path.exists():
                tmp_path.unlink(missing_ok=True)
            else:
                os.replace(tmp_path, final_path)

            return BlobWriteResult(ref=digest, size=size, path=final_path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    async def put(self, data: bytes, *, field: str = "attachments") -> BlobWriteResult:
        async def _iter() -> AsyncIterator[bytes]:
            yield data or b""

        return await self.write_stream(_iter(), field=field)

    def open(self, ref: str):
        path = self.path_for(ref)
        if not path.is_file():
            raise BlobstoreError(f"blob {ref} not found")
        return open(path, "rb")

    def delete(self, ref: str) -> bool:
        """Remove a blob. Returns False when it was already gone."""
        path = self.path_for(ref)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True


@lru_cache(maxsize=1)
def get_blobstore() -> AttachmentBlobStore:
    return AttachmentBlobStore(settings.blobstore_path, max_bytes=settings.attachment_max_bytes)
