"""Tests for the attachment blobstore and upload limits."""

from __future__ import annotations

import hashlib

import pytest

from taskdesk.errors import ValidationFailed
from taskdesk.storage.blobstore import (
    AttachmentBlobStore,
    BlobstoreError,
    check_upload_batch,
)


@pytest.mark.asyncio
async def test_put_is_content_addressed_and_deduplicated(tmp_path):
    store = AttachmentBlobStore(tmp_path / "blobs")

    first = await store.put(b"quarterly numbers")
    second = await store.put(b"quarterly numbers")

    assert first.ref == hashlib.sha256(b"quarterly numbers").hexdigest()
    assert second.ref == first.ref
    assert first.size == len(b"quarterly numbers")
    assert store.exists(first.ref)
    with store.open(first.ref) as fh:
        assert fh.read() == b"quarterly numbers"
    assert list((tmp_path / "blobs" / ".tmp").iterdir()) == []


@pytest.mark.asyncio
async def test_delete_reports_whether_the_blob_existed(tmp_path):
    store = AttachmentBlobStore(tmp_path)
    result = await store.put(b"x")

    assert store.delete(result.ref) is True
    assert store.delete(result.ref) is False
    assert not store.exists(result.ref)
    with pytest.raises(BlobstoreError):
        store.open(result.ref)


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected_and_leaves_nothing_behind(tmp_path):
    store = AttachmentBlobStore(tmp_path, max_bytes=4)

    async def chunks():
        yield b"abc"
        yield b"def"

    with pytest.raises(ValidationFailed) as exc:
        await store.write_stream(chunks(), field="attachments.0")

    assert exc.value.fields == ["attachments.0"]
    assert list((tmp_path / ".tmp").iterdir()) == []
    assert list((tmp_path / "sha256").iterdir()) == []


def test_malformed_ref_is_rejected(tmp_path):
    store = AttachmentBlobStore(tmp_path)
    with pytest.raises(BlobstoreError):
        store.path_for("../../etc/passwd")


def test_upload_batch_limits():
    check_upload_batch(["report.pdf", "photo.JPG"])

    with pytest.raises(ValidationFailed) as exc:
        check_upload_batch(["a.txt"] * 6)
    assert exc.value.fields == ["attachments"]

    with pytest.raises(ValidationFailed) as exc:
        check_upload_batch(["notes.txt", "script.exe"])
    assert exc.value.fields == ["attachments.1"]

    with pytest.raises(ValidationFailed):
        check_upload_batch([])
