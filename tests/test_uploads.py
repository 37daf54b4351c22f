import io

import pytest
from starlette.datastructures import Headers, UploadFile

from profile_store.profiles.errors import PayloadTooLargeError, UnsupportedMediaTypeError
from profile_store.profiles.uploads import is_image_content_type, stage_upload


def _upload(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.anyio
async def test_stage_upload_streams_into_tmp_dir(tmp_path):
    content = b"x" * 10_000
    staged = await stage_upload(
        _upload(content, "Holiday.PNG", "image/png"), tmp_path, max_bytes=20_000, chunk_size=1024
    )

    assert staged.path.parent == tmp_path
    assert staged.path.suffix == ".png"
    assert staged.path.read_bytes() == content
    assert staged.size == len(content)
    assert staged.extension == ".png"
    assert staged.original_filename == "Holiday.PNG"

    staged.discard()
    assert list(tmp_path.iterdir()) == []
    staged.discard()


@pytest.mark.anyio
async def test_stage_upload_rejects_non_image_before_writing(tmp_path):
    with pytest.raises(UnsupportedMediaTypeError):
        await stage_upload(_upload(b"hello", "a.txt", "text/plain"), tmp_path, max_bytes=100)
    assert list(tmp_path.iterdir()) == []


@pytest.mark.anyio
async def test_stage_upload_rejects_oversized_file(tmp_path):
    with pytest.raises(PayloadTooLargeError) as excinfo:
        await stage_upload(
            _upload(b"y" * 101, "big.jpg", "image/jpeg"), tmp_path, max_bytes=100, chunk_size=10
        )
    assert excinfo.value.limit_bytes == 100
    assert excinfo.value.status_code == 413
    assert list(tmp_path.iterdir()) == []


@pytest.mark.anyio
async def test_stage_upload_accepts_file_at_exact_limit(tmp_path):
    staged = await stage_upload(_upload(b"z" * 100, "ok.jpg", "image/jpeg"), tmp_path, max_bytes=100)
    assert staged.size == 100


def test_is_image_content_type():
    assert is_image_content_type("image/jpeg")
    assert is_image_content_type("IMAGE/PNG")
    assert not is_image_content_type("application/octet-stream")
    assert not is_image_content_type("")
    assert not is_image_content_type(None)


def test_payload_too_large_message_uses_megabytes():
    assert PayloadTooLargeError(5 * 1024 * 1024).message == "File too large. Max 5MB"
    assert PayloadTooLargeError(100).message == "File too large. Max 100 bytes"
