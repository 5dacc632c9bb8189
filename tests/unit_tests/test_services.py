import pytest

from uploads_api.errors import (
    ContentTypeNotAllowedError,
    FileTooLargeError,
    StorageError,
    StoredFileNotFoundError,
    UploadValidationError,
)
import uploads_api.storage as storage_module
from uploads_api.services import FileService
from tests.consts import (
    MiB,
    TEST_FILE_CONTENT,
    TEST_FILE_CONTENT_TYPE,
    TEST_JPEG_CONTENT_TYPE,
    TEST_PDF_CONTENT,
    TEST_PDF_CONTENT_TYPE,
    TEST_PDF_NAME,
    TEST_PNG_CONTENT_TYPE,
)
from tests.fixtures.storage_fixtures import content_files, incoming


def test_upload_batch_stores_every_file_in_order(service: FileService, storage_root):
    batch = [
        incoming(TEST_PDF_NAME, TEST_PDF_CONTENT, TEST_PDF_CONTENT_TYPE),
        incoming("notes.txt", TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE),
    ]

    stored = service.upload(batch)

    assert [s.name for s in stored] == [TEST_PDF_NAME, "notes.txt"]
    assert [s.type for s in stored] == ["application/pdf", "text"]
    assert len(content_files(storage_root)) == 2


def test_upload_batch_with_one_oversized_file_stores_nothing(service: FileService, storage_root):
    batch = [
        incoming("small.jpg", b"\xff" * MiB, TEST_JPEG_CONTENT_TYPE),
        incoming("large.png", b"\x00" * (15 * MiB), TEST_PNG_CONTENT_TYPE),
    ]

    with pytest.raises(FileTooLargeError, match="large.png is too large"):
        service.upload(batch)

    assert content_files(storage_root) == []


def test_upload_disallowed_type_stores_nothing(service: FileService, storage_root):
    with pytest.raises(ContentTypeNotAllowedError):
        service.upload([incoming("data.json", b"{}", "application/json")])

    assert content_files(storage_root) == []


def test_upload_empty_batch(service: FileService):
    with pytest.raises(UploadValidationError, match="No files provided"):
        service.upload([])


def test_upload_storage_failure_rolls_back_batch(service: FileService, storage_root, monkeypatch):
    original_save = service.store.save
    calls = []

    def flaky_save(content, filename, content_type=None):
        calls.append(filename)
        if len(calls) == 3:
            raise StorageError("Failed to save file")
        return original_save(content, filename, content_type)

    monkeypatch.setattr(service.store, "save", flaky_save)
    batch = [incoming(f"file{i}.txt", TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE) for i in range(4)]

    with pytest.raises(StorageError):
        service.upload(batch)

    assert calls == ["file0.txt", "file1.txt", "file2.txt"]
    assert content_files(storage_root) == []
    assert service.list_all() == []


def test_upload_value_error_mid_batch_rolls_back(service: FileService, storage_root, monkeypatch):
    write_atomic = storage_module._write_atomic

    def reject_pdf(target, data):
        if target.suffix == ".pdf":
            raise ValueError("embedded null byte")
        write_atomic(target, data)

    monkeypatch.setattr(storage_module, "_write_atomic", reject_pdf)
    batch = [
        incoming("notes.txt", TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE),
        incoming(TEST_PDF_NAME, TEST_PDF_CONTENT, TEST_PDF_CONTENT_TYPE),
    ]

    with pytest.raises(StorageError):
        service.upload(batch)

    assert content_files(storage_root) == []


def test_upload_name_with_null_byte_is_stored(service: FileService, storage_root):
    batch = [
        incoming("ok.txt", TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE),
        incoming("bad.t\x00xt", TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE),
    ]

    stored = service.upload(batch)

    assert [s.path.suffix for s in stored] == [".txt", ".txt"]
    assert len(content_files(storage_root)) == 2


def test_list_all_after_uploads(service: FileService):
    service.upload([incoming(f"file{i}.txt", TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE) for i in range(5)])
    service.upload([incoming(TEST_PDF_NAME, TEST_PDF_CONTENT, TEST_PDF_CONTENT_TYPE)])

    listed = service.list_all()

    assert len(listed) == 6
    assert sorted(f.type for f in listed) == ["application/pdf"] + ["text"] * 5


def test_download_path_and_delete(service: FileService):
    [stored] = service.upload([incoming(TEST_PDF_NAME, TEST_PDF_CONTENT, TEST_PDF_CONTENT_TYPE)])

    assert service.download_path(stored.id).read_bytes() == TEST_PDF_CONTENT

    service.delete(stored.id)

    with pytest.raises(StoredFileNotFoundError):
        service.download_path(stored.id)
    with pytest.raises(StoredFileNotFoundError):
        service.open_download(stored.id)
