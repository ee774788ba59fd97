from __future__ import annotations

import asyncio
import io
import logging
import tarfile

import pytest

from archive_builders import archive, build_header, dir_entry, file_entry, snapshot_tree
from ustar_extract import (
    ExtractSettings,
    SourceNotFoundError,
    extract,
    extract_async,
    extract_stream_async,
    list_entries,
    list_entries_async,
)
from ustar_extract import api
from ustar_extract.common.errors import (
    ExtractionCancelledError,
    FilesystemFailureError,
    TruncatedStreamError,
    UstarExtractError,
)
from ustar_extract.core.blocks import ThreadedFile
from ustar_extract.core.sink import FilesystemSink


def _hello_archive() -> bytes:
    return archive(dir_entry("out/"), file_entry("out/hello.txt", b"hi"))


def _mixed_archive() -> bytes:
    return archive(
        dir_entry("pkg/"),
        dir_entry("pkg/nested/deeper/"),
        file_entry("pkg/empty", b""),
        file_entry("pkg/nested/block.bin", bytes(range(256)) * 2),
        file_entry("pkg/nested/deeper/big.bin", b"0123456789" * 300),
        build_header("pkg/link", type_flag=b"2", linked_name=b"empty"),
        file_entry("notes.txt", b"tail entry", prefix="pkg/"),
    )


@pytest.fixture
def hello_tar(tmp_path):
    path = tmp_path / "hello.tar"
    path.write_bytes(_hello_archive())
    return path


def test_end_to_end_hello(tmp_path, hello_tar, monkeypatch):
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    summary = extract(hello_tar)

    assert (workdir / "out").is_dir()
    assert (workdir / "out" / "hello.txt").read_bytes() == b"hi"
    assert summary.directories == 1
    assert summary.files == 1
    assert summary.bytes_written == 2


@pytest.mark.asyncio
async def test_end_to_end_hello_async(tmp_path, hello_tar):
    dest = tmp_path / "dest"
    dest.mkdir()

    summary = await extract_async(hello_tar, destination=dest)

    assert (dest / "out" / "hello.txt").read_bytes() == b"hi"
    assert summary.files == 1


def test_missing_source_fails_without_mutation(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    before = snapshot_tree(tmp_path)

    with pytest.raises(SourceNotFoundError) as excinfo:
        extract(tmp_path / "missing.tar", destination=tmp_path)

    assert isinstance(excinfo.value, FileNotFoundError)
    assert snapshot_tree(tmp_path) == before


@pytest.mark.asyncio
async def test_missing_source_fails_async(tmp_path):
    with pytest.raises(SourceNotFoundError):
        await extract_async(tmp_path / "missing.tar", destination=tmp_path)
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_blocking_and_suspending_modes_agree(tmp_path):
    source = tmp_path / "mixed.tar"
    source.write_bytes(_mixed_archive())
    sync_dest = tmp_path / "sync"
    async_dest = tmp_path / "async"
    sync_dest.mkdir()
    async_dest.mkdir()
    sync_lines, async_lines = [], []

    sync_summary = extract(source, sync_lines.append, destination=sync_dest)
    async_summary = await extract_async(source, async_lines.append, destination=async_dest)

    assert snapshot_tree(sync_dest) == snapshot_tree(async_dest)
    assert sync_lines == async_lines
    assert sync_summary == async_summary
    assert (sync_dest / "pkg" / "notes.txt").read_bytes() == b"tail entry"
    assert (sync_dest / "pkg" / "nested" / "deeper" / "big.bin").stat().st_size == 3000
    assert sync_summary.skipped == 1


def test_extracts_tarfile_archive(tmp_path):
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.GNU_FORMAT) as tar:
        info = tarfile.TarInfo("site")
        info.type = tarfile.DIRTYPE
        tar.addfile(info)
        for name, payload in [("site/index.html", b"<h1>hi</h1>"), ("site/blob", b"\x00\xff" * 700)]:
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            tar.addfile(info, io.BytesIO(payload))
    source = tmp_path / "site.tar"
    source.write_bytes(buf.getvalue())
    dest = tmp_path / "dest"

    extract(source, destination=dest)

    assert (dest / "site" / "index.html").read_bytes() == b"<h1>hi</h1>"
    assert (dest / "site" / "blob").read_bytes() == b"\x00\xff" * 700


def test_progress_to_text_stream(hello_tar, tmp_path):
    out = io.StringIO()
    extract(hello_tar, out, destination=tmp_path)
    assert out.getvalue().splitlines() == [
        "out/",
        "directory out/",
        "out/hello.txt",
        "file out/hello.txt (2 bytes, 1 blocks)",
        "wrote out/hello.txt (2 bytes)",
    ]


def test_progress_to_logger(hello_tar, tmp_path, caplog):
    progress_logger = logging.getLogger("tests.progress")
    with caplog.at_level(logging.INFO, logger="tests.progress"):
        extract(hello_tar, progress_logger, destination=tmp_path)
    messages = [r.getMessage() for r in caplog.records if r.name == "tests.progress"]
    assert messages[0] == "out/"
    assert messages[-1] == "wrote out/hello.txt (2 bytes)"


def test_unsupported_progress_sink(hello_tar, tmp_path):
    with pytest.raises(TypeError):
        extract(hello_tar, 42, destination=tmp_path)


def test_destination_from_environment(hello_tar, tmp_path, monkeypatch):
    dest = tmp_path / "from-env"
    monkeypatch.setenv("USTAR_DESTINATION", str(dest))
    extract(hello_tar)
    assert (dest / "out" / "hello.txt").read_bytes() == b"hi"


def test_explicit_destination_overrides_settings(hello_tar, tmp_path):
    settings = ExtractSettings(destination=str(tmp_path / "ignored"))
    extract(hello_tar, settings=settings, destination=tmp_path / "used")
    assert (tmp_path / "used" / "out" / "hello.txt").exists()
    assert not (tmp_path / "ignored").exists()


@pytest.mark.asyncio
async def test_extract_stream_async_from_stream_reader(tmp_path):
    reader = asyncio.StreamReader()
    reader.feed_data(_hello_archive())
    reader.feed_eof()

    summary = await extract_stream_async(reader, destination=tmp_path)

    assert (tmp_path / "out" / "hello.txt").read_bytes() == b"hi"
    assert summary.directories == 1


@pytest.mark.asyncio
async def test_async_truncation_surfaces(tmp_path):
    reader = asyncio.StreamReader()
    reader.feed_data(file_entry("cut.bin", b"z" * 2000)[:1200])
    reader.feed_eof()

    with pytest.raises(TruncatedStreamError):
        await extract_stream_async(reader, destination=tmp_path)
    assert (tmp_path / "cut.bin").read_bytes() == b"z" * 512


@pytest.mark.asyncio
async def test_async_cancel_event(tmp_path, hello_tar):
    cancel = asyncio.Event()
    cancel.set()
    with pytest.raises(ExtractionCancelledError):
        await extract_async(hello_tar, destination=tmp_path / "dest", cancel=cancel)
    assert not (tmp_path / "dest").exists()


def test_list_entries(tmp_path):
    source = tmp_path / "mixed.tar"
    source.write_bytes(_mixed_archive())

    entries = list_entries(source)

    assert [e.effective_path for e in entries] == [
        "pkg/",
        "pkg/nested/deeper/",
        "pkg/empty",
        "pkg/nested/block.bin",
        "pkg/nested/deeper/big.bin",
        "pkg/link",
        "pkg/notes.txt",
    ]
    assert entries[5].linked_name == "empty"
    assert entries[4].size == 3000
    assert sorted(p.name for p in tmp_path.iterdir()) == ["mixed.tar"]


@pytest.mark.asyncio
async def test_list_entries_async_matches(tmp_path):
    source = tmp_path / "mixed.tar"
    source.write_bytes(_mixed_archive())
    assert await list_entries_async(source) == list_entries(source)


def test_list_entries_missing_source(tmp_path):
    with pytest.raises(SourceNotFoundError):
        list_entries(tmp_path / "nope.tar")


def test_directory_source_raises_package_error(tmp_path):
    with pytest.raises(FilesystemFailureError) as excinfo:
        extract(tmp_path, destination=tmp_path / "dest")
    assert isinstance(excinfo.value, UstarExtractError)
    assert excinfo.value.operation == "open archive"
    assert not (tmp_path / "dest").exists()

    with pytest.raises(FilesystemFailureError):
        list_entries(tmp_path)


@pytest.mark.asyncio
async def test_directory_source_raises_package_error_async(tmp_path):
    with pytest.raises(FilesystemFailureError):
        await extract_async(tmp_path, destination=tmp_path / "dest")
    with pytest.raises(FilesystemFailureError):
        await list_entries_async(tmp_path)


@pytest.mark.asyncio
async def test_async_creates_missing_destination(tmp_path):
    source = tmp_path / "flat.tar"
    source.write_bytes(archive(file_entry("top.txt", b"top")))
    dest = tmp_path / "not" / "yet"

    await extract_async(source, destination=dest)

    assert (dest / "top.txt").read_bytes() == b"top"


@pytest.fixture
def recorded_handles(monkeypatch):
    """Collect every output file and archive stream opened by extract_async."""
    recorded = {"outputs": [], "streams": []}
    original_open = FilesystemSink.open_for_write

    def recording_open(self, path):
        handle = original_open(self, path)
        recorded["outputs"].append(handle)
        return handle

    class RecordingThreadedFile(ThreadedFile):
        def __init__(self, fileobj):
            super().__init__(fileobj)
            recorded["streams"].append(self)

    monkeypatch.setattr(FilesystemSink, "open_for_write", recording_open)
    monkeypatch.setattr(api, "ThreadedFile", RecordingThreadedFile)
    return recorded


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "trigger,opens_output",
    [
        ("pkg/", False),
        # the next await is the open of block.bin
        ("file pkg/nested/block.bin", True),
        ("wrote pkg/empty", True),
    ],
)
async def test_task_cancellation_closes_everything(tmp_path, recorded_handles, trigger, opens_output):
    source = tmp_path / "mixed.tar"
    source.write_bytes(_mixed_archive())

    def progress(line):
        if line.startswith(trigger):
            task.cancel()

    task = asyncio.ensure_future(extract_async(source, progress, destination=tmp_path / "dest"))
    with pytest.raises(asyncio.CancelledError):
        await task

    outputs = recorded_handles["outputs"]
    assert bool(outputs) is opens_output
    assert all(handle.closed for handle in outputs)
    assert len(recorded_handles["streams"]) == 1
    assert recorded_handles["streams"][0].closed


@pytest.mark.asyncio
async def test_task_cancellation_during_content_write(tmp_path, recorded_handles, monkeypatch):
    source = tmp_path / "mixed.tar"
    source.write_bytes(_mixed_archive())
    loop = asyncio.get_running_loop()
    original_write = FilesystemSink.write

    def cancelling_write(self, handle, data):
        loop.call_soon_threadsafe(task.cancel)
        original_write(self, handle, data)

    monkeypatch.setattr(FilesystemSink, "write", cancelling_write)
    task = asyncio.ensure_future(extract_async(source, destination=tmp_path / "dest"))
    with pytest.raises(asyncio.CancelledError):
        await task

    assert recorded_handles["outputs"]
    assert all(handle.closed for handle in recorded_handles["outputs"])
    assert recorded_handles["streams"][0].closed
