"""Tests for the storage CLI."""

from __future__ import annotations

import pytest

from scripts.storage_cli import build_parser, run


@pytest.mark.asyncio
async def test_ls_prints_relative_keys(storage, transport, capsys):
    transport.objects["test-bucket/public/photos/cat.png"] = b"meow"

    code = await run(build_parser().parse_args(["ls", "photos/"]), storage)

    assert code == 0
    out = capsys.readouterr().out
    assert "photos/cat.png" in out
    assert "public/photos" not in out


@pytest.mark.asyncio
async def test_get_prints_presigned_url(storage, capsys):
    await run(build_parser().parse_args(["get", "a.txt", "--expires", "60"]), storage)

    assert "X-Amz-Expires=60" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_get_download_writes_file(storage, transport, tmp_path):
    transport.objects["test-bucket/private/us-east-1:identity-1/a.txt"] = b"secret"
    target = tmp_path / "a.txt"

    await run(
        build_parser().parse_args(
            ["--level", "private", "get", "a.txt", "--download", "-o", str(target)]
        ),
        storage,
    )

    assert target.read_bytes() == b"secret"


@pytest.mark.asyncio
async def test_put_then_rm(storage, transport, uploader_factory, tmp_path, capsys):
    source = tmp_path / "doc.txt"
    source.write_bytes(b"body")

    await run(
        build_parser().parse_args(["put", "doc.txt", str(source), "--content-type", "text/plain"]),
        storage,
    )
    assert uploader_factory.created[-1].params["ContentType"] == "text/plain"

    await run(build_parser().parse_args(["rm", "doc.txt"]), storage)

    out = capsys.readouterr().out
    assert "Uploaded doc.txt" in out
    assert "Removed doc.txt" in out
    assert transport.calls[-1] == (
        "delete_object",
        {"Bucket": "test-bucket", "Key": "public/doc.txt"},
    )


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
