"""CLI tests with a mocked S3Client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable
from unittest.mock import MagicMock

import pytest

from s3rest.cli import CliApp
from s3rest.exceptions import ClientError, ValidationError
from s3rest.models import (
    BatchDeleteResult,
    Bucket,
    CopyObjectResult,
    DeletedObject,
    GetObjectStream,
    ListAllMyBuckets,
    PutObjectResult,
    S3Object,
)
from tests.fixtures.fake_http import FakeResponse

if TYPE_CHECKING:
    from pathlib import Path

    from s3rest.config import S3Config


@pytest.fixture(autouse=True)
def _no_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point config loading at a file that does not exist."""
    monkeypatch.setenv("S3REST_CONFIG", str(tmp_path / "missing.yaml"))


def _mock_client() -> MagicMock:
    """Build a mock S3Client usable as a context manager."""
    client = MagicMock()
    client.__enter__ = MagicMock(return_value=client)
    client.__exit__ = MagicMock(return_value=False)
    return client


def _app(client: MagicMock) -> tuple[CliApp, list[S3Config]]:
    configs: list[S3Config] = []

    def factory(cfg: S3Config) -> MagicMock:
        configs.append(cfg)
        return client

    return CliApp(client_factory=factory), configs  # type: ignore[arg-type]


def test_buckets_lists_names(capsys: pytest.CaptureFixture[str]) -> None:
    """buckets prints one line per bucket."""
    client = _mock_client()
    client.list_buckets.return_value = ListAllMyBuckets(
        buckets=[Bucket(name="alpha", creation_date="2024-01-01"), Bucket(name="beta")]
    )
    app, _ = _app(client)
    app.run(["buckets"])

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["2024-01-01\talpha", "\tbeta"]
    client.__exit__.assert_called_once()


def test_config_comes_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """The client is built from env-backed config."""
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    client = _mock_client()
    client.list_buckets.return_value = ListAllMyBuckets()
    app, configs = _app(client)
    app.run(["buckets"])
    assert configs[0].region == "eu-west-1"


def test_ls_passes_prefix_and_max_keys(capsys: pytest.CaptureFixture[str]) -> None:
    """ls forwards listing options and prints keys."""
    client = _mock_client()
    client.list_objects.return_value = iter(
        [S3Object(key="a/1", size=3), S3Object(key="a/2", size=4)]
    )
    app, _ = _app(client)
    app.run(["ls", "photos", "--prefix", "a/", "--max-keys", "2"])

    bucket, options = client.list_objects.call_args.args
    assert bucket == "photos"
    assert options.prefix == "a/"
    assert options.max_keys == 2
    out = capsys.readouterr().out
    assert "3\ta/1" in out
    assert "4\ta/2" in out


def _stream_side_effect(body: bytes) -> Callable[..., Any]:
    def run_handler(bucket: str, key: str, handler: Callable[[GetObjectStream], Any]) -> Any:  # noqa: ANN401, ARG001
        stream = GetObjectStream(
            status=200,
            size=len(body),
            etag='"e"',
            last_modified="",
            content_type="",
            body_io=FakeResponse(200, body),
        )
        return handler(stream)

    return run_handler


def test_get_writes_file(tmp_path: Path) -> None:
    """get streams the object into the output file."""
    client = _mock_client()
    client.get_object_stream.side_effect = _stream_side_effect(b"file-bytes")
    out = tmp_path / "sub" / "out.bin"
    app, _ = _app(client)
    app.run(["get", "b", "k", "-o", str(out)])
    assert out.read_bytes() == b"file-bytes"


def test_put_uploads_file(tmp_path: Path) -> None:
    """put opens the file and passes the handle to put_object."""
    src = tmp_path / "in.txt"
    src.write_bytes(b"hello")
    client = _mock_client()
    seen: list[bytes] = []

    def put_object(bucket: str, key: str, fh: Any) -> PutObjectResult:  # noqa: ANN401, ARG001
        seen.append(fh.read())
        return PutObjectResult(etag='"p"')

    client.put_object.side_effect = put_object
    app, _ = _app(client)
    app.run(["put", "b", "dest.txt", str(src)])
    assert seen == [b"hello"]
    assert client.put_object.call_args.args[:2] == ("b", "dest.txt")


def test_put_missing_file_exits(tmp_path: Path) -> None:
    """A missing local file is reported without calling the service."""
    client = _mock_client()
    app, _ = _app(client)
    with pytest.raises(SystemExit, match="file not found"):
        app.run(["put", "b", "k", str(tmp_path / "nope.bin")])
    client.put_object.assert_not_called()


def test_rm_reports_per_key_errors(capsys: pytest.CaptureFixture[str]) -> None:
    """Failed keys are printed and the command exits non-zero."""
    client = _mock_client()
    client.batch_delete.return_value = BatchDeleteResult(
        deleted_objects=[
            DeletedObject(key="a"),
            DeletedObject(key="b", code="AccessDenied", message="Access Denied"),
        ]
    )
    app, _ = _app(client)
    with pytest.raises(SystemExit, match="1 key"):
        app.run(["rm", "bucket", "a", "b"])
    client.batch_delete.assert_called_once_with("bucket", ["a", "b"])
    out = capsys.readouterr().out
    assert "deleted\ta" in out
    assert "failed\tb\tAccessDenied: Access Denied" in out


def test_rm_all_deleted() -> None:
    """A clean batch delete exits normally."""
    client = _mock_client()
    client.batch_delete.return_value = BatchDeleteResult(
        deleted_objects=[DeletedObject(key="a")]
    )
    app, _ = _app(client)
    app.run(["rm", "bucket", "a"])


def test_cp_copies_within_bucket() -> None:
    """cp calls copy_object with source and destination."""
    client = _mock_client()
    client.copy_object.return_value = CopyObjectResult(etag='"c"')
    app, _ = _app(client)
    app.run(["cp", "b", "src", "dst"])
    client.copy_object.assert_called_once_with("b", "src", "dst")


def test_library_errors_exit_with_message() -> None:
    """S3RestError subclasses become a non-zero exit with the message."""
    client = _mock_client()
    client.list_buckets.side_effect = ClientError(403, "AccessDenied", "Access Denied")
    app, _ = _app(client)
    with pytest.raises(SystemExit, match="AccessDenied"):
        app.run(["buckets"])


def test_validation_errors_exit() -> None:
    """Pre-flight validation failures are reported the same way."""
    client = _mock_client()
    client.batch_delete.side_effect = ValidationError("maximum of 1000 keys allowed")
    app, _ = _app(client)
    with pytest.raises(SystemExit, match="maximum of 1000"):
        app.run(["rm", "b", "k"])


def test_command_is_required() -> None:
    """Running without a command is a usage error."""
    with pytest.raises(SystemExit):
        CliApp().run([])
