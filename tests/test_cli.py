"""CLI tests for the list / upload / download / demo / config commands."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import yaml

from s3xfer.cli import CliApp
from s3xfer.config import ENV_KEY_ID
from tests.conftest import make_client
from tests.fixtures.fake_s3 import FakeS3

if TYPE_CHECKING:
    from pathlib import Path

_PRESET_BUCKET = "rust-aws-sdk-s3-demo"


@pytest.fixture
def no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("S3XFER_CONFIG", str(tmp_path / "missing-config.yaml"))


def _run_with_fake(fake_s3: FakeS3, argv: list[str]) -> None:
    with patch(
        "s3xfer.cli.ObjectStoreClient.from_env",
        return_value=make_client(fake_s3),
    ):
        CliApp().run(argv)


@pytest.mark.usefixtures("s3_env", "no_user_config")
def test_list_prints_keys(
    fake_s3: FakeS3,
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake_s3.objects[(_PRESET_BUCKET, "a.txt")] = b""
    fake_s3.objects[(_PRESET_BUCKET, "videos/ski-02.mp4")] = b""

    _run_with_fake(fake_s3, ["list"])

    assert capsys.readouterr().out == "List:\na.txt\nvideos/ski-02.mp4\n"


@pytest.mark.usefixtures("s3_env", "no_user_config")
def test_list_all_with_bucket_override(
    capsys: pytest.CaptureFixture[str],
) -> None:
    fake_s3 = FakeS3(page_size=1)
    fake_s3.objects[("cli-bucket", "p/1")] = b""
    fake_s3.objects[("cli-bucket", "p/2")] = b""
    fake_s3.objects[("cli-bucket", "q/3")] = b""

    _run_with_fake(
        fake_s3, ["--bucket", "cli-bucket", "list", "--all", "--prefix", "p/"]
    )

    assert capsys.readouterr().out == "List:\np/1\np/2\n"


@pytest.mark.usefixtures("s3_env", "no_user_config")
def test_upload_and_download(
    fake_s3: FakeS3,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
    (tmp_path / "out").mkdir()

    _run_with_fake(fake_s3, ["upload", "notes.txt"])
    _run_with_fake(fake_s3, ["download", "notes.txt", "out", "--atomic"])

    out = capsys.readouterr().out
    assert "Uploaded file notes.txt" in out
    assert "Downloaded notes.txt in directory out" in out
    assert (tmp_path / "out" / "notes.txt").read_text(encoding="utf-8") == "hello"


@pytest.mark.usefixtures("s3_env", "no_user_config")
def test_demo_sequence(
    fake_s3: FakeS3,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.rs").write_text("fn main() {}\n", encoding="utf-8")
    (tmp_path / ".test-data" / "downloads").mkdir(parents=True)
    fake_s3.objects[(_PRESET_BUCKET, "videos/ski-02.mp4")] = b"ski"

    _run_with_fake(fake_s3, ["demo"])

    assert fake_s3.calls == ["list_objects_v2", "put_object", "get_object"]
    assert (_PRESET_BUCKET, "src/main.rs") in fake_s3.objects
    downloaded = tmp_path / ".test-data" / "downloads" / "videos" / "ski-02.mp4"
    assert downloaded.read_bytes() == b"ski"


@pytest.mark.usefixtures("s3_env", "no_user_config")
def test_transfer_error_exits(fake_s3: FakeS3, tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _run_with_fake(fake_s3, ["download", "k", str(tmp_path / "missing")])
    assert "not a directory" in str(exc_info.value.code)
    assert fake_s3.calls == []


@pytest.mark.usefixtures("s3_env", "no_user_config")
def test_missing_credential_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ENV_KEY_ID)
    with pytest.raises(SystemExit) as exc_info:
        CliApp().run(["list"])
    assert ENV_KEY_ID in str(exc_info.value.code)


@pytest.mark.usefixtures("s3_env")
def test_bucket_from_config_file(
    fake_s3: FakeS3,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        yaml.safe_dump({"store": {"bucket": "file-bucket"}}), encoding="utf-8"
    )
    fake_s3.objects[("file-bucket", "only-here")] = b""

    _run_with_fake(fake_s3, ["--config", str(cfg_path), "list"])

    assert "only-here" in capsys.readouterr().out


@pytest.mark.usefixtures("s3_env")
def test_config_save_writes_effective_settings(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.delenv(ENV_KEY_ID)
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        yaml.safe_dump({"other": {"keep": True}, "store": {"bucket": "old"}}),
        encoding="utf-8",
    )

    CliApp().run(
        [
            "--config",
            str(cfg_path),
            "--bucket",
            "new",
            "--region",
            "eu-west-1",
            "config",
            "--save",
        ]
    )

    shown = yaml.safe_load(capsys.readouterr().out)
    assert shown == {"store": {"bucket": "new", "region": "eu-west-1"}}
    with cfg_path.open("r", encoding="utf-8") as fh:
        saved = yaml.safe_load(fh)
    assert saved["other"] == {"keep": True}
    assert saved["store"] == {"bucket": "new", "region": "eu-west-1"}


@pytest.mark.usefixtures("s3_env")
def test_config_without_save_leaves_file_untouched(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    cfg_path = tmp_path / "config.yaml"

    CliApp().run(["--config", str(cfg_path), "config"])

    shown = yaml.safe_load(capsys.readouterr().out)
    assert shown["store"]["bucket"] == _PRESET_BUCKET
    assert not cfg_path.exists()


@pytest.mark.usefixtures("s3_env")
@pytest.mark.parametrize(
    "content",
    ["store: [unclosed\n", "store:\n  timeout: soon\n"],
)
def test_bad_config_file_exits_with_error(tmp_path: Path, content: str) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(content, encoding="utf-8")
    with pytest.raises(SystemExit) as exc_info:
        CliApp().run(["--config", str(cfg_path), "list"])
    message = str(exc_info.value.code)
    assert message.startswith("Error:")
    assert str(cfg_path) in message
