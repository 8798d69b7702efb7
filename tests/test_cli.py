import pytest
from typer.testing import CliRunner
from pathlib import Path

from s5cli import app
from s5image import S5Image, hello_image


runner = CliRunner()


@pytest.fixture
def hello_img(tmp_path: Path) -> Path:
    return hello_image().save(tmp_path / "hello.img")


def test_extract_to_dump(hello_img: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, [str(hello_img), "0", "2"])
    assert result.exit_code == 0
    assert (tmp_path / "dump" / "root" / "hello.txt").read_bytes() == b'hello'
    assert "hello.txt" in result.stdout
    assert "1 directories, 1 files, 5 bytes" in result.stdout


def test_extract_output_option(hello_img: Path, tmp_path: Path):
    out = tmp_path / "a" / "b"
    result = runner.invoke(app, [str(hello_img), "0", "2", "-o", str(out), "-v"])
    assert result.exit_code == 0
    assert (out / "root" / "hello.txt").read_bytes() == b'hello'


def test_base_override(tmp_path: Path):
    img = S5Image(base=0x8000)
    img.add_directory(2, [(3, b'moved')])
    img.add_file(3, b'offset')
    path = img.save(tmp_path / "part.img")
    result = runner.invoke(app, [str(path), "0", "2", "-o", str(tmp_path / "out"), "--base", "0x8000"])
    assert result.exit_code == 0
    assert (tmp_path / "out" / "root" / "moved").read_bytes() == b'offset'


@pytest.mark.parametrize('args', [
    [],
    ["image.img"],
    ["image.img", "0"],
    ["image.img", "0", "2", "extra"],
    ["image.img", "0", "0"],
    ["image.img", "0", "2", "--base", "nowhere"],
])
def test_usage(args: list[str], tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, args)
    assert result.exit_code == 2
    assert not (tmp_path / "dump").exists()


def test_bad_partition(hello_img: Path, tmp_path: Path):
    result = runner.invoke(app, [str(hello_img), "7", "2", "-o", str(tmp_path / "out")])
    assert result.exit_code == 2
    assert "partition 7" in result.stdout


def test_missing_image(tmp_path: Path):
    result = runner.invoke(app, [str(tmp_path / "nope.img"), "0", "2", "-o", str(tmp_path / "out")])
    assert result.exit_code == 3
    assert "open failed" in result.stdout


def test_create_failure(hello_img: Path, tmp_path: Path):
    (tmp_path / "out" / "root").mkdir(parents=True)
    (tmp_path / "out" / "root" / "hello.txt").mkdir()
    result = runner.invoke(app, [str(hello_img), "0", "2", "-o", str(tmp_path / "out")])
    assert result.exit_code == 4
    assert "create failed" in result.stdout


def test_short_read(tmp_path: Path):
    img = S5Image()
    img.add_directory(2, [(3, b'lost'), (4, b'kept')])
    ino = img.add_file(3, b'x')
    ino.addr[0] = 9999
    img.set_inode(3, ino)
    img.add_file(4, b'kept')
    path = img.save(tmp_path / "trunc.img")

    result = runner.invoke(app, [str(path), "0", "2", "-o", str(tmp_path / "strict")])
    assert result.exit_code == 5
    assert "read failed" in result.stdout

    result = runner.invoke(app, [str(path), "0", "2", "-o", str(tmp_path / "lenient"), "--keep-going"])
    assert result.exit_code == 0
    assert (tmp_path / "lenient" / "root" / "kept").read_bytes() == b'kept'
    assert "error block 9999" in result.stdout


def test_skipped_nodes_reported(tmp_path: Path):
    img = S5Image()
    img.add_directory(2, [(3, b'console')])
    img.add_file(3, b'', mode=0o020622)
    path = img.save(tmp_path / "dev.img")
    result = runner.invoke(app, [str(path), "0", "2", "-o", str(tmp_path / "out")])
    assert result.exit_code == 0
    assert "skipped" in result.stdout
    assert "console" in result.stdout


@pytest.mark.parametrize('args', [
    ["2", "--max-depth", "100000"],
    ["70000"],
])
def test_limits(args: list[str], hello_img: Path, tmp_path: Path):
    result = runner.invoke(app, [str(hello_img), "0"] + args + ["-o", str(tmp_path / "out")])
    assert result.exit_code == 2
    assert "usage failed" in result.stdout
    assert not (tmp_path / "out").exists()
