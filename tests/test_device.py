from pathlib import Path
import pytest

from s5fs.device import BlockDevice, inode_offset, block_offset, partition_base
from s5fs.errors import InodeNumberError, OpenError, ShortReadError, UsageError
from s5image import S5Image


@pytest.mark.parametrize('base', [0, 0x400, 0x123400])
@pytest.mark.parametrize('n', [1, 2, 17, 65535])
def test_inode_offset(base: int, n: int):
    assert inode_offset(base, n) == base + 0x800 + 64 * (n - 1)


@pytest.mark.parametrize('n', [0, -1])
def test_inode_offset_rejects_non_positive(n: int):
    with pytest.raises(InodeNumberError):
        inode_offset(0, n)
    with pytest.raises(ValueError):
        inode_offset(0, n)


@pytest.mark.parametrize('base', [0, 0x10000])
@pytest.mark.parametrize('b', [0, 1, 0xffffff])
def test_block_offset(base: int, b: int):
    assert block_offset(base, b) == base + 0x400 * b


def test_partition_table():
    assert partition_base(0) == 0
    with pytest.raises(UsageError):
        partition_base(1)
    with pytest.raises(UsageError):
        partition_base(-1)


def test_open_missing(tmp_path: Path):
    with pytest.raises(OpenError):
        BlockDevice(tmp_path / "missing.img")


def test_open_empty(tmp_path: Path):
    img = tmp_path / "empty.img"
    img.write_bytes(b'')
    with pytest.raises(OpenError):
        BlockDevice(img)


def test_read_inode_and_block(tmp_path: Path):
    img = S5Image(base=0x2000)
    img.add_file(5, b'content')
    path = img.save(tmp_path / "part.img")

    with BlockDevice(path, base=0x2000) as dev:
        ino = dev.read_inode(5)
        assert ino.size == 7
        assert dev.read_block(ino.direct_blocks[0])[:7] == b'content'
        assert dev.get_access_log('i') == [5]
        assert dev.get_access_log('r') == [ino.direct_blocks[0]]


def test_short_reads(tmp_path: Path):
    path = tmp_path / "short.img"
    path.write_bytes(bytes(0x800 + 64 + 10))
    with BlockDevice(path) as dev:
        dev.read_inode(1)
        with pytest.raises(ShortReadError) as e:
            dev.read_inode(2)
        assert e.value.expected == 64 and e.value.got == 10
        with pytest.raises(ShortReadError) as e:
            dev.read_block(2)
        assert e.value.offset == 0x800
        with pytest.raises(ShortReadError):
            dev.read_block(100)
