from typing import Tuple, List, Literal, Type, TypeVar
import logging
from mmap import mmap, ACCESS_READ
from pathlib import Path

from .globals import block_size, inode_size, inode_table_offset, partition_offsets
from .blocks import AbstractBlock
from .metadata import Inode
from .errors import OpenError, ShortReadError, InodeNumberError, UsageError


BlockT = TypeVar('BlockT', bound=AbstractBlock)
AccessT = Literal['i', 'r']


def inode_offset(base: int, inode_number: int) -> int:
    """Inodes are numbered from 1 and packed from two blocks into the partition"""
    if inode_number < 1:
        raise InodeNumberError(f"inode number must be positive, got {inode_number}")
    return base + inode_table_offset + inode_size * (inode_number - 1)


def block_offset(base: int, block_index: int) -> int:
    return base + block_size * block_index


def partition_base(partition: int) -> int:
    if not 0 <= partition < len(partition_offsets):
        raise UsageError(f"partition {partition} not in table (0..{len(partition_offsets) - 1})")
    return partition_offsets[partition]


class BlockDevice:
    """
    Read-only view of one partition inside a raw disk image.
    Block and inode numbers are relative to the partition base.
    """

    def __init__(self, fname: str | Path, base: int = 0):
        self.fname = fname
        self.base = base
        try:
            with open(fname, 'rb', buffering=0) as f:
                self.mm = mmap(f.fileno(), 0, access=ACCESS_READ)
        except (OSError, ValueError) as e:
            # mmap refuses empty files with ValueError
            raise OpenError(f"{fname}: {e}") from e
        self._access_log: List[Tuple[AccessT, int]] = []

        n = len(self.mm)
        if n <= base:
            logging.warning(f"BlockDevice: partition base {base:#x} is beyond end of {fname} ({n} bytes)")
        elif (n - base) % block_size:
            logging.debug(f"BlockDevice: {n - base} bytes past base {base:#x} is not a multiple of {block_size}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"BlockDevice on {self.fname} partition base {self.base:#x}, {self.total_blocks} blocks"

    def close(self):
        if not self.mm.closed:
            self.mm.close()

    @property
    def total_blocks(self) -> int:
        return max(0, len(self.mm) - self.base) // block_size

    def get_access_log(self, access_types: str) -> list[int]:
        return [i for (t, i) in self._access_log if t in access_types]

    def read_block_type(self, block_index: int, factory: Type[BlockT]) -> BlockT:
        return factory.unpack(self.read_block(block_index))

    def read_block(self, block_index: int) -> bytes:
        assert block_index != 0, "read_block(0): block zero marks an absent block"
        self._access_log.append(('r', block_index))
        start = block_offset(self.base, block_index)
        return self._read(f"block {block_index}", start, block_size)

    def read_inode(self, inode_number: int) -> Inode:
        start = inode_offset(self.base, inode_number)
        self._access_log.append(('i', inode_number))
        return Inode.unpack(self._read(f"inode {inode_number}", start, inode_size))

    def _read(self, what: str, start: int, length: int) -> bytes:
        data = self.mm[start:start+length]
        if len(data) != length:
            raise ShortReadError(what, start, length, len(data))
        return data
