from typing import ClassVar, Self
from dataclasses import dataclass
import struct

from .globals import entries_per_block, pointers_per_block, block_size, dirent_size
from .metadata import DirectoryEntry


@dataclass(kw_only=True)
class AbstractBlock:
    def pack(self) -> bytes:
        return NotImplemented

    @classmethod
    def unpack(cls, buf: bytes) -> Self:
        return NotImplemented


@dataclass(kw_only=True)
class DirectoryBlock(AbstractBlock):
    """
    A directory data block is just 64 fixed size entries,
    there is no header and no chaining between blocks.
    """
    entries: list[DirectoryEntry]

    def __repr__(self):
        return "\n".join(repr(e) for e in self.entries if e.is_active)

    @property
    def active_entries(self) -> list[DirectoryEntry]:
        return [e for e in self.entries if e.is_active]

    def pack(self) -> bytes:
        data = b''.join(e.pack() for e in self.entries)
        assert len(data) <= block_size, \
            f"DirectoryBlock.pack: {len(self.entries)} entries exceed {entries_per_block} per block"
        return data + bytes(block_size - len(data))

    @classmethod
    def unpack(cls, buf: bytes) -> Self:
        assert len(buf) == block_size, f"DirectoryBlock.unpack: expected {block_size} bytes, got {len(buf)}"
        return cls(entries=[
            DirectoryEntry.unpack(buf[i:i + dirent_size])
            for i in range(0, block_size, dirent_size)
        ])


@dataclass(kw_only=True)
class IndirectBlock(AbstractBlock):
    """
    indirect blocks store 256 four byte big-endian block numbers,
    zero marks an unallocated slot
    """
    _struct: ClassVar = f">{pointers_per_block}I"

    block_pointers: list[int]

    def pack(self) -> bytes:
        ptrs = self.block_pointers + [0] * (pointers_per_block - len(self.block_pointers))
        return struct.pack(IndirectBlock._struct, *ptrs)

    @classmethod
    def unpack(cls, buf: bytes) -> Self:
        return cls(block_pointers=list(struct.unpack(cls._struct, buf)))


assert struct.calcsize(IndirectBlock._struct) == block_size
