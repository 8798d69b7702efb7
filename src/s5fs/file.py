from typing import BinaryIO
import logging
from dataclasses import dataclass
from pathlib import Path

from .globals import block_size, dirsiz, pointers_per_block
from .metadata import Inode
from .blocks import IndirectBlock
from .device import BlockDevice
from .errors import CreateError


def legal_name(raw: bytes) -> str:
    """
    Host file name for an on-disk name field: stop at the first NUL,
    keep at most 14 bytes and turn anything unprintable or '/' into '.'
    """
    raw = raw[:dirsiz].split(b'\0', 1)[0]
    return ''.join(
        chr(c) if 0x20 <= c <= 0x7e and c != ord('/') else '.'
        for c in raw
    )


@dataclass(kw_only=True)
class FileWriter:
    """
    Streams data blocks to out, clipping to the bytes that remain of the file.
    remaining goes negative once the file is complete,
    later blocks are still read but contribute nothing.
    """
    device: BlockDevice
    out: BinaryIO
    remaining: int
    written: int = 0

    def dump_block(self, block_index: int):
        data = self.device.read_block(block_index)
        n = min(block_size, max(0, self.remaining))
        self.out.write(data[:n])
        self.written += n
        self.remaining -= block_size

    def dump_single_indirect(self, block_index: int):
        idx = self.device.read_block_type(block_index, IndirectBlock)
        for p in idx.block_pointers:
            if p:
                logging.debug(f"1ind blk {p:d}")
                self.dump_block(p)

    def dump_double_indirect(self, block_index: int):
        idx = self.device.read_block_type(block_index, IndirectBlock)
        for p in idx.block_pointers:
            if p:
                logging.debug(f"2ind blk {p:d}")
                self.dump_single_indirect(p)


@dataclass(kw_only=True)
class RegularFile:
    r"""
    Blocks of a regular file, in the order their bytes appear:

        addr[0..9] ---> data blocks 0-9
        addr[10]   ---> [256 pointers] ---> data blocks
        addr[11]   ---> [256 pointers] ---> [256 pointers] ---> data blocks
        addr[12]   ---> triple indirect, not followed

    Zero pointers are skipped outright, so a sparse file comes out
    with its holes squeezed rather than zero filled.
    """
    device: BlockDevice
    inode: Inode

    @property
    def capacity(self) -> int:
        # bytes addressable without triple indirection
        n = pointers_per_block
        return (len(self.inode.direct_blocks) + n + n * n) * block_size

    def export(self, dst: Path) -> int:
        """Write file content to dst, returning the number of bytes written"""
        try:
            out = open(dst, 'wb')
        except OSError as e:
            raise CreateError(f"{dst}: {e.strerror or e}") from e

        with out:
            w = FileWriter(device=self.device, out=out, remaining=self.inode.size)
            logging.debug("Blocks: " + ' '.join(f"{b:06x}" for b in self.inode.direct_blocks if b))
            for b in self.inode.direct_blocks:
                if b:
                    w.dump_block(b)

            if self.inode.single_indirect:
                logging.debug(f"1x ind block: {self.inode.single_indirect:06x}")
                w.dump_single_indirect(self.inode.single_indirect)

            if self.inode.double_indirect:
                logging.debug(f"2x ind block: {self.inode.double_indirect:06x}")
                w.dump_double_indirect(self.inode.double_indirect)

        if w.written < self.inode.size:
            logging.warning(f"{dst}: wrote {w.written} of {self.inode.size} bytes")
        return w.written
