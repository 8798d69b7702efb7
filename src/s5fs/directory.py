from typing import Iterator
from dataclasses import dataclass
import logging

from .metadata import Inode, DirectoryEntry
from .blocks import DirectoryBlock
from .device import BlockDevice


@dataclass(kw_only=True)
class DirectoryFile:
    r"""
    A directory is a plain file of 16 byte entries, 64 to a block:

        +-------+----------------+
        | d_ino |   d_name[14]   |    d_ino 0 marks a free slot
        +-------+----------------+
        | d_ino |   d_name[14]   |    "." and ".." are ordinary entries
        +-------+----------------+    pointing at self and parent
        |          ...           |
        +------------------------+

    Only the ten direct blocks are consulted.
    """
    device: BlockDevice
    inode: Inode

    def __repr__(self):
        return '\n'.join(repr(e) for e in self.walk())

    def walk(self) -> Iterator[DirectoryEntry]:
        """Yield active entries in slot order, reading one block at a time"""
        for blkno in self.inode.direct_blocks:
            if not blkno:
                continue
            logging.debug(f"Block: {blkno:06x}")
            db = self.device.read_block_type(blkno, DirectoryBlock)
            for e in db.active_entries:
                logging.info(f">>> {e!r}")
                yield e

    def children(self) -> Iterator[DirectoryEntry]:
        return (e for e in self.walk() if not e.is_self_or_parent)
