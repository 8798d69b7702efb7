from typing import ClassVar, Self, Final, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
import struct

from .globals import inode_size, naddr, ndirect, dirsiz, dirent_size


class FileType(IntEnum):
    fifo = 0o010000
    chr = 0o020000
    dir = 0o040000
    blk = 0o060000
    reg = 0o100000
    lnk = 0o120000
    sock = 0o140000


type_mask: Final = 0o170000

_type_chars: Final = {
    FileType.fifo: 'p',
    FileType.chr: 'c',
    FileType.dir: 'd',
    FileType.blk: 'b',
    FileType.reg: '-',
    FileType.lnk: 'l',
    FileType.sock: 's',
}

mode_suid: Final = 0o4000
mode_sgid: Final = 0o2000
mode_svtx: Final = 0o1000


def mode_repr(mode: int) -> str:
    """ls -l style rendering of an S5 mode word"""
    try:
        s = _type_chars[FileType(mode & type_mask)]
    except ValueError:
        s = '?'
    for shift, special, flag in ((6, mode_suid, 's'), (3, mode_sgid, 's'), (0, mode_svtx, 't')):
        bits = (mode >> shift) & 0o7
        s += 'r' if bits & 4 else '-'
        s += 'w' if bits & 2 else '-'
        if mode & special:
            s += flag if bits & 1 else flag.upper()
        else:
            s += 'x' if bits & 1 else '-'
    return s


def _timestamp(t: int) -> datetime:
    return datetime.fromtimestamp(t, tz=timezone.utc)


@dataclass(kw_only=True)
class Inode:
    """
    On-disk inode, 64 bytes, every field big-endian:

        0   mode        type and permission bits
        2   nlink       signed
        4   uid
        6   gid
        8   size        bytes in file
        12  addr[39]    13 three byte block numbers
        51  (pad)       extended mode / generation byte, not used here
        52  atime
        56  mtime
        60  ctime

    addr[0..9] are direct blocks, addr[10] single indirect,
    addr[11] double indirect and addr[12] triple indirect.
    """
    _struct: ClassVar = ">HhHHI39sxIII"

    mode: int
    nlink: int = 1
    uid: int = 0
    gid: int = 0
    size: int = 0
    addr: list[int] = field(default_factory=lambda: [0] * naddr)
    atime: int = 0
    mtime: int = 0
    ctime: int = 0

    def __repr__(self):
        return '\n'.join([
            f"mode: {self.mode:06o} {self.mode_repr()}",
            f"nlnk: {self.nlink:d}",
            f"uid:  {self.uid:d}",
            f"gid:  {self.gid:d}",
            f"size: {self.size:d}",
            f"addr: {' '.join(f'{a:06x}' for a in self.addr)}",
            f"atim: {self.atime_dt:%Y-%m-%dT%H:%M:%S}",
            f"mtim: {self.mtime_dt:%Y-%m-%dT%H:%M:%S}",
            f"ctim: {self.ctime_dt:%Y-%m-%dT%H:%M:%S}",
        ])

    def mode_repr(self) -> str:
        return mode_repr(self.mode)

    @property
    def file_type(self) -> Optional[FileType]:
        try:
            return FileType(self.mode & type_mask)
        except ValueError:
            return None

    @property
    def is_dir(self) -> bool:
        return self.file_type == FileType.dir

    @property
    def is_regular(self) -> bool:
        return self.file_type == FileType.reg

    @property
    def permissions(self) -> int:
        return self.mode & 0o777

    @property
    def is_setuid(self) -> bool:
        return bool(self.mode & mode_suid)

    @property
    def is_setgid(self) -> bool:
        return bool(self.mode & mode_sgid)

    @property
    def is_sticky(self) -> bool:
        return bool(self.mode & mode_svtx)

    @property
    def direct_blocks(self) -> list[int]:
        return self.addr[:ndirect]

    @property
    def single_indirect(self) -> int:
        return self.addr[ndirect]

    @property
    def double_indirect(self) -> int:
        return self.addr[ndirect + 1]

    @property
    def triple_indirect(self) -> int:
        return self.addr[ndirect + 2]

    @property
    def atime_dt(self) -> datetime:
        return _timestamp(self.atime)

    @property
    def mtime_dt(self) -> datetime:
        return _timestamp(self.mtime)

    @property
    def ctime_dt(self) -> datetime:
        return _timestamp(self.ctime)

    def pack(self) -> bytes:
        assert len(self.addr) == naddr, f"Inode.pack: expected {naddr} addresses, got {len(self.addr)}"
        addr = b''.join(a.to_bytes(3, 'big') for a in self.addr)
        return struct.pack(Inode._struct,
            self.mode,
            self.nlink,
            self.uid,
            self.gid,
            self.size,
            addr,
            self.atime,
            self.mtime,
            self.ctime,
        )

    @classmethod
    def unpack(kls, buf: bytes) -> Self:
        assert len(buf) == inode_size, f"Inode.unpack: expected {inode_size} bytes, got {len(buf)}"
        (
            mode,
            nlink,
            uid,
            gid,
            size,
            addr,
            atime,
            mtime,
            ctime,
        ) = struct.unpack(kls._struct, buf)
        return kls(
            mode=mode,
            nlink=nlink,
            uid=uid,
            gid=gid,
            size=size,
            addr=[int.from_bytes(addr[i:i+3], 'big') for i in range(0, 3 * naddr, 3)],
            atime=atime,
            mtime=mtime,
            ctime=ctime,
        )


@dataclass(kw_only=True)
class DirectoryEntry:
    _struct: ClassVar = f">H{dirsiz}s"

    inode_number: int
    raw_name: bytes     # exactly as stored, NUL padded

    def __repr__(self):
        return f"{self.inode_number:05d} {self.name}"

    @property
    def name(self) -> str:
        return self.raw_name.split(b'\0', 1)[0].decode('ascii', errors='replace')

    @property
    def is_active(self) -> bool:
        return self.inode_number != 0

    @property
    def is_self_or_parent(self) -> bool:
        return self.raw_name.split(b'\0', 1)[0] in (b'.', b'..')

    def pack(self) -> bytes:
        return struct.pack(DirectoryEntry._struct, self.inode_number, self.raw_name)

    @classmethod
    def unpack(kls, buf: bytes) -> Self:
        (
            inode_number,
            raw_name,
        ) = struct.unpack(kls._struct, buf)
        return kls(inode_number=inode_number, raw_name=raw_name)


# static tests

assert struct.calcsize(Inode._struct) == inode_size
assert struct.calcsize(DirectoryEntry._struct) == dirent_size
