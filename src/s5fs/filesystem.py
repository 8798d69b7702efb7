from typing import Self, Optional
from dataclasses import dataclass, field
from pathlib import Path
import logging
import sys
from bitarray import bitarray

from .globals import max_inodes
from .device import BlockDevice, partition_base
from .metadata import Inode
from .directory import DirectoryFile
from .file import RegularFile, legal_name
from .errors import S5Error, UsageError, CreateError, ShortReadError, UnsupportedNodeError


default_max_depth = 128

# cleaned names that would land on the directory itself or its parent
unsafe_names = ('', '.', '..')


def depth_limit() -> int:
    # each directory level costs a few interpreter frames
    return sys.getrecursionlimit() // 4


@dataclass(kw_only=True)
class ExtractedNode:
    path: Path
    inode_number: int
    inode: Inode
    bytes_written: int = 0

    def __repr__(self):
        name = str(self.path)
        if self.inode.is_dir:
            name += '/'
        return f"{name:40s} {self.inode.size:>8d} {self.inode.mode_repr()} " \
            f"{self.inode.mtime_dt:%Y-%m-%dT%H:%M} @ {self.inode_number:d}"


@dataclass(kw_only=True)
class ExtractionReport:
    nodes: list[ExtractedNode] = field(default_factory=list)
    skipped: list[UnsupportedNodeError] = field(default_factory=list)
    errors: list[S5Error] = field(default_factory=list)

    def __repr__(self):
        return f"{self.directories:d} directories, {self.files:d} files, {self.bytes_written:d} bytes"

    @property
    def directories(self) -> int:
        return sum(n.inode.is_dir for n in self.nodes)

    @property
    def files(self) -> int:
        return sum(n.inode.is_regular for n in self.nodes)

    @property
    def bytes_written(self) -> int:
        return sum(n.bytes_written for n in self.nodes)


class Filesystem:
    """
    One S5 filesystem inside a disk image:

    +---------+---------+-------------------------   --------------------------
    | Block 0 | Block 1 | Block 2 ...  inode list  |    data blocks ...
    |  Boot   |  Super  | inode 1 at 0x800, 64     |    directories, files,
    |         |  block  | bytes each               |    indirect blocks
    +---------+---------+-------------------------   --------------------------

    Extraction starts from any inode and recreates the tree below it on the host.
    By default any short read aborts the run; with strict=False only the
    node being read is abandoned.
    """

    def __init__(self, device: BlockDevice, max_depth: int = default_max_depth, strict: bool = True):
        if not 0 <= max_depth <= depth_limit():
            raise UsageError(f"max depth {max_depth} outside 0..{depth_limit()}")
        self.device = device
        self.max_depth = max_depth
        self.strict = strict

    @classmethod
    def from_file(cls,
            source: Path,
            partition: int = 0,
            base: Optional[int] = None,
            **kwargs,
        ) -> Self:
        if base is None:
            base = partition_base(partition)
        device = BlockDevice(source, base)
        try:
            return cls(device, **kwargs)
        except UsageError:
            device.close()
            raise

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"S5 filesystem on {self.device!r}"

    def close(self):
        self.device.close()

    def extract(self, inode_number: int, dst: Path, name: str = 'root') -> ExtractionReport:
        """Recreate inode_number as dst/name, recursing if it is a directory"""
        if not 0 < inode_number < max_inodes:
            raise UsageError(f"inode {inode_number} outside 1..{max_inodes - 1}")
        report = ExtractionReport()
        self._visited = bitarray(max_inodes)
        self._visited.setall(0)
        _mkdir(dst, parents=True)
        self._root = dst.resolve()
        self._extract_inode(inode_number, name.encode('ascii'), dst, 0, report)
        return report

    def _extract_inode(self, inode_number: int, raw_name: bytes, parent: Path, depth: int, report: ExtractionReport):
        name = legal_name(raw_name)
        path = parent / name
        if name in unsafe_names or not path.resolve().is_relative_to(self._root):
            self._skip(report, path, inode_number, f"unsafe name {raw_name!r}")
            return
        try:
            inode = self.device.read_inode(inode_number)
            logging.debug(f"inode {inode_number} {path}\n{inode!r}")

            if inode.is_dir:
                self._extract_directory(inode_number, inode, path, depth, report)
            elif inode.is_regular:
                self._extract_file(inode_number, inode, path, report)
            else:
                kind = inode.file_type.name if inode.file_type else f"type {inode.mode:06o}"
                self._skip(report, path, inode_number, f"{kind} node not extracted")
        except ShortReadError as e:
            if self.strict:
                raise
            logging.error(f"{path}: {e}")
            report.errors.append(e)

    def _extract_directory(self, inode_number: int, inode: Inode, path: Path, depth: int, report: ExtractionReport):
        if depth > self.max_depth:
            self._skip(report, path, inode_number, f"directory depth exceeds {self.max_depth}")
            return
        if self._visited[inode_number]:
            self._skip(report, path, inode_number, "directory already visited, cycle")
            return
        self._visited[inode_number] = 1

        logging.info(f"### Dir {path}")
        _mkdir(path)
        report.nodes.append(ExtractedNode(path=path, inode_number=inode_number, inode=inode))

        d = DirectoryFile(device=self.device, inode=inode)
        for e in d.children():
            self._extract_inode(e.inode_number, e.raw_name, path, depth + 1, report)

    def _extract_file(self, inode_number: int, inode: Inode, path: Path, report: ExtractionReport):
        logging.info(f"File {path}")
        f = RegularFile(device=self.device, inode=inode)
        if inode.triple_indirect:
            self._skip(report, path, inode_number, "triple indirect block not followed")
        elif inode.size > f.capacity:
            logging.warning(f"{path}: size {inode.size} exceeds {f.capacity} bytes without triple indirect block")

        node = ExtractedNode(path=path, inode_number=inode_number, inode=inode)
        report.nodes.append(node)
        node.bytes_written = f.export(path)

    def _skip(self, report: ExtractionReport, path: Path, inode_number: int, reason: str):
        e = UnsupportedNodeError(str(path), inode_number, reason)
        logging.warning(str(e))
        report.skipped.append(e)


def _mkdir(path: Path, parents: bool = False):
    try:
        path.mkdir(parents=parents, exist_ok=True)
    except OSError as e:
        raise CreateError(f"{path}: {e.strerror or e}") from e
