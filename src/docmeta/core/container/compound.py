#!/usr/bin/env python3
"""
Purpose:
    In-memory compound document (OLE2 structured storage) container.

    Files are read with `olefile`. Because `olefile` can only overwrite
    streams in place with data of the same size, the container keeps every
    stream in memory and serialises the full tree back to disk on save,
    using a version 3 layout (512-byte sectors, 64-byte mini sectors).
"""
from __future__ import annotations

import logging
import struct
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import olefile

from docmeta.core.constants import (
    DEFAULT_CODEPAGE,
    DOCUMENT_SUMMARY_INFORMATION_STREAM,
    PID_AUTHOR,
    SUMMARY_INFORMATION_STREAM,
)
from docmeta.core.container.propset import PropertySet
from docmeta.core.errors import ContainerFormatError, StreamNotFoundError
from docmeta.core.utils import ceil_div, pad_to

logger = logging.getLogger(__name__)

EntryPath = Tuple[str, ...]

# --- Format constants --- #

MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
SECTOR_SIZE = 512
SECTOR_SHIFT = 9
MINI_SECTOR_SIZE = 64
MINI_SECTOR_SHIFT = 6
MINI_STREAM_CUTOFF = 4096
DIR_ENTRY_SIZE = 128
IDS_PER_SECTOR = SECTOR_SIZE // 4
HEADER_DIFAT_ENTRIES = 109
MAX_NAME_LENGTH = 31

DIFSECT = 0xFFFFFFFC
FATSECT = 0xFFFFFFFD
ENDOFCHAIN = 0xFFFFFFFE
FREESECT = 0xFFFFFFFF
NOSTREAM = 0xFFFFFFFF

STGTY_EMPTY = 0
STGTY_STORAGE = 1
STGTY_STREAM = 2
STGTY_ROOT = 5
COLOR_BLACK = 1

ZERO_CLSID = b"\x00" * 16

_HEADER = struct.Struct("<8s16sHHHHH6sIIIIIIIII109I")
_DIR_ENTRY = struct.Struct("<64sHBBIII16sIQQIQ")


class Container:
    """
    A compound document held entirely in memory.

    Streams and storages are addressed by path tuples relative to the root,
    e.g. ``("\\x05SummaryInformation",)`` or ``("ObjectPool", "Contents")``.
    """

    def __init__(self, root_clsid: bytes = ZERO_CLSID):
        self._streams: Dict[EntryPath, bytes] = {}
        self._storages: Dict[EntryPath, bytes] = {}    # path -> clsid
        self.root_clsid = root_clsid

    # --- Construction --- #

    @classmethod
    def new(cls, root_clsid: Optional[bytes] = None) -> "Container":
        return cls(root_clsid or ZERO_CLSID)

    @classmethod
    def open(cls, path: Union[str, Path]) -> "Container":
        """
        Read every stream and storage of a compound file into memory.

        Raises:
            FileNotFoundError: if the file does not exist
            ContainerFormatError: if the file is not a compound document
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"The file {str(p)!r} does not exist")
        if not olefile.isOleFile(str(p)):
            raise ContainerFormatError(f"{str(p)!r} is not a compound document file")

        with olefile.OleFileIO(str(p)) as ole:
            container = cls(_clsid_bytes(ole.root.clsid))
            for entry in ole.listdir(streams=True, storages=True):
                key = tuple(entry)
                if ole.get_type(entry) == olefile.STGTY_STREAM:
                    with ole.openstream(entry) as stream:
                        container._streams[key] = stream.read()
                else:
                    container._storages[key] = _clsid_bytes(ole.getclsid(entry))
        logger.debug("Opened %s (%d streams, %d storages)", p, len(container._streams), len(container._storages))
        return container

    # --- Query API --- #

    def root_entries(self) -> List[str]:
        """Names of the streams and storages directly under the root."""
        names = {k[0] for k in self._streams} | {k[0] for k in self._storages}
        return sorted(names)

    def find_stream(self, name: str) -> Optional[bytes]:
        """Return the bytes of root stream `name`, or None if it does not exist."""
        return self._streams.get((name,))

    def require_stream(self, name: str) -> bytes:
        """Return root stream `name` or raise StreamNotFoundError."""
        data = self.find_stream(name)
        if data is None:
            raise StreamNotFoundError(f"Stream {name!r} not found")
        return data

    def streams(self) -> Dict[EntryPath, bytes]:
        return dict(self._streams)

    def storages(self) -> Dict[EntryPath, bytes]:
        return dict(self._storages)

    # --- Mutation --- #

    def write_stream(self, name: Union[str, EntryPath], data: bytes) -> None:
        """Create or replace a stream; parent storages are created as needed."""
        key = (name,) if isinstance(name, str) else tuple(name)
        for depth in range(1, len(key)):
            self._storages.setdefault(key[:depth], ZERO_CLSID)
        self._streams[key] = bytes(data)

    def add_storage(self, path: EntryPath, clsid: bytes = ZERO_CLSID) -> None:
        for depth in range(1, len(path) + 1):
            self._storages.setdefault(tuple(path[:depth]), ZERO_CLSID)
        self._storages[tuple(path)] = clsid

    # --- Persistence --- #

    def to_bytes(self) -> bytes:
        return _CompoundFileWriter(self).build()

    def save_to(self, path: Union[str, Path]) -> None:
        """Serialise the whole container and write it over `path`."""
        data = self.to_bytes()
        with open(path, "wb") as f:
            f.write(data)
        logger.debug("Wrote %d bytes to %s", len(data), path)


def create_container(path: Union[str, Path], *, author: str = "", codepage: int = DEFAULT_CODEPAGE) -> Container:
    """
    Write a new compound document holding empty metadata streams.

    The author is recorded in the summary stream at creation; docmeta never
    changes it afterwards.
    """
    container = Container.new()
    summary = PropertySet.new_summary_information(codepage)
    if author:
        summary.first_section.set(PID_AUTHOR, author)
    summary.write(container, SUMMARY_INFORMATION_STREAM)
    PropertySet.new_document_summary_information(codepage).write(container, DOCUMENT_SUMMARY_INFORMATION_STREAM)
    container.save_to(path)
    logger.info("Created %s", path)
    return container


def _clsid_bytes(clsid: str) -> bytes:
    """olefile reports CLSIDs as text; an empty string means none."""
    return uuid.UUID(clsid).bytes_le if clsid else ZERO_CLSID


# --- Writer --- #

@dataclass(eq=False)
class _DirEntry:
    name: str
    kind: int
    clsid: bytes = ZERO_CLSID
    data: bytes = b""
    children: List["_DirEntry"] = field(default_factory=list)
    sid: int = 0
    left: int = NOSTREAM
    right: int = NOSTREAM
    child: int = NOSTREAM
    start: int = ENDOFCHAIN
    size: int = 0

    def pack(self) -> bytes:
        encoded = (self.name + "\x00").encode("utf-16-le")
        return _DIR_ENTRY.pack(
            encoded, len(encoded), self.kind, COLOR_BLACK,
            self.left, self.right, self.child, self.clsid,
            0, 0, 0, self.start, self.size,
        )


_UNUSED_ENTRY = _DIR_ENTRY.pack(b"", 0, STGTY_EMPTY, 0, NOSTREAM, NOSTREAM, NOSTREAM, ZERO_CLSID, 0, 0, 0, 0, 0)


def _sibling_order(entry: _DirEntry) -> Tuple[int, str]:
    # shorter names sort first, then case-insensitive comparison
    return len(entry.name), entry.name.upper()


class _CompoundFileWriter:
    def __init__(self, container: Container):
        self._container = container
        self._root = _DirEntry("Root Entry", STGTY_ROOT, clsid=container.root_clsid)
        self._entries: List[_DirEntry] = []

    def build(self) -> bytes:
        self._build_tree()
        self._number_entries()

        mini_fat, mini_data = self._allocate_mini_stream()
        big = [e for e in self._entries if e.kind == STGTY_STREAM and e.size >= MINI_STREAM_CUTOFF]

        dir_sectors = ceil_div(len(self._entries) * DIR_ENTRY_SIZE, SECTOR_SIZE)
        mini_fat_bytes = struct.pack(f"<{len(mini_fat)}I", *mini_fat) if mini_fat else b""
        blob_sizes = [dir_sectors * SECTOR_SIZE, len(mini_fat_bytes), len(mini_data)] + [e.size for e in big]
        data_sectors = sum(ceil_div(n, SECTOR_SIZE) for n in blob_sizes)
        n_fat, n_difat = self._count_fat_sectors(data_sectors)

        fat = [FREESECT] * (n_fat * IDS_PER_SECTOR)
        for i in range(n_fat):
            fat[i] = FATSECT
        for i in range(n_fat, n_fat + n_difat):
            fat[i] = DIFSECT

        next_sector = n_fat + n_difat
        starts = []
        for n in blob_sizes:
            count = ceil_div(n, SECTOR_SIZE)
            if count == 0:
                starts.append(ENDOFCHAIN)
                continue
            starts.append(next_sector)
            for i in range(count - 1):
                fat[next_sector + i] = next_sector + i + 1
            fat[next_sector + count - 1] = ENDOFCHAIN
            next_sector += count

        dir_start, mini_fat_start, mini_stream_start = starts[:3]
        self._root.start = mini_stream_start
        self._root.size = len(mini_data)
        for entry, start in zip(big, starts[3:]):
            entry.start = start

        directory = b"".join(e.pack() for e in self._entries)
        directory += _UNUSED_ENTRY * ((dir_sectors * SECTOR_SIZE - len(directory)) // DIR_ENTRY_SIZE)

        fat_ids = list(range(n_fat))
        header_difat = fat_ids[:HEADER_DIFAT_ENTRIES]
        header_difat += [FREESECT] * (HEADER_DIFAT_ENTRIES - len(header_difat))
        header = _HEADER.pack(
            MAGIC, ZERO_CLSID, 0x003E, 0x0003, 0xFFFE, SECTOR_SHIFT, MINI_SECTOR_SHIFT, b"\x00" * 6,
            0, n_fat, dir_start, 0, MINI_STREAM_CUTOFF,
            mini_fat_start, ceil_div(len(mini_fat_bytes), SECTOR_SIZE),
            n_fat if n_difat else ENDOFCHAIN, n_difat,
            *header_difat,
        )

        out = bytearray(header)
        out += struct.pack(f"<{len(fat)}I", *fat)
        out += self._difat_sectors(fat_ids[HEADER_DIFAT_ENTRIES:], n_fat, n_difat)
        out += directory
        for blob in [mini_fat_bytes, mini_data] + [e.data for e in big]:
            out += pad_to(blob, SECTOR_SIZE)
        return bytes(out)

    # --- Directory --- #

    def _build_tree(self) -> None:
        nodes: Dict[EntryPath, _DirEntry] = {(): self._root}

        def storage(path: EntryPath) -> _DirEntry:
            if path not in nodes:
                parent = storage(path[:-1])
                node = _DirEntry(_checked_name(path[-1]), STGTY_STORAGE)
                nodes[path] = node
                parent.children.append(node)
            return nodes[path]

        for path, clsid in sorted(self._container.storages().items()):
            storage(path).clsid = clsid
        for path, data in sorted(self._container.streams().items()):
            node = _DirEntry(_checked_name(path[-1]), STGTY_STREAM, data=data, size=len(data))
            storage(path[:-1]).children.append(node)

    def _number_entries(self) -> None:
        def walk(node: _DirEntry) -> Iterator[_DirEntry]:
            yield node
            for child in sorted(node.children, key=_sibling_order):
                yield from walk(child)

        self._entries = list(walk(self._root))
        for sid, entry in enumerate(self._entries):
            entry.sid = sid
        for entry in self._entries:
            entry.child = _balanced_siblings(sorted(entry.children, key=_sibling_order))

    # --- Allocation --- #

    def _allocate_mini_stream(self) -> Tuple[List[int], bytes]:
        mini_fat: List[int] = []
        mini_data = bytearray()
        for entry in self._entries:
            if entry.kind != STGTY_STREAM or entry.size >= MINI_STREAM_CUTOFF:
                continue
            if entry.size == 0:
                entry.start = ENDOFCHAIN
                continue
            entry.start = len(mini_fat)
            count = ceil_div(entry.size, MINI_SECTOR_SIZE)
            mini_fat.extend(entry.start + i + 1 for i in range(count - 1))
            mini_fat.append(ENDOFCHAIN)
            mini_data += pad_to(entry.data, MINI_SECTOR_SIZE)
        if mini_fat:
            mini_fat += [FREESECT] * ((-len(mini_fat)) % IDS_PER_SECTOR)
        return mini_fat, bytes(mini_data)

    @staticmethod
    def _count_fat_sectors(data_sectors: int) -> Tuple[int, int]:
        # FAT and DIFAT sectors are themselves listed in the FAT
        n_fat = n_difat = 0
        while True:
            need_fat = ceil_div(data_sectors + n_fat + n_difat, IDS_PER_SECTOR)
            need_difat = ceil_div(max(0, need_fat - HEADER_DIFAT_ENTRIES), IDS_PER_SECTOR - 1)
            if (need_fat, need_difat) == (n_fat, n_difat):
                return n_fat, n_difat
            n_fat, n_difat = need_fat, need_difat

    @staticmethod
    def _difat_sectors(fat_ids: List[int], first: int, count: int) -> bytes:
        out = bytearray()
        per_sector = IDS_PER_SECTOR - 1
        for i in range(count):
            chunk = fat_ids[i * per_sector:(i + 1) * per_sector]
            chunk += [FREESECT] * (per_sector - len(chunk))
            nxt = first + i + 1 if i < count - 1 else ENDOFCHAIN
            out += struct.pack(f"<{IDS_PER_SECTOR}I", *chunk, nxt)
        return bytes(out)


def _balanced_siblings(ordered: List[_DirEntry]) -> int:
    """Link `ordered` into a balanced binary tree; return the root sid or NOSTREAM."""
    if not ordered:
        return NOSTREAM
    mid = len(ordered) // 2
    node = ordered[mid]
    node.left = _balanced_siblings(ordered[:mid])
    node.right = _balanced_siblings(ordered[mid + 1:])
    return node.sid


def _checked_name(name: str) -> str:
    if not name or len(name) > MAX_NAME_LENGTH:
        raise ContainerFormatError(f"Entry name {name!r} must be 1-{MAX_NAME_LENGTH} characters")
    return name
