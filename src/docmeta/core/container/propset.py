#!/usr/bin/env python3
"""
Purpose:
    Encodes and decodes property-set streams (the ``\\x05SummaryInformation``
    family of streams stored inside compound documents).

    Only the value types this toolkit edits are decoded into Python objects:
    ``VT_LPSTR``/``VT_LPWSTR`` become ``str`` and ``VT_BOOL`` becomes ``bool``.
    Every other typed value is kept as a `RawValue` with its exact bytes, so
    dates, counters and thumbnails written by other applications survive a
    rewrite unchanged.
"""
from __future__ import annotations

import codecs
import logging
import struct
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from docmeta.core.constants import (
    CP_UNICODE,
    CP_UTF8,
    DEFAULT_CODEPAGE,
    FMTID_DOC_SUMMARY_INFORMATION,
    FMTID_SUMMARY_INFORMATION,
    PID_CODEPAGE,
    PID_DICTIONARY,
)
from docmeta.core.errors import PropertySetError
from docmeta.core.utils import pad_to

if TYPE_CHECKING:
    from docmeta.core.container.compound import Container

logger = logging.getLogger(__name__)

# --- Variant types --- #

VT_I2 = 0x0002
VT_BOOL = 0x000B
VT_LPSTR = 0x001E
VT_LPWSTR = 0x001F

BYTE_ORDER_MARK = 0xFFFE
# OS kind 2 (Win32) with OS version 6.2 in the low word
DEFAULT_SYSTEM_IDENTIFIER = 0x00020206

_STREAM_HEADER = struct.Struct("<HHI16sI")
_SECTION_LOCATOR = struct.Struct("<16sI")
_SECTION_HEADER = struct.Struct("<II")
_PROPERTY_LOCATOR = struct.Struct("<II")
_TYPED_HEADER = struct.Struct("<HH")
_UINT32 = struct.Struct("<I")


@dataclass(frozen=True)
class RawValue:
    """A typed property value this codec does not interpret; `data` includes the type header."""
    vt: int
    data: bytes


PropertyValue = Union[str, bool, RawValue]


# --- Codepages --- #

def codec_for_codepage(codepage: int) -> str:
    """
    Map a property-set codepage to a Python codec name.

    Raises:
        PropertySetError: if Python has no codec for the codepage.
    """
    if codepage == CP_UNICODE:
        return "utf-16-le"
    if codepage == CP_UTF8:
        return "utf-8"
    name = f"cp{codepage}"
    try:
        codecs.lookup(name)
    except LookupError as e:
        raise PropertySetError(f"Unsupported property set codepage: {codepage}") from e
    return name


def fits_codepage(text: str, codepage: int) -> bool:
    """True if `text` can be written in `codepage` without falling back to UTF-16."""
    try:
        text.encode(codec_for_codepage(codepage))
    except UnicodeEncodeError:
        return False
    return True


def value_text(value: PropertyValue) -> str:
    """Text form of a property value; booleans read as "true"/"false"."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# --- Data model --- #

@dataclass
class Section:
    """
    One section of a property set.

    `properties` excludes the dictionary (id 0) and codepage (id 1) entries,
    which live in `dictionary` and `codepage`.
    """
    fmtid: uuid.UUID
    properties: Dict[int, PropertyValue] = field(default_factory=dict)
    dictionary: Dict[int, str] = field(default_factory=dict)
    codepage: int = DEFAULT_CODEPAGE

    def get(self, pid: int) -> Optional[PropertyValue]:
        return self.properties.get(pid)

    def get_string(self, pid: int) -> str:
        """Return a string property, or "" when absent or not a string."""
        value = self.properties.get(pid)
        return value if isinstance(value, str) else ""

    def set(self, pid: int, value: PropertyValue) -> None:
        if pid in (PID_DICTIONARY, PID_CODEPAGE):
            raise ValueError(f"Property id {pid} is reserved")
        self.properties[pid] = value

    def remove(self, pid: int) -> None:
        self.properties.pop(pid, None)

    # --- Decoding --- #

    @classmethod
    def from_bytes(cls, fmtid: uuid.UUID, data: bytes, offset: int) -> "Section":
        if offset + _SECTION_HEADER.size > len(data):
            raise PropertySetError(f"Section offset {offset} is past the end of the stream")
        size, count = _SECTION_HEADER.unpack_from(data, offset)
        if size < _SECTION_HEADER.size or offset + size > len(data):
            raise PropertySetError(f"Section size {size} does not fit in the stream")
        if _SECTION_HEADER.size + count * _PROPERTY_LOCATOR.size > size:
            raise PropertySetError(f"Section declares {count} properties but is only {size} bytes")

        body = data[offset:offset + size]
        locators = [
            _PROPERTY_LOCATOR.unpack_from(body, _SECTION_HEADER.size + i * _PROPERTY_LOCATOR.size)
            for i in range(count)
        ]
        for pid, off in locators:
            if off >= size:
                raise PropertySetError(f"Property {pid} offset {off} is outside its section")

        # value extents: from each offset up to the next one (or section end)
        bounds = sorted({off for _pid, off in locators} | {size})
        ends = {off: bounds[bounds.index(off) + 1] for _pid, off in locators}

        section = cls(fmtid=fmtid)
        offsets = dict(locators)
        if PID_CODEPAGE in offsets:
            section.codepage = _decode_codepage(body, offsets[PID_CODEPAGE])
        codec = codec_for_codepage(section.codepage)

        for pid, off in locators:
            if pid == PID_CODEPAGE:
                continue
            if pid == PID_DICTIONARY:
                section.dictionary = _decode_dictionary(body, off, codec)
                continue
            section.properties[pid] = _decode_value(body, off, ends[off], codec)
        return section

    # --- Encoding --- #

    def to_bytes(self) -> bytes:
        codec = codec_for_codepage(self.codepage)
        entries: List[tuple[int, bytes]] = []
        if self.dictionary:
            entries.append((PID_DICTIONARY, _encode_dictionary(self.dictionary, codec)))
        entries.append((PID_CODEPAGE, _TYPED_HEADER.pack(VT_I2, 0) + struct.pack("<H2x", self.codepage & 0xFFFF)))
        for pid in sorted(self.properties):
            entries.append((pid, _encode_value(self.properties[pid], self.codepage, codec)))

        table_size = _SECTION_HEADER.size + len(entries) * _PROPERTY_LOCATOR.size
        table = bytearray()
        values = bytearray()
        for pid, payload in entries:
            table += _PROPERTY_LOCATOR.pack(pid, table_size + len(values))
            values += pad_to(payload, 4)
        return _SECTION_HEADER.pack(table_size + len(values), len(entries)) + bytes(table) + bytes(values)


@dataclass
class PropertySet:
    """A decoded property-set stream: header fields plus one or more sections."""
    sections: List[Section] = field(default_factory=list)
    version: int = 0
    system_identifier: int = DEFAULT_SYSTEM_IDENTIFIER
    clsid: bytes = b"\x00" * 16

    @classmethod
    def new_summary_information(cls, codepage: int = DEFAULT_CODEPAGE) -> "PropertySet":
        return cls(sections=[Section(fmtid=FMTID_SUMMARY_INFORMATION, codepage=codepage)])

    @classmethod
    def new_document_summary_information(cls, codepage: int = DEFAULT_CODEPAGE) -> "PropertySet":
        return cls(sections=[Section(fmtid=FMTID_DOC_SUMMARY_INFORMATION, codepage=codepage)])

    @property
    def first_section(self) -> Section:
        if not self.sections:
            raise PropertySetError("Property set has no sections")
        return self.sections[0]

    def section(self, fmtid: uuid.UUID) -> Optional[Section]:
        """Return the section with `fmtid`, or None."""
        for s in self.sections:
            if s.fmtid == fmtid:
                return s
        return None

    def set_section(self, section: Section) -> None:
        """Replace the section sharing `section.fmtid`, or append it."""
        for i, s in enumerate(self.sections):
            if s.fmtid == section.fmtid:
                self.sections[i] = section
                return
        self.sections.append(section)

    def remove_section(self, fmtid: uuid.UUID) -> None:
        self.sections = [s for s in self.sections if s.fmtid != fmtid]

    def is_type(self, fmtid: uuid.UUID) -> bool:
        return bool(self.sections) and self.sections[0].fmtid == fmtid

    # --- Serialization --- #

    @classmethod
    def from_bytes(cls, data: bytes) -> "PropertySet":
        """
        Decode a property-set stream.

        Raises:
            PropertySetError: if the header, a section or a value is malformed.
        """
        if len(data) < _STREAM_HEADER.size:
            raise PropertySetError(f"Property set stream too short ({len(data)} bytes)")
        byte_order, version, system_id, clsid, count = _STREAM_HEADER.unpack_from(data, 0)
        if byte_order != BYTE_ORDER_MARK:
            raise PropertySetError(f"Bad property set byte order mark: {byte_order:#06x}")
        if count < 1 or _STREAM_HEADER.size + count * _SECTION_LOCATOR.size > len(data):
            raise PropertySetError(f"Bad property set section count: {count}")

        sections = []
        for i in range(count):
            fmtid_le, offset = _SECTION_LOCATOR.unpack_from(data, _STREAM_HEADER.size + i * _SECTION_LOCATOR.size)
            sections.append(Section.from_bytes(uuid.UUID(bytes_le=fmtid_le), data, offset))
        return cls(sections=sections, version=version, system_identifier=system_id, clsid=clsid)

    def to_bytes(self) -> bytes:
        if not self.sections:
            raise PropertySetError("Cannot write a property set without sections")
        header = _STREAM_HEADER.pack(BYTE_ORDER_MARK, self.version, self.system_identifier, self.clsid, len(self.sections))
        offset = _STREAM_HEADER.size + len(self.sections) * _SECTION_LOCATOR.size
        locators = bytearray()
        bodies = bytearray()
        for s in self.sections:
            body = s.to_bytes()
            locators += _SECTION_LOCATOR.pack(s.fmtid.bytes_le, offset + len(bodies))
            bodies += body
        return header + bytes(locators) + bytes(bodies)

    def write(self, container: "Container", stream_name: str) -> None:
        """Serialize into `stream_name` under the container root, replacing any existing stream."""
        container.write_stream(stream_name, self.to_bytes())


def read_property_set(data: bytes) -> PropertySet:
    return PropertySet.from_bytes(data)


def write_property_set(pset: PropertySet, container: "Container", stream_name: str) -> None:
    pset.write(container, stream_name)


# --- Value codecs --- #

def _decode_codepage(body: bytes, off: int) -> int:
    vt, _pad = _TYPED_HEADER.unpack_from(body, off)
    if vt != VT_I2:
        raise PropertySetError(f"Codepage property has type {vt:#06x}, expected VT_I2")
    (codepage,) = struct.unpack_from("<H", body, off + 4)
    return codepage


def _decode_value(body: bytes, off: int, end: int, codec: str) -> PropertyValue:
    vt, _pad = _TYPED_HEADER.unpack_from(body, off)
    try:
        if vt == VT_LPSTR:
            (size,) = _UINT32.unpack_from(body, off + 4)
            return _cut_nul(body[off + 8:off + 8 + size].decode(codec))
        if vt == VT_LPWSTR:
            (chars,) = _UINT32.unpack_from(body, off + 4)
            return _cut_nul(body[off + 8:off + 8 + chars * 2].decode("utf-16-le"))
        if vt == VT_BOOL:
            (flag,) = struct.unpack_from("<H", body, off + 4)
            return flag != 0
    except (struct.error, UnicodeDecodeError) as e:
        raise PropertySetError(f"Malformed value of type {vt:#06x} at offset {off}: {e}") from e
    logger.debug("Keeping property of type %#06x as raw bytes", vt)
    return RawValue(vt=vt, data=bytes(body[off:end]))


def _encode_value(value: PropertyValue, codepage: int, codec: str) -> bytes:
    if isinstance(value, RawValue):
        return value.data
    if isinstance(value, bool):
        return _TYPED_HEADER.pack(VT_BOOL, 0) + struct.pack("<H2x", 0xFFFF if value else 0)
    if isinstance(value, str):
        if codepage != CP_UNICODE:
            try:
                encoded = (value + "\x00").encode(codec)
                return _TYPED_HEADER.pack(VT_LPSTR, 0) + _UINT32.pack(len(encoded)) + encoded
            except UnicodeEncodeError:
                logger.debug("Text not representable in codepage %d, writing VT_LPWSTR", codepage)
        wide = (value + "\x00").encode("utf-16-le")
        return _TYPED_HEADER.pack(VT_LPWSTR, 0) + _UINT32.pack(len(wide) // 2) + wide
    raise TypeError(f"Unsupported property value type: {type(value).__name__}")


def _decode_dictionary(body: bytes, off: int, codec: str) -> Dict[int, str]:
    wide = codec == "utf-16-le"
    try:
        (count,) = _UINT32.unpack_from(body, off)
        pos = off + 4
        names: Dict[int, str] = {}
        for _ in range(count):
            pid, length = _PROPERTY_LOCATOR.unpack_from(body, pos)
            pos += 8
            nbytes = length * 2 if wide else length
            raw = body[pos:pos + nbytes]
            if len(raw) != nbytes:
                raise PropertySetError(f"Dictionary entry for property {pid} is truncated")
            names[pid] = _cut_nul(raw.decode(codec))
            pos += nbytes
            if wide:
                pos += (-nbytes) % 4
        return names
    except (struct.error, UnicodeDecodeError) as e:
        raise PropertySetError(f"Malformed property dictionary: {e}") from e


def _encode_dictionary(names: Dict[int, str], codec: str) -> bytes:
    wide = codec == "utf-16-le"
    out = bytearray(_UINT32.pack(len(names)))
    for pid, name in names.items():
        try:
            encoded = (name + "\x00").encode(codec)
        except UnicodeEncodeError as e:
            raise PropertySetError(f"Property name {name!r} cannot be encoded with {codec}") from e
        length = len(encoded) // 2 if wide else len(encoded)
        out += _PROPERTY_LOCATOR.pack(pid, length) + (pad_to(encoded, 4) if wide else encoded)
    return bytes(out)


def _cut_nul(text: str) -> str:
    i = text.find("\x00")
    return text if i < 0 else text[:i]
