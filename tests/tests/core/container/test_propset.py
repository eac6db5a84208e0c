#!/usr/bin/env python3
import struct
from pathlib import Path

import olefile
import pytest

from docmeta.core.constants import (
    FMTID_DOC_SUMMARY_INFORMATION,
    FMTID_SUMMARY_INFORMATION,
    FMTID_USER_DEFINED_PROPERTIES,
    PID_AUTHOR,
    PID_COMMENTS,
    SUMMARY_INFORMATION_STREAM,
)
from docmeta.core.container.compound import Container
from docmeta.core.container.propset import (
    VT_LPSTR,
    VT_LPWSTR,
    PropertySet,
    RawValue,
    Section,
    codec_for_codepage,
    fits_codepage,
    read_property_set,
    value_text,
)
from docmeta.core.errors import PropertySetError

VT_FILETIME = 0x0040


# --- Helpers --- #

def _round_trip(*sections: Section) -> PropertySet:
    return PropertySet.from_bytes(PropertySet(sections=list(sections)).to_bytes())


def _vt_of(section: Section, pid: int) -> int:
    body = section.to_bytes()
    _size, count = struct.unpack_from("<II", body, 0)
    for i in range(count):
        found, offset = struct.unpack_from("<II", body, 8 + i * 8)
        if found == pid:
            return struct.unpack_from("<H", body, offset)[0]
    raise AssertionError(f"pid {pid} not encoded")


# --- Round trips --- #

def test_strings_and_booleans_round_trip():
    s = Section(fmtid=FMTID_SUMMARY_INFORMATION)
    s.set(PID_AUTHOR, "alice")
    s.set(PID_COMMENTS, "")
    s.set(20, True)
    s.set(21, False)

    back = _round_trip(s).first_section
    assert back.fmtid == FMTID_SUMMARY_INFORMATION
    assert back.codepage == 1252
    assert back.properties == {PID_AUTHOR: "alice", PID_COMMENTS: "", 20: True, 21: False}


def test_unknown_types_are_kept_verbatim():
    filetime = RawValue(vt=VT_FILETIME, data=struct.pack("<HHQ", VT_FILETIME, 0, 132_000_000_000_000_000))
    s = Section(fmtid=FMTID_SUMMARY_INFORMATION)
    s.set(12, filetime)
    s.set(PID_AUTHOR, "alice")

    back = _round_trip(s).first_section
    assert back.get(12) == filetime
    assert back.get_string(12) == ""


def test_text_outside_codepage_falls_back_to_wide_strings():
    s = Section(fmtid=FMTID_SUMMARY_INFORMATION)
    s.set(PID_AUTHOR, "plain")
    s.set(PID_COMMENTS, "Ωmega ✓")

    assert _vt_of(s, PID_AUTHOR) == VT_LPSTR
    assert _vt_of(s, PID_COMMENTS) == VT_LPWSTR
    assert _round_trip(s).first_section.get_string(PID_COMMENTS) == "Ωmega ✓"


@pytest.mark.parametrize("codepage", [1252, 1200, 65001])
def test_dictionary_round_trips_per_codepage(codepage: int):
    s = Section(
        fmtid=FMTID_USER_DEFINED_PROPERTIES,
        codepage=codepage,
        dictionary={2: "Tag", 3: "naïve", 4: "processStep1_isCompleted"},
        properties={2: "a,b", 3: "café", 4: True},
    )
    back = _round_trip(Section(fmtid=FMTID_DOC_SUMMARY_INFORMATION), s).sections[1]
    assert back.codepage == codepage
    assert back.dictionary == s.dictionary
    assert back.properties == s.properties


def test_unicode_codepage_always_writes_wide_strings():
    s = Section(fmtid=FMTID_SUMMARY_INFORMATION, codepage=1200)
    s.set(PID_AUTHOR, "alice")
    assert _vt_of(s, PID_AUTHOR) == VT_LPWSTR


def test_dictionary_name_outside_codepage_raises():
    s = Section(fmtid=FMTID_USER_DEFINED_PROPERTIES, dictionary={2: "Ω"}, properties={2: "x"})
    with pytest.raises(PropertySetError, match="cannot be encoded"):
        s.to_bytes()


def test_reserved_property_ids_cannot_be_set():
    s = Section(fmtid=FMTID_SUMMARY_INFORMATION)
    with pytest.raises(ValueError, match="reserved"):
        s.set(1, "x")


def test_unsupported_value_type_raises():
    s = Section(fmtid=FMTID_SUMMARY_INFORMATION)
    s.set(PID_AUTHOR, 42)  # type: ignore[arg-type]
    with pytest.raises(TypeError, match="int"):
        s.to_bytes()


# --- Property set helpers --- #

def test_new_sets_have_expected_types():
    assert PropertySet.new_summary_information().is_type(FMTID_SUMMARY_INFORMATION)
    assert PropertySet.new_document_summary_information().is_type(FMTID_DOC_SUMMARY_INFORMATION)


def test_set_section_replaces_or_appends():
    pset = PropertySet.new_document_summary_information()
    pset.set_section(Section(fmtid=FMTID_USER_DEFINED_PROPERTIES, dictionary={2: "a"}, properties={2: "1"}))
    pset.set_section(Section(fmtid=FMTID_USER_DEFINED_PROPERTIES, dictionary={2: "b"}, properties={2: "2"}))
    assert len(pset.sections) == 2
    assert pset.section(FMTID_USER_DEFINED_PROPERTIES).dictionary == {2: "b"}

    pset.remove_section(FMTID_USER_DEFINED_PROPERTIES)
    assert pset.section(FMTID_USER_DEFINED_PROPERTIES) is None
    assert len(pset.sections) == 1


def test_header_fields_round_trip():
    pset = PropertySet.new_summary_information()
    pset.clsid = bytes(range(16))
    pset.system_identifier = 0x00020005
    back = read_property_set(pset.to_bytes())
    assert back.clsid == bytes(range(16))
    assert back.system_identifier == 0x00020005


# --- Malformed input --- #

@pytest.mark.parametrize("data,match", [
    (b"", "too short"),
    (b"\x00" * 48, "byte order"),
    (struct.pack("<HHI16sI", 0xFFFE, 0, 0, b"\x00" * 16, 0) + b"\x00" * 20, "section count"),
    (struct.pack("<HHI16sI16sI", 0xFFFE, 0, 0, b"\x00" * 16, 1, b"\x00" * 16, 999), "past the end"),
])
def test_malformed_streams_raise(data: bytes, match: str):
    with pytest.raises(PropertySetError, match=match):
        PropertySet.from_bytes(data)


def test_truncated_section_raises():
    data = PropertySet.new_summary_information().to_bytes()
    with pytest.raises(PropertySetError):
        PropertySet.from_bytes(data[:-4])


def test_write_without_sections_raises():
    with pytest.raises(PropertySetError, match="without sections"):
        PropertySet().to_bytes()


# --- Codepages --- #

@pytest.mark.parametrize("codepage,expected", [(1200, "utf-16-le"), (65001, "utf-8"), (1252, "cp1252")])
def test_codec_for_codepage(codepage: int, expected: str):
    assert codec_for_codepage(codepage) == expected


def test_unknown_codepage_raises():
    with pytest.raises(PropertySetError, match="Unsupported property set codepage"):
        codec_for_codepage(4242)


# --- Interoperability --- #

def test_summary_stream_readable_by_olefile(tmp_path: Path):
    pset = PropertySet.new_summary_information()
    pset.first_section.set(PID_AUTHOR, "alice")
    pset.first_section.set(PID_COMMENTS, "hello")
    c = Container.new()
    pset.write(c, SUMMARY_INFORMATION_STREAM)
    path = tmp_path / "si.doc"
    c.save_to(path)

    with olefile.OleFileIO(str(path)) as ole:
        props = ole.getproperties(SUMMARY_INFORMATION_STREAM)
    assert props[PID_AUTHOR] in (b"alice", "alice")
    assert props[PID_COMMENTS] in (b"hello", "hello")


@pytest.mark.parametrize("text,codepage,expected", [
    ("processStep1", 1252, True),
    ("café", 1252, True),
    ("processStep步", 1252, False),
    ("processStep步", 1200, True),
    ("processStep步", 65001, True),
])
def test_fits_codepage(text, codepage, expected):
    assert fits_codepage(text, codepage) is expected


@pytest.mark.parametrize("value,expected", [(True, "true"), (False, "false"), ("Yes", "Yes"), ("", "")])
def test_value_text(value, expected):
    assert value_text(value) == expected
