#!/usr/bin/env python3
import struct

import pytest

from docmeta.core.constants import FMTID_USER_DEFINED_PROPERTIES
from docmeta.core.container.propset import RawValue, Section
from docmeta.core.metadata.custom import CustomPropertyBag


# --- put / get / remove --- #

def test_put_and_get():
    bag = CustomPropertyBag()
    bag.put("Tag", "a,b")
    bag.put("flag", True)
    assert bag.contains("Tag") and "flag" in bag
    assert bag.get("Tag") == "a,b"
    assert bag.get("flag") is True
    assert len(bag) == 2


def test_put_replaces_and_may_change_type():
    bag = CustomPropertyBag({"k": "text"})
    bag.put("k", False)
    assert bag.get("k") is False
    assert bag.keys() == ["k"]


def test_put_moves_replaced_key_to_end():
    bag = CustomPropertyBag({"a": "1", "b": "2"})
    bag.put("a", "3")
    assert bag.keys() == ["b", "a"]


@pytest.mark.parametrize("value", [1, 1.5, None, b"bytes", ["x"]])
def test_put_rejects_other_value_types(value):
    bag = CustomPropertyBag()
    with pytest.raises(TypeError, match="must be str or bool"):
        bag.put("k", value)
    assert "k" not in bag


def test_put_rejects_non_string_keys():
    with pytest.raises(TypeError, match="keys must be strings"):
        CustomPropertyBag().put(1, "x")  # type: ignore[arg-type]


def test_get_absent_key_raises():
    with pytest.raises(KeyError, match="missing"):
        CustomPropertyBag().get("missing")


def test_remove_is_idempotent():
    bag = CustomPropertyBag({"k": "v"})
    bag.remove("k")
    bag.remove("k")
    bag.remove("never-there")
    assert len(bag) == 0
    assert not bag.contains("k")


def test_views_are_copies():
    bag = CustomPropertyBag({"k": "v"})
    bag.keys().append("x")
    bag.to_dict()["y"] = "z"
    assert bag.keys() == ["k"]
    assert bag.items() == [("k", "v")]
    assert list(bag) == ["k"]


# --- Section boundary --- #

def test_from_none_is_empty():
    assert len(CustomPropertyBag.from_section(None)) == 0


def test_from_section_skips_names_without_values_and_keeps_raw():
    raw = RawValue(vt=0x0003, data=struct.pack("<HHi", 3, 0, 42))
    section = Section(
        fmtid=FMTID_USER_DEFINED_PROPERTIES,
        dictionary={2: "Tag", 3: "orphan", 5: "count"},
        properties={2: "x", 5: raw, 9: "unnamed"},
    )
    bag = CustomPropertyBag.from_section(section)
    assert bag.to_dict() == {"Tag": "x", "count": raw}


def test_to_section_assigns_ids_from_two():
    bag = CustomPropertyBag({"Tag": "x", "processStep1": "Draft", "processStep1_isCompleted": False})
    section = bag.to_section(codepage=1200)
    assert section.fmtid == FMTID_USER_DEFINED_PROPERTIES
    assert section.codepage == 1200
    assert section.dictionary == {2: "Tag", 3: "processStep1", 4: "processStep1_isCompleted"}
    assert section.properties == {2: "x", 3: "Draft", 4: False}


def test_section_round_trip_preserves_contents():
    bag = CustomPropertyBag({"Tag": "x", "done": True})
    back = CustomPropertyBag.from_section(bag.to_section())
    assert back.to_dict() == bag.to_dict()
