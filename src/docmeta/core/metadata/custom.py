#!/usr/bin/env python3
"""
Purpose:
    Open-schema bag of user-defined document properties (the second section
    of the document summary information stream).
"""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from docmeta.core.constants import FIRST_CUSTOM_PID, FMTID_USER_DEFINED_PROPERTIES, DEFAULT_CODEPAGE
from docmeta.core.container.propset import PropertyValue, Section

logger = logging.getLogger(__name__)


class CustomPropertyBag:
    """
    Mapping of property names to values.

    New values must be `str` or `bool`. Values of other types read from an
    existing file are kept opaque so they are written back unchanged. Order
    carries no meaning. The bag never touches the container; the manager
    persists it.
    """

    def __init__(self, values: Optional[Dict[str, PropertyValue]] = None):
        self._values: Dict[str, PropertyValue] = {}
        for key, value in (values or {}).items():
            self.put(key, value)

    # --- Mutation --- #

    def put(self, key: str, value: PropertyValue) -> None:
        """
        Insert or replace `key`.

        An existing entry is removed before the new one is inserted, so a key
        may switch between string and boolean values.
        """
        if not isinstance(key, str):
            raise TypeError(f"Custom property keys must be strings, got {type(key).__name__}")
        if not isinstance(value, (str, bool)):
            raise TypeError(f"Custom property {key!r} must be str or bool, got {type(value).__name__}")
        self.remove(key)
        self._values[key] = value

    def remove(self, key: str) -> None:
        """Remove `key`; absent keys are ignored."""
        self._values.pop(key, None)

    # --- Query --- #

    def contains(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str) -> PropertyValue:
        """Return the value of `key`. Raises KeyError if absent; check `contains` first."""
        if key not in self._values:
            raise KeyError(f"Custom property {key!r} not found")
        return self._values[key]

    def keys(self) -> List[str]:
        return list(self._values)

    def items(self) -> List[tuple[str, PropertyValue]]:
        return list(self._values.items())

    def to_dict(self) -> Dict[str, PropertyValue]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"CustomPropertyBag({self._values!r})"

    # --- Property-set boundary --- #

    @classmethod
    def from_section(cls, section: Optional[Section]) -> "CustomPropertyBag":
        """Build a bag from a user-defined section; None yields an empty bag."""
        bag = cls()
        if section is None:
            return bag
        for pid, name in section.dictionary.items():
            if pid not in section.properties:
                logger.debug("Skipping custom property %r with no value", name)
                continue
            bag._values[name] = section.properties[pid]
        return bag

    def to_section(self, codepage: int = DEFAULT_CODEPAGE) -> Section:
        """Encode as a user-defined section; property ids are assigned from 2 upward."""
        section = Section(fmtid=FMTID_USER_DEFINED_PROPERTIES, codepage=codepage)
        for pid, (name, value) in enumerate(self._values.items(), start=FIRST_CUSTOM_PID):
            section.dictionary[pid] = name
            section.properties[pid] = value
        return section
