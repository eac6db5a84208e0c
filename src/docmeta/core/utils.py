#!/usr/bin/env python3
"""
Purpose:
    Small helpers shared across docmeta: layered dictionary merging for the
    config loader, JSON object loading, and the byte-layout arithmetic used
    by the container and property-set codecs.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Union

from docmeta.core.constants import DEFAULT_TEXT_ENCODING


# --- Dictionaries --- #

def merge_dicts(base: Dict[str, Any], *layers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold `layers` over a deep copy of `base`, later layers winning.

    Nested dicts merge key by key; any other value replaces what was there.
    None of the inputs is modified.
    """
    merged = copy.deepcopy(base)
    for layer in layers:
        _merge_into(merged, layer)
    return merged


def _merge_into(target: Dict[str, Any], layer: Dict[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            _merge_into(current, value)
        else:
            target[key] = copy.deepcopy(value)


# --- Byte layout --- #

def ceil_div(n: int, d: int) -> int:
    return -(-n // d)


def pad_to(data: bytes, multiple: int) -> bytes:
    """Right-pad `data` with NUL bytes to a length that is a multiple of `multiple`."""
    rem = len(data) % multiple
    if rem == 0:
        return data
    return data + b"\x00" * (multiple - rem)


# --- Files --- #

def load_json_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a JSON object from `path`; a missing file reads as {}.

    Raises:
        ValueError: if the file is not valid JSON or its top level is not an object.
    """
    p = Path(path)
    if not p.is_file():
        return {}
    text = p.read_text(encoding=DEFAULT_TEXT_ENCODING)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {str(p)!r}: {e.msg} (line {e.lineno}, col {e.colno})") from e
    if not isinstance(payload, dict):
        raise ValueError(f"{str(p)!r} must hold a JSON object, not {type(payload).__name__}")
    return payload
