#!/usr/bin/env python3
"""
Purpose:
    Maps numbered process steps onto pairs of custom properties.

    Step ``n`` is stored as two entries:

    - ``processStep<n>``: the description (string)
    - ``processStep<n>_isCompleted``: the completion flag (boolean)

    All key construction and parsing lives here; callers work with step
    numbers, descriptions and the "Yes"/"No" status text, or with the typed
    `ProcessStep` model.

    Decoding is best effort: entries that do not have the expected shape are
    skipped, never reported as errors.
"""
from __future__ import annotations

import logging
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from docmeta.core.constants import (
    PROCESS_STEP_COMPLETED_SUFFIX,
    PROCESS_STEP_PREFIX,
    STATUS_COMPLETED_TEXT,
    STATUS_PENDING_TEXT,
)
from docmeta.core.container.propset import PropertyValue, value_text
from docmeta.core.metadata.custom import CustomPropertyBag

logger = logging.getLogger(__name__)


class ProcessStep(BaseModel):
    """A numbered task with a description and a completion flag."""

    model_config = ConfigDict(frozen=True)

    number: str = Field(..., description="Step identifier, used verbatim as a key suffix.")
    description: str = Field(default="", description="Step description.")
    completed: bool = Field(default=False, description="Whether the step is done.")

    @property
    def status(self) -> str:
        return STATUS_COMPLETED_TEXT if self.completed else STATUS_PENDING_TEXT


# --- Keys --- #

def description_key(number: str) -> str:
    return PROCESS_STEP_PREFIX + number


def status_key(number: str) -> str:
    return description_key(number) + PROCESS_STEP_COMPLETED_SUFFIX


def is_description_key(key: str) -> bool:
    return key.startswith(PROCESS_STEP_PREFIX) and not key.endswith(PROCESS_STEP_COMPLETED_SUFFIX)


def is_status_key(key: str) -> bool:
    return key.startswith(PROCESS_STEP_PREFIX) and key.endswith(PROCESS_STEP_COMPLETED_SUFFIX)


# --- Status text --- #

def status_flag(status_text: str) -> bool:
    """Only the exact text "Yes" means completed."""
    return status_text == STATUS_COMPLETED_TEXT


def status_text(value: PropertyValue) -> str:
    """"No" when the stored value reads as "false", otherwise "Yes"."""
    return STATUS_PENDING_TEXT if value_text(value) == "false" else STATUS_COMPLETED_TEXT


# --- Encoding --- #

def add_step(bag: CustomPropertyBag, number: str, description: str) -> ProcessStep:
    """
    Add step `number` as not completed.

    An existing step with the same number is overwritten, and its status is
    reset.
    """
    bag.put(description_key(number), description)
    bag.put(status_key(number), False)
    return ProcessStep(number=number, description=description, completed=False)


def edit_step(bag: CustomPropertyBag, number: str, description: str, status: str) -> ProcessStep:
    """Replace both entries of step `number`; `status` must be exactly "Yes" to mark it completed."""
    completed = status_flag(status)
    logger.debug("Step %s status %r -> %s", number, status, completed)
    bag.put(description_key(number), description)
    bag.put(status_key(number), completed)
    return ProcessStep(number=number, description=description, completed=completed)


def remove_step(bag: CustomPropertyBag, number: str) -> None:
    bag.remove(description_key(number))
    bag.remove(status_key(number))


# --- Decoding --- #

def decode_descriptions(bag: CustomPropertyBag) -> Dict[str, str]:
    """
    Map step number to description.

    A step number that itself ends in "_isCompleted" is indistinguishable
    from a status key and is left out.
    """
    prefix_len = len(PROCESS_STEP_PREFIX)
    return {
        key[prefix_len:]: value_text(value)
        for key, value in bag.items()
        if is_description_key(key)
    }


def decode_statuses(bag: CustomPropertyBag) -> Dict[str, str]:
    """
    Map step number to "Yes"/"No".

    The step number is read as the single character after the prefix, so
    multi-character numbers are truncated and numbers sharing a first
    character collide; the entry written last wins. Stored files depend on
    this reading, see `decode_steps` for the full-width view.
    """
    prefix_len = len(PROCESS_STEP_PREFIX)
    return {
        key[prefix_len:prefix_len + 1]: status_text(value)
        for key, value in bag.items()
        if is_status_key(key)
    }


def decode_steps(bag: CustomPropertyBag) -> List[ProcessStep]:
    """Typed view of every step whose description and status entries are both present."""
    steps = []
    for number, description in decode_descriptions(bag).items():
        key = status_key(number)
        if not bag.contains(key):
            logger.debug("Step %s has no status entry, skipping", number)
            continue
        completed = status_text(bag.get(key)) == STATUS_COMPLETED_TEXT
        steps.append(ProcessStep(number=number, description=description, completed=completed))
    return steps
