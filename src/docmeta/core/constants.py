#!/usr/bin/env python3
"""
Core constants used across docmeta.

- Stream names and FMTIDs of the two metadata property sets.
- Property identifiers of the summary fields handled here.
- Custom property keys for tags and process steps.
- File handling: default text encoding and codepage for new sections.
"""

import uuid
from typing import Final

# --- Property set streams --- #

# Stream names are part of the on-disk format; the leading byte is 0x05
SUMMARY_INFORMATION_STREAM: Final[str] = "\x05SummaryInformation"
DOCUMENT_SUMMARY_INFORMATION_STREAM: Final[str] = "\x05DocumentSummaryInformation"

FMTID_SUMMARY_INFORMATION: Final[uuid.UUID] = uuid.UUID("F29F85E0-4FF9-1068-AB91-08002B27B3D9")
FMTID_DOC_SUMMARY_INFORMATION: Final[uuid.UUID] = uuid.UUID("D5CDD502-2E9C-101B-9397-08002B2CF9AE")
FMTID_USER_DEFINED_PROPERTIES: Final[uuid.UUID] = uuid.UUID("D5CDD505-2E9C-101B-9397-08002B2CF9AE")

# --- Summary property identifiers --- #

PID_DICTIONARY: Final[int] = 0
PID_CODEPAGE: Final[int] = 1
PID_AUTHOR: Final[int] = 4
PID_COMMENTS: Final[int] = 6
PID_LASTAUTHOR: Final[int] = 8

# First identifier available for user-defined properties
FIRST_CUSTOM_PID: Final[int] = 2

# --- Codepages --- #

CP_UNICODE: Final[int] = 1200
CP_UTF8: Final[int] = 65001
DEFAULT_CODEPAGE: Final[int] = 1252

# --- Custom property keys --- #

TAG_PROPERTY_NAME: Final[str] = "Tag"
PROCESS_STEP_PREFIX: Final[str] = "processStep"
PROCESS_STEP_COMPLETED_SUFFIX: Final[str] = "_isCompleted"

# Status text accepted as "completed"; matched exactly
STATUS_COMPLETED_TEXT: Final[str] = "Yes"
STATUS_PENDING_TEXT: Final[str] = "No"

# Default text encoding
DEFAULT_TEXT_ENCODING: Final[str] = "utf-8"
