#!/usr/bin/env python3
"""
Purpose:
    Reads and edits the metadata of one compound document: the fixed summary
    fields, the tag field and process steps kept in the custom properties.

    Every mutation is written through immediately: the summary stream, the
    document summary stream (carrying the custom properties) and then the
    whole container file are rewritten. There is no batching, locking or
    transactional guarantee between those writes.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Union

from docmeta.core.constants import (
    CP_UNICODE,
    DEFAULT_CODEPAGE,
    DOCUMENT_SUMMARY_INFORMATION_STREAM,
    FMTID_DOC_SUMMARY_INFORMATION,
    FMTID_SUMMARY_INFORMATION,
    FMTID_USER_DEFINED_PROPERTIES,
    SUMMARY_INFORMATION_STREAM,
    TAG_PROPERTY_NAME,
)
from docmeta.core.container.compound import Container
from docmeta.core.container.propset import (
    PropertySet,
    PropertyValue,
    fits_codepage,
    read_property_set,
    value_text,
    write_property_set,
)
from docmeta.core.errors import PropertySetError
from docmeta.core.metadata import process_steps
from docmeta.core.metadata.custom import CustomPropertyBag
from docmeta.core.metadata.fixed import FixedMetadata
from docmeta.core.metadata.process_steps import ProcessStep

logger = logging.getLogger(__name__)


class MetadataManager:
    """
    Metadata session for a single document.

    Typical use:
        >>> mgr = MetadataManager.open("report.doc")
        >>> mgr.add_process_step("1", "Draft")
        >>> mgr.edit_process_step("1", "Draft", "Yes")
        >>> mgr.get_process_step_statuses()
        {'1': 'Yes'}
    """

    def __init__(
        self,
        path: Path,
        container: Container,
        summary: PropertySet,
        doc_summary: PropertySet,
        codepage: int = DEFAULT_CODEPAGE,
    ):
        self._path = path
        self._container = container
        self._summary = summary
        self._doc_summary = doc_summary
        self._codepage = codepage
        self._fixed = FixedMetadata.from_section(summary.first_section)
        self._custom = CustomPropertyBag.from_section(doc_summary.section(FMTID_USER_DEFINED_PROPERTIES))

    # --- Session --- #

    @classmethod
    def open(cls, path: Union[str, Path], *, codepage: int = DEFAULT_CODEPAGE) -> "MetadataManager":
        """
        Open a document and load its metadata.

        Missing metadata streams are not errors: empty property sets are used
        and only written on the first mutation. `codepage` applies to sets
        and sections created here.

        Raises:
            FileNotFoundError: if the file does not exist
            ContainerFormatError: if the file is not a compound document
            PropertySetError: if a metadata stream is malformed
        """
        p = Path(path)
        container = Container.open(p)
        summary = _load_property_set(container, SUMMARY_INFORMATION_STREAM, FMTID_SUMMARY_INFORMATION)
        if summary is None:
            logger.debug("%s has no summary information, starting empty", p)
            summary = PropertySet.new_summary_information(codepage)
        doc_summary = _load_property_set(container, DOCUMENT_SUMMARY_INFORMATION_STREAM, FMTID_DOC_SUMMARY_INFORMATION)
        if doc_summary is None:
            logger.debug("%s has no document summary information, starting empty", p)
            doc_summary = PropertySet.new_document_summary_information(codepage)
        return cls(p, container, summary, doc_summary, codepage=codepage)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def custom_properties(self) -> Dict[str, PropertyValue]:
        """Copy of all custom properties."""
        return self._custom.to_dict()

    # --- Fixed fields --- #

    def get_author(self) -> str:
        return self._fixed.author

    def get_last_author(self) -> str:
        return self._fixed.last_author

    def get_comments(self) -> str:
        return self._fixed.comments

    def set_last_author(self, name: str) -> None:
        self._fixed.last_author = name
        self._persist()

    def set_comments(self, text: str) -> None:
        self._fixed.comments = text
        self._persist()

    # --- Tags --- #

    def get_tags(self) -> str:
        """The tag field as stored, or "" when the document has none."""
        if not self._custom.contains(TAG_PROPERTY_NAME):
            return ""
        return value_text(self._custom.get(TAG_PROPERTY_NAME))

    def set_tags(self, text: str) -> None:
        self._custom.put(TAG_PROPERTY_NAME, text)
        self._persist()

    # --- Process steps --- #

    def add_process_step(self, step_number: str, description: str) -> ProcessStep:
        """Add (or overwrite) a step; it always starts not completed."""
        step = process_steps.add_step(self._custom, step_number, description)
        self._persist()
        return step

    def edit_process_step(self, step_number: str, description: str, status: str) -> ProcessStep:
        """Rewrite a step; only the exact status text "Yes" marks it completed."""
        step = process_steps.edit_step(self._custom, step_number, description, status)
        self._persist()
        return step

    def remove_process_step(self, step_number: str) -> None:
        process_steps.remove_step(self._custom, step_number)
        self._persist()

    def get_process_step_descriptions(self) -> Dict[str, str]:
        return process_steps.decode_descriptions(self._custom)

    def get_process_step_statuses(self) -> Dict[str, str]:
        """Step statuses keyed by the first character of each step number."""
        return process_steps.decode_statuses(self._custom)

    def get_process_steps(self) -> List[ProcessStep]:
        return process_steps.decode_steps(self._custom)

    # --- Persistence --- #

    def _persist(self) -> None:
        self._fixed.apply_to(self._summary.first_section)
        write_property_set(self._summary, self._container, SUMMARY_INFORMATION_STREAM)

        if len(self._custom):
            codepage = self._custom_codepage()
            self._doc_summary.set_section(self._custom.to_section(codepage))
        else:
            self._doc_summary.remove_section(FMTID_USER_DEFINED_PROPERTIES)
        write_property_set(self._doc_summary, self._container, DOCUMENT_SUMMARY_INFORMATION_STREAM)

        self._container.save_to(self._path)
        logger.debug("Persisted metadata to %s", self._path)

    def _custom_codepage(self) -> int:
        """Codepage for the custom section; names that do not fit switch it to UTF-16."""
        existing = self._doc_summary.section(FMTID_USER_DEFINED_PROPERTIES)
        codepage = existing.codepage if existing is not None else self._codepage
        if all(fits_codepage(name, codepage) for name in self._custom.keys()):
            return codepage
        logger.debug("Custom property names do not fit codepage %d, using %d", codepage, CP_UNICODE)
        return CP_UNICODE


def _load_property_set(container: Container, stream_name: str, fmtid) -> PropertySet | None:
    data = container.find_stream(stream_name)
    if data is None:
        return None
    pset = read_property_set(data)
    if not pset.is_type(fmtid):
        raise PropertySetError(f"Stream {stream_name!r} does not hold the expected property set")
    return pset
