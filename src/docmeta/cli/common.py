#!/usr/bin/env python3
from typing import Any, Dict

from docmeta.core.constants import DEFAULT_CODEPAGE
from docmeta.core.manager import MetadataManager


def open_manager(path: str, config: Dict[str, Any]) -> MetadataManager:
    """Open a document using the configured codepage for any new sections."""
    codepage = int(config.get("new_document", {}).get("codepage", DEFAULT_CODEPAGE))
    return MetadataManager.open(path, codepage=codepage)
