#!/usr/bin/env python3
"""
Exception types raised by docmeta.

Operating-system I/O errors (missing file, permissions, failed writes) are not
wrapped; they reach the caller as the usual `OSError` subclasses.
"""


class DocMetaError(Exception):
    """Base class for docmeta errors."""


class ContainerFormatError(DocMetaError, ValueError):
    """The file is not a compound document, or its tree cannot be written."""


class StreamNotFoundError(DocMetaError, LookupError):
    """A named stream is not present under the container root."""


class PropertySetError(DocMetaError, ValueError):
    """Property-set bytes are malformed or of an unexpected type."""
