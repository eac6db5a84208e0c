#!/usr/bin/env python3
"""
Pydantic model for the fixed summary fields handled by docmeta.
"""

from pydantic import BaseModel, ConfigDict, Field

from docmeta.core.constants import PID_AUTHOR, PID_COMMENTS, PID_LASTAUTHOR
from docmeta.core.container.propset import Section


class FixedMetadata(BaseModel):
    """
    Author, last author and comments from the summary information stream.

    `author` is frozen: it is recorded when the document is created and this
    toolkit never rewrites it. The other two fields accept any string,
    including the empty string.

    Example
    -------
    >>> md = FixedMetadata(author="alice")
    >>> md.comments = "draft"
    >>> md.comments
    'draft'
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    author: str = Field(default="", frozen=True, description="Original author (read-only).")
    last_author: str = Field(default="", description="Name of the last user to modify the document.")
    comments: str = Field(default="", description="Free-form document comments.")

    @classmethod
    def from_section(cls, section: Section) -> "FixedMetadata":
        """Read the fields from a summary section; absent or non-text values read as ""."""
        return cls(
            author=section.get_string(PID_AUTHOR),
            last_author=section.get_string(PID_LASTAUTHOR),
            comments=section.get_string(PID_COMMENTS),
        )

    def apply_to(self, section: Section) -> None:
        """Write the mutable fields into `section`, leaving all other properties alone."""
        section.set(PID_LASTAUTHOR, self.last_author)
        section.set(PID_COMMENTS, self.comments)
