#!/usr/bin/env python3
from pathlib import Path

import pytest

from docmeta.core.container.compound import Container, create_container


@pytest.fixture
def new_doc(tmp_path: Path) -> Path:
    """A document created by docmeta with author 'alice' and empty metadata."""
    path = tmp_path / "new.doc"
    create_container(path, author="alice")
    return path


@pytest.fixture
def bare_doc(tmp_path: Path) -> Path:
    """A compound document with content but no metadata streams."""
    path = tmp_path / "bare.doc"
    container = Container.new()
    container.write_stream("WordDocument", b"\x01\x02\x03" * 100)
    container.save_to(path)
    return path


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_text("not a compound document", encoding="utf-8")
    return path
