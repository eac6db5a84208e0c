#!/usr/bin/env python3
from pathlib import Path
from typing import Any, Dict

from docmeta.core.constants import DEFAULT_CODEPAGE
from docmeta.core.container.compound import create_container


def register(subparsers):
    parser = subparsers.add_parser("init", help="Create an empty compound document with metadata streams.")
    parser.add_argument("file", help="Path of the document to create.")
    parser.add_argument("--author", default=None, help="Author recorded at creation (default: from config).")
    parser.add_argument("--force", "-f", action="store_true", help="Overwrite an existing file.")
    parser.set_defaults(func=init_document)


def init_document(args, config: Dict[str, Any]) -> int:
    path = Path(args.file)
    if path.exists() and not args.force:
        print(f"{path}: already exists (use --force to overwrite)")
        return 1
    defaults = config.get("new_document", {})
    author = args.author if args.author is not None else defaults.get("author", "")
    create_container(path, author=author, codepage=int(defaults.get("codepage", DEFAULT_CODEPAGE)))
    print(f"{path}: created")
    return 0
