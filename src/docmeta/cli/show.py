#!/usr/bin/env python3
"""
`docmeta show`: print the metadata of a document as text, JSON or YAML.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from docmeta.cli.common import open_manager
from docmeta.core.container.propset import RawValue
from docmeta.core.manager import MetadataManager


def register(subparsers):
    parser = subparsers.add_parser("show", help="Show document metadata.")
    parser.add_argument("file", help="Document to read.")
    parser.add_argument("--format", choices=("text", "json", "yaml"), default="text", help="Output format.")
    parser.set_defaults(func=show)


def collect(mgr: MetadataManager) -> Dict[str, Any]:
    return {
        "author": mgr.get_author(),
        "last_author": mgr.get_last_author(),
        "comments": mgr.get_comments(),
        "tags": mgr.get_tags(),
        "process_steps": [
            {"number": s.number, "description": s.description, "status": s.status}
            for s in mgr.get_process_steps()
        ],
        "custom_properties": {k: _plain(v) for k, v in mgr.custom_properties.items()},
    }


def show(args, config: Dict[str, Any]) -> int:
    data = collect(open_manager(args.file, config))
    if args.format == "json":
        print(json.dumps(data, indent=2))
    elif args.format == "yaml":
        print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True), end="")
    else:
        print(_as_text(data))
    return 0


def _plain(value):
    if isinstance(value, RawValue):
        return f"<type {value.vt:#06x}, {len(value.data)} bytes>"
    return value


def _as_text(data: Dict[str, Any]) -> str:
    lines = [
        f"Author:      {data['author']}",
        f"Last author: {data['last_author']}",
        f"Comments:    {data['comments']}",
        f"Tags:        {data['tags']}",
    ]
    steps = data["process_steps"]
    lines.append("Process steps:" if steps else "Process steps: (none)")
    for s in steps:
        lines.append(f"  {s['number']}. {s['description']} [{s['status']}]")
    return "\n".join(lines)
