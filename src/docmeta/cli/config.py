#!/usr/bin/env python3
"""
`docmeta config`: inspect the effective configuration and where it came from.
"""
import json
from typing import Any, Dict

import yaml

from docmeta.core.config import config_sources


def register(subparsers):
    parser = subparsers.add_parser("config", help="Inspect docmeta configuration.")
    commands = parser.add_subparsers(dest="config_cmd")

    show_parser = commands.add_parser("show", help="Print the merged configuration.")
    show_parser.add_argument("--format", choices=("json", "yaml"), default="json", help="Output format.")
    show_parser.set_defaults(func=show_config)

    paths_parser = commands.add_parser("paths", help="List configuration layers, lowest precedence first.")
    paths_parser.set_defaults(func=show_sources)


def show_config(args, config: Dict[str, Any]) -> int:
    if args.format == "yaml":
        print(yaml.safe_dump(config, sort_keys=False), end="")
    else:
        print(json.dumps(config, indent=2, sort_keys=True))
    return 0


def show_sources(args, config: Dict[str, Any]) -> int:
    for layer, detail in config_sources():
        print(f"{layer:<9}{detail}")
    return 0
