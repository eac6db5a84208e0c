#!/usr/bin/env python3

import argparse
import sys

from docmeta.core.config import load_config
from docmeta.core.errors import DocMetaError
from docmeta.core.logs import configure_logging
from docmeta.cli import config, init, show, edit, step


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="docmeta", description="Compound document metadata toolkit")
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands (they should accept the loaded config)
    init.register(subparsers)
    show.register(subparsers)
    edit.register(subparsers)
    step.register(subparsers)
    config.register(subparsers)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    cfg = load_config()
    configure_logging(cfg)
    try:
        return args.func(args, cfg)
    except (DocMetaError, OSError) as e:
        print(f"docmeta: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
