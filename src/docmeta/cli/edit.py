#!/usr/bin/env python3
from typing import Any, Dict

from docmeta.cli.common import open_manager


def register(subparsers):
    parser = subparsers.add_parser("set", help="Set last author, comments or tags.")
    parser.add_argument("file", help="Document to modify.")
    parser.add_argument("--last-author", default=None, help="New last-author name.")
    parser.add_argument("--comments", default=None, help="New comments text.")
    parser.add_argument("--tags", default=None, help="New tag field (stored as given).")
    parser.set_defaults(func=set_fields)


def set_fields(args, config: Dict[str, Any]) -> int:
    if args.last_author is None and args.comments is None and args.tags is None:
        print("Nothing to set: pass --last-author, --comments or --tags")
        return 1

    mgr = open_manager(args.file, config)
    # each setter rewrites the file
    if args.last_author is not None:
        mgr.set_last_author(args.last_author)
    if args.comments is not None:
        mgr.set_comments(args.comments)
    if args.tags is not None:
        mgr.set_tags(args.tags)
    print(f"{args.file}: updated")
    return 0
