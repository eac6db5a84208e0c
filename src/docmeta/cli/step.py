#!/usr/bin/env python3
from typing import Any, Dict

from docmeta.cli.common import open_manager


def register(subparsers):
    parser = subparsers.add_parser("step", help="Process step commands")
    sps = parser.add_subparsers(dest="step_cmd")

    def step_default(args, config):
        parser.print_help()
        return 1
    parser.set_defaults(func=step_default)

    addp = sps.add_parser("add", help="Add a step (starts not completed; overwrites an existing number).")
    addp.add_argument("file")
    addp.add_argument("number")
    addp.add_argument("description")
    addp.set_defaults(func=add_step)

    editp = sps.add_parser("edit", help="Edit a step; status 'Yes' marks it completed, anything else does not.")
    editp.add_argument("file")
    editp.add_argument("number")
    editp.add_argument("description")
    editp.add_argument("status")
    editp.set_defaults(func=edit_step)

    rmp = sps.add_parser("remove", help="Remove a step.")
    rmp.add_argument("file")
    rmp.add_argument("number")
    rmp.set_defaults(func=remove_step)


def add_step(args, config: Dict[str, Any]) -> int:
    step = open_manager(args.file, config).add_process_step(args.number, args.description)
    print(f"Step {step.number}: {step.description} [{step.status}]")
    return 0


def edit_step(args, config: Dict[str, Any]) -> int:
    step = open_manager(args.file, config).edit_process_step(args.number, args.description, args.status)
    print(f"Step {step.number}: {step.description} [{step.status}]")
    return 0


def remove_step(args, config: Dict[str, Any]) -> int:
    open_manager(args.file, config).remove_process_step(args.number)
    print(f"Step {args.number}: removed")
    return 0
