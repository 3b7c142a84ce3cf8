# Copyright 2026 ArchML Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the modeldesc command-line interface."""

import argparse
import sys
from pathlib import Path

from modeldesc.codec.yaml_codec import read_model, write_model
from modeldesc.errors import DescriptionError
from modeldesc.model.document import CURRENT_MODEL_VERSION
from modeldesc.schema.registry import all_registries
from modeldesc.validation.checks import validate

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the modeldesc CLI."""
    parser = argparse.ArgumentParser(
        prog="modeldesc",
        description="modeldesc: versioned model document tool",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check a model document",
        description="Import a model document of any known version and validate it.",
    )
    check_parser.add_argument("file", help="Path to the YAML model document")

    # upgrade subcommand
    upgrade_parser = subparsers.add_parser(
        "upgrade",
        help="Rewrite a model document at the current version",
        description=(
            "Import a model document of any known version and write it back with "
            "every collection and nested document at its current version."
        ),
    )
    upgrade_parser.add_argument("file", help="Path to the YAML model document")
    upgrade_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Path of the upgraded document (default: overwrite the input file)",
    )
    upgrade_parser.add_argument(
        "--no-validate",
        action="store_true",
        help="Skip the consistency checks before writing",
    )

    # versions subcommand
    subparsers.add_parser(
        "versions",
        help="List the current version of every document kind",
        description="List every document kind with the versions it can read.",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "upgrade":
        return _cmd_upgrade(args)
    if args.command == "versions":
        return _cmd_versions(args)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    path = Path(args.file)
    try:
        model = read_model(path)
        validate(model)
    except DescriptionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print("OK")
    return 0


def _cmd_upgrade(args: argparse.Namespace) -> int:
    """Handle the upgrade subcommand."""
    source = Path(args.file)
    target = Path(args.output) if args.output else source
    try:
        model = read_model(source)
        if not args.no_validate:
            validate(model)
        write_model(model, target)
    except DescriptionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Wrote model version {CURRENT_MODEL_VERSION} to '{target}'.")
    return 0


def _cmd_versions(args: argparse.Namespace) -> int:
    """Handle the versions subcommand."""
    registries = sorted(all_registries(), key=lambda registry: registry.kind)
    width = max(len(registry.kind) for registry in registries)
    for registry in registries:
        known = ", ".join(str(version) for version in registry.versions)
        print(f"{registry.kind:<{width}}  {registry.current}  (reads {known})")
    return 0
