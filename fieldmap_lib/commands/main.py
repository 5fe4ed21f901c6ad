from __future__ import annotations

import argparse
import logging
from importlib.metadata import entry_points

import fieldmap_lib


def main():
    registered_commands = entry_points(group="fieldmap_lib.actions")

    parser = argparse.ArgumentParser(prog="fieldmap")
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s version: {fieldmap_lib.__version__}",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "command",
        choices=registered_commands.names,
    )
    parser.add_argument(
        "args",
        help=argparse.SUPPRESS,
        nargs=argparse.REMAINDER,
    )

    args = argparse.Namespace()
    parser.parse_args(namespace=args)

    logging.basicConfig(
        level=args.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    main_fn = registered_commands[args.command].load()
    return main_fn(args.args)
