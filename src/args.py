"""Argument parsing functionality for jspm-resolve."""

import argparse


def build_parser():
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="jspm-resolve",
        description=(
            "jspm-resolve - Resolve module specifiers against jspm project configuration"
        ),
        add_help=True,
    )

    parser.add_argument("specifiers",
                        metavar="SPECIFIER",
                        help="Module specifier to resolve",
                        nargs="+",
                        type=str)
    parser.add_argument("-p", "--parent",
                        dest="PARENT",
                        help="Referencing module path or file:// URL (default: working directory)",
                        action="store",
                        type=str)

    parser.add_argument("--browser",
                        dest="BROWSER",
                        help="Resolve for the browser environment instead of node.",
                        action="store_true")
    parser.add_argument("--production",
                        dest="PRODUCTION",
                        help="Resolve with the production base path and conditions.",
                        action="store_true")
    parser.add_argument("--cjs",
                        dest="CJS",
                        help="Report CommonJS loader formats (cjs, json, addon).",
                        action="store_true")
    parser.add_argument("--async",
                        dest="ASYNC",
                        help="Use the asyncio resolver.",
                        action="store_true")
    parser.add_argument("--builtins-dir",
                        dest="BUILTINS_DIR",
                        help="Directory of browser shims for Node core modules",
                        action="store",
                        type=str)
    parser.add_argument("--no-node-modules",
                        dest="NO_NODE_MODULES",
                        help="Disable node_modules lookup for unmapped plain names.",
                        action="store_true")

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to settings file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program.

    Args:
        argv (list, optional): Argument list; defaults to sys.argv[1:].
    """
    return build_parser().parse_args(argv)
