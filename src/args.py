"""Argument parsing functionality for DepFrontier."""

import argparse

from constants import Constants


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="depfrontier",
        description=(
            "DepFrontier - find the workspace frontier edges through which a "
            "(transitive) dependency on a target package is introduced"
        ),
        add_help=True,
    )

    source_group = parser.add_argument_group("graph input")
    source_group.add_argument("-g", "--graph",
                              dest="GRAPH",
                              help="Graph input: saved `cargo metadata` JSON, uv.lock, or a JSON/YAML graph document",
                              action="store", type=str)
    source_group.add_argument("-w", "--workspace",
                              dest="WORKSPACE",
                              help="Workspace directory to run `cargo metadata` in. Defaults to the current directory.",
                              action="store", type=str)
    source_group.add_argument("--provider",
                              dest="PROVIDER",
                              help="Graph provider (default: auto-detect from --graph)",
                              action="store", type=str.lower,
                              choices=Constants.SUPPORTED_PROVIDERS)

    target_group = parser.add_mutually_exclusive_group()
    target_group.add_argument("-t", "--target",
                              dest="TARGET",
                              help="Target package name, optionally with a version constraint (name@constraint)",
                              action="store", type=str)
    target_group.add_argument("-p", "--package-id",
                              dest="PACKAGE_ID",
                              help="Substring of a package id; must match exactly one package",
                              action="store", type=str)
    parser.add_argument("--target-version",
                        dest="TARGET_VERSION",
                        help="Version constraint for --target; all matching versions are audited",
                        action="store", type=str)

    parser.add_argument("-k", "--kind",
                        dest="KINDS",
                        help="Dependency kind to consider (repeatable; default: all)",
                        action="append", type=str.lower,
                        choices=Constants.SUPPORTED_KINDS)
    parser.add_argument("-s", "--skip",
                        dest="SKIP",
                        help="Skip edges whose destination package id contains this substring (repeatable)",
                        action="append", type=str)
    parser.add_argument("--boundary-only",
                        dest="BOUNDARY_ONLY",
                        help="Only report edges that leave the workspace",
                        action="store_true", default=None)

    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format. If not specified, inferred from --output extension; defaults to json.",
                        action="store", type=str.lower,
                        choices=Constants.SUPPORTED_FORMATS)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (stdout when omitted)",
                        action="store", type=str)
    parser.add_argument("--baseline",
                        dest="BASELINE",
                        help="Previous JSON report; exit non-zero if the frontier grew",
                        action="store", type=str)
    parser.add_argument("--error-on-warnings",
                        dest="ERROR_ON_WARNINGS",
                        help="Exit with a non-zero status code if any member is affected.",
                        action="store_true", default=None)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store", type=str)
    parser.add_argument("--set",
                        dest="CONFIG_SET",
                        help="Configuration override (KEY=VALUE format, can be used multiple times)",
                        action="append", type=str, default=[])

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store", type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("-d", "--debug",
                        dest="DEBUG",
                        help="Shortcut for --loglevel DEBUG",
                        action="store_true")
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not write the report to stdout.",
                        action="store_true")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
