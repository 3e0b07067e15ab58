"""DepFrontier - workspace frontier audit for transitive dependencies.

Given a dependency graph and a target package, reports for every workspace
member the direct dependency edges through which a dependency on the target
is introduced.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from cli_config import ConfigError, Settings, infer_format, resolve_settings
from cli_export import render, write_output
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes

from analysis.audit import run_audit, select_targets
from analysis.baseline import BaselineError, compare, load_baseline
from analysis.filters import EdgeFilter
from analysis.report import FrontierReport
from analysis.targets import parse_target
from graph.errors import MalformedGraph, ProviderError, UnknownTarget
from providers import load_graph

logger = logging.getLogger(__name__)


def _setup_logging(settings: Settings) -> None:
    """Configure logging from resolved settings."""
    configure_logging(settings.log_level)
    if settings.log_file:
        try:
            add_file_handler(settings.log_file)
            logger.info("Logging to file: %s", settings.log_file)
        except OSError as e:
            logger.error("Cannot open log file %s: %s", settings.log_file, e)
            sys.exit(ExitCodes.FILE_ERROR.value)


def build_report(settings: Settings) -> FrontierReport:
    """Load the graph and run the audit described by ``settings``.

    Raises:
        MalformedGraph, ProviderError, UnknownTarget, ValueError
    """
    graph = load_graph(
        path=settings.graph,
        provider=settings.provider,
        workspace=settings.workspace,
    )
    logger.info(
        "Dependency graph loaded: %d packages, %d edges, %d workspace members",
        graph.node_count,
        graph.edge_count,
        len(graph.workspace_members()),
    )

    target_spec = None
    if settings.target:
        target_spec = parse_target(settings.target, settings.target_version)
    targets = select_targets(graph, target=target_spec, package_id=settings.package_id)
    logger.debug("workspace frontier for dependencies on %s:", ", ".join(str(t) for t in targets))

    edge_filter = EdgeFilter.build(kinds=settings.kinds, skip=settings.skip)
    return run_audit(graph, targets, edge_filter=edge_filter, boundary_only=settings.boundary_only)


def _warn_ambiguous(report: FrontierReport) -> None:
    for edge in report.ambiguous_edges:
        logger.warning(
            "Feature activation of %s cannot be determined statically; treating it as active.",
            edge,
        )


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    # Early setup so config errors are reported.
    configure_logging("DEBUG" if getattr(args, "DEBUG", False) else args.LOG_LEVEL)
    try:
        settings = resolve_settings(args)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    _setup_logging(settings)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main")
        )

    if not settings.target and not settings.package_id:
        logger.error("A target package is required (--target or --package-id).")
        sys.exit(ExitCodes.UNKNOWN_TARGET.value)

    try:
        report = build_report(settings)
    except UnknownTarget as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.UNKNOWN_TARGET.value)
    except MalformedGraph as e:
        logger.error("Malformed dependency graph: %s", e)
        sys.exit(ExitCodes.GRAPH_ERROR.value)
    except ProviderError as e:
        logger.error("Could not load dependency graph: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.UNKNOWN_TARGET.value)

    _warn_ambiguous(report)

    # OUTPUT
    fmt = infer_format(settings)
    if settings.output or not getattr(args, "QUIET", False):
        write_output(render(report, fmt), settings.output)

    summary = report.summary
    logger.info(
        "%d of %d workspace members affected, %d frontier edges.",
        summary.members_affected,
        summary.members_scanned,
        summary.total_entries,
    )

    exit_code = ExitCodes.SUCCESS
    if settings.baseline:
        try:
            diff = compare(report, load_baseline(settings.baseline))
        except BaselineError as e:
            logger.error("%s", e)
            sys.exit(ExitCodes.FILE_ERROR.value)
        for member, dependency, kind in sorted(diff.added):
            logger.warning("New frontier edge: %s -> %s (%s)", member, dependency, kind)
        for member, dependency, kind in sorted(diff.removed):
            logger.info("Frontier edge removed: %s -> %s (%s)", member, dependency, kind)
        if diff.grew:
            logger.error("Frontier grew compared to baseline %s.", settings.baseline)
            exit_code = ExitCodes.EXIT_WARNINGS

    if not report.empty and settings.error_on_warnings:
        logger.error("Workspace members depend on the target, exiting with non-zero status code.")
        exit_code = ExitCodes.EXIT_WARNINGS

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="main",
                outcome="success" if exit_code is ExitCodes.SUCCESS else "warnings",
            )
        )
    sys.exit(exit_code.value)


if __name__ == "__main__":
    main()
