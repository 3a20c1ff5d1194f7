"""CLI entry point for the plugin test runner."""

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Literal

from pydantic import ValidationError

from plugin_test_runner.discovery import (
    SUITE_GROUPS,
    UnknownSuiteError,
    discover_all,
    resolve_suite_groups,
)
from plugin_test_runner.engine import ExecutionEngine
from plugin_test_runner.executors.nushell import NushellExecutor
from plugin_test_runner.lifecycle import LifecycleStepFailed, PluginLifecycle
from plugin_test_runner.models.config import LifecycleConfig, RunnerConfig
from plugin_test_runner.report import REPORT_FORMATS, ReportWriteError, generate_report

TIMEOUT_ENV = "NU_PLUGIN_SECRET_TEST_TIMEOUT"
PARALLEL_ENV = "NU_PLUGIN_SECRET_TEST_PARALLEL"

type Mode = Literal["run", "setup", "cleanup", "health", "status"]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="plugin-test-runner",
        description="Run the Nushell test suites of nu_plugin_secret",
    )
    parser.add_argument(
        "-s",
        "--suite",
        default="all",
        help=f"Suite to run: all, {', '.join(SUITE_GROUPS)} (default: all)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print per-suite progress"
    )
    parser.add_argument(
        "-p",
        "--parallel",
        type=int,
        default=None,
        help=f"Suites per parallel batch (default: ${PARALLEL_ENV} or 1)",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        default=None,
        help=f"Per-suite timeout, e.g. 30sec or 2min (default: ${TIMEOUT_ENV} or 30sec)",
    )
    parser.add_argument(
        "-f",
        "--format",
        default="detailed",
        help=(
            f"Report format: {', '.join(REPORT_FORMATS)}; others fall back "
            "to summary (default: detailed)"
        ),
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Output file for json reports"
    )
    parser.add_argument(
        "--stop-on-failure",
        action="store_true",
        help="Do not start further batches after a failure",
    )
    parser.add_argument(
        "--nu-path", default="nu", help="Path to the nu executable (default: nu)"
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Plugin project root (default: current directory)",
    )
    parser.add_argument(
        "--test-dir",
        type=Path,
        default=None,
        help="Directory holding the suite groups (default: <project-root>/tests/nushell)",
    )

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument(
        "--setup-only",
        dest="mode",
        action="store_const",
        const="setup",
        help="Only set up the plugin",
    )
    modes.add_argument(
        "--cleanup-only",
        dest="mode",
        action="store_const",
        const="cleanup",
        help="Only clean up the test environment",
    )
    modes.add_argument(
        "--health-check",
        dest="mode",
        action="store_const",
        const="health",
        help="Check that the installed plugin responds",
    )
    modes.add_argument(
        "--status",
        dest="mode",
        action="store_const",
        const="status",
        help="Print the plugin status as JSON",
    )
    parser.set_defaults(mode="run")
    return parser


def build_config(
    args: argparse.Namespace, environ: Mapping[str, str] = os.environ
) -> RunnerConfig:
    """Merge defaults, environment and command line options.

    Raises:
        ValidationError: If an option value is invalid

    """
    project_root = args.project_root.resolve()
    lifecycle = LifecycleConfig(project_root=project_root, nu_path=args.nu_path)

    return RunnerConfig(
        suite=args.suite,
        test_dir=args.test_dir or project_root / "tests" / "nushell",
        timeout=(
            args.timeout
            if args.timeout is not None
            else environ.get(TIMEOUT_ENV) or "30sec"
        ),
        max_parallel_jobs=(
            args.parallel
            if args.parallel is not None
            else environ.get(PARALLEL_ENV) or 1
        ),
        verbose=args.verbose,
        stop_on_failure=args.stop_on_failure,
        report_format=args.format,
        output=args.output,
        lifecycle=lifecycle,
    )


async def run(config: RunnerConfig, mode: Mode = "run") -> int:
    """Run the requested operation and return the exit code."""
    log = logging.getLogger("plugin_test_runner")
    lifecycle = PluginLifecycle.from_config(config.lifecycle)

    if mode == "cleanup":
        await lifecycle.teardown()
        return 0

    if mode == "status":
        status = await lifecycle.get_status()
        print(json.dumps(status.to_dict(), indent=2))
        return 0

    if mode == "health":
        healthy = await lifecycle.health_check()
        print("✅ Plugin is healthy" if healthy else "❌ Plugin health check failed")
        return 0 if healthy else 1

    try:
        groups = resolve_suite_groups(config.suite)
    except UnknownSuiteError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    try:
        await lifecycle.setup()
    except LifecycleStepFailed as e:
        log.critical("Plugin setup failed: %s", e)
        print(f"💥 FATAL: plugin setup failed: {e}", file=sys.stderr)
        return 1

    if mode == "setup":
        log.info("Setup completed, skipping tests")
        return 0

    try:
        suites = discover_all(config.test_dir, groups)
        if not suites:
            print(
                f"❌ No test suites found in {config.test_dir} "
                f"for suite '{config.suite}'",
                file=sys.stderr,
            )
            return 1

        log.info("Running %d suite(s)", len(suites))
        engine = ExecutionEngine(
            config=config, executor=NushellExecutor(config=config.lifecycle)
        )
        outcomes = await engine.run_suites(suites)
        try:
            summary = generate_report(outcomes, config)
        except ReportWriteError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1
    finally:
        await lifecycle.teardown()

    return summary.exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
    except ValidationError as e:
        parser.error(str(e))

    exit_code = asyncio.run(run(config, args.mode))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
