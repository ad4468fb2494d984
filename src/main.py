# src/main.py - v1
"""CLI entry point: migrate, status, config, features commands.

Usage:
    assetmigrator migrate --feature topic --test
    assetmigrator migrate --feature all --yes
    assetmigrator status
    assetmigrator config
    assetmigrator features
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys

from assetmigrator.version import __version__

logger = logging.getLogger(__name__)

# Exit codes by run status.
_EXIT_CODES = {
    "completed": 0,
    "no_files": 0,
    "halted": 2,
    "interrupted": 130,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose, args.log_format)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="assetmigrator",
        description=f"assetmigrator v{__version__}: move local assets to a remote "
        "artifact store and generate SQL updates",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-format", choices=["text", "json"], default=None,
        help="Log output format (default: from settings)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- migrate ---
    p_migrate = subparsers.add_parser(
        "migrate", help="Upload files and generate SQL for a feature",
    )
    p_migrate.add_argument(
        "-f", "--feature", required=True,
        help="Feature or group to migrate (see 'features')",
    )
    p_migrate.add_argument(
        "--test", action="store_true",
        help="Test mode: limited files, simulated uploads, test-* outputs",
    )
    p_migrate.add_argument(
        "--simulate", action="store_true",
        help="Simulate uploads without network I/O or file moves, test-* outputs",
    )
    p_migrate.add_argument(
        "-y", "--yes", action="store_true",
        help="Skip confirmation for production runs",
    )
    p_migrate.set_defaults(func=_cmd_migrate)

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Show cumulative migration progress",
    )
    p_status.set_defaults(func=_cmd_status)

    # --- config ---
    p_config = subparsers.add_parser(
        "config", help="Show the effective configuration",
    )
    p_config.set_defaults(func=_cmd_config)

    # --- features ---
    p_features = subparsers.add_parser(
        "features", help="List available features",
    )
    p_features.set_defaults(func=_cmd_features)

    return parser


async def _cmd_migrate(args: argparse.Namespace) -> int:
    """Run a migration for one feature or group."""
    from assetmigrator.api.facade import migrate
    from assetmigrator.api.models import MigrationRequest
    from assetmigrator.config.settings import Settings
    from assetmigrator.features.registry import FeatureRegistry
    from assetmigrator.pipeline.runner import MigrationRunner
    from assetmigrator.tracking.report import format_run_report

    settings = Settings()
    registry = FeatureRegistry()
    if args.feature not in registry:
        logger.error(
            "Unknown feature: %s. Available: %s",
            args.feature, ", ".join(registry.names),
        )
        return 1

    production = not args.test and not args.simulate
    if production and not args.yes:
        prompt = (
            f"Production run of '{args.feature}' against {settings.remote_url} "
            f"({settings.environment}). Continue? [y/N] "
        )
        if not _confirm(prompt):
            print("Cancelled.")
            return 1

    runner = MigrationRunner(settings, registry=registry)
    request = MigrationRequest(
        feature=args.feature, test_mode=args.test, simulate=args.simulate,
    )
    with _stop_on_signals(runner.request_stop):
        result = await migrate(request, settings=settings, runner=runner)

    print()
    print(format_run_report(result.report))
    if result.sql_files:
        print("\nGenerated SQL:")
        for path in result.sql_files:
            print(f"  {path}")
    if result.filemap_path:
        print(f"File mapping: {result.filemap_path}")
    return _EXIT_CODES.get(result.status, 1)


async def _cmd_status(args: argparse.Namespace) -> int:
    """Display cumulative progress and folder counts."""
    from assetmigrator.api.facade import status
    from assetmigrator.config.settings import Settings
    from assetmigrator.tracking.report import format_folder_statistics, format_progress

    snapshot = status(Settings())

    print(f"\nEnvironment: {snapshot.environment}")
    print("\nFolders:")
    print(format_folder_statistics(snapshot.folders))
    print("\nProduction progress:")
    print(format_progress(snapshot.production))
    print("\nTest and simulated progress:")
    print(format_progress(snapshot.test))
    if snapshot.last_run_at is not None:
        print(f"\nLast production run: {snapshot.last_run_at.isoformat()} "
              f"({snapshot.last_run_status})")
    return 0


async def _cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration, credentials masked."""
    from assetmigrator.config.settings import Settings

    settings = Settings()
    cap = settings.session_file_cap
    print("\nCurrent configuration:")
    print(f"  Remote URL       : {settings.remote_url or '(unset)'}")
    print(f"  Access token     : {_mask(settings.access_token)}")
    print(f"  Target folder    : {settings.target_folder_name} ({settings.target_folder_id or 'unset'})")
    print(f"  Environment      : {settings.environment}")
    print(f"  Source folder    : {settings.source_folder}")
    print(f"  Processed folder : {settings.processed_folder}")
    print(f"  Failed folder    : {settings.failed_folder}")
    print(f"  Batch size       : {settings.batch_size}")
    print(f"  Max batches      : {settings.max_batches or 'unlimited'}")
    print(f"  Files per run    : {cap if cap is not None else 'unlimited'}")
    print(f"  Test limit       : {settings.test_limit}")
    print(f"  Upload timeout   : {settings.upload_timeout}s")
    print(f"  Auto move files  : {settings.auto_move_files}")
    print(f"  Halt on auth fail: {settings.halt_on_auth_failure}")
    print(f"  Extensions       : {', '.join(sorted(settings.allowed_extensions_set))}")
    return 0


async def _cmd_features(args: argparse.Namespace) -> int:
    """List registered features and what each expands to."""
    from assetmigrator.features.registry import FeatureRegistry

    registry = FeatureRegistry()
    print("\nAvailable features:")
    for name in registry.names:
        feat = registry.get_or_raise(name)
        expansion = registry.expand(name)
        line = f"  {name:<10} {registry.describe(name)}"
        if feat.is_concrete:
            line += f" [{feat.table}: {', '.join(feat.columns)}; {feat.sql_pattern}]"
        if expansion != [name]:
            line += f" -> {', '.join(expansion)}"
        print(line)
    return 0


@contextlib.contextmanager
def _stop_on_signals(callback):
    """Route SIGINT/SIGTERM to callback while the block runs."""
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, callback)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform/loop; KeyboardInterrupt still applies.
            pass
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _confirm(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _mask(secret: str) -> str:
    if not secret:
        return "(unset)"
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def _setup_logging(verbose: bool, log_format: str | None = None) -> None:
    """Configure logging for CLI usage."""
    from assetmigrator.config.settings import ConfigurationError, Settings
    from assetmigrator.logging.logger import setup_logging

    try:
        settings = Settings()
    except (ConfigurationError, ValueError) as exc:
        # Still log to stderr; the command reports the config error itself.
        setup_logging(level="DEBUG" if verbose else "INFO", log_format=log_format or "text")
        logging.getLogger(__name__).debug("Settings unavailable for logging: %s", exc)
        return

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=log_format or settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
