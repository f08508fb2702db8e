"""CLI entry point for Calendar Mirror."""

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from apscheduler.schedulers.blocking import BlockingScheduler

from .auth.msal_auth import M365AuthProvider
from .auth.token_cache import TokenCacheManager
from .config import SyncSettings, config, load_sync_settings
from .readers.m365_reader import M365CalendarReader
from .sync.engine import SyncEngine, SyncResult
from .sync.lease import RunLease
from .sync.scheduler import register_periodic_sync
from .utils.exceptions import CalendarSyncError
from .utils.logging import setup_logging
from .writers.m365_writer import M365CalendarWriter

logger = logging.getLogger("calendar_mirror")


def _create_engine(
    settings: SyncSettings, cache_manager: TokenCacheManager, interactive: bool = True
) -> SyncEngine:
    """Wire the Graph reader/writer into a SyncEngine."""
    auth = M365AuthProvider(config.m365, cache_manager, interactive=interactive)
    reader = M365CalendarReader(auth, primary_email=config.m365.primary_email)
    writer = M365CalendarWriter(auth, primary_email=config.m365.primary_email)
    return SyncEngine(reader, reader, writer, settings)


def _lease(settings: SyncSettings) -> RunLease:
    return RunLease(settings.lease_path, ttl=timedelta(minutes=settings.lease_ttl_minutes))


def _print_result(result: SyncResult, title: str, dry_run: bool = False) -> None:
    print(f"\n{title}{' (dry run)' if dry_run else ''}:")
    if result.window_start and result.window_end:
        print(f"  Window: {result.window_start:%Y-%m-%d %H:%M} to {result.window_end:%Y-%m-%d %H:%M} UTC")
    print(f"  Events read: {result.events_read}")
    print(f"  Created: {result.events_created}")
    print(f"  Updated: {result.events_updated}")
    print(f"  Unchanged: {result.events_unchanged}")
    print(f"  Deleted: {result.events_deleted}")
    if dry_run and result.actions:
        for create in result.actions.to_create:
            print(f"  + {create.projection.title} ({create.projection.start})")
        for update in result.actions.to_update:
            print(f"  ~ {update.projection.title} ({update.projection.start})")
        for delete in result.actions.to_delete:
            print(f"  - {delete.destination_event.title} ({delete.destination_event.start})")
    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for err in result.errors:
            print(f"  - {err}")


def run_sync(engine: SyncEngine, settings: SyncSettings, dry_run: bool = False) -> SyncResult:
    """One reconcile-and-apply cycle under the run lease."""
    with _lease(settings):
        return engine.sync(dry_run=dry_run)


def _scheduled_sync(engine: SyncEngine, settings: SyncSettings) -> None:
    try:
        result = run_sync(engine, settings)
    except CalendarSyncError as e:
        # Next tick retries; keep the scheduler alive
        logger.error(f"Scheduled sync skipped: {e}")
        return
    if result.errors:
        logger.warning(f"Scheduled sync finished with {len(result.errors)} error(s)")


def _test_config(engine: SyncEngine) -> int:
    report = engine.test_configuration()
    print("\nConfiguration test:")
    print(f"  Source calendar: {engine.settings.source_calendar_id or '(not set)'}")
    if report.source:
        print(f"    Reachable: {report.source.name}")
    print(f"  Destination calendar: {engine.settings.destination_calendar_id}")
    if report.destination:
        print(f"    Reachable: {report.destination.name}")
    if report.sample_event_count is not None:
        print(f"  Source events in window: {report.sample_event_count}")
    print(f"  Copy details: {engine.settings.sync_details}")
    print(f"  Copy attendees: {engine.settings.copy_attendees}")
    print(f"  Delete removed events: {engine.settings.delete_removed_events}")
    if report.errors:
        print(f"\nProblems ({len(report.errors)}):")
        for err in report.errors:
            print(f"  - {err}")
        return 1
    print("\n✓ Configuration OK")
    return 0


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Calendar Mirror - one-way mirror of a source calendar into a destination calendar"
    )
    parser.add_argument("--sync", action="store_true", help="Perform a sync run")
    parser.add_argument(
        "--initial-sync",
        action="store_true",
        help="Perform the first sync run (same as --sync)",
    )
    parser.add_argument(
        "--test-config",
        action="store_true",
        help="Check configuration and reachability of both calendars",
    )
    parser.add_argument(
        "--clear-synced",
        action="store_true",
        help="Delete every synced event from the destination calendar in the window",
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Do not ask for confirmation before --clear-synced",
    )
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Sync now, then keep syncing periodically",
    )
    parser.add_argument(
        "--interval",
        type=int,
        choices=(15, 60),
        default=None,
        help="Minutes between scheduled runs (overrides config)",
    )
    parser.add_argument(
        "--list-calendars",
        action="store_true",
        help="List available calendars",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without writing",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear authentication token cache",
    )
    parser.add_argument(
        "--lookback",
        type=int,
        default=None,
        help="Days to look back (overrides SYNC_DAYS_PAST)",
    )
    parser.add_argument(
        "--lookahead",
        type=int,
        default=None,
        help="Days to look ahead (overrides SYNC_DAYS_FUTURE)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args(argv)

    log_level = "DEBUG" if args.verbose else config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    try:
        cache_manager = TokenCacheManager(
            cache_location=Path(config.token_cache_path),
            encrypted=config.token_cache_encrypted,
        )

        if args.clear_cache:
            cache_manager.clear_cache()
            return 0

        overrides = {}
        if args.lookback is not None:
            overrides["days_past"] = args.lookback
        if args.lookahead is not None:
            overrides["days_future"] = args.lookahead
        if args.interval is not None:
            overrides["interval_minutes"] = args.interval
        settings = load_sync_settings(**overrides)

        engine = _create_engine(settings, cache_manager, interactive=not args.schedule)

        if args.test_config:
            return _test_config(engine)

        if args.list_calendars:
            calendars = engine.source_reader.list_calendars()
            print(f"Found {len(calendars)} calendar(s):")
            for cal in calendars:
                default = " [default]" if cal.is_default else ""
                print(f"  - {cal.name}{default} (ID: {cal.id})")
            return 0

        if args.clear_synced:
            if not args.yes and not args.dry_run:
                response = input(
                    "⚠️  Delete ALL synced events in the destination window? (y/N): "
                )
                if response.strip().lower() != "y":
                    print("Cancelled.")
                    return 0
            with _lease(settings):
                result = engine.clear_synced_events(dry_run=args.dry_run)
            _print_result(result, "Clear Results", args.dry_run)
            return 0 if result.ok else 1

        if args.sync or args.initial_sync:
            if args.initial_sync:
                logger.info("Running initial sync")
            result = run_sync(engine, settings, dry_run=args.dry_run)
            _print_result(result, "Sync Results", args.dry_run)
            return 0 if result.ok else 1

        if args.schedule:
            logger.info("Running initial sync before scheduling")
            _scheduled_sync(engine, settings)
            scheduler = BlockingScheduler(timezone="UTC")
            register_periodic_sync(
                scheduler,
                lambda: _scheduled_sync(engine, settings),
                settings.interval_minutes,
            )
            try:
                scheduler.start()
            except (KeyboardInterrupt, SystemExit):
                logger.info("Scheduler stopped")
            return 0

        parser.print_help()
        return 0

    except CalendarSyncError as e:
        logger.error(f"Calendar sync error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
