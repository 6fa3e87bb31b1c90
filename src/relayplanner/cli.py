"""Command-line interface for the relayplanner driver planner."""

import argparse
import json
import logging
import sys
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from relayplanner.domain.models import (
    Job,
    JobStatus,
    PlannerConfig,
    ResizeMode,
    WeekWindow,
    parse_timestamp,
)
from relayplanner.output.text_generator import WeekViewGenerator
from relayplanner.planner import Planner
from relayplanner.scheduling.auto_scheduler import SchedulerConfig, SolverType
from relayplanner.storage.base import (
    FallbackScheduleRepository,
    RepositoryError,
    ScheduleRepository,
)
from relayplanner.storage.local_store import LocalScheduleRepository
from relayplanner.storage.sql_store import SqlScheduleRepository
from relayplanner.validation.validator import EntryValidator

logger = logging.getLogger(__name__)


def create_sample_jobs() -> list[Job]:
    """Create sample jobs for trying the planner out."""
    samples = [
        ("MR-TEST-1001", "City Motors", "Ford Focus", 120, JobStatus.ACCEPTED),
        ("MR-TEST-1002", "AutoHub Wembley", "VW Golf", 60, JobStatus.IN_TRANSIT),
        ("MR-TEST-1003", "Northern Luxury", "BMW 3 Series", 80, JobStatus.PENDING),
        ("MR-TEST-1004", "Oxford EV", "Tesla Model 3", 150, JobStatus.ACCEPTED),
    ]
    return [
        Job(
            id=str(uuid.uuid4()),
            status=status,
            distance_mi=distance,
            title=title,
            company=company,
            vehicle_make=make,
        )
        for title, company, make, distance, status in samples
    ]


def load_jobs(path: Optional[str]) -> list[Job]:
    """Load jobs from a JSON file holding a list of job objects."""
    if not path:
        return []
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return [Job.from_dict(item) for item in raw]


def build_repository(
    store: Optional[str],
    database: Optional[str],
) -> ScheduleRepository:
    """Database first with the local store as fallback, or either alone."""
    local = LocalScheduleRepository(store) if store else None
    remote = None
    if database:
        try:
            remote = SqlScheduleRepository(database)
            remote.create_schema()
        except RepositoryError as exc:
            if local is None:
                raise
            logger.warning("Database unavailable, using local store only: %s", exc)
            remote = None

    if remote and local:
        return FallbackScheduleRepository(remote, local)
    if remote:
        return remote
    if local:
        return local
    raise ValueError("Either --store or --database is required")


def _week(config: PlannerConfig, value: Optional[str], planner: Planner) -> WeekWindow:
    if value:
        return config.week_of(date.fromisoformat(value))
    return planner.current_week()


def _print_validation(planner: Planner, week: WeekWindow) -> None:
    result = EntryValidator(planner.config).validate(planner.week_entries(week))
    if result.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(result.errors)} errors)")
        for error in result.errors[:5]:
            print(f"    - {error}")
        if len(result.errors) > 5:
            print(f"    ... and {len(result.errors) - 5} more errors")
    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for warning in result.warnings[:3]:
            print(f"    - {warning}")
        if len(result.warnings) > 3:
            print(f"    ... and {len(result.warnings) - 3} more warnings")


def run_demo(
    config: PlannerConfig,
    scheduler_config: SchedulerConfig,
    ics_path: Optional[str] = None,
    now: Optional[datetime] = None,
) -> None:
    """Auto-schedule the sample jobs and print the week."""
    jobs = create_sample_jobs()
    clock = (lambda: now) if now else None
    planner = Planner(
        "demo-driver",
        jobs=jobs,
        config=config,
        scheduler_config=scheduler_config,
        clock=clock,
    )
    print(f"Auto-scheduling {len(jobs)} sample jobs...")
    added = planner.auto_schedule()

    week = planner.current_week()
    if added:
        week = config.week_of(added[0].start_at)
    print(WeekViewGenerator(planner.grid).generate_to_string(week, planner.entries, planner.jobs_map))
    _print_validation(planner, week)

    if ics_path:
        planner.export_ics(week, ics_path)
        print(f"\nCalendar written to {ics_path}")


def run_show(args: argparse.Namespace, config: PlannerConfig) -> None:
    """Load an owner's schedule and print the week."""
    planner = Planner(
        args.owner,
        jobs=load_jobs(args.jobs),
        config=config,
        repository=build_repository(args.store, args.database),
    )
    planner.load()
    week = _week(config, args.week, planner)
    print(WeekViewGenerator(planner.grid).generate_to_string(week, planner.entries, planner.jobs_map))
    _print_validation(planner, week)


def run_auto(
    args: argparse.Namespace,
    config: PlannerConfig,
    scheduler_config: SchedulerConfig,
) -> None:
    """Auto-schedule an owner's unscheduled jobs and save."""
    now = parse_timestamp(args.now) if args.now else None
    planner = Planner(
        args.owner,
        jobs=load_jobs(args.jobs),
        config=config,
        scheduler_config=scheduler_config,
        repository=build_repository(args.store, args.database),
    )
    planner.load()
    added = planner.auto_schedule(now)
    print(f"Scheduled {len(added)} new jobs ({len(planner.unscheduled_jobs())} left unscheduled)")
    for entry in added:
        start = config.local(entry.start_at)
        end = config.local(entry.end_at)
        job = planner.jobs_map.get(entry.job_id)
        label = job.display_name if job else entry.job_id
        print(f"  {start.strftime('%a %Y-%m-%d %H:%M')}-{end.strftime('%H:%M')}  {label}")
    result = planner.save()
    print(result.message)


def run_export(args: argparse.Namespace, config: PlannerConfig) -> None:
    """Write an owner's week to an .ics file."""
    planner = Planner(
        args.owner,
        jobs=load_jobs(args.jobs),
        config=config,
        repository=build_repository(args.store, args.database),
    )
    planner.load()
    week = _week(config, args.week, planner)
    planner.export_ics(week, args.output)
    print(f"Exported {len(planner.week_entries(week))} entries to {args.output}")


def _add_store_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--store",
        type=str,
        help="Directory of the local schedule store",
    )
    parser.add_argument(
        "--database",
        type=str,
        help="SQLAlchemy database URL of the remote schedule store",
    )
    parser.add_argument(
        "--owner",
        type=str,
        required=True,
        help="Driver ID whose schedule to use",
    )
    parser.add_argument(
        "--jobs",
        type=str,
        help="JSON file with the driver's jobs",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="relayplanner - Driver Weekly Planner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                                 Auto-schedule sample jobs
  %(prog)s demo --ics week.ics                  Also export the week
  %(prog)s auto --store .planner --owner d1 --jobs jobs.json
  %(prog)s show --store .planner --owner d1 --week 2024-01-15
  %(prog)s export --store .planner --owner d1 --output week.ics
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--timezone", "-z",
        type=str,
        default="UTC",
        help="Planner timezone for hours and weekdays (default: UTC)",
    )
    parser.add_argument(
        "--strict-resize",
        action="store_true",
        help="Keep at least one slot between start and end when resizing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    solver_choices = [s.value for s in SolverType]

    demo_parser = subparsers.add_parser("demo", help="Auto-schedule sample jobs")
    demo_parser.add_argument(
        "--ics",
        type=str,
        help="Output .ics file path",
    )
    demo_parser.add_argument(
        "--solver", "-s",
        type=str,
        default="greedy",
        choices=solver_choices,
        help="Packing strategy (default: greedy)",
    )
    demo_parser.add_argument(
        "--now",
        type=str,
        help="Pretend the current time is this ISO timestamp",
    )

    show_parser = subparsers.add_parser("show", help="Print a driver's week")
    _add_store_arguments(show_parser)
    show_parser.add_argument(
        "--week", "-w",
        type=str,
        help="Any date in the week to show (default: this week)",
    )

    auto_parser = subparsers.add_parser("auto", help="Auto-schedule a driver's jobs")
    _add_store_arguments(auto_parser)
    auto_parser.add_argument(
        "--solver", "-s",
        type=str,
        default="greedy",
        choices=solver_choices,
        help="Packing strategy (default: greedy)",
    )
    auto_parser.add_argument(
        "--now",
        type=str,
        help="Pretend the current time is this ISO timestamp",
    )

    export_parser = subparsers.add_parser("export", help="Export a driver's week to .ics")
    _add_store_arguments(export_parser)
    export_parser.add_argument(
        "--output", "-o",
        type=str,
        required=True,
        help="Output .ics file path",
    )
    export_parser.add_argument(
        "--week", "-w",
        type=str,
        help="Any date in the week to export (default: this week)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    config = PlannerConfig(
        timezone=args.timezone,
        resize_mode=ResizeMode.STRICT if args.strict_resize else ResizeMode.PERMISSIVE,
    )
    scheduler_config = SchedulerConfig(
        solver_type=SolverType(getattr(args, "solver", "greedy")),
    )

    try:
        if args.command == "demo":
            now = parse_timestamp(args.now) if args.now else None
            run_demo(config, scheduler_config, args.ics, now)
            return 0
        elif args.command == "show":
            run_show(args, config)
            return 0
        elif args.command == "auto":
            run_auto(args, config, scheduler_config)
            return 0
        elif args.command == "export":
            run_export(args, config)
            return 0
        else:
            parser.print_help()
            return 1
    except RepositoryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
