from __future__ import annotations

import argparse
import asyncio
import sys
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Sequence

from intune_assign.auth import AuthManager
from intune_assign.bootstrap import initialize_services
from intune_assign.config import Settings, SettingsManager
from intune_assign.config.settings import ENV_PREFIX
from intune_assign.data import (
    AppAssignmentReport,
    AssignmentFilterType,
    AssignmentIntent,
    DeliveryOptimizationPriority,
    NotificationMode,
)
from intune_assign.graph.errors import GraphAPIError
from intune_assign.services import (
    AssignmentOptions,
    AssignmentValidationError,
    ServiceRegistry,
    build_assignment_options,
    build_assignments,
    resolve_app_id,
)
from intune_assign.services.assignments import (
    COUNTDOWN_RANGE,
    DEFAULT_COUNTDOWN_MINUTES,
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_SNOOZE_MINUTES,
    GRACE_PERIOD_RANGE,
    SNOOZE_RANGE,
)
from intune_assign.utils import (
    LoggingOptions,
    configure_logging,
    get_logger,
    log_file_path,
)
from intune_assign.utils.errors import describe_exception


logger = get_logger(__name__)

EXIT_OK = 0
EXIT_REMOTE_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intune-assign",
        description="Assign Win32 apps to groups and report existing assignments in Intune.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help=f"Settings file with {ENV_PREFIX}* variables.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        type=str.upper,
    )
    parser.add_argument("--debug", action="store_true", help="Verbose console logging.")

    commands = parser.add_subparsers(dest="command", required=True)

    assign = commands.add_parser(
        "assign",
        help="Replace all assignments of a Win32 app.",
        description=(
            "Assign a Win32 app to one or more groups. The submitted list replaces "
            "every existing assignment of the app."
        ),
    )
    assign.add_argument(
        "--intent",
        required=True,
        type=str.lower,
        choices=[intent.value.lower() for intent in AssignmentIntent],
    )
    assign.add_argument("--app-id", required=True)
    assign.add_argument(
        "--group-id",
        dest="group_ids",
        action="append",
        required=True,
        help="Target group id; repeat for several groups.",
    )
    assign.add_argument(
        "--notifications",
        default=NotificationMode.SHOW_ALL.value,
        choices=[mode.value for mode in NotificationMode],
    )
    assign.add_argument(
        "--delivery-optimization",
        default=DeliveryOptimizationPriority.NOT_CONFIGURED.value,
        choices=[priority.value for priority in DeliveryOptimizationPriority],
    )
    assign.add_argument("--use-local-time", action="store_true")
    assign.add_argument("--start-time", help="UTC, yyyy-MM-ddTHH:mm:ss.fffZ")
    assign.add_argument("--deadline-time", help="UTC, yyyy-MM-ddTHH:mm:ss.fffZ")
    assign.add_argument("--restart-grace-period", action="store_true")
    assign.add_argument(
        "--grace-period-minutes",
        type=int,
        default=DEFAULT_GRACE_PERIOD_MINUTES,
        help="%d-%d minutes" % GRACE_PERIOD_RANGE,
    )
    assign.add_argument(
        "--countdown-minutes",
        type=int,
        default=DEFAULT_COUNTDOWN_MINUTES,
        help="%d-%d minutes" % COUNTDOWN_RANGE,
    )
    assign.add_argument("--allow-snooze", action="store_true")
    assign.add_argument(
        "--snooze-minutes",
        type=int,
        default=DEFAULT_SNOOZE_MINUTES,
        help="%d-%d minutes" % SNOOZE_RANGE,
    )
    assign.add_argument("--filter-id", help="Assignment filter id.")
    assign.add_argument(
        "--filter-mode",
        choices=[
            mode.value
            for mode in AssignmentFilterType
            if mode is not AssignmentFilterType.NONE
        ],
    )

    report = commands.add_parser(
        "report",
        help="List Win32 apps with their assignments and group names.",
    )
    report.add_argument(
        "--app-id",
        dest="app_ids",
        action="append",
        help="Restrict the report to this app id; repeatable.",
    )
    report.add_argument("--format", choices=["table", "json", "csv"], default="table")
    report.add_argument("--output", type=Path, help="Write json/csv output to a file.")

    commands.add_parser(
        "sign-out",
        help="Forget cached accounts and delete the token cache.",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> AssignmentOptions:
    return build_assignment_options(
        notifications=args.notifications,
        delivery_optimization_priority=args.delivery_optimization,
        start_time=args.start_time,
        deadline_time=args.deadline_time,
        use_local_time=args.use_local_time,
        restart_grace_period=args.restart_grace_period,
        grace_period_minutes=args.grace_period_minutes,
        countdown_minutes=args.countdown_minutes,
        allow_snooze=args.allow_snooze,
        snooze_minutes=args.snooze_minutes,
        filter_id=args.filter_id,
        filter_type=args.filter_mode,
    )


def validate_assign_args(args: argparse.Namespace) -> AssignmentOptions:
    """Run every local check of an assign invocation before anyone signs in.

    Raises:
        AssignmentValidationError: For bad options, a blank app id or a blank
            group id.
    """

    options = options_from_args(args)
    resolve_app_id(args.app_id)
    build_assignments(args.intent, args.group_ids, options)
    return options


async def run_assign(
    services: ServiceRegistry,
    args: argparse.Namespace,
    options: AssignmentOptions,
) -> int:
    result = await services.assignments.assign(
        args.intent,
        args.group_ids,
        app_id=args.app_id,
        options=options,
    )
    if result.succeeded:
        print(
            f"Assigned app {result.app_id} as {result.intent.value} "
            f"to {result.assignment_count} group(s)."
        )
        return EXIT_OK
    _print_error(result.error or RuntimeError("Assignment failed"), command="assign")
    return EXIT_REMOTE_FAILURE


async def run_report(services: ServiceRegistry, args: argparse.Namespace) -> int:
    unsubscribe = services.reports.errors.subscribe(
        lambda event: print(
            f"warning: could not read assignments of {event.resource_id}: {event.error}",
            file=sys.stderr,
        )
    )
    try:
        report = await services.reports.build_report(app_ids=args.app_ids)
    finally:
        unsubscribe()

    exporter = services.export
    if args.format == "json":
        if args.output:
            exporter.to_json(report, args.output)
        else:
            print(exporter.render_json(report))
    elif args.format == "csv":
        if args.output:
            exporter.to_csv(report, args.output)
        else:
            sys.stdout.write(exporter.render_csv(report))
    else:
        print(render_table(report))
    return EXIT_OK


async def run_sign_out(settings: Settings, auth: AuthManager | None = None) -> int:
    auth = auth or AuthManager()
    try:
        auth.configure(settings)
        removed = await auth.sign_out()
    except GraphAPIError as exc:
        _print_error(exc, command="sign-out")
        return EXIT_REMOTE_FAILURE
    print(f"Signed out {removed} account(s); token cache cleared.")
    return EXIT_OK


def render_table(report: Sequence[AppAssignmentReport]) -> str:
    lines: list[str] = []
    for entry in report:
        lines.append(f"{entry.display_name} ({entry.app_id})")
        if entry.error:
            lines.append(f"  ! {entry.error}")
            continue
        if not entry.assignments:
            lines.append("  (no assignments)")
        for assignment in entry.assignments:
            window = ""
            if assignment.start_time or assignment.deadline_time:
                window = (
                    f" start={assignment.start_time or '-'}"
                    f" deadline={assignment.deadline_time or '-'}"
                )
            lines.append(
                f"  {assignment.intent or '?'}: {assignment.group_name}"
                f" notifications={assignment.notifications or '-'}{window}"
            )
    if not lines:
        lines.append("No Win32 apps found.")
    return "\n".join(lines)


async def _run(
    name: str,
    settings: Settings,
    command: Callable[[ServiceRegistry], Awaitable[int]],
) -> int:
    try:
        services = await initialize_services(settings)
    except GraphAPIError as exc:
        _print_error(exc, command=name)
        return EXIT_REMOTE_FAILURE

    try:
        return await command(services)
    except GraphAPIError as exc:
        logger.error("Command failed", command=name, error=str(exc))
        _print_error(exc, command=name)
        return EXIT_REMOTE_FAILURE
    finally:
        await services.close()


def _print_error(error: BaseException, *, command: str | None = None) -> None:
    descriptor = describe_exception(error, command=command)
    lines = [f"{descriptor.severity.value}: {descriptor.headline} {descriptor.detail}"]
    if descriptor.suggestion:
        lines.append(f"hint: {descriptor.suggestion}")
    if descriptor.help_url:
        lines.append(f"docs: {descriptor.help_url}")
    if descriptor.reproduce:
        lines.append(f"reproduce with: {descriptor.reproduce}")
    log_path = log_file_path()
    if log_path is not None:
        lines.append(f"details: {log_path}")
    print("\n".join(lines), file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(LoggingOptions(level=args.log_level, debug=args.debug))

    command: Callable[[ServiceRegistry], Awaitable[int]] | None = None
    if args.command == "assign":
        try:
            options = validate_assign_args(args)
        except AssignmentValidationError as exc:
            _print_error(exc)
            return EXIT_USAGE
        command = partial(run_assign, args=args, options=options)
    elif args.command == "report":
        command = partial(run_report, args=args)

    manager = SettingsManager(args.env_file)
    settings = manager.load()
    if not settings.is_configured:
        print(
            f"error: no client id configured; set {ENV_PREFIX}CLIENT_ID "
            f"or add it to {manager.env_file}",
            file=sys.stderr,
        )
        return EXIT_USAGE

    try:
        if command is None:
            return asyncio.run(run_sign_out(settings))
        return asyncio.run(_run(args.command, settings, command))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


__all__ = [
    "build_parser",
    "main",
    "options_from_args",
    "render_table",
    "run_assign",
    "run_report",
    "run_sign_out",
    "validate_assign_args",
]
