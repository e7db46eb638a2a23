from __future__ import annotations

import argparse
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator

from .container import Container, build_container
from .core.config import Settings, get_settings
from .core.exceptions import WageEngineError
from .core.logging import configure_logging
from .core.security import ROLES, SYSTEM_ACTOR
from .seed.seed_data import seed
from .services.bank_export import BANK_FORMATS, export_bank_transfers, export_file_name


def settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})
    return settings


@contextmanager
def open_container(args: argparse.Namespace) -> Iterator[Container]:
    container = build_container(settings_from_args(args))
    with container.database:
        yield container


def parse_date(value: str) -> date:
    return date.fromisoformat(value)


def cmd_init_db(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        container.database.create_all()
    print("Created database tables")


def cmd_seed(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        container.database.create_all()
        with container.database.transaction() as db:
            created = seed(db)
    print(f"Seeded {created} employees")


def cmd_create_user(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        user = container.users.create_user(args.email, args.password, args.role)
    print(f"Created user {user.email} ({user.role})")


def cmd_summaries(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        summaries = container.summaries.list_summaries(status=args.status, subject_type=args.subject_type)
    if not summaries:
        print("No batches found")
        return
    for summary in summaries:
        print(
            f"{summary.approval_id} {summary.date_from} - {summary.date_to} {summary.status} "
            f"records={summary.record_count} total={summary.total_wages} "
            f"cash={summary.total_cash_wages} online={summary.total_online_wages}"
        )


def cmd_leave_balances(args: argparse.Namespace) -> None:
    year = args.year or date.today().year
    with open_container(args) as container:
        balances = container.leave.compute_balances(args.employee, year)
    for balance in balances:
        if balance.remaining is None:
            print(f"{balance.leave_type}: used {balance.used_days} (unlimited)")
        else:
            print(
                f"{balance.leave_type}: used {balance.used_days} of {balance.total_entitlement} "
                f"(carried over {balance.carried_over}), remaining {balance.remaining}"
            )


def cmd_delete_batch(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        deleted = container.batches.delete_batch(args.id, SYSTEM_ACTOR)
    print(f"Deleted batch {args.id}" if deleted else f"No batch {args.id}; nothing deleted")


def cmd_backfill_name(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        touched = container.batches.backfill_employee_name(args.employee, args.name, SYSTEM_ACTOR)
    print(f"Renamed employee {args.employee}; updated {touched} historical rows")


def cmd_export_bank(args: argparse.Namespace) -> None:
    with open_container(args) as container:
        batch = container.batches.get_batch(args.id).batch
        rows = container.summaries.online_transfer_rows(args.id)
    if not rows:
        print("No online transfer employees in this batch")
        return
    directory = Path(args.directory)
    path = directory / export_file_name(batch.date_from, batch.date_to, args.format)
    count = export_bank_transfers(path, rows, args.format)
    print(f"Exported {count} transfers to {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Wage approval engine CLI")
    parser.add_argument("--database-url", help="Override WAGE_ENGINE_DATABASE_URL")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Create all tables")
    init_db.set_defaults(func=cmd_init_db)

    seed_cmd = sub.add_parser("seed", help="Load development employees")
    seed_cmd.set_defaults(func=cmd_seed)

    create_user = sub.add_parser("create-user", help="Create an API user")
    create_user.add_argument("email")
    create_user.add_argument("password")
    create_user.add_argument("--role", choices=ROLES, default="viewer")
    create_user.set_defaults(func=cmd_create_user)

    summaries = sub.add_parser("summaries", help="List batch totals by period")
    summaries.add_argument("--status", choices=("pending", "approved", "declined"))
    summaries.add_argument(
        "--subject-type",
        choices=("final_wage", "timesheet_review", "leave_request"),
        default="final_wage",
    )
    summaries.set_defaults(func=cmd_summaries)

    balances = sub.add_parser("leave-balances", help="Show leave balances for an employee")
    balances.add_argument("employee")
    balances.add_argument("--year", type=int)
    balances.set_defaults(func=cmd_leave_balances)

    delete = sub.add_parser("delete-batch", help="Delete an approval batch and its records")
    delete.add_argument("id")
    delete.set_defaults(func=cmd_delete_batch)

    backfill = sub.add_parser("backfill-name", help="Rename an employee across historical records")
    backfill.add_argument("employee")
    backfill.add_argument("name")
    backfill.set_defaults(func=cmd_backfill_name)

    export = sub.add_parser("export-bank", help="Write the bank transfer file for an approved batch")
    export.add_argument("id")
    export.add_argument("--format", choices=sorted(BANK_FORMATS), default="BSP")
    export.add_argument("--directory", default=".")
    export.set_defaults(func=cmd_export_bank)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(get_settings().log_level)
    try:
        args.func(args)
    except WageEngineError as exc:
        parser.exit(1, f"error [{exc.code}]: {exc}\n")


if __name__ == "__main__":
    main()
