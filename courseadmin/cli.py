"""
CLI (Command Line Interface).

Quick terminal commands on top of the remote course store, e.g.:

    courseadmin stats
    courseadmin list courses --search python
    courseadmin add rooms raumname="A 101" gebaeude=Hauptgebäude kapazitaet=30
    courseadmin edit courses <record_id> preis=249.00
    courseadmin delete participants <record_id>
    courseadmin toggle-paid <enrollment_id>
    courseadmin interactive

Note:
- The interactive UI lives in courseadmin/interactive.py
- Every command loads all five collections first (references need them)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date
from typing import Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from courseadmin.client import LivingAppsClient
from courseadmin.config import Settings
from courseadmin.crud import CrudOrchestrator
from courseadmin.display import empty_message, table_columns, table_rows
from courseadmin.errors import ConfigError, FormError
from courseadmin.forms import DeleteTarget, DialogState
from courseadmin.model import ALL_KINDS, EntityKind
from courseadmin.references import ReferenceResolver
from courseadmin.search import filter_snapshot
from courseadmin.stats import compute_stats
from courseadmin.store import Collaborator, EntityStore

console = Console()
logger = logging.getLogger(__name__)


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _kind(value: str) -> EntityKind:
    try:
        return EntityKind.from_cli(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def parse_assignments(pairs: list[str]) -> dict[str, str]:
    """
    Turn ['titel=Intro', 'preis=99'] into {'titel': 'Intro', 'preis': '99'}.
    """
    out: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            raise FormError(f"Expected field=value, got {pair!r}")
        out[name] = value
    return out


async def _load(store: EntityStore) -> bool:
    if await store.load_all():
        return True
    console.print(f"[red]Could not load data:[/] {escape(str(store.last_error))}")
    return False


def _report_failure(orchestrator: CrudOrchestrator) -> int:
    console.print(f"[red]Failed:[/] {escape(str(orchestrator.last_error or 'another save is still running'))}")
    return 1


async def _cmd_stats(args: argparse.Namespace, store: EntityStore) -> int:
    """
    Print the four dashboard numbers.
    """
    stats = compute_stats(store.snapshot(), date.today())
    table = Table(title="Kursverwaltung", box=box.SIMPLE)
    table.add_column("Kennzahl")
    table.add_column("Wert", justify="right")
    table.add_row("Aktive Kurse", str(stats.active_courses))
    table.add_row("Teilnehmer", str(stats.total_participants))
    table.add_row("Anm. diesen Monat", str(stats.enrollments_this_month))
    table.add_row("Auslastung", f"{stats.utilization}%")
    console.print(table)
    return 0


async def _cmd_list(args: argparse.Namespace, store: EntityStore) -> int:
    """
    Print one collection as a table, optionally filtered by search text.
    """
    kind: EntityKind = args.kind
    snapshot = store.snapshot()
    resolver = ReferenceResolver(snapshot, store.codec)
    records = filter_snapshot((args.search or "").strip(), kind, snapshot, resolver)

    if not records:
        console.print(empty_message(kind))
        return 0

    table = Table(title=f"{kind.plural} ({len(records)})", box=box.SIMPLE)
    for col in table_columns(kind):
        table.add_column(col)
    for row in table_rows(kind, records, resolver):
        table.add_row(*(escape(cell) for cell in row))
    console.print(table)
    return 0


async def _cmd_add(args: argparse.Namespace, store: EntityStore, values: dict[str, str]) -> int:
    dialog = DialogState.open_create(args.kind, date.today())
    dialog.active_form.apply(values)

    orchestrator = CrudOrchestrator(store)
    if not await orchestrator.submit(dialog):
        return _report_failure(orchestrator)
    console.print(f"Created {args.kind.singular} ({len(store.snapshot().records(args.kind))} total)")
    return 0


async def _cmd_edit(args: argparse.Namespace, store: EntityStore, values: dict[str, str]) -> int:
    record = store.snapshot().find(args.kind, args.record_id)
    if record is None:
        console.print(f"Not found: {args.kind.cli_name} {escape(args.record_id)}")
        return 1

    dialog = DialogState.open_edit(args.kind, record, store.codec)
    dialog.active_form.apply(values)

    orchestrator = CrudOrchestrator(store)
    if not await orchestrator.submit(dialog):
        return _report_failure(orchestrator)
    console.print(f"Updated {args.kind.singular} {escape(args.record_id)}")
    return 0


async def _cmd_delete(args: argparse.Namespace, store: EntityStore) -> int:
    if store.snapshot().find(args.kind, args.record_id) is None:
        console.print(f"Not found: {args.kind.cli_name} {escape(args.record_id)}")
        return 1

    orchestrator = CrudOrchestrator(store)
    if not await orchestrator.confirm_delete(DeleteTarget(args.kind, args.record_id)):
        return _report_failure(orchestrator)
    console.print(f"Deleted {args.kind.singular} {escape(args.record_id)}")
    return 0


async def _cmd_toggle_paid(args: argparse.Namespace, store: EntityStore) -> int:
    enrollment = store.snapshot().find(EntityKind.ENROLLMENT, args.record_id)
    if enrollment is None:
        console.print(f"Not found: enrollment {escape(args.record_id)}")
        return 1

    orchestrator = CrudOrchestrator(store)
    if not await orchestrator.toggle_paid(enrollment):
        return _report_failure(orchestrator)
    updated = store.snapshot().find(EntityKind.ENROLLMENT, args.record_id)
    state = "Bezahlt" if updated is not None and updated.get("bezahlt") else "Offen"
    console.print(f"Enrollment {escape(args.record_id)}: {state}")
    return 0


async def dispatch(args: argparse.Namespace, collaborator: Collaborator) -> int:
    """
    Run one parsed command against a collaborator. Returns the exit code.
    """
    values: dict[str, str] = {}
    if args.command in ("add", "edit"):
        try:
            values = parse_assignments(args.values)
        except FormError as exc:
            console.print(escape(str(exc)))
            return 1

    store = EntityStore(collaborator)
    if not await _load(store):
        return 1

    try:
        if args.command == "stats":
            return await _cmd_stats(args, store)
        if args.command == "list":
            return await _cmd_list(args, store)
        if args.command == "add":
            return await _cmd_add(args, store, values)
        if args.command == "edit":
            return await _cmd_edit(args, store, values)
        if args.command == "delete":
            return await _cmd_delete(args, store)
        if args.command == "toggle-paid":
            return await _cmd_toggle_paid(args, store)
    except FormError as exc:
        console.print(f"[red]Invalid input:[/] {escape(str(exc))}")
        return 1

    return 2


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    kinds = ", ".join(k.cli_name for k in ALL_KINDS)

    parser = argparse.ArgumentParser(prog="courseadmin", description="Course administration CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Show dashboard numbers")

    p_list = sub.add_parser("list", help="List records of one kind")
    p_list.add_argument("kind", type=_kind, help=f"One of: {kinds}")
    p_list.add_argument("--search", "-s", type=str, default="", help="Search text")

    p_add = sub.add_parser("add", help="Create a record")
    p_add.add_argument("kind", type=_kind, help=f"One of: {kinds}")
    p_add.add_argument("values", nargs="*", help="field=value pairs (e.g. titel=Intro)")

    p_edit = sub.add_parser("edit", help="Update a record")
    p_edit.add_argument("kind", type=_kind, help=f"One of: {kinds}")
    p_edit.add_argument("record_id", type=str, help="Record ID")
    p_edit.add_argument("values", nargs="*", help="field=value pairs")

    p_delete = sub.add_parser("delete", help="Delete a record")
    p_delete.add_argument("kind", type=_kind, help=f"One of: {kinds}")
    p_delete.add_argument("record_id", type=str, help="Record ID")

    p_toggle = sub.add_parser("toggle-paid", help="Flip the paid flag of an enrollment")
    p_toggle.add_argument("record_id", type=str, help="Enrollment record ID")

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        console.print(escape(str(exc)))
        raise SystemExit(1)
    configure_logging(logging.DEBUG if args.verbose else settings.level)

    missing = settings.missing_app_ids()
    if missing:
        console.print(f"Missing configuration: {', '.join(missing)}")
        raise SystemExit(1)

    client = LivingAppsClient(settings)
    logger.debug("Using record store at %s", settings.base_url)

    if args.command == "interactive":
        from courseadmin.interactive import run_interactive

        raise SystemExit(asyncio.run(run_interactive(client)))

    raise SystemExit(asyncio.run(dispatch(args, client)))
