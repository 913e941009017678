from __future__ import annotations

from datetime import date
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from courseadmin.crud import CrudOrchestrator
from courseadmin.display import empty_message, record_choices, table_columns, table_rows
from courseadmin.errors import FormError, RemoteWriteError
from courseadmin.forms import ActiveForm, DeleteTarget, DialogState
from courseadmin.model import ALL_KINDS, REFERENCE_FIELDS, EntityKind, Record
from courseadmin.references import ReferenceResolver
from courseadmin.search import filter_snapshot
from courseadmin.stats import compute_stats
from courseadmin.store import Collaborator, EntityStore

console = Console()


class Session:
    """
    UI state of one interactive run: active tab and search text.
    Data lives in the store; mutations go through the orchestrator.
    """

    def __init__(self, collaborator: Collaborator) -> None:
        self.store = EntityStore(collaborator)
        self.orchestrator = CrudOrchestrator(self.store)
        self.tab = EntityKind.COURSE
        self.query = ""

    def visible(self) -> tuple[list[Record], ReferenceResolver]:
        snapshot = self.store.snapshot()
        resolver = ReferenceResolver(snapshot, self.store.codec)
        return filter_snapshot(self.query, self.tab, snapshot, resolver), resolver


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    # prompts carry record values and literal [..] hints, never markup
    return console.input(msg, markup=False)


async def run_interactive(collaborator: Collaborator) -> int:
    """
    Interactive menu loop. Returns the exit code.
    """
    session = Session(collaborator)

    _println("Lade Daten...")
    if not await session.store.load_all():
        _println(f"[red]Could not load data:[/] {escape(str(session.store.last_error))}")
        return 1

    while True:
        _print_header(session)

        choice = _prompt(
            "\n[1] Switch tab\n"
            "[2] Search\n"
            "[3] List\n"
            "[4] New\n"
            "[5] Edit\n"
            "[6] Delete\n"
            "[7] Toggle paid (Anmeldungen)\n"
            "[8] Reload data\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            _println("Bye.")
            return 0

        if choice == "1":
            _flow_switch_tab(session)
        elif choice == "2":
            session.query = _prompt("Search text [blank = clear]: ").strip()
            _flow_list(session)
        elif choice == "3":
            _flow_list(session)
        elif choice == "4":
            await _flow_dialog(session, DialogState.open_create(session.tab, date.today()))
        elif choice == "5":
            record = _pick_record(session, "edit")
            if record is not None:
                await _flow_dialog(session, DialogState.open_edit(session.tab, record, session.store.codec))
        elif choice == "6":
            await _flow_delete(session)
        elif choice == "7":
            await _flow_toggle_paid(session)
        elif choice == "8":
            if await session.store.load_all():
                _println("Data reloaded.")
            else:
                _println(f"[red]Reload failed:[/] {escape(str(session.store.last_error))}")
        else:
            _println("Invalid choice.")


def _print_header(session: Session) -> None:
    stats = compute_stats(session.store.snapshot(), date.today())
    _println("\n=== Kursverwaltung ===")
    _println(
        f"Aktive Kurse: [bold]{stats.active_courses}[/] | "
        f"Teilnehmer: [bold]{stats.total_participants}[/] | "
        f"Anm. diesen Monat: [bold]{stats.enrollments_this_month}[/] | "
        f"Auslastung: [bold]{stats.utilization}%[/]"
    )
    search = f" | Suche: '{escape(session.query)}'" if session.query else ""
    _println(f"Tab: [cyan]{session.tab.plural}[/]{search}")


def _flow_switch_tab(session: Session) -> None:
    for i, kind in enumerate(ALL_KINDS, start=1):
        _println(f"{i}) {kind.plural}")
    pick = _prompt("Tab number: ").strip()
    if not pick.isdigit() or not (1 <= int(pick) <= len(ALL_KINDS)):
        _println("Out of range.")
        return
    session.tab = ALL_KINDS[int(pick) - 1]
    # switching tabs clears the search
    session.query = ""


def _flow_list(session: Session) -> list[Record]:
    records, resolver = session.visible()
    if not records:
        _println(empty_message(session.tab))
        return records

    table = Table(title=f"{session.tab.plural} ({len(records)})", box=box.SIMPLE)
    table.add_column("#", justify="right")
    for col in table_columns(session.tab)[1:]:
        table.add_column(col)
    for i, row in enumerate(table_rows(session.tab, records, resolver), start=1):
        table.add_row(str(i), *(escape(cell) for cell in row[1:]))
    console.print(table)
    return records


def _pick_record(session: Session, verb: str) -> Optional[Record]:
    records = _flow_list(session)
    if not records:
        return None
    pick = _prompt(f"Number to {verb} [blank = cancel]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(records)):
        _println("Out of range.")
        return None
    return records[int(pick) - 1]


def _ask_reference(session: Session, label: str, target: EntityKind, current: str) -> str:
    choices = record_choices(target, session.store.snapshot().records(target))
    _println(f"{label}:")
    _println("  0) (none)")
    for i, (rid, text) in enumerate(choices, start=1):
        mark = " *" if rid == current else ""
        _println(f"  {i}) {escape(text)}{mark}")
    pick = _prompt(f"{label} number [blank = keep]: ").strip()
    if not pick:
        return current
    if pick == "0":
        return ""
    if pick.isdigit() and 1 <= int(pick) <= len(choices):
        return choices[int(pick) - 1][0]
    _println("Out of range, keeping current value.")
    return current


def _fill_form(session: Session, form: ActiveForm) -> None:
    refs = REFERENCE_FIELDS[form.kind]
    for name in form.field_names():
        label = form.labels.get(name, name)
        current = getattr(form, name)
        if name in refs:
            setattr(form, name, _ask_reference(session, label, refs[name], current))
            continue
        hint = ("Y/n" if current else "y/N") if isinstance(current, bool) else current
        while True:
            raw = _prompt(f"{label} [{hint}]: ").strip()
            if not raw:
                break
            try:
                form.apply({name: raw})
            except FormError as exc:
                _println(f"[red]Invalid input:[/] {escape(str(exc))}")
                continue
            break


async def _flow_dialog(session: Session, dialog: DialogState) -> None:
    """
    Create/edit dialog. If the store rejected the write the dialog stays open
    and can be retried. A write that was accepted is never sent twice, even
    when the reload after it failed.
    """
    form = dialog.active_form
    _println(f"\n=== {escape(dialog.title)} ===")
    _fill_form(session, form)

    while dialog.is_open:
        try:
            ok = await session.orchestrator.submit(dialog)
        except FormError as exc:
            _println(f"[red]Invalid input:[/] {escape(str(exc))}")
            _fill_form(session, form)
            continue
        if ok:
            _println("Saved.")
            return
        error = session.orchestrator.last_error
        if not dialog.is_open:
            _println(f"[yellow]Saved, but reload failed:[/] {escape(str(error))}")
            return
        _println(f"[red]Save failed:[/] {escape(str(error))}")
        if not isinstance(error, RemoteWriteError):
            dialog.close()
            return
        again = _prompt("Retry? [Y/n]: ").strip().lower()
        if again == "n":
            dialog.close()


async def _flow_delete(session: Session) -> None:
    record = _pick_record(session, "delete")
    if record is None:
        return
    confirm = _prompt("Delete this entry? This cannot be undone. [y/N]: ").strip().lower()
    if confirm != "y":
        return
    if await session.orchestrator.confirm_delete(DeleteTarget(session.tab, record.record_id)):
        _println("Deleted.")
    else:
        _println(f"[red]Delete failed:[/] {escape(str(session.orchestrator.last_error))}")


async def _flow_toggle_paid(session: Session) -> None:
    if session.tab is not EntityKind.ENROLLMENT:
        session.tab = EntityKind.ENROLLMENT
        session.query = ""
    record = _pick_record(session, "toggle")
    if record is None:
        return
    if await session.orchestrator.toggle_paid(record):
        _println("Payment status updated.")
    else:
        _println(f"[red]Update failed:[/] {escape(str(session.orchestrator.last_error))}")
