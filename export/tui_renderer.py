"""Terminal-Darstellung der gebildeten Klassen (Rich).

Wird von `generate` und vom interaktiven Umsetzen verwendet.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rich.table import Table
    from models.class_group import ClassGroup
    from models.request import RequestLedger

_MARKERS = {
    "pair": "[green]♥[/green]",
    "separate": "[red]✗[/red]",
}


def render_class_rows(
    cls: "ClassGroup", ledger: "RequestLedger"
) -> list[list[str]]:
    """Tabellenzeilen einer Klasse, nach Nachname sortiert.

    Jede Zeile: [Nr, Name (+ Markierung), alte Klasse, Leistung, Verhalten, ID]
    """
    from export.helpers import pair_highlight, sorted_for_display

    rows: list[list[str]] = []
    for n, s in enumerate(sorted_for_display(cls.students), 1):
        marker = _MARKERS.get(pair_highlight(s, cls, ledger) or "", "")
        name = f"{s.full_name} {marker}".rstrip()
        rows.append([str(n), name, s.existing_class, s.academic, s.behaviour, s.id])
    return rows


def render_stats_footer(cls: "ClassGroup") -> str:
    """Einzeilige Statistik einer Klasse ("Gender: Female 5, Male 5 | ...")."""
    from models.student import Category

    labels = {
        Category.GENDER: "Geschlecht",
        Category.ACADEMIC: "Leistung",
        Category.BEHAVIOUR: "Verhalten",
    }
    parts = []
    for category, label in labels.items():
        counts = cls.stats.for_category(category)
        values = ", ".join(f"{v} {n}" for v, n in sorted(counts.items()))
        parts.append(f"{label}: {values or '–'}")
    return " | ".join(parts)


def render_group_tables(
    group_name: str, classes: list["ClassGroup"], ledger: "RequestLedger"
) -> list["Table"]:
    """Eine Rich-Tabelle pro Klasse einer Gruppe."""
    from rich.table import Table
    from rich import box

    tables = []
    for idx, cls in enumerate(classes):
        table = Table(
            title=f"{group_name} – Klasse {idx + 1} ({cls.size} Schüler)",
            caption=render_stats_footer(cls),
            box=box.ROUNDED,
        )
        table.add_column("#", justify="right", width=3)
        table.add_column("Name", min_width=20)
        table.add_column("Alt", width=6)
        table.add_column("Leistung", width=9)
        table.add_column("Verhalten", width=13)
        table.add_column("ID", style="dim", width=6)
        for row in render_class_rows(cls, ledger):
            table.add_row(*row)
        tables.append(table)
    return tables
