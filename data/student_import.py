"""Schülerlisten-Import und Vorlagen-Generator.

Formate:
  - .xlsx        erstes Tabellenblatt, erste Zeile = Header
  - .csv         Komma-getrennt, erste Zeile = Header
  - .tsv / .txt  Tab-getrennt wie aus einer Tabellenkalkulation kopiert,
                 mit oder ohne Header (ohne: feste Spaltenreihenfolge)
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, Optional

from config.defaults import (
    IMPORT_COLUMNS,
    IMPORT_HEADER_ALIASES,
    TEMPLATE_EXAMPLE_ROWS,
    UNKNOWN,
)
from models.student import StudentRecord, normalize_ranking

logger = logging.getLogger(__name__)


class StudentImportError(Exception):
    """Fehler beim Import einer Schülerliste."""


# Feldnamen in der Reihenfolge von IMPORT_COLUMNS
_POSITIONAL_FIELDS = [IMPORT_HEADER_ALIASES[c.lower()] for c in IMPORT_COLUMNS]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # openpyxl liefert "2" in numerischen Zellen als 2.0
        value = int(value)
    return str(value).strip()


def _map_headers(headers: Iterable) -> list[Optional[str]]:
    """Header-Zeile → Feldnamen (None für unbekannte Spalten)."""
    return [IMPORT_HEADER_ALIASES.get(_cell(h).lower()) for h in headers]


def _looks_like_header(row: list[str]) -> bool:
    mapped = _map_headers(row)
    return "surname" in mapped or "existing_class" in mapped


# ─── PARSING ──────────────────────────────────────────────────────────────────

def parse_student_rows(rows: list[dict[str, str]]) -> list[StudentRecord]:
    """Dicts (Feldname → Rohwert) → StudentRecords mit Defaults.

    Defaults: Leistung "Average", Verhalten "Good", Klasse/Geschlecht
    "Unknown". Ohne Namen heißt ein Schüler "Student {n}" (n = Zeilennummer
    ab 1). Komplett leere Zeilen werden übersprungen.
    """
    students: list[StudentRecord] = []
    for index, row in enumerate(rows):
        values = {k: _cell(v) for k, v in row.items() if k}
        if not any(values.values()):
            continue
        first = values.get("first_name", "")
        surname = values.get("surname", "")
        students.append(StudentRecord(
            id=f"S{len(students) + 1:04d}",
            first_name=first,
            surname=surname,
            display_name=None if (first or surname) else f"Student {index + 1}",
            existing_class=values.get("existing_class") or UNKNOWN,
            gender=values.get("gender") or UNKNOWN,
            academic=normalize_ranking(values.get("academic") or "Average"),
            behaviour=normalize_ranking(values.get("behaviour") or "Good"),
            request_pair=values.get("request_pair", ""),
            request_separate=values.get("request_separate", ""),
        ))
    return students


def _rows_from_table(table: list[list]) -> list[dict[str, str]]:
    """Tabelle mit Header-Zeile → Liste von Feld-Dicts."""
    if not table:
        return []
    fields = _map_headers(table[0])
    if not any(fields):
        raise StudentImportError(
            "Keine bekannte Spalte in der Kopfzeile gefunden. "
            f"Erwartet z.B.: {', '.join(IMPORT_COLUMNS)}"
        )
    return [
        {f: v for f, v in zip(fields, row) if f}
        for row in table[1:]
    ]


def parse_pasted_text(text: str) -> list[StudentRecord]:
    """Tab-getrennter Text (aus Excel kopiert) → StudentRecords.

    Ist die erste Zeile ein Header, wird nach Spaltennamen zugeordnet,
    sonst nach der festen Reihenfolge Class, Surname, First Name, ...
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []
    table = [line.split("\t") for line in lines]
    if _looks_like_header(table[0]):
        rows = _rows_from_table(table)
    else:
        rows = [dict(zip(_POSITIONAL_FIELDS, line)) for line in table]
    return parse_student_rows(rows)


# ─── DATEI-IMPORT ─────────────────────────────────────────────────────────────

def _read_xlsx(path: Path) -> list[list]:
    import openpyxl

    try:
        wb = openpyxl.load_workbook(str(path), read_only=True, data_only=True)
    except Exception as e:
        raise StudentImportError(f"Fehler beim Öffnen der Excel-Datei: {e}") from e
    try:
        ws = wb.worksheets[0]
        return [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def _read_csv(path: Path) -> list[list]:
    try:
        with open(path, encoding="utf-8-sig", newline="") as f:
            return [row for row in csv.reader(f)]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise StudentImportError(f"Fehler beim Lesen der CSV-Datei: {e}") from e


def load_students(path: Path) -> list[StudentRecord]:
    """Lädt eine Schülerliste aus .xlsx, .csv oder .tsv/.txt.

    Raises:
        StudentImportError: Datei fehlt, ist unlesbar oder hat ein
            unbekanntes Format.
    """
    path = Path(path)
    if not path.exists():
        raise StudentImportError(f"Datei nicht gefunden: {path}")

    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        students = parse_student_rows(_rows_from_table(_read_xlsx(path)))
    elif suffix == ".csv":
        students = parse_student_rows(_rows_from_table(_read_csv(path)))
    elif suffix in (".tsv", ".txt"):
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise StudentImportError(f"Fehler beim Lesen von {path}: {e}") from e
        students = parse_pasted_text(text)
    else:
        raise StudentImportError(
            f"Unbekanntes Dateiformat: {path}. Erwartet: .xlsx, .csv, .tsv oder .txt."
        )

    logger.info(f"{len(students)} Schüler aus {path.name} importiert")
    return students


# ─── VORLAGE ──────────────────────────────────────────────────────────────────

def generate_template(path: Path) -> None:
    """Schreibt eine Import-Vorlage mit drei Beispielzeilen.

    .xlsx → formatierte Excel-Vorlage, sonst CSV.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() != ".xlsx":
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(IMPORT_COLUMNS)
            writer.writerows(TEMPLATE_EXAMPLE_ROWS)
        return

    import openpyxl
    from openpyxl.styles import Alignment, Font, PatternFill
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Schüler"

    hdr_font = Font(bold=True, color="FFFFFF", size=11)
    hdr_fill = PatternFill("solid", fgColor="2E6DA4")
    ex_font = Font(italic=True, color="888888")

    for col, header in enumerate(IMPORT_COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = hdr_font
        cell.fill = hdr_fill
        cell.alignment = Alignment(horizontal="center")
        ws.column_dimensions[get_column_letter(col)].width = 18

    for r, values in enumerate(TEMPLATE_EXAMPLE_ROWS, 2):
        for col, val in enumerate(values, 1):
            ws.cell(row=r, column=col, value=val).font = ex_font

    ws.freeze_panes = "A2"
    wb.save(str(path))
