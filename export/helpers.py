"""Gemeinsame Hilfsfunktionen für Excel- und Terminal-Export."""

import re
from typing import Literal, Optional

from models.class_group import ClassGroup
from models.request import RequestLedger
from models.student import StudentRecord

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "pair":      "C7EFCF",   # Zusammen-Wunsch erfüllt
    "separate":  "FFC7CE",   # Trennungswunsch verletzt
    "header":    "4472C4",
    "subheader": "D6E4F0",
}

Highlight = Literal["pair", "separate"]

# Zeichen, die Excel in Blattnamen nicht erlaubt
_SHEET_TITLE_INVALID = re.compile(r"[\\/*?:\[\]]")
_SHEET_TITLE_MAX = 31


# ─── Markierungen ─────────────────────────────────────────────────────────────

def pair_highlight(
    student: StudentRecord, class_group: ClassGroup, ledger: RequestLedger
) -> Optional[Highlight]:
    """Markierung eines Schülers innerhalb seiner Klasse.

    "separate" wenn ein Trennungspartner in derselben Klasse sitzt (hat
    Vorrang), "pair" wenn ein Zusammen-Partner dabei ist, sonst None.
    """
    name = student.full_name
    others = {s.full_name for s in class_group.students if s.full_name != name}
    if any(ledger.is_separated(name, o) for o in others):
        return "separate"
    if any(ledger.is_paired(name, o) for o in others):
        return "pair"
    return None


# ─── Sortierung / Namen ───────────────────────────────────────────────────────

def sorted_for_display(students: list[StudentRecord]) -> list[StudentRecord]:
    """Nach Nachname sortierte Kopie (die gespeicherte Reihenfolge bleibt)."""
    return sorted(students, key=lambda s: (s.surname.lower(), s.first_name.lower()))


def sheet_title(name: str, used: set[str]) -> str:
    """Gültiger, eindeutiger Excel-Blattname (max. 31 Zeichen)."""
    base = _SHEET_TITLE_INVALID.sub("-", name).strip() or "Klassen"
    base = base[:_SHEET_TITLE_MAX]
    title = base
    n = 2
    while title.lower() in {u.lower() for u in used}:
        suffix = f" ({n})"
        title = base[: _SHEET_TITLE_MAX - len(suffix)] + suffix
        n += 1
    used.add(title)
    return title
