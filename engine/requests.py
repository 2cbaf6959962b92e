"""Auflösung der Freitext-Wünsche ("Request: Pair" / "Request: Separate").

Jeder Wunschtext wird an Komma, Semikolon und "&" zerlegt. Jedes Fragment
wird über den Namen einem Schüler zugeordnet:
  1. exakter Vollname (case-insensitive)
  2. Vollname beginnt mit dem Fragment ("John D" → "John Doe");
     bei mehreren Treffern gewinnt der erste in Eingabe-Reihenfolge

Nicht auflösbare Fragmente und Selbstbezüge werden stillschweigend verworfen:
Freitext ist erfahrungsgemäß verrauscht.
"""

import logging
import re
from typing import Optional

from models.request import Request, RequestKind, RequestLedger
from models.student import StudentRecord

logger = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"[,;&]")


def split_request_text(text: str) -> list[str]:
    """'Jane S, Tom & Ali' → ['Jane S', 'Tom', 'Ali']"""
    if not text:
        return []
    return [part.strip() for part in _SPLIT_RE.split(text) if part.strip()]


def find_student_by_name(
    fragment: str, students: list[StudentRecord]
) -> Optional[StudentRecord]:
    """Findet einen Schüler über einen (Teil-)Namen. None wenn kein Treffer."""
    needle = (fragment or "").strip().lower()
    if not needle:
        return None
    for s in students:
        if s.full_name.lower() == needle:
            return s
    for s in students:
        if s.full_name.lower().startswith(needle):
            return s
    return None


def resolve_requests(students: list[StudentRecord]) -> RequestLedger:
    """Baut aus den Freitext-Feldern aller Schüler die bereinigte Wunschliste.

    Reine Funktion über der Schülerliste. A→B und B→A ergeben einen Eintrag.
    """
    ledger = RequestLedger()
    dropped = 0

    for student in students:
        for kind, text in (
            (RequestKind.PAIR, student.request_pair),
            (RequestKind.SEPARATE, student.request_separate),
        ):
            for fragment in split_request_text(text):
                target = find_student_by_name(fragment, students)
                if target is None or target.full_name == student.full_name:
                    dropped += 1
                    continue
                ledger.add(Request(
                    kind=kind,
                    students=(student.full_name, target.full_name),
                ))

    logger.info(
        f"Wünsche aufgelöst: {len(ledger.pairs)} Zusammen, "
        f"{len(ledger.separations)} Trennen, {dropped} verworfen"
    )
    return ledger
