"""Testdaten-Generator für die Klassenbildung.

Erzeugt realistische Schülerlisten mit den typischen Eigenheiten echter
Importdaten:
  1. Verteilung der Einstufungen nicht gleichmäßig (mehr "Average"/"Good")
  2. Einstufungen teils als Zahl ("1"–"3") oder Kleinschreibung erfasst
  3. Wünsche als Teilnamen ("Lena K") oder mehrere Namen ("A, B & C")
  4. Einzelne Wünsche verweisen auf niemanden (Tippfehler, Schulwechsel)
"""

import csv
import random
import string
from pathlib import Path
from typing import Optional

from config.defaults import IMPORT_COLUMNS
from models.student import StudentRecord, normalize_ranking

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES_M = [
    "Ben", "Elias", "Felix", "Finn", "Jonas", "Leon", "Luca", "Luis",
    "Maximilian", "Noah", "Paul", "Emil", "Henry", "Theo", "Anton",
    "Jakob", "Moritz", "David", "Samuel", "Yusuf", "Milan", "Oskar",
]

_FIRST_NAMES_F = [
    "Emma", "Hannah", "Lea", "Lena", "Mia", "Sophia", "Emilia", "Clara",
    "Marie", "Lina", "Ella", "Frieda", "Ida", "Leni", "Mila", "Nele",
    "Paula", "Greta", "Amelie", "Zoe", "Helena", "Aylin",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Schäfer", "Koch",
    "Bauer", "Richter", "Klein", "Wolf", "Schröder", "Neumann",
    "Schwarz", "Zimmermann", "Braun", "Krüger", "Hofmann", "Hartmann",
    "Lange", "Schmitt", "Werner", "Krause", "Meier", "Lehmann",
    "Köhler", "Herrmann", "Kaiser", "Fuchs", "Berger", "Roth",
    "Frank", "Engel", "Huber", "Vogel", "Beck", "Yilmaz",
]

# (Wert, Gewicht) – Rohwerte wie sie in echten Listen vorkommen
_ACADEMIC_VALUES: list[tuple[str, int]] = [
    ("High", 5), ("Average", 9), ("Low", 4),
    ("3", 1), ("2", 2), ("1", 1), ("above", 1), ("below", 1),
]
_BEHAVIOUR_VALUES: list[tuple[str, int]] = [
    ("Excellent", 4), ("Good", 12), ("Needs Support", 3), ("needs support", 1),
]

_PAIR_RATE = 0.12
_SEPARATE_RATE = 0.08
_DANGLING_RATE = 0.02


def _weighted(rng: random.Random, values: list[tuple[str, int]]) -> str:
    return rng.choices([v for v, _ in values], weights=[w for _, w in values])[0]


class FakeStudentGenerator:
    """Generiert Schülerlisten für einen oder mehrere Jahrgänge.

    Verwendung:
        gen = FakeStudentGenerator(["7", "8"], students_per_year=90, seed=42)
        students = gen.generate()
        gen.save(Path("schueler.csv"), students)
    """

    def __init__(
        self,
        year_levels: list[str],
        students_per_year: int = 90,
        classes_per_year: int = 3,
        seed: Optional[int] = None,
    ) -> None:
        self.year_levels = year_levels
        self.students_per_year = students_per_year
        self.classes_per_year = max(1, classes_per_year)
        self.rng = random.Random(seed)
        self._used_names: set[tuple[str, str]] = set()

    # ─── Schüler ──────────────────────────────────────────────────────────────

    def _unique_name(self, gender: str) -> tuple[str, str]:
        pool = _FIRST_NAMES_F if gender == "Female" else _FIRST_NAMES_M
        for _ in range(200):
            name = (self.rng.choice(pool), self.rng.choice(_LAST_NAMES))
            if name not in self._used_names:
                self._used_names.add(name)
                return name
        # Namensraum erschöpft: Nachname mit Zusatz
        first = self.rng.choice(pool)
        surname = f"{self.rng.choice(_LAST_NAMES)}-{len(self._used_names)}"
        self._used_names.add((first, surname))
        return first, surname

    def _make_student(self, index: int, year: str) -> StudentRecord:
        gender = self.rng.choice(["Female", "Male"])
        first, surname = self._unique_name(gender)
        letter = string.ascii_uppercase[self.rng.randrange(self.classes_per_year)]
        return StudentRecord(
            id=f"S{index:04d}",
            first_name=first,
            surname=surname,
            existing_class=f"{year}{letter}",
            gender=gender,
            academic=normalize_ranking(_weighted(self.rng, _ACADEMIC_VALUES)),
            behaviour=normalize_ranking(_weighted(self.rng, _BEHAVIOUR_VALUES)),
        )

    # ─── Wünsche ──────────────────────────────────────────────────────────────

    def _reference(self, student: StudentRecord) -> str:
        """Voller Name oder Teilname ("Lena K") eines Mitschülers."""
        if self.rng.random() < 0.5:
            return f"{student.first_name} {student.surname[0]}"
        return student.full_name

    def _add_requests(self, students: list[StudentRecord]) -> list[StudentRecord]:
        by_year: dict[str, list[StudentRecord]] = {}
        for s in students:
            by_year.setdefault(s.year or "", []).append(s)

        result = []
        for s in students:
            mates = [m for m in by_year[s.year or ""] if m.id != s.id]
            if not mates:
                result.append(s)
                continue
            pair, separate = "", ""
            if self.rng.random() < _PAIR_RATE:
                pair = self._reference(self.rng.choice(mates))
            if self.rng.random() < _SEPARATE_RATE:
                names = [self._reference(m) for m in self.rng.sample(mates, min(2, len(mates)))]
                if len(names) > 1 and self.rng.random() < 0.3:
                    separate = " & ".join(names)
                else:
                    separate = names[0]
            if self.rng.random() < _DANGLING_RATE:
                pair = ", ".join(filter(None, [pair, "Unbekannt Niemand"]))
            result.append(s.model_copy(update={
                "request_pair": pair,
                "request_separate": separate,
            }))
        return result

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def generate(self) -> list[StudentRecord]:
        """Erzeugt alle Schüler aller Jahrgänge (ids fortlaufend ab S0001)."""
        students = []
        index = 1
        for year in self.year_levels:
            for _ in range(self.students_per_year):
                students.append(self._make_student(index, year))
                index += 1
        return self._add_requests(students)

    def save(self, path: Path, students: list[StudentRecord]) -> None:
        """Schreibt die Schüler im Importformat (.xlsx oder CSV)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = [
            [s.existing_class, s.surname, s.first_name, s.gender,
             s.academic, s.behaviour, s.request_pair, s.request_separate]
            for s in students
        ]

        if path.suffix.lower() == ".xlsx":
            import openpyxl
            from openpyxl.styles import Font

            wb = openpyxl.Workbook()
            ws = wb.active
            ws.title = "Schüler"
            ws.append(IMPORT_COLUMNS)
            for cell in ws[1]:
                cell.font = Font(bold=True)
            for row in rows:
                ws.append(row)
            wb.save(str(path))
            return

        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(IMPORT_COLUMNS)
            writer.writerows(rows)

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, students: list[StudentRecord]) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Jahrgang", style="bold cyan")
        table.add_column("Schüler", justify="right")
        table.add_column("Zusammen", justify="right")
        table.add_column("Trennen", justify="right")

        for year in self.year_levels:
            group = [s for s in students if s.year == year]
            table.add_row(
                year,
                str(len(group)),
                str(sum(1 for s in group if s.request_pair)),
                str(sum(1 for s in group if s.request_separate)),
            )
        console.print(table)
