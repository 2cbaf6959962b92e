"""Ergebnis-Modelle eines Generierungslaufs (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, Field

from config.schema import AppConfig
from models.class_group import ClassGroup
from models.request import RequestLedger
from models.student import StudentRecord


# Gruppenname → geordnete Klassenliste ("Straight Year 8", "Composite 6/7")
GeneratedClasses = dict[str, list[ClassGroup]]


class FallbackEvent(BaseModel):
    """Notplatzierung: keine Klasse war regulär zulässig.

    Der Schüler wurde trotz Trennungswunsch in die erste Klasse mit freiem
    Platz gesetzt.
    """

    student_id: str
    student_name: str
    group_name: Optional[str] = None  # wird vom Generator ergänzt
    class_index: int
    conflicting_names: list[str] = Field(default_factory=list)


class UnseededPair(BaseModel):
    """Zusammen-Wunsch, der nicht vorab gemeinsam platziert werden konnte."""

    students: tuple[str, str]
    group_name: Optional[str] = None
    reason: str


class GenerationResult(BaseModel):
    """Vollständiges Ergebnis der Klassenbildung."""

    classes: GeneratedClasses = Field(default_factory=dict)
    ledger: RequestLedger = Field(default_factory=RequestLedger)
    unplaced_ids: list[str] = Field(default_factory=list)   # Platzierung erschöpft
    excluded_ids: list[str] = Field(default_factory=list)   # Jahrgang nicht ausgewählt
    fallback_events: list[FallbackEvent] = Field(default_factory=list)
    unseeded_pairs: list[UnseededPair] = Field(default_factory=list)
    seed: Optional[int] = None
    generate_time_seconds: float = 0.0
    config_snapshot: Optional[AppConfig] = None

    @property
    def is_empty(self) -> bool:
        return not self.classes

    @property
    def total_placed(self) -> int:
        return sum(c.size for c in self.all_classes())

    def all_classes(self) -> list[ClassGroup]:
        """Alle Klassen über alle Gruppen, in Gruppen-Reihenfolge."""
        return [cls for classes in self.classes.values() for cls in classes]

    def find_student(self, student_id: str) -> Optional[StudentRecord]:
        for cls in self.all_classes():
            for s in cls.students:
                if s.id == student_id:
                    return s
        return None

    def fallback_student_ids(self) -> set[str]:
        return {e.student_id for e in self.fallback_events}

    def summary(self) -> str:
        """Kurze Textübersicht über das Ergebnis."""
        if self.is_empty:
            return "Keine Klassen generiert."
        lines = []
        for group_name, classes in self.classes.items():
            sizes = ", ".join(str(c.size) for c in classes)
            lines.append(f"{group_name}: {len(classes)} Klassen ({sizes})")
        lines.append(f"Platziert: {self.total_placed}")
        if self.unplaced_ids:
            lines.append(f"Nicht platziert: {len(self.unplaced_ids)}")
        if self.excluded_ids:
            lines.append(f"Ausgeschlossen (Jahrgang): {len(self.excluded_ids)}")
        if self.fallback_events:
            lines.append(f"Notplatzierungen: {len(self.fallback_events)}")
        if self.unseeded_pairs:
            lines.append(f"Nicht vorab platzierte Paare: {len(self.unseeded_pairs)}")
        return "\n".join(lines)
