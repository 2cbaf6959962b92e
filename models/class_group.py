"""Datenmodell für eine gebildete Klasse inkl. Merkmals-Statistik (Pydantic v2)."""

from typing import Iterable, Optional

from pydantic import BaseModel, Field

from models.student import Category, StudentRecord


class ClassStatistics(BaseModel):
    """Anzahl Schüler pro Merkmalswert, getrennt nach den vier Kategorien."""

    academic: dict[str, int] = Field(default_factory=dict)
    behaviour: dict[str, int] = Field(default_factory=dict)
    gender: dict[str, int] = Field(default_factory=dict)
    existing_class: dict[str, int] = Field(default_factory=dict)

    def for_category(self, category: Category) -> dict[str, int]:
        return getattr(self, Category(category).value)

    def count(self, category: Category, value: str) -> int:
        return self.for_category(category).get(value, 0)

    def increment(self, student: StudentRecord) -> None:
        """Inkrementelles Update nach dem Hinzufügen eines Schülers."""
        for category in Category:
            counts = self.for_category(category)
            value = student.category_value(category)
            counts[value] = counts.get(value, 0) + 1

    @classmethod
    def from_students(cls, students: Iterable[StudentRecord]) -> "ClassStatistics":
        """Vollständige Neuberechnung aus einer Schülerliste."""
        stats = cls()
        for student in students:
            stats.increment(student)
        return stats


class ClassGroup(BaseModel):
    """Eine Klasse: geordnete Schülerliste + Statistik.

    Die Reihenfolge entspricht der Platzierungsreihenfolge, nicht der Anzeige.
    Die Statistik muss immer exakt zur Schülerliste passen: wer `students`
    direkt verändert, ruft danach `recompute_stats()` auf.
    """

    students: list[StudentRecord] = Field(default_factory=list)
    stats: ClassStatistics = Field(default_factory=ClassStatistics)

    @property
    def size(self) -> int:
        return len(self.students)

    def student_ids(self) -> list[str]:
        return [s.id for s in self.students]

    def add_student(self, student: StudentRecord) -> None:
        self.students.append(student)
        self.stats.increment(student)

    def recompute_stats(self) -> None:
        self.stats = ClassStatistics.from_students(self.students)

    def remove_student(self, student_id: str) -> Optional[StudentRecord]:
        """Entfernt einen Schüler aus der Liste (ohne Statistik-Update)."""
        for i, s in enumerate(self.students):
            if s.id == student_id:
                return self.students.pop(i)
        return None

    def insert_student(self, student: StudentRecord, index: int) -> int:
        """Fügt an Position `index` ein (auf gültige Grenzen begrenzt).

        Gibt die tatsächlich verwendete Position zurück. Ohne Statistik-Update.
        """
        index = max(0, min(index, len(self.students)))
        self.students.insert(index, student)
        return index

    def is_consistent(self) -> bool:
        """True wenn die Statistik einer Neuberechnung entspricht."""
        return self.stats == ClassStatistics.from_students(self.students)
