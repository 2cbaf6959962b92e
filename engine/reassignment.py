"""Manuelles Umsetzen von Schülern nach der Generierung.

Ein Move ist eine vertrauenswürdige Direktmanipulation: weder Kapazität noch
Trennungswünsche werden geprüft, und es wird nicht neu balanciert. Nach jedem
Move werden die Statistiken von Quell- UND Zielklasse neu berechnet.
Verletzungen zeigt anschließend der ResultValidator.
"""

import logging

from models.class_group import ClassGroup
from models.generation import GeneratedClasses
from models.student import StudentRecord

logger = logging.getLogger(__name__)


class ReassignmentError(Exception):
    """Ungültige Gruppe, Klasse oder Schüler-ID beim Umsetzen."""


def move_student(
    source: ClassGroup, dest: ClassGroup, student_id: str, destination_index: int
) -> StudentRecord:
    """Setzt einen Schüler von `source` nach `dest` an Position `destination_index`.

    Funktioniert auch innerhalb derselben Klasse (Umsortieren).
    """
    student = source.remove_student(student_id)
    if student is None:
        raise ReassignmentError(
            f"Schüler {student_id} ist nicht in der Quellklasse."
        )
    dest.insert_student(student, destination_index)
    source.recompute_stats()
    dest.recompute_stats()
    return student


class ReassignmentHandler:
    """Wendet Moves auf die GeneratedClasses-Struktur an (in-place).

    Hält einen Index Schüler-ID → (Gruppe, Klassen-Index) für schnelles
    Auffinden; der Index wird bei jedem Move aktualisiert.
    """

    def __init__(self, classes: GeneratedClasses) -> None:
        self.classes = classes
        self._index: dict[str, tuple[str, int]] = {}
        self.rebuild_index()

    def rebuild_index(self) -> None:
        self._index = {
            s.id: (group_name, class_idx)
            for group_name, group in self.classes.items()
            for class_idx, cls in enumerate(group)
            for s in cls.students
        }

    def locate(self, student_id: str) -> tuple[str, int]:
        """(Gruppenname, Klassen-Index) eines Schülers."""
        try:
            return self._index[student_id]
        except KeyError:
            raise ReassignmentError(
                f"Schüler {student_id} ist keiner Klasse zugeordnet."
            ) from None

    def get_class(self, group_name: str, class_index: int) -> ClassGroup:
        group = self.classes.get(group_name)
        if group is None:
            raise ReassignmentError(
                f"Gruppe '{group_name}' existiert nicht. "
                f"Verfügbar: {list(self.classes)}"
            )
        if not 0 <= class_index < len(group):
            raise ReassignmentError(
                f"Gruppe '{group_name}' hat keine Klasse {class_index + 1} "
                f"(1–{len(group)})."
            )
        return group[class_index]

    def move(
        self,
        source_group: str,
        source_class_index: int,
        dest_group: str,
        dest_class_index: int,
        student_id: str,
        destination_index: int,
    ) -> StudentRecord:
        """Schnittstelle für die Oberfläche (Drag & Drop)."""
        source = self.get_class(source_group, source_class_index)
        dest = self.get_class(dest_group, dest_class_index)
        student = move_student(source, dest, student_id, destination_index)
        self._index[student_id] = (dest_group, dest_class_index)
        logger.info(
            f"Umgesetzt: {student.full_name} von {source_group} "
            f"Klasse {source_class_index + 1} nach {dest_group} "
            f"Klasse {dest_class_index + 1}"
        )
        return student

    def move_to(
        self,
        student_id: str,
        dest_group: str,
        dest_class_index: int,
        destination_index: int | None = None,
    ) -> StudentRecord:
        """Move ohne Quellangabe; ohne Position ans Ende der Zielklasse."""
        source_group, source_class_index = self.locate(student_id)
        if destination_index is None:
            destination_index = self.get_class(dest_group, dest_class_index).size
        return self.move(
            source_group, source_class_index,
            dest_group, dest_class_index,
            student_id, destination_index,
        )
