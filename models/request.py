"""Datenmodell für Zusammen-/Trennungswünsche (Pydantic v2)."""

from enum import Enum

from pydantic import BaseModel, Field


class RequestKind(str, Enum):
    PAIR = "pair"
    SEPARATE = "separate"


class Request(BaseModel):
    """Symmetrischer Wunsch zwischen zwei Schülern (über den vollen Namen).

    Die Reihenfolge der beiden Namen ist für Vergleich und Duplikat-Erkennung
    ohne Bedeutung.
    """

    kind: RequestKind
    students: tuple[str, str]
    requested_by: str = "Import"

    def involves(self, name: str) -> bool:
        return name in self.students

    def partner_of(self, name: str) -> str:
        """Der jeweils andere Name (setzt voraus, dass `name` beteiligt ist)."""
        a, b = self.students
        return b if name == a else a

    def same_pair(self, a: str, b: str) -> bool:
        return {a, b} == set(self.students)


class RequestLedger(BaseModel):
    """Bereinigte Wunschliste: höchstens ein Eintrag pro Namenspaar und Art."""

    pairs: list[Request] = Field(default_factory=list)
    separations: list[Request] = Field(default_factory=list)

    def _bucket(self, kind: RequestKind) -> list[Request]:
        return self.pairs if kind == RequestKind.PAIR else self.separations

    def add(self, request: Request) -> bool:
        """Fügt einen Wunsch hinzu. False wenn das Paar schon erfasst ist."""
        bucket = self._bucket(request.kind)
        a, b = request.students
        if any(r.same_pair(a, b) for r in bucket):
            return False
        bucket.append(request)
        return True

    def separation_partners(self, name: str) -> set[str]:
        """Alle Namen, von denen `name` getrennt werden soll."""
        return {r.partner_of(name) for r in self.separations if r.involves(name)}

    def is_separated(self, a: str, b: str) -> bool:
        return any(r.same_pair(a, b) for r in self.separations)

    def is_paired(self, a: str, b: str) -> bool:
        return any(r.same_pair(a, b) for r in self.pairs)

    def __len__(self) -> int:
        return len(self.pairs) + len(self.separations)
