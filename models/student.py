"""Datenmodell für einen Schülerdatensatz (Pydantic v2)."""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from config.defaults import RANKING_ALIASES, UNKNOWN


class Category(str, Enum):
    """Die vier ausgeglichenen Merkmale einer Klasse."""

    ACADEMIC = "academic"
    BEHAVIOUR = "behaviour"
    GENDER = "gender"
    EXISTING_CLASS = "existing_class"


_YEAR_RE = re.compile(r"\d+")


def normalize_ranking(raw) -> str:
    """Normalisiert flexible Einstufungen ("1", "low", "below" → "Low").

    Unbekannte Werte werden mit großem Anfangsbuchstaben übernommen.
    """
    val = str(raw if raw is not None else "").strip().lower()
    if val == "":
        return UNKNOWN
    if val in RANKING_ALIASES:
        return RANKING_ALIASES[val]
    return val[0].upper() + val[1:]


def year_of(existing_class: str) -> Optional[str]:
    """Jahrgang aus der Klassenbezeichnung ("7A" → "7", "Kl. 10b" → "10")."""
    match = _YEAR_RE.search(existing_class or "")
    return match.group(0) if match else None


class StudentRecord(BaseModel):
    """Ein Schüler. Unveränderlich; die id bleibt über den ganzen Lauf stabil."""

    model_config = ConfigDict(frozen=True)

    id: str                         # "S0001"
    first_name: str = ""
    surname: str = ""
    existing_class: str = UNKNOWN   # bisherige Klasse, z.B. "7A"
    gender: str = UNKNOWN
    academic: str = UNKNOWN         # Low / Average / High / Unknown
    behaviour: str = UNKNOWN        # Needs Support / Good / Excellent / ...
    request_pair: str = ""          # Freitext: "mit wem zusammen"
    request_separate: str = ""      # Freitext: "von wem trennen"
    display_name: Optional[str] = None  # Ersatzname wenn Vor-/Nachname fehlen

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.surname}".strip()
        return name or self.display_name or self.id

    @property
    def year(self) -> Optional[str]:
        return year_of(self.existing_class)

    def category_value(self, category: Category) -> str:
        """Wert des Schülers in einer Kategorie; leer → "Unknown"."""
        value = getattr(self, Category(category).value)
        return value or UNKNOWN
