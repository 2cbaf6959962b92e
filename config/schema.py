from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional


# ─── KLASSENGRÖSSE ───

class ClassSizeRange(BaseModel):
    """Erlaubte Klassengröße (gilt für alle Klassen).

    Nur `max` ist eine harte Grenze für den Balancer. `min` ist ein Richtwert,
    der im Machbarkeits-Check und im Balance-Report auftaucht.
    """
    # Richtwert: Mindestgröße einer Klasse
    min: int = Field(20, ge=1, description="Mindestgröße (Richtwert)")
    # Harte Obergrenze: keine Klasse wird vom Balancer darüber befüllt
    max: int = Field(30, ge=1, description="Maximalgröße (harte Grenze)")

    @model_validator(mode='after')
    def validate_bounds(self):
        if self.min > self.max:
            raise ValueError(
                f"Mindestgröße ({self.min}) > Maximalgröße ({self.max})")
        return self


# ─── KLASSENBILDUNG ───

class GenerationConfig(BaseModel):
    """Parameter eines Generierungslaufs.

    Beispiel: 6 Klassen gesamt, davon 1 Mischklasse → 5 Jahrgangsklassen
    (proportional auf die Jahrgänge verteilt) + 1 Mischklasse aus den Resten.

    Widersprüchliche Werte (Mischklassen > Gesamtklassen, 0 Klassen) sind
    KEIN Validierungsfehler: der Generator liefert dann ein leeres Ergebnis.
    """
    # Jahrgangs-Bezeichner, z.B. ["7"] oder ["5", "6"]
    year_levels: list[str] = Field(
        default=["7"],
        description="Jahrgänge, aus denen Klassen gebildet werden")
    # Gesamtzahl der zu bildenden Klassen
    total_classes: int = Field(0, ge=0,
        description="Gesamtzahl Klassen")
    # Davon Mischklassen (jahrgangsübergreifend, aus den Resten)
    composite_classes: int = Field(0, ge=0,
        description="Anzahl Mischklassen")
    # Klassengröße (min = Richtwert, max = hart)
    class_size: ClassSizeRange = Field(default_factory=ClassSizeRange)

    @field_validator("year_levels", mode="before")
    @classmethod
    def normalize_year_levels(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        # Doppelte Jahrgänge entfernen, Reihenfolge bleibt
        labels = [str(y).strip() for y in v if str(y).strip()]
        return list(dict.fromkeys(labels))

    @property
    def straight_classes(self) -> int:
        """Anzahl Jahrgangsklassen (kann bei widersprüchlicher Config < 0 sein)."""
        return self.total_classes - self.composite_classes

    @property
    def is_degenerate(self) -> bool:
        """True wenn es nichts zu generieren gibt."""
        return (
            self.total_classes <= 0
            or self.composite_classes > self.total_classes
            or not self.year_levels
        )


# ─── GEWICHTE ───

class BalancingWeights(BaseModel):
    """Gewichte der Kostenfunktion. Höher = stärker ausgeglichen."""
    # Leistungsniveau
    academic: float = Field(3.0, ge=0,
        description="Gewicht: Leistungsniveau ausgleichen")
    # Verhalten
    behaviour: float = Field(3.0, ge=0,
        description="Gewicht: Verhalten ausgleichen")
    # Geschlecht
    gender: float = Field(2.0, ge=0,
        description="Gewicht: Geschlechterverteilung ausgleichen")
    # Herkunftsklasse (Durchmischung)
    existing_class: float = Field(1.0, ge=0,
        description="Gewicht: Herkunftsklassen mischen")
    # Tie-Breaker: kleinere Klassen bevorzugen
    class_size: float = Field(0.1, ge=0,
        description="Gewicht: aktuelle Klassengröße (Tie-Breaker)")


# ─── ZUFALL ───

class RandomConfig(BaseModel):
    """Zufallsquelle für Mischen und Tie-Breaking."""
    # None = nicht-deterministisch; fester Wert = reproduzierbar
    seed: Optional[int] = Field(None,
        description="Zufalls-Seed (leer = nicht-deterministisch)")


# ─── GESAMT-CONFIG ───

class AppConfig(BaseModel):
    """Gesamtkonfiguration der Klassenbildung."""
    # Name der Schule (nur Anzeige)
    school_name: str = Field("Musterschule",
        description="Name der Schule")
    # Parameter der Klassenbildung
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    # Gewichte der Kostenfunktion
    weights: BalancingWeights = Field(default_factory=BalancingWeights)
    # Zufallsquelle
    random: RandomConfig = Field(default_factory=RandomConfig)
