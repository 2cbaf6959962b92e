"""Aufteilung der Schülerschaft in Jahrgangs-Pools und Mischklassen-Rest.

Ablauf:
  - Population = alle Schüler, deren Jahrgang (erste Ziffernfolge der
    Klassenbezeichnung) zu den gewählten Jahrgängen gehört
  - Jahrgangs-Pool = alle Schüler, deren Klasse mit dem Jahrgang beginnt
  - Jahrgangsklassen werden proportional zur Poolgröße verteilt; der letzte
    Jahrgang mit Schülern erhält den Rundungsrest
  - Mischklassen-Pool = alles, was nach den Jahrgangsläufen übrig ist
"""

import logging
import math

from pydantic import BaseModel, Field

from config.schema import GenerationConfig
from models.student import StudentRecord

logger = logging.getLogger(__name__)


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def apportion_classes(counts: dict[str, int], num_straight: int) -> dict[str, int]:
    """Verteilt `num_straight` Klassen proportional auf die Jahrgänge.

    Jahrgänge ohne Schüler erhalten 0 Klassen. Der letzte Jahrgang mit
    Schülern erhält `num_straight − bisher vergeben`, negativ → 0.
    """
    allocations = {year: 0 for year in counts}
    total = sum(counts.values())
    if total <= 0 or num_straight <= 0:
        return allocations

    populated = [year for year, n in counts.items() if n > 0]
    allocated = 0
    for year in populated[:-1]:
        n = _round_half_up(counts[year] / total * num_straight)
        allocations[year] = n
        allocated += n
    allocations[populated[-1]] = max(0, num_straight - allocated)
    return allocations


class PartitionPlan(BaseModel):
    """Ergebnis der Aufteilung, Eingabe für die Balancing-Läufe."""

    year_levels: list[str]
    population: list[StudentRecord] = Field(default_factory=list)
    excluded: list[StudentRecord] = Field(default_factory=list)
    straight_pools: dict[str, list[StudentRecord]] = Field(default_factory=dict)
    straight_allocations: dict[str, int] = Field(default_factory=dict)
    composite_classes: int = 0

    @property
    def straight_total(self) -> int:
        return sum(self.straight_allocations.values())

    def composite_pool(self, placed_ids: set[str]) -> list[StudentRecord]:
        """Alle Schüler der Population, die kein Jahrgangslauf platziert hat.

        Darf erst aufgerufen werden, wenn ALLE Jahrgangsläufe fertig sind.
        """
        return [s for s in self.population if s.id not in placed_ids]


class PoolPartitioner:
    """Bildet den PartitionPlan für einen Generierungslauf."""

    def __init__(self, config: GenerationConfig) -> None:
        self.config = config

    def _pool_for(self, student: StudentRecord) -> str | None:
        """Jahrgangs-Pool eines Schülers: längster passender Präfix."""
        matches = [
            y for y in self.config.year_levels
            if student.existing_class.startswith(y)
        ]
        return max(matches, key=len) if matches else None

    def partition(self, students: list[StudentRecord]) -> PartitionPlan:
        year_levels = list(self.config.year_levels)
        plan = PartitionPlan(
            year_levels=year_levels,
            composite_classes=self.config.composite_classes,
        )

        for s in students:
            if s.year is not None and s.year in year_levels:
                plan.population.append(s)
            else:
                plan.excluded.append(s)

        plan.straight_pools = {year: [] for year in year_levels}
        for s in plan.population:
            year = self._pool_for(s)
            if year is not None:
                plan.straight_pools[year].append(s)

        counts = {year: len(pool) for year, pool in plan.straight_pools.items()}
        plan.straight_allocations = apportion_classes(
            counts, self.config.straight_classes
        )

        for year in year_levels:
            logger.debug(
                f"Jahrgang {year}: {counts[year]} Schüler → "
                f"{plan.straight_allocations[year]} Klassen"
            )
        if plan.excluded:
            logger.debug(
                f"{len(plan.excluded)} Schüler außerhalb der Jahrgänge {year_levels}"
            )
        return plan
