"""Greedy-Balancer: verteilt einen Schüler-Pool auf N Klassen.

Architektur:
  1. N leere Klassen; Soll-Anteile pro Merkmalswert aus dem Pool
  2. Zusammen-Wünsche vorab gemeinsam in die kleinste zulässige Klasse
  3. Restliche Schüler zufällig mischen
  4. Jeder Schüler in die Klasse mit den niedrigsten Platzierungskosten
     (Klassen pro Schüler in zufälliger Reihenfolge besucht → Tie-Breaking)
  5. Notplatzierung, wenn keine Klasse endliche Kosten hat

Harte Constraints (Kosten = ∞):
  - Klasse hat bereits die Maximalgröße erreicht
  - Klasse enthält jemanden, von dem der Schüler getrennt werden soll

Weiche Kosten: Zuwachs der quadratischen Abweichung vom Soll-Anteil pro
Kategorie, gewichtet (Leistung/Verhalten 3, Geschlecht 2, Herkunftsklasse 1),
plus 0.1 × aktuelle Klassengröße als Tie-Breaker ("Water Filling").

Der Balancer ist eine Heuristik: kein globales Optimum, reihenfolgeabhängig.
"""

import logging
import math
import random
from typing import Callable, Optional

from pydantic import BaseModel, Field

from config.schema import BalancingWeights, ClassSizeRange
from models.class_group import ClassGroup
from models.generation import FallbackEvent, UnseededPair
from models.request import RequestLedger
from models.student import Category, StudentRecord

logger = logging.getLogger(__name__)

# Liefert eine Permutation der übergebenen Liste (neue Liste)
Permuter = Callable[[list], list]


def make_permuter(rng: Optional[random.Random] = None) -> Permuter:
    """Gleichverteilte Zufallspermutation auf Basis von `rng`."""
    rng = rng or random.Random()

    def permute(items: list) -> list:
        shuffled = list(items)
        rng.shuffle(shuffled)
        return shuffled

    return permute


# ─── Pool-Kennzahlen ──────────────────────────────────────────────────────────

class PoolTotals(BaseModel):
    """Anzahl pro Merkmalswert im Pool (groupTotals) + Klassenzahl."""

    num_classes: int
    totals: dict[Category, dict[str, int]] = Field(default_factory=dict)

    @classmethod
    def from_pool(cls, pool: list[StudentRecord], num_classes: int) -> "PoolTotals":
        totals: dict[Category, dict[str, int]] = {c: {} for c in Category}
        for student in pool:
            for category in Category:
                value = student.category_value(category)
                totals[category][value] = totals[category].get(value, 0) + 1
        return cls(num_classes=num_classes, totals=totals)

    def ideal(self, category: Category, value: str) -> float:
        """Soll-Anzahl pro Klasse für einen Merkmalswert."""
        return self.totals.get(category, {}).get(value, 0) / self.num_classes


class BalanceResult(BaseModel):
    """Ergebnis eines Balancing-Laufs für einen Pool."""

    classes: list[ClassGroup] = Field(default_factory=list)
    placed_ids: list[str] = Field(default_factory=list)
    unplaced_ids: list[str] = Field(default_factory=list)
    fallback_events: list[FallbackEvent] = Field(default_factory=list)
    unseeded_pairs: list[UnseededPair] = Field(default_factory=list)


# ─── Balancer ─────────────────────────────────────────────────────────────────

class ClassBalancer:
    """Verteilt einen Pool kostenminimal auf Klassen.

    Verwendung:
        balancer = ClassBalancer(config.generation.class_size, ledger)
        result = balancer.balance(pool, num_classes=4)
    """

    def __init__(
        self,
        class_size: ClassSizeRange,
        ledger: RequestLedger,
        weights: Optional[BalancingWeights] = None,
        permute: Optional[Permuter] = None,
    ) -> None:
        self.max_size = class_size.max
        self.ledger = ledger
        self.weights = weights or BalancingWeights()
        self.permute = permute or make_permuter()

        self._category_weights: dict[Category, float] = {
            Category.ACADEMIC: self.weights.academic,
            Category.BEHAVIOUR: self.weights.behaviour,
            Category.GENDER: self.weights.gender,
            Category.EXISTING_CLASS: self.weights.existing_class,
        }

        # Name → Namen, von denen getrennt werden soll (symmetrisch)
        self._separate_from: dict[str, set[str]] = {
            name: ledger.separation_partners(name)
            for req in ledger.separations
            for name in req.students
        }

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def balance(self, pool: list[StudentRecord], num_classes: int) -> BalanceResult:
        """Bildet `num_classes` Klassen aus `pool`."""
        if num_classes <= 0 or not pool:
            return BalanceResult()

        result = BalanceResult(classes=[ClassGroup() for _ in range(num_classes)])
        totals = PoolTotals.from_pool(pool, num_classes)
        placed: set[str] = set()

        self._seed_pairs(pool, result, placed)

        remaining = self.permute([s for s in pool if s.id not in placed])
        for student in remaining:
            self._place(student, result, totals, placed)

        logger.debug(
            f"Pool mit {len(pool)} Schülern → {num_classes} Klassen "
            f"({[c.size for c in result.classes]}), "
            f"{len(result.fallback_events)} Notplatzierungen, "
            f"{len(result.unplaced_ids)} nicht platziert"
        )
        return result

    def violates_separation(self, student: StudentRecord, cls: ClassGroup) -> bool:
        partners = self._separate_from.get(student.full_name)
        if not partners:
            return False
        return any(s.full_name in partners for s in cls.students)

    def marginal_cost(
        self, student: StudentRecord, category: Category,
        cls: ClassGroup, totals: PoolTotals,
    ) -> float:
        """Zuwachs der quadratischen Soll-Abweichung durch diesen Schüler.

        Kann negativ sein, wenn die Klasse den Wert bisher unterrepräsentiert.
        """
        value = student.category_value(category)
        ideal = totals.ideal(category, value)
        current = cls.stats.count(category, value)
        return (current + 1 - ideal) ** 2 - (current - ideal) ** 2

    def placement_cost(
        self, student: StudentRecord, cls: ClassGroup, totals: PoolTotals
    ) -> float:
        """Kosten für das Platzieren in `cls`; math.inf = unzulässig."""
        if cls.size >= self.max_size:
            return math.inf
        if self.violates_separation(student, cls):
            return math.inf
        cost = 0.0
        for category, weight in self._category_weights.items():
            cost += weight * self.marginal_cost(student, category, cls, totals)
        cost += self.weights.class_size * cls.size
        return cost

    # ─── Schritt 2: Paare vorab platzieren ────────────────────────────────────

    def _seed_pairs(
        self, pool: list[StudentRecord], result: BalanceResult, placed: set[str]
    ) -> None:
        by_name: dict[str, StudentRecord] = {}
        for s in pool:
            by_name.setdefault(s.full_name, s)

        for req in self.ledger.pairs:
            name1, name2 = req.students
            s1, s2 = by_name.get(name1), by_name.get(name2)
            if s1 is None or s2 is None:
                continue  # nicht beide in diesem Pool
            if s1.id in placed or s2.id in placed:
                continue

            reason = None
            target = None
            if self.ledger.is_separated(name1, name2):
                reason = "Widerspruch: Paar hat auch einen Trennungswunsch"
            else:
                # Kleinste Klasse zuerst; bei Gleichstand niedrigster Index
                by_size = sorted(result.classes, key=lambda c: c.size)
                if by_size[0].size + 2 > self.max_size:
                    reason = f"Kapazität: kleinste Klasse hat {by_size[0].size}/{self.max_size}"
                else:
                    target = next(
                        (c for c in by_size
                         if c.size + 2 <= self.max_size
                         and not self.violates_separation(s1, c)
                         and not self.violates_separation(s2, c)),
                        None,
                    )
                    if target is None:
                        reason = "Trennungswunsch: keine Klasse ohne Konflikt frei"

            if target is None:
                logger.warning(
                    f"Paar {name1} + {name2} nicht vorab platziert ({reason}) "
                    f"– beide werden einzeln verteilt"
                )
                result.unseeded_pairs.append(
                    UnseededPair(students=(name1, name2), reason=reason)
                )
                continue

            for s in (s1, s2):
                target.add_student(s)
                placed.add(s.id)
                result.placed_ids.append(s.id)

    # ─── Schritt 4/5: Einzelplatzierung ───────────────────────────────────────

    def _place(
        self, student: StudentRecord, result: BalanceResult,
        totals: PoolTotals, placed: set[str],
    ) -> None:
        classes = result.classes
        best_index: Optional[int] = None
        min_cost = math.inf

        for idx in self.permute(list(range(len(classes)))):
            cost = self.placement_cost(student, classes[idx], totals)
            if cost < min_cost:
                min_cost = cost
                best_index = idx

        if best_index is not None:
            classes[best_index].add_student(student)
            placed.add(student.id)
            result.placed_ids.append(student.id)
            return

        # Notplatzierung: erste Klasse (nach Index) mit freiem Platz,
        # Trennungswunsch wird dabei ignoriert.
        fallback_index = next(
            (i for i, c in enumerate(classes) if c.size < self.max_size), None
        )
        if fallback_index is None:
            logger.warning(
                f"Schüler {student.full_name} ({student.id}) in diesem Pool "
                f"nicht platzierbar: alle Klassen voll."
            )
            result.unplaced_ids.append(student.id)
            return

        target = classes[fallback_index]
        partners = self._separate_from.get(student.full_name, set())
        conflicts = [s.full_name for s in target.students if s.full_name in partners]
        target.add_student(student)
        placed.add(student.id)
        result.placed_ids.append(student.id)
        result.fallback_events.append(FallbackEvent(
            student_id=student.id,
            student_name=student.full_name,
            class_index=fallback_index,
            conflicting_names=conflicts,
        ))
        logger.warning(
            f"Notplatzierung: {student.full_name} in Klasse {fallback_index + 1} "
            f"trotz Trennungswunsch ({', '.join(conflicts) or '–'})"
        )
