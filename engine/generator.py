"""Orchestrierung eines Generierungslaufs.

Wünsche auflösen → Pools bilden → ein Balancing-Lauf pro Jahrgang →
(Barriere) → Mischklassen-Lauf aus den Resten → Ergebnis zusammenführen.

Keine globalen Zustände: Konfiguration, Wunschliste und Zufallsquelle werden
explizit übergeben.
"""

import logging
import random
import time
from typing import Optional

from config.schema import AppConfig
from engine.balancer import BalanceResult, ClassBalancer, Permuter, make_permuter
from engine.partition import PoolPartitioner
from engine.requests import resolve_requests
from models.generation import GenerationResult
from models.request import RequestLedger
from models.student import StudentRecord

logger = logging.getLogger(__name__)


def straight_group_name(year: str) -> str:
    return f"Straight Year {year}"


def composite_group_name(year_levels: list[str]) -> str:
    return f"Composite {'/'.join(year_levels)}"


class ClassGenerator:
    """Bildet aus einer Schülerliste die benannten Klassengruppen.

    Verwendung:
        generator = ClassGenerator(config)
        result = generator.generate(students, rng=random.Random(42))
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def generate(
        self,
        students: list[StudentRecord],
        rng: Optional[random.Random] = None,
        permute: Optional[Permuter] = None,
        ledger: Optional[RequestLedger] = None,
    ) -> GenerationResult:
        """Führt einen vollständigen Lauf aus.

        `permute` hat Vorrang vor `rng`; ohne beides wird `config.random.seed`
        verwendet (None = nicht-deterministisch).
        """
        t0 = time.time()
        gen = self.config.generation
        seed = self.config.random.seed

        if permute is None:
            permute = make_permuter(rng or random.Random(seed))
        if ledger is None:
            ledger = resolve_requests(students)

        result = GenerationResult(
            ledger=ledger,
            seed=seed,
            config_snapshot=self.config,
        )

        if gen.is_degenerate:
            logger.info(
                f"Nichts zu generieren: {gen.total_classes} Klassen gesamt, "
                f"{gen.composite_classes} Mischklassen, Jahrgänge {gen.year_levels}"
            )
            result.generate_time_seconds = time.time() - t0
            return result

        plan = PoolPartitioner(gen).partition(students)
        result.excluded_ids = [s.id for s in plan.excluded]

        balancer = ClassBalancer(
            gen.class_size, ledger, weights=self.config.weights, permute=permute
        )
        placed_ids: set[str] = set()

        for year in plan.year_levels:
            run = balancer.balance(
                plan.straight_pools[year], plan.straight_allocations[year]
            )
            self._merge(result, straight_group_name(year), run)
            placed_ids.update(run.placed_ids)

        # Barriere: Mischklassen-Pool erst nach allen Jahrgangsläufen
        composite_pool = plan.composite_pool(placed_ids)
        run = balancer.balance(composite_pool, plan.composite_classes)
        self._merge(result, composite_group_name(plan.year_levels), run)
        placed_ids.update(run.placed_ids)

        result.unplaced_ids = [
            s.id for s in plan.population if s.id not in placed_ids
        ]
        if result.unplaced_ids:
            logger.error(
                f"{len(result.unplaced_ids)} Schüler konnten in keiner Klasse "
                f"platziert werden."
            )

        result.generate_time_seconds = time.time() - t0
        logger.info(
            f"Klassenbildung beendet: {len(result.all_classes())} Klassen, "
            f"{result.total_placed} Schüler, "
            f"Zeit: {result.generate_time_seconds:.2f}s"
        )
        return result

    @staticmethod
    def _merge(result: GenerationResult, group_name: str, run: BalanceResult) -> None:
        """Übernimmt einen Pool-Lauf unter `group_name` ins Gesamtergebnis."""
        if run.classes:
            result.classes[group_name] = run.classes
        for event in run.fallback_events:
            result.fallback_events.append(
                event.model_copy(update={"group_name": group_name})
            )
        for pair in run.unseeded_pairs:
            result.unseeded_pairs.append(
                pair.model_copy(update={"group_name": group_name})
            )
