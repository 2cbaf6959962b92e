"""Balance-Bericht für gebildete Klassen.

Misst pro Gruppe und Klasse, wie weit die Merkmalsverteilung vom Soll-Anteil
abweicht: Σ (Ist − Soll)² pro Kategorie, ungewichtet. Der Balancer
minimiert dieselbe Abweichung, gewichtet sie aber pro Kategorie
(`BalancingWeights`) und addiert einen Klassengrößen-Term.
"""

from pydantic import BaseModel

from models.class_group import ClassGroup
from models.generation import GenerationResult
from models.student import Category


# ─── Metriken-Modelle ─────────────────────────────────────────────────────────

class ClassBalanceMetrics(BaseModel):
    """Kennzahlen einer einzelnen Klasse."""

    group_name: str
    class_index: int
    size: int
    # Kategorie → Σ (Ist − Soll)² über alle Werte der Gruppe
    deviation: dict[str, float]
    imbalance_score: float


class GroupBalanceMetrics(BaseModel):
    """Kennzahlen einer Gruppe (z.B. "Straight Year 7")."""

    group_name: str
    num_classes: int
    num_students: int
    min_size: int
    max_size: int
    size_spread: int
    imbalance_score: float
    classes: list[ClassBalanceMetrics]


class BalanceReport(BaseModel):
    """Vollständiger Balance-Bericht für ein GenerationResult."""

    groups: list[GroupBalanceMetrics]
    total_placed: int
    total_unplaced: int
    fallback_count: int
    generate_time: float

    def print_rich(self) -> None:
        """Gibt den Bericht formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()

        unplaced_color = "green" if self.total_unplaced == 0 else "red"
        fallback_color = "green" if self.fallback_count == 0 else "yellow"
        console.print(Panel(
            f"Platziert: [bold]{self.total_placed}[/bold] | "
            f"Nicht platziert: [{unplaced_color}]{self.total_unplaced}[/{unplaced_color}] | "
            f"Notplatzierungen: [{fallback_color}]{self.fallback_count}[/{fallback_color}]\n"
            f"Zeit: {self.generate_time}s",
            title="Balance-Bericht – Übersicht",
            border_style="cyan",
        ))

        g_table = Table(title="Gruppen", box=box.ROUNDED, show_lines=False)
        g_table.add_column("Gruppe", width=22)
        g_table.add_column("Klassen", justify="right", width=8)
        g_table.add_column("Schüler", justify="right", width=8)
        g_table.add_column("Größe", justify="right", width=9)
        g_table.add_column("Spanne", justify="right", width=7)
        g_table.add_column("Imbalance", justify="right", width=10)

        for g in self.groups:
            spread_color = (
                "green" if g.size_spread <= 1
                else "yellow" if g.size_spread <= 3
                else "red"
            )
            g_table.add_row(
                g.group_name,
                str(g.num_classes),
                str(g.num_students),
                f"{g.min_size}–{g.max_size}",
                f"[{spread_color}]{g.size_spread}[/{spread_color}]",
                f"{g.imbalance_score:.2f}",
            )
        console.print(g_table)

        c_table = Table(title="Klassen", box=box.ROUNDED, show_lines=False)
        c_table.add_column("Gruppe", width=22)
        c_table.add_column("Klasse", justify="right", width=7)
        c_table.add_column("Größe", justify="right", width=6)
        for category in Category:
            c_table.add_column(_CATEGORY_LABELS[category], justify="right", width=10)
        c_table.add_column("Score", justify="right", width=8)

        for g in self.groups:
            for m in g.classes:
                c_table.add_row(
                    m.group_name,
                    str(m.class_index + 1),
                    str(m.size),
                    *(f"{m.deviation.get(c.value, 0.0):.2f}" for c in Category),
                    f"{m.imbalance_score:.2f}",
                )
        console.print(c_table)


_CATEGORY_LABELS: dict[Category, str] = {
    Category.ACADEMIC: "Leistung",
    Category.BEHAVIOUR: "Verhalten",
    Category.GENDER: "Geschlecht",
    Category.EXISTING_CLASS: "Herkunft",
}


# ─── Analyzer ─────────────────────────────────────────────────────────────────

class BalanceAnalyzer:
    """Berechnet Balance-Kennzahlen für ein fertiges GenerationResult."""

    def analyze(self, result: GenerationResult) -> BalanceReport:
        groups = [
            self._group_metrics(name, classes)
            for name, classes in result.classes.items()
        ]
        return BalanceReport(
            groups=groups,
            total_placed=result.total_placed,
            total_unplaced=len(result.unplaced_ids),
            fallback_count=len(result.fallback_events),
            generate_time=round(result.generate_time_seconds, 3),
        )

    def _group_metrics(
        self, group_name: str, classes: list[ClassGroup]
    ) -> GroupBalanceMetrics:
        num_classes = len(classes)
        totals = _group_totals(classes)

        class_metrics = []
        for idx, cls in enumerate(classes):
            deviation: dict[str, float] = {}
            for category in Category:
                dev = 0.0
                for value, total in totals[category].items():
                    ideal = total / num_classes
                    dev += (cls.stats.count(category, value) - ideal) ** 2
                deviation[category.value] = round(dev, 4)
            class_metrics.append(ClassBalanceMetrics(
                group_name=group_name,
                class_index=idx,
                size=cls.size,
                deviation=deviation,
                imbalance_score=round(sum(deviation.values()), 4),
            ))

        sizes = [c.size for c in classes] or [0]
        return GroupBalanceMetrics(
            group_name=group_name,
            num_classes=num_classes,
            num_students=sum(sizes),
            min_size=min(sizes),
            max_size=max(sizes),
            size_spread=max(sizes) - min(sizes),
            imbalance_score=round(sum(m.imbalance_score for m in class_metrics), 4),
            classes=class_metrics,
        )


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def _group_totals(classes: list[ClassGroup]) -> dict[Category, dict[str, int]]:
    """Summiert die Klassen-Statistiken einer Gruppe pro Kategorie."""
    totals: dict[Category, dict[str, int]] = {c: {} for c in Category}
    for cls in classes:
        for category in Category:
            for value, n in cls.stats.for_category(category).items():
                totals[category][value] = totals[category].get(value, 0) + n
    return totals
