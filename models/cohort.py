"""Cohort: Schülerdatensatz + Konfiguration + Machbarkeits-Check (Pydantic v2)."""

from collections import Counter

from pydantic import BaseModel

from config.schema import AppConfig
from models.student import StudentRecord


class FeasibilityReport(BaseModel):
    """Ergebnis des Machbarkeits-Checks."""

    is_feasible: bool
    errors: list[str]      # Kritische Probleme (nichts oder nicht alle platzierbar)
    warnings: list[str]    # Hinweise (Ergebnis möglich, aber unschön)

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_feasible:
            status = "[bold green]✓ MACHBAR[/bold green]"
        else:
            status = "[bold red]✗ NICHT MACHBAR[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (kritisch):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Machbarkeits-Check", border_style="cyan"))


class Cohort(BaseModel):
    """Alle Schüler eines Generierungslaufs plus Konfiguration."""

    students: list[StudentRecord]
    config: AppConfig

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        years = Counter(s.year or "?" for s in self.students)
        genders = Counter(s.gender for s in self.students)
        academic = Counter(s.academic for s in self.students)
        gen = self.config.generation
        lines = [
            f"Schule: {self.config.school_name}",
            f"Schüler: {len(self.students)}",
            "Jahrgänge: " + ", ".join(
                f"{y}: {n}" for y, n in sorted(years.items())),
            "Geschlecht: " + ", ".join(
                f"{g}: {n}" for g, n in genders.most_common()),
            "Leistung: " + ", ".join(
                f"{a}: {n}" for a, n in academic.most_common()),
            f"Klassen: {gen.total_classes} gesamt "
            f"({gen.straight_classes} Jahrgang, {gen.composite_classes} Misch), "
            f"Größe {gen.class_size.min}–{gen.class_size.max}",
        ]
        return "\n".join(lines)

    # ─── Machbarkeits-Check ───

    def validate_feasibility(self) -> FeasibilityReport:
        """Prüft ob die Klassenbildung grundsätzlich aufgeht.

        Prüfungen:
        1. Konfiguration nicht widersprüchlich (sonst: nichts zu generieren)
        2. Mindestens ein Schüler in den gewählten Jahrgängen
        3. Gesamtkapazität (Klassen × Maximalgröße) ≥ Schülerzahl
        4. Mindestgröße erreichbar
        5. Schüler außerhalb der Jahrgänge
        6. Jahrgangs-Pools passen in ihre Klassen (sonst Überlauf in Mischklassen)
        7. Maximalgröße < 2 bei vorhandenen Zusammen-Wünschen
        """
        from engine.partition import PoolPartitioner

        errors: list[str] = []
        warnings: list[str] = []
        gen = self.config.generation
        size = gen.class_size

        # ── 1. Konfiguration ─────────────────────────────────────────────
        if gen.total_classes <= 0:
            errors.append("Gesamtzahl Klassen ist 0 – es wird nichts generiert.")
        elif gen.composite_classes > gen.total_classes:
            errors.append(
                f"Mischklassen ({gen.composite_classes}) > Gesamtklassen "
                f"({gen.total_classes}) – es wird nichts generiert."
            )
        if not gen.year_levels:
            errors.append("Keine Jahrgänge ausgewählt – es wird nichts generiert.")
        if errors:
            return FeasibilityReport(is_feasible=False, errors=errors, warnings=warnings)

        plan = PoolPartitioner(gen).partition(self.students)
        population = len(plan.population)

        # ── 2. Population ────────────────────────────────────────────────
        if population == 0:
            errors.append(
                f"Keine Schüler in den Jahrgängen {', '.join(gen.year_levels)} gefunden."
            )

        # ── 3./4. Kapazität ──────────────────────────────────────────────
        capacity = gen.total_classes * size.max
        if population > capacity:
            errors.append(
                f"Kapazität: {population} Schüler, aber nur {capacity} Plätze "
                f"({gen.total_classes} Klassen × {size.max}). "
                f"{population - capacity} Schüler bleiben unplatziert."
            )
        elif population and population < gen.total_classes * size.min:
            warnings.append(
                f"Mindestgröße {size.min} nicht erreichbar: {population} Schüler "
                f"auf {gen.total_classes} Klassen."
            )

        # ── 5. Ausgeschlossene ───────────────────────────────────────────
        if plan.excluded:
            warnings.append(
                f"{len(plan.excluded)} Schüler gehören zu keinem gewählten Jahrgang "
                f"und werden ignoriert."
            )

        # ── 6. Jahrgangs-Pools ───────────────────────────────────────────
        for year, pool in plan.straight_pools.items():
            alloc = plan.straight_allocations[year]
            if len(pool) > alloc * size.max:
                overflow = len(pool) - alloc * size.max
                warnings.append(
                    f"Jahrgang {year}: {len(pool)} Schüler, {alloc} Klassen – "
                    f"{overflow} Schüler laufen in die Mischklassen über."
                )

        # ── 7. Paare bei Maximalgröße < 2 ────────────────────────────────
        if size.max < 2 and any(s.request_pair for s in self.students):
            warnings.append(
                "Maximalgröße < 2: Zusammen-Wünsche können nicht berücksichtigt werden."
            )

        return FeasibilityReport(
            is_feasible=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )
