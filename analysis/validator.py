"""Post-Generierungs-Validierung der gebildeten Klassen.

Prüft das Ergebnis unabhängig vom Balancer als Sicherheitsnetz, insbesondere
nach manuellem Umsetzen (Moves prüfen selbst keine Constraints).
"""

from collections import Counter
from typing import Literal

from pydantic import BaseModel

from models.generation import GenerationResult
from models.student import StudentRecord


class ValidationViolation(BaseModel):
    """Eine einzelne Constraint-Verletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "separation"
    description: str
    entity: str          # Schüler-ID, Name oder "Gruppe/Klasse"


class ValidationReport(BaseModel):
    """Ergebnis der Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    def by_constraint(self, constraint: str) -> list[ValidationViolation]:
        return [v for v in self.violations if v.constraint == constraint]

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        errors = [v for v in self.violations if v.severity == "error"]
        warnings = [v for v in self.violations if v.severity == "warning"]

        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Klassen-Validierung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verletzungen gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Constraint", width=16)
        table.add_column("Entität", width=24)
        table.add_column("Beschreibung")

        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


def _label(group_name: str, class_index: int) -> str:
    return f"{group_name}/Klasse {class_index + 1}"


class ResultValidator:
    """Prüft ein GenerationResult auf Constraint-Verletzungen."""

    def validate(
        self,
        result: GenerationResult,
        population: list[StudentRecord] | None = None,
        manual_moves: bool = False,
    ) -> ValidationReport:
        """Führt alle Checks durch.

        population: erwartete Schüler (für den Vollständigkeits-Check);
            None = nur Duplikate prüfen.
        manual_moves: True wenn seit der Generierung umgesetzt wurde –
            Kapazitätsüberschreitungen sind dann nur Warnungen.
        """
        violations: list[ValidationViolation] = []

        violations.extend(self._check_conservation(result, population))
        violations.extend(self._check_capacity(result, manual_moves))
        violations.extend(self._check_separation(result))
        violations.extend(self._check_pairs(result))
        violations.extend(self._check_stats(result))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_conservation(
        self, result: GenerationResult, population: list[StudentRecord] | None
    ) -> list[ValidationViolation]:
        """Jeder Schüler genau einmal; Fehlende nur wenn als unplatziert gemeldet."""
        violations: list[ValidationViolation] = []
        seen = Counter(s.id for cls in result.all_classes() for s in cls.students)

        for student_id, n in seen.items():
            if n > 1:
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="conservation",
                    entity=student_id,
                    description=f"Schüler ist {n}× eingeteilt.",
                ))

        unplaced = set(result.unplaced_ids)
        for student_id in result.unplaced_ids:
            violations.append(ValidationViolation(
                severity="warning",
                constraint="conservation",
                entity=student_id,
                description="Schüler konnte nicht platziert werden (alle Klassen voll).",
            ))

        if population is not None:
            excluded = set(result.excluded_ids)
            for s in population:
                if s.id in seen or s.id in unplaced or s.id in excluded:
                    continue
                violations.append(ValidationViolation(
                    severity="error",
                    constraint="conservation",
                    entity=s.id,
                    description=f"{s.full_name} fehlt im Ergebnis ohne Meldung.",
                ))
        return violations

    def _check_capacity(
        self, result: GenerationResult, manual_moves: bool
    ) -> list[ValidationViolation]:
        """Keine Klasse über der Maximalgröße."""
        if result.config_snapshot is None:
            return []
        max_size = result.config_snapshot.generation.class_size.max
        violations: list[ValidationViolation] = []
        for group_name, classes in result.classes.items():
            for idx, cls in enumerate(classes):
                if cls.size > max_size:
                    violations.append(ValidationViolation(
                        severity="warning" if manual_moves else "error",
                        constraint="capacity",
                        entity=_label(group_name, idx),
                        description=f"{cls.size} Schüler bei Maximalgröße {max_size}.",
                    ))
        return violations

    def _check_separation(self, result: GenerationResult) -> list[ValidationViolation]:
        """Getrennte Schüler nie in derselben Klasse (außer Notplatzierung)."""
        violations: list[ValidationViolation] = []
        fallback_ids = result.fallback_student_ids()
        for group_name, classes in result.classes.items():
            for idx, cls in enumerate(classes):
                members = {s.full_name: s for s in cls.students}
                for req in result.ledger.separations:
                    a, b = req.students
                    if a in members and b in members:
                        excused = (
                            members[a].id in fallback_ids
                            or members[b].id in fallback_ids
                        )
                        violations.append(ValidationViolation(
                            severity="warning" if excused else "error",
                            constraint="separation",
                            entity=_label(group_name, idx),
                            description=(
                                f"{a} und {b} sollen getrennt werden"
                                + (" (Notplatzierung)." if excused else ".")
                            ),
                        ))
        return violations

    def _check_pairs(self, result: GenerationResult) -> list[ValidationViolation]:
        """Zusammen-Wünsche, deren Schüler in verschiedenen Klassen sitzen."""
        violations: list[ValidationViolation] = []
        location: dict[str, str] = {}
        for group_name, classes in result.classes.items():
            for idx, cls in enumerate(classes):
                for s in cls.students:
                    location.setdefault(s.full_name, _label(group_name, idx))
        for req in result.ledger.pairs:
            a, b = req.students
            if a in location and b in location and location[a] != location[b]:
                violations.append(ValidationViolation(
                    severity="warning",
                    constraint="pair",
                    entity=f"{a} / {b}",
                    description=f"Getrennt: {location[a]} bzw. {location[b]}.",
                ))
        return violations

    def _check_stats(self, result: GenerationResult) -> list[ValidationViolation]:
        """Statistik jeder Klasse entspricht ihrer Schülerliste."""
        violations: list[ValidationViolation] = []
        for group_name, classes in result.classes.items():
            for idx, cls in enumerate(classes):
                if not cls.is_consistent():
                    violations.append(ValidationViolation(
                        severity="error",
                        constraint="stats",
                        entity=_label(group_name, idx),
                        description="Statistik weicht von der Schülerliste ab.",
                    ))
        return violations
