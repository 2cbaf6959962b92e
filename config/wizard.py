"""Interaktiver Setup-Wizard für die Ersteinrichtung der Klassenbildung.

Führt den Nutzer Schritt für Schritt durch alle Konfigurationsbereiche.
Nutzt rich für schöne Konsolenausgabe.
"""

from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.schema import (
    AppConfig,
    BalancingWeights,
    ClassSizeRange,
    GenerationConfig,
    RandomConfig,
)
from config.defaults import default_generation

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _info(text: str) -> None:
    console.print(f"[dim]{text}[/dim]")


def _success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def _warn(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow]  {text}")


def _show_config_table(config: AppConfig) -> None:
    """Zeigt die aktuelle Konfiguration als rich-Tabelle an."""
    gen = config.generation
    w = config.weights
    table = Table(box=box.ROUNDED, title="Konfigurationsübersicht")
    table.add_column("Bereich", style="bold cyan")
    table.add_column("Wert")

    table.add_row("Schule", config.school_name)
    table.add_row("Jahrgänge", ", ".join(gen.year_levels) or "–")
    table.add_row(
        "Klassen",
        f"{gen.total_classes} gesamt ({gen.straight_classes} Jahrgang, "
        f"{gen.composite_classes} Misch)"
    )
    table.add_row("Klassengröße", f"{gen.class_size.min}–{gen.class_size.max}")
    table.add_row(
        "Gewichte",
        f"Leistung {w.academic:g}, Verhalten {w.behaviour:g}, "
        f"Geschlecht {w.gender:g}, Herkunft {w.existing_class:g}, "
        f"Größe {w.class_size:g}"
    )
    table.add_row(
        "Seed",
        str(config.random.seed) if config.random.seed is not None else "zufällig"
    )
    console.print(table)


# ─── SCHRITT 1: Jahrgänge & Klassenzahl ───

def _wizard_generation(current: Optional[GenerationConfig] = None) -> GenerationConfig:
    _header("Schritt 1 — Jahrgänge & Klassenzahl")
    _info(
        "Mehrere Jahrgänge mit Komma trennen (z.B. 5,6).\n"
        "Mischklassen werden aus den Schülern gebildet, die in den\n"
        "Jahrgangsklassen keinen Platz finden."
    )
    current = current or default_generation()

    while True:
        years = Prompt.ask("Jahrgänge", default=",".join(current.year_levels))
        total = IntPrompt.ask("Anzahl Klassen gesamt", default=current.total_classes)
        composite = IntPrompt.ask("Davon Mischklassen", default=current.composite_classes)
        try:
            gen = GenerationConfig(
                year_levels=years,
                total_classes=total,
                composite_classes=composite,
                class_size=current.class_size,
            )
        except ValidationError as e:
            _warn(f"Ungültige Eingabe: {e.errors()[0]['msg']}")
            continue
        if gen.is_degenerate:
            _warn("Mit diesen Werten wird nichts generiert.")
            if not Confirm.ask("Trotzdem übernehmen?", default=False):
                continue
        _success(
            f"{gen.total_classes} Klassen: {gen.straight_classes} Jahrgangsklassen, "
            f"{gen.composite_classes} Mischklassen."
        )
        return gen


# ─── SCHRITT 2: Klassengröße ───

def _wizard_class_size(current: Optional[ClassSizeRange] = None) -> ClassSizeRange:
    _header("Schritt 2 — Klassengröße")
    _info("Die Maximalgröße wird nie überschritten, die Mindestgröße ist ein Richtwert.")
    current = current or ClassSizeRange()

    while True:
        min_size = IntPrompt.ask("Mindestgröße", default=current.min)
        max_size = IntPrompt.ask("Maximalgröße", default=current.max)
        try:
            size = ClassSizeRange(min=min_size, max=max_size)
        except ValidationError as e:
            _warn(f"Ungültige Eingabe: {e.errors()[0]['msg']}")
            continue
        _success(f"Klassengröße {size.min}–{size.max}.")
        return size


# ─── SCHRITT 3: Gewichte ───

def _wizard_weights(current: Optional[BalancingWeights] = None) -> BalancingWeights:
    _header("Schritt 3 — Gewichte")
    _info(
        "Gewichte steuern, wie stark ein Merkmal ausgeglichen wird.\n"
        "Höher = wichtiger. 0 = ignoriert."
    )
    current = current or BalancingWeights()

    table = Table(box=box.SIMPLE)
    table.add_column("Merkmal", style="bold")
    table.add_column("Aktuell")
    table.add_column("Bedeutung")
    rows = [
        ("Leistung", f"{current.academic:g}", "Leistungsniveaus gleich verteilen"),
        ("Verhalten", f"{current.behaviour:g}", "Verhaltens-Einstufungen gleich verteilen"),
        ("Geschlecht", f"{current.gender:g}", "Geschlechterverhältnis ausgleichen"),
        ("Herkunft", f"{current.existing_class:g}", "Alte Klassen durchmischen"),
        ("Größe", f"{current.class_size:g}", "Kleinere Klassen bevorzugen"),
    ]
    for r in rows:
        table.add_row(*r)
    console.print(table)

    if Confirm.ask("Gewichte übernehmen?", default=True):
        _success("Gewichte übernommen.")
        return current

    weights = BalancingWeights(
        academic=FloatPrompt.ask("Gewicht Leistung", default=current.academic),
        behaviour=FloatPrompt.ask("Gewicht Verhalten", default=current.behaviour),
        gender=FloatPrompt.ask("Gewicht Geschlecht", default=current.gender),
        existing_class=FloatPrompt.ask("Gewicht Herkunft", default=current.existing_class),
        class_size=FloatPrompt.ask("Gewicht Größe", default=current.class_size),
    )
    _success("Gewichte gesetzt.")
    return weights


# ─── SCHRITT 4: Zufall ───

def _wizard_random(current: Optional[RandomConfig] = None) -> RandomConfig:
    _header("Schritt 4 — Zufall")
    _info("Mit festem Seed liefert jeder Lauf dasselbe Ergebnis.")
    current = current or RandomConfig()

    default = "" if current.seed is None else str(current.seed)
    while True:
        raw = Prompt.ask("Seed (leer = zufällig)", default=default).strip()
        if not raw:
            return RandomConfig(seed=None)
        try:
            return RandomConfig(seed=int(raw))
        except ValueError:
            _warn("Bitte eine ganze Zahl eingeben.")


# ─── HAUPT-WIZARD ───

def run_wizard() -> Optional[AppConfig]:
    """Führt den vollständigen interaktiven Setup-Wizard aus.

    Returns:
        Fertige AppConfig oder None, wenn der Nutzer abbricht.
    """
    console.print()
    console.print(Panel(
        "[bold]Willkommen bei der Klassenbildung![/bold]\n\n"
        "Aus einer Schülerliste werden ausgewogene Klassen gebildet:\n"
        "Leistung, Verhalten, Geschlecht und alte Klassen werden gleichmäßig\n"
        "verteilt, Zusammen- und Trennungswünsche berücksichtigt.\n\n"
        "[dim]Standard-Werte können mit Enter übernommen werden.[/dim]",
        title="[bold cyan]Klassenbildung[/bold cyan]",
        border_style="cyan",
    ))

    if not Confirm.ask("\nMöchten Sie jetzt die Klassenbildung einrichten?", default=True):
        console.print("[yellow]Einrichtung abgebrochen.[/yellow]")
        return None

    try:
        name = Prompt.ask("Name der Schule", default="Musterschule")
        generation = _wizard_generation()
        class_size = _wizard_class_size(generation.class_size)
        weights = _wizard_weights()
        random_cfg = _wizard_random()

        config = AppConfig(
            school_name=name,
            generation=generation.model_copy(update={"class_size": class_size}),
            weights=weights,
            random=random_cfg,
        )

        _header("Zusammenfassung")
        _show_config_table(config)

        if not Confirm.ask("\nKonfiguration speichern?", default=True):
            console.print("[yellow]Konfiguration wird nicht gespeichert.[/yellow]")
            return None

        _success("Konfiguration wird gespeichert...")
        return config

    except KeyboardInterrupt:
        console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return None
