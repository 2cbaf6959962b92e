"""Klassenbildung — Haupt-CLI.

Verwendung:
  python main.py setup                      Ersteinrichtung (Wizard)
  python main.py config edit                Konfiguration bearbeiten
  python main.py config show                Konfiguration anzeigen
  python main.py template                   Import-Vorlage erzeugen
  python main.py fake-data                  Test-Schülerliste erzeugen
  python main.py generate <schueler.csv>    Klassen bilden
  python main.py generate <datei> --export output/klassen.xlsx --interactive
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt

console = Console()

DEFAULT_EXPORT_XLSX = Path("output/klassen.xlsx")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose)],
        force=True,
    )


def _load_config_or_abort():
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red bold]Konfiguration fehlerhaft:[/red bold]\n{e}")
        sys.exit(1)


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
def cmd_setup():
    """Ersteinrichtung: Konfiguration mit dem Setup-Wizard anlegen."""
    from config.wizard import run_wizard
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check():
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]python main.py config edit[/bold] zum Bearbeiten."
        )
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print(
            "Führen Sie jetzt [bold]python main.py generate <schueler.csv>[/bold] aus."
        )


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder bearbeiten."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from config.wizard import _show_config_table

    mgr, config = _load_config_or_abort()
    console.print(Panel(
        f"[bold]{config.school_name}[/bold]  |  {mgr.DEFAULT_CONFIG}",
        title="Konfiguration",
        border_style="cyan",
    ))
    _show_config_table(config)


@cmd_config.command("edit")
def config_edit():
    """Bearbeitet die Konfiguration interaktiv."""
    mgr, config = _load_config_or_abort()
    mgr.edit_interactive(config)


# ─── TEMPLATE ─────────────────────────────────────────────────────────────────

@click.command("template")
@click.option("--output", "-o", default="output/schueler_vorlage.csv",
              help="Ausgabepfad (.csv oder .xlsx).")
def cmd_template(output: str):
    """Erzeugt eine Import-Vorlage mit Beispielzeilen."""
    from config.defaults import IMPORT_COLUMNS
    from data.student_import import generate_template

    out_path = Path(output)
    generate_template(out_path)
    console.print(f"[green]✓[/green] Vorlage gespeichert: {out_path}")
    console.print(f"\nSpalten: [cyan]{', '.join(IMPORT_COLUMNS)}[/cyan]")
    console.print(
        "[dim]Leistung/Verhalten auch als 1–3 oder low/average/high möglich.\n"
        "Wünsche: mehrere Namen mit , ; oder & trennen, Teilnamen wie "
        "'Jane S' sind erlaubt.[/dim]"
    )


# ─── FAKE-DATA ────────────────────────────────────────────────────────────────

@click.command("fake-data")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--years", default=None,
              help="Jahrgänge, z.B. '7' oder '5,6' (Default: aus der Config).")
@click.option("--per-year", default=90, help="Schüler pro Jahrgang.")
@click.option("--classes-per-year", default=3, help="Alte Klassen pro Jahrgang.")
@click.option("--output", "-o", default="output/schueler_test.csv",
              help="Ausgabepfad (.csv oder .xlsx).")
def cmd_fake_data(seed: int, years: Optional[str], per_year: int,
                  classes_per_year: int, output: str):
    """Erzeugt eine Test-Schülerliste im Importformat."""
    from config.manager import ConfigManager
    from data.fake_data import FakeStudentGenerator

    if years:
        year_levels = [y.strip() for y in years.split(",") if y.strip()]
    else:
        year_levels = ConfigManager().load_or_default().generation.year_levels

    gen = FakeStudentGenerator(
        year_levels, students_per_year=per_year,
        classes_per_year=classes_per_year, seed=seed,
    )
    students = gen.generate()
    gen.print_summary(students)

    out_path = Path(output)
    gen.save(out_path, students)
    console.print(f"[green]✓[/green] {len(students)} Schüler gespeichert: {out_path}")


# ─── GENERATE ─────────────────────────────────────────────────────────────────

def _print_overview(result) -> None:
    from export.tui_renderer import render_group_tables

    for group_name, classes in result.classes.items():
        console.print(Panel(f"[bold]{group_name}[/bold]", border_style="cyan", expand=False))
        for table in render_group_tables(group_name, classes, result.ledger):
            console.print(table)
    console.print(f"\n[dim]{result.summary()}[/dim]")


def _interactive_moves(result) -> bool:
    """Interaktives Umsetzen. Gibt True zurück wenn mindestens ein Move erfolgte."""
    from engine.reassignment import ReassignmentError, ReassignmentHandler

    handler = ReassignmentHandler(result.classes)
    groups = list(result.classes)
    moved = False

    console.print(Panel(
        "Schüler umsetzen: Schüler-ID, Zielgruppe, Klassennummer und Position.\n"
        "[dim]Leere Schüler-ID beendet das Umsetzen.[/dim]",
        title="Umsetzen",
        border_style="cyan",
    ))
    while True:
        student_id = Prompt.ask("Schüler-ID", default="").strip()
        if not student_id:
            break
        try:
            current_group, current_idx = handler.locate(student_id)
        except ReassignmentError as e:
            console.print(f"[red]{e}[/red]")
            continue

        group = Prompt.ask("Zielgruppe", choices=groups, default=current_group)
        class_no = IntPrompt.ask(
            f"Klasse (1–{len(result.classes[group])})", default=current_idx + 1
        )
        position = IntPrompt.ask("Position (0 = Anfang, leer = Ende)", default=-1)
        try:
            student = handler.move_to(
                student_id, group, class_no - 1,
                None if position < 0 else position,
            )
        except ReassignmentError as e:
            console.print(f"[red]{e}[/red]")
            continue
        moved = True
        console.print(
            f"[green]✓[/green] {student.full_name} → {group} Klasse {class_no}"
        )

    return moved


@click.command("generate")
@click.argument("students_file", type=click.Path(exists=True, path_type=Path))
@click.option("--seed", default=None, type=int,
              help="Zufalls-Seed (überschreibt die Config).")
@click.option("--export", "export_path", default=None,
              help=f"Ergebnis als Excel speichern (z.B. {DEFAULT_EXPORT_XLSX}).")
@click.option("--interactive", is_flag=True, default=False,
              help="Nach der Generierung Schüler interaktiv umsetzen.")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Ausführliche Log-Ausgabe (DEBUG).")
def cmd_generate(students_file: Path, seed: Optional[int], export_path: Optional[str],
                 interactive: bool, verbose: bool):
    """Bildet Klassen aus einer Schülerliste (.xlsx, .csv, .tsv)."""
    _setup_logging(verbose)
    mgr, config = _load_config_or_abort()

    from analysis.balance_report import BalanceAnalyzer
    from analysis.validator import ResultValidator
    from data.student_import import StudentImportError, load_students
    from engine.generator import ClassGenerator
    from models.cohort import Cohort

    if seed is not None:
        config = config.model_copy(update={
            "random": config.random.model_copy(update={"seed": seed})
        })

    try:
        students = load_students(students_file)
    except StudentImportError as e:
        console.print(f"[red bold]Import fehlgeschlagen:[/red bold]\n{e}")
        sys.exit(1)

    cohort = Cohort(students=students, config=config)
    console.print(f"\n{cohort.summary()}\n")
    feasibility = cohort.validate_feasibility()
    feasibility.print_rich()

    console.print("[bold]Klassen werden gebildet...[/bold]")
    result = ClassGenerator(config).generate(students)
    if result.is_empty:
        console.print("[yellow]Keine Klassen generiert.[/yellow]")
        sys.exit(1)

    _print_overview(result)
    validator = ResultValidator()
    validator.validate(result, population=students).print_rich()
    BalanceAnalyzer().analyze(result).print_rich()

    if interactive and _interactive_moves(result):
        _print_overview(result)
        validator.validate(result, population=students, manual_moves=True).print_rich()

    if export_path is None and interactive:
        if Confirm.ask("Als Excel exportieren?", default=True):
            export_path = str(DEFAULT_EXPORT_XLSX)

    if export_path:
        from export.excel_export import ExcelExporter
        try:
            ExcelExporter(result).export(Path(export_path))
        except ValueError as e:
            console.print(f"[red]Export fehlgeschlagen: {e}[/red]")
            sys.exit(1)
        console.print(f"[green]✓[/green] Excel gespeichert: {export_path}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
def cli():
    """Klassenbildung: ausgewogene Klassen aus einer Schülerliste.

    Starten Sie mit: python main.py setup
    """


def main():
    """Einstiegspunkt. Startet automatisch den Wizard beim ersten Aufruf."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen bei der Klassenbildung![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Der Setup-Wizard wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli()


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_template)
cli.add_command(cmd_fake_data)
cli.add_command(cmd_generate)


if __name__ == "__main__":
    main()
