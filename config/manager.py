"""Konfigurationsmanager: Laden, Speichern, Validieren und interaktives Bearbeiten.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import AppConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

_YAML_HEADER = f"""\
# ============================================
# Klassenbildung — Konfiguration
# Version: 1.0
# Erstellt: {date.today().isoformat()}
# ============================================
"""

_SECTION_COMMENTS = {
    "generation": (
        "Klassenbildung",
        "Jahrgänge, Anzahl Klassen (davon Mischklassen) und Klassengröße.\n"
        "Nur die Maximalgröße ist eine harte Grenze.",
    ),
    "weights": (
        "Gewichte",
        "Höher = stärker ausgeglichen. 0 = Merkmal wird ignoriert.",
    ),
    "random": (
        "Zufall",
        "Fester Seed = reproduzierbares Ergebnis. Leer = jedes Mal anders.",
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "klassen_config.yaml"

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> AppConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py setup' aus, um die Klassenbildung einzurichten."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return AppConfig.model_validate(dict(raw or {}))
        except Exception as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    def load_or_default(self, path: Optional[Path] = None) -> AppConfig:
        """Wie load(), aber Default-Config wenn noch keine Datei existiert."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            from config.defaults import default_app_config
            return default_app_config()
        return self.load(target)

    # ─── Speichern ───

    def save(self, config: AppConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: AppConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        gen_map = CommentedMap(cm["generation"])
        gen_map.yaml_add_eol_comment("davon jahrgangsübergreifend", "composite_classes")
        cm["generation"] = gen_map

        return cm

    # ─── Interaktives Bearbeiten ───

    def edit_interactive(self, config: AppConfig) -> AppConfig:
        """Interaktives Bearbeitungsmenü für die Konfiguration."""
        from config.wizard import (
            _show_config_table,
            _wizard_class_size,
            _wizard_generation,
            _wizard_random,
            _wizard_weights,
        )

        while True:
            console.print()
            console.print(Panel(
                "[bold]Konfiguration bearbeiten[/bold]",
                border_style="cyan",
            ))
            _show_config_table(config)
            console.print("  [bold]1.[/bold] Schulname")
            console.print("  [bold]2.[/bold] Jahrgänge & Klassenzahl")
            console.print("  [bold]3.[/bold] Klassengröße")
            console.print("  [bold]4.[/bold] Gewichte")
            console.print("  [bold]5.[/bold] Zufalls-Seed")
            console.print("  [bold]0.[/bold] Speichern & Zurück")

            choice = Prompt.ask("\nAuswahl", default="0")

            if choice == "1":
                name = Prompt.ask("Name der Schule", default=config.school_name)
                config = config.model_copy(update={"school_name": name})
            elif choice == "2":
                gen = _wizard_generation(config.generation)
                config = config.model_copy(update={"generation": gen})
            elif choice == "3":
                size = _wizard_class_size(config.generation.class_size)
                config = config.model_copy(update={
                    "generation": config.generation.model_copy(
                        update={"class_size": size})
                })
            elif choice == "4":
                config = config.model_copy(
                    update={"weights": _wizard_weights(config.weights)}
                )
            elif choice == "5":
                config = config.model_copy(
                    update={"random": _wizard_random(config.random)}
                )
            elif choice == "0":
                self.save(config)
                break
            else:
                console.print("[yellow]Ungültige Auswahl.[/yellow]")

        return config
