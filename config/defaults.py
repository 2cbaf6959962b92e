from config.schema import (
    AppConfig,
    BalancingWeights,
    ClassSizeRange,
    GenerationConfig,
    RandomConfig,
)


# Wert für fehlende/leere Kategorie-Einträge
UNKNOWN = "Unknown"

# Normalisierung der Einstufungen (Leistung, Verhalten).
# Schlüssel: Kleinbuchstaben-Eingabe → kanonischer Wert
RANKING_ALIASES: dict[str, str] = {
    "low": "Low",
    "1": "Low",
    "below": "Low",
    "at": "Average",
    "2": "Average",
    "medium": "Average",
    "average": "Average",
    "above": "High",
    "3": "High",
    "high": "High",
    # Verhaltens-Bezeichnungen mit fester Schreibweise
    "needs support": "Needs Support",
    "excellent": "Excellent",
    "good": "Good",
}

# Spalten-Header der Import-Datei → Feldname in StudentRecord.
# Vergleich erfolgt case-insensitive.
IMPORT_HEADER_ALIASES: dict[str, str] = {
    "class": "existing_class",
    "klasse": "existing_class",
    "surname": "surname",
    "nachname": "surname",
    "first name": "first_name",
    "vorname": "first_name",
    "gender": "gender",
    "geschlecht": "gender",
    "academic": "academic",
    "leistung": "academic",
    "behaviour": "behaviour",
    "behavior": "behaviour",
    "verhalten": "behaviour",
    "request: pair": "request_pair",
    "wunsch: zusammen": "request_pair",
    "request: separate": "request_separate",
    "wunsch: trennen": "request_separate",
}

# Spaltenreihenfolge für eingefügten Text ohne Kopfzeile (und für die Vorlage)
IMPORT_COLUMNS: list[str] = [
    "Class", "Surname", "First Name", "Gender",
    "Academic", "Behaviour", "Request: Pair", "Request: Separate",
]

# Beispielzeilen der CSV-Vorlage (Zeile 2 zeigt einen Teilnamen-Wunsch)
TEMPLATE_EXAMPLE_ROWS: list[list[str]] = [
    ["7A", "Smith", "Jane", "Female", "High", "Good", "John Doe", "Tom Lee"],
    ["7B", "Doe", "John", "Male", "2", "2", "Jane S", ""],
    ["7A", "Brown", "Charlie", "Male", "Low", "Needs Support", "", ""],
]


def default_generation() -> GenerationConfig:
    """Standard: Jahrgang 7, noch keine Klassenzahl, Größe 20–30."""
    return GenerationConfig(
        year_levels=["7"],
        total_classes=0,
        composite_classes=0,
        class_size=ClassSizeRange(min=20, max=30),
    )


def default_app_config() -> AppConfig:
    """Vollständige Default-Konfiguration."""
    return AppConfig(
        school_name="Musterschule",
        generation=default_generation(),
        weights=BalancingWeights(),
        random=RandomConfig(),
    )
