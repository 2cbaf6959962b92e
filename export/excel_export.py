"""Excel-Export der gebildeten Klassen (openpyxl)."""

from pathlib import Path

from models.class_group import ClassGroup
from models.generation import GenerationResult

from export.helpers import COLORS, pair_highlight, sheet_title, sorted_for_display


class ExcelExporter:
    """Exportiert ein GenerationResult: ein Blatt pro Gruppe.

    Layout pro Blatt:
      Zeile 1  "Class N (k students)" über 4 Spalten zusammengeführt
      Zeile 2  Student Name | Old Class | Academic | Behaviour
      ab 3     Schüler nach Nachname sortiert; Namenszelle grün bei erfülltem
               Zusammen-Wunsch, rot bei verletztem Trennungswunsch
    """

    COLUMNS_PER_CLASS = 4
    SUB_HEADERS = ["Student Name", "Old Class", "Academic", "Behaviour"]

    # Spaltenbreiten (Excel-Einheiten)
    COL_NAME_W  = 24
    COL_OTHER_W = 12

    def __init__(self, result: GenerationResult):
        self.result = result
        self.ledger = result.ledger

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> None:
        """Erstellt die Excel-Datei.

        Raises:
            ValueError: Ergebnis enthält keine Klassen.
        """
        groups = {name: cls for name, cls in self.result.classes.items() if cls}
        if not groups:
            raise ValueError("Keine Daten zum Exportieren")

        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        used_titles: set[str] = set()
        for group_name, classes in groups.items():
            ws = wb.create_sheet(sheet_title(group_name, used_titles))
            self._write_group(ws, classes)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    # ─── Blatt pro Gruppe ─────────────────────────────────────────────────────

    def _write_group(self, ws, classes: list[ClassGroup]) -> None:
        from openpyxl.styles import Alignment, Font
        from openpyxl.utils import get_column_letter

        border = self._thin_border()
        width = self.COLUMNS_PER_CLASS

        for idx, cls in enumerate(classes):
            first_col = idx * width + 1

            # Zeile 1: zusammengeführter Klassen-Header
            ws.merge_cells(
                start_row=1, start_column=first_col,
                end_row=1, end_column=first_col + width - 1,
            )
            c = ws.cell(row=1, column=first_col,
                        value=f"Class {idx + 1} ({cls.size} students)")
            c.fill = self._fill(COLORS["header"])
            c.font = Font(bold=True, color="FFFFFF", size=11)
            c.alignment = Alignment(horizontal="center", vertical="center")

            # Zeile 2: Unterüberschriften
            for offset, text in enumerate(self.SUB_HEADERS):
                c = ws.cell(row=2, column=first_col + offset, value=text)
                c.fill = self._fill(COLORS["subheader"])
                c.font = Font(bold=True, size=10)
                c.border = border
                ws.column_dimensions[get_column_letter(first_col + offset)].width = (
                    self.COL_NAME_W if offset == 0 else self.COL_OTHER_W
                )

            # Ab Zeile 3: Schüler
            for r, student in enumerate(sorted_for_display(cls.students), 3):
                values = [
                    student.full_name, student.existing_class,
                    student.academic, student.behaviour,
                ]
                for offset, val in enumerate(values):
                    c = ws.cell(row=r, column=first_col + offset, value=val)
                    c.border = border
                highlight = pair_highlight(student, cls, self.ledger)
                if highlight is not None:
                    ws.cell(row=r, column=first_col).fill = self._fill(COLORS[highlight])

        ws.freeze_panes = "A3"
