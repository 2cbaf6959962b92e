"""Export-Modul: Excel (openpyxl) und Terminal (Rich) für die gebildeten Klassen."""

from export.excel_export import ExcelExporter

__all__ = ["ExcelExporter"]
