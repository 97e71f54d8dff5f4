"""Export-Modul: CSV, Excel (openpyxl) und Terminal (rich) für den Vorlesungsplan."""

from export.csv_export import to_csv_text, write_csv
from export.excel_export import ExcelExporter

__all__ = ["to_csv_text", "write_csv", "ExcelExporter"]
