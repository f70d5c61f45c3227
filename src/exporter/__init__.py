"""Exporter: flat CSV output for the dashboard."""

from src.exporter.exporter import ANNOTATION_COLUMNS, export_table, load_export

__all__ = ["ANNOTATION_COLUMNS", "export_table", "load_export"]
