"""
File collaborators: CSV input and report/table output.
"""
from .csv_reader import read_records
from .writers import write_report_json, write_table_csv

__all__ = ["read_records", "write_report_json", "write_table_csv"]
