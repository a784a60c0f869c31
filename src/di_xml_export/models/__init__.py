"""
Pydantic models for imported files, columns and export output.
"""

from di_xml_export.models.column import Column
from di_xml_export.models.imported_file import ImportedFile, Record
from di_xml_export.models.table import Table, ExportResult

__all__ = [
    'Column',
    'ImportedFile',
    'Record',
    'Table',
    'ExportResult',
]
