"""
di-xml-export: combine customs declaration XML files into one spreadsheet.

Main package exports for user-facing API.
"""

from di_xml_export.api import ImportSession, UploadedFile
from di_xml_export.config import ExportSettings, get_settings
from di_xml_export.exceptions import (
    DiXmlExportError,
    InvalidFileTypeError,
    ParseError,
    EmptyResultError,
    NoColumnsSelectedError,
    ExportEncodingError,
)
from di_xml_export.normalization import normalize_name
from di_xml_export.parsers import parse_records
from di_xml_export.types import RowStrategy, SelectionPolicy, Severity

__all__ = [
    'ImportSession',
    'UploadedFile',
    'ExportSettings',
    'get_settings',
    'normalize_name',
    'parse_records',
    'RowStrategy',
    'SelectionPolicy',
    'Severity',
    'DiXmlExportError',
    'InvalidFileTypeError',
    'ParseError',
    'EmptyResultError',
    'NoColumnsSelectedError',
    'ExportEncodingError',
]
