"""
Business logic layer services for di-xml-export.

- column_builder: column model construction, reconciliation and reordering
- SelectionRegistry: per-file selection with optional cross-file propagation
- ExportAggregator: all files → one rectangular table
- SpreadsheetWriter: table → .xlsx bytes
- Notifier implementations: user-facing outcome reporting
"""

from di_xml_export.services.column_builder import build_columns, known_columns, move_column
from di_xml_export.services.selection_registry import SelectionRegistry
from di_xml_export.services.export_aggregator import (
    ExportAggregator,
    HeaderGroup,
    collect_header_groups,
    compute_column_widths,
    export_table
)
from di_xml_export.services.spreadsheet_writer import SpreadsheetWriter
from di_xml_export.services.notifications import (
    Notification,
    Notifier,
    LoggingNotifier,
    RecordingNotifier
)

__all__ = [
    'build_columns',
    'known_columns',
    'move_column',
    'SelectionRegistry',
    'ExportAggregator',
    'HeaderGroup',
    'collect_header_groups',
    'compute_column_widths',
    'export_table',
    'SpreadsheetWriter',
    'Notification',
    'Notifier',
    'LoggingNotifier',
    'RecordingNotifier',
]
