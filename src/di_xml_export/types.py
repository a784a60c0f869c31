"""
Enumerations for the configurable pipeline policies.

The three policies below are the decision points that differ between
historical variants of this tool; each one is an explicit setting
(see ExportSettings) instead of being hardcoded.
"""

from enum import Enum


class SelectionPolicy(str, Enum):
    """
    How a selection toggle spreads across imported files.

    INDEPENDENT: only the addressed (file, column) changes.
    PROPAGATED: every column with the same normalized name, in every
        file, changes together.
    """

    INDEPENDENT = 'independent'
    PROPAGATED = 'propagated'


class RowStrategy(str, Enum):
    """
    How rows from several files are laid out in the exported table.

    CONCATENATION: one output row per source record, files in import order.
        Keeps every field of a record on the same row.
    COLUMNAR: each header collects all of its values independently; row i
        holds the i-th value of every header. Does not preserve per-file
        row identity when files have different row counts.
    """

    CONCATENATION = 'concatenation'
    COLUMNAR = 'columnar'


class Severity(str, Enum):
    """Notification severity levels."""

    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'


class CheckState(str, Enum):
    """Tri-state value for a file's bulk-selection checkbox."""

    CHECKED = 'checked'
    UNCHECKED = 'unchecked'
    INDETERMINATE = 'indeterminate'
