"""
Combines all imported files into one rectangular table.

Headers are the normalized-name groups of selected columns, in first-seen
order. Each group knows every (file, raw key) that normalizes to it, so a
record's value is found regardless of how its file spelled the key.

Row strategies (see RowStrategy):
- CONCATENATION: one output row per record, files in order
- COLUMNAR: values collected per header, rows aligned by position
"""

import logging
from typing import Dict, List, Sequence

from di_xml_export.exceptions import NoColumnsSelectedError
from di_xml_export.models import ImportedFile, Record, Table
from di_xml_export.types import RowStrategy

logger = logging.getLogger(__name__)


class HeaderGroup:
    """One output column: a normalized name, its label and its member keys per file."""
    
    def __init__(self, normalized_name: str, label: str):
        self.normalized_name = normalized_name
        self.label = label
        self.keys_by_file: Dict[int, List[str]] = {}
    
    def value_for(self, file_position: int, record: Record) -> str:
        """First non-empty value among the file's keys in this group, else ''."""
        for key in self.keys_by_file.get(file_position, []):
            value = record.get(key)
            if value:
                return value
        return ''
    
    def __repr__(self) -> str:
        return f"HeaderGroup('{self.normalized_name}', label='{self.label}')"


def collect_header_groups(files: Sequence[ImportedFile]) -> List[HeaderGroup]:
    """
    Build the header groups of an export.
    
    1. Distinct normalized names of selected columns, first-seen order
       (file order, then column order); the label is the display name of
       the first selected column seen for the group.
    2. Every column of every file whose normalized name belongs to a
       group, selected or not, contributes its raw key to that group.
    """
    groups: Dict[str, HeaderGroup] = {}
    
    for imported in files:
        for column in imported.columns:
            if column.selected and column.normalized_name not in groups:
                groups[column.normalized_name] = HeaderGroup(
                    column.normalized_name, column.display_name
                )
    
    for position, imported in enumerate(files):
        for column in imported.columns:
            group = groups.get(column.normalized_name)
            if group is not None:
                group.keys_by_file.setdefault(position, []).append(column.key)
    
    return list(groups.values())


def compute_column_widths(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    padding: int = 2,
    max_width: int = 50
) -> List[int]:
    """
    Width hint per column: max(header length, longest cell) + padding, capped.
    
    Example:
        >>> compute_column_widths(['ncm'], [['84713012']])
        [10]
    """
    widths = []
    for i, header in enumerate(headers):
        longest = len(header)
        for row in rows:
            longest = max(longest, len(row[i]))
        widths.append(min(longest + padding, max_width))
    return widths


class ExportAggregator:
    """
    Produces the export Table from all imported files.
    
    Usage:
        >>> aggregator = ExportAggregator(RowStrategy.CONCATENATION)
        >>> table = aggregator.aggregate(files)
        >>> table.headers, table.row_count
    """
    
    def __init__(
        self,
        strategy: RowStrategy = RowStrategy.CONCATENATION,
        column_width_padding: int = 2,
        max_column_width: int = 50
    ):
        self.strategy = RowStrategy(strategy)
        self.column_width_padding = column_width_padding
        self.max_column_width = max_column_width
    
    def aggregate(self, files: Sequence[ImportedFile]) -> Table:
        """
        Flatten the selected columns of all files into one table.
        
        Args:
            files: Imported files in session order
        
        Returns:
            Table with headers, rows and column width hints
        
        Raises:
            NoColumnsSelectedError: If no column of any file is selected
        """
        groups = collect_header_groups(files)
        if not groups:
            raise NoColumnsSelectedError()
        
        if self.strategy is RowStrategy.CONCATENATION:
            rows = self._concatenate(files, groups)
        else:
            rows = self._columnar(files, groups)
        
        headers = [g.label for g in groups]
        widths = compute_column_widths(
            headers, rows, self.column_width_padding, self.max_column_width
        )
        
        logger.info(
            f"Aggregated {len(files)} file(s) into {len(rows)} rows x "
            f"{len(headers)} columns ({self.strategy.value})"
        )
        
        return Table(headers=headers, rows=rows, column_widths=widths)
    
    def _concatenate(self, files: Sequence[ImportedFile], groups: List[HeaderGroup]) -> List[List[str]]:
        rows = []
        for position, imported in enumerate(files):
            for record in imported.records:
                rows.append([g.value_for(position, record) for g in groups])
        return rows
    
    def _columnar(self, files: Sequence[ImportedFile], groups: List[HeaderGroup]) -> List[List[str]]:
        # Known limitation: rows no longer correspond to source records
        # when files have different row counts or column sets
        values: List[List[str]] = []
        for group in groups:
            column_values = []
            for position, imported in enumerate(files):
                if position not in group.keys_by_file:
                    continue
                column_values.extend(group.value_for(position, r) for r in imported.records)
            values.append(column_values)
        
        row_count = max((len(v) for v in values), default=0)
        return [
            [v[i] if i < len(v) else '' for v in values]
            for i in range(row_count)
        ]


def export_table(
    files: Sequence[ImportedFile],
    strategy: RowStrategy = RowStrategy.CONCATENATION,
    column_width_padding: int = 2,
    max_column_width: int = 50
) -> Table:
    """Convenience wrapper around ExportAggregator.aggregate()."""
    aggregator = ExportAggregator(
        strategy,
        column_width_padding=column_width_padding,
        max_column_width=max_column_width
    )
    return aggregator.aggregate(files)
