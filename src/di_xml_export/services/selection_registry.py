"""
Per-file column selection with optional cross-file propagation.

The registry indexes every column of every imported file by normalized
name. Under the PROPAGATED policy a toggle is broadcast to the whole
group; under INDEPENDENT only the addressed column changes. Either way the
set of columns to update is computed before any flag is written.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from di_xml_export.models import Column, ImportedFile
from di_xml_export.types import CheckState, SelectionPolicy
from di_xml_export.validators import validate_file_index

logger = logging.getLogger(__name__)

# (file index, raw column key)
Member = Tuple[int, str]


class SelectionRegistry:
    """
    Selection state manager over a live list of ImportedFile objects.
    
    The registry does not copy the file list; it reads and mutates the
    Column objects owned by the files. Call rebuild() whenever columns are
    added, removed or renamed so the normalized-name groups stay current.
    
    Usage:
        >>> registry = SelectionRegistry(files, SelectionPolicy.PROPAGATED)
        >>> registry.toggle(0, 'ncm', True)    # also selects 'NCM' in other files
        >>> registry.has_any_selection()
        True
    """
    
    def __init__(
        self,
        files: List[ImportedFile],
        policy: SelectionPolicy = SelectionPolicy.INDEPENDENT
    ):
        self.files = files
        self.policy = SelectionPolicy(policy)
        self._groups: Dict[str, List[Member]] = {}
        self.rebuild()
    
    def rebuild(self) -> None:
        """Recompute normalized-name groups from the current files."""
        groups: Dict[str, List[Member]] = {}
        for position, imported in enumerate(self.files):
            for column in imported.columns:
                groups.setdefault(column.normalized_name, []).append((position, column.key))
        self._groups = groups
    
    def group_members(self, normalized_name: str) -> List[Member]:
        """(file index, key) pairs sharing a normalized name."""
        return list(self._groups.get(normalized_name, []))
    
    def _file(self, file_index: int) -> ImportedFile:
        validate_file_index(file_index, len(self.files))
        return self.files[file_index]
    
    def _column(self, file_index: int, column_key: str) -> Column:
        column = self._file(file_index).get_column(column_key)
        if column is None:
            raise KeyError(
                f"No column '{column_key}' in file {file_index} "
                f"('{self.files[file_index].name}')"
            )
        return column
    
    def _targets(self, file_index: int, column: Column) -> List[Column]:
        """Columns affected by toggling column under the current policy."""
        if self.policy is SelectionPolicy.INDEPENDENT:
            return [column]
        
        targets = []
        for position, key in self._groups.get(column.normalized_name, []):
            member = self.files[position].get_column(key)
            if member is not None:
                targets.append(member)
        if all(column is not t for t in targets):
            targets.append(column)
        return targets
    
    def _apply(self, targets: Sequence[Column], selected: bool) -> None:
        for column in targets:
            column.selected = selected
    
    def toggle(self, file_index: int, column_key: str, selected: bool) -> None:
        """
        Set the selection flag of one column (and its group when propagated).
        
        Raises:
            IndexError: If file_index is out of range
            KeyError: If the file has no column with that key
        """
        column = self._column(file_index, column_key)
        targets = self._targets(file_index, column)
        self._apply(targets, selected)
        
        logger.debug(
            f"{'Selected' if selected else 'Deselected'} '{column_key}' in file "
            f"{file_index} ({len(targets)} column(s) updated)"
        )
    
    def toggle_all(self, file_index: int, selected: bool) -> None:
        """
        Set the selection flag of every visible (search-filtered) column.
        
        Hidden columns keep their state. Under the PROPAGATED policy each
        visible column's group is updated as well.
        """
        imported = self._file(file_index)
        
        targets: List[Column] = []
        for column in imported.visible_columns():
            for target in self._targets(file_index, column):
                if all(target is not t for t in targets):
                    targets.append(target)
        
        self._apply(targets, selected)
    
    def is_all_selected(self, file_index: int) -> bool:
        """True when the file has visible columns and all of them are selected."""
        visible = self._file(file_index).visible_columns()
        return bool(visible) and all(c.selected for c in visible)
    
    def is_any_selected(self, file_index: int) -> bool:
        """True when at least one visible column of the file is selected."""
        return any(c.selected for c in self._file(file_index).visible_columns())
    
    def bulk_state(self, file_index: int) -> CheckState:
        """Tri-state of the file's bulk-selection checkbox."""
        if self.is_all_selected(file_index):
            return CheckState.CHECKED
        if self.is_any_selected(file_index):
            return CheckState.INDETERMINATE
        return CheckState.UNCHECKED
    
    def has_any_selection(self) -> bool:
        """True when any column of any file is selected (gates export)."""
        return any(c.selected for f in self.files for c in f.columns)
