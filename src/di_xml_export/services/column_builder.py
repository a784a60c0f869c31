"""
Column model construction and reordering.

Columns of a newly imported file are reconciled against the columns already
known from previously imported files by normalized name, so that spelling
variants ('NCM' vs 'ncm', 'descrição' vs 'descricao') land in one group.
"""

import logging
from typing import Dict, List, Optional, Sequence

from di_xml_export.models import Column, ImportedFile, Record
from di_xml_export.normalization import normalize_name

logger = logging.getLogger(__name__)


def _distinct_keys(records: Sequence[Record]) -> List[str]:
    """Union of record keys in first-seen order."""
    seen = set()
    keys: List[str] = []
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


def renumber(columns: List[Column]) -> List[Column]:
    """Make every column's order equal to its position."""
    for position, column in enumerate(columns):
        if column.order != position:
            column.order = position
    return columns


def build_columns(
    records: Sequence[Record],
    existing_columns: Optional[Sequence[Column]] = None,
    default_selected: bool = False
) -> List[Column]:
    """
    Derive the column model of a file from its records.
    
    Without existing columns, one Column per distinct record key is created
    in first-seen order. With existing columns (from previously imported
    files), those are copied first, keeping order, display name and
    selection; a copied column is rebound to this file's raw key when one
    normalizes to the same name. Keys whose normalized name matches no
    existing column are appended.
    
    Args:
        records: Records of the file being imported
        existing_columns: Columns already known from earlier files
        default_selected: Selection state of newly created columns
    
    Returns:
        New list of Column objects (existing columns are never mutated)
    
    Example:
        >>> first = build_columns([{'NCM': '1', 'valor': '2'}])
        >>> merged = build_columns([{'ncm': '3'}], existing_columns=first)
        >>> [c.key for c in merged]
        ['ncm', 'valor']
    """
    keys = _distinct_keys(records)
    
    if not existing_columns:
        return [
            Column(key=key, display_name=key, selected=default_selected, order=i)
            for i, key in enumerate(keys)
        ]
    
    # First raw key of this file for each normalized name
    key_by_group: Dict[str, str] = {}
    for key in keys:
        key_by_group.setdefault(normalize_name(key), key)
    
    columns: List[Column] = []
    used_keys = set()
    known_groups = set()
    
    for existing in existing_columns:
        group = existing.normalized_name
        known_groups.add(group)
        
        key = key_by_group.get(group, existing.key)
        if key in used_keys:
            # Another inherited column already claimed this raw key
            key = existing.key
        if key in used_keys:
            continue
        
        used_keys.add(key)
        columns.append(existing.model_copy(update={'key': key}))
    
    appended = 0
    for key in keys:
        if key in used_keys or normalize_name(key) in known_groups:
            continue
        used_keys.add(key)
        columns.append(Column(key=key, display_name=key, selected=default_selected))
        appended += 1
    
    logger.debug(
        f"Built {len(columns)} columns "
        f"({len(columns) - appended} inherited, {appended} new)"
    )
    
    return renumber(columns)


def known_columns(files: Sequence[ImportedFile]) -> List[Column]:
    """
    Union of the columns of all files, one per normalized name.
    
    The first column seen for each normalized name wins (file order, then
    column order), which makes it the template for the next import.
    """
    seen = set()
    columns: List[Column] = []
    for imported in files:
        for column in imported.columns:
            group = column.normalized_name
            if group in seen:
                continue
            seen.add(group)
            columns.append(column)
    return columns


def move_column(columns: List[Column], previous_index: int, current_index: int) -> List[Column]:
    """
    Move one column to a new position within a single file (in place).
    
    Indices are clamped to the valid range, the way a drag-and-drop list
    clamps a drop past either end.
    
    Returns:
        The same list, reordered and renumbered
    """
    if not columns:
        return columns
    
    last = len(columns) - 1
    source = max(0, min(previous_index, last))
    target = max(0, min(current_index, last))
    
    if source != target:
        columns.insert(target, columns.pop(source))
    
    return renumber(columns)
