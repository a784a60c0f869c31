"""
Pydantic model for a successfully parsed XML file.

An ImportedFile owns its records and columns exclusively. It is created by
ImportSession after a file parses to at least one record and lives until
the user removes it.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .column import Column

# One flattened item node: field key -> string value (possibly empty)
Record = Dict[str, str]


class ImportedFile(BaseModel):
    """
    Records and column model of one imported XML file.
    
    Attributes:
        name: Original file name
        records: Flattened records, in document order
        columns: Column model, in display order (keys unique)
        index: Current position of the file in the session
        search_text: Column filter text (empty shows every column)
    
    Example:
        >>> f = ImportedFile(
        ...     name='DI_001.xml',
        ...     records=[{'a': '1', 'b': '2'}],
        ...     columns=[Column(key='a'), Column(key='b', order=1)],
        ... )
        >>> [c.key for c in f.visible_columns()]
        ['a', 'b']
    """
    
    name: str = Field(..., min_length=1, description="Original file name")
    
    records: List[Record] = Field(
        default_factory=list,
        description="Flattened records in document order"
    )
    
    columns: List[Column] = Field(
        default_factory=list,
        description="Column model in display order"
    )
    
    index: int = Field(default=0, ge=0, description="Position in the session")
    
    search_text: str = Field(default='', description="Column filter text")
    
    model_config = ConfigDict(validate_assignment=True)
    
    @field_validator('columns')
    @classmethod
    def validate_unique_keys(cls, v: List[Column]) -> List[Column]:
        """Column keys must be unique within one file."""
        seen = set()
        duplicates = []
        for column in v:
            if column.key in seen:
                duplicates.append(column.key)
            seen.add(column.key)
        if duplicates:
            raise ValueError(f"Duplicate column keys: {duplicates}")
        return v
    
    @property
    def record_count(self) -> int:
        return len(self.records)
    
    def visible_columns(self) -> List[Column]:
        """Columns whose display name contains the current search text."""
        return [c for c in self.columns if c.matches_search(self.search_text)]
    
    def selected_columns(self) -> List[Column]:
        return [c for c in self.columns if c.selected]
    
    def get_column(self, key: str) -> Optional[Column]:
        """Find a column by raw key, or None."""
        for column in self.columns:
            if column.key == key:
                return column
        return None
    
    def keys_for_group(self, normalized_name: str) -> List[str]:
        """Raw keys of this file's columns in a normalized-name group, in order."""
        return [c.key for c in self.columns if c.normalized_name == normalized_name]
    
    def __repr__(self) -> str:
        return (
            f"ImportedFile(name='{self.name}', index={self.index}, "
            f"records={len(self.records)}, columns={len(self.columns)})"
        )
