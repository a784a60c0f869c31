"""
Pydantic models for the export output.

Table is the rectangular result of ExportAggregator; ExportResult is what
ImportSession hands back after the spreadsheet has been written.
"""

from typing import List, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Table(BaseModel):
    """
    Rectangular table of strings with per-column width hints.
    
    Attributes:
        headers: Header row (one label per normalized column group)
        rows: Data rows; every row has len(headers) cells
        column_widths: Suggested width per column, in characters
    """
    
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    column_widths: List[int] = Field(default_factory=list)
    
    model_config = ConfigDict(frozen=True)
    
    @model_validator(mode='after')
    def validate_rectangular(self) -> 'Table':
        width = len(self.headers)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {i} has {len(row)} cells, expected {width}"
                )
        if self.column_widths and len(self.column_widths) != width:
            raise ValueError(
                f"Got {len(self.column_widths)} column widths for {width} headers"
            )
        return self
    
    @property
    def row_count(self) -> int:
        return len(self.rows)
    
    def to_dataframe(self) -> pd.DataFrame:
        """Table as a DataFrame of strings (column order = headers)."""
        return pd.DataFrame(self.rows, columns=self.headers, dtype=str)


class ExportResult(BaseModel):
    """Outcome of a successful export."""
    
    filename: str
    content: bytes = Field(repr=False)
    headers: List[str]
    row_count: int = Field(ge=0)
    output_path: Optional[str] = None
