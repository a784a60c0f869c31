"""
Pydantic model for one column of an imported file.

A column binds a raw record key to a user-facing display name, a selection
flag and a position. The normalized name used for cross-file matching is
computed from display_name on every access.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from di_xml_export.normalization import normalize_name


class Column(BaseModel):
    """
    One selectable, reorderable column of an ImportedFile.
    
    Attributes:
        key: Raw field name as it appears in this file's records
        display_name: User-facing name (defaults to key)
        selected: Whether the column is selected for export
        order: Position within the owning file's column sequence
    
    Example:
        >>> col = Column(key='dadosmercadoriacodigoncm')
        >>> col.display_name
        'dadosmercadoriacodigoncm'
        >>> Column(key='x', display_name='Descrição').normalized_name
        'descricao'
    """
    
    key: str = Field(
        ...,
        min_length=1,
        description="Raw record field name",
        examples=["numeroadicao", "mercadoria.descricaomercadoria"]
    )
    
    display_name: str = Field(
        default='',
        description="User-facing column name; defaults to key"
    )
    
    selected: bool = Field(
        default=False,
        description="Selected for export"
    )
    
    order: int = Field(
        default=0,
        ge=0,
        description="Position within the file's column sequence"
    )
    
    model_config = ConfigDict(validate_assignment=True)
    
    @model_validator(mode='after')
    def default_display_name(self) -> 'Column':
        if not self.display_name:
            # object.__setattr__ avoids re-entering assignment validation
            object.__setattr__(self, 'display_name', self.key)
        return self
    
    @property
    def normalized_name(self) -> str:
        """Join key across files, derived from display_name."""
        return normalize_name(self.display_name)
    
    def matches_search(self, search_text: str) -> bool:
        """Case-insensitive substring match of the display name."""
        if not search_text:
            return True
        return search_text.lower() in self.display_name.lower()
