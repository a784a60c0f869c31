"""
Configuration management using Pydantic Settings.

Values are resolved in this order (later wins):
1. Packaged defaults from di_xml_export/defaults.yaml
2. Environment variables prefixed with DI_XML_ (and an optional .env file)
3. Explicit keyword arguments

Provides type-safe access to:
- Document shape (declaration/item tag patterns, encodings)
- Column, selection and row-layout policies
- Spreadsheet output and notification settings
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from di_xml_export.types import RowStrategy, SelectionPolicy
from di_xml_export.validators import validate_sheet_name

DEFAULTS_PATH = Path(__file__).parent / 'defaults.yaml'


class ExportSettings(BaseSettings):
    """
    Settings for the XML import and spreadsheet export pipeline.
    
    Attributes:
        declaration_tags: Tag names/patterns of declaration elements
        item_tags: Tag names/patterns of item elements (one record each)
        tag_match_threshold: Optional fuzzy matching ratio for tag names
        fallback_encodings: Encodings tried when the declared one fails
        value_separator: Separator for repeated sibling values
        default_selected: Selection state of newly built columns
        selection_policy: Whether toggles propagate across files
        row_strategy: Row layout of the exported table
        output_filename: Default file name of the exported workbook
        sheet_name: Worksheet name of the exported workbook
        column_width_padding: Characters added to the widest cell
        max_column_width: Upper bound of any column width
        info_duration_ms / warning_duration_ms / error_duration_ms:
            How long notifications of each severity stay visible
    
    Example:
        >>> settings = ExportSettings()
        >>> settings.item_tags
        ['adicao']
        >>> ExportSettings(row_strategy='columnar').row_strategy
        <RowStrategy.COLUMNAR: 'columnar'>
    """
    
    # === Document Shape ===
    declaration_tags: List[str] = Field(
        default_factory=lambda: ['declaracaoimportacao'],
        description="Declaration tag names or wildcard patterns"
    )
    item_tags: List[str] = Field(
        default_factory=lambda: ['adicao'],
        description="Item tag names or wildcard patterns"
    )
    tag_match_threshold: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Fuzzy tag matching threshold (None disables fuzzy matching)"
    )
    fallback_encodings: List[str] = Field(
        default_factory=lambda: ['iso-8859-1'],
        description="Encodings tried after the declared encoding fails"
    )
    value_separator: str = Field(
        default=', ',
        description="Separator joining repeated sibling element values"
    )
    
    # === Policies ===
    default_selected: bool = Field(
        default=False,
        description="Selection state of newly imported columns"
    )
    selection_policy: SelectionPolicy = Field(
        default=SelectionPolicy.INDEPENDENT,
        description="Selection toggle propagation policy"
    )
    row_strategy: RowStrategy = Field(
        default=RowStrategy.CONCATENATION,
        description="Row alignment strategy for multi-file export"
    )
    
    # === Spreadsheet Output ===
    output_filename: str = Field(default='dados_exportados.xlsx')
    sheet_name: str = Field(default='Dados Combinados')
    column_width_padding: int = Field(default=2, ge=0)
    max_column_width: int = Field(default=50, ge=1)
    
    # === Notifications ===
    info_duration_ms: int = Field(default=3000, ge=0)
    warning_duration_ms: int = Field(default=5000, ge=0)
    error_duration_ms: int = Field(default=5000, ge=0)
    
    model_config = SettingsConfigDict(
        env_prefix='DI_XML_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )
    
    @model_validator(mode='before')
    @classmethod
    def load_yaml_defaults(cls, data: dict) -> dict:
        """
        Layer packaged YAML defaults under environment and explicit values.
        
        Runs before field validation, so anything already present in data
        (from kwargs or environment) takes precedence over the YAML file.
        """
        if not DEFAULTS_PATH.exists():
            return data
        
        with open(DEFAULTS_PATH, 'r', encoding='utf-8') as f:
            yaml_data = yaml.safe_load(f) or {}
        
        return {**yaml_data, **(data or {})}
    
    @field_validator('declaration_tags', 'item_tags')
    @classmethod
    def lowercase_tags(cls, v: List[str]) -> List[str]:
        """Tag matching happens on lower-cased names."""
        tags = [t.strip().lower() for t in v if t and t.strip()]
        if not tags:
            raise ValueError("At least one tag name or pattern is required")
        return tags
    
    @field_validator('output_filename')
    @classmethod
    def require_xlsx_extension(cls, v: str) -> str:
        if not v.lower().endswith('.xlsx'):
            v = f"{v}.xlsx"
        return v
    
    check_sheet_name = field_validator('sheet_name')(validate_sheet_name)
    
    def duration_for(self, severity) -> int:
        """Notification duration (ms) for a Severity."""
        return {
            'info': self.info_duration_ms,
            'warning': self.warning_duration_ms,
            'error': self.error_duration_ms,
        }[getattr(severity, 'value', severity)]


# Singleton pattern - loaded once, cached forever
_settings: Optional[ExportSettings] = None


def get_settings() -> ExportSettings:
    """
    Get global settings instance (lazy-loaded singleton).
    
    Used as the fallback when a component is constructed without explicit
    settings; ImportSession receives its settings by injection.
    
    Returns:
        Singleton ExportSettings instance
    """
    global _settings
    if _settings is None:
        _settings = ExportSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
