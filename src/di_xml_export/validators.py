"""
Reusable validators for file names, sheet names and file positions.

These validators raise the pipeline's error taxonomy (or ValueError /
IndexError) and can be used with Pydantic @field_validator decorator.
"""

from typing import Optional

from di_xml_export.exceptions import InvalidFileTypeError

# Excel limits worksheet names to 31 characters and forbids these characters
MAX_SHEET_NAME_LENGTH = 31
FORBIDDEN_SHEET_CHARS = set('[]:*?/\\')


def is_xml_filename(filename: Optional[str]) -> bool:
    """Check whether a filename has an .xml extension (case-insensitive)."""
    if not filename:
        return False
    return filename.strip().lower().endswith('.xml')


def validate_xml_filename(filename: str) -> str:
    """
    Validate that a file offered for import is an XML file.
    
    Args:
        filename: Name of the uploaded or dropped file
    
    Returns:
        The validated filename (unchanged if valid)
    
    Raises:
        InvalidFileTypeError: If the name does not end with '.xml'
    
    Example:
        >>> validate_xml_filename('DI_2024.XML')
        'DI_2024.XML'
        >>> validate_xml_filename('notes.txt')  # Raises InvalidFileTypeError
    """
    if not is_xml_filename(filename):
        raise InvalidFileTypeError(filename)
    
    return filename


def validate_sheet_name(name: str) -> str:
    """
    Validate a worksheet name and truncate it to Excel's length limit.
    
    Args:
        name: Desired worksheet name
    
    Returns:
        Sheet name, truncated to 31 characters if longer
    
    Raises:
        ValueError: If the name is blank or contains a character Excel rejects
    
    Example:
        >>> validate_sheet_name('Dados Combinados')
        'Dados Combinados'
        >>> validate_sheet_name('Q1/Q2')  # Raises ValueError
    """
    if not name or not name.strip():
        raise ValueError("Sheet name must not be blank")
    
    invalid = sorted(set(name) & FORBIDDEN_SHEET_CHARS)
    if invalid:
        raise ValueError(
            f"Sheet name contains characters not allowed by Excel: {invalid}\n"
            f"Got: '{name}'"
        )
    
    return name[:MAX_SHEET_NAME_LENGTH]


def validate_file_index(index: int, file_count: int) -> int:
    """
    Validate a position in the imported file sequence.
    
    Raises:
        IndexError: If index is outside [0, file_count)
    """
    if not 0 <= index < file_count:
        raise IndexError(
            f"File index {index} out of range (imported files: {file_count})"
        )
    return index
