"""
Spreadsheet writer: headers + rows → .xlsx bytes.

Uses pandas.ExcelWriter with the openpyxl engine, then styles the sheet
through openpyxl:
- Bold header row on a light-grey fill
- Every cell stored as text so codes keep their leading zeros and values
  starting with "=" are never turned into formulas
- Column widths taken from the caller's width hints
"""

import io
import logging
from typing import List, Optional, Sequence

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from di_xml_export.exceptions import ExportEncodingError
from di_xml_export.models import Table
from di_xml_export.validators import validate_sheet_name

logger = logging.getLogger(__name__)

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type='solid', fgColor='FFE6E6E6')
TEXT_FORMAT = '@'


class SpreadsheetWriter:
    """
    Encodes a table into an .xlsx workbook held in memory.
    
    Usage:
        >>> writer = SpreadsheetWriter()
        >>> content = writer.write(['ncm'], [['0101']], [6], 'Dados Combinados')
        >>> content[:2]
        b'PK'
    """
    
    def __init__(self, engine: str = 'openpyxl'):
        self.engine = engine
    
    def write(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        column_widths: Optional[Sequence[int]] = None,
        sheet_name: str = 'Dados Combinados'
    ) -> bytes:
        """
        Write one worksheet and return the workbook bytes.
        
        Args:
            headers: Header row
            rows: Data rows (strings)
            column_widths: Width per column in characters (optional)
            sheet_name: Worksheet name (truncated to 31 characters)
        
        Returns:
            .xlsx file content
        
        Raises:
            ExportEncodingError: If the workbook cannot be produced
        """
        try:
            sheet_name = validate_sheet_name(sheet_name)
            df = pd.DataFrame(list(rows), columns=list(headers), dtype=object)
            
            buffer = io.BytesIO()
            with pd.ExcelWriter(buffer, engine=self.engine) as writer:
                df.to_excel(writer, sheet_name=sheet_name, index=False)
                worksheet = writer.sheets[sheet_name]
                self._style(worksheet, len(headers), column_widths)
            
            return buffer.getvalue()
        except ExportEncodingError:
            raise
        except Exception as e:
            logger.error(f"Failed to encode spreadsheet '{sheet_name}': {e}", exc_info=True)
            raise ExportEncodingError(f"Failed to encode spreadsheet: {e}") from e
    
    def write_table(self, table: Table, sheet_name: str = 'Dados Combinados') -> bytes:
        """Write an aggregated Table."""
        return self.write(table.headers, table.rows, table.column_widths, sheet_name)
    
    def _style(self, worksheet, column_count: int, column_widths: Optional[Sequence[int]]) -> None:
        # openpyxl stores strings starting with "=" as formulas
        for row in worksheet.iter_rows():
            for cell in row:
                if cell.data_type == 'f':
                    cell.data_type = 's'
        
        for cell in worksheet[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
        
        for row in worksheet.iter_rows(min_row=2):
            for cell in row:
                cell.number_format = TEXT_FORMAT
        
        widths: List[int] = list(column_widths or [])
        for i, width in enumerate(widths[:column_count], start=1):
            worksheet.column_dimensions[get_column_letter(i)].width = width
