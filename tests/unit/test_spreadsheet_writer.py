"""
Unit tests for SpreadsheetWriter.

Workbooks are read back with openpyxl to check content and styling.
"""

import io

import pytest
from openpyxl import load_workbook

from di_xml_export.exceptions import ExportEncodingError
from di_xml_export.models import Table
from di_xml_export.services.spreadsheet_writer import SpreadsheetWriter


def read_sheet(content: bytes):
    workbook = load_workbook(io.BytesIO(content))
    return workbook, workbook.worksheets[0]


@pytest.fixture
def content() -> bytes:
    return SpreadsheetWriter().write(
        ['numeroadicao', 'ncm'],
        [['001', '84713012'], ['002', '85044010']],
        [14, 10],
        'Dados Combinados'
    )


class TestWorkbookContent:
    
    def test_returns_xlsx_bytes(self, content):
        """xlsx files are zip archives."""
        assert content[:2] == b'PK'
    
    def test_sheet_name(self, content):
        workbook, _ = read_sheet(content)
        assert workbook.sheetnames == ['Dados Combinados']
    
    def test_header_and_rows(self, content):
        _, sheet = read_sheet(content)
        
        assert [c.value for c in sheet[1]] == ['numeroadicao', 'ncm']
        assert [c.value for c in sheet[2]] == ['001', '84713012']
        assert sheet.max_row == 3
    
    def test_leading_zeros_kept(self, content):
        """Should store codes as text, not numbers."""
        _, sheet = read_sheet(content)
        assert sheet['A2'].value == '001'
        assert isinstance(sheet['B2'].value, str)
    
    def test_equals_prefix_stays_text(self):
        """Values starting with '=' should be stored as text, not formulas."""
        content = SpreadsheetWriter().write(
            ['=obs'], [['=== LOTE ==='], ['=1+1']], [15]
        )
        
        _, sheet = read_sheet(content)
        
        assert sheet['A1'].value == '=obs'
        assert sheet['A2'].value == '=== LOTE ==='
        assert sheet['A3'].value == '=1+1'
        assert all(sheet[ref].data_type == 's' for ref in ('A1', 'A2', 'A3'))
    
    def test_long_sheet_name_truncated(self):
        content = SpreadsheetWriter().write(['a'], [['1']], sheet_name='x' * 40)
        workbook, _ = read_sheet(content)
        assert workbook.sheetnames == ['x' * 31]
    
    def test_write_table(self):
        table = Table(headers=['a'], rows=[['1']], column_widths=[3])
        
        _, sheet = read_sheet(SpreadsheetWriter().write_table(table))
        
        assert sheet['A1'].value == 'a'
        assert sheet['A2'].value == '1'


class TestStyling:
    
    def test_header_bold(self, content):
        _, sheet = read_sheet(content)
        assert all(c.font.bold for c in sheet[1])
    
    def test_header_fill(self, content):
        _, sheet = read_sheet(content)
        assert sheet['A1'].fill.fill_type == 'solid'
        assert sheet['A1'].fill.fgColor.rgb == 'FFE6E6E6'
    
    def test_data_cells_text_format(self, content):
        _, sheet = read_sheet(content)
        assert sheet['A2'].number_format == '@'
        assert sheet['B3'].number_format == '@'
    
    def test_column_widths(self, content):
        _, sheet = read_sheet(content)
        assert sheet.column_dimensions['A'].width == 14
        assert sheet.column_dimensions['B'].width == 10


class TestErrors:
    
    def test_invalid_sheet_name(self):
        """Should wrap sheet name errors in ExportEncodingError."""
        with pytest.raises(ExportEncodingError):
            SpreadsheetWriter().write(['a'], [['1']], sheet_name='a/b')
    
    def test_unknown_engine(self):
        with pytest.raises(ExportEncodingError, match='Failed to encode'):
            SpreadsheetWriter(engine='no-such-engine').write(['a'], [['1']])
