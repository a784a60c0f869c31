"""
Error taxonomy for the import/export pipeline.

Every error is recoverable at an operation boundary:
- InvalidFileTypeError, ParseError, EmptyResultError: per file during import
- NoColumnsSelectedError, ExportEncodingError: per export call

Lower-level components raise these; ImportSession catches them and reports
through the notification collaborator.
"""


class DiXmlExportError(Exception):
    """Base class for all di-xml-export errors."""


class InvalidFileTypeError(DiXmlExportError):
    """Raised when a file offered for import is not an .xml file."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Not an XML file: '{filename}'")


class ParseError(DiXmlExportError):
    """
    Raised when an XML document cannot be turned into records.

    Covers malformed XML (unclosed tags, bad encoding) as well as documents
    whose structure matches no configured declaration/item pattern.
    """

    def __init__(self, message: str, source: str = None):
        self.source = source
        if source:
            message = f"{message} (file: {source})"
        super().__init__(message)


class EmptyResultError(DiXmlExportError):
    """Raised when a document parses cleanly but yields zero records."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No records found in '{source}'")


class NoColumnsSelectedError(DiXmlExportError):
    """Raised when an export is attempted with no column selected in any file."""

    def __init__(self):
        super().__init__("No columns selected for export")


class ExportEncodingError(DiXmlExportError):
    """Raised when the spreadsheet writer fails to produce the output workbook."""
