"""
Session controller for the XML import → column selection → export workflow.

ImportSession owns the ImportedFile sequence and coordinates:
- RecordParser (XML → records)
- build_columns (column reconciliation against earlier files)
- SelectionRegistry (per-file / propagated selection)
- ExportAggregator + SpreadsheetWriter (table → .xlsx)
- Notifier (user-facing outcome of every operation)

Design Philosophy:
- Collaborators are injected (no module-level singletons in the workflow)
- Resilient batches (a failing file is skipped, the rest still import)
- Atomic export (nothing is written unless the whole workbook encodes)
- Single-threaded asyncio: blocking I/O runs in worker threads, but all
  session state is mutated on the event loop between awaits
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from di_xml_export.config import ExportSettings, get_settings
from di_xml_export.exceptions import (
    EmptyResultError,
    ExportEncodingError,
    InvalidFileTypeError,
    NoColumnsSelectedError,
    ParseError,
)
from di_xml_export.models import Column, ExportResult, ImportedFile
from di_xml_export.parsers import RecordParser
from di_xml_export.services.column_builder import build_columns, known_columns, move_column
from di_xml_export.services.export_aggregator import ExportAggregator
from di_xml_export.services.notifications import LoggingNotifier, Notifier
from di_xml_export.services.selection_registry import SelectionRegistry
from di_xml_export.services.spreadsheet_writer import SpreadsheetWriter
from di_xml_export.types import CheckState, Severity
from di_xml_export.validators import validate_file_index, validate_xml_filename

logger = logging.getLogger(__name__)

# User-facing messages (pt-BR)
MSG_ONLY_XML = 'Por favor, selecione apenas arquivos XML.'
MSG_IMPORTED = 'Arquivos importados com sucesso!'
MSG_PARSE_FAILED = "Erro ao processar '{name}'. Verifique se é um arquivo XML válido."
MSG_NO_COLUMNS = 'Selecione pelo menos uma coluna para exportar.'
MSG_EXPORTED = 'Dados exportados com sucesso!'
MSG_EXPORT_FAILED = 'Erro ao exportar dados. Por favor, tente novamente.'

LARGE_CONTENT_LENGTH = 100


def is_large_content(text: Optional[str]) -> bool:
    """Cell text long enough (or multi-line) to be shown collapsed."""
    if not text:
        return False
    return len(text) > LARGE_CONTENT_LENGTH or '\n' in text


class UploadedFile(BaseModel):
    """A file handed over by a file picker or drop zone."""
    
    name: str = Field(..., min_length=1)
    content: bytes = Field(repr=False)


Source = Union[UploadedFile, str, Path]


class ImportSession:
    """
    Transient, per-session state of imported files and their columns.
    
    Usage:
        >>> session = ImportSession()
        >>> stats = asyncio.run(session.import_files(['DI_001.xml', 'DI_002.xml']))
        >>> session.toggle_all(0, True)
        >>> result = asyncio.run(session.export('out/dados_exportados.xlsx'))
    """
    
    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        settings: Optional[ExportSettings] = None,
        parser: Optional[RecordParser] = None,
        writer: Optional[SpreadsheetWriter] = None
    ):
        self.settings = settings or get_settings()
        self.notifier = notifier or LoggingNotifier()
        self.parser = parser or RecordParser(self.settings)
        self.writer = writer or SpreadsheetWriter()
        self.aggregator = ExportAggregator(
            self.settings.row_strategy,
            column_width_padding=self.settings.column_width_padding,
            max_column_width=self.settings.max_column_width
        )
        
        self.files: List[ImportedFile] = []
        self.registry = SelectionRegistry(self.files, self.settings.selection_policy)
    
    # === Notifications ===
    
    def _notify(self, message: str, severity: Severity) -> None:
        self.notifier.notify(message, severity, self.settings.duration_for(severity))
    
    # === Import ===
    
    async def _read(self, source: Source) -> UploadedFile:
        if isinstance(source, UploadedFile):
            return source
        path = Path(source)
        content = await asyncio.to_thread(path.read_bytes)
        return UploadedFile(name=path.name, content=content)
    
    def _load(self, upload: UploadedFile) -> ImportedFile:
        """
        Parse one upload and reconcile its columns with earlier files.
        
        Raises:
            ParseError: Malformed or unrecognized XML
            EmptyResultError: No records in the document
        """
        records = self.parser.parse(upload.content, source_name=upload.name)
        if not records:
            raise EmptyResultError(upload.name)
        
        columns = build_columns(
            records,
            existing_columns=known_columns(self.files),
            default_selected=self.settings.default_selected
        )
        
        return ImportedFile(
            name=upload.name,
            records=records,
            columns=columns,
            index=len(self.files)
        )
    
    async def import_files(self, sources: Iterable[Source]) -> Dict[str, List[str]]:
        """
        Import a batch of XML files, one after another.
        
        Each file is fully parsed and appended before the next one is read,
        so later files reconcile their columns against earlier ones.
        
        Args:
            sources: UploadedFile objects or filesystem paths
        
        Returns:
            Statistics dictionary with file names per outcome:
            {
                'imported': [...],   # added to the session
                'rejected': [...],   # not .xml
                'failed': [...],     # unreadable or ParseError
                'empty': [...]       # parsed, zero records
            }
        """
        stats: Dict[str, List[str]] = {
            'imported': [],
            'rejected': [],
            'failed': [],
            'empty': []
        }
        
        accepted: List[Source] = []
        for source in sources:
            name = source.name if isinstance(source, UploadedFile) else Path(source).name
            try:
                validate_xml_filename(name)
            except InvalidFileTypeError as e:
                logger.warning(f"Skipping {e.filename}: not an XML file")
                stats['rejected'].append(name)
                continue
            accepted.append(source)
        
        if stats['rejected'] or not accepted:
            self._notify(MSG_ONLY_XML, Severity.WARNING)
        
        if not accepted:
            return stats
        
        for source in accepted:
            try:
                upload = await self._read(source)
                imported = self._load(upload)
            except EmptyResultError as e:
                logger.debug(f"Not adding {e.source}: no records")
                stats['empty'].append(e.source)
                continue
            except (ParseError, OSError) as e:
                name = source.name if isinstance(source, UploadedFile) else Path(source).name
                logger.warning(f"Skipping {name}: {e}")
                stats['failed'].append(name)
                self._notify(MSG_PARSE_FAILED.format(name=name), Severity.ERROR)
                continue
            
            self.files.append(imported)
            self.registry.rebuild()
            stats['imported'].append(imported.name)
            logger.info(
                f"Imported {imported.name}: {imported.record_count} records, "
                f"{len(imported.columns)} columns"
            )
        
        if stats['imported']:
            self._notify(MSG_IMPORTED, Severity.INFO)
        
        return stats
    
    # === File Management ===
    
    def _file(self, file_index: int) -> ImportedFile:
        validate_file_index(file_index, len(self.files))
        return self.files[file_index]
    
    def remove_file(self, file_index: int) -> ImportedFile:
        """
        Remove one file; other files keep their columns, order and selection.
        
        Remaining files are renumbered so that index equals position.
        """
        removed = self._file(file_index)
        del self.files[file_index]
        
        for position, imported in enumerate(self.files):
            imported.index = position
        self.registry.rebuild()
        
        logger.info(f"Removed {removed.name} ({len(self.files)} file(s) left)")
        return removed
    
    def clear(self) -> None:
        """Remove every imported file."""
        self.files.clear()
        self.registry.rebuild()
    
    # === Columns ===
    
    def visible_columns(self, file_index: int) -> List[Column]:
        return self._file(file_index).visible_columns()
    
    def set_search_text(self, file_index: int, search_text: str) -> None:
        """Filter the file's visible columns (never changes selection)."""
        self._file(file_index).search_text = search_text or ''
    
    def move_column(self, file_index: int, previous_index: int, current_index: int) -> None:
        """Drag-and-drop reorder within one file."""
        move_column(self._file(file_index).columns, previous_index, current_index)
    
    def rename_column(self, file_index: int, column_key: str, display_name: str) -> Column:
        """
        Change a column's display name, which may move it to another
        normalized-name group.
        """
        column = self._file(file_index).get_column(column_key)
        if column is None:
            raise KeyError(f"No column '{column_key}' in file {file_index}")
        column.display_name = display_name.strip() or column.key
        self.registry.rebuild()
        return column
    
    def preview(self, file_index: int, limit: int = 10) -> List[Dict[str, str]]:
        """
        First records of a file restricted to its visible columns.
        
        Keys are display names; long or multi-line values are collapsed to
        their first line, cut at LARGE_CONTENT_LENGTH characters.
        """
        imported = self._file(file_index)
        columns = imported.visible_columns()
        
        rows = []
        for record in imported.records[:max(limit, 0)]:
            row = {}
            for column in columns:
                value = record.get(column.key, '')
                if is_large_content(value):
                    value = value.splitlines()[0][:LARGE_CONTENT_LENGTH] + '…'
                row[column.display_name] = value
            rows.append(row)
        return rows
    
    # === Selection ===
    
    def toggle_column(self, file_index: int, column_key: str, selected: Optional[bool] = None) -> bool:
        """
        Select or deselect one column; selected=None flips its state.
        
        Returns:
            The new selection state
        """
        column = self._file(file_index).get_column(column_key)
        if column is None:
            raise KeyError(f"No column '{column_key}' in file {file_index}")
        if selected is None:
            selected = not column.selected
        self.registry.toggle(file_index, column_key, selected)
        return selected
    
    def toggle_all(self, file_index: int, selected: Optional[bool] = None) -> bool:
        """
        Select or deselect every visible column of a file.
        
        selected=None behaves like the bulk checkbox: deselect when all
        visible columns are selected, select otherwise.
        """
        if selected is None:
            selected = not self.registry.is_all_selected(file_index)
        self.registry.toggle_all(file_index, selected)
        return selected
    
    def bulk_state(self, file_index: int) -> CheckState:
        return self.registry.bulk_state(file_index)
    
    def has_any_selection(self) -> bool:
        return self.registry.has_any_selection()
    
    # === Export ===
    
    async def export(self, output_path: Optional[Union[str, Path]] = None) -> Optional[ExportResult]:
        """
        Export the selected columns of all files to one spreadsheet.
        
        Args:
            output_path: File or directory to write to. A directory (existing,
                or a path ending in a separator) receives
                settings.output_filename. When None, only bytes are returned.
        
        Returns:
            ExportResult, or None when the export was aborted (nothing
            selected, or encoding/writing failed). Session state is never
            modified by an export.
        """
        try:
            table = self.aggregator.aggregate(self.files)
        except NoColumnsSelectedError:
            logger.warning("Export aborted: no columns selected")
            self._notify(MSG_NO_COLUMNS, Severity.WARNING)
            return None
        
        target: Optional[Path] = None
        if output_path is not None:
            target = Path(output_path)
            if target.is_dir() or str(output_path).endswith(('/', os.sep)):
                target = target / self.settings.output_filename
        
        try:
            content = await asyncio.to_thread(
                self.writer.write,
                table.headers,
                table.rows,
                table.column_widths,
                self.settings.sheet_name
            )
            if target is not None:
                await asyncio.to_thread(_write_atomic, target, content)
        except (ExportEncodingError, OSError) as e:
            logger.error(f"Export failed: {e}")
            self._notify(MSG_EXPORT_FAILED, Severity.ERROR)
            return None
        
        self._notify(MSG_EXPORTED, Severity.INFO)
        logger.info(
            f"Exported {table.row_count} rows x {len(table.headers)} columns"
            + (f" to {target}" if target else "")
        )
        
        return ExportResult(
            filename=target.name if target else self.settings.output_filename,
            content=content,
            headers=table.headers,
            row_count=table.row_count,
            output_path=str(target) if target else None
        )


def _default_file_mode() -> int:
    """Mode open() would give a new file: 0o666 masked by the umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


DEFAULT_FILE_MODE = _default_file_mode()


def _write_atomic(path: Path, content: bytes) -> None:
    """Write to a temporary sibling, then rename over the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(content)
        # mkstemp creates the file as 0o600
        os.chmod(tmp_name, DEFAULT_FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
