"""
XML parsing and flattening for customs declaration exports.

Document shape (Siscomex "Declaração de Importação" export):
1. Root (usually <ListaDeclaracoes>) holding N declarations
2. Each <declaracaoImportacao> holding M repeating <adicao> items
3. One flat record per item; nested elements become dot-joined keys

Declaration and item tags are configurable (exact names or wildcards), so
other declaration→item documents parse the same way.
"""

import logging
from typing import Dict, Iterable, List, Optional, Union

from lxml import etree

from di_xml_export.config import ExportSettings, get_settings
from di_xml_export.exceptions import ParseError
from di_xml_export.models import Record
from .tag_matcher import TagMatcher, create_default_matcher

logger = logging.getLogger(__name__)

# Siscomex exports sometimes carry a literal, unescaped space entity
SPACE_ARTIFACT = '#x20;'


def _new_parser(encoding: Optional[str] = None) -> etree.XMLParser:
    # recover=False: malformed documents must fail instead of being patched up
    return etree.XMLParser(
        encoding=encoding,
        recover=False,
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=True
    )


def load_xml_root(
    source: Union[str, bytes],
    fallback_encodings: Iterable[str] = ('iso-8859-1',),
    source_name: Optional[str] = None
) -> etree._Element:
    """
    Parse XML text or bytes into an lxml element tree.
    
    Bytes are decoded according to their XML declaration (UTF-8 when
    absent); if that fails with an encoding error, each fallback encoding
    is tried in order. Text is parsed as-is, ignoring any declared encoding.
    
    Args:
        source: Raw XML document
        fallback_encodings: Encodings to retry with after an encoding error
        source_name: File name used in error messages
    
    Returns:
        Root element
    
    Raises:
        ParseError: If the document is malformed or cannot be decoded
    """
    if isinstance(source, str):
        try:
            return etree.fromstring(source.encode('utf-8'), _new_parser('utf-8'))
        except (etree.XMLSyntaxError, ValueError) as e:
            raise ParseError(f"Malformed XML: {e}", source_name) from e
    
    # Parse bytes with encoding fallback (declared/UTF-8 → ISO-8859-1)
    last_error: Optional[Exception] = None
    
    for encoding in [None, *fallback_encodings]:
        try:
            return etree.fromstring(source, _new_parser(encoding))
        except etree.XMLSyntaxError as e:
            if 'encoding' in str(e).lower() or 'utf-8' in str(e).lower():
                # Encoding error - try next encoding
                logger.debug(
                    f"Decoding {source_name or 'document'} as "
                    f"{encoding or 'declared encoding'} failed: {e}"
                )
                last_error = e
                continue
            raise ParseError(f"Malformed XML: {e}", source_name) from e
        except (LookupError, ValueError) as e:
            # Unknown encoding name or unusable input
            last_error = e
            continue
    
    raise ParseError(
        f"Failed to decode XML with declared or fallback encodings. "
        f"Last error: {last_error}",
        source_name
    )


def local_name(name: str) -> str:
    """Lower-cased tag or attribute name without its namespace."""
    return etree.QName(name).localname.lower()


def _clean_text(text: Optional[str]) -> str:
    if text is None:
        return ''
    return text.replace(SPACE_ARTIFACT, ' ').strip()


def _element_children(element: etree._Element) -> List[etree._Element]:
    # Comments and processing instructions have a non-string tag
    return [child for child in element if isinstance(child.tag, str)]


def find_item_elements(
    root: etree._Element,
    declaration_matcher: TagMatcher,
    item_matcher: TagMatcher,
    source_name: Optional[str] = None
) -> List[etree._Element]:
    """
    Locate item elements at the declaration→item nesting depth.
    
    A declaration is the root itself, or any direct child of the root,
    whose tag matches declaration_matcher. Items are direct children of a
    declaration whose tag matches item_matcher, in document order.
    
    Raises:
        ParseError: If no declaration element exists
    """
    if declaration_matcher.match(local_name(root.tag)):
        declarations = [root]
    else:
        declarations = [
            child for child in _element_children(root)
            if declaration_matcher.match(local_name(child.tag))
        ]
    
    if not declarations:
        raise ParseError(
            f"Unrecognized document structure: no declaration element found "
            f"under <{local_name(root.tag)}>",
            source_name
        )
    
    items = []
    for declaration in declarations:
        items.extend(
            child for child in _element_children(declaration)
            if item_matcher.match(local_name(child.tag))
        )
    
    return items


def _merge_fields(fields: Dict[str, str], new_fields: Dict[str, str], separator: str) -> None:
    """Add new_fields to fields, joining values of keys already present."""
    for key, value in new_fields.items():
        if key in fields:
            fields[key] = f"{fields[key]}{separator}{value}"
        else:
            fields[key] = value


def _flatten_occurrence(element: etree._Element, path: str, separator: str) -> Dict[str, str]:
    """Fields contributed by one element located at path."""
    fields: Dict[str, str] = {}
    children = _element_children(element)
    
    if not children:
        fields[path] = _clean_text(element.text)
    
    for attr, value in element.attrib.items():
        fields[f"{path}.{local_name(attr)}"] = _clean_text(value)
    
    if children:
        _merge_fields(fields, _flatten_children(element, path, separator), separator)
    
    return fields


def _flatten_children(element: etree._Element, prefix: str, separator: str) -> Dict[str, str]:
    """
    Flatten the children of element, grouping repeated tags.
    
    Children sharing a tag contribute one value per flattened key, joining
    the value of every occurrence with separator.
    """
    groups: Dict[str, List[etree._Element]] = {}
    for child in _element_children(element):
        groups.setdefault(local_name(child.tag), []).append(child)
    
    fields: Dict[str, str] = {}
    for tag, occurrences in groups.items():
        path = f"{prefix}.{tag}" if prefix else tag
        flattened = [_flatten_occurrence(child, path, separator) for child in occurrences]
        
        if len(flattened) == 1:
            _merge_fields(fields, flattened[0], separator)
            continue
        
        keys: List[str] = []
        for occurrence in flattened:
            keys.extend(k for k in occurrence if k not in keys)
        
        _merge_fields(fields, {
            key: separator.join(
                occurrence[key] for occurrence in flattened if key in occurrence
            )
            for key in keys
        }, separator)
    
    return fields


def flatten_item(element: etree._Element, separator: str = ', ') -> Record:
    """
    Flatten one item element into a single-level record.
    
    - Item attributes → attr: value
    - Scalar children → tag: text
    - Structured children → parent.child: text (recursively)
    - Repeated siblings → one field, values joined with separator
    - Keys produced twice (attribute and child of the same name, or a
      dotted tag and a nested path) keep both values, joined with separator
    
    Names are lower-cased and namespace-free; missing text becomes ''.
    
    Example:
        <adicao numero="1">
          <ncm>84713012</ncm>
          <mercadoria><descricao>A</descricao></mercadoria>
          <mercadoria><descricao>B</descricao></mercadoria>
        </adicao>
        → {'numero': '1', 'ncm': '84713012', 'mercadoria.descricao': 'A, B'}
    """
    record: Record = {}
    
    for attr, value in element.attrib.items():
        record[local_name(attr)] = _clean_text(value)
    
    _merge_fields(record, _flatten_children(element, '', separator), separator)
    
    return record


class RecordParser:
    """
    Turns raw XML documents into flat records using configured tag patterns.
    
    Usage:
        >>> parser = RecordParser()
        >>> records = parser.parse(xml_bytes, source_name='DI_001.xml')
    """
    
    def __init__(self, settings: Optional[ExportSettings] = None):
        self.settings = settings or get_settings()
        self.declaration_matcher = create_default_matcher(
            self.settings.declaration_tags,
            self.settings.tag_match_threshold
        )
        self.item_matcher = create_default_matcher(
            self.settings.item_tags,
            self.settings.tag_match_threshold
        )
    
    def parse(self, source: Union[str, bytes], source_name: Optional[str] = None) -> List[Record]:
        """
        Parse one XML document into records.
        
        Records with zero fields are dropped.
        
        Args:
            source: Raw XML document (text or bytes)
            source_name: File name for logging and error messages
        
        Returns:
            One record per matched item element, in document order
        
        Raises:
            ParseError: Malformed XML, undecodable bytes, or unrecognized structure
        """
        root = load_xml_root(source, self.settings.fallback_encodings, source_name)
        items = find_item_elements(
            root, self.declaration_matcher, self.item_matcher, source_name
        )
        
        records = []
        for item in items:
            record = flatten_item(item, self.settings.value_separator)
            if record:
                records.append(record)
        
        dropped = len(items) - len(records)
        logger.debug(
            f"Parsed {source_name or 'document'}: {len(items)} items, "
            f"{len(records)} records"
            + (f" ({dropped} empty items dropped)" if dropped else "")
        )
        
        return records


def parse_records(
    source: Union[str, bytes],
    settings: Optional[ExportSettings] = None,
    source_name: Optional[str] = None
) -> List[Record]:
    """Convenience wrapper: RecordParser(settings).parse(source)."""
    return RecordParser(settings).parse(source, source_name)
