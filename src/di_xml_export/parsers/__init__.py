"""
XML parsing modules for customs declaration exports.

- lxml-based parsing with encoding fallback
- Declaration → item location by pluggable tag matching strategies
- Flattening of nested items into single-level records
"""

from .xml_parser import (
    RecordParser,
    parse_records,
    load_xml_root,
    find_item_elements,
    flatten_item,
)
from .tag_matcher import (
    TagMatcher,
    ExactTagMatcher,
    PatternTagMatcher,
    FuzzyTagMatcher,
    CascadeMatcher,
    create_default_matcher
)

__all__ = [
    # XML Parsing
    'RecordParser',
    'parse_records',
    'load_xml_root',
    'find_item_elements',
    'flatten_item',
    # Matching Strategies
    'TagMatcher',
    'ExactTagMatcher',
    'PatternTagMatcher',
    'FuzzyTagMatcher',
    'CascadeMatcher',
    'create_default_matcher',
]
