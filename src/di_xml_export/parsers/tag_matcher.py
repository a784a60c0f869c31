"""
Tag Matching Strategies

Decides whether an element's tag name is a declaration or an item.
Supports multiple matching algorithms with configurable parameters.

Design:
- Strategy Pattern: Matchers are interchangeable
- Each matcher implements the same interface
- Parser is agnostic to matching strategy
- All comparisons use lower-cased, namespace-free local names
"""

from abc import ABC, abstractmethod
from difflib import SequenceMatcher
from fnmatch import fnmatchcase
from typing import Iterable, List, Optional


class TagMatcher(ABC):
    """
    Abstract base class for tag matching strategies.
    """
    
    @abstractmethod
    def match(self, tag: str) -> bool:
        """
        Check whether a tag belongs to the configured set.
        
        Args:
            tag: Lower-cased local tag name
        
        Returns:
            True if the tag matches
        """
        pass


class ExactTagMatcher(TagMatcher):
    """
    Exact name matching (case-insensitive).
    
    Fast and deterministic. Use as primary matcher.
    """
    
    def __init__(self, names: Iterable[str]):
        self.names = {n.lower() for n in names}
    
    def match(self, tag: str) -> bool:
        return tag.lower() in self.names


class PatternTagMatcher(TagMatcher):
    """
    Shell-style wildcard matching (e.g. "declaracao*", "item?").
    
    Entries without wildcard characters are skipped; ExactTagMatcher
    already covers them.
    """
    
    WILDCARDS = set('*?[')
    
    def __init__(self, patterns: Iterable[str]):
        self.patterns = [
            p.lower() for p in patterns
            if self.WILDCARDS & set(p)
        ]
    
    def match(self, tag: str) -> bool:
        tag = tag.lower()
        return any(fnmatchcase(tag, pattern) for pattern in self.patterns)


class FuzzyTagMatcher(TagMatcher):
    """
    Fuzzy name matching using SequenceMatcher.
    
    Tolerates small spelling variations between exporter versions
    (e.g. "adicao" vs "adicaoo").
    
    Args:
        names: Reference tag names
        threshold: Minimum similarity score (0.0-1.0). Default: 0.90
    """
    
    def __init__(self, names: Iterable[str], threshold: float = 0.90):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Threshold must be between 0.0 and 1.0, got {threshold}")
        
        self.names = [n.lower() for n in names if not PatternTagMatcher.WILDCARDS & set(n)]
        self.threshold = threshold
    
    def match(self, tag: str) -> bool:
        tag = tag.lower()
        best_score = 0.0
        
        for name in self.names:
            ratio = SequenceMatcher(None, tag, name).ratio()
            if ratio > best_score:
                best_score = ratio
        
        return best_score >= self.threshold


class CascadeMatcher(TagMatcher):
    """
    Cascade multiple matchers in sequence.
    
    Tries each matcher in order until one succeeds.
    
    Example:
        >>> matcher = CascadeMatcher([
        ...     ExactTagMatcher(['adicao']),
        ...     PatternTagMatcher(['item*'])
        ... ])
        >>> matcher.match('itemdeclarado')
        True
    """
    
    def __init__(self, matchers: List[TagMatcher]):
        if not matchers:
            raise ValueError("Must provide at least one matcher")
        
        self.matchers = matchers
    
    def match(self, tag: str) -> bool:
        return any(matcher.match(tag) for matcher in self.matchers)


def create_default_matcher(
    names: Iterable[str],
    fuzzy_threshold: Optional[float] = None
) -> TagMatcher:
    """
    Create default matching strategy for a list of names/patterns.
    
    Strategy: Exact → Pattern (→ Fuzzy when a threshold is given)
    
    Args:
        names: Tag names and wildcard patterns from configuration
        fuzzy_threshold: Optional similarity threshold enabling fuzzy matching
    
    Returns:
        CascadeMatcher combining the strategies
    """
    names = list(names)
    matchers: List[TagMatcher] = [
        ExactTagMatcher(names),
        PatternTagMatcher(names),
    ]
    if fuzzy_threshold is not None:
        matchers.append(FuzzyTagMatcher(names, threshold=fuzzy_threshold))
    
    return CascadeMatcher(matchers)
