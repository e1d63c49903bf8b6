"""Import filtering by ignore patterns."""

from .import_filter import (
    FilterResult,
    GlobMatcher,
    ImportFilter,
    ImportIgnoreListener,
    Matcher,
    RegexMatcher,
    get_matcher,
    parse_patterns,
    should_ignore,
)

__all__ = [
    "FilterResult",
    "GlobMatcher",
    "ImportFilter",
    "ImportIgnoreListener",
    "Matcher",
    "RegexMatcher",
    "get_matcher",
    "parse_patterns",
    "should_ignore",
]
