"""Ignore-pattern filtering of import candidates."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import PurePath

from ..interfaces import EventListener
from ..utils.logging import get_logger

logger = get_logger(__name__)

PATTERN_SEPARATOR = "|"


def parse_patterns(patterns_string: str | None) -> list[str]:
    """Split a pipe-separated pattern string, dropping empty entries."""
    if not patterns_string:
        return []
    return [p for p in patterns_string.split(PATTERN_SEPARATOR) if p]


class Matcher(ABC):
    """Decides whether one pattern matches one candidate."""

    @abstractmethod
    def matches(self, candidate: str, pattern: str) -> bool:
        pass


class GlobMatcher(Matcher):
    """Case-sensitive shell-style matching against the full candidate or its base name."""

    def matches(self, candidate: str, pattern: str) -> bool:
        if fnmatchcase(candidate, pattern):
            return True
        name = PurePath(candidate).name
        return name != candidate and fnmatchcase(name, pattern)


class RegexMatcher(Matcher):
    """Unanchored regular-expression search."""

    def __init__(self):
        self._cache: dict[str, re.Pattern] = {}

    def matches(self, candidate: str, pattern: str) -> bool:
        compiled = self._cache.get(pattern)
        if compiled is None:
            compiled = self._cache[pattern] = re.compile(pattern)
        return compiled.search(candidate) is not None


MATCHERS = {
    "glob": GlobMatcher,
    "regex": RegexMatcher,
}


def get_matcher(name: str) -> Matcher:
    try:
        return MATCHERS[name]()
    except KeyError:
        raise ValueError(f"Unknown matcher '{name}'. Choose from: {', '.join(MATCHERS)}") from None


def first_match(candidate_id: str, patterns: Sequence[str], matcher: Matcher | None = None) -> str | None:
    """Return the first pattern matching ``candidate_id``, or None."""
    matcher = matcher or GlobMatcher()
    for pattern in patterns:
        if matcher.matches(candidate_id, pattern):
            return pattern
    return None


def should_ignore(candidate_id: str, patterns: Sequence[str], matcher: Matcher | None = None) -> bool:
    """
    True if any pattern matches ``candidate_id``.

    Patterns are tried in order and evaluation stops at the first match.
    """
    return first_match(candidate_id, patterns, matcher) is not None


@dataclass
class FilterResult:
    """Outcome of filtering a list of candidates."""

    kept: list[str] = field(default_factory=list)

    # (candidate, pattern that matched it), one entry per ignored candidate
    ignored: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ignored_count(self) -> int:
        return len(self.ignored)


class ImportFilter:
    """Drops import candidates that match any configured ignore pattern."""

    def __init__(self, patterns: Sequence[str], matcher: Matcher | None = None):
        self.patterns = list(patterns)
        self.matcher = matcher or GlobMatcher()

    @classmethod
    def from_settings(cls, settings) -> "ImportFilter":
        """Build from an ``ImportSettings`` model."""
        return cls(settings.patterns, get_matcher(settings.matcher))

    def should_ignore(self, candidate_id: str) -> bool:
        return should_ignore(candidate_id, self.patterns, self.matcher)

    def filter(self, candidates: Iterable[str]) -> FilterResult:
        result = FilterResult()
        for candidate in candidates:
            pattern = first_match(candidate, self.patterns, self.matcher)
            if pattern is None:
                result.kept.append(candidate)
            else:
                logger.debug(f"Ignoring {candidate}, matched {pattern}")
                result.ignored.append((candidate, pattern))

        if result.ignored:
            logger.info(f"Ignored {result.ignored_count} file(s) matching ignore patterns")
        return result


class ImportIgnoreListener(EventListener):
    """Pre-import hook that applies an ImportFilter and remembers the last result."""

    def __init__(self, import_filter: ImportFilter):
        self.import_filter = import_filter
        self.last_result: FilterResult | None = None

    def on_pre_import(self, candidates: list[str]) -> list[str]:
        self.last_result = self.import_filter.filter(candidates)
        return list(self.last_result.kept)
