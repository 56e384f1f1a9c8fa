"""
Candidate names for the "add a form" autocomplete.

The widget shows the syllabus names for the chosen rank (or every name when no
rank is chosen), narrowed by what the user typed. Names the user already learned
stay visible but are flagged and pushed to the bottom.
"""

import unicodedata
from typing import Iterable, List, NamedTuple, Optional, Sequence

from loguru import logger

from app.core.normalization import normalize_name_key
from app.core.syllabus import Rank, Syllabus


def collation_key(name: str) -> str:
    """Case- and accent-insensitive sort key, so "Éclair" sorts next to "eclair"."""
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


class Candidate(NamedTuple):
    name: str
    learned: bool


class AvailabilityResolver:
    def __init__(self, syllabus: Syllabus, learned_names: Optional[Iterable[str]] = None) -> None:
        self.syllabus = syllabus
        self.learned = frozenset(normalize_name_key(n) for n in (learned_names or ()))

    def is_learned(self, name: str, learned: Optional[Iterable[str]] = None) -> bool:
        keys = self.learned if learned is None else frozenset(normalize_name_key(n) for n in learned)
        return normalize_name_key(name) in keys

    def candidates_for(self, scope: Optional[Rank] = None) -> List[str]:
        """Names of the scoped rank, or the whole syllabus flattened and de-duplicated."""
        if scope is not None and scope in self.syllabus:
            return list(self.syllabus.names_for(scope))
        return self.syllabus.all_names()

    def annotate(self, names: Sequence[str], learned: Optional[Iterable[str]] = None) -> List[Candidate]:
        if learned is not None:
            learned = frozenset(normalize_name_key(n) for n in learned)
        return [Candidate(name, self.is_learned(name, learned)) for name in names]

    def order(self, names: Sequence[str]) -> List[str]:
        """Not-yet-learned names first, then learned ones; each group sorted by collation_key."""
        pending = [n for n in names if not self.is_learned(n)]
        done = [n for n in names if self.is_learned(n)]
        return sorted(pending, key=collation_key) + sorted(done, key=collation_key)

    @staticmethod
    def filter_by_query(names: Sequence[str], query: Optional[str] = None) -> List[str]:
        q = (query or "").strip().casefold()
        if not q:
            return list(names)
        return [n for n in names if q in n.casefold()]

    def resolve(self, scope: Optional[Rank] = None, query: Optional[str] = None) -> List[Candidate]:
        """Full pipeline for the widget. Bad reference data yields an empty list, not an error."""
        try:
            names = self.filter_by_query(self.candidates_for(scope), query)
            return self.annotate(self.order(names))
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Could not resolve form candidates (scope={}): {}", scope, e)
            return []
