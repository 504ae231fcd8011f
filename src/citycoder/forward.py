"""
Forward geocoding: free-text location to the best matching city.

The query is parsed into words, short abbreviations, an optional country
(detected by full name) and an optional US state (detected by postal code).
Words select name-index brackets of the city store; every city in those
brackets is scored with the rule list and the highest score wins.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern, Set, Tuple

from citycoder.models import City, Country, Match
from citycoder.scoring_rules import ParsedQuery, ScoringEngine, is_exact_location, is_exact_name
from citycoder.store import CityStore, NameIndex
from citycoder.us_states import US_STATE_CODES

logger = logging.getLogger(__name__)

POPULATED_THRESHOLD = 1000


def _query_words(text: str) -> List[str]:
    words = (word.rstrip(",") for word in text.split())
    return [word for word in words if word]


def _merge_ranges(ranges: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Collapse overlapping half-open ranges so every position is visited once."""
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(r for r in ranges if r[0] < r[1]):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _country_pattern(name: str) -> Pattern:
    escaped = re.escape(name)
    return re.compile(rf"^{escaped},?\s+|[\s,]+{escaped}$", re.IGNORECASE)


def _state_pattern(code: str) -> Pattern:
    return re.compile(rf"(?:^|[\s,]+){code}(?=$|[\s,])", re.IGNORECASE)


_STATE_PATTERNS: List[Tuple[str, Pattern]] = [
    (code, _state_pattern(code)) for code in US_STATE_CODES
]


class ForwardGeocoder:
    """Scores index-bounded candidates against a parsed location string."""

    def __init__(
        self,
        store: CityStore,
        index: NameIndex,
        countries: List[Country],
        scoring_engine: Optional[ScoringEngine] = None,
        min_score: int = 1,
    ):
        """Initialize forward geocoder.

        Args:
            store: Name-sorted city store
            index: Name index built over ``store``
            countries: Country table used for name detection
            scoring_engine: Rule set (default rules if omitted)
            min_score: Lowest score accepted as a match
        """
        self.store = store
        self.index = index
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.min_score = min_score
        self._country_patterns: List[Tuple[str, Pattern]] = [
            (country.iso, _country_pattern(country.name))
            for country in countries
            if country.name
        ]

    def parse_query(self, text: str) -> Optional[ParsedQuery]:
        """Break a location string into the parts the scoring rules use.

        Args:
            text: Raw location string

        Returns:
            ParsedQuery, or None for blank input
        """
        original = (text or "").strip()
        if not original:
            return None

        abbreviations = [word for word in _query_words(original) if 2 <= len(word) <= 3]

        working = original
        country = ""
        for iso, pattern in self._country_patterns:
            if pattern.search(working):
                country = iso
                working = pattern.sub(" ", working)

        region = ""
        for code, pattern in _STATE_PATTERNS:
            if working.strip(" ,").upper() == code:
                continue
            if pattern.search(working):
                region = code
                working = pattern.sub(" ", working)

        working = " ".join(working.split()).strip(" ,")

        return ParsedQuery(
            original=original,
            text=working,
            tokens=_query_words(working),
            abbreviations=abbreviations,
            country=country,
            region=region,
        )

    def candidate_ranges(self, query: ParsedQuery) -> List[Tuple[int, int]]:
        """Merged store ranges to scan for a parsed query.

        Words removed as country names or state codes still contribute
        their brackets, so a city whose name starts with such a word is
        enumerated.
        """
        size = len(self.store)
        words = set(query.tokens) | set(_query_words(query.original))
        return _merge_ranges(self.index.bracket(word, size) for word in words)

    def geocode(self, text: str) -> City:
        """Best matching city for a location string (empty City if none)."""
        return self.match(text).city

    def match(self, text: str) -> Match:
        """Best matching city together with its score.

        Args:
            text: Raw location string

        Returns:
            Match; its city is the empty sentinel for blank input or when
            no candidate reaches ``min_score``
        """
        query = self.parse_query(text)
        if query is None:
            return Match()

        scores: Dict[int, int] = {}
        named: Set[int] = set()
        examined = 0
        for start, end in self.candidate_ranges(query):
            for position in range(start, end):
                city = self.store[position]
                examined += 1
                if is_exact_location(query, city):
                    logger.debug(f"Exact location match for {text!r}: {city.name}")
                    return Match(
                        city=city,
                        score=self.scoring_engine.score(query, city),
                        candidates=examined,
                    )
                points = self.scoring_engine.score(query, city)
                if points > 0:
                    scores[position] = points
                    if is_exact_name(query, city):
                        named.add(position)

        if not query.country:
            self._apply_population_prior(scores)

        best = self._select_best(scores, named)
        if best is None or scores[best] < self.min_score:
            logger.debug(f"No match for {text!r} among {examined} candidates")
            return Match(candidates=examined)

        city = self.store[best]
        if logger.isEnabledFor(logging.DEBUG):
            hits = ", ".join(
                f"{hit.rule}={hit.points}"
                for hit in self.scoring_engine.breakdown(query, city)
            )
            logger.debug(f"{text!r} -> {city.name} ({scores[best]} points: {hits})")
        return Match(city=city, score=scores[best], candidates=examined)

    def _apply_population_prior(self, scores: Dict[int, int]) -> None:
        """Bonus points for populated places when no country narrows the search."""
        if not scores:
            return

        for position in scores:
            if self.store[position].population >= POPULATED_THRESHOLD:
                scores[position] += 1

        largest = max(scores, key=lambda pos: (self.store[pos].population, -pos))
        if self.store[largest].population > 0:
            scores[largest] += 1

    def _select_best(self, scores: Dict[int, int], named: Set[int]) -> Optional[int]:
        """Pick the winning position.

        A city whose name is exactly the query beats any city matched only
        through alternate names or words. After that: highest score, then
        higher population, then earlier store position.
        """
        if not scores:
            return None
        return max(
            scores,
            key=lambda pos: (pos in named, scores[pos], self.store[pos].population, -pos),
        )
