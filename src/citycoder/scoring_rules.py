"""
Scoring rules for forward geocoding candidates.

Each rule looks at the parsed query and one candidate city and returns the
points it awards. Rules are independent; the engine sums all of them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from citycoder.models import City


@dataclass
class ParsedQuery:
    """A location string broken into the parts the rules look at."""
    original: str
    text: str
    tokens: List[str] = field(default_factory=list)
    abbreviations: List[str] = field(default_factory=list)
    country: str = ""
    region: str = ""

    @property
    def text_lower(self) -> str:
        return self.text.lower()

    @property
    def original_lower(self) -> str:
        return self.original.lower()


@dataclass
class RuleHit:
    """Points awarded to a candidate by a single rule."""
    rule: str
    points: int


def alt_name_tokens(alt_names: str) -> List[str]:
    """Split a raw alternate-names blob into its comma-delimited entries."""
    return [entry.strip() for entry in alt_names.split(",") if entry.strip()]


def is_exact_name(query: ParsedQuery, city: City) -> bool:
    """True if the query, before or after code stripping, is the city name."""
    return city.name_lower in (query.text_lower, query.original_lower)


class ScoringRule(ABC):
    """Base class for scoring rules."""

    name: str = "rule"

    def __init__(self, weight: int):
        self.weight = weight

    @abstractmethod
    def hits(self, query: ParsedQuery, city: City) -> int:
        """Number of times the rule's condition holds for this candidate."""

    def check(self, query: ParsedQuery, city: City) -> int:
        """Points awarded to the candidate."""
        return self.weight * self.hits(query, city)


class ExactNameRule(ScoringRule):
    """Whole query equals the city name, before or after code stripping.

    Checking the unstripped query keeps names such as "La Paz" or "De Bilt",
    whose first word is also a state code, matchable.
    """

    name = "exact_name"

    def hits(self, query: ParsedQuery, city: City) -> int:
        return int(is_exact_name(query, city))


class AltNameExactRule(ScoringRule):
    """Whole query equals an alternate name, case-sensitively."""

    name = "alt_name_exact"

    def hits(self, query: ParsedQuery, city: City) -> int:
        if not query.text or query.text not in city.alt_names:
            return 0
        return int(query.text in alt_name_tokens(city.alt_names))


class AltNameFoldedRule(ScoringRule):
    """Whole query equals an alternate name, ignoring case."""

    name = "alt_name_folded"

    def hits(self, query: ParsedQuery, city: City) -> int:
        text = query.text_lower
        if not text or text not in city.alt_names.lower():
            return 0
        return int(any(alt.lower() == text for alt in alt_name_tokens(city.alt_names)))


class TokenEqualsNameRule(ScoringRule):
    """A single query word is the whole city name."""

    name = "token_equals_name"

    def hits(self, query: ParsedQuery, city: City) -> int:
        return sum(1 for token in query.tokens if token.lower() == city.name_lower)


class TokenInNameRule(ScoringRule):
    """A query word occurs somewhere in the city name."""

    name = "token_in_name"

    def hits(self, query: ParsedQuery, city: City) -> int:
        return sum(1 for token in query.tokens if token.lower() in city.name_lower)


class AbbreviationRegionRule(ScoringRule):
    """A two-letter abbreviation in the query is the city's region code."""

    name = "abbreviation_region"

    def hits(self, query: ParsedQuery, city: City) -> int:
        region = city.region.lower()
        return sum(
            1 for abbr in query.abbreviations
            if len(abbr) == 2 and abbr.lower() == region
        )


class AbbreviationCountryRule(ScoringRule):
    """A two-letter abbreviation in the query is the city's country code."""

    name = "abbreviation_country"

    def hits(self, query: ParsedQuery, city: City) -> int:
        country = city.country.lower()
        return sum(
            1 for abbr in query.abbreviations
            if len(abbr) == 2 and abbr.lower() == country
        )


class DetectedCountryRule(ScoringRule):
    """A country name found in the query matches the city's country."""

    name = "detected_country"

    def hits(self, query: ParsedQuery, city: City) -> int:
        return int(bool(query.country) and query.country == city.country)


class DetectedRegionRule(ScoringRule):
    """A state code found in the query matches the city's region."""

    name = "detected_region"

    def hits(self, query: ParsedQuery, city: City) -> int:
        return int(bool(query.region) and query.region == city.region)


def is_exact_location(query: ParsedQuery, city: City) -> bool:
    """True for queries like "Austin, TX" that name the city and its region.

    Such a candidate is returned without scoring anything else.
    """
    if not city.region:
        return False
    wanted = query.original.lower()
    name = city.name_lower
    region = city.region.lower()
    if wanted in (f"{name}, {region}", f"{name} {region}"):
        return True
    return (
        bool(query.region)
        and query.text_lower == name
        and query.region.lower() == region
    )


class ScoringEngine:
    """Runs scoring rules and sums their points."""

    def __init__(self, rules: Optional[List[ScoringRule]] = None):
        """Initialize scoring engine.

        Args:
            rules: List of scoring rules to apply
        """
        self.rules = rules or self._get_default_rules()

    @staticmethod
    def _get_default_rules() -> List[ScoringRule]:
        return [
            ExactNameRule(weight=7),
            AltNameExactRule(weight=5),
            AltNameFoldedRule(weight=3),
            TokenEqualsNameRule(weight=1),
            TokenInNameRule(weight=2),
            AbbreviationRegionRule(weight=5),
            AbbreviationCountryRule(weight=3),
            DetectedCountryRule(weight=4),
            DetectedRegionRule(weight=4),
        ]

    def score(self, query: ParsedQuery, city: City) -> int:
        """Total points for a candidate."""
        return sum(rule.check(query, city) for rule in self.rules)

    def breakdown(self, query: ParsedQuery, city: City) -> List[RuleHit]:
        """Per-rule points for a candidate, omitting rules that awarded nothing."""
        hits = []
        for rule in self.rules:
            points = rule.check(query, city)
            if points:
                hits.append(RuleHit(rule=rule.name, points=points))
        return hits
