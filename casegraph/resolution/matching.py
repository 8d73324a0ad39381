"""
Similarity Matching

Pairwise decision function that judges whether two entity names denote the
same real-world entity. Strategies are tried in a fixed order and the first
one that fires decides; scores are never weighted or combined.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

import jellyfish

from ..config import MatchingConfig
from .canonical import core_name, tokens


class MatchStrategy(Enum):
    """Strategies in evaluation order."""

    NO_MATCH = "no_match"
    EXACT_CORE = "exact_core"
    CONTAINMENT = "containment"
    EDIT_DISTANCE = "edit_distance"
    TOKEN_JACCARD = "token_jaccard"


@dataclass(frozen=True)
class CanonicalForm:
    """A raw name with its precomputed comparison key and token set."""

    raw: str
    core: str
    tokens: FrozenSet[str]

    @classmethod
    def of(cls, raw: str) -> "CanonicalForm":
        return cls(raw=raw, core=core_name(raw), tokens=frozenset(tokens(raw)))


@dataclass(frozen=True)
class MatchResult:
    """Outcome of comparing two names."""

    matched: bool
    strategy: MatchStrategy
    score: Optional[float] = None  # edit ratio or jaccard, when computed


def levenshtein_distance(a: str, b: str) -> int:
    """Classic insert/delete/substitute edit distance."""
    return jellyfish.levenshtein_distance(a, b)


def jaccard(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    """Jaccard index of two non-empty token sets."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


class NameMatcher:
    """
    Multi-strategy name matcher.

    Order: exact core name, containment, edit-distance ratio, token Jaccard.
    Evaluation short-circuits at the first strategy that matches.
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        """Initialize the matcher with optional threshold overrides."""
        self.config = config or MatchingConfig()

    def is_match(self, a: str, b: str) -> bool:
        """True when ``a`` and ``b`` likely denote the same entity."""
        return self.match(a, b).matched

    def match(self, a: str, b: str) -> MatchResult:
        """Compare two raw names and report which strategy decided."""
        return self.match_forms(CanonicalForm.of(a), CanonicalForm.of(b))

    def match_forms(self, a: CanonicalForm, b: CanonicalForm) -> MatchResult:
        """Compare two precomputed canonical forms."""
        cfg = self.config
        core_a, core_b = a.core, b.core

        if core_a and core_a == core_b:
            return MatchResult(True, MatchStrategy.EXACT_CORE)

        if (
            len(core_a) > cfg.containment_min_length
            and len(core_b) > cfg.containment_min_length
            and (core_a in core_b or core_b in core_a)
            and min(len(core_a), len(core_b)) > cfg.containment_shorter_min_length
        ):
            return MatchResult(True, MatchStrategy.CONTAINMENT)

        max_length = max(len(core_a), len(core_b))
        edit_ratio = None
        if max_length > 0:
            edit_ratio = levenshtein_distance(core_a, core_b) / max_length
            if edit_ratio < cfg.edit_ratio_threshold:
                return MatchResult(True, MatchStrategy.EDIT_DISTANCE, edit_ratio)

        if a.tokens and b.tokens:
            score = jaccard(a.tokens, b.tokens)
            if score > cfg.jaccard_threshold:
                return MatchResult(True, MatchStrategy.TOKEN_JACCARD, score)

        return MatchResult(False, MatchStrategy.NO_MATCH, edit_ratio)


def is_likely_same_entity(name_a: str, name_b: str, tolerance: float = 0.2) -> bool:
    """
    Looser check used when accepting a new report into a case.

    Equal core names match. Otherwise, when both core names are longer than
    five characters, an edit distance of at most ``tolerance`` times the
    shorter length matches.
    """
    core_a = core_name(name_a)
    core_b = core_name(name_b)

    if core_a == core_b:
        return True

    if len(core_a) > 5 and len(core_b) > 5:
        distance = levenshtein_distance(core_a, core_b)
        threshold = min(len(core_a), len(core_b)) * tolerance
        if distance <= threshold:
            return True

    return False
