"""
Location Matcher - Tiered Exact Matching of Normalized Location Text

Priority order:
1. Province exact match (hard-block rule: returns before lower tiers run)
2. City exact match
3. Suburb exact match
4. No match

A tier matches when the normalized input equals the normalized name, an
alias or the province code of an entity in that tier. There is no fuzzy
matching here; typo tolerance belongs to the autosuggest data source. This
matcher is the deterministic path used on explicit submission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from ..models_location import LocationEntity, LocationType
from .location_registry import RegistrySnapshot, entity_match_keys, validate_parent_chains

logger = logging.getLogger(__name__)

Registry = Union[RegistrySnapshot, Sequence[LocationEntity]]


@dataclass
class MatchResult:
    """Result of location matching."""
    entity: Optional[LocationEntity]
    tier: Optional[LocationType]
    matched_key: Optional[str]
    ambiguous_slugs: List[str] = field(default_factory=list)
    reasoning: str = ""

    @property
    def matched(self) -> bool:
        return self.entity is not None


class LocationMatcher:
    """
    Resolves normalized text to a single registry entity.

    Same-tier ties can only happen when the registry breaks its disjointness
    invariant. They resolve to the lexicographically smallest slug and are
    logged for the data owner.
    """

    TIER_PRECEDENCE = (LocationType.PROVINCE, LocationType.CITY, LocationType.SUBURB)

    @staticmethod
    def _eligible_entities(registry: Registry) -> Iterable[LocationEntity]:
        if isinstance(registry, RegistrySnapshot):
            return registry.entities
        valid, excluded = validate_parent_chains(registry)
        for error in excluded:
            logger.warning("Matcher excluded invalid registry entity: %s", error.message)
        return valid

    @classmethod
    def explain(cls, normalized_input: str, registry: Registry) -> MatchResult:
        """Match and report which tier and key decided the outcome."""
        if not normalized_input:
            return MatchResult(entity=None, tier=None, matched_key=None, reasoning="Empty input never matches")

        eligible = list(cls._eligible_entities(registry))

        for tier in cls.TIER_PRECEDENCE:
            candidates = [
                entity for entity in eligible
                if entity.type is tier and normalized_input in entity_match_keys(entity)
            ]
            if not candidates:
                continue

            candidates.sort(key=lambda e: (e.slug, e.id))
            winner = candidates[0]
            ambiguous: List[str] = []
            if len(candidates) > 1:
                ambiguous = [e.slug for e in candidates]
                logger.warning(
                    "Ambiguous %s match for '%s': %s; using '%s'",
                    tier.value,
                    normalized_input,
                    ", ".join(ambiguous),
                    winner.slug,
                )

            return MatchResult(
                entity=winner,
                tier=tier,
                matched_key=normalized_input,
                ambiguous_slugs=ambiguous,
                reasoning=f"Exact {tier.value} match on '{normalized_input}' -> {winner.slug}",
            )

        return MatchResult(
            entity=None,
            tier=None,
            matched_key=None,
            reasoning=f"No province, city or suburb matches '{normalized_input}'",
        )

    @classmethod
    def match(cls, normalized_input: str, registry: Registry) -> Optional[LocationEntity]:
        return cls.explain(normalized_input, registry).entity


def match(normalized_input: str, registry: Registry) -> Optional[LocationEntity]:
    """Return the entity denoted by already-normalized text, or None."""
    return LocationMatcher.match(normalized_input, registry)
