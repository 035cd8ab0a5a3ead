"""
Location Registry - Read Snapshot of Provinces, Cities and Suburbs

The canonical location dataset is owned elsewhere (database seed, remote
export). This module holds an immutable, validated snapshot of it:

1. Parent-chain validation (city -> province, suburb -> city -> province)
2. Ambiguity detection (same-tier name/alias/slug collisions)
3. Hierarchy lookups (list_provinces, list_cities, list_suburbs)

Resolution code never touches a mutable table. It receives a
RegistrySnapshot, and LocationRegistry swaps whole snapshots on reload.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from functools import lru_cache
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import AmbiguousRegistryError, InvalidRegistryEntityError
from ..models_location import LocationEntity, LocationType
from .normalizer import normalize

logger = logging.getLogger(__name__)


@lru_cache(maxsize=65536)
def entity_match_keys(entity: LocationEntity) -> FrozenSet[str]:
    """Normalized name, aliases and province code of an entity."""
    candidates = [entity.name, *entity.aliases]
    if entity.code:
        candidates.append(entity.code)
    return frozenset(key for key in (normalize(c) for c in candidates) if key)


def validate_parent_chains(
    entities: Iterable[LocationEntity],
) -> Tuple[List[LocationEntity], List[InvalidRegistryEntityError]]:
    """
    Split entities into those with a resolvable parent chain and the rest.

    A suburb is only valid when its city is itself valid, so the check runs
    tier by tier. Duplicate ids keep the first occurrence.

    Returns:
        (valid entities in input order, one error per excluded entity)
    """
    entities = list(entities)
    errors: List[InvalidRegistryEntityError] = []
    rejected: set = set()
    seen_ids: set = set()

    for index, entity in enumerate(entities):
        if entity.id in seen_ids:
            errors.append(InvalidRegistryEntityError(
                f"Duplicate entity id '{entity.id}' ({entity.type.value} '{entity.name}')",
                entity_id=entity.id,
            ))
            rejected.add(index)
            continue
        seen_ids.add(entity.id)

        if not entity.slug:
            errors.append(InvalidRegistryEntityError(
                f"{entity.type.value.title()} '{entity.name}' has no slug",
                entity_id=entity.id,
            ))
            rejected.add(index)
        elif entity.is_province and entity.parent_slug:
            errors.append(InvalidRegistryEntityError(
                f"Province '{entity.name}' must not have a parent (got '{entity.parent_slug}')",
                entity_id=entity.id,
            ))
            rejected.add(index)

    valid_slugs: Dict[LocationType, set] = {
        LocationType.PROVINCE: {
            e.slug for i, e in enumerate(entities)
            if e.is_province and i not in rejected
        },
    }

    for tier in (LocationType.CITY, LocationType.SUBURB):
        parent_slugs = valid_slugs[tier.parent_type]
        tier_slugs = set()
        for index, entity in enumerate(entities):
            if entity.type is not tier or index in rejected:
                continue
            if not entity.parent_slug or entity.parent_slug not in parent_slugs:
                errors.append(InvalidRegistryEntityError(
                    f"{tier.value.title()} '{entity.name}' has no resolvable "
                    f"{tier.parent_type.value} parent (parent_slug={entity.parent_slug!r})",
                    entity_id=entity.id,
                ))
                rejected.add(index)
                continue
            tier_slugs.add(entity.slug)
        valid_slugs[tier] = tier_slugs

    valid = [e for i, e in enumerate(entities) if i not in rejected]
    return valid, errors


def find_ambiguities(entities: Iterable[LocationEntity]) -> List[AmbiguousRegistryError]:
    """
    Report same-tier collisions of names/aliases and of slugs under one parent.

    Cross-tier overlap (a city named like a suburb) is not ambiguous: tier
    precedence decides it.
    """
    by_key: Dict[Tuple[LocationType, str], Dict[str, LocationEntity]] = defaultdict(dict)
    by_slug: Dict[Tuple[LocationType, Optional[str], str], Dict[str, LocationEntity]] = defaultdict(dict)

    for entity in entities:
        for key in entity_match_keys(entity):
            by_key[(entity.type, key)][entity.id] = entity
        by_slug[(entity.type, entity.parent_slug, entity.slug)][entity.id] = entity

    problems: List[AmbiguousRegistryError] = []
    for (tier, key), owners in sorted(by_key.items(), key=lambda item: (item[0][0].value, item[0][1])):
        if len(owners) > 1:
            slugs = sorted(e.slug for e in owners.values())
            problems.append(AmbiguousRegistryError(
                f"{tier.value.title()} key '{key}' is shared by {', '.join(slugs)}",
                key=key,
                slugs=slugs,
            ))
    for (tier, parent, slug), owners in by_slug.items():
        if len(owners) > 1:
            problems.append(AmbiguousRegistryError(
                f"{tier.value.title()} slug '{slug}' is used {len(owners)} times under parent {parent!r}",
                key=slug,
                slugs=[slug],
            ))
    return problems


class RegistrySnapshot:
    """
    Immutable, validated view of the location registry.

    Only entities with a valid parent chain are exposed through ``entities``.
    Excluded entities and ambiguities are kept for reporting.
    """

    def __init__(
        self,
        entities: Sequence[LocationEntity],
        excluded: Sequence[InvalidRegistryEntityError] = (),
        ambiguities: Sequence[AmbiguousRegistryError] = (),
        source: str = "memory",
        version: int = 0,
    ):
        self._entities: Tuple[LocationEntity, ...] = tuple(entities)
        self.excluded: Tuple[InvalidRegistryEntityError, ...] = tuple(excluded)
        self.ambiguities: Tuple[AmbiguousRegistryError, ...] = tuple(ambiguities)
        self.source = source
        self.version = version

        self._by_type: Dict[LocationType, Tuple[LocationEntity, ...]] = {
            tier: tuple(sorted(
                (e for e in self._entities if e.type is tier),
                key=lambda e: (e.name.lower(), e.slug),
            ))
            for tier in LocationType
        }

    @classmethod
    def build(
        cls,
        entities: Iterable[LocationEntity],
        source: str = "memory",
        version: int = 0,
    ) -> "RegistrySnapshot":
        """Validate raw entities and log every data-quality problem once."""
        valid, excluded = validate_parent_chains(entities)
        for error in excluded:
            logger.warning("Excluding registry entity from matching: %s", error.message)

        ambiguities = find_ambiguities(valid)
        for problem in ambiguities:
            logger.warning("Ambiguous location registry data (%s): %s", source, problem.message)

        logger.info(
            "Location registry snapshot v%d from %s: %d provinces, %d cities, %d suburbs "
            "(%d excluded, %d ambiguous)",
            version,
            source,
            sum(1 for e in valid if e.type is LocationType.PROVINCE),
            sum(1 for e in valid if e.type is LocationType.CITY),
            sum(1 for e in valid if e.type is LocationType.SUBURB),
            len(excluded),
            len(ambiguities),
        )
        return cls(valid, excluded, ambiguities, source=source, version=version)

    @property
    def entities(self) -> Tuple[LocationEntity, ...]:
        return self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self):
        return iter(self._entities)

    @property
    def has_issues(self) -> bool:
        return bool(self.excluded or self.ambiguities)

    def list_provinces(self) -> List[LocationEntity]:
        return list(self._by_type[LocationType.PROVINCE])

    def list_cities(self, province_slug: str) -> List[LocationEntity]:
        return [c for c in self._by_type[LocationType.CITY] if c.parent_slug == province_slug]

    def list_suburbs(self, city_slug: str) -> List[LocationEntity]:
        return [s for s in self._by_type[LocationType.SUBURB] if s.parent_slug == city_slug]

    def get(
        self,
        location_type: LocationType,
        slug: str,
        parent_slug: Optional[str] = None,
    ) -> Optional[LocationEntity]:
        """
        Look up an entity by slug (case-insensitive).

        Without ``parent_slug`` the lexicographically smallest matching slug
        owner wins, mirroring the matcher's tie-break.
        """
        if not slug:
            return None
        wanted = slug.strip().lower()
        candidates = [
            e for e in self._by_type[location_type]
            if e.slug.lower() == wanted
            and (parent_slug is None or (e.parent_slug or "").lower() == parent_slug.strip().lower())
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda e: (e.slug, e.id))

    def parent_of(self, entity: LocationEntity) -> Optional[LocationEntity]:
        parent_type = entity.type.parent_type
        if parent_type is None or not entity.parent_slug:
            return None
        return self.get(parent_type, entity.parent_slug)

    def ancestry(self, entity: LocationEntity) -> List[LocationEntity]:
        """Entity chain from province down to ``entity`` itself."""
        chain = [entity]
        current = self.parent_of(entity)
        while current is not None:
            chain.append(current)
            current = self.parent_of(current)
        return list(reversed(chain))


class LocationRegistry:
    """
    Holder of the current RegistrySnapshot.

    Readers call ``snapshot()`` once per resolution and work on that object
    only. ``replace()``/``reload()`` build a new snapshot completely before
    swapping the reference, so a reader never sees a half-updated alias set.
    """

    def __init__(
        self,
        entities: Optional[Iterable[LocationEntity]] = None,
        loader: Optional[Callable[[], Sequence[LocationEntity]]] = None,
        source: str = "memory",
    ):
        self._loader = loader
        self._lock = threading.Lock()
        self._version = 0
        self._snapshot = RegistrySnapshot.build(entities or (), source=source, version=0)

    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def replace(self, entities: Iterable[LocationEntity], source: str = "memory") -> RegistrySnapshot:
        with self._lock:
            version = self._version + 1
            snapshot = RegistrySnapshot.build(entities, source=source, version=version)
            self._version = version
            self._snapshot = snapshot
        return snapshot

    def reload(self) -> RegistrySnapshot:
        """Re-read entities through the configured loader."""
        if self._loader is None:
            logger.debug("LocationRegistry.reload() called without a loader; keeping snapshot")
            return self._snapshot
        entities = self._loader()
        return self.replace(entities, source=getattr(self._loader, "source", "loader"))

    def list_provinces(self) -> List[LocationEntity]:
        return self._snapshot.list_provinces()

    def list_cities(self, province_slug: str) -> List[LocationEntity]:
        return self._snapshot.list_cities(province_slug)

    def list_suburbs(self, city_slug: str) -> List[LocationEntity]:
        return self._snapshot.list_suburbs(city_slug)
