"""
Location Router - Single Entry Point for Location Routing Decisions

Every way a user can reach a listing page converges here:

- submit_text():       typed text + Enter
- select_suggestion(): autosuggest dropdown click (the label is resolved
                       exactly like typed text)
- route_url():         direct navigation / initial page load

All of them end in resolve_and_route() or in the same Matcher + Route
Classifier calls, so the three entry paths cannot disagree.

Usage:
    from listify.routing import LocationRouter

    router = LocationRouter(registry)
    decision = router.resolve_and_route("Western Cape")

    print(decision.mode)    # RenderMode.SEO
    print(decision.target)  # /property-for-sale/western-cape
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..models_location import EntryPoint, ListingType, LocationEntity, LocationType
from .location_matcher import LocationMatcher
from .location_registry import LocationRegistry, RegistrySnapshot
from .normalizer import normalize
from .route_classifier import (
    RouteDecision,
    classify,
    classify_direct_entry,
    coerce_listing_type,
    parse_target,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutosuggestEntry:
    """A row of the autosuggest dropdown as delivered by the suggestion source."""
    label: str
    type: Optional[LocationType] = None
    slug: Optional[str] = None


class LocationRouter:
    """
    Resolves location queries against one registry snapshot per call.

    The router holds either a LocationRegistry (snapshot read at call time)
    or a fixed RegistrySnapshot. It keeps no other state.
    """

    def __init__(self, registry: Union[LocationRegistry, RegistrySnapshot]):
        self._registry = registry

    def snapshot(self) -> RegistrySnapshot:
        if isinstance(self._registry, RegistrySnapshot):
            return self._registry
        return self._registry.snapshot()

    def resolve_and_route(
        self,
        raw_input: str,
        listing_type: Union[ListingType, str, None] = ListingType.SALE,
        entry_point: EntryPoint = EntryPoint.API,
        snapshot: Optional[RegistrySnapshot] = None,
    ) -> RouteDecision:
        """
        Normalize, match and classify one location query.

        Never raises for any input string; an unmatched or empty query routes
        to the free-text SRP fallback.
        """
        snapshot = snapshot or self.snapshot()
        raw_input = raw_input or ""
        result = LocationMatcher.explain(normalize(raw_input), snapshot)
        decision = classify(result.entity, raw_input, listing_type, entry_point)
        logger.debug(
            "Routed %s query via %s -> %s (%s)",
            entry_point.value,
            result.tier.value if result.tier else "fallback",
            decision.target,
            result.reasoning,
        )
        return decision

    def submit_text(
        self,
        raw_input: str,
        listing_type: Union[ListingType, str, None] = ListingType.SALE,
    ) -> RouteDecision:
        return self.resolve_and_route(raw_input, listing_type, EntryPoint.ENTER)

    def select_suggestion(
        self,
        entry: AutosuggestEntry,
        listing_type: Union[ListingType, str, None] = ListingType.SALE,
    ) -> RouteDecision:
        """
        Route an autosuggest selection.

        The entry's type/slug hints are not trusted for routing: a suggestion
        labelled like a province alias must still land on the province page.
        """
        return self.resolve_and_route(entry.label, listing_type, EntryPoint.AUTOSUGGEST)

    def route_url(
        self,
        url: str,
        listing_type: Union[ListingType, str, None] = None,
    ) -> RouteDecision:
        """
        Route a directly entered listing URL.

        Recognised shapes:
            /property-for-sale/{province}           province SEO page
            /property-for-sale/{province}/{city}    nested direct-entry SEO page
            /property-for-sale?suburb=|city=|location=
        Unknown slugs fall back the way the free-text path does. The listing
        type comes from the URL unless overridden.
        """
        snapshot = self.snapshot()
        parsed = parse_target(url or "")
        if parsed is None:
            logger.info("URL %r is not a listing URL; using free-text fallback", url)
            return classify(None, "", coerce_listing_type(listing_type), EntryPoint.URL)

        listing = coerce_listing_type(listing_type) if listing_type is not None else parsed.listing_type

        if parsed.is_path_form:
            return self._route_path(parsed.path_segments, listing, snapshot)

        if parsed.suburb:
            suburb = snapshot.get(LocationType.SUBURB, parsed.suburb, parent_slug=parsed.city)
            if suburb is None and parsed.city:
                suburb = snapshot.get(LocationType.SUBURB, parsed.suburb)
            if suburb is not None:
                return classify(suburb, suburb.name, listing, EntryPoint.URL)
            return self.resolve_and_route(parsed.suburb, listing, EntryPoint.URL, snapshot)

        if parsed.city:
            city = snapshot.get(LocationType.CITY, parsed.city)
            if city is not None:
                return classify(city, city.name, listing, EntryPoint.URL)
            return self.resolve_and_route(parsed.city, listing, EntryPoint.URL, snapshot)

        return self.resolve_and_route(parsed.location or "", listing, EntryPoint.URL, snapshot)

    def _route_path(
        self,
        segments: list,
        listing: ListingType,
        snapshot: RegistrySnapshot,
    ) -> RouteDecision:
        province = snapshot.get(LocationType.PROVINCE, segments[0])

        if province is None:
            # Not a province slug: treat the deepest segment like typed text
            return self._route_slug(segments[-1], listing, snapshot)

        if len(segments) == 1:
            return classify(province, province.name, listing, EntryPoint.URL)

        city = snapshot.get(LocationType.CITY, segments[1], parent_slug=province.slug)
        if city is None:
            logger.warning(
                "City '%s' not found in province '%s'; falling back to province page",
                segments[1],
                province.slug,
            )
            return classify(province, province.name, listing, EntryPoint.URL)

        if len(segments) >= 3:
            suburb = snapshot.get(LocationType.SUBURB, segments[2], parent_slug=city.slug)
            if suburb is not None:
                return classify(suburb, suburb.name, listing, EntryPoint.URL)
            logger.warning(
                "Suburb '%s' not found in city '%s'; falling back to city page",
                segments[2],
                city.slug,
            )

        return classify_direct_entry(province, city, listing)

    def _route_slug(
        self,
        slug: str,
        listing: ListingType,
        snapshot: RegistrySnapshot,
    ) -> RouteDecision:
        for tier in LocationMatcher.TIER_PRECEDENCE:
            entity: Optional[LocationEntity] = snapshot.get(tier, slug)
            if entity is not None:
                return classify(entity, entity.name, listing, EntryPoint.URL)
        result = LocationMatcher.explain(normalize(slug.replace("-", " ")), snapshot)
        return classify(result.entity, slug, listing, EntryPoint.URL)
