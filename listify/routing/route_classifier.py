"""
Route Classifier - Single Source of Truth for Listing URL Shapes

Maps a matched entity (or no match) to a RouteDecision:

    province -> seo  /property-for-sale/{provinceSlug}
    city     -> srp  /property-for-sale?city={citySlug}
    suburb   -> srp  /property-for-sale?suburb={suburbSlug}
    None     -> srp  /property-for-sale?location={rawInput}

The rent variant swaps the base path to /property-to-rent. Every path or
query string that points at a listing page is built or parsed here, so page
guardrails can be checked against one definition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, unquote, urlencode, urlsplit

from ..exceptions import ValidationError
from ..models_location import EntryPoint, ListingType, LocationEntity, LocationType, RenderMode

logger = logging.getLogger(__name__)

BASE_PATHS: Dict[ListingType, str] = {
    ListingType.SALE: "/property-for-sale",
    ListingType.RENT: "/property-to-rent",
}

# Query parameter carrying each SRP location tier
CITY_PARAM = "city"
SUBURB_PARAM = "suburb"
FREE_TEXT_PARAM = "location"

_LISTING_TYPE_ALIASES: Dict[str, ListingType] = {
    "sale": ListingType.SALE,
    "buy": ListingType.SALE,
    "for-sale": ListingType.SALE,
    "rent": ListingType.RENT,
    "to-rent": ListingType.RENT,
}


def coerce_listing_type(value: Union[ListingType, str, None]) -> ListingType:
    """Accept the enum or any spelling the navbar toggle has used."""
    if value is None:
        return ListingType.SALE
    if isinstance(value, ListingType):
        return value
    listing_type = _LISTING_TYPE_ALIASES.get(str(value).strip().lower())
    if listing_type is None:
        raise ValidationError(
            f"Unknown listing type '{value}'. Use 'sale' or 'rent'.",
            field="listingType",
        )
    return listing_type


def base_path(listing_type: Union[ListingType, str, None] = ListingType.SALE) -> str:
    return BASE_PATHS[coerce_listing_type(listing_type)]


@dataclass(frozen=True)
class RouteDecision:
    """Result of routing a location query. Computed per navigation, never stored."""
    matched_entity: Optional[LocationEntity]
    mode: RenderMode
    path: str
    query_params: Tuple[Tuple[str, str], ...] = ()
    listing_type: ListingType = ListingType.SALE
    entry_point: EntryPoint = EntryPoint.API

    @property
    def target(self) -> str:
        if not self.query_params:
            return self.path
        return f"{self.path}?{urlencode(self.query_params)}"

    @property
    def is_seo(self) -> bool:
        return self.mode is RenderMode.SEO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "target": self.target,
            "path": self.path,
            "queryParams": dict(self.query_params),
            "listingType": self.listing_type.value,
            "entryPoint": self.entry_point.value,
            "matchedEntity": self.matched_entity.to_dict() if self.matched_entity else None,
        }


def classify(
    matched: Optional[LocationEntity],
    raw_input: str,
    listing_type: Union[ListingType, str, None] = ListingType.SALE,
    entry_point: EntryPoint = EntryPoint.API,
) -> RouteDecision:
    """
    Turn a match outcome into a RouteDecision.

    Total over its four cases and free of side effects. Province routes never
    carry query parameters. The free-text fallback carries the raw input
    unchanged; the catalog service interprets it.
    """
    listing = coerce_listing_type(listing_type)
    root = BASE_PATHS[listing]

    if matched is None:
        return RouteDecision(
            matched_entity=None,
            mode=RenderMode.SRP,
            path=root,
            query_params=((FREE_TEXT_PARAM, raw_input or ""),),
            listing_type=listing,
            entry_point=entry_point,
        )

    if matched.type is LocationType.PROVINCE:
        return RouteDecision(
            matched_entity=matched,
            mode=RenderMode.SEO,
            path=f"{root}/{matched.slug}",
            listing_type=listing,
            entry_point=entry_point,
        )

    param = CITY_PARAM if matched.type is LocationType.CITY else SUBURB_PARAM
    return RouteDecision(
        matched_entity=matched,
        mode=RenderMode.SRP,
        path=root,
        query_params=((param, matched.slug),),
        listing_type=listing,
        entry_point=entry_point,
    )


def build_internal_link(
    entity: LocationEntity,
    listing_type: Union[ListingType, str, None] = ListingType.SALE,
) -> str:
    """
    Href for in-product navigation to an entity.

    Provinces get their SEO path; cities and suburbs always get the SRP query
    form. Internal links never use the nested direct-entry path.
    """
    return classify(entity, entity.name, listing_type).target


def build_direct_entry_path(
    province_slug: str,
    city_slug: str,
    listing_type: Union[ListingType, str, None] = ListingType.SALE,
) -> str:
    """Nested SEO path reachable by URL or canonical tag only."""
    return f"{base_path(listing_type)}/{province_slug}/{city_slug}"


def classify_direct_entry(
    province: LocationEntity,
    city: LocationEntity,
    listing_type: Union[ListingType, str, None] = ListingType.SALE,
) -> RouteDecision:
    """Decision for a nested city SEO page reached by direct URL."""
    listing = coerce_listing_type(listing_type)
    return RouteDecision(
        matched_entity=city,
        mode=RenderMode.SEO,
        path=build_direct_entry_path(province.slug, city.slug, listing),
        listing_type=listing,
        entry_point=EntryPoint.URL,
    )


def page_target(decision: RouteDecision, page: int) -> str:
    """SRP target for a result page; page 1 is the bare target."""
    if decision.mode is not RenderMode.SRP:
        raise ValueError("Only search results pages are paginated")
    if page <= 1:
        return decision.target
    return f"{decision.path}?{urlencode(decision.query_params + (('page', str(page)),))}"


@dataclass
class ParsedTarget:
    """Structural reading of a listing URL, before any registry lookup."""
    listing_type: ListingType
    path_segments: List[str] = field(default_factory=list)
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def is_path_form(self) -> bool:
        return bool(self.path_segments)

    @property
    def is_direct_entry_form(self) -> bool:
        return len(self.path_segments) >= 2

    @property
    def city(self) -> Optional[str]:
        return self.params.get(CITY_PARAM)

    @property
    def suburb(self) -> Optional[str]:
        return self.params.get(SUBURB_PARAM)

    @property
    def location(self) -> Optional[str]:
        return self.params.get(FREE_TEXT_PARAM)


def parse_target(url: str) -> Optional[ParsedTarget]:
    """
    Read a listing URL (path, path+query or absolute URL).

    Returns None when the URL is not under a listing base path.
    """
    if url is None:
        return None
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/") or "/"

    for listing_type, root in BASE_PATHS.items():
        if path == root or path.startswith(root + "/"):
            remainder = path[len(root):].strip("/")
            segments = [unquote(s).lower() for s in remainder.split("/") if s]
            params: Dict[str, str] = {}
            for key, value in parse_qsl(parts.query, keep_blank_values=True):
                # First occurrence wins, matching URLSearchParams.get()
                params.setdefault(key, value)
            return ParsedTarget(listing_type=listing_type, path_segments=segments, params=params)

    return None
