"""
Landing Page Composer

Builds the region layout of the page a RouteDecision lands on. The real
component tree lives in the web client; this is the server-side description
of it (regions, title, breadcrumbs, internal links) that the page guardrails
are asserted against.

SEO pages (province, or nested city by direct entry) are fixed editorial
pages. SRP pages carry the filter, sort, result-count and pagination
controls whose output varies with the query parameters.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import Settings, get_settings
from ..models_location import ListingType, LocationEntity, LocationType, RenderMode
from ..routing.location_registry import RegistrySnapshot
from ..routing.route_classifier import (
    RouteDecision,
    base_path,
    build_internal_link,
    page_target,
)

logger = logging.getLogger(__name__)


class PageRegion(str, Enum):
    """UI regions a landing page can be composed of"""
    HERO = "hero"
    BREADCRUMBS = "breadcrumbs"
    EDITORIAL_INTRO = "editorial-intro"
    TOP_LOCALITIES = "top-localities"       # Fixed editorial panel
    FILTERS = "filters"                     # SRP only
    SORT = "sort"                           # SRP only
    ACTIVE_FILTER_CHIPS = "active-filter-chips"
    RESULT_COUNT = "result-count"           # "Showing X-Y of N"
    RESULTS_GRID = "results-grid"
    PAGINATION = "pagination"


SORT_OPTIONS = [
    ("relevance", "Most relevant"),
    ("price_asc", "Lowest price"),
    ("price_desc", "Highest price"),
    ("newest", "Newest listings"),
]

LISTING_LABELS = {
    ListingType.SALE: ("for Sale", "For Sale"),
    ListingType.RENT: ("to Rent", "To Rent"),
}

# Pages shown either side of the current one; first and last are always shown
PAGINATION_WINDOW = 2


@dataclass
class Link:
    label: str
    href: str

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "href": self.href}


@dataclass
class RegionBlock:
    """One rendered region and the affordances it exposes."""
    region: PageRegion
    heading: str = ""
    text: str = ""
    links: List[Link] = field(default_factory=list)
    paginated: bool = False                 # own pagination or "load more"
    filter_controlled: bool = False         # contents vary with user filters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region": self.region.value,
            "heading": self.heading,
            "text": self.text,
            "links": [link.to_dict() for link in self.links],
            "paginated": self.paginated,
            "filterControlled": self.filter_controlled,
        }


@dataclass
class PageComposition:
    mode: RenderMode
    title: str
    heading: str
    target: str
    canonical_url: str
    blocks: List[RegionBlock] = field(default_factory=list)
    breadcrumbs: List[Link] = field(default_factory=list)
    query_params: Dict[str, str] = field(default_factory=dict)
    search_context: bool = False

    @property
    def regions(self) -> List[PageRegion]:
        return [block.region for block in self.blocks]

    def has_region(self, region: PageRegion) -> bool:
        return region in self.regions

    def block(self, region: PageRegion) -> Optional[RegionBlock]:
        for candidate in self.blocks:
            if candidate.region is region:
                return candidate
        return None

    @property
    def internal_links(self) -> List[Link]:
        links = list(self.breadcrumbs)
        for block in self.blocks:
            links.extend(block.links)
        return links

    @property
    def text_content(self) -> str:
        parts = [self.title, self.heading]
        for block in self.blocks:
            parts.extend(p for p in (block.heading, block.text) if p)
        return "\n".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "title": self.title,
            "heading": self.heading,
            "target": self.target,
            "canonicalUrl": self.canonical_url,
            "regions": [block.to_dict() for block in self.blocks],
            "breadcrumbs": [link.to_dict() for link in self.breadcrumbs],
            "queryParams": dict(self.query_params),
            "searchContext": self.search_context,
        }


def _free_text(decision: RouteDecision) -> str:
    """Free-text query as displayed; the URL keeps it untrimmed."""
    return dict(decision.query_params).get("location", "").strip()


def pagination_pages(page: int, total_pages: int, window: int = PAGINATION_WINDOW) -> List[int]:
    """First, last and ``window`` pages either side of ``page``, ascending."""
    if total_pages < 1:
        return []
    page = min(max(page, 1), total_pages)
    pages = {1, total_pages}
    pages.update(range(max(1, page - window), min(total_pages, page + window) + 1))
    return sorted(pages)


def generate_breadcrumbs(decision: RouteDecision, snapshot: RegistrySnapshot) -> List[Link]:
    """Home > For Sale > Province > City > Suburb, hrefs from build_internal_link."""
    listing = decision.listing_type
    crumbs = [
        Link("Home", "/"),
        Link(LISTING_LABELS[listing][1], base_path(listing)),
    ]
    entity = decision.matched_entity
    if entity is None:
        text = _free_text(decision)
        if text:
            crumbs.append(Link(f'"{text}"', decision.target))
        return crumbs
    for ancestor in snapshot.ancestry(entity):
        crumbs.append(Link(ancestor.name, build_internal_link(ancestor, listing)))
    return crumbs


def generate_page_title(decision: RouteDecision, snapshot: RegistrySnapshot, site_name: str) -> str:
    listing_label = LISTING_LABELS[decision.listing_type][0]
    entity = decision.matched_entity

    if decision.mode is RenderMode.SEO and entity is not None:
        if entity.type is LocationType.PROVINCE:
            return f"{entity.name} Property {listing_label} | {site_name}"
        parent = snapshot.parent_of(entity)
        where = f"{entity.name}, {parent.name}" if parent else entity.name
        return f"{where} Property {listing_label} | {site_name}"

    if entity is None:
        text = _free_text(decision)
        if text:
            return f"Properties {listing_label} matching \"{text}\" | {site_name}"
        return f"Properties {listing_label} | {site_name}"

    if entity.type is LocationType.SUBURB:
        city = snapshot.parent_of(entity)
        if city is not None:
            return f"Properties {listing_label} in {entity.name}, {city.name} | {site_name}"
    return f"Properties {listing_label} in {entity.name} | {site_name}"


def _result_count_text(result_count: int, page: int, page_size: int) -> str:
    if result_count <= 0:
        return "Showing 0 of 0 properties"
    start = (page - 1) * page_size + 1
    end = min(page * page_size, result_count)
    if start > result_count:
        return f"Showing 0 of {result_count} properties"
    return f"Showing {start}-{end} of {result_count} properties"


def _compose_seo(
    decision: RouteDecision,
    snapshot: RegistrySnapshot,
    settings: Settings,
) -> PageComposition:
    entity: LocationEntity = decision.matched_entity
    listing = decision.listing_type
    listing_label = LISTING_LABELS[listing][0].lower()

    if entity.type is LocationType.PROVINCE:
        localities = snapshot.list_cities(entity.slug)
        heading = f"Property {listing_label} in {entity.name}"
        intro = (
            f"Explore homes, apartments and plots {listing_label} across {entity.name}. "
            f"Pick a city below to search current listings."
        )
    else:
        localities = snapshot.list_suburbs(entity.slug)
        heading = f"Property {listing_label} in {entity.name}"
        intro = f"Discover the neighbourhoods of {entity.name} and browse their listings."

    blocks = [
        RegionBlock(PageRegion.HERO, heading=heading),
        RegionBlock(PageRegion.BREADCRUMBS),
        RegionBlock(PageRegion.EDITORIAL_INTRO, text=intro),
        RegionBlock(
            PageRegion.TOP_LOCALITIES,
            heading=f"Top localities in {entity.name}",
            links=[Link(loc.name, build_internal_link(loc, listing)) for loc in localities],
        ),
    ]

    breadcrumbs = generate_breadcrumbs(decision, snapshot)
    return PageComposition(
        mode=RenderMode.SEO,
        title=generate_page_title(decision, snapshot, settings.site_name),
        heading=heading,
        target=decision.target,
        canonical_url=f"{settings.app_url.rstrip('/')}{decision.path}",
        blocks=blocks,
        breadcrumbs=breadcrumbs,
    )


def _compose_srp(
    decision: RouteDecision,
    snapshot: RegistrySnapshot,
    settings: Settings,
    result_count: int,
    page: int,
) -> PageComposition:
    params = dict(decision.query_params)
    entity = decision.matched_entity
    listing_label = LISTING_LABELS[decision.listing_type][0].lower()
    text = _free_text(decision)

    if entity is not None:
        heading = f"Search results: properties {listing_label} in {entity.name}"
        chip = Link(entity.name, base_path(decision.listing_type))
    elif text:
        heading = f"Search results: properties {listing_label} matching \"{text}\""
        chip = Link(text, base_path(decision.listing_type))
    else:
        heading = f"Search results: all properties {listing_label}"
        chip = None

    page_size = settings.srp_page_size
    total_pages = max(1, math.ceil(result_count / page_size)) if result_count > 0 else 1
    page = min(max(page, 1), total_pages)

    pagination_links = [
        Link(str(n), page_target(decision, n)) for n in pagination_pages(page, total_pages)
    ]

    blocks = [
        RegionBlock(PageRegion.BREADCRUMBS),
        RegionBlock(PageRegion.FILTERS, heading="Filters", filter_controlled=True),
        RegionBlock(
            PageRegion.SORT,
            heading="Sort by",
            text=", ".join(label for _, label in SORT_OPTIONS),
        ),
        RegionBlock(
            PageRegion.ACTIVE_FILTER_CHIPS,
            links=[chip] if chip else [],
        ),
        RegionBlock(
            PageRegion.RESULT_COUNT,
            text=_result_count_text(result_count, page, page_size),
        ),
        RegionBlock(PageRegion.RESULTS_GRID, filter_controlled=True, paginated=True),
        RegionBlock(PageRegion.PAGINATION, links=pagination_links, paginated=True),
    ]

    return PageComposition(
        mode=RenderMode.SRP,
        title=generate_page_title(decision, snapshot, settings.site_name),
        heading=heading,
        target=decision.target,
        canonical_url=f"{settings.app_url.rstrip('/')}{decision.target}",
        blocks=blocks,
        breadcrumbs=generate_breadcrumbs(decision, snapshot),
        query_params=params,
        search_context=True,
    )


def compose_page(
    decision: RouteDecision,
    snapshot: RegistrySnapshot,
    result_count: int = 0,
    page: int = 1,
    settings: Optional[Settings] = None,
) -> PageComposition:
    """
    Describe the landing page for ``decision``.

    Args:
        decision: Output of the location router
        snapshot: Registry snapshot the decision was made against
        result_count: Total listings reported by the catalog service (SRP only)
        page: Requested result page (SRP only)
    """
    settings = settings or get_settings()
    logger.debug("Composing %s page for %s", decision.mode.value, decision.target)
    if decision.is_seo:
        if decision.matched_entity is None:
            raise ValueError("An SEO page needs a matched entity")
        return _compose_seo(decision, snapshot, settings)
    return _compose_srp(decision, snapshot, settings, result_count, page)
