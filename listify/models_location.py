"""
Location Models

Geographic entities and the enumerations shared by the routing engine.
Records are read-only: the registry owns them and every component receives
them through an explicit snapshot.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class LocationType(str, Enum):
    """Tier of a geographic entity"""
    PROVINCE = "province"
    CITY = "city"
    SUBURB = "suburb"

    @property
    def parent_type(self) -> Optional["LocationType"]:
        if self is LocationType.CITY:
            return LocationType.PROVINCE
        if self is LocationType.SUBURB:
            return LocationType.CITY
        return None


class RenderMode(str, Enum):
    """Rendering mode of a landing page"""
    SEO = "seo"                       # Static discovery page, province only
    SRP = "srp"                       # Filterable search results page


class ListingType(str, Enum):
    """Listing type toggle owned by the navbar, not by routing"""
    SALE = "sale"
    RENT = "rent"


class EntryPoint(str, Enum):
    """How a location query reached the router"""
    ENTER = "enter"                   # Typed text + Enter
    AUTOSUGGEST = "autosuggest"       # Dropdown selection
    URL = "url"                       # Direct navigation / page load
    API = "api"


@dataclass(frozen=True)
class LocationEntity:
    """
    A province, city or suburb as exported by the location registry.

    ``parent_slug`` points at the province slug for a city and at the city
    slug for a suburb. ``code`` is the short province code (GP, KZN, ...)
    and counts as an alias when matching.
    """
    id: str
    type: LocationType
    name: str
    slug: str
    parent_slug: Optional[str] = None
    aliases: FrozenSet[str] = field(default_factory=frozenset)
    code: Optional[str] = None

    @property
    def is_province(self) -> bool:
        return self.type is LocationType.PROVINCE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "slug": self.slug,
            "parentSlug": self.parent_slug,
            "aliases": sorted(self.aliases),
            "code": self.code,
        }
