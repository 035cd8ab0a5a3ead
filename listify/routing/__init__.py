"""
Location Routing Module

Single source of truth for turning a location query into a landing page.

Components:
- normalize / slugify: Canonical text and slug rules
- RegistrySnapshot / LocationRegistry: Validated, read-only location data
- LocationMatcher: Province > city > suburb exact matching
- classify / RouteDecision: SEO vs SRP decision and URL construction
- LocationRouter: resolve_and_route() plus the Enter / autosuggest / URL entry paths
"""

from .normalizer import normalize, slugify
from .location_registry import LocationRegistry, RegistrySnapshot
from .location_matcher import LocationMatcher, MatchResult, match
from .route_classifier import RouteDecision, build_internal_link, classify, parse_target
from .location_router import AutosuggestEntry, LocationRouter

__all__ = [
    "normalize",
    "slugify",
    "LocationRegistry",
    "RegistrySnapshot",
    "LocationMatcher",
    "MatchResult",
    "match",
    "RouteDecision",
    "build_internal_link",
    "classify",
    "parse_target",
    "AutosuggestEntry",
    "LocationRouter",
]
