from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .models_location import LocationEntity
from .routing.route_classifier import RouteDecision
from .services.page_composer import PageComposition


class LocationEntityModel(BaseModel):
    id: str
    type: Literal["province", "city", "suburb"]
    name: str
    slug: str
    parentSlug: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)
    code: Optional[str] = None

    @classmethod
    def from_entity(cls, entity: LocationEntity) -> "LocationEntityModel":
        return cls.model_validate(entity.to_dict())


class RouteDecisionResponse(BaseModel):
    mode: Literal["seo", "srp"]
    target: str
    path: str
    queryParams: Dict[str, str] = Field(default_factory=dict)
    listingType: Literal["sale", "rent"] = "sale"
    entryPoint: Literal["enter", "autosuggest", "url", "api"] = "api"
    matchedEntity: Optional[LocationEntityModel] = None

    @classmethod
    def from_decision(cls, decision: RouteDecision) -> "RouteDecisionResponse":
        return cls.model_validate(decision.to_dict())


class LinkModel(BaseModel):
    label: str
    href: str


class RegionModel(BaseModel):
    region: str
    heading: str = ""
    text: str = ""
    links: List[LinkModel] = Field(default_factory=list)
    paginated: bool = False
    filterControlled: bool = False


class PageCompositionResponse(BaseModel):
    mode: Literal["seo", "srp"]
    title: str
    heading: str
    target: str
    canonicalUrl: str
    regions: List[RegionModel] = Field(default_factory=list)
    breadcrumbs: List[LinkModel] = Field(default_factory=list)
    queryParams: Dict[str, str] = Field(default_factory=dict)
    searchContext: bool = False
    decision: RouteDecisionResponse

    @classmethod
    def from_page(cls, page: PageComposition, decision: RouteDecision) -> "PageCompositionResponse":
        payload = page.to_dict()
        payload["decision"] = decision.to_dict()
        return cls.model_validate(payload)


class RegistryStats(BaseModel):
    source: str
    version: int
    entities: int
    excluded: int
    ambiguous: int


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    registry: RegistryStats


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Dict[str, object] = Field(default_factory=dict)
