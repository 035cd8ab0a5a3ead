"""
Page Guardrails - Render-Mode Contract for Landing Pages

Every landing page implements exactly one RenderMode:

- seo: no filters, no sort, no pagination or "showing X of Y", no results
  grid driven by user filters. Fixed editorial modules are allowed if they
  have no pagination/"load more" of their own.
- srp: filters, sort and pagination/result-count are all present and the
  results grid follows the query parameters.

Internal links to a city or suburb must use the SRP query form. The SEO
path form is reserved for provinces; the nested direct-entry path is never
linked internally.

Pages are composed statically, so this is a contract checked by tests, not a
runtime gate.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from ..exceptions import GuardrailViolationError
from ..models_location import LocationType, RenderMode
from ..routing.location_registry import RegistrySnapshot
from ..routing.route_classifier import parse_target
from .page_composer import PageComposition, PageRegion

SEO_FORBIDDEN_REGIONS = frozenset({
    PageRegion.FILTERS,
    PageRegion.SORT,
    PageRegion.PAGINATION,
    PageRegion.RESULT_COUNT,
    PageRegion.ACTIVE_FILTER_CHIPS,
})

SRP_REQUIRED_REGIONS = frozenset({
    PageRegion.FILTERS,
    PageRegion.SORT,
    PageRegion.PAGINATION,
    PageRegion.RESULT_COUNT,
    PageRegion.RESULTS_GRID,
})

_SHOWING_X_OF_Y_RE = re.compile(r"\bshowing\s+\d+(\s*-\s*\d+)?\s+of\s+\d+", re.IGNORECASE)
_LOAD_MORE_RE = re.compile(r"\bload\s+more\b", re.IGNORECASE)


@dataclass(frozen=True)
class ContractViolation:
    rule: str
    message: str
    region: Optional[PageRegion] = None

    def __str__(self) -> str:
        where = f" [{self.region.value}]" if self.region else ""
        return f"{self.rule}{where}: {self.message}"


def check_internal_link(href: str, snapshot: Optional[RegistrySnapshot] = None) -> Optional[ContractViolation]:
    """
    Validate the form of one internal href.

    With a snapshot, a single-segment SEO path is also checked to name a
    province rather than a city or suburb.
    """
    parsed = parse_target(href)
    if parsed is None:
        return None
    if parsed.is_direct_entry_form:
        return ContractViolation(
            "internal-link-form",
            f"{href} uses the nested direct-entry SEO path; link the SRP query form instead",
        )
    if parsed.is_path_form and snapshot is not None:
        slug = parsed.path_segments[0]
        if snapshot.get(LocationType.PROVINCE, slug) is None:
            return ContractViolation(
                "internal-link-form",
                f"{href} uses the SEO path form for '{slug}', which is not a province",
            )
    if parsed.is_path_form and parsed.params:
        return ContractViolation(
            "internal-link-form",
            f"{href} adds query parameters to a province SEO path",
        )
    return None


def check_page_contract(page: PageComposition, snapshot: Optional[RegistrySnapshot] = None) -> List[ContractViolation]:
    """Return every contract violation of ``page`` (empty when compliant)."""
    violations: List[ContractViolation] = []

    if page.mode is RenderMode.SEO:
        for block in page.blocks:
            if block.region in SEO_FORBIDDEN_REGIONS:
                violations.append(ContractViolation(
                    "seo-forbidden-region",
                    f"SEO page renders {block.region.value}",
                    block.region,
                ))
            if block.filter_controlled:
                violations.append(ContractViolation(
                    "seo-filter-controlled",
                    "SEO page renders content controlled by user filters",
                    block.region,
                ))
            if block.paginated or _LOAD_MORE_RE.search(block.text or ""):
                violations.append(ContractViolation(
                    "seo-paginated-module",
                    "SEO page module has its own pagination or load-more",
                    block.region,
                ))
        if _SHOWING_X_OF_Y_RE.search(page.text_content):
            violations.append(ContractViolation(
                "seo-result-count-text",
                "SEO page contains 'showing X of Y' text",
            ))
        if page.query_params:
            violations.append(ContractViolation(
                "seo-query-params",
                "SEO page target carries query parameters",
            ))
    else:
        for region in sorted(SRP_REQUIRED_REGIONS, key=lambda r: r.value):
            if page.has_region(region):
                continue
            violations.append(ContractViolation(
                "srp-missing-region",
                f"SRP page is missing {region.value}",
                region,
            ))
        grid = page.block(PageRegion.RESULTS_GRID)
        if grid is not None and not grid.filter_controlled:
            violations.append(ContractViolation(
                "srp-static-results",
                "SRP results grid does not follow the query parameters",
                PageRegion.RESULTS_GRID,
            ))

    for link in page.internal_links:
        violation = check_internal_link(link.href, snapshot)
        if violation is not None:
            violations.append(violation)

    return violations


def assert_page_contract(page: PageComposition, snapshot: Optional[RegistrySnapshot] = None) -> None:
    violations = check_page_contract(page, snapshot)
    if violations:
        raise GuardrailViolationError(
            f"{page.mode.value} page {page.target} breaks its render-mode contract",
            violations=violations,
        )
