"""
Routing Tests for LocationRouter

Every entry path (Enter, autosuggest selection, direct URL) must land on the
same page for the same location. These cases cover the province hard-block,
alias equivalence and the free-text fallback against the bundled registry.

Run with: pytest listify/routing/tests/ -v
"""

import pytest

from ...config import DEFAULT_REGISTRY_PATH
from ...models_location import EntryPoint, ListingType, LocationType, RenderMode
from ...services.registry_loader import FileRegistryLoader
from ..location_registry import LocationRegistry
from ..location_router import AutosuggestEntry, LocationRouter


@pytest.fixture(scope="module")
def registry():
    loader = FileRegistryLoader(DEFAULT_REGISTRY_PATH)
    return LocationRegistry(loader(), loader=loader, source=loader.source)


@pytest.fixture
def router(registry):
    return LocationRouter(registry)


# (typed text, expected mode, expected target)
SCENARIOS = [
    ("Gauteng", RenderMode.SEO, "/property-for-sale/gauteng"),
    ("  western   CAPE ", RenderMode.SEO, "/property-for-sale/western-cape"),
    ("KZN", RenderMode.SEO, "/property-for-sale/kwazulu-natal"),
    ("KwaZulu Natal", RenderMode.SEO, "/property-for-sale/kwazulu-natal"),
    ("Natal", RenderMode.SEO, "/property-for-sale/kwazulu-natal"),
    ("Mpumalanga", RenderMode.SEO, "/property-for-sale/mpumalanga"),
    ("Durban", RenderMode.SRP, "/property-for-sale?city=durban"),
    ("Cape Town!", RenderMode.SRP, "/property-for-sale?city=cape-town"),
    ("Port Elizabeth", RenderMode.SRP, "/property-for-sale?city=gqeberha"),
    ("Sandton", RenderMode.SRP, "/property-for-sale?suburb=sandton"),
    ("Umhlánga Rocks", RenderMode.SRP, "/property-for-sale?suburb=umhlanga"),
    ("Umhlanga", RenderMode.SRP, "/property-for-sale?suburb=umhlanga"),
    ("nonexistent-place-xyz", RenderMode.SRP, "/property-for-sale?location=nonexistent-place-xyz"),
    ("Atlantis", RenderMode.SRP, "/property-for-sale?location=Atlantis"),
    ("  Atlantis  ", RenderMode.SRP, "/property-for-sale?location=++Atlantis++"),
    ("Cape Town, Western Cape", RenderMode.SRP, "/property-for-sale?location=Cape+Town%2C+Western+Cape"),
    ("", RenderMode.SRP, "/property-for-sale?location="),
]


class TestResolveAndRoute:
    """Tests for typed text routing."""

    @pytest.mark.parametrize("text,mode,target", SCENARIOS)
    def test_scenarios(self, router, text, mode, target):
        decision = router.resolve_and_route(text)
        assert decision.mode is mode
        assert decision.target == target

    def test_province_never_routes_to_srp(self, router, registry):
        for province in registry.list_provinces():
            decision = router.resolve_and_route(province.name)
            assert decision.mode is RenderMode.SEO
            assert decision.query_params == ()

    def test_cities_and_suburbs_never_route_to_seo(self, router, registry):
        snapshot = registry.snapshot()
        for entity in snapshot.entities:
            if entity.type is LocationType.PROVINCE:
                continue
            decision = router.resolve_and_route(entity.name)
            if decision.matched_entity is not None and decision.matched_entity.type is LocationType.PROVINCE:
                # Suburb shares its name with a province; the province wins
                continue
            assert decision.mode is RenderMode.SRP

    def test_alias_equivalence(self, router):
        targets = {router.resolve_and_route(text).target for text in ("KwaZulu-Natal", "kzn", "Natal", " KZN ")}
        assert targets == {"/property-for-sale/kwazulu-natal"}

    def test_rent_listing_type(self, router):
        assert router.submit_text("Durban", "rent").target == "/property-to-rent?city=durban"
        assert router.submit_text("Gauteng", ListingType.RENT).target == "/property-to-rent/gauteng"

    @pytest.mark.parametrize("text", ["\x00", "💥", "%%%", "a" * 10000, "../../etc/passwd", "<script>"])
    def test_never_raises(self, router, text):
        decision = router.resolve_and_route(text)
        assert decision.mode is RenderMode.SRP
        assert decision.matched_entity is None


class TestEntryPathParity:
    """Enter, autosuggest and URL navigation agree for the same location."""

    @pytest.mark.parametrize("text,mode,target", SCENARIOS)
    def test_three_entry_paths_agree(self, router, text, mode, target):
        typed = router.submit_text(text)
        selected = router.select_suggestion(AutosuggestEntry(label=text))
        navigated = router.route_url(typed.target)

        assert typed.entry_point is EntryPoint.ENTER
        assert selected.entry_point is EntryPoint.AUTOSUGGEST
        assert navigated.entry_point is EntryPoint.URL

        for decision in (typed, selected, navigated):
            assert decision.mode is mode
            assert decision.target == target
        assert typed.matched_entity == selected.matched_entity == navigated.matched_entity

    def test_suggestion_hints_do_not_override_label(self, router):
        entry = AutosuggestEntry(label="Mpumalanga", type=LocationType.SUBURB, slug="mpumalanga-township")
        decision = router.select_suggestion(entry)
        assert decision.mode is RenderMode.SEO
        assert decision.target == "/property-for-sale/mpumalanga"


class TestRouteUrl:
    """Tests for direct navigation."""

    def test_nested_city_is_seo_direct_entry(self, router):
        decision = router.route_url("/property-for-sale/gauteng/johannesburg")
        assert decision.mode is RenderMode.SEO
        assert decision.matched_entity.slug == "johannesburg"
        assert decision.target == "/property-for-sale/gauteng/johannesburg"

    def test_nested_city_in_wrong_province_falls_back_to_province(self, router):
        decision = router.route_url("/property-for-sale/gauteng/durban")
        assert decision.mode is RenderMode.SEO
        assert decision.target == "/property-for-sale/gauteng"

    def test_nested_suburb_routes_to_srp(self, router):
        decision = router.route_url("/property-for-sale/gauteng/johannesburg/sandton")
        assert decision.target == "/property-for-sale?suburb=sandton"

    def test_unknown_nested_suburb_keeps_city_page(self, router):
        decision = router.route_url("/property-for-sale/gauteng/johannesburg/atlantis")
        assert decision.target == "/property-for-sale/gauteng/johannesburg"

    @pytest.mark.parametrize(
        "url,target",
        [
            ("/property-for-sale/durban", "/property-for-sale?city=durban"),
            ("/property-for-sale/cape-town", "/property-for-sale?city=cape-town"),
            ("/property-for-sale/mpumalanga-township", "/property-for-sale?suburb=mpumalanga-township"),
            ("/property-for-sale/port-elizabeth", "/property-for-sale?city=gqeberha"),
            ("/property-for-sale/kzn", "/property-for-sale/kwazulu-natal"),
            ("/property-for-sale/atlantis-beach", "/property-for-sale?location=atlantis-beach"),
        ],
    )
    def test_single_segment_that_is_not_a_province(self, router, url, target):
        assert router.route_url(url).target == target

    def test_query_forms(self, router):
        assert router.route_url("/property-for-sale?city=durban").target == "/property-for-sale?city=durban"
        assert router.route_url(
            "/property-for-sale?suburb=umhlanga&city=durban"
        ).target == "/property-for-sale?suburb=umhlanga"
        assert router.route_url("/property-for-sale?location=KZN").target == "/property-for-sale/kwazulu-natal"

    def test_unknown_city_param_resolved_as_text(self, router):
        assert router.route_url("/property-for-sale?city=Gauteng").target == "/property-for-sale/gauteng"
        assert router.route_url("/property-for-sale?city=atlantis").target == "/property-for-sale?location=atlantis"

    def test_listing_type_from_url(self, router):
        decision = router.route_url("https://propertylistify.com/property-to-rent?city=durban")
        assert decision.listing_type is ListingType.RENT
        assert decision.target == "/property-to-rent?city=durban"

    def test_listing_type_override(self, router):
        assert router.route_url("/property-for-sale/gauteng", "rent").target == "/property-to-rent/gauteng"

    def test_non_listing_url_falls_back(self, router):
        decision = router.route_url("/about-us")
        assert decision.matched_entity is None
        assert decision.target == "/property-for-sale?location="

    def test_bare_root(self, router):
        assert router.route_url("/property-for-sale").target == "/property-for-sale?location="


class TestSnapshotConsistency:
    def test_router_follows_registry_reload(self, registry):
        local = LocationRegistry(registry.snapshot().entities, source="copy")
        router = LocationRouter(local)
        assert router.resolve_and_route("Durban").matched_entity is not None

        local.replace(
            [e for e in local.snapshot().entities if e.slug != "durban" and e.parent_slug != "durban"],
            source="without-durban",
        )
        assert router.resolve_and_route("Durban").target == "/property-for-sale?location=Durban"

    def test_explicit_snapshot_is_used(self, registry):
        local = LocationRegistry(registry.snapshot().entities)
        pinned = local.snapshot()
        router = LocationRouter(local)
        local.replace([], source="empty")

        assert router.resolve_and_route("Durban").matched_entity is None
        assert router.resolve_and_route("Durban", snapshot=pinned).matched_entity.slug == "durban"

    def test_router_over_fixed_snapshot(self, registry):
        router = LocationRouter(registry.snapshot())
        assert router.snapshot() is registry.snapshot()
