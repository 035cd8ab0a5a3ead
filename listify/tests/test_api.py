"""
API tests for the location routing endpoints.

Uses FastAPI's TestClient against the bundled registry; no remote export is
configured so startup never touches the network.
"""
import pytest
from fastapi.testclient import TestClient

from listify.main import app


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as test_client:
        yield test_client


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["registry"]["entities"] > 0
        assert data["registry"]["excluded"] == 0

    def test_request_id_header(self, client):
        response = client.get("/api/health")
        assert response.headers["X-Request-ID"].startswith("req_")


class TestResolve:
    def test_province_routes_to_seo(self, client):
        data = client.get("/api/locations/resolve", params={"q": "Gauteng"}).json()
        assert data["mode"] == "seo"
        assert data["target"] == "/property-for-sale/gauteng"
        assert data["queryParams"] == {}
        assert data["entryPoint"] == "enter"
        assert data["matchedEntity"]["type"] == "province"

    def test_autosuggest_entry(self, client):
        data = client.get(
            "/api/locations/resolve", params={"q": "KZN", "entry": "autosuggest"}
        ).json()
        assert data["entryPoint"] == "autosuggest"
        assert data["target"] == "/property-for-sale/kwazulu-natal"

    def test_rent_city(self, client):
        data = client.get("/api/locations/resolve", params={"q": "Durban", "listingType": "rent"}).json()
        assert data["mode"] == "srp"
        assert data["target"] == "/property-to-rent?city=durban"

    def test_free_text_fallback(self, client):
        data = client.get("/api/locations/resolve", params={"q": "Atlantis"}).json()
        assert data["matchedEntity"] is None
        assert data["queryParams"] == {"location": "Atlantis"}

    def test_unknown_listing_type(self, client):
        response = client.get("/api/locations/resolve", params={"q": "Durban", "listingType": "lease"})
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "ValidationError"
        assert data["details"]["field"] == "listingType"

    def test_unknown_entry_rejected(self, client):
        response = client.get("/api/locations/resolve", params={"q": "Durban", "entry": "url"})
        assert response.status_code == 422


class TestRouteUrl:
    def test_nested_direct_entry(self, client):
        data = client.get(
            "/api/locations/route", params={"url": "/property-for-sale/gauteng/johannesburg"}
        ).json()
        assert data["mode"] == "seo"
        assert data["entryPoint"] == "url"
        assert data["matchedEntity"]["slug"] == "johannesburg"

    def test_query_form(self, client):
        data = client.get("/api/locations/route", params={"url": "/property-to-rent?suburb=sandton"}).json()
        assert data["listingType"] == "rent"
        assert data["target"] == "/property-to-rent?suburb=sandton"


class TestRegistryListings:
    def test_provinces(self, client):
        data = client.get("/api/locations/provinces").json()
        assert len(data) == 9
        assert data[0]["name"] == "Eastern Cape"
        assert all(p["parentSlug"] is None for p in data)

    def test_cities(self, client):
        data = client.get("/api/locations/provinces/gauteng/cities").json()
        assert [c["slug"] for c in data] == ["alberton", "centurion", "johannesburg", "midrand", "pretoria"]

    def test_unknown_province(self, client):
        response = client.get("/api/locations/provinces/atlantis/cities")
        assert response.status_code == 404
        assert response.json() == {
            "error": "NotFoundError",
            "message": "Unknown province 'atlantis'",
            "details": {"province": "atlantis"},
        }

    def test_suburbs(self, client):
        data = client.get("/api/locations/cities/durban/suburbs").json()
        assert "mpumalanga-township" in {s["slug"] for s in data}

    def test_unknown_city(self, client):
        response = client.get("/api/locations/cities/atlantis/suburbs")
        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"
        assert response.json()["details"] == {"city": "atlantis"}

    def test_error_model_documented(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        cities = paths["/api/locations/provinces/{province_slug}/cities"]["get"]["responses"]
        assert cities["404"]["content"]["application/json"]["schema"] == {"$ref": "#/components/schemas/ErrorResponse"}
        resolve = paths["/api/locations/resolve"]["get"]["responses"]
        assert "400" in resolve


class TestPages:
    def test_province_page(self, client):
        data = client.get("/api/pages", params={"target": "/property-for-sale/gauteng"}).json()
        assert data["mode"] == "seo"
        regions = {r["region"] for r in data["regions"]}
        assert not regions & {"filters", "sort", "pagination", "result-count"}
        assert data["decision"]["target"] == "/property-for-sale/gauteng"

    def test_srp_page(self, client):
        data = client.get(
            "/api/pages",
            params={"target": "/property-for-sale?city=durban", "resultCount": 30, "page": 2},
        ).json()
        assert data["mode"] == "srp"
        assert data["searchContext"] is True
        counts = [r["text"] for r in data["regions"] if r["region"] == "result-count"]
        assert counts == ["Showing 13-24 of 30 properties"]

    def test_negative_result_count_rejected(self, client):
        response = client.get("/api/pages", params={"target": "/property-for-sale", "resultCount": -1})
        assert response.status_code == 422
