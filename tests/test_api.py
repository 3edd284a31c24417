"""Tests for the REST endpoints."""

import pytest

from caselink.dashboard import create_app

API = "/api/v1"


class TestHealthAndErrors:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "ok"
        assert "timestamp" in resp.get_json()

    def test_unknown_route_returns_json_404(self, client):
        resp = client.get(f"{API}/nothing-here")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": {"message": "Not found", "status": 404}}

    def test_cors_header(self, client):
        resp = client.get("/health")
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    def test_cors_preflight(self, client):
        resp = client.options(
            f"{API}/search/advanced",
            headers={"Origin": "http://localhost:5173",
                     "Access-Control-Request-Method": "POST"},
        )
        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]

    def test_missing_database_is_a_500(self, tmp_path):
        app = create_app(tmp_path / "absent.db")
        resp = app.test_client().get(f"{API}/cases")
        assert resp.status_code == 500
        body = resp.get_json()
        assert body["error"]["status"] == 500
        assert "caselink init" in body["error"]["message"]


class TestCasesEndpoints:
    def test_list(self, client):
        body = client.get(f"{API}/cases?limit=2").get_json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 4, "totalPages": 2}

    def test_list_filtered(self, client):
        body = client.get(f"{API}/cases?province=Phuket").get_json()
        assert [row["case_number"] for row in body["data"]] == ["10-66-00999"]

    def test_detail(self, client):
        body = client.get(f"{API}/cases/10-67-00123").get_json()
        assert body["data"]["case_type"] == "ฆ่าผู้อื่น"

    def test_detail_not_found(self, client):
        resp = client.get(f"{API}/cases/missing")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["message"] == "Case not found"

    def test_children(self, client):
        assert len(client.get(f"{API}/cases/10-67-00123/samples").get_json()["data"]) == 2
        assert len(client.get(f"{API}/cases/10-67-00123/persons").get_json()["data"]) == 2
        assert len(client.get(f"{API}/cases/10-67-00123/links").get_json()["data"]) == 2

    def test_children_of_unknown_case_are_empty(self, client):
        assert client.get(f"{API}/cases/missing/links").get_json() == {"data": []}


class TestPersonsEndpoints:
    def test_list_multi_case_only(self, client):
        body = client.get(f"{API}/persons?multi_case_only=true").get_json()
        assert body["pagination"]["total"] == 2

    def test_multi_case(self, client):
        body = client.get(f"{API}/persons/multi-case?min_cases=2").get_json()
        assert {row["full_name"] for row in body["data"]} == {"Somchai Jaidee", "Anan Rakdee"}

    def test_multi_case_negative_limit(self, client):
        body = client.get(f"{API}/persons/multi-case?min_cases=1&limit=-1").get_json()
        assert len(body["data"]) == 1

    def test_detail_and_cases(self, client):
        person = client.get(f"{API}/persons/1234567890123").get_json()["data"]
        assert person["full_name"] == "Somchai Jaidee"
        cases = client.get(f"{API}/persons/{person['person_id']}/cases").get_json()["data"]
        assert len(cases) == 2

    def test_detail_not_found(self, client):
        assert client.get(f"{API}/persons/000").status_code == 404


class TestSamplesAndLinksEndpoints:
    def test_samples(self, client):
        body = client.get(f"{API}/samples?sample_type=Hair").get_json()
        assert [row["lab_number"] for row in body["data"]] == ["S004"]

    def test_sample_matches(self, client):
        body = client.get(f"{API}/samples/PFSC10_S001/matches").get_json()
        assert body["data"][0]["match_result"] == "MATCH"

    def test_sample_not_found(self, client):
        assert client.get(f"{API}/samples/nope").status_code == 404

    def test_links(self, client):
        body = client.get(f"{API}/links?link_type=DNA_MATCH").get_json()
        assert body["pagination"]["total"] == 2

    def test_link_types_and_top(self, client):
        types = client.get(f"{API}/links/types").get_json()["data"]
        assert {row["link_type"] for row in types} == {"DNA_MATCH", "ID_NUMBER"}
        top = client.get(f"{API}/links/top?limit=1").get_json()["data"]
        assert top[0]["link_strength"] == 1.0

    @pytest.mark.parametrize("limit", ["-1", "-50"])
    def test_top_links_negative_limit(self, client, limit):
        top = client.get(f"{API}/links/top?limit={limit}").get_json()["data"]
        assert len(top) == 1

    def test_link_detail(self, client):
        link_id = client.get(f"{API}/links/top?limit=1").get_json()["data"][0]["link_id"]
        body = client.get(f"{API}/links/{link_id}").get_json()
        assert body["data"]["case1_number"] == "10-67-00123"
        assert client.get(f"{API}/links/9999").status_code == 404


class TestSearchEndpoints:
    def test_short_term_rejected(self, client):
        resp = client.get(f"{API}/search?q=a")
        assert resp.status_code == 400
        assert "at least 2 characters" in resp.get_json()["error"]["message"]

    def test_unknown_type_rejected(self, client):
        assert client.get(f"{API}/search?q=Somchai&type=vehicles").status_code == 400

    def test_search_counts(self, client):
        body = client.get(f"{API}/search?q=Somchai").get_json()
        assert body["query"] == "Somchai"
        assert body["counts"] == {"cases": 0, "persons": 1, "samples": 0, "total": 1}

    def test_search_case_number_is_literal(self, client):
        body = client.get(f"{API}/search?q=10-67&type=cases").get_json()
        assert body["counts"]["cases"] == 0
        body = client.get(f"{API}/search?q=10-67-00123&type=cases").get_json()
        assert body["counts"]["cases"] == 1

    def test_search_by_id_strips_separators(self, client):
        body = client.get(f"{API}/search/id/1-2345-67890-12-3").get_json()
        assert body["data"]["person"]["person_id"] == "PER_1234567890123"
        assert len(body["data"]["cases"]) == 2

    def test_search_by_id_not_found(self, client):
        body = client.get(f"{API}/search/id/5555555555555").get_json()
        assert body["data"]["person"] is None
        assert body["data"]["cases"] == []

    def test_search_by_case_number_exact(self, client):
        data = client.get(f"{API}/search/case/10-67-00456").get_json()["data"]
        assert data["case"]["case_id"] == "PFSC10_10-67-00456"
        assert {link["linked_case"] for link in data["links"]} == {"10-67-00123", "10-67-00789"}

    def test_search_by_case_number_partial(self, client):
        data = client.get(f"{API}/search/case/00999").get_json()["data"]
        assert data["exactMatch"] is None
        assert [c["case_number"] for c in data["partialMatches"]] == ["10-66-00999"]

    def test_advanced(self, client):
        resp = client.post(f"{API}/search/advanced",
                           json={"province": "Bangkok", "has_links": True, "min_link_strength": 0.9})
        body = resp.get_json()
        assert body["count"] == 1
        assert body["data"][0]["case_number"] == "10-67-00123"
        assert body["filters"]["province"] == "Bangkok"

    def test_advanced_without_body(self, client):
        body = client.post(f"{API}/search/advanced").get_json()
        assert body["count"] == 4


class TestStatsEndpoints:
    @pytest.mark.parametrize(
        "path",
        ["overview", "by-year", "by-province", "by-case-type", "by-month?year=2024",
         "links-summary", "top-linked-cases"],
    )
    def test_endpoints_respond(self, client, path):
        resp = client.get(f"{API}/stats/{path}")
        assert resp.status_code == 200
        assert "data" in resp.get_json()

    def test_overview_empty_database(self, empty_client):
        data = empty_client.get(f"{API}/stats/overview").get_json()["data"]
        assert data["total_cases"] == 0
        assert data["total_links"] == 0

    def test_by_province(self, client):
        data = client.get(f"{API}/stats/by-province").get_json()["data"]
        bangkok = next(row for row in data if row["province"] == "Bangkok")
        assert bangkok["case_count"] == 2
        assert bangkok["sample_count"] == 3

    def test_top_linked_cases_negative_limit(self, client):
        everything = client.get(f"{API}/stats/top-linked-cases?limit=50").get_json()["data"]
        assert len(everything) > 1
        data = client.get(f"{API}/stats/top-linked-cases?limit=-1").get_json()["data"]
        assert len(data) == 1
