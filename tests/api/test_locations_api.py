"""
HTTP contract tests for the location endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from travelogue.web.app import create_app


def _create(client, name, slug, year="2024"):
    response = client.post(f"/years/{year}/locations", json={"name": name, "slug": slug})
    assert response.status_code == 201, response.text
    return response.json()


class TestLocationEndpoints:
    def test_health(self, client, backend_kind):
        assert client.get("/health").json() == {"status": "ok", "backend": backend_kind.value}

    def test_create_and_list(self, client, year):
        body = _create(client, "Kyoto", "kyoto-24")

        assert body["slug"] == "kyoto-24"
        assert body["orderIndex"] == "1.0"
        assert body["yearId"] == year.id
        assert body["collectionCount"] == 0
        assert body["createdAt"].endswith("Z")

        listed = client.get(f"/years/{year.id}/locations")
        assert listed.status_code == 200
        assert [loc["id"] for loc in listed.json()] == [body["id"]]

    def test_invalid_slug_is_400_with_field(self, client, year):
        response = client.post("/years/2024/locations", json={"name": "Kyoto!!", "slug": "Kyoto"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["field"] == "slug"
        assert body["message"]

    def test_duplicate_slug_is_409(self, client, year):
        _create(client, "Kyoto", "kyoto-24")
        response = client.post("/years/2024/locations", json={"name": "Kyoto", "slug": "kyoto-24"})
        assert response.status_code == 409
        assert response.json() == {
            "error": "conflict",
            "message": "Slug is already in use, please choose another.",
            "field": "slug",
        }

    def test_unknown_year_is_404(self, client):
        response = client.get("/years/1999/locations")
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Year not found."}

    def test_update_by_body_id(self, client, year):
        created = _create(client, "Kyoto", "kyoto-24")
        response = client.put(
            "/years/2024/locations", json={"id": created["id"], "summary": "Temples"}
        )
        assert response.status_code == 200
        assert response.json()["summary"] == "Temples"

    def test_update_by_query_id(self, client, year):
        created = _create(client, "Kyoto", "kyoto-24")
        response = client.put("/years/2024/locations", params={"id": created["id"]}, json={"name": "Kyōto"})
        assert response.status_code == 200
        assert response.json()["name"] == "Kyōto"

    def test_no_op_update_is_400(self, client, year):
        created = _create(client, "Kyoto", "kyoto-24")
        response = client.put("/years/2024/locations", json={"id": created["id"], "name": "Kyoto"})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_delete(self, client, year):
        created = _create(client, "Kyoto", "kyoto-24")
        response = client.request("DELETE", "/years/2024/locations", json={"id": created["id"]})
        assert response.status_code == 204
        assert client.get("/years/2024/locations").json() == []

        again = client.delete("/years/2024/locations", params={"id": created["id"]})
        assert again.status_code == 404

    def test_delete_with_collections_is_409(self, client, service, year):
        created = _create(client, "Kyoto", "kyoto-24")
        service.create_collection(year.id, {"title": "Temples", "slug": "temples", "locationId": created["id"]})
        service.create_collection(year.id, {"title": "Tea", "slug": "tea", "locationId": created["id"]})

        response = client.delete("/years/2024/locations", params={"id": created["id"]})

        assert response.status_code == 409
        assert response.json()["error"] == "has_collections"
        assert client.get("/years/2024/locations").json()[0]["collectionCount"] == 2


class TestReorderEndpoint:
    def test_reorder(self, client, year):
        kyoto = _create(client, "Kyoto", "kyoto-24")
        osaka = _create(client, "Osaka", "osaka-24")

        response = client.post(
            f"/locations/{kyoto['id']}/reorder",
            json={"yearId": year.id, "orderedIds": [osaka["id"], kyoto["id"]]},
        )

        assert response.status_code == 200
        assert [(loc["name"], loc["orderIndex"]) for loc in response.json()] == [
            ("Osaka", "1.0"),
            ("Kyoto", "2.0"),
        ]

    def test_partial_permutation_is_400(self, client, year):
        kyoto = _create(client, "Kyoto", "kyoto-24")
        _create(client, "Osaka", "osaka-24")
        response = client.post(
            f"/locations/{kyoto['id']}/reorder", json={"yearId": "2024", "orderedIds": [kyoto["id"]]}
        )
        assert response.status_code == 400
        assert response.json()["field"] == "orderedIds"

    def test_unknown_location_is_404(self, client, year):
        kyoto = _create(client, "Kyoto", "kyoto-24")
        response = client.post(
            "/locations/00000000-0000-4000-8000-000000000000/reorder",
            json={"yearId": year.id, "orderedIds": [kyoto["id"]]},
        )
        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Location not found."}

    def test_location_of_another_year_is_400(self, client, year, other_year):
        kyoto = _create(client, "Kyoto", "kyoto-24")
        response = client.post(
            f"/locations/{kyoto['id']}/reorder",
            json={"yearId": other_year.id, "orderedIds": [kyoto["id"]]},
        )
        assert response.status_code == 400
        assert response.json()["field"] == "yearId"

    def test_missing_ordered_ids_is_400(self, client, year):
        kyoto = _create(client, "Kyoto", "kyoto-24")
        response = client.post(f"/locations/{kyoto['id']}/reorder", json={"yearId": "2024"})
        assert response.status_code == 400
        assert response.json()["field"] == "orderedIds"


class TestUnexpectedErrors:
    def test_storage_failure_is_500(self, catalog, year, monkeypatch):
        def broken(year_id):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(catalog.backend.locations, "list_for_year", broken)
        with TestClient(create_app(catalog), raise_server_exceptions=False) as client:
            response = client.get(f"/years/{year.id}/locations")

        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "message": "An unexpected error occurred."}

    @pytest.mark.parametrize("method", ["put", "delete"])
    def test_missing_id_is_400(self, client, year, method):
        if method == "put":
            response = client.put("/years/2024/locations", json={"name": "Kyoto"})
        else:
            response = client.delete("/years/2024/locations")
        assert response.status_code == 400
        assert response.json()["field"] == "id"
