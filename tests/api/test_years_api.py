"""
HTTP contract tests for the year endpoints.
"""


class TestYearEndpoints:
    def test_create_and_list(self, client):
        created = client.post("/years", json={"label": "2024", "status": "published"})
        assert created.status_code == 201
        assert created.json()["orderIndex"] == "1.0"
        assert created.json()["status"] == "published"

        client.post("/years", json={"label": "2025"})
        assert [year["label"] for year in client.get("/years").json()] == ["2024", "2025"]

    def test_duplicate_label_is_409(self, client):
        client.post("/years", json={"label": "2024"})
        response = client.post("/years", json={"label": "2024"})
        assert response.status_code == 409
        assert response.json()["field"] == "label"

    def test_missing_label_is_400(self, client):
        response = client.post("/years", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["field"] == "label"

    def test_locations_resolve_year_by_label_or_id(self, client):
        year = client.post("/years", json={"label": "2024"}).json()
        client.post("/years/2024/locations", json={"name": "Kyoto", "slug": "kyoto-24"})
        assert client.get(f"/years/{year['id']}/locations").json()[0]["slug"] == "kyoto-24"
