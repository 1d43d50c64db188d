import pytest


def default_request(**overrides):
    """BMW X5 / Full Wrap + UV Protection, Premium Vinyl, Matte Lamination, white print."""
    body = {
        "vehicle_id": "1",
        "coverage_id": "1",
        "extra_option_ids": ["1"],
        "print_material_id": "2",
        "lamination_material_id": "1",
        "white_print_requested": True,
    }
    body.update(overrides)
    return body


def test_root(api_client):
    assert api_client.get("/").json()["status"] == "online"


def test_calculate(api_client):
    """2800 base, 700 print, 700 lamination (20% of 3500), 1225 white print (35% of 3500)."""
    response = api_client.post("/calculate", json=default_request())
    assert response.status_code == 200

    data = response.json()
    assert [line["amount"] for line in data["lines"]] == pytest.approx([2500, 300, 700, 700, 1225])
    assert data["total"] == pytest.approx(5425)
    assert data["currency"] == "RON"
    assert "→ Total" in data["trace"]


def test_calculate_rejects_foreign_coverage(api_client):
    """Coverage 3 belongs to the Sprinter."""
    response = api_client.post("/calculate", json=default_request(coverage_id="3"))
    assert response.status_code == 422
    assert response.json()["detail"] == {"field": "coverage", "kind": "not_found", "value": "3"}


def test_calculate_without_lamination(api_client):
    response = api_client.post("/calculate", json=default_request(lamination_material_id=None))
    assert response.status_code == 200
    assert response.json()["total"] == pytest.approx(2800 + 700 + 1225)


def test_lamination_can_be_required(api_client, monkeypatch):
    from wrap_pricing.api import main
    monkeypatch.setattr(main.settings, "require_lamination", True)

    response = api_client.post("/calculate", json=default_request(lamination_material_id=None))
    assert response.status_code == 422
    assert response.json()["detail"]["kind"] == "required"


def test_catalog(api_client):
    data = api_client.get("/catalog").json()
    assert [v["model"] for v in data["vehicles"]] == ["X5", "Sprinter"]
    assert data["white_print_settings"] == {"calculation_mode": "percentage", "value": 35.0}


def test_system_status(api_client):
    data = api_client.get("/system/status").json()
    assert data["engine_active"] is True
    assert data["counts"]["vehicles"] == 2


def test_cart_recomputes_total(api_client):
    response = api_client.post("/cart", json=default_request(total=1.0))
    assert response.status_code == 200

    line = response.json()
    assert line["title"] == "Graphics BMW X5 - Full Wrap"
    assert line["total"] == pytest.approx(5425)
    assert line["warnings"]

    cart = api_client.get("/cart").json()
    assert len(cart["lines"]) == 1
    assert cart["total"] == pytest.approx(5425)


class TestCatalogRoutes:
    def test_price_change_is_live(self, api_client):
        api_client.put("/api/catalog/vehicles/1/coverages/1", json={"price": 3000})
        response = api_client.post("/calculate", json=default_request(
            extra_option_ids=[], lamination_material_id=None, white_print_requested=False))
        assert response.json()["total"] == pytest.approx(3000 * 1.25)

    def test_vehicle_lifecycle(self, api_client):
        created = api_client.post("/api/catalog/vehicles", json={
            "manufacturer": "Iveco", "model": "Daily", "category_id": "2"}).json()
        vehicle_id = created["id"]

        coverage = api_client.post(f"/api/catalog/vehicles/{vehicle_id}/coverages",
                                   json={"name": "Full Wrap", "price": 2100}).json()
        assert api_client.get(f"/api/catalog/vehicles/{vehicle_id}").json()["coverages"] == [coverage]

        updated = api_client.put(f"/api/catalog/vehicles/{vehicle_id}", json={"model": "Daily Maxi"}).json()
        assert updated["model"] == "Daily Maxi"
        assert updated["category_id"] == "2"

        assert api_client.delete(f"/api/catalog/vehicles/{vehicle_id}").json()["success"] is True
        assert api_client.get(f"/api/catalog/vehicles/{vehicle_id}").status_code == 404

    def test_validation_errors_are_400(self, api_client):
        response = api_client.post("/api/catalog/categories", json={"name": "suv"})
        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]

        response = api_client.post("/api/catalog/print-materials", json={
            "name": "Odd", "calculation_mode": "per metre", "value": 3})
        assert response.status_code == 400

    def test_unknown_ids_are_404(self, api_client):
        assert api_client.delete("/api/catalog/categories/99").status_code == 404
        assert api_client.put("/api/catalog/vehicles/2/extra-options/1", json={"price": 5}).status_code == 404

    def test_null_fields_are_ignored(self, api_client):
        response = api_client.put("/api/catalog/vehicles/1", json={"manufacturer": None})
        assert response.status_code == 200
        assert response.json()["manufacturer"] == "BMW"

        response = api_client.put("/api/catalog/vehicles/1/coverages/1", json={"price": None})
        assert response.status_code == 200
        assert response.json()["price"] == 2500.0

        response = api_client.put("/api/catalog/print-materials/1", json={"name": None})
        assert response.status_code == 200
        assert response.json()["name"] == "Standard Vinyl"

        breakdown = api_client.post("/calculate", json=default_request(print_material_id="1")).json()
        assert "Print cost (Standard Vinyl)" in [line["label"] for line in breakdown["lines"]]

    def test_materials_and_white_print(self, api_client):
        material = api_client.post("/api/catalog/lamination-materials", json={
            "name": "Satin", "calculation_mode": "fixed", "value": 25}).json()
        assert material["calculation_mode"] == "fixed_amount"
        assert len(api_client.get("/api/catalog/lamination-materials").json()) == 4

        settings = api_client.put("/api/catalog/white-print", json={
            "calculation_mode": "fixed_amount", "value": 100}).json()
        assert settings == {"calculation_mode": "fixed_amount", "value": 100.0}

    def test_validate_material_without_saving(self, api_client):
        data = api_client.post("/api/catalog/print-materials/validate", json={
            "name": "Gold", "calculation_mode": "percentage", "value": 150}).json()
        assert data["valid"] is True
        assert data["warnings"]
        assert api_client.get("/api/catalog/stats").json()["print_materials"] == 3

    def test_deleting_category_keeps_vehicles(self, api_client):
        api_client.delete("/api/catalog/categories/1")
        assert api_client.get("/api/catalog/vehicles/1").json()["category_id"] == ""


class TestDataRoutes:
    def test_export(self, api_client):
        response = api_client.get("/api/export/materials")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "Premium Vinyl" in response.text
        assert api_client.get("/api/export/customers").status_code == 404

    def test_import(self, api_client):
        content = "Vehicle ID,Coverage,Price\n2,Rear Doors,400\n2,Side Wrap,1900\n9,Roof,100\n"
        response = api_client.post(
            "/api/import/coverages",
            files={"file": ("coverages.csv", content, "text/csv")},
        )
        assert response.status_code == 200

        data = response.json()
        assert (data["success"], data["updated"]) == (1, 1)
        assert data["errors"] == ["Row 4: no vehicle matches coverage 'Roof'"]

        sprinter = api_client.get("/api/catalog/vehicles/2").json()
        assert {c["name"]: c["price"] for c in sprinter["coverages"]} == {"Side Wrap": 1900.0, "Rear Doors": 400.0}

    def test_import_empty_file(self, api_client):
        response = api_client.post("/api/import/categories", files={"file": ("categories.csv", "", "text/csv")})
        assert response.status_code == 400


def test_non_finite_import_rejected(api_client):
    response = api_client.post(
        "/api/import/coverages",
        files={"file": ("coverages.csv", "Vehicle ID,Coverage,Price\n1,Full Wrap,nan\n", "text/csv")},
    )
    data = response.json()
    assert (data["success"], data["updated"]) == (0, 0)
    assert data["errors"] == ["Row 2: invalid price for coverage 'Full Wrap'"]

    total = api_client.post("/calculate", json=default_request()).json()["total"]
    assert total == pytest.approx(5425)
