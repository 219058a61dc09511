"""
Tests for the import simulation endpoints (in-memory SQLite).
"""

import string

import pytest

from app.api import simulations as simulations_api
from app.models.import_simulation import ImportSimulation


def _create(client, payload):
    r = client.post("/simulations/import", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


# =============================================================================
# TESTS: CRUD
# =============================================================================

class TestCreate:

    def test_creates_with_code_and_item_ids(self, client, simulation_payload):
        body = _create(client, simulation_payload)

        assert body["name"] == "Pedido fornecedor Ningbo"
        assert len(body["code"]) == 8
        assert set(body["code"]) <= set(string.ascii_uppercase + string.digits)
        assert body["items"][0]["id"]
        assert body["configuration"]["freight_currency"] == "LOCAL"

    def test_stores_inputs_only(self, client, simulation_payload):
        body = _create(client, simulation_payload)

        assert "total_with_taxes" not in body["items"][0]
        assert set(body["items"][0]) == {"id", "description", "quantity", "unit_price_foreign", "unit_weight_kg"}

    def test_defaults_when_configuration_omitted(self, client, simulation_payload):
        del simulation_payload["configuration"]
        body = _create(client, simulation_payload)

        assert body["configuration"]["fx_rate"] == 5.20
        assert body["configuration"]["freight_allocation_method"] == "BY_WEIGHT"
        assert body["configuration"]["fees_allocation_method"] == "BY_QUANTITY"

    def test_rejects_blocking_errors(self, client, simulation_payload):
        simulation_payload["items"] = []
        simulation_payload["configuration"]["vat_rate"] = 1.0

        r = client.post("/simulations/import", json=simulation_payload)

        assert r.status_code == 400
        kinds = {(issue["field"], issue["kind"]) for issue in r.json()["detail"]}
        assert ("items", "required") in kinds
        assert ("configuration.vat_rate", "range") in kinds

    def test_warnings_do_not_block(self, client, simulation_payload):
        simulation_payload["configuration"]["fx_rate"] = 15.0
        _create(client, simulation_payload)

    @pytest.mark.parametrize("field", ["duty_rate", "freight_total", "other_fees_total"])
    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf"])
    def test_rejects_non_finite_configuration(self, client, simulation_payload, field, value):
        simulation_payload["configuration"][field] = value

        r = client.post("/simulations/import", json=simulation_payload)

        assert r.status_code == 422
        assert client.get("/simulations/import").json() == []

    def test_rejects_non_finite_item_values(self, client, simulation_payload):
        simulation_payload["items"][0]["unit_weight_kg"] = "NaN"

        r = client.post("/simulations/import", json=simulation_payload)

        assert r.status_code == 422
        assert client.get("/simulations/import").json() == []


class TestReadUpdateDelete:

    def test_get_and_missing(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.get(f"/simulations/import/{created['id']}")
        assert r.status_code == 200
        assert r.json()["code"] == created["code"]

        r = client.get("/simulations/import/9999")
        assert r.status_code == 404

    def test_list_most_recent_first(self, client, simulation_payload):
        first = _create(client, simulation_payload)
        simulation_payload["name"] = "Segundo pedido"
        second = _create(client, simulation_payload)

        ids = [s["id"] for s in client.get("/simulations/import").json()]
        assert ids == [second["id"], first["id"]]

        client.put(f"/simulations/import/{first['id']}", json={"notes": "revisado"})
        ids = [s["id"] for s in client.get("/simulations/import").json()]
        assert ids[0] == first["id"]

    def test_partial_configuration_update_keeps_the_rest(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.put(f"/simulations/import/{created['id']}", json={"configuration": {"fx_rate": 6.0}})

        assert r.status_code == 200
        config = r.json()["configuration"]
        assert config["fx_rate"] == 6.0
        assert config["freight_currency"] == "LOCAL"
        assert config["freight_total"] == 100.0
        assert r.json()["items"] == created["items"]

    def test_item_ids_are_stable_across_updates(self, client, simulation_payload):
        created = _create(client, simulation_payload)
        item = dict(created["items"][0], quantity=20)

        r = client.put(f"/simulations/import/{created['id']}", json={"items": [item]})

        assert r.json()["items"][0]["id"] == created["items"][0]["id"]
        assert r.json()["items"][0]["quantity"] == 20

    def test_update_rejects_blocking_errors(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.put(f"/simulations/import/{created['id']}", json={"items": []})
        assert r.status_code == 400

        r = client.put(f"/simulations/import/{created['id']}", json={"name": ""})
        assert r.status_code == 400

        r = client.get(f"/simulations/import/{created['id']}")
        assert len(r.json()["items"]) == 1
        assert r.json()["name"] == simulation_payload["name"]

    def test_update_rejects_non_finite_numbers(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.put(f"/simulations/import/{created['id']}", json={"configuration": {"duty_rate": "Infinity"}})
        assert r.status_code == 422

        item = dict(created["items"][0], unit_weight_kg="NaN")
        r = client.put(f"/simulations/import/{created['id']}", json={"items": [item]})
        assert r.status_code == 422

        stored = client.get(f"/simulations/import/{created['id']}").json()
        assert stored["configuration"]["duty_rate"] == 0.60
        assert stored["items"] == created["items"]

    def test_update_missing(self, client):
        r = client.put("/simulations/import/9999", json={"notes": "x"})
        assert r.status_code == 404

    def test_delete(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.delete(f"/simulations/import/{created['id']}")
        assert r.status_code == 204

        assert client.get(f"/simulations/import/{created['id']}").status_code == 404
        assert client.delete(f"/simulations/import/{created['id']}").status_code == 404


class TestDuplicate:

    def test_copy_gets_new_code_and_suffix(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.post(f"/simulations/import/{created['id']}/duplicate")

        assert r.status_code == 201
        copy = r.json()
        assert copy["id"] != created["id"]
        assert copy["code"] != created["code"]
        assert copy["name"] == "Pedido fornecedor Ningbo (Cópia)"
        assert copy["configuration"] == created["configuration"]
        assert copy["items"] == created["items"]

    def test_missing(self, client):
        assert client.post("/simulations/import/9999/duplicate").status_code == 404


# =============================================================================
# TESTS: CALCULATION ENDPOINTS
# =============================================================================

class TestResult:

    def test_saved_simulation_is_recomputed(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.get(f"/simulations/import/{created['id']}/result")

        assert r.status_code == 200
        body = r.json()
        item = body["items"][0]
        assert item["id"] == created["items"][0]["id"]
        assert item["product_cost_local"] == pytest.approx(260.0)
        assert item["vat_amount"] == pytest.approx(117.9759036)
        assert body["totals"]["grand_total"] == pytest.approx(693.9759036)
        assert body["issues"] == []
        assert body["can_save"] is True

    def test_missing(self, client):
        assert client.get("/simulations/import/9999/result").status_code == 404


class TestCalculate:

    def test_stateless_calculation(self, client, simulation_payload):
        payload = {
            "configuration": simulation_payload["configuration"],
            "items": simulation_payload["items"],
        }
        r = client.post("/simulations/import/calculate", json=payload)

        assert r.status_code == 200
        body = r.json()
        assert body["items"][0]["unit_cost_inc_tax"] == pytest.approx(69.39759036)
        assert body["totals"]["import_multiplier"] == pytest.approx(693.9759036 / 260.0)
        assert body["can_save"] is True

        # nothing persisted
        assert client.get("/simulations/import").json() == []

    def test_empty_request(self, client):
        r = client.post("/simulations/import/calculate", json={})

        assert r.status_code == 200
        body = r.json()
        assert body["items"] == []
        assert body["totals"]["grand_total"] == 0
        assert body["totals"]["import_multiplier"] == 0
        assert body["can_save"] is False
        assert {i["kind"] for i in body["issues"]} == {"required"}

    def test_issues_annotate_but_do_not_block(self, client, simulation_payload):
        simulation_payload["configuration"]["vat_rate"] = 1.0
        payload = {
            "configuration": simulation_payload["configuration"],
            "items": simulation_payload["items"],
        }
        r = client.post("/simulations/import/calculate", json=payload)

        assert r.status_code == 200
        body = r.json()
        assert body["items"][0]["vat_amount"] == 0
        assert body["can_save"] is False

    def test_rejects_non_finite_numbers(self, client, simulation_payload):
        simulation_payload["configuration"]["other_fees_total"] = "Infinity"
        payload = {
            "configuration": simulation_payload["configuration"],
            "items": simulation_payload["items"],
        }
        r = client.post("/simulations/import/calculate", json=payload)

        assert r.status_code == 422

    def test_repeated_input_is_served_from_cache(self, client, simulation_payload):
        simulations_api.calculation_cache.clear()
        payload = {
            "configuration": simulation_payload["configuration"],
            "items": [dict(simulation_payload["items"][0], id="garrafa")],
        }

        first = client.post("/simulations/import/calculate", json=payload)
        second = client.post("/simulations/import/calculate", json=payload)

        assert first.json() == second.json()
        assert simulations_api.calculation_cache.misses == 1
        assert simulations_api.calculation_cache.hits == 1

        payload["configuration"] = dict(payload["configuration"], fx_rate=6.0)
        third = client.post("/simulations/import/calculate", json=payload)

        assert third.json()["totals"] != first.json()["totals"]
        assert simulations_api.calculation_cache.misses == 2


class TestExportCsv:

    def test_download(self, client, simulation_payload):
        created = _create(client, simulation_payload)

        r = client.get(f"/simulations/import/{created['id']}/export.csv")

        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/csv")
        assert created["code"] in r.headers["content-disposition"]
        assert r.text.splitlines()[0].startswith("Produto;Qtd;")
        assert "Custo Total;693,98" in r.text

    def test_blocked_when_stored_inputs_have_errors(self, client, db, simulation_payload):
        # gravado direto no banco: a API não aceitaria salvar estes dados
        config = dict(simulation_payload["configuration"], vat_rate=1.0)
        simulation = ImportSimulation(code="LEGADO01", name="Importada", configuration=config, items=[])
        db.add(simulation)
        db.commit()

        r = client.get(f"/simulations/import/{simulation.id}/export.csv")

        assert r.status_code == 400
        kinds = {(issue["field"], issue["kind"]) for issue in r.json()["detail"]}
        assert {("items", "required"), ("configuration.vat_rate", "range")} <= kinds

    def test_missing(self, client):
        assert client.get("/simulations/import/9999/export.csv").status_code == 404


class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
