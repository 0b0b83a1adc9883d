# Overview: Pytest coverage for the JSON API surface (identity header, status codes, error shape).

from conftest import kilo_line, sack_line
from stockgrid.models import SackPrice


def _headers(cashier):
    return {"X-Cashier-Id": str(cashier.id)}


class TestIdentity:

    def test_missing_cashier_header(self, client, db_session):
        response = client.get("/api/sales/")
        assert response.status_code == 401
        assert response.get_json()["error"] == "Cashier identity required"

    def test_non_integer_cashier_header(self, client, db_session):
        response = client.get("/api/sales/", headers={"X-Cashier-Id": "abc"})
        assert response.status_code == 400


class TestSystem:

    def test_health(self, client, db_session):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["checks"]["database"]["status"] == "healthy"

    def test_business_day(self, client, db_session):
        response = client.get("/api/day?date=2025-09-10")
        assert response.get_json() == {
            "date": "2025-09-10",
            "start": "2025-09-09T16:00:00.000Z",
            "end": "2025-09-10T15:59:59.999Z",
        }

    def test_business_day_invalid(self, client, db_session):
        response = client.get("/api/day?date=tomorrow")
        assert response.status_code == 400
        body = response.get_json()
        assert set(body) == {"error", "details"}
        assert body["details"] == {"date": "tomorrow"}


class TestSalesApi:

    def test_create_and_delete(self, client, db_session, cashier, rice):
        sack_id = rice.sack_prices[0].id
        response = client.post("/api/sales/", headers=_headers(cashier), json={
            "payment_method": "CASH",
            "total_amount": "1250",
            "items": [sack_line(rice, 1)],
        })
        assert response.status_code == 201
        sale = response.get_json()["sale"]
        assert sale["items"][0]["sack_type"] == "TWENTY_FIVE_KG"
        assert db_session.get(SackPrice, sack_id).stock == 99

        response = client.delete(f"/api/sales/{sale['id']}")
        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(SackPrice, sack_id).stock == 100

    def test_unknown_sale(self, client, db_session):
        response = client.get("/api/sales/99999")
        assert response.status_code == 404
        assert response.get_json()["details"] == {"sale_id": 99999}

    def test_validation_error_shape(self, client, db_session, cashier):
        response = client.post("/api/sales/", headers=_headers(cashier), json={
            "payment_method": "CASH",
            "total_amount": "0",
            "items": [],
        })
        assert response.status_code == 400
        assert response.get_json()["error"] == "Sale must have at least one item"

    def test_cash_summary(self, client, db_session, cashier, rice):
        client.post("/api/sales/", headers=_headers(cashier), json={
            "payment_method": "CASH",
            "total_amount": "52",
            "items": [kilo_line(rice, "1")],
        })
        body = client.get("/api/sales/cash", headers=_headers(cashier)).get_json()
        assert body["count"] == 1
        assert body["total_amount"] == "52"


class TestDeliveriesAndTransfersApi:

    def test_foreign_product_is_forbidden(self, client, db_session, cashier, foreign_product):
        response = client.post("/api/deliveries/", headers=_headers(cashier), json={
            "driver_name": "Mang Tonyo",
            "items": [sack_line(foreign_product, 1)],
        })
        assert response.status_code == 403
        assert response.get_json()["details"]["product_id"] == foreign_product.id

    def test_delete_requires_owning_cashier(self, client, db_session, cashier, other_cashier, rice):
        response = client.post("/api/deliveries/", headers=_headers(cashier), json={
            "driver_name": "Mang Tonyo",
            "items": [sack_line(rice, 10)],
        })
        delivery_id = response.get_json()["delivery"]["id"]

        assert client.delete(f"/api/deliveries/{delivery_id}").status_code == 401
        assert client.delete(f"/api/deliveries/{delivery_id}", headers=_headers(other_cashier)).status_code == 403

        response = client.delete(f"/api/deliveries/{delivery_id}", headers=_headers(cashier))
        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(SackPrice, rice.sack_prices[0].id).stock == 100

    def test_kahon_transfer_response(self, client, db_session, cashier, rice):
        response = client.post("/api/transfers/", headers=_headers(cashier), json={
            "product": {"id": rice.id, "sack_price": {"id": rice.sack_prices[0].id, "quantity": 2}},
        })
        assert response.status_code == 201
        assert response.get_json()["kahon_item"]["name"] == "Rice 25KG"

        kahon = client.get("/api/kahon/", headers=_headers(cashier)).get_json()
        assert [item["name"] for item in kahon["items"]] == ["Rice 25KG"]
        assert kahon["sheets"][0]["rows"][0]["cells"][0]["value"] == "2"

    def test_standalone_transfer_response(self, client, db_session, cashier, rice):
        response = client.post("/api/transfers/", headers=_headers(cashier), json={
            "type": "OWN_CONSUMPTION",
            "product": {"id": rice.id, "per_kilo_price": {"id": rice.per_kilo_price.id, "quantity": "0.5"}},
        })
        assert response.status_code == 201
        assert response.get_json()["transfer"]["name"] == "Rice 0.5KG"


class TestSheetsApi:

    def test_rows_and_positions(self, client, db_session, cashier):
        inventory = client.get("/api/inventory/", headers=_headers(cashier)).get_json()
        sheet_id = inventory["expenses_sheet_id"]

        response = client.post(f"/api/sheets/{sheet_id}/calculation-rows", json={"rows": [0, 1]})
        assert response.status_code == 201
        first, second = [row["id"] for row in response.get_json()["rows"]]

        mappings = [{"row_id": first, "new_row_index": 1}, {"row_id": second, "new_row_index": 1}]
        report = client.post(f"/api/sheets/{sheet_id}/row-positions/validate", json={"mappings": mappings})
        assert report.status_code == 200
        assert report.get_json()["valid"] is False

        response = client.put(f"/api/sheets/{sheet_id}/row-positions", json={"mappings": mappings})
        assert response.status_code == 400

        mappings[1]["new_row_index"] = 0
        response = client.put(f"/api/sheets/{sheet_id}/row-positions", json={"mappings": mappings})
        assert response.status_code == 200

        sheet = client.get(f"/api/sheets/{sheet_id}").get_json()["sheet"]
        assert [row["id"] for row in sheet["rows"]] == [second, first]

    def test_create_sheet_without_owner(self, client, db_session):
        response = client.post("/api/sheets/", json={"kind": "EXPENSES", "name": "Loose"})
        assert response.status_code == 400
        assert response.get_json()["details"] == {"owner_id": None}

    def test_inventory_item_endpoint(self, client, db_session, cashier):
        response = client.post("/api/inventory/items", headers=_headers(cashier), json={
            "name": "Sako",
            "quantity": "12",
            "kind": "EXPENSES",
        })
        assert response.status_code == 201
        cells = response.get_json()["row"]["cells"]
        assert [cells[0]["value"], cells[1]["value"]] == ["12", "Sako"]

    def test_range_reads(self, client, db_session, cashier):
        client.post("/api/inventory/items", headers=_headers(cashier), json={"name": "Gasolina", "kind": "EXPENSES"})
        today = client.get("/api/day").get_json()["date"]

        body = client.get(
            f"/api/inventory/expenses?start_date={today}&end_date={today}", headers=_headers(cashier)
        ).get_json()
        assert len(body["rows"]) == 1
        assert body["day"]["date"] == today

        body = client.get(f"/api/inventory/user/{cashier.user_id}?kind=EXPENSES&start_date={today}").get_json()
        assert body["count"] == 1
        assert body["items"][0]["cashier_id"] == cashier.id

        response = client.get("/api/kahon/sheet?start_date=2025-09-12&end_date=2025-09-10", headers=_headers(cashier))
        assert response.status_code == 400


class TestReportsApi:

    def test_stock_statistics_shape(self, client, db_session, cashier):
        response = client.get("/api/reports/stock-statistics?date=2025-09-10", headers=_headers(cashier))
        assert response.status_code == 200
        body = response.get_json()
        assert set(body["categories"]) == {"regular", "asin", "plastic"}
        assert body["day"]["date"] == "2025-09-10"
