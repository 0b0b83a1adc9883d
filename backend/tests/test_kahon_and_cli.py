# Overview: Pytest coverage for the storage box (Kahon) views and the CLI commands.

import json
from decimal import Decimal

import pytest
from stockgrid.models import Cashier, Product
from stockgrid.services import kahon_service, transfer_service
from stockgrid.services.errors import NotFoundError, ValidationError


def _transfer(cashier, product, quantity):
    return transfer_service.transfer_product(cashier.id, {
        "product": {"id": product.id, "sack_price": {"id": product.sack_prices[0].id, "quantity": quantity}},
    })


class TestKahon:

    def test_first_read_creates_kahon_and_sheet(self, db_session, cashier):
        data = kahon_service.get_kahon_by_cashier(cashier.id)
        assert data["name"] == "Kahon"
        assert data["items"] == []
        assert len(data["sheets"]) == 1
        assert data["sheets"][0]["kind"] == "KAHON"

        again = kahon_service.get_kahon_by_cashier(cashier.id)
        assert again["id"] == data["id"]
        assert again["sheets"][0]["id"] == data["sheets"][0]["id"]

    def test_unknown_cashier(self, db_session):
        with pytest.raises(NotFoundError):
            kahon_service.get_kahon_by_cashier(99999)

    def test_edit_items_changes_metadata_only(self, db_session, cashier, rice):
        item = _transfer(cashier, rice, 3)

        edited = kahon_service.edit_kahon_items(item.kahon_id, [{"id": item.id, "name": "Rice 25KG (damaged)", "quantity": 2}])

        assert edited[0].name == "Rice 25KG (damaged)"
        assert edited[0].quantity == Decimal("2")
        assert rice.sack_prices[0].stock == 97

    def test_edit_rejects_foreign_item(self, db_session, cashier, other_cashier, rice, foreign_product):
        mine = _transfer(cashier, rice, 1)
        theirs = _transfer(other_cashier, foreign_product, 1)

        with pytest.raises(NotFoundError):
            kahon_service.edit_kahon_items(mine.kahon_id, [{"id": theirs.id, "name": "x"}])
        with pytest.raises(ValidationError):
            kahon_service.edit_kahon_items(mine.kahon_id, [])

    def test_kahons_by_user(self, db_session, cashier, other_cashier, rice):
        _transfer(cashier, rice, 2)

        kahons = kahon_service.get_kahons_by_user(7)

        # other_cashier never touched a kahon, so only one exists
        assert [k["cashier_id"] for k in kahons] == [cashier.id]
        assert kahons[0]["items"][0]["name"] == "Rice 25KG"


class TestCli:

    def test_resolve_day(self, app):
        result = app.test_cli_runner().invoke(args=["stockgrid", "resolve-day", "--date", "2025-09-10"])
        assert result.exit_code == 0
        assert json.loads(result.output)["start"] == "2025-09-09T16:00:00.000Z"

    def test_resolve_day_invalid(self, app):
        result = app.test_cli_runner().invoke(args=["stockgrid", "resolve-day", "--date", "nope"])
        assert result.exit_code != 0

    def test_seed_demo_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        first = runner.invoke(args=["stockgrid", "seed-demo", "--cashier-name", "Seed Counter"])
        second = runner.invoke(args=["stockgrid", "seed-demo", "--cashier-name", "Seed Counter"])

        assert first.exit_code == 0
        assert second.exit_code == 0
        assert "SKIP Product exists: Dinorado" in second.output
        assert db_session.query(Cashier).filter_by(name="Seed Counter").count() == 1
        assert db_session.query(Product).count() == 4

    def test_cashiers_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        runner.invoke(args=["cashiers", "create", "--name", "Front Counter", "--user-id", "3"])
        result = runner.invoke(args=["cashiers", "list"])
        assert "Front Counter" in result.output
        assert "user_id=3" in result.output

    def test_stock_stats(self, app, db_session, cashier):
        result = app.test_cli_runner().invoke(
            args=["stockgrid", "stock-stats", "--cashier-id", str(cashier.id), "--date", "2025-09-10"]
        )
        assert result.exit_code == 0
        assert "[REGULAR]" in result.output
