# Overview: Pytest coverage for the sales ledger (stock effects, order links, rollback).

from decimal import Decimal

import pytest
from conftest import kilo_line, sack_line
from stockgrid.constants import TierKind
from stockgrid.models import Order, Sale
from stockgrid.services import sales_service
from stockgrid.services.errors import (
    NotFoundError,
    TransactionTimeoutError,
    ValidationError,
)
from stockgrid.services.stock_counter_service import TierRef, current_stock


def _sack(product):
    return TierRef(TierKind.SACK, product.sack_prices[0].id)


def _kilo(product):
    return TierRef(TierKind.PER_KILO, product.per_kilo_price.id)


def _payload(*items, **header):
    payload = {"payment_method": "CASH", "total_amount": "6510", "items": list(items)}
    payload.update(header)
    return payload


class TestCreateSale:

    def test_decrements_each_tier(self, db_session, cashier, rice):
        sale = sales_service.create_sale(
            cashier.id, _payload(sack_line(rice, 5), kilo_line(rice, "2.5"))
        )

        assert current_stock(_sack(rice)) == 95
        assert Decimal(current_stock(_kilo(rice))) == Decimal("47.5")
        assert [item["quantity"] for item in sale.to_dict()["items"]] == ["5", "2.5"]

    def test_price_captured_from_tier(self, db_session, cashier, rice):
        sale = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 1)))
        assert sale.items[0].price == Decimal("1250")

    def test_special_price_from_minimum_qty(self, db_session, cashier, rice):
        below = sales_service.create_sale(
            cashier.id, _payload(sack_line(rice, 4, is_special_price=True))
        )
        at = sales_service.create_sale(
            cashier.id, _payload(sack_line(rice, 5, is_special_price=True))
        )
        assert below.items[0].price == Decimal("1250")
        assert at.items[0].price == Decimal("1200")
        assert at.items[0].is_special_price is True

    def test_empty_items_rejected(self, db_session, cashier):
        with pytest.raises(ValidationError):
            sales_service.create_sale(cashier.id, _payload())

    def test_unknown_payment_method(self, db_session, cashier, rice):
        with pytest.raises(ValidationError):
            sales_service.create_sale(cashier.id, _payload(sack_line(rice, 1), payment_method="IOU"))

    def test_failed_item_rolls_back_whole_sale(self, db_session, cashier, rice):
        bad = {"product_id": rice.id, "sack_price": {"id": 99999, "quantity": 1}}
        with pytest.raises(NotFoundError):
            sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5), bad))

        assert current_stock(_sack(rice)) == 100
        assert db_session.query(Sale).count() == 0

        # Resubmitting after the failure applies exactly once
        sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5)))
        assert current_stock(_sack(rice)) == 95

    def test_weight_finer_than_a_gram_rejected(self, db_session, cashier, rice):
        with pytest.raises(ValidationError):
            sales_service.create_sale(cashier.id, _payload(kilo_line(rice, "0.0004")))

        assert Decimal(current_stock(_kilo(rice))) == Decimal("50")
        assert db_session.query(Sale).count() == 0

    def test_gram_precision_round_trip_nets_zero(self, db_session, cashier, rice):
        sales = [
            sales_service.create_sale(cashier.id, _payload(kilo_line(rice, "0.001")))
            for _ in range(5)
        ]
        assert Decimal(current_stock(_kilo(rice))) == Decimal("49.995")

        for sale in sales:
            sales_service.delete_sale(sale.id)

        assert Decimal(current_stock(_kilo(rice))) == Decimal("50")

    def test_tier_of_other_product_rejected(self, db_session, cashier, rice, foreign_product):
        line = {"product_id": rice.id, "sack_price": {"id": foreign_product.sack_prices[0].id, "quantity": 1}}
        with pytest.raises(ValidationError):
            sales_service.create_sale(cashier.id, _payload(line))
        assert current_stock(_sack(foreign_product)) == 40

    def test_timeout_rolls_back(self, app, db_session, cashier, rice, monkeypatch):
        monkeypatch.setitem(app.config, "LEDGER_TX_TIMEOUT_SECONDS", -1)
        with pytest.raises(TransactionTimeoutError):
            sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5)))

        assert current_stock(_sack(rice)) == 100
        assert db_session.query(Sale).count() == 0


class TestEditDeleteVoid:

    def test_delete_restores_stock(self, db_session, cashier, rice):
        sale = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5)))
        assert current_stock(_sack(rice)) == 95

        sales_service.delete_sale(sale.id)

        assert current_stock(_sack(rice)) == 100
        assert db_session.get(Sale, sale.id) is None

    def test_identical_edit_nets_zero(self, db_session, cashier, rice):
        payload = _payload(sack_line(rice, 5), kilo_line(rice, "3"))
        sale = sales_service.create_sale(cashier.id, payload)

        sales_service.edit_sale(sale.id, payload)

        assert current_stock(_sack(rice)) == 95
        assert Decimal(current_stock(_kilo(rice))) == Decimal("47")
        assert len(sales_service.get_sale(sale.id).items) == 2

    def test_edit_replaces_items(self, db_session, cashier, rice):
        sale = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5)))

        sales_service.edit_sale(sale.id, _payload(sack_line(rice, 2), total_amount="2500"))

        assert current_stock(_sack(rice)) == 98
        edited = sales_service.get_sale(sale.id)
        assert edited.total_amount == Decimal("2500")
        assert [item.quantity for item in edited.items] == [Decimal("2")]

    def test_failed_edit_keeps_original(self, db_session, cashier, rice):
        sale = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5)))
        bad = {"product_id": rice.id, "sack_price": {"id": 99999, "quantity": 1}}

        with pytest.raises(NotFoundError):
            sales_service.edit_sale(sale.id, _payload(sack_line(rice, 1), bad))

        assert current_stock(_sack(rice)) == 95
        assert len(sales_service.get_sale(sale.id).items) == 1

    def test_void_restores_stock_once(self, db_session, cashier, rice):
        sale = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5)))

        voided = sales_service.void_sale(sale.id)
        assert voided.is_void is True
        assert voided.voided_at is not None
        assert current_stock(_sack(rice)) == 100

        with pytest.raises(ValidationError):
            sales_service.void_sale(sale.id)
        with pytest.raises(ValidationError):
            sales_service.edit_sale(sale.id, _payload(sack_line(rice, 1)))

        # Deleting a voided sale must not restore a second time
        sales_service.delete_sale(sale.id)
        assert current_stock(_sack(rice)) == 100

    def test_list_excludes_void_on_request(self, db_session, cashier, rice):
        kept = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 1)))
        voided = sales_service.create_sale(cashier.id, _payload(sack_line(rice, 1)))
        sales_service.void_sale(voided.id)

        all_ids = {s.id for s in sales_service.list_sales_by_cashier(cashier.id)}
        live_ids = {s.id for s in sales_service.list_sales_by_cashier(cashier.id, include_void=False)}
        assert all_ids == {kept.id, voided.id}
        assert live_ids == {kept.id}

    def test_missing_sale(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.delete_sale(99999)


class TestOrderLink:

    def test_sale_completes_order(self, db_session, cashier, rice, pending_order):
        sale = sales_service.create_sale(
            cashier.id, _payload(sack_line(rice, 1), order_id=pending_order.id)
        )
        order = db_session.get(Order, pending_order.id)
        assert order.status == "COMPLETED"
        assert order.sale_id == sale.id

    def test_delete_reverts_order(self, db_session, cashier, rice, pending_order):
        sale = sales_service.create_sale(
            cashier.id, _payload(sack_line(rice, 1), order_id=pending_order.id)
        )
        sales_service.delete_sale(sale.id)

        order = db_session.get(Order, pending_order.id)
        assert order.status == "PENDING"
        assert order.sale_id is None

    def test_edit_relinks_order(self, db_session, cashier, rice, pending_order):
        other = Order(cashier_id=cashier.id, status="PENDING")
        db_session.add(other)
        db_session.commit()

        sale = sales_service.create_sale(
            cashier.id, _payload(sack_line(rice, 1), order_id=pending_order.id)
        )
        sales_service.edit_sale(sale.id, _payload(sack_line(rice, 1), order_id=other.id))

        first = db_session.get(Order, pending_order.id)
        second = db_session.get(Order, other.id)
        assert (first.status, first.sale_id) == ("PENDING", None)
        assert (second.status, second.sale_id) == ("COMPLETED", sale.id)

    def test_unknown_order_rolls_back_sale(self, db_session, cashier, rice):
        with pytest.raises(NotFoundError):
            sales_service.create_sale(cashier.id, _payload(sack_line(rice, 5), order_id=99999))
        assert current_stock(_sack(rice)) == 100
        assert db_session.query(Sale).count() == 0
