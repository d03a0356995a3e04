"""
Reporting tests.

Verifies:
- Low-stock list: active products at/below critical level, largest deficit first
- At-risk list: active customers at/over their risk limit, scoped for sales reps
- Inventory and customer reports: date range filtering and summary totals
- A bare end date includes that whole day; inverted ranges are rejected
"""

from datetime import datetime

import pytest

from backoffice.services.customer_service import apply_customer_transaction
from backoffice.services.inventory_service import apply_inventory_transaction
from backoffice.services.reporting_service import (
    ReportError,
    at_risk_customers,
    customer_report,
    inventory_report,
    low_stock_products,
)


def _stock(product, qty, user, **kwargs):
    return apply_inventory_transaction(product.id, "stock_in", qty, actor_id=user.id, **kwargs)


# =============================================================================
# LOW STOCK / AT RISK
# =============================================================================


class TestLowStock:

    def test_exact_set_ordered_by_deficit(self, db_session, manager, make_product):
        healthy = make_product(name="Healthy", critical_stock_level=5)
        _stock(healthy, 20, manager)

        at_level = make_product(name="At level", critical_stock_level=10)
        _stock(at_level, 10, manager)

        short = make_product(name="Short", critical_stock_level=10)
        _stock(short, 4, manager)

        empty = make_product(name="Empty", critical_stock_level=3)

        retired = make_product(name="Retired", critical_stock_level=50, status="inactive")

        rows = low_stock_products()
        assert [r["name"] for r in rows] == ["Short", "Empty", "At level"]
        assert [r["stock_deficit"] for r in rows] == [6, 3, 0]
        assert retired.id not in {r["id"] for r in rows}
        assert healthy.id not in {r["id"] for r in rows}
        assert empty.id in {r["id"] for r in rows}

    def test_endpoint_envelope(self, client, db_session, viewer_headers, make_product):
        make_product(name="Empty", critical_stock_level=1)
        res = client.get('/api/products/low-stock', headers=viewer_headers)
        assert res.status_code == 200
        data = res.get_json()['data']
        assert data['count'] == 1
        assert data['products'][0]['stock_deficit'] == 1


class TestAtRisk:

    def test_ordering_and_threshold(self, db_session, manager, make_customer):
        over = make_customer(name="Over", balance_risk_limit_cents=10000)
        apply_customer_transaction(over.id, "sale", 15000, actor=manager)

        at_limit = make_customer(name="At limit", balance_risk_limit_cents=10000)
        apply_customer_transaction(at_limit.id, "sale", 10000, actor=manager)

        under = make_customer(name="Under", balance_risk_limit_cents=10000)
        apply_customer_transaction(under.id, "sale", 9999, actor=manager)

        rows = at_risk_customers(manager)
        assert [r["name"] for r in rows] == ["Over", "At limit"]
        assert [r["over_limit_amount"] for r in rows] == ["50.00", "0.00"]

    def test_inactive_excluded(self, db_session, manager, make_customer):
        gone = make_customer(name="Gone", balance_risk_limit_cents=100)
        apply_customer_transaction(gone.id, "sale", 500, actor=manager)
        gone.status = "inactive"
        db_session.commit()

        assert at_risk_customers(manager) == []

    def test_sales_rep_sees_only_own(self, db_session, manager, sales_rep, other_rep, make_customer):
        mine = make_customer(name="Mine", sales_rep_id=sales_rep.id, balance_risk_limit_cents=100)
        theirs = make_customer(name="Theirs", sales_rep_id=other_rep.id, balance_risk_limit_cents=100)
        for c in (mine, theirs):
            apply_customer_transaction(c.id, "sale", 500, actor=manager)

        assert [r["name"] for r in at_risk_customers(sales_rep)] == ["Mine"]
        assert {r["name"] for r in at_risk_customers(manager)} == {"Mine", "Theirs"}


# =============================================================================
# RANGE REPORTS
# =============================================================================


class TestInventoryReport:

    def test_summary_totals(self, db_session, manager, make_product):
        product = make_product()
        _stock(product, 100, manager)
        apply_inventory_transaction(product.id, "stock_out", 30, actor_id=manager.id)
        apply_inventory_transaction(product.id, "adjustment", 50, actor_id=manager.id)
        _stock(product, 5, manager)

        report = inventory_report(start=None, end=None)
        assert report["summary"] == {
            "totalTransactions": 4,
            "totalStockIn": 105,
            "totalStockOut": 30,
            "adjustmentCount": 1,
            "netChange": 75,
        }
        assert report["transactions"][0]["product_code"] == product.code

    def test_date_only_end_includes_whole_day(self, db_session, manager, make_product):
        product = make_product()
        _stock(product, 1, manager, transaction_date=datetime(2026, 3, 30, 9, 0))
        _stock(product, 2, manager, transaction_date=datetime(2026, 3, 31, 23, 59, 30))
        _stock(product, 4, manager, transaction_date=datetime(2026, 4, 1, 0, 0))

        report = inventory_report(start="2026-03-31", end="2026-03-31")
        assert [t["quantity"] for t in report["transactions"]] == [2]

        report = inventory_report(start="2026-03-30", end="2026-03-31T12:00:00")
        assert [t["quantity"] for t in report["transactions"]] == [1]

    def test_inverted_range_rejected(self, db_session):
        with pytest.raises(ReportError):
            inventory_report(start="2026-04-02", end="2026-04-01")

    def test_malformed_date_rejected(self, db_session):
        with pytest.raises(ReportError):
            inventory_report(start="last tuesday", end=None)


class TestCustomerReport:

    def test_summary_totals(self, db_session, manager, make_customer):
        customer = make_customer()
        for t, amount in [("sale", 20000), ("payment", 5000), ("credit_note", 2000), ("sale", 150)]:
            apply_customer_transaction(customer.id, t, amount, actor=manager)

        summary = customer_report(manager, start=None, end=None)["summary"]
        assert summary == {
            "totalTransactions": 4,
            "totalSales": "201.50",
            "totalPayments": "50.00",
            "totalCreditNotes": "20.00",
            "netOutstanding": "131.50",
        }

    def test_scoped_for_sales_rep(self, db_session, manager, sales_rep, other_rep, make_customer):
        mine = make_customer(sales_rep_id=sales_rep.id)
        theirs = make_customer(sales_rep_id=other_rep.id)
        apply_customer_transaction(mine.id, "sale", 1000, actor=manager)
        apply_customer_transaction(theirs.id, "sale", 7000, actor=manager)

        report = customer_report(sales_rep, start=None, end=None)
        assert {t["customer_id"] for t in report["transactions"]} == {mine.id}
        assert report["summary"]["totalSales"] == "10.00"


class TestReportEndpoints:

    def test_bad_range_is_400(self, client, db_session, manager_headers):
        res = client.get(
            '/api/reports/inventory?start_date=2026-05-01&end_date=2026-04-01',
            headers=manager_headers,
        )
        assert res.status_code == 400
        assert res.get_json()['success'] is False

    def test_viewer_can_read_reports(self, client, db_session, viewer_headers):
        res = client.get('/api/reports/customers', headers=viewer_headers)
        assert res.status_code == 200
        assert res.get_json()['data']['summary']['netOutstanding'] == "0.00"

    def test_requires_auth(self, client, db_session):
        assert client.get('/api/reports/inventory').status_code == 401
