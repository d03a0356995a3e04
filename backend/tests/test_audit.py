"""
Audit trail tests.

Verifies:
- Every business change appends exactly one entry after the commit
- Audit failures are logged and never undo the change
- The thread-pool writer persists entries once flushed
- /api/audit-logs is admin-only and filterable
"""

import logging

from sqlalchemy.exc import OperationalError

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import AuditLogEntry, InventoryTransaction, Product
from backoffice.services import audit_service
from backoffice.services.inventory_service import apply_inventory_transaction
from backoffice.services.products_service import create_product, delete_product, update_product


class TestRecorder:

    def test_snapshot_shapes(self):
        assert audit_service.snapshot(new={"a": 1}) == {"data": {"a": 1}}
        assert audit_service.snapshot(old={"a": 1}, new={"a": 2}) == {"old": {"a": 1}, "new": {"a": 2}}

    def test_product_lifecycle_entries(self, db_session, manager):
        product = create_product({"name": "Bolt", "unit_cost": "1.25"}, actor_id=manager.id, ip_address="127.0.0.1")
        update_product(product.id, {"name": "Hex Bolt"}, actor_id=manager.id)
        delete_product(product.id, actor_id=manager.id)

        entries = AuditLogEntry.query.order_by(AuditLogEntry.id).all()
        assert [e.action for e in entries] == ["CREATE", "UPDATE", "DELETE"]
        assert {e.entity_type for e in entries} == {"product"}
        assert {e.entity_id for e in entries} == {product.id}

        update_changes = entries[1].to_dict()["changes"]
        assert update_changes["old"]["name"] == "Bolt"
        assert update_changes["new"]["name"] == "Hex Bolt"
        assert entries[2].to_dict()["changes"]["new"]["status"] == "inactive"

    def test_failed_write_is_swallowed_and_logged(self, db_session, manager, make_product, monkeypatch, caplog):
        product = make_product()

        def broken_write(**kwargs):
            raise OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))

        monkeypatch.setattr(audit_service, "_write_entry", broken_write)

        with caplog.at_level(logging.ERROR):
            result = apply_inventory_transaction(product.id, "stock_in", 4, actor_id=manager.id)

        assert result.new_value == 4
        db_session.refresh(product)
        assert product.current_stock == 4
        assert InventoryTransaction.query.count() == 1
        assert AuditLogEntry.query.count() == 0
        assert "Audit write failed" in caplog.text


class TestAsyncWriter:

    def test_flush_waits_for_pool(self, tmp_path):
        async_app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'audit.db'}",
            'AUDIT_ASYNC': True,
        })
        try:
            with async_app.app_context():
                db.create_all()
                for i in range(5):
                    audit_service.record(None, audit_service.ACTION_CREATE, "product", i, {"data": {"n": i}})
                audit_service.flush(timeout=10)

                entity_ids = sorted(e.entity_id for e in AuditLogEntry.query.all())
                assert entity_ids == [0, 1, 2, 3, 4]
                db.session.remove()
        finally:
            audit_service.shutdown()


class TestAuditLogApi:

    def test_requires_admin(self, client, manager_headers, viewer_headers):
        assert client.get('/api/audit-logs', headers=manager_headers).status_code == 403
        assert client.get('/api/audit-logs', headers=viewer_headers).status_code == 403

    def test_lists_newest_first_with_filters(self, client, db_session, admin, admin_headers, make_product):
        product = make_product()
        apply_inventory_transaction(product.id, "stock_in", 3, actor_id=admin.id)
        apply_inventory_transaction(product.id, "stock_out", 1, actor_id=admin.id)
        create_product({"name": "Nut"}, actor_id=admin.id)

        res = client.get('/api/audit-logs?entity_type=inventory_transaction', headers=admin_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body['success'] is True
        items = body['data']['items']
        assert [i['action'] for i in items] == ["STOCK_ADJUSTMENT", "STOCK_ADJUSTMENT"]
        assert items[0]['entity_id'] > items[1]['entity_id']
        assert body['data']['pagination']['total'] == 2

        res = client.get('/api/audit-logs?action=CREATE&limit=1', headers=admin_headers)
        data = res.get_json()['data']
        assert len(data['items']) == 1
        assert data['items'][0]['entity_type'] == "product"
        assert data['pagination']['limit'] == 1
