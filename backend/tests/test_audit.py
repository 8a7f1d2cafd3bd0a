"""
Audit logger tests.

Verifies:
- Writes are best-effort and never raise
- Entries carry the acting user and JSON-safe snapshots
- The log view filters by action, table and an inclusive date range
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from flask import g

from conftest import audit_entries
from muttonhub.extensions import db
from muttonhub.gateway import GatewayError, app_gateway
from muttonhub.models import AuditLog
from muttonhub.services import audit_service
from muttonhub.time_utils import today


def _entry(action, table_name, created_at, user_id=None):
    db.session.add(AuditLog(
        action=action,
        table_name=table_name,
        new_values={'paid_amount': 1},
        user_id=user_id,
        created_at=created_at,
    ))
    db.session.commit()


# =============================================================================
# WRITES
# =============================================================================


class TestLogAction:

    def test_snapshot_is_json_safe(self):
        snap = audit_service.snapshot({
            'paid_amount': Decimal('10.50'),
            'entry_date': date(2024, 3, 1),
            'payment_mode': 'cash',
        })
        assert snap == {'paid_amount': 10.5, 'entry_date': '2024-03-01', 'payment_mode': 'cash'}
        assert audit_service.snapshot(None) is None

    def test_records_acting_user(self, owner):
        identity, token = owner
        g.access_token = token

        assert audit_service.log_action('UPDATE', 'buyer_transactions', {'paid_amount': 1}, {'paid_amount': 2})

        entry = audit_entries()[0]
        assert entry.user_id == identity.id
        assert entry.created_at is not None

    def test_without_session_user_is_null(self):
        assert audit_service.log_action('CREATE', 'seller_transactions', None, {'total_amount': 5})
        assert audit_entries()[0].user_id is None

    def test_insert_failure_is_swallowed(self, monkeypatch):
        def failing_insert(table, row):
            raise GatewayError("permission denied for table audit_logs")

        monkeypatch.setattr(app_gateway(), 'insert', failing_insert)
        assert audit_service.log_action('CREATE', 'buyer_transactions', None, {'x': 1}) is False
        assert audit_entries() == []

    def test_identity_failure_is_swallowed(self, monkeypatch):
        def failing_get_user(token):
            raise GatewayError("auth service unavailable")

        monkeypatch.setattr(app_gateway(), 'get_user', failing_get_user)
        g.access_token = 'some-token'
        assert audit_service.log_action('CREATE', 'buyer_transactions', None, {'x': 1}) is False


# =============================================================================
# LOG VIEW
# =============================================================================


class TestListLogs:

    def test_newest_first_with_role(self, client, owner, owner_headers):
        identity = owner[0]
        _entry('CREATE', 'buyer_transactions', datetime(2024, 3, 1, 9), identity.id)
        _entry('UPDATE', 'buyer_transactions', datetime(2024, 3, 2, 9), identity.id)

        logs = client.get('/api/logs', headers=owner_headers).get_json()['logs']
        assert [entry['action'] for entry in logs] == ['UPDATE', 'CREATE']
        assert logs[0]['user_role'] == 'owner'

    def test_filters(self, client, owner_headers):
        _entry('CREATE', 'buyer_transactions', datetime(2024, 3, 1, 9))
        _entry('UPDATE', 'buyer_transactions', datetime(2024, 3, 1, 10))
        _entry('UPDATE', 'seller_transactions', datetime(2024, 3, 1, 11))

        logs = client.get('/api/logs?action=update&table=seller_transactions', headers=owner_headers).get_json()['logs']
        assert len(logs) == 1
        assert logs[0]['table_name'] == 'seller_transactions'

    def test_date_to_includes_whole_day(self, client, owner_headers):
        _entry('CREATE', 'buyer_transactions', datetime(2024, 3, 1, 0, 0))
        _entry('CREATE', 'buyer_transactions', datetime(2024, 3, 1, 23, 59, 30))
        _entry('CREATE', 'buyer_transactions', datetime(2024, 3, 2, 0, 0, 1))

        logs = client.get(
            '/api/logs?date_from=2024-03-01&date_to=2024-03-01', headers=owner_headers
        ).get_json()['logs']
        assert len(logs) == 2

    def test_unknown_action_rejected(self, client, owner_headers):
        assert client.get('/api/logs?action=PATCH', headers=owner_headers).status_code == 400

    def test_removed_user_shows_without_role(self, client, owner_headers):
        _entry('CREATE', 'buyer_transactions', datetime(2024, 3, 1, 9), 'deleted-user')
        logs = client.get('/api/logs', headers=owner_headers).get_json()['logs']
        assert logs[0]['user_id'] == 'deleted-user'
        assert logs[0]['user_role'] is None

    def test_export(self, client, owner_headers):
        _entry('UPDATE', 'buyer_transactions', datetime.now() - timedelta(minutes=1))
        response = client.get('/api/logs/export', headers=owner_headers)
        assert response.status_code == 200
        assert f'audit-logs-{today().isoformat()}.xlsx' in response.headers['Content-Disposition']
