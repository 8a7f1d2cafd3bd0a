"""
Buyer/seller profile and transaction tests.

Verifies:
- remaining_balance = total_amount - paid_amount after creation and every settlement
- Seller totals are weight x price
- Exactly one audit entry per successful mutation, none for failed ones
- A settlement racing another one is refused (409) instead of overwriting it
"""

from decimal import Decimal

import pytest

from conftest import audit_entries
from muttonhub.extensions import db
from muttonhub.gateway import GatewayError, app_gateway
from muttonhub.models import BuyerTransaction, SellerTransaction
from muttonhub.services import transaction_service


def _create_buyer_txn(client, headers, buyer_id, **overrides):
    body = {
        'buyer_id': buyer_id,
        'entry_date': '2024-03-01',
        'number_of_goats': 10,
        'total_amount': 10000,
        'paid_amount': 4000,
        'payment_mode': 'cash',
    }
    body.update(overrides)
    return client.post('/api/buyers/transactions', headers=headers, json=body)


def _settle(client, headers, side, txn_id, amount):
    return client.post(f'/api/{side}/transactions/{txn_id}/settle', headers=headers, json={'amount': amount})


# =============================================================================
# PROFILES
# =============================================================================


class TestProfiles:

    def test_create_and_list(self, client, owner_headers, buyer):
        body = client.get('/api/buyers', headers=owner_headers).get_json()
        assert [b['name'] for b in body['buyers']] == ['Ramesh Traders']
        assert body['buyers'][0]['address'] == 'Market Road'

    @pytest.mark.parametrize("missing", ["name", "phone"])
    def test_name_and_phone_required(self, client, owner_headers, missing):
        payload = {'name': 'X', 'phone': '1'}
        payload.pop(missing)
        response = client.post('/api/sellers', headers=owner_headers, json=payload)
        assert response.status_code == 400
        assert missing in response.get_json()['error']

    def test_search_by_name_or_phone(self, client, owner_headers):
        for name, phone in [('Ramesh', '98765'), ('Suresh', '91234'), ('Mahesh', '99999')]:
            client.post('/api/buyers', headers=owner_headers, json={'name': name, 'phone': phone})

        by_name = client.get('/api/buyers?q=rESH', headers=owner_headers).get_json()['buyers']
        assert len(by_name) == 3
        by_phone = client.get('/api/buyers?q=912', headers=owner_headers).get_json()['buyers']
        assert [b['name'] for b in by_phone] == ['Suresh']

    def test_profiles_are_not_audited(self, client, owner_headers, buyer):
        assert audit_entries() == []

    def test_list_failure_reports_load_error(self, client, owner_headers, monkeypatch):
        gateway = app_gateway()
        real_select = gateway.select

        def failing_select(table, **kwargs):
            if table == 'sellers':
                raise GatewayError("relation does not exist")
            return real_select(table, **kwargs)

        monkeypatch.setattr(gateway, 'select', failing_select)
        response = client.get('/api/sellers', headers=owner_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body['sellers'] == []
        assert body['load_error'] == 'relation does not exist'


# =============================================================================
# CREATION
# =============================================================================


class TestCreateTransaction:

    def test_buyer_transaction_balance(self, client, owner_headers, buyer):
        response = _create_buyer_txn(client, owner_headers, buyer['id'])
        assert response.status_code == 201
        txn = response.get_json()['transaction']
        assert txn['remaining_balance'] == 6000.0
        assert txn['status'] == 'Pending'

    def test_seller_total_is_weight_times_price(self, client, owner_headers, seller):
        response = client.post('/api/sellers/transactions', headers=owner_headers, json={
            'seller_id': seller['id'],
            'entry_date': '2024-03-01',
            'total_weight': 50,
            'price_per_kg': 300,
            'paid_amount': 15000,
            'payment_mode': 'upi',
        })
        assert response.status_code == 201
        txn = response.get_json()['transaction']
        assert txn['total_amount'] == 15000.0
        assert txn['remaining_balance'] == 0.0
        assert txn['status'] == 'Paid'

    def test_defaults(self, client, owner_headers, buyer):
        response = client.post('/api/buyers/transactions', headers=owner_headers, json={
            'buyer_id': buyer['id'],
            'number_of_goats': 3,
            'total_amount': 900,
        })
        assert response.status_code == 201
        txn = response.get_json()['transaction']
        assert txn['paid_amount'] == 0.0
        assert txn['remaining_balance'] == 900.0
        assert txn['payment_mode'] == 'cash'
        assert txn['entry_date'] is not None

    def test_create_writes_one_audit_entry(self, client, owner, owner_headers, buyer):
        _create_buyer_txn(client, owner_headers, buyer['id'])
        entries = audit_entries()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == 'CREATE'
        assert entry.table_name == 'buyer_transactions'
        assert entry.old_values is None
        assert entry.new_values['total_amount'] == 10000.0
        assert entry.user_id == owner[0].id

    def test_unknown_party_rejected(self, client, owner_headers, buyer):
        response = _create_buyer_txn(client, owner_headers, 99999)
        assert response.status_code == 400
        assert BuyerTransaction.query.count() == 0

    def test_non_numeric_party_id_rejected(self, client, owner_headers, buyer):
        response = _create_buyer_txn(client, owner_headers, 'abc')
        assert response.status_code == 400
        assert 'does not match' in response.get_json()['error']
        assert BuyerTransaction.query.count() == 0
        assert audit_entries(action='CREATE', table_name='buyer_transactions') == []

    @pytest.mark.parametrize(
        "field,value",
        [
            ('total_amount', 'lots'),
            ('number_of_goats', 2.5),
            ('payment_mode', 'cheque'),
            ('entry_date', '01/03/2024'),
        ],
    )
    def test_invalid_input_rejected(self, client, owner_headers, buyer, field, value):
        response = _create_buyer_txn(client, owner_headers, buyer['id'], **{field: value})
        assert response.status_code == 400
        assert audit_entries() == []

    def test_audit_failure_does_not_fail_creation(self, client, owner_headers, buyer, monkeypatch, caplog):
        gateway = app_gateway()
        real_insert = gateway.insert

        def insert(table, row):
            if table == 'audit_logs':
                raise GatewayError("audit_logs is read-only")
            return real_insert(table, row)

        monkeypatch.setattr(gateway, 'insert', insert)
        response = _create_buyer_txn(client, owner_headers, buyer['id'])

        assert response.status_code == 201
        assert BuyerTransaction.query.count() == 1
        assert audit_entries() == []
        assert 'Audit write failed' in caplog.text


# =============================================================================
# LISTING
# =============================================================================


class TestListTransactions:

    def test_newest_entry_first_with_party(self, client, owner_headers, buyer):
        for day in ('2024-03-01', '2024-03-05', '2024-03-03'):
            _create_buyer_txn(client, owner_headers, buyer['id'], entry_date=day)

        txns = client.get('/api/buyers/transactions', headers=owner_headers).get_json()['transactions']
        assert [t['entry_date'] for t in txns] == ['2024-03-05', '2024-03-03', '2024-03-01']
        assert txns[0]['buyer']['name'] == 'Ramesh Traders'

    def test_date_range_is_inclusive(self, client, owner_headers, buyer):
        for day in ('2024-02-29', '2024-03-01', '2024-03-31', '2024-04-01'):
            _create_buyer_txn(client, owner_headers, buyer['id'], entry_date=day)

        txns = client.get(
            '/api/buyers/transactions?start=2024-03-01&end=2024-03-31', headers=owner_headers
        ).get_json()['transactions']
        assert sorted(t['entry_date'] for t in txns) == ['2024-03-01', '2024-03-31']

    def test_search_by_party(self, client, owner_headers, buyer):
        other = client.post('/api/buyers', headers=owner_headers, json={'name': 'Other', 'phone': '5555'})
        _create_buyer_txn(client, owner_headers, buyer['id'])
        _create_buyer_txn(client, owner_headers, other.get_json()['profile']['id'])

        txns = client.get('/api/buyers/transactions?q=ramesh', headers=owner_headers).get_json()['transactions']
        assert len(txns) == 1
        assert txns[0]['buyer']['phone'] == '9876543210'


# =============================================================================
# SETTLEMENT
# =============================================================================


class TestSettlement:

    def test_full_settlement(self, client, owner_headers, buyer):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']

        response = _settle(client, owner_headers, 'buyers', txn['id'], 6000)

        assert response.status_code == 200
        settled = response.get_json()['transaction']
        assert settled['paid_amount'] == 10000.0
        assert settled['remaining_balance'] == 0.0
        assert settled['status'] == 'Paid'
        assert settled['buyer']['name'] == 'Ramesh Traders'

    def test_one_update_audit_per_settlement(self, client, owner_headers, buyer):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']
        _settle(client, owner_headers, 'buyers', txn['id'], 6000)

        updates = audit_entries(action='UPDATE')
        assert len(updates) == 1
        assert updates[0].old_values == {'paid_amount': 4000.0, 'remaining_balance': 6000.0}
        assert updates[0].new_values == {'paid_amount': 10000.0, 'remaining_balance': 0.0}

    def test_successive_settlements(self, client, owner_headers, buyer):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']
        for amount in (1000, '1500.50', 499.5):
            assert _settle(client, owner_headers, 'buyers', txn['id'], amount).status_code == 200

        row = db.session.get(BuyerTransaction, txn['id'])
        db.session.refresh(row)
        assert Decimal(str(row.paid_amount)) == Decimal('7000')
        assert Decimal(str(row.remaining_balance)) == Decimal('3000')
        assert len(audit_entries(action='UPDATE')) == 3

    def test_seller_settlement(self, client, accountant_headers, seller):
        txn = client.post('/api/sellers/transactions', headers=accountant_headers, json={
            'seller_id': seller['id'],
            'total_weight': '12.5',
            'price_per_kg': 640,
        }).get_json()['transaction']
        assert txn['total_amount'] == 8000.0

        settled = _settle(client, accountant_headers, 'sellers', txn['id'], 3000).get_json()['transaction']
        assert settled['remaining_balance'] == 5000.0
        assert settled['status'] == 'Pending'
        assert SellerTransaction.query.count() == 1

    def test_overpayment_is_accepted(self, client, owner_headers, buyer):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']
        settled = _settle(client, owner_headers, 'buyers', txn['id'], 7000).get_json()['transaction']
        assert settled['remaining_balance'] == -1000.0
        assert settled['status'] == 'Paid'

    @pytest.mark.parametrize("amount", ['abc', None, '', True])
    def test_non_numeric_amount_rejected(self, client, owner_headers, buyer, amount):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']
        response = _settle(client, owner_headers, 'buyers', txn['id'], amount)
        assert response.status_code == 400
        assert audit_entries(action='UPDATE') == []

    def test_unknown_transaction(self, client, owner_headers, buyer):
        response = _settle(client, owner_headers, 'buyers', 424242, 100)
        assert response.status_code == 404
        assert audit_entries(action='UPDATE') == []

    @pytest.mark.parametrize("side", ["buyers", "sellers"])
    def test_non_numeric_transaction_id(self, client, owner_headers, side):
        response = _settle(client, owner_headers, side, 'abc', 100)
        assert response.status_code == 404
        assert audit_entries(action='UPDATE') == []

    def test_concurrent_settlement_is_refused(self, client, owner_headers, buyer, monkeypatch):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']
        real_get = transaction_service.get_transaction

        def read_then_race(side, transaction_id):
            record = real_get(side, transaction_id)
            # Another user settles 1000 after our read
            app_gateway().update(
                side.transaction_table,
                {'paid_amount': Decimal('5000'), 'remaining_balance': Decimal('5000')},
                match={'id': record.id},
            )
            return record

        monkeypatch.setattr(transaction_service, 'get_transaction', read_then_race)
        response = _settle(client, owner_headers, 'buyers', txn['id'], 6000)

        assert response.status_code == 409
        row = db.session.get(BuyerTransaction, txn['id'])
        db.session.refresh(row)
        assert Decimal(str(row.paid_amount)) == Decimal('5000')
        assert audit_entries(action='UPDATE') == []

    def test_write_failure_leaves_no_audit(self, client, owner_headers, buyer, monkeypatch):
        txn = _create_buyer_txn(client, owner_headers, buyer['id']).get_json()['transaction']

        def failing_update(table, values, *, match):
            raise GatewayError("new row violates row-level security policy")

        monkeypatch.setattr(app_gateway(), 'update', failing_update)
        response = _settle(client, owner_headers, 'buyers', txn['id'], 100)

        assert response.status_code == 502
        assert response.get_json()['error'] == 'Failed to update payment'
        assert audit_entries(action='UPDATE') == []
