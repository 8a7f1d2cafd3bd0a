"""
Role-gated navigation tests.

Verifies:
- Each role sees exactly its allowed sections, in sidebar order
- Logs and user management are owner-only, in the API as well as the menu
- Unauthenticated requests return 401
"""

import pytest

from muttonhub.permissions import NAV_ITEMS, can_view, visible_nav


def _ids(items):
    return [item.id for item in items]


# =============================================================================
# NAVIGATION FILTER
# =============================================================================


class TestVisibleNav:

    def test_owner_sees_everything(self):
        assert _ids(visible_nav("owner")) == [item.id for item in NAV_ITEMS]

    @pytest.mark.parametrize("role", ["admin", "accountant"])
    def test_non_owner_loses_logs_and_users(self, role):
        assert _ids(visible_nav(role)) == ["dashboard", "buyers", "sellers", "reports"]

    @pytest.mark.parametrize("role", [None, "", "superuser"])
    def test_unknown_role_sees_nothing(self, role):
        assert visible_nav(role) == []

    def test_labels(self):
        labels = {item.id: item.label for item in NAV_ITEMS}
        assert labels["users"] == "User Management"
        assert labels["logs"] == "Logs"

    def test_can_view_unknown_section(self):
        assert can_view("owner", "settings") is False


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/dashboard"),
            ("GET", "/api/buyers"),
            ("POST", "/api/buyers/transactions"),
            ("GET", "/api/sellers/transactions"),
            ("GET", "/api/reports"),
            ("GET", "/api/logs"),
            ("GET", "/api/users"),
            ("GET", "/api/auth/session"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        response = client.open(path, method=method)
        assert response.status_code == 401

    def test_bogus_token_rejected(self, client):
        response = client.get('/api/dashboard', headers={'Authorization': 'Bearer not-a-token'})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid or expired token'


# =============================================================================
# SECTION GATES
# =============================================================================


class TestSectionGates:

    @pytest.mark.parametrize("path", ["/api/logs", "/api/users", "/api/logs/export"])
    def test_accountant_denied_owner_sections(self, client, accountant_headers, path):
        response = client.get(path, headers=accountant_headers)
        assert response.status_code == 403
        body = response.get_json()
        assert body['error'] == 'Permission denied'
        assert body['role'] == 'accountant'

    @pytest.mark.parametrize("path", ["/api/logs", "/api/users"])
    def test_admin_denied_owner_sections(self, client, admin_headers, path):
        assert client.get(path, headers=admin_headers).status_code == 403

    @pytest.mark.parametrize("path", ["/api/logs", "/api/users"])
    def test_owner_allowed(self, client, owner_headers, path):
        assert client.get(path, headers=owner_headers).status_code == 200

    @pytest.mark.parametrize("path", ["/api/dashboard", "/api/buyers", "/api/sellers", "/api/reports"])
    def test_accountant_allowed_shared_sections(self, client, accountant_headers, path):
        assert client.get(path, headers=accountant_headers).status_code == 200

    def test_dashboard_lists_visible_navigation(self, client, admin_headers):
        body = client.get('/api/dashboard', headers=admin_headers).get_json()
        assert body['role'] == 'admin'
        assert [item['id'] for item in body['navigation']] == ["dashboard", "buyers", "sellers", "reports"]
