"""
Roles and Role-Gated Navigation

WHY: Three flat roles share one dashboard. Each navigation section lists
the roles allowed to see it; the same lists gate the API sections, so a
hidden view is also a refused request.

DESIGN PRINCIPLES:
- Roles are flat (no inheritance, no per-user overrides)
- Logs and user management are owner-only
- Row-level security in the hosted store remains the real boundary
"""

from __future__ import annotations

from dataclasses import dataclass


# =============================================================================
# ROLES
# =============================================================================

class Role:
    OWNER = "owner"
    ADMIN = "admin"
    ACCOUNTANT = "accountant"


ROLES = (Role.OWNER, Role.ADMIN, Role.ACCOUNTANT)

ALL_ROLES = frozenset(ROLES)
OWNER_ONLY = frozenset({Role.OWNER})


# =============================================================================
# NAVIGATION
# =============================================================================

@dataclass(frozen=True)
class NavItem:
    id: str
    label: str
    roles: frozenset

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label}


# Sidebar order
NAV_ITEMS = (
    NavItem("dashboard", "Dashboard", ALL_ROLES),
    NavItem("buyers", "Buyers", ALL_ROLES),
    NavItem("sellers", "Sellers", ALL_ROLES),
    NavItem("reports", "Reports", ALL_ROLES),
    NavItem("logs", "Logs", OWNER_ONLY),
    NavItem("users", "User Management", OWNER_ONLY),
)

SECTIONS = {item.id: item for item in NAV_ITEMS}


def visible_nav(role: str | None) -> list[NavItem]:
    """Navigation items whose allow-list contains role (unknown role -> none)."""
    return [item for item in NAV_ITEMS if role in item.roles]


def can_view(role: str | None, section: str) -> bool:
    item = SECTIONS.get(section)
    return item is not None and role in item.roles


def is_valid_role(role: str | None) -> bool:
    return role in ALL_ROLES
