# Overview: Service-layer operations for user role assignments (user management).

"""
Role Assignments

One row per user in user_roles. Rows are written at sign-up and changed or
removed from user management. These changes are not audited.

An owner assignment cannot be removed here; demoting an owner is a role
change, not a removal.
"""

from __future__ import annotations

from typing import Optional

from ..gateway import DataGateway, eq, get_gateway
from ..permissions import ROLES, Role, is_valid_role
from ..records import UserRoleAssignment
from ..validation import ValidationError


ROLE_TABLE = "user_roles"

# Accounts are created through sign-up only
USER_CREATION_MESSAGE = "User creation should be done through the sign-up process"


class RoleError(Exception):
    """Base error for role assignment operations."""
    pass


class RoleNotFoundError(RoleError):
    pass


class OwnerRoleProtectedError(RoleError):
    pass


def _validate_role(role: Optional[str]) -> str:
    if not is_valid_role(role):
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    return role


def fetch_role(gateway: DataGateway, user_id: str) -> Optional[str]:
    """Role stored for user_id, or None. Raises GatewayError on failure."""
    rows = gateway.select(ROLE_TABLE, columns="role", filters=[eq("user_id", user_id)])
    if not rows:
        return None
    return rows[0].get("role")


def list_assignments() -> list[UserRoleAssignment]:
    rows = get_gateway().select(ROLE_TABLE, order_by="created_at", descending=True, embed="users")
    return [UserRoleAssignment.from_row(row) for row in rows]


def assign_role(user_id: str, role: str, *, gateway: Optional[DataGateway] = None) -> UserRoleAssignment:
    """Create the assignment for a new account."""
    role = _validate_role(role)
    gateway = gateway or get_gateway()
    row = gateway.insert(ROLE_TABLE, {"user_id": user_id, "role": role})
    return UserRoleAssignment.from_row(row)


def change_role(user_id: str, role: str) -> UserRoleAssignment:
    role = _validate_role(role)
    updated = get_gateway().update(ROLE_TABLE, {"role": role}, match={"user_id": user_id})
    if not updated:
        raise RoleNotFoundError(f"No role assignment for user {user_id}")
    return UserRoleAssignment.from_row(updated[0])


def remove_assignment(user_id: str) -> None:
    gateway = get_gateway()
    role = fetch_role(gateway, user_id)
    if role is None:
        raise RoleNotFoundError(f"No role assignment for user {user_id}")
    if role == Role.OWNER:
        raise OwnerRoleProtectedError("The owner role assignment cannot be removed")
    gateway.delete(ROLE_TABLE, match={"user_id": user_id})
