"""
Permission evaluator.

``evaluate(role)`` is the single source of truth for what a role may do.
It is pure and total: unknown roles (and a missing profile) get the
employee set, and it never raises.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .roles import Role, parse_role


@dataclass(frozen=True)
class PermissionSet:
    can_view_dashboard: bool
    can_view_employees: bool
    can_create_employee: bool
    can_edit_employee: bool
    can_delete_employee: bool
    can_view_attendance: bool
    can_edit_attendance: bool
    can_view_reports: bool
    can_manage_settings: bool
    can_manage_roles: bool

    @property
    def can_manage_organization(self) -> bool:
        return self.can_manage_roles

    def allows(self, capability: str) -> bool:
        """Look up a capability by name; unknown names are denied."""
        if capability == "can_manage_organization":
            return self.can_manage_organization
        if capability not in CAPABILITIES:
            return False
        return bool(getattr(self, capability))

    def granted(self) -> frozenset[str]:
        return frozenset(name for name, value in asdict(self).items() if value)

    def to_dict(self) -> dict[str, bool]:
        data = asdict(self)
        data["can_manage_organization"] = self.can_manage_organization
        return data


CAPABILITIES: tuple[str, ...] = tuple(PermissionSet.__dataclass_fields__)

# Capabilities that only admin holds; every other capability is monotone admin >= hr >= employee.
ADMIN_EXCLUSIVE: frozenset[str] = frozenset({"can_delete_employee", "can_manage_settings", "can_manage_roles"})

_EMPLOYEE = PermissionSet(
    can_view_dashboard=True,
    can_view_employees=True,
    can_create_employee=False,
    can_edit_employee=False,
    can_delete_employee=False,
    can_view_attendance=True,
    can_edit_attendance=False,
    can_view_reports=False,
    can_manage_settings=False,
    can_manage_roles=False,
)

_HR = PermissionSet(
    can_view_dashboard=True,
    can_view_employees=True,
    can_create_employee=True,
    can_edit_employee=True,
    can_delete_employee=False,
    can_view_attendance=True,
    can_edit_attendance=True,
    can_view_reports=True,
    can_manage_settings=False,
    can_manage_roles=False,
)

_ADMIN = PermissionSet(**{name: True for name in CAPABILITIES})

_MATRIX: dict[Role, PermissionSet] = {
    Role.ADMIN: _ADMIN,
    Role.HR: _HR,
    Role.EMPLOYEE: _EMPLOYEE,
}


def evaluate(role: Any) -> PermissionSet:
    """Permissions for a role in any wire format; anything unrecognised gets the employee set."""
    parsed = parse_role(role)
    if parsed is None:
        return _EMPLOYEE
    return _MATRIX.get(parsed, _EMPLOYEE)


def can_create_employee(role: Any) -> bool:
    return evaluate(role).can_create_employee


def can_edit_attendance(role: Any) -> bool:
    return evaluate(role).can_edit_attendance


def can_delete_employee(role: Any) -> bool:
    return evaluate(role).can_delete_employee


def is_admin(role: Any) -> bool:
    return evaluate(role) == _MATRIX[Role.ADMIN]


def is_hr(role: Any) -> bool:
    return evaluate(role) == _MATRIX[Role.HR]


def is_employee(role: Any) -> bool:
    # Unknown roles land on the employee row of the table.
    return evaluate(role) == _MATRIX[Role.EMPLOYEE]


# Signed-out callers: nothing at all.
NO_PERMISSIONS = PermissionSet(**{name: False for name in CAPABILITIES})
