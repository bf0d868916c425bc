"""
Role enumeration and the wire-format adapter.

Two schema generations exist for stored roles:

* ``v1``: integer ``roleid`` referencing the ``roles`` lookup table
  (1 = admin, 2 = hr, 3 = employee), sometimes embedded as ``{"rolename": "Admin"}``.
* ``v2``: inline text enum on the profile row (``"admin" | "hr" | "employee"``).

Everything past this module works with :class:`Role` only.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"


class RoleWireFormat(str, enum.Enum):
    V1_NUMERIC = "v1"
    V2_ENUM = "v2"


LEGACY_ROLE_IDS: Mapping[int, Role] = {
    1: Role.ADMIN,
    2: Role.HR,
    3: Role.EMPLOYEE,
}

_ROLE_NAME_ALIASES: Mapping[str, Role] = {
    "admin": Role.ADMIN,
    "administrator": Role.ADMIN,
    "hr": Role.HR,
    "human resources": Role.HR,
    "employee": Role.EMPLOYEE,
}


def detect_wire_format(raw: Any) -> RoleWireFormat | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return RoleWireFormat.V1_NUMERIC
    if isinstance(raw, str):
        return RoleWireFormat.V1_NUMERIC if raw.strip().isdigit() else RoleWireFormat.V2_ENUM
    if isinstance(raw, Mapping):
        return RoleWireFormat.V1_NUMERIC
    return None


def parse_role(raw: Any, wire_format: RoleWireFormat | None = None) -> Role | None:
    """
    Translate a stored/transported role value into :class:`Role`.

    Returns None for anything unrecognized; callers decide the fallback
    (the permission evaluator treats None as the lowest-privilege role).
    """

    if isinstance(raw, Role):
        return raw
    if raw is None:
        return None

    fmt = wire_format or detect_wire_format(raw)
    if fmt is None:
        logger.debug("Unrecognized role representation type=%s", type(raw).__name__)
        return None

    if fmt is RoleWireFormat.V1_NUMERIC:
        if isinstance(raw, Mapping):
            if "roleid" in raw:
                return parse_role(raw["roleid"], RoleWireFormat.V1_NUMERIC)
            return parse_role(raw.get("rolename"), RoleWireFormat.V2_ENUM)
        try:
            return LEGACY_ROLE_IDS.get(int(raw))
        except (TypeError, ValueError):
            return None

    if not isinstance(raw, str):
        return None
    return _ROLE_NAME_ALIASES.get(raw.strip().lower())


def to_wire(role: Role, wire_format: RoleWireFormat = RoleWireFormat.V2_ENUM) -> int | str:
    if wire_format is RoleWireFormat.V1_NUMERIC:
        for role_id, candidate in LEGACY_ROLE_IDS.items():
            if candidate is role:
                return role_id
    return role.value
