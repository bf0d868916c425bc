from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hrdesk.security.roles import Role, parse_role


@dataclass(frozen=True)
class ProfileSnapshot:
    """
    Read-only copy of a profile as seen by a client.

    The role goes through the wire adapter here, so a legacy numeric
    ``roleid`` and the inline enum both arrive as :class:`Role`.
    """

    userid: str
    email: str
    fullname: str
    role: Role | None
    orgid: int
    clientid: int
    departmentid: int | None = None
    branchid: int | None = None
    status: str = "Active"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileSnapshot:
        raw_role = data.get("role", data.get("roleid"))
        return cls(
            userid=str(data["userid"]),
            email=str(data["email"]),
            fullname=str(data.get("fullname") or ""),
            role=parse_role(raw_role),
            orgid=int(data["orgid"]),
            clientid=int(data["clientid"]),
            departmentid=data.get("departmentid"),
            branchid=data.get("branchid"),
            status=str(data.get("status") or "Active"),
        )
