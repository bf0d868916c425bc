from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrdesk.db.filters import INCLUDE_INACTIVE
from hrdesk.errors import ForbiddenError, NotFoundError, ValidationError
from hrdesk.models.people import Profile
from hrdesk.models.tenancy import Branch, Department
from hrdesk.security.context import CallerContext
from hrdesk.security.roles import parse_role

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"fullname", "departmentid", "branchid", "managerid", "role"})

_DETAILS = (
    selectinload(Profile.organization),
    selectinload(Profile.client),
    selectinload(Profile.department),
    selectinload(Profile.branch),
)


class ProfileService:
    """Employee/profile reads and writes inside the caller's tenant scope."""

    def __init__(self, db: Session, caller: CallerContext):
        self._db = db
        self._caller = caller

    def get(self, userid: str, *, include_inactive: bool = False) -> Profile:
        if include_inactive:
            self._caller.require("can_edit_employee")
        stmt = select(Profile).where(Profile.userid == userid).options(*_DETAILS)
        profile = self._db.execute(
            stmt.execution_options(**{INCLUDE_INACTIVE: include_inactive})
        ).scalar_one_or_none()
        if profile is None:
            # Out-of-scope and inactive rows look the same as missing ones.
            raise NotFoundError("Employee not found")
        return profile

    def list_profiles(self, *, include_inactive: bool = False, search: str | None = None) -> list[Profile]:
        """
        Active employees ordered by name; `include_inactive` is the administrative listing.
        """

        if include_inactive:
            self._caller.require("can_edit_employee")

        stmt = select(Profile).options(*_DETAILS).order_by(Profile.fullname)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(Profile.fullname.ilike(pattern) | Profile.email.ilike(pattern))
        stmt = stmt.execution_options(**{INCLUDE_INACTIVE: include_inactive})
        return list(self._db.scalars(stmt).all())

    def update(self, userid: str, changes: dict[str, Any]) -> Profile:
        self._caller.require("can_edit_employee")

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {sorted(unknown)}")
        if "role" in changes:
            self._caller.require("can_manage_roles")
            role = parse_role(changes["role"])
            if role is None:
                raise ValidationError("Unknown role")
            changes = {**changes, "role": role}

        profile = self.get(userid)
        self._check_references(changes)

        for field, value in changes.items():
            setattr(profile, field, value)
        self._db.commit()
        self._db.refresh(profile)
        logger.info("Profile updated userid=%s by=%s fields=%s", userid, self._caller.user_id, sorted(changes))
        return self.get(userid)

    def deactivate(self, userid: str) -> None:
        """Soft delete: the row stays, every normal read stops seeing it."""

        self._caller.require("can_delete_employee")
        if userid == self._caller.user_id:
            raise ForbiddenError("You cannot deactivate your own account")

        profile = self.get(userid)
        profile.isactive = False
        profile.status = "Inactive"
        self._db.commit()
        logger.info("Profile deactivated userid=%s by=%s", userid, self._caller.user_id)

    def _check_references(self, changes: dict[str, Any]) -> None:
        # Scoped lookups: a department/branch/manager from another tenant is "not found".
        if changes.get("departmentid") is not None:
            if self._db.scalars(
                select(Department).where(Department.departmentid == changes["departmentid"])
            ).first() is None:
                raise ValidationError("Unknown department")
        if changes.get("branchid") is not None:
            if self._db.scalars(select(Branch).where(Branch.branchid == changes["branchid"])).first() is None:
                raise ValidationError("Unknown branch")
        if changes.get("managerid") is not None:
            if self._db.scalars(select(Profile).where(Profile.userid == changes["managerid"])).first() is None:
                raise ValidationError("Unknown manager")
