"""
Tenant scoping for every ORM statement.

Query code stays plain:

    db.scalars(select(Attendance).where(Attendance.date == today))

and still only sees rows of the caller's (organization, client) pair because
the session carries ``Session.info["tenant"]``. Sessions used for identity
resolution and provisioning set ``Session.info["system"] = True`` instead.
A session with neither is refused for tenant-owned entities.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, event, inspect
from sqlalchemy.orm import Session, with_loader_criteria

from hrdesk.errors import TenantScopeViolation
from hrdesk.models.attendance import Attendance
from hrdesk.models.people import Profile
from hrdesk.models.tenancy import TenantOwned

logger = logging.getLogger(__name__)

INCLUDE_INACTIVE = "include_inactive"

# Columns that never change through ordinary flows once a row exists.
_IMMUTABLE_COLUMNS: dict[type, tuple[str, ...]] = {
    Attendance: ("orgid", "clientid", "userid"),
}
_DEFAULT_IMMUTABLE = ("orgid", "clientid")


def _touches_tenant_data(execute_state) -> bool:
    return any(issubclass(mapper.class_, TenantOwned) for mapper in execute_state.all_mappers)


@event.listens_for(Session, "do_orm_execute")
def _apply_tenant_filters(execute_state) -> None:
    if execute_state.is_insert:
        return
    if not (execute_state.is_select or execute_state.is_update or execute_state.is_delete):
        return

    session = execute_state.session
    scope = session.info.get("tenant")
    system = bool(session.info.get("system"))

    if scope is None and not system:
        if _touches_tenant_data(execute_state):
            raise TenantScopeViolation("Statement on tenant-owned data without a tenant scope")
        return

    stmt = execute_state.statement
    options = []

    if scope is not None:
        org_id = scope.org_id
        client_id = scope.client_id
        options.append(
            with_loader_criteria(
                TenantOwned,
                lambda cls: and_(cls.orgid == org_id, cls.clientid == client_id),
                include_aliases=True,
            )
        )

    if not execute_state.execution_options.get(INCLUDE_INACTIVE, False):
        options.append(with_loader_criteria(Profile, lambda cls: cls.isactive.is_(True), include_aliases=True))

    if options:
        execute_state.statement = stmt.options(*options)


@event.listens_for(Session, "before_flush")
def _guard_tenant_writes(session: Session, flush_context, instances) -> None:
    scope = session.info.get("tenant")
    system = bool(session.info.get("system"))

    for obj in session.new:
        if not isinstance(obj, TenantOwned):
            continue
        if scope is None:
            if system and obj.orgid is not None and obj.clientid is not None:
                continue
            raise TenantScopeViolation(f"Insert of {type(obj).__name__} without a tenant scope")
        if obj.orgid is None:
            obj.orgid = scope.org_id
        if obj.clientid is None:
            obj.clientid = scope.client_id
        if (obj.orgid, obj.clientid) != (scope.org_id, scope.client_id):
            logger.error(
                "Cross-tenant insert blocked model=%s target=(%s,%s) scope=(%s,%s)",
                type(obj).__name__,
                obj.orgid,
                obj.clientid,
                scope.org_id,
                scope.client_id,
            )
            raise TenantScopeViolation(f"Insert of {type(obj).__name__} outside the caller's tenant scope")

    if system:
        # Provisioning is the administrative path allowed to re-home a profile.
        return

    for obj in session.dirty:
        if not isinstance(obj, TenantOwned):
            continue
        state = inspect(obj)
        for column in _IMMUTABLE_COLUMNS.get(type(obj), _DEFAULT_IMMUTABLE):
            if state.attrs[column].history.has_changes():
                raise TenantScopeViolation(f"{type(obj).__name__}.{column} is immutable")
