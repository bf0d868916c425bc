"""Tests for employee reads, edits and soft deletes."""
from __future__ import annotations

import pytest

from hrdesk.errors import ForbiddenError, NotFoundError, ValidationError
from hrdesk.security.roles import Role
from hrdesk.services.profiles import ProfileService
from tests.conftest import A_ADMIN, A_EMPLOYEE, A_HR, A_INACTIVE, B_EMPLOYEE


@pytest.fixture
def service_for(scoped_session, caller_for):
    def _service(userid: str) -> ProfileService:
        caller = caller_for(userid)
        return ProfileService(scoped_session(caller.scope), caller)

    return _service


def test_list_is_scoped_and_active_only(service_for):
    names = [p.fullname for p in service_for(A_EMPLOYEE).list_profiles()]
    assert names == ["Alice Admin", "Ed Engineer", "Harry HR"]


def test_list_search(service_for):
    rows = service_for(A_EMPLOYEE).list_profiles(search="harry")
    assert [p.userid for p in rows] == [A_HR]


def test_list_including_inactive_needs_edit_capability(service_for):
    with pytest.raises(ForbiddenError):
        service_for(A_EMPLOYEE).list_profiles(include_inactive=True)

    rows = service_for(A_HR).list_profiles(include_inactive=True)
    assert A_INACTIVE in {p.userid for p in rows}


def test_get_other_tenant_is_not_found(service_for):
    with pytest.raises(NotFoundError):
        service_for(A_ADMIN).get(B_EMPLOYEE)


def test_update_by_hr(service_for, tenants):
    updated = service_for(A_HR).update(
        A_EMPLOYEE, {"fullname": "Edward Engineer", "branchid": tenants.a_branch_id, "managerid": A_HR}
    )
    assert updated.fullname == "Edward Engineer"
    assert updated.branch.branchname == "Downtown"
    assert updated.managerid == A_HR


def test_update_denied_for_employee(service_for):
    with pytest.raises(ForbiddenError):
        service_for(A_EMPLOYEE).update(A_EMPLOYEE, {"fullname": "Me"})


def test_update_rejects_unknown_fields(service_for, tenants):
    with pytest.raises(ValidationError, match="cannot be updated"):
        service_for(A_ADMIN).update(A_EMPLOYEE, {"orgid": tenants.b.org_id})


@pytest.mark.parametrize("status", ["Inactive", "Banana"])
def test_status_is_owned_by_deactivate(service_for, status):
    with pytest.raises(ValidationError, match="cannot be updated"):
        service_for(A_HR).update(A_EMPLOYEE, {"status": status})

    profile = service_for(A_HR).get(A_EMPLOYEE)
    assert (profile.status, profile.isactive) == ("Active", True)


def test_update_rejects_reference_from_other_tenant(service_for, tenants):
    with pytest.raises(ValidationError, match="department"):
        service_for(A_ADMIN).update(A_EMPLOYEE, {"departmentid": tenants.b_department_id})
    with pytest.raises(ValidationError, match="manager"):
        service_for(A_ADMIN).update(A_EMPLOYEE, {"managerid": B_EMPLOYEE})


def test_role_change_needs_manage_roles(service_for):
    with pytest.raises(ForbiddenError):
        service_for(A_HR).update(A_EMPLOYEE, {"role": "hr"})

    promoted = service_for(A_ADMIN).update(A_EMPLOYEE, {"role": 2})
    assert promoted.role is Role.HR


def test_role_change_rejects_unknown_role(service_for):
    with pytest.raises(ValidationError, match="Unknown role"):
        service_for(A_ADMIN).update(A_EMPLOYEE, {"role": "overlord"})


def test_deactivate_by_admin_hides_profile(service_for):
    service_for(A_ADMIN).deactivate(A_EMPLOYEE)

    with pytest.raises(NotFoundError):
        service_for(A_HR).get(A_EMPLOYEE)
    hidden = service_for(A_HR).get(A_EMPLOYEE, include_inactive=True)
    assert hidden.isactive is False
    assert hidden.status == "Inactive"


def test_deactivate_denied_for_hr(service_for):
    with pytest.raises(ForbiddenError):
        service_for(A_HR).deactivate(A_EMPLOYEE)


def test_admin_cannot_deactivate_self(service_for):
    with pytest.raises(ForbiddenError, match="own account"):
        service_for(A_ADMIN).deactivate(A_ADMIN)
