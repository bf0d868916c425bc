from hrdesk.models.attendance import ATTENDANCE_STATUSES, Attendance
from hrdesk.models.people import Profile, RoleRef
from hrdesk.models.tenancy import Branch, Client, Department, Organization, TenantOwned

__all__ = [
    "ATTENDANCE_STATUSES",
    "Attendance",
    "Branch",
    "Client",
    "Department",
    "Organization",
    "Profile",
    "RoleRef",
    "TenantOwned",
]
