from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.db.base import Base
from hrdesk.models.tenancy import Branch, Client, Department, Organization, TenantOwned, utcnow
from hrdesk.security.roles import Role


class RoleRef(Base):
    """Legacy role lookup rows (roleid 1/2/3); reference data only."""

    __tablename__ = "roles"

    roleid: Mapped[int] = mapped_column(Integer, primary_key=True)
    rolename: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    isactive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Profile(TenantOwned, Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email"),)

    # Identity token issued by the hosted auth service (UUID string).
    userid: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    fullname: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=Role.EMPLOYEE,
        nullable=False,
    )

    departmentid: Mapped[int | None] = mapped_column(ForeignKey("departments.departmentid"), nullable=True)
    branchid: Mapped[int | None] = mapped_column(ForeignKey("branches.branchid"), nullable=True)
    managerid: Mapped[str | None] = mapped_column(ForeignKey("users.userid"), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="Active", nullable=False)
    isactive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    createdat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updatedat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    organization: Mapped[Organization] = relationship()
    client: Mapped[Client] = relationship()
    department: Mapped[Department | None] = relationship()
    branch: Mapped[Branch | None] = relationship()
