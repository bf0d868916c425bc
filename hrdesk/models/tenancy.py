from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from hrdesk.db.base import Base


def utcnow() -> datetime:
    # Naive UTC; SQLite drops tzinfo anyway.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Organization(Base):
    __tablename__ = "organizations"

    orgid: Mapped[int] = mapped_column(Integer, primary_key=True)
    orgname: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    contactemail: Mapped[str | None] = mapped_column(String(200), nullable=True)
    createdat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updatedat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    clients: Mapped[list["Client"]] = relationship(back_populates="organization")


class Client(Base):
    __tablename__ = "clients"

    clientid: Mapped[int] = mapped_column(Integer, primary_key=True)
    clientname: Mapped[str] = mapped_column(String(200), nullable=False)
    orgid: Mapped[int] = mapped_column(ForeignKey("organizations.orgid"), nullable=False, index=True)
    createdat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updatedat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    organization: Mapped[Organization] = relationship(back_populates="clients")


class TenantOwned:
    """
    Mixin for rows partitioned by (organization, client).

    Scoping is applied by `hrdesk.db.filters`; query code never filters on
    these columns by hand.
    """

    @declared_attr
    def orgid(cls) -> Mapped[int]:
        return mapped_column(ForeignKey("organizations.orgid"), nullable=False, index=True)

    @declared_attr
    def clientid(cls) -> Mapped[int]:
        return mapped_column(ForeignKey("clients.clientid"), nullable=False, index=True)


class Department(TenantOwned, Base):
    __tablename__ = "departments"

    departmentid: Mapped[int] = mapped_column(Integer, primary_key=True)
    departmentname: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    isactive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    createdat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updatedat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Branch(TenantOwned, Base):
    __tablename__ = "branches"

    branchid: Mapped[int] = mapped_column(Integer, primary_key=True)
    branchname: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    networkiprange: Mapped[str | None] = mapped_column(String(100), nullable=True)
    isactive: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    createdat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updatedat: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


def as_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
