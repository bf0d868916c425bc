"""
Privileged user creation.

Sequence (all or nothing from the caller's point of view):

1. validate the request body;
2. resolve the caller from their access token and require a stored
   admin or hr role;
3. create the login identity and stamp ``app_metadata.role``;
4. upsert the profile row keyed by the new identity id, inside the
   caller's tenant scope;
5. if step 4 fails, delete the identity again. If *that* fails the
   orphan needs manual cleanup and is logged at CRITICAL.

Any error after step 3 (including unexpected ones) triggers step 5.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hrdesk.errors import AppError, AuthError, ForbiddenError, ValidationError
from hrdesk.identity.admin import AuthAdminClient, AuthAdminError
from hrdesk.models.people import Profile
from hrdesk.models.tenancy import Branch, Department
from hrdesk.security.context import CallerContext, TenantScope
from hrdesk.security.permissions import evaluate
from hrdesk.security.roles import Role, parse_role

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("email", "password", "fullname", "role", "orgid", "clientid")


class ProvisioningError(AppError):
    """A step after authorization failed; reported as 400 with the underlying message."""

    def __init__(self, message: str):
        super().__init__(message, http_status=400)


@dataclass(frozen=True)
class CreateUserRequest:
    email: str
    password: str
    fullname: str
    role: Role
    orgid: int
    clientid: int
    departmentid: int | None = None
    branchid: int | None = None

    @classmethod
    def from_body(cls, body: Any) -> CreateUserRequest:
        if not isinstance(body, dict) or any(not body.get(name) for name in REQUIRED_FIELDS):
            raise ValidationError("Missing required fields")

        role = parse_role(body["role"])
        if role is None:
            raise ValidationError(f"Unknown role: {body['role']}")
        try:
            return cls(
                email=str(body["email"]).strip().lower(),
                password=str(body["password"]),
                fullname=str(body["fullname"]).strip(),
                role=role,
                orgid=int(str(body["orgid"])),
                clientid=int(str(body["clientid"])),
                departmentid=int(str(body["departmentid"])) if body.get("departmentid") else None,
                branchid=int(str(body["branchid"])) if body.get("branchid") else None,
            )
        except ValueError as exc:
            raise ValidationError("orgid, clientid, departmentid and branchid must be integers") from exc

    @property
    def scope(self) -> TenantScope:
        return TenantScope(org_id=self.orgid, client_id=self.clientid)


@dataclass(frozen=True)
class CreateUserResult:
    auth_user_id: str
    auth_user_email: str | None
    profile: Profile


class UserProvisioner:
    def __init__(self, session_factory: sessionmaker, admin: AuthAdminClient):
        self._session_factory = session_factory
        self._admin = admin

    def create_user(self, access_token: str | None, body: Any) -> CreateUserResult:
        request = CreateUserRequest.from_body(body)
        caller = self._authorize(access_token, request)

        try:
            identity = self._admin.create_user(request.email, request.password, full_name=request.fullname)
        except AuthAdminError as exc:
            raise ProvisioningError(exc.message or "Failed to create auth user") from exc

        try:
            self._admin.update_app_metadata(identity.id, {"role": request.role.value})
            profile = self._upsert_profile(identity.id, request)
        except Exception as exc:
            # Whatever went wrong, the identity must not outlive a missing profile.
            logger.warning(
                "Provisioning failed after identity creation id=%s error=%s; rolling back",
                identity.id,
                type(exc).__name__,
            )
            self._compensate(identity.id)
            if isinstance(exc, (AuthAdminError, ValidationError)):
                raise ProvisioningError(exc.message) from exc
            if isinstance(exc, SQLAlchemyError):
                raise ProvisioningError(str(getattr(exc, "orig", None) or exc)) from exc
            raise

        logger.info(
            "User provisioned id=%s role=%s org=%s client=%s by=%s",
            identity.id,
            request.role.value,
            request.orgid,
            request.clientid,
            caller.user_id,
        )
        return CreateUserResult(auth_user_id=identity.id, auth_user_email=identity.email, profile=profile)

    def _authorize(self, access_token: str | None, request: CreateUserRequest) -> CallerContext:
        if not access_token:
            raise AuthError("Unauthorized")
        try:
            identity = self._admin.get_user(access_token)
        except AuthAdminError as exc:
            raise AuthError("Unauthorized") from exc
        if identity is None:
            raise AuthError("Unauthorized")

        db = self._session_factory()
        db.info["system"] = True
        try:
            row = db.scalars(select(Profile).where(Profile.userid == identity.id)).first()
            caller = CallerContext.for_profile(row) if row is not None else None
        finally:
            db.close()

        if caller is None or not caller.can("can_create_employee"):
            logger.info("Create-user forbidden caller=%s", identity.id)
            raise ForbiddenError("Forbidden")
        if caller.scope != request.scope:
            logger.info("Create-user outside caller scope caller=%s", identity.id)
            raise ForbiddenError("Forbidden")
        # Nobody hands out more than they hold.
        if not caller.permissions.granted() >= evaluate(request.role).granted():
            raise ForbiddenError("Forbidden")
        return caller

    def _upsert_profile(self, identity_id: str, request: CreateUserRequest) -> Profile:
        db: Session = self._session_factory()
        db.info["tenant"] = request.scope
        try:
            if request.departmentid is not None and db.scalars(
                select(Department).where(Department.departmentid == request.departmentid)
            ).first() is None:
                raise ValidationError("Unknown department")
            if request.branchid is not None and db.scalars(
                select(Branch).where(Branch.branchid == request.branchid)
            ).first() is None:
                raise ValidationError("Unknown branch")

            profile = db.merge(
                Profile(
                    userid=identity_id,
                    email=request.email,
                    fullname=request.fullname,
                    role=request.role,
                    orgid=request.orgid,
                    clientid=request.clientid,
                    departmentid=request.departmentid,
                    branchid=request.branchid,
                    status="Active",
                    isactive=True,
                )
            )
            db.commit()
            db.refresh(profile)
            db.expunge(profile)
            return profile
        except SQLAlchemyError:
            db.rollback()
            raise
        finally:
            db.close()

    def _compensate(self, identity_id: str) -> None:
        try:
            self._admin.delete_user(identity_id)
        except AuthAdminError:
            logger.critical(
                "Orphaned login identity id=%s: profile creation failed and the identity could not be deleted; "
                "remove it manually",
                identity_id,
                exc_info=True,
            )
