from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrdesk.identity.session import Principal
from hrdesk.models.people import Profile
from hrdesk.security.config import SecurityConfig
from hrdesk.security.tokens import SessionTokenValidator, TokenValidationError

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request, config: SecurityConfig) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    Returns None when the header is absent; malformed headers are a 400.
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header (auth required) path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.",
        )

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Missing token after '{bearer_prefix}'.",
        )
    return token


def authenticate(token: str, validator: SessionTokenValidator) -> Principal:
    try:
        return validator.validate(token)
    except TokenValidationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc


def load_profile(db: Session, principal: Principal) -> Profile:
    """
    Resolve the caller's profile by identity token (inactive rows are invisible).
    """

    profile = db.execute(
        select(Profile)
        .where(Profile.userid == principal.user_id)
        .options(
            selectinload(Profile.organization),
            selectinload(Profile.client),
            selectinload(Profile.department),
            selectinload(Profile.branch),
        )
    ).scalar_one_or_none()

    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user")

    return profile
