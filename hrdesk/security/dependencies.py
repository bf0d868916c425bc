from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from hrdesk.db.session import get_system_db
from hrdesk.models.people import Profile
from hrdesk.security.auth import authenticate, extract_bearer_token, load_profile
from hrdesk.security.config import SecurityConfig
from hrdesk.security.context import CallerContext
from hrdesk.security.decorators import required_capabilities
from hrdesk.security.tokens import SessionTokenValidator

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_token_validator(request: Request) -> SessionTokenValidator:
    validator = getattr(request.app.state, "token_validator", None)
    if validator is None:
        raise RuntimeError("Token validator not configured. Did app startup run?")
    return validator


def get_current_profile(request: Request) -> Profile:
    profile = getattr(request.state, "profile", None)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return profile


def get_caller(request: Request) -> CallerContext:
    caller = getattr(request.state, "caller", None)
    if caller is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return caller


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    validator: SessionTokenValidator = Depends(get_token_validator),
    db: Session = Depends(get_system_db, use_cache=False),
) -> None:
    """
    Global security dependency (configuration-driven).

    Runs after routing, so it can also read `require_capability` metadata
    from the endpoint, and before any route dependency opens a scoped session.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    decorator_capabilities = required_capabilities(request.scope.get("endpoint"))

    auth_required = rule.auth_required or bool(decorator_capabilities)
    if not auth_required:
        return

    token = extract_bearer_token(request, config)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    principal = authenticate(token, validator)
    profile = load_profile(db, principal)
    caller = CallerContext.for_profile(profile)

    required = set(decorator_capabilities)
    if rule.required_capability:
        required.add(rule.required_capability)
    missing = sorted(c for c in required if not caller.can(c))
    if missing:
        logger.info(
            "Capability denied user=%s role=%s path=%s method=%s missing=%s",
            caller.user_id,
            caller.role.value,
            path,
            method,
            missing,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required: {missing}",
        )

    request.state.principal = principal
    request.state.profile = profile
    request.state.caller = caller
