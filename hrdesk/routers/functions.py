from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from hrdesk.errors import AppError
from hrdesk.schemas.people import ProfileOut
from hrdesk.services.provisioning import UserProvisioner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["functions"])


def _provisioner(request: Request) -> UserProvisioner:
    provisioner = getattr(request.app.state, "provisioner", None)
    if provisioner is None:
        raise RuntimeError("User provisioner not configured. Did app startup run?")
    return provisioner


@router.post("/create-user")
async def create_user(request: Request) -> JSONResponse:
    """
    Create a login identity plus its profile row.

    Errors are returned as `{"error": ...}` (400/401/403/500), not `{"detail": ...}`.
    """

    try:
        body = await request.json()
    except ValueError:
        body = None

    raw_auth = request.headers.get("Authorization") or ""
    token = raw_auth[len("Bearer ") :].strip() if raw_auth.startswith("Bearer ") else None

    try:
        result = await run_in_threadpool(_provisioner(request).create_user, token, body)
    except AppError as exc:
        return JSONResponse({"error": exc.message}, status_code=exc.http_status)
    except Exception as exc:
        logger.exception("Unexpected failure in create-user")
        return JSONResponse({"error": str(exc)}, status_code=500)

    return JSONResponse(
        {
            "success": True,
            "authUser": {"id": result.auth_user_id, "email": result.auth_user_email},
            "dbUser": ProfileOut.model_validate(result.profile).model_dump(mode="json"),
            "message": "User created successfully in both auth and database",
        },
        status_code=200,
    )
