"""FastAPI dependency guarding the scheduler-triggered cron endpoints."""

from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from skywatch.config import settings

logger = logging.getLogger("skywatch.security")

bearer_scheme = HTTPBearer(auto_error=False)


def _auth_error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


async def require_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> None:
    """Require ``Authorization: Bearer <CRON_SECRET>`` outside development."""

    if settings.skywatch_env.lower() == "development":
        return

    if not settings.cron_secret:
        logger.error("CRON_SECRET is not configured; rejecting cron request")
        raise _auth_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "cron_secret_misconfigured",
            "Cron secret is not configured",
        )

    if credentials is None or not credentials.credentials.strip():
        raise _auth_error(status.HTTP_401_UNAUTHORIZED, "cron_secret_missing", "Bearer token is required")

    if not hmac.compare_digest(credentials.credentials.strip(), settings.cron_secret):
        raise _auth_error(status.HTTP_401_UNAUTHORIZED, "cron_secret_invalid", "Invalid cron secret")


__all__ = ["require_cron_secret"]
