"""
Shared admin key verification.

Used by: scan triggers, scan logs, duplicate review.
"""

import logging
import os
import secrets

from fastapi import Header, HTTPException

from pipeline.config import get_settings

logger = logging.getLogger(__name__)


def _extract_bearer_token(authorization: str | None) -> str:
    """Extract token from Authorization: Bearer <token> header."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authorization header must use Bearer scheme")
    return authorization[7:]  # Remove "Bearer " prefix


def configured_admin_key() -> str:
    """ADMIN_KEY from the environment, else API_ADMIN_KEY from settings."""
    return os.getenv("ADMIN_KEY", "") or get_settings().api.admin_key


def require_admin(
    authorization: str | None = Header(None, description="Bearer token for admin authentication"),
) -> None:
    """
    FastAPI dependency gating admin-only routes.

    401 without a bearer token, 503 when no admin key is configured,
    403 for a wrong key.
    """
    admin_key = _extract_bearer_token(authorization)

    expected = configured_admin_key()
    if not expected:
        logger.warning("ADMIN_KEY not configured - admin endpoints disabled")
        raise HTTPException(status_code=503, detail="Admin access not configured")

    if not secrets.compare_digest(admin_key, expected):
        logger.warning("Invalid admin key attempt")
        raise HTTPException(status_code=403, detail="Invalid admin key")
