"""Dependency injection for FastAPI endpoints"""

import logging
from fastapi import HTTPException, Request
from volume_guard.services.guard import VolumeGuard

logger = logging.getLogger(__name__)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_guard(request: Request) -> VolumeGuard:
    """Provide the worker's runtime context"""
    guard = getattr(request.app.state, "guard", None)
    if guard is None:
        raise HTTPException(status_code=503, detail="Worker not initialized")
    return guard


def verify_gateway(request: Request) -> None:
    """Require the gateway bearer token when one is configured"""
    secret = getattr(request.app.state, "gateway_secret", "")
    if not secret:
        return

    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or token != secret:
        client_host = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected request with missing or invalid token from {client_host}")
        raise HTTPException(status_code=403, detail="Forbidden: invalid or missing token")
