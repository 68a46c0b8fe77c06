"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.repository.booking_repository import BookingRepository
from backend.services.access_service import AccessGateService
from backend.services.auth_service import (
    AuthService,
    InvalidAdminTokenError,
    InvalidTokenError,
    MissingAdminTokenError,
)
from backend.services.availability_service import AvailabilityService
from backend.services.booking_service import BookingService


bearer_scheme = HTTPBearer(auto_error=False)


def _state_service(request: Request, name: str, label: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} is not initialized",
        )
    return service


def get_repository(request: Request) -> BookingRepository:
    return _state_service(request, "repository", "Booking store")


def get_auth_service(request: Request) -> AuthService:
    return _state_service(request, "auth_service", "Auth service")


def get_booking_service(request: Request) -> BookingService:
    return _state_service(request, "booking_service", "Booking service")


def get_availability_service(request: Request) -> AvailabilityService:
    return _state_service(request, "availability_service", "Availability service")


def get_access_service(request: Request) -> AccessGateService:
    return _state_service(request, "access_service", "Access gate")


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> int:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
        )
    try:
        return auth_service.decode_token(credentials.credentials)
    except InvalidTokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(exc),
        ) from exc


async def require_admin(
    x_admin_token: Optional[str] = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    try:
        auth_service.validate_admin_token(x_admin_token)
    except (MissingAdminTokenError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
