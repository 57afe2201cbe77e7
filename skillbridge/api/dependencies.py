"""FastAPI dependencies: service lookup and bearer-token guards."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from skillbridge.auth import AuthContext, AuthService
from skillbridge.auth.exceptions import SESSION_EXPIRED
from skillbridge.config.models import AppConfig
from skillbridge.marketplace import AdminService, JobBoard
from skillbridge.payments import CheckoutService
from skillbridge.realtime import ChangeFeed

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Everything route handlers need, built once per application."""

    config: AppConfig
    auth: AuthService
    board: JobBoard
    admin: AdminService
    checkout: CheckoutService
    feed: ChangeFeed


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    services: Services = Depends(get_services),
) -> AuthContext:
    """Resolve the caller; 401 when the token is missing, unknown, revoked or expired."""
    context = services.auth.get_session(token)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=SESSION_EXPIRED if token else "Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return context


def require_admin(context: AuthContext = Depends(get_current_user)) -> AuthContext:
    if not context.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return context
