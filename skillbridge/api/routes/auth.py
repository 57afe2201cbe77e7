"""Account and session routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from skillbridge.auth import AuthContext

from ..dependencies import Services, get_bearer_token, get_current_user, get_services
from ..schemas import (
    CallbackResponse,
    CurrentSessionResponse,
    MessageResponse,
    RefreshRequest,
    ResendRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SignUpResponse, status_code=201)
def sign_up(body: SignUpRequest, services: Services = Depends(get_services)):
    result = services.auth.sign_up(
        body.full_name, body.email, body.password, body.confirm_password, body.accept_terms
    )
    if result.session is not None:
        message = "Account created successfully!"
    else:
        message = "Please check your email to verify your account."
    return SignUpResponse(
        user_id=result.user.id,
        email=result.user.email,
        message=message,
        verification_sent=result.verification_sent,
        session=SessionResponse.from_session(result.session) if result.session else None,
    )


@router.post("/signin", response_model=SessionResponse)
def sign_in(body: SignInRequest, services: Services = Depends(get_services)):
    return SessionResponse.from_session(services.auth.sign_in(body.email, body.password))


@router.post("/signout", response_model=MessageResponse)
def sign_out(
    token: Optional[str] = Depends(get_bearer_token),
    services: Services = Depends(get_services),
):
    """Always succeeds; signing out twice is harmless."""
    if token:
        services.auth.sign_out(token)
    return MessageResponse(message="Signed out")


@router.post("/refresh", response_model=SessionResponse)
def refresh(body: RefreshRequest, services: Services = Depends(get_services)):
    return SessionResponse.from_session(services.auth.refresh_session(body.refresh_token))


@router.get("/session", response_model=CurrentSessionResponse)
def current_session(context: AuthContext = Depends(get_current_user)):
    return CurrentSessionResponse(
        user=UserResponse(
            id=context.user.id,
            email=context.user.email,
            email_confirmed=context.user.is_confirmed,
        ),
        profile=context.profile,
        roles=sorted(context.roles, key=lambda role: role.value),
        is_admin=context.is_admin,
        expires_at=context.session.expires_at,
    )


@router.get("/callback", response_model=CallbackResponse)
def verification_callback(
    token: Optional[str] = None,
    token_type: Optional[str] = Query(None, alias="type"),
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    services: Services = Depends(get_services),
):
    """Email verification link target."""
    result = services.auth.handle_callback(token, token_type, error, error_description)
    return CallbackResponse(
        status=result.status,
        message=result.message,
        redirect_to=result.redirect_to,
        session=SessionResponse.from_session(result.session) if result.session else None,
    )


@router.post("/resend", response_model=MessageResponse)
def resend_verification(body: ResendRequest, services: Services = Depends(get_services)):
    return MessageResponse(message=services.auth.resend_verification(body.email))
