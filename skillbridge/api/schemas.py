"""Request and response bodies for the HTTP API.

Domain models are returned directly where their shape is already right;
these cover request payloads and the few composite responses.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from skillbridge.domain.models import AuthSession, Profile, Role, Transaction


class SignUpRequest(BaseModel):
    full_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    accept_terms: bool = False


class SignInRequest(BaseModel):
    email: str = ""
    password: str = ""


class RefreshRequest(BaseModel):
    refresh_token: str


class ResendRequest(BaseModel):
    email: Optional[str] = None


class CheckoutRequest(BaseModel):
    plan: str


class CategoryRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    expires_in: int
    refresh_expires_at: datetime
    user_id: str

    @classmethod
    def from_session(cls, session: AuthSession) -> "SessionResponse":
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_at=session.expires_at,
            expires_in=session.expires_in,
            refresh_expires_at=session.refresh_expires_at,
            user_id=session.user_id,
        )


class SignUpResponse(BaseModel):
    user_id: str
    email: str
    message: str
    verification_sent: bool
    session: Optional[SessionResponse] = None


class UserResponse(BaseModel):
    id: str
    email: str
    email_confirmed: bool


class CurrentSessionResponse(BaseModel):
    user: UserResponse
    profile: Optional[Profile] = None
    roles: List[Role]
    is_admin: bool
    expires_at: datetime


class CallbackResponse(BaseModel):
    status: str
    message: str
    redirect_to: str
    session: Optional[SessionResponse] = None


class MessageResponse(BaseModel):
    message: str


class CheckoutResponse(BaseModel):
    plan: str
    plan_name: str
    amount: float
    currency: str
    payment_link: str
    recipient: str
    membership_expires_at: datetime
    membership_updated: bool
    transaction: Optional[Transaction] = None


class ErrorResponse(BaseModel):
    detail: str
    errors: Optional[Dict[str, str]] = None
