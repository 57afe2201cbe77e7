"""Account and session management.

Sign-up creates the user, an empty-tier profile and a verification token,
then emails the verification link. Sessions are opaque access/refresh token
pairs; only their SHA256 digests are stored.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional, Set
from uuid import uuid4

from skillbridge.config.models import AppConfig
from skillbridge.domain.models import (
    AuthSession,
    MembershipStatus,
    MembershipTier,
    Profile,
    Role,
    User,
    VerificationToken,
)
from skillbridge.logging import get_logger
from skillbridge.logging.context import log_context
from skillbridge.notifications import NotificationError, NotificationService, build_verification_url
from skillbridge.persistence import (
    AuthSessionRepository,
    DataIntegrityError,
    PersistenceError,
    ProfileRepository,
    RecordNotFoundError,
    RoleRepository,
    UserRepository,
    VerificationTokenRepository,
    get_session,
)
from skillbridge.utils import (
    generate_token,
    hash_password,
    hash_token,
    utc_now,
    verify_password,
)

from .exceptions import (
    RESEND_NEEDS_EMAIL,
    VERIFICATION_EXPIRED,
    VERIFICATION_INVALID,
    AuthError,
    CredentialValidationError,
    EmailAlreadyRegisteredError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    InvalidSessionError,
)
from .validation import normalize_email, validate_sign_in, validate_sign_up

logger = get_logger(__name__, component="auth")

SIGN_IN_PATH = "/auth"
DASHBOARD_PATH = "/dashboard"


@dataclass
class AuthContext:
    """The signed-in member behind an access token."""

    user: User
    session: AuthSession
    profile: Optional[Profile]
    roles: Set[Role] = field(default_factory=set)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles


@dataclass
class SignUpResult:
    user: User
    verification_sent: bool
    session: Optional[AuthSession] = None


@dataclass
class CallbackResult:
    """Outcome of following an email verification link."""

    status: str  # "success" or "error"
    message: str
    redirect_to: str
    session: Optional[AuthSession] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class AuthService:
    """Sign-up, sign-in, session lifecycle and email verification."""

    def __init__(
        self,
        config: AppConfig,
        notifier: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.notifier = notifier
        self.clock = clock
        self.logger = logger_instance or logger

    @property
    def _auth(self):
        return self.config.auth

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def sign_up(
        self,
        full_name: str,
        email: str,
        password: str,
        confirm_password: str,
        accept_terms: bool,
    ) -> SignUpResult:
        """Register a member.

        Raises:
            CredentialValidationError: If any form field is invalid
            EmailAlreadyRegisteredError: If the email already has an account
        """
        errors = validate_sign_up(
            full_name,
            email,
            password,
            confirm_password,
            accept_terms,
            min_password_length=self._auth.min_password_length,
        )
        if errors:
            raise CredentialValidationError(errors)

        email = normalize_email(email)
        now = self.clock()
        user_id = str(uuid4())
        confirm_now = not self._auth.require_email_confirmation
        token = generate_token()

        try:
            with get_session() as session:
                users = UserRepository(session)
                if users.get_by_email(email) is not None:
                    raise EmailAlreadyRegisteredError()

                user = users.create(user_id, email, hash_password(password), now)
                ProfileRepository(session).create(
                    Profile(
                        id=user_id,
                        email=email,
                        full_name=full_name.strip(),
                        membership_tier=MembershipTier.NONE,
                        membership_status=MembershipStatus.INACTIVE,
                        last_task_reset_date=now.date(),
                        created_at=now,
                        updated_at=now,
                    )
                )
                RoleRepository(session).grant(user_id, Role.USER)

                issued = None
                if confirm_now:
                    user = users.mark_confirmed(user_id, now)
                    issued = self._issue_session(session, user_id, now)
                else:
                    self._store_verification_token(session, user_id, token, now)
        except DataIntegrityError as e:
            raise EmailAlreadyRegisteredError() from e

        with log_context(user_id=user_id):
            self.logger.info(
                "Member signed up",
                extra={"event": "auth.signup.succeeded", "confirmation_required": not confirm_now},
            )
            sent = False if confirm_now else self._send_verification(email, full_name, token)

        return SignUpResult(user=user, verification_sent=sent, session=issued)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a new session.

        Raises:
            CredentialValidationError: If the form is malformed
            InvalidCredentialsError: If the email is unknown or the password is wrong
            EmailNotConfirmedError: If confirmation is required and pending
        """
        errors = validate_sign_in(email, password, self._auth.min_password_length)
        if errors:
            raise CredentialValidationError(errors)

        now = self.clock()
        with get_session() as session:
            credentials = UserRepository(session).get_credentials(normalize_email(email))
            if credentials is None or not verify_password(password, credentials[1]):
                self.logger.info("Sign-in rejected", extra={"event": "auth.signin.failed"})
                raise InvalidCredentialsError()

            user = credentials[0]
            if self._auth.require_email_confirmation and not user.is_confirmed:
                self.logger.info(
                    "Sign-in blocked until email is confirmed",
                    extra={"event": "auth.signin.unconfirmed", "user_id": user.id},
                )
                raise EmailNotConfirmedError()

            issued = self._issue_session(session, user.id, now)

        self.logger.info(
            "Member signed in", extra={"event": "auth.signin.succeeded", "user_id": user.id}
        )
        return issued

    def sign_out(self, access_token: str) -> bool:
        """Revoke a session. Unknown tokens are ignored."""
        with get_session() as session:
            revoked = AuthSessionRepository(session).revoke(hash_token(access_token), self.clock())
        if revoked:
            self.logger.info("Member signed out", extra={"event": "auth.signout"})
        return revoked

    def grant_role(self, email: str, role: Role) -> bool:
        """Assign a role by email (used by the admin CLI).

        Raises:
            RecordNotFoundError: If no account uses the email
        """
        with get_session() as session:
            user = UserRepository(session).get_by_email(normalize_email(email))
            if user is None:
                raise RecordNotFoundError(f"No account registered for {email}")
            granted = RoleRepository(session).grant(user.id, role)
        self.logger.info(
            f"Granted role {role.value}" if granted else f"Role {role.value} already present",
            extra={"event": "auth.role.granted", "user_id": user.id, "role": role.value},
        )
        return granted

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def get_session(self, access_token: Optional[str]) -> Optional[AuthContext]:
        """Resolve an access token; None if unknown, revoked or expired."""
        if not access_token:
            return None

        now = self.clock()
        with get_session() as session:
            auth_session = AuthSessionRepository(session).get_by_access_hash(hash_token(access_token))
            if auth_session is None or auth_session.revoked_at is not None:
                return None
            if auth_session.is_expired(now):
                return None

            user = UserRepository(session).get(auth_session.user_id)
            if user is None:
                return None
            profile = ProfileRepository(session).get(user.id)
            roles = RoleRepository(session).get_roles(user.id)

        return AuthContext(user=user, session=auth_session, profile=profile, roles=roles)

    def refresh_session(self, refresh_token: str) -> AuthSession:
        """Rotate a token pair; the old session is revoked.

        Raises:
            InvalidSessionError: If the refresh token is unknown, revoked or expired
        """
        now = self.clock()
        with get_session() as session:
            repo = AuthSessionRepository(session)
            current = repo.get_by_refresh_hash(hash_token(refresh_token or ""))
            if current is None or current.revoked_at is not None or current.refresh_expires_at <= now:
                raise InvalidSessionError()

            repo.revoke(current.id, now)
            issued = self._issue_session(session, current.user_id, now)

        self.logger.info(
            "Session refreshed", extra={"event": "auth.session.refreshed", "user_id": issued.user_id}
        )
        return issued

    def keep_alive(self) -> int:
        """Extend live sessions that expire within the keep-alive window.

        New expiry is one access TTL from now, capped at the refresh expiry.
        Failures on one session are logged and do not stop the sweep.

        Returns:
            Number of sessions extended
        """
        now = self.clock()
        window = timedelta(seconds=self._auth.keep_alive_window_seconds)
        ttl = timedelta(seconds=self._auth.access_token_ttl_seconds)

        with get_session() as session:
            expiring = AuthSessionRepository(session).list_expiring(now, now + window)

        extended = 0
        for auth_session in expiring:
            new_expiry = min(now + ttl, auth_session.refresh_expires_at)
            if new_expiry <= auth_session.expires_at:
                continue
            try:
                with get_session() as session:
                    AuthSessionRepository(session).extend(auth_session.id, new_expiry)
                extended += 1
            except PersistenceError as e:
                self.logger.warning(
                    f"Failed to extend session: {e}",
                    extra={"event": "auth.keepalive.failed", "user_id": auth_session.user_id},
                )

        self.logger.info(
            f"Keep-alive extended {extended} of {len(expiring)} expiring sessions",
            extra={"event": "auth.keepalive.completed", "extended": extended, "candidates": len(expiring)},
        )
        return extended

    def purge_dead_sessions(self) -> int:
        with get_session() as session:
            purged = AuthSessionRepository(session).purge_dead(self.clock())
        if purged:
            self.logger.info(
                f"Purged {purged} dead sessions", extra={"event": "auth.sessions.purged", "purged": purged}
            )
        return purged

    def _issue_session(self, session, user_id: str, now: datetime) -> AuthSession:
        access_token = generate_token()
        refresh_token = generate_token()
        stored = AuthSessionRepository(session).create(
            access_token_hash=hash_token(access_token),
            refresh_token_hash=hash_token(refresh_token),
            user_id=user_id,
            expires_at=now + timedelta(seconds=self._auth.access_token_ttl_seconds),
            refresh_expires_at=now + timedelta(seconds=self._auth.refresh_token_ttl_seconds),
            created_at=now,
        )
        return stored.model_copy(update={"access_token": access_token, "refresh_token": refresh_token})

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    def handle_callback(
        self,
        token: Optional[str] = None,
        token_type: Optional[str] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> CallbackResult:
        """Complete email verification from the link's query parameters.

        A valid token confirms the email and signs the member in. Following a
        link after the email is already confirmed succeeds and points to the
        sign-in page.
        """
        if error:
            message = error_description or error
            self.logger.info(
                f"Verification callback carried an error: {message}",
                extra={"event": "auth.callback.provider_error"},
            )
            return CallbackResult(status="error", message=_callback_message(message), redirect_to=SIGN_IN_PATH)

        if not token:
            return CallbackResult(
                status="error",
                message="No session found. Redirecting to login...",
                redirect_to=SIGN_IN_PATH,
            )

        token_type = token_type or "signup"
        now = self.clock()

        with get_session() as session:
            tokens = VerificationTokenRepository(session)
            record = tokens.get(hash_token(token))
            if record is None or record.type != token_type:
                return CallbackResult(status="error", message=VERIFICATION_INVALID, redirect_to=SIGN_IN_PATH)

            users = UserRepository(session)
            user = users.get(record.user_id)
            if user is None:
                return CallbackResult(status="error", message=VERIFICATION_INVALID, redirect_to=SIGN_IN_PATH)

            if user.is_confirmed:
                return CallbackResult(
                    status="success",
                    message="Email already confirmed. Redirecting to login...",
                    redirect_to=SIGN_IN_PATH,
                )

            if record.is_consumed or record.is_expired(now):
                return CallbackResult(status="error", message=VERIFICATION_EXPIRED, redirect_to=SIGN_IN_PATH)

            users.mark_confirmed(user.id, now)
            tokens.consume(record.token_hash, now)
            issued = self._issue_session(session, user.id, now)

        self.logger.info("Email verified", extra={"event": "auth.email.verified", "user_id": user.id})
        return CallbackResult(
            status="success",
            message="Successfully authenticated! Redirecting...",
            redirect_to=DASHBOARD_PATH,
            session=issued,
        )

    def resend_verification(self, email: Optional[str]) -> str:
        """Issue a fresh verification link, superseding earlier ones.

        Unknown or already confirmed addresses get the same response, so the
        endpoint cannot be used to probe for accounts.

        Raises:
            AuthError: If no email was given
        """
        if not email or not email.strip():
            raise AuthError(RESEND_NEEDS_EMAIL)

        email = normalize_email(email)
        now = self.clock()
        token = generate_token()

        with get_session() as session:
            user = UserRepository(session).get_by_email(email)
            profile = ProfileRepository(session).get(user.id) if user else None
            should_send = user is not None and not user.is_confirmed
            if should_send:
                tokens = VerificationTokenRepository(session)
                tokens.invalidate_for_user(user.id, now)
                self._store_verification_token(session, user.id, token, now)

        if should_send:
            with log_context(user_id=user.id):
                self._send_verification(email, profile.full_name if profile else None, token)
        else:
            self.logger.info(
                "Verification resend skipped", extra={"event": "auth.verification.resend_skipped"}
            )

        return f"New verification email sent to {email}"

    def _store_verification_token(self, session, user_id: str, token: str, now: datetime) -> None:
        VerificationTokenRepository(session).create(
            VerificationToken(
                token_hash=hash_token(token),
                user_id=user_id,
                type="signup",
                expires_at=now + timedelta(seconds=self._auth.verification_token_ttl_seconds),
                created_at=now,
            )
        )

    def _send_verification(self, email: str, full_name: Optional[str], token: str) -> bool:
        if self.notifier is None:
            self.logger.warning(
                "No notifier configured; verification email not sent",
                extra={"event": "auth.verification.not_sent"},
            )
            return False

        url = build_verification_url(self.config.site_url, token, email)
        try:
            result = self.notifier.send_verification_email(
                email, full_name, url, self._auth.verification_token_ttl_seconds
            )
        except NotificationError as e:
            self.logger.warning(
                f"Verification email failed: {e}", extra={"event": "auth.verification.failed"}
            )
            return False
        return result.status in ("sent", "skipped")


def _callback_message(raw: str) -> str:
    lowered = raw.lower()
    if "expired" in lowered:
        return VERIFICATION_EXPIRED
    if "invalid" in lowered:
        return VERIFICATION_INVALID
    return raw or "Authentication failed"
