"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from skillbridge.domain.models import MembershipTier

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _duration_seconds(value: str, min_seconds: int, max_seconds: int, label: str) -> int:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds=min_seconds, max_seconds=max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return seconds


class PlanConfig(BaseModel):
    """A purchasable membership plan."""

    name: str = Field(..., min_length=1, description="Display name used in payment notes")
    price: float = Field(..., gt=0, description="Monthly price in the payment currency")
    tier: MembershipTier = Field(..., description="Tier granted by the plan")
    duration_months: int = Field(1, ge=1, le=12, description="Months of access per payment")

    @field_validator("tier")
    @classmethod
    def tier_must_be_paid(cls, v: MembershipTier) -> MembershipTier:
        if v == MembershipTier.NONE:
            raise ValueError("A plan cannot grant the 'none' tier")
        return v


def _default_plans() -> Dict[str, PlanConfig]:
    return {
        "regular": PlanConfig(name="Regular", price=15, tier=MembershipTier.REGULAR),
        "pro": PlanConfig(name="Pro", price=25, tier=MembershipTier.PRO),
        "vip": PlanConfig(name="VIP", price=49, tier=MembershipTier.VIP),
    }


def _default_daily_limits() -> Dict[MembershipTier, Optional[int]]:
    return {
        MembershipTier.NONE: 0,
        MembershipTier.REGULAR: 4,
        MembershipTier.PRO: 6,
        MembershipTier.VIP: None,
    }


class MembershipConfig(BaseModel):
    """Tier caps and the plan catalogue.

    A daily limit of ``null`` means unlimited submissions.
    """

    daily_limits: Dict[MembershipTier, Optional[int]] = Field(default_factory=_default_daily_limits)
    plans: Dict[str, PlanConfig] = Field(default_factory=_default_plans)

    @field_validator("daily_limits")
    @classmethod
    def fill_missing_tiers(cls, v: Dict[MembershipTier, Optional[int]]) -> Dict[MembershipTier, Optional[int]]:
        limits = _default_daily_limits()
        for tier, limit in v.items():
            if limit is not None and limit < 0:
                raise ValueError(f"Daily limit for tier '{tier.value}' cannot be negative")
            limits[tier] = limit
        return limits

    @field_validator("plans")
    @classmethod
    def normalize_plan_keys(cls, v: Dict[str, PlanConfig]) -> Dict[str, PlanConfig]:
        if not v:
            raise ValueError("At least one membership plan must be configured")
        return {key.strip().lower(): plan for key, plan in v.items()}


class AuthConfig(BaseModel):
    """Session lifetimes and the keep-alive sweep."""

    access_token_ttl: str = Field("1h", description="Access token lifetime")
    refresh_token_ttl: str = Field("8h", description="Refresh token lifetime")
    verification_token_ttl: str = Field("24h", description="Email verification link lifetime")
    keep_alive_interval: str = Field("2m", description="How often sessions near expiry are renewed")
    keep_alive_window: str = Field("5m", description="Renew sessions expiring within this window")
    require_email_confirmation: bool = Field(True, description="Block sign-in until email is verified")
    min_password_length: int = Field(6, ge=6, le=128)

    # Computed fields
    access_token_ttl_seconds: Optional[int] = None
    refresh_token_ttl_seconds: Optional[int] = None
    verification_token_ttl_seconds: Optional[int] = None
    keep_alive_interval_seconds: Optional[int] = None
    keep_alive_window_seconds: Optional[int] = None

    @model_validator(mode="after")
    def compute_durations(self):
        self.access_token_ttl_seconds = _duration_seconds(
            self.access_token_ttl, 60, 86400, "access_token_ttl"
        )
        self.refresh_token_ttl_seconds = _duration_seconds(
            self.refresh_token_ttl, 300, 30 * 86400, "refresh_token_ttl"
        )
        self.verification_token_ttl_seconds = _duration_seconds(
            self.verification_token_ttl, 300, 7 * 86400, "verification_token_ttl"
        )
        self.keep_alive_interval_seconds = _duration_seconds(
            self.keep_alive_interval, 10, 3600, "keep_alive_interval"
        )
        self.keep_alive_window_seconds = _duration_seconds(
            self.keep_alive_window, 10, 3600, "keep_alive_window"
        )

        if self.refresh_token_ttl_seconds < self.access_token_ttl_seconds:
            raise ValueError("refresh_token_ttl must not be shorter than access_token_ttl")

        return self


DEFAULT_ALLOWED_EXTENSIONS = [
    "pdf", "doc", "docx", "txt", "jpg", "jpeg", "png", "gif", "zip", "rar",
    "mp4", "mp3", "xls", "xlsx", "ppt", "pptx",
]


class UploadConfig(BaseModel):
    """Media CDN upload settings."""

    max_file_size_mb: int = Field(100, ge=1, le=1024, description="Largest accepted upload")
    allowed_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS))
    api_base_url: str = Field("https://api.cloudinary.com/v1_1")
    delivery_base_url: str = Field("https://res.cloudinary.com")
    request_timeout: int = Field(120, ge=5, le=600, description="Upload request timeout (seconds)")

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        normalized = []
        for ext in v:
            cleaned = ext.strip().lower().lstrip(".")
            if cleaned and cleaned not in normalized:
                normalized.append(cleaned)
        return normalized

    @field_validator("api_base_url", "delivery_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


class PaymentConfig(BaseModel):
    """Peer-to-peer payment redirect settings."""

    send_money_url: str = Field("https://www.paypal.com/send")
    currency: str = Field("USD", min_length=3, max_length=3)
    note_prefix: str = Field("SkillBridge", min_length=1)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class EmailConfig(BaseModel):
    """Email notification settings."""

    use_tls: bool = Field(True, description="Use TLS/STARTTLS for secure connection")
    max_retries: int = Field(
        2, ge=0, le=10, description="Number of retry attempts for failed email sends"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )
    retry_initial_delay: int = Field(
        2, ge=1, le=60, description="Initial retry delay in seconds"
    )


class SchedulerConfig(BaseModel):
    """Background maintenance jobs."""

    enabled: bool = True
    daily_reset_interval: str = Field("1h")
    membership_sweep_interval: str = Field("1h")

    daily_reset_interval_seconds: Optional[int] = None
    membership_sweep_interval_seconds: Optional[int] = None

    @model_validator(mode="after")
    def compute_intervals(self):
        self.daily_reset_interval_seconds = _duration_seconds(
            self.daily_reset_interval, 60, 86400, "daily_reset_interval"
        )
        self.membership_sweep_interval_seconds = _duration_seconds(
            self.membership_sweep_interval, 60, 86400, "membership_sweep_interval"
        )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class ApiConfig(BaseModel):
    """HTTP server settings."""

    host: str = Field("127.0.0.1")
    port: int = Field(8000, ge=1, le=65535)
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"]
    )
    admin_submission_limit: int = Field(100, ge=1, le=1000)


class AppConfig(BaseModel):
    """Root configuration object for the SkillBridge service."""

    site_url: str = Field("http://localhost:5173", description="Public origin used in email links")
    membership: MembershipConfig = Field(default_factory=MembershipConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    uploads: UploadConfig = Field(default_factory=UploadConfig)
    payments: PaymentConfig = Field(default_factory=PaymentConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("site_url must start with http:// or https://")
        return stripped

    def get_plan(self, plan_key: Optional[str]) -> Optional[PlanConfig]:
        """Look up a plan by key (case-insensitive)."""
        if not plan_key:
            return None
        return self.membership.plans.get(plan_key.strip().lower())
