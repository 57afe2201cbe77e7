"""Configuration management for the SkillBridge service."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_app_config, validate_config_file
from .models import (
    ApiConfig,
    AppConfig,
    AuthConfig,
    EmailConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    MembershipConfig,
    PaymentConfig,
    PlanConfig,
    SchedulerConfig,
    UploadConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ApiConfig",
    "AuthConfig",
    "EmailConfig",
    "EnvironmentConfig",
    "LoggingConfig",
    "MembershipConfig",
    "PaymentConfig",
    "PlanConfig",
    "SchedulerConfig",
    "UploadConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
