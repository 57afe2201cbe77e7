"""Non-fatal configuration checks that surface as warnings."""

import warnings
from typing import Any, Dict, List

from .environment import EnvironmentConfig

_TIER_ORDER = ["none", "regular", "pro", "vip"]


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Inspect the raw config dictionary for settings that are legal but suspicious.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    membership = config_dict.get("membership") or {}
    if isinstance(membership, dict):
        limits = membership.get("daily_limits") or {}
        if isinstance(limits, dict):
            warning_messages.extend(_check_limit_ordering(limits))

        plans = membership.get("plans") or {}
        if isinstance(plans, dict):
            prices = []
            for key, plan in plans.items():
                if isinstance(plan, dict) and plan.get("tier") in _TIER_ORDER:
                    prices.append((_TIER_ORDER.index(plan["tier"]), plan.get("price"), key))
            prices.sort()
            for (_, low_price, low_key), (_, high_price, high_key) in zip(prices, prices[1:]):
                if (
                    isinstance(low_price, (int, float))
                    and isinstance(high_price, (int, float))
                    and high_price < low_price
                ):
                    warning_messages.append(
                        f"Plan '{high_key}' grants a higher tier than '{low_key}' but costs less"
                    )

    auth = config_dict.get("auth") or {}
    if isinstance(auth, dict) and auth.get("require_email_confirmation") is False:
        warning_messages.append(
            "auth.require_email_confirmation is disabled; unverified accounts can sign in"
        )

    uploads = config_dict.get("uploads") or {}
    if isinstance(uploads, dict):
        max_mb = uploads.get("max_file_size_mb", 100)
        if isinstance(max_mb, int) and max_mb > 100:
            warning_messages.append(
                f"uploads.max_file_size_mb ({max_mb}) exceeds the CDN's usual 100 MB limit"
            )

    return warning_messages


def _check_limit_ordering(limits: Dict[str, Any]) -> List[str]:
    """Higher tiers should never get a smaller daily cap than lower tiers."""
    messages = []
    previous_tier, previous_limit = None, None
    for tier in _TIER_ORDER:
        if tier not in limits:
            continue
        limit = limits[tier]
        if previous_tier is not None and previous_limit is None and limit is not None:
            messages.append(
                f"Tier '{tier}' has a daily limit of {limit} but lower tier "
                f"'{previous_tier}' is unlimited"
            )
        elif (
            previous_tier is not None
            and isinstance(limit, int)
            and isinstance(previous_limit, int)
            and limit < previous_limit
        ):
            messages.append(
                f"Tier '{tier}' has a smaller daily limit ({limit}) than '{previous_tier}' ({previous_limit})"
            )
        previous_tier, previous_limit = tier, limit
    return messages


def check_environment_warnings(env_config: EnvironmentConfig) -> List[str]:
    """Warn about integrations that will be disabled at runtime."""
    warning_messages = []

    if not env_config.uploads_enabled:
        warning_messages.append(
            "Cloudinary environment variables are not set; file uploads are disabled"
        )

    if not env_config.smtp_enabled:
        warning_messages.append(
            "SMTP is not configured; verification and review emails will only be logged"
        )

    if not env_config.paypal_recipient:
        warning_messages.append("PAYPAL_RECIPIENT is not set; checkout will be unavailable")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
