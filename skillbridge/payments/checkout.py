"""Membership checkout through a PayPal send-money redirect.

There is no settlement or webhook: checkout records a pending transaction and
grants the tier optimistically. An admin can later mark the transaction
completed, which activates the membership.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import quote
from uuid import uuid4

from skillbridge.config.models import AppConfig, PlanConfig
from skillbridge.domain.models import (
    MembershipStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from skillbridge.logging import get_logger
from skillbridge.logging.context import log_context
from skillbridge.persistence import (
    PersistenceError,
    ProfileRepository,
    TransactionRepository,
    get_session,
)
from skillbridge.utils import add_months, timestamp_to_millis, utc_now

from .exceptions import (
    PaymentConfigurationError,
    TransactionNotFoundError,
    TransactionStateError,
    UnknownPlanError,
)

logger = get_logger(__name__, component="payments")

# Characters encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_amount(price: float) -> str:
    """Price as it appears in the link: ``15`` rather than ``15.0``."""
    return f"{price:g}"


@dataclass
class CheckoutResult:
    """What the member needs to finish paying.

    ``transaction`` is None and ``membership_updated`` False when the
    corresponding bookkeeping step failed; the link is always usable.
    """

    plan_key: str
    plan: PlanConfig
    payment_link: str
    recipient: str
    transaction: Optional[Transaction]
    membership_updated: bool
    membership_expires_at: datetime


class CheckoutService:
    """Builds payment links and records checkout bookkeeping."""

    def __init__(
        self,
        config: AppConfig,
        recipient: Optional[str],
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.recipient = recipient
        self.clock = clock
        self.logger = logger_instance or logger

    def get_plan(self, plan_key: Optional[str]) -> PlanConfig:
        """Raises UnknownPlanError for anything not in the catalogue."""
        plan = self.config.get_plan(plan_key)
        if plan is None:
            raise UnknownPlanError(plan_key)
        return plan

    def payment_note(self, plan: PlanConfig, email: str) -> str:
        return f"{self.config.payments.note_prefix} {plan.name} Membership - {email}"

    def payment_link(self, plan: PlanConfig, email: str) -> str:
        """Send-money URL with amount, recipient, note and currency filled in.

        Raises:
            PaymentConfigurationError: If no recipient is configured
        """
        if not self.recipient:
            raise PaymentConfigurationError()

        payments = self.config.payments
        note = quote(self.payment_note(plan, email), safe=_URI_COMPONENT_SAFE)
        return (
            f"{payments.send_money_url}?amount={format_amount(plan.price)}"
            f"&email={self.recipient}&note={note}&currency_code={payments.currency}"
        )

    def start_checkout(self, user_id: str, email: str, plan_key: str) -> CheckoutResult:
        """Record a pending charge and grant the plan's tier straight away.

        Both writes are best-effort: each failure is logged as a warning and
        the payment link is returned regardless.

        Raises:
            UnknownPlanError: If the plan key is not in the catalogue
            PaymentConfigurationError: If no recipient is configured
        """
        plan = self.get_plan(plan_key)
        link = self.payment_link(plan, email)
        now = self.clock()
        expires_at = add_months(now, plan.duration_months)

        with log_context(user_id=user_id):
            transaction = self._record_pending_transaction(user_id, plan, now)
            updated = self._grant_membership(user_id, plan, expires_at, now)

            self.logger.info(
                f"Checkout started for {plan.name} plan",
                extra={
                    "event": "payments.checkout.started",
                    "plan": plan_key,
                    "amount": plan.price,
                    "transaction_recorded": transaction is not None,
                    "membership_updated": updated,
                },
            )

        return CheckoutResult(
            plan_key=plan_key.strip().lower(),
            plan=plan,
            payment_link=link,
            recipient=self.recipient,
            transaction=transaction,
            membership_updated=updated,
            membership_expires_at=expires_at,
        )

    def confirm_transaction(self, transaction_id: str) -> Transaction:
        """Mark a pending subscription payment as received and activate the membership.

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist
            TransactionStateError: If it is not a pending subscription
        """
        now = self.clock()
        with get_session() as session:
            transactions = TransactionRepository(session)
            transaction = transactions.get(transaction_id)
            if transaction is None:
                raise TransactionNotFoundError(transaction_id)
            if transaction.type != TransactionType.SUBSCRIPTION:
                raise TransactionStateError("Only subscription payments can be confirmed")
            if transaction.status != TransactionStatus.PENDING:
                raise TransactionStateError(f"Transaction is already {transaction.status.value}")

            transaction = transactions.set_status(transaction_id, TransactionStatus.COMPLETED)

            profiles = ProfileRepository(session)
            profile = profiles.get(transaction.user_id)
            if profile is not None and profile.membership_status == MembershipStatus.PENDING_PAYMENT:
                profiles.save(
                    profile.model_copy(
                        update={"membership_status": MembershipStatus.ACTIVE, "updated_at": now}
                    )
                )

        self.logger.info(
            "Payment confirmed",
            extra={
                "event": "payments.transaction.confirmed",
                "transaction_id": transaction_id,
                "user_id": transaction.user_id,
            },
        )
        return transaction

    def _record_pending_transaction(
        self, user_id: str, plan: PlanConfig, now: datetime
    ) -> Optional[Transaction]:
        try:
            with get_session() as session:
                return TransactionRepository(session).create(
                    Transaction(
                        id=str(uuid4()),
                        user_id=user_id,
                        type=TransactionType.SUBSCRIPTION,
                        amount=-plan.price,
                        status=TransactionStatus.PENDING,
                        description=f"{plan.name} Membership - PayPal Payment Pending",
                        reference_id=f"paypal_{timestamp_to_millis(now)}_{user_id}",
                        created_at=now,
                    )
                )
        except PersistenceError as e:
            self.logger.warning(
                f"Transaction record not created: {e}",
                extra={"event": "payments.transaction.not_recorded"},
            )
            return None

    def _grant_membership(
        self, user_id: str, plan: PlanConfig, expires_at: datetime, now: datetime
    ) -> bool:
        try:
            with get_session() as session:
                profiles = ProfileRepository(session)
                profile = profiles.get(user_id)
                if profile is None:
                    self.logger.warning(
                        "Profile update failed: no profile for user",
                        extra={"event": "payments.membership.not_updated"},
                    )
                    return False
                profiles.save(
                    profile.model_copy(
                        update={
                            "membership_tier": plan.tier,
                            "membership_status": MembershipStatus.PENDING_PAYMENT,
                            "membership_expires_at": expires_at,
                            "daily_tasks_used": 0,
                            "last_task_reset_date": now.date(),
                            "updated_at": now,
                        }
                    )
                )
            return True
        except PersistenceError as e:
            self.logger.warning(
                f"Profile update failed: {e}",
                extra={"event": "payments.membership.not_updated"},
            )
            return False
