# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Policy issuance from paid quotes.

Issuance is the only multi-row write in the engine. The quote claim, the
policy insert and the payment transaction insert happen in one unit of work:
either all three are stored or none is. The claim is a conditional status
change, so among concurrent issuers for the same quote exactly one gets past
it; the others are told the quote is already consumed.
"""

from datetime import datetime
from uuid import uuid4

from beartype import beartype

from ..core.errors import RatingError
from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..models.policy import (
    PaymentConfirmation,
    PaymentTransaction,
    Policy,
    PolicyStatus,
    TransactionStatus,
    policy_expiry,
)
from ..models.quote import Quote
from ..storage.base import (
    DuplicateIssuanceError,
    DuplicateTransactionError,
    RatingStore,
    StorageUnavailableError,
)
from .quote_service import Clock, QuoteService, utc_now

logger = get_logger(__name__)


class _IssuanceRejected(Exception):
    """Aborts the unit of work with a business error."""

    def __init__(self, error: RatingError) -> None:
        super().__init__(str(error))
        self.error = error


class PolicyService:
    """Convert valid quotes into policies exactly once."""

    def __init__(
        self,
        store: RatingStore,
        quotes: QuoteService,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._quotes = quotes
        self._clock = clock

    @beartype
    async def issue_policy(
        self, quote_number: str, payment: PaymentConfirmation
    ) -> Result[Policy, RatingError]:
        """Issue the policy for a paid quote.

        Args:
            quote_number: Public number of the quote being bought
            payment: Confirmation of the payment received for it

        Returns:
            Result containing the stored policy, or NOT_FOUND, QUOTE_EXPIRED,
            QUOTE_ALREADY_CONSUMED, INVALID_INPUT (reused transaction id) or
            STORAGE_UNAVAILABLE
        """
        quote_result = await self._quotes.get_quote(quote_number)
        if isinstance(quote_result, Err):
            return quote_result
        quote = quote_result.value

        issuable = self._quotes.check_issuable(quote)
        if isinstance(issuable, Err):
            self._log_rejection(quote, issuable.error)
            return issuable

        now = self._clock()
        policy = self._build_policy(quote, payment, now)
        transaction = self._build_transaction(quote, policy, payment, now)

        try:
            async with self._store.issuance() as unit:
                if not await unit.accept_quote(quote.quote_id, now):
                    # The claim also fails for a quote that lapsed after the check
                    raise _IssuanceRejected(
                        RatingError.quote_expired(quote.quote_number)
                        if quote.is_expired_at(now)
                        else RatingError.quote_already_consumed(quote.quote_number)
                    )
                try:
                    stored = await unit.insert_policy(policy)
                except DuplicateIssuanceError:
                    raise _IssuanceRejected(
                        RatingError.quote_already_consumed(quote.quote_number)
                    ) from None
                try:
                    await unit.insert_transaction(transaction)
                except DuplicateTransactionError:
                    raise _IssuanceRejected(
                        RatingError.invalid_input(
                            f"Transaction {transaction.transaction_id} "
                            "has already been recorded",
                            transaction_id=transaction.transaction_id,
                        )
                    ) from None
        except _IssuanceRejected as rejected:
            self._log_rejection(quote, rejected.error)
            return Err(rejected.error)
        except StorageUnavailableError as e:
            logger.warning(
                "Policy issuance rolled back",
                extra={"quote_number": quote.quote_number, "error": str(e)},
            )
            return Err(
                RatingError.storage_unavailable(str(e), quote_number=quote.quote_number)
            )

        logger.info(
            "Policy issued",
            extra={
                "policy_number": stored.policy_number,
                "quote_number": quote.quote_number,
                "transaction_id": transaction.transaction_id,
            },
        )
        return Ok(stored)

    @beartype
    async def get_policy(self, policy_number: str) -> Result[Policy, RatingError]:
        """Load a policy by its public number."""
        try:
            policy = await self._store.get_policy_by_number(policy_number)
        except StorageUnavailableError as e:
            return Err(
                RatingError.storage_unavailable(str(e), policy_number=policy_number)
            )
        if policy is None:
            return Err(
                RatingError.not_found(
                    f"Policy {policy_number} not found", policy_number=policy_number
                )
            )
        return Ok(policy)

    @beartype
    async def get_policy_for_quote(
        self, quote_number: str
    ) -> Result[Policy, RatingError]:
        """The policy issued from a quote, e.g. after QUOTE_ALREADY_CONSUMED."""
        quote_result = await self._quotes.get_quote(quote_number)
        if isinstance(quote_result, Err):
            return quote_result

        try:
            policy = await self._store.get_policy_by_quote_id(quote_result.value.quote_id)
        except StorageUnavailableError as e:
            return Err(
                RatingError.storage_unavailable(str(e), quote_number=quote_number)
            )
        if policy is None:
            return Err(
                RatingError.not_found(
                    f"No policy has been issued for quote {quote_number}",
                    quote_number=quote_number,
                )
            )
        return Ok(policy)

    @beartype
    async def get_payment_transaction(
        self, policy_number: str
    ) -> Result[PaymentTransaction, RatingError]:
        """The payment transaction recorded when the policy was issued."""
        policy_result = await self.get_policy(policy_number)
        if isinstance(policy_result, Err):
            return policy_result

        try:
            transaction = await self._store.get_transaction_by_policy_id(
                policy_result.value.policy_id
            )
        except StorageUnavailableError as e:
            return Err(
                RatingError.storage_unavailable(str(e), policy_number=policy_number)
            )
        if transaction is None:
            return Err(
                RatingError.not_found(
                    f"No payment transaction recorded for policy {policy_number}",
                    policy_number=policy_number,
                )
            )
        return Ok(transaction)

    def _build_policy(
        self, quote: Quote, payment: PaymentConfirmation, now: datetime
    ) -> Policy:
        return Policy(
            policy_id=uuid4(),
            policy_number=f"POL-{uuid4().hex.upper()}",
            quote_id=quote.quote_id,
            product_id=quote.product_id,
            package_id=quote.package_id,
            customer_info=quote.customer_info,
            premium_amount=quote.total_premium,
            currency=quote.currency,
            effective_date=now,
            expiry_date=policy_expiry(now, quote.duration_months),
            status=PolicyStatus.ACTIVE,
            payment_reference=payment.payment_reference,
            created_at=now,
        )

    def _build_transaction(
        self,
        quote: Quote,
        policy: Policy,
        payment: PaymentConfirmation,
        now: datetime,
    ) -> PaymentTransaction:
        return PaymentTransaction(
            transaction_id=payment.transaction_id or f"TXN-{uuid4().hex.upper()}",
            policy_id=policy.policy_id,
            quote_id=quote.quote_id,
            payment_method=payment.payment_method,
            amount=quote.total_premium,
            currency=quote.currency,
            status=TransactionStatus.COMPLETED,
            payment_reference=payment.payment_reference,
            external_reference=payment.external_reference,
            processed_at=now,
        )

    def _log_rejection(self, quote: Quote, error: RatingError) -> None:
        logger.info(
            "Policy issuance rejected",
            extra={"quote_number": quote.quote_number, "reason": error.kind.value},
        )
