"""Append-only transaction ledger and its consistency checker."""

from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from src.core.base import BaseService
from src.database.models import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    Account,
    Transaction,
    TransactionType,
)
from src.modules.billing.exceptions import (
    ConcurrentModificationException,
    ConsistencyViolationException,
    InvalidAmountException,
)
from src.utils.settings.billing import BillingSettings

T = TypeVar("T")


@dataclass(frozen=True)
class LedgerVerification:
    """Outcome of a successful ledger replay."""

    account_id: UUID
    transaction_count: int
    replayed_balance: int
    cached_balance: int


class LedgerService(BaseService):
    """The only writer of Transaction rows.

    ``append`` stages a row and the matching cached-balance update on the
    session; callers commit both together through ``run_serialized``.
    """

    async def lock_account(self, account_id: UUID) -> Account | None:
        """Load an account for update, discarding any stale identity-map copy."""
        stmt = (
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def append(
        self,
        account: Account,
        transaction_type: TransactionType,
        amount: int,
        *,
        description: str,
        amount_minor_units: int | None = None,
        usage_event_id: UUID | None = None,
        payment_reference: str | None = None,
        admin_user_id: UUID | None = None,
        actual_tokens: int = 0,
        metadata: dict | None = None,
    ) -> Transaction:
        """Stage a ledger row and move the account's cached balance with it."""
        transaction_type = TransactionType(transaction_type)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount == 0:
            raise InvalidAmountException(amount)
        if transaction_type in CREDIT_TYPES and amount < 0:
            raise InvalidAmountException(amount)
        if transaction_type in DEBIT_TYPES and amount > 0:
            raise InvalidAmountException(amount)

        balance_before = account.balance
        balance_after = balance_before + amount
        if balance_after < 0:
            self.logger.error(
                "Ledger append would drive balance negative",
                account_id=str(account.id),
                transaction_type=transaction_type.value,
                balance_before=balance_before,
                amount=amount,
            )
            raise ConsistencyViolationException(
                account.id,
                "negative balance",
                balance_before=balance_before,
                amount=amount,
            )

        sequence = account.transaction_count + 1
        transaction = Transaction(
            id=uuid4(),
            account_id=account.id,
            user_id=account.user_id,
            sequence=sequence,
            transaction_type=transaction_type,
            amount=amount,
            balance_before=balance_before,
            balance_after=balance_after,
            amount_minor_units=amount_minor_units,
            usage_event_id=usage_event_id,
            payment_reference=payment_reference,
            admin_user_id=admin_user_id,
            description=description,
            transaction_metadata=metadata,
        )

        account.balance = balance_after
        account.transaction_count = sequence
        match transaction_type:
            case TransactionType.PURCHASE:
                account.lifetime_purchased += amount
                account.lifetime_spent_minor_units += amount_minor_units or 0
            case TransactionType.AUTO_RECHARGE:
                account.lifetime_spent_minor_units += amount_minor_units or 0
            case TransactionType.USAGE:
                account.lifetime_used += -amount
                account.lifetime_actual += actual_tokens

        self.db.add(transaction)
        self.logger.info(
            "Ledger append",
            account_id=str(account.id),
            transaction_type=transaction_type.value,
            amount=amount,
            sequence=sequence,
            balance_after=balance_after,
        )
        return transaction

    async def run_serialized(
        self,
        mutation: Callable[[], Awaitable[T]],
        *,
        account_id: UUID | None = None,
        on_conflict: Callable[[], Awaitable[T | None]] | None = None,
    ) -> T:
        """Run ``mutation`` and commit, retrying when another writer won the race.

        ``mutation`` must re-read the account it changes (``lock_account``).
        ``on_conflict`` runs after an IntegrityError rollback; a non-None
        result ends the loop, e.g. when a concurrent request already stored
        the same idempotency key.
        """
        attempts = BillingSettings().BILLING_MAX_MUTATION_ATTEMPTS
        for attempt in range(1, attempts + 1):
            try:
                result = await mutation()
                await self.db.commit()
                return result
            except StaleDataError:
                await self.db.rollback()
                self.logger.warning(
                    "Account version conflict, retrying",
                    account_id=str(account_id) if account_id else None,
                    attempt=attempt,
                )
            except IntegrityError as exc:
                await self.db.rollback()
                if on_conflict is not None:
                    resolved = await on_conflict()
                    if resolved is not None:
                        return resolved
                self.logger.warning(
                    "Ledger write conflict, retrying",
                    account_id=str(account_id) if account_id else None,
                    attempt=attempt,
                    error=str(exc.orig),
                )
            except Exception:
                await self.db.rollback()
                raise

        self.logger.error(
            "Account mutation retries exhausted",
            account_id=str(account_id) if account_id else None,
            attempts=attempts,
        )
        raise ConcurrentModificationException(account_id, attempts)

    async def get_transactions(
        self, account_id: UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[Transaction], int]:
        """Transactions for an account, newest first."""
        stmt = (
            select(Transaction)
            .where(Transaction.account_id == account_id)
            .order_by(Transaction.sequence.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count(Transaction.id)).where(
            Transaction.account_id == account_id
        )
        transactions = (await self.db.execute(stmt)).scalars().all()
        total = (await self.db.execute(count_stmt)).scalar() or 0
        return list(transactions), total

    async def get_refund_for(self, usage_event_id: UUID) -> Transaction | None:
        stmt = select(Transaction).where(
            Transaction.usage_event_id == usage_event_id,
            Transaction.transaction_type == TransactionType.REFUND,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_payment_reference(
        self, payment_reference: str
    ) -> Transaction | None:
        stmt = select(Transaction).where(
            Transaction.payment_reference == payment_reference
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def verify_account(self, account_id: UUID) -> LedgerVerification:
        """Replay an account's ledger from its first row and compare with the cache.

        Raises ConsistencyViolationException on the first mismatch. Nothing is
        ever corrected here.
        """
        account = await self.db.get(Account, account_id, populate_existing=True)
        if account is None:
            raise ConsistencyViolationException(account_id, "account missing")

        stmt = (
            select(Transaction)
            .where(Transaction.account_id == account_id)
            .order_by(Transaction.sequence.asc())
        )
        transactions = (await self.db.execute(stmt)).scalars().all()

        running = 0
        totals = {transaction_type: 0 for transaction_type in TransactionType}
        for expected_sequence, transaction in enumerate(transactions, start=1):
            if transaction.sequence != expected_sequence:
                self._violation(
                    account_id,
                    "sequence gap",
                    expected=expected_sequence,
                    found=transaction.sequence,
                )
            if transaction.balance_before != running:
                self._violation(
                    account_id,
                    "balance_before mismatch",
                    sequence=transaction.sequence,
                    expected=running,
                    found=transaction.balance_before,
                )
            expected_after = transaction.balance_before + transaction.amount
            if transaction.balance_after != expected_after:
                self._violation(
                    account_id,
                    "balance_after mismatch",
                    sequence=transaction.sequence,
                )
            running = transaction.balance_after
            totals[TransactionType(transaction.transaction_type)] += transaction.amount

        if running != account.balance:
            self._violation(
                account_id,
                "cached balance differs from replay",
                replayed=running,
                cached=account.balance,
            )
        if len(transactions) != account.transaction_count:
            self._violation(
                account_id,
                "transaction count differs from ledger",
                ledger=len(transactions),
                cached=account.transaction_count,
            )
        if totals[TransactionType.PURCHASE] != account.lifetime_purchased:
            self._violation(
                account_id,
                "lifetime purchased differs from ledger",
                ledger=totals[TransactionType.PURCHASE],
                cached=account.lifetime_purchased,
            )
        if -totals[TransactionType.USAGE] != account.lifetime_used:
            self._violation(
                account_id,
                "lifetime used differs from ledger",
                ledger=-totals[TransactionType.USAGE],
                cached=account.lifetime_used,
            )

        return LedgerVerification(
            account_id=account_id,
            transaction_count=len(transactions),
            replayed_balance=running,
            cached_balance=account.balance,
        )

    def _violation(self, account_id: UUID, reason: str, **context) -> None:
        self.logger.error(
            "Ledger consistency violation",
            account_id=str(account_id),
            reason=reason,
            **context,
        )
        raise ConsistencyViolationException(account_id, reason, **context)
