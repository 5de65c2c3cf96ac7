"""Token account store."""

from dataclasses import dataclass
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from src.core.base import BaseService
from src.database.models import Account, AccountStatus, TransactionType
from src.modules.billing.exceptions import (
    AccountNotFoundException,
    InvalidAmountException,
)
from src.modules.billing.ledger.service import LedgerService
from src.modules.billing.settings.service import SystemSettingsService
from src.modules.billing.settings.snapshot import SettingsSnapshot
from src.utils.settings.billing import BillingSettings

# Allowed status moves; admin-only moves are listed separately
_SYSTEM_TRANSITIONS = {
    (AccountStatus.ACTIVE, AccountStatus.SUSPENDED),
    (AccountStatus.SUSPENDED, AccountStatus.ACTIVE),
}
_ADMIN_TRANSITIONS = _SYSTEM_TRANSITIONS | {
    (AccountStatus.ACTIVE, AccountStatus.BLOCKED),
    (AccountStatus.SUSPENDED, AccountStatus.BLOCKED),
    (AccountStatus.BLOCKED, AccountStatus.ACTIVE),
}


def can_transition(
    current: AccountStatus, target: AccountStatus, *, by_admin: bool = False
) -> bool:
    allowed = _ADMIN_TRANSITIONS if by_admin else _SYSTEM_TRANSITIONS
    return (AccountStatus(current), AccountStatus(target)) in allowed


@dataclass(frozen=True)
class BalanceCheck:
    sufficient: bool
    balance: int
    required: int
    account_status: str


def default_scope() -> str:
    return BillingSettings().DEFAULT_SCOPE_ID


class AccountService(BaseService):
    """Get-or-create and configuration of token accounts.

    Balance changes never happen here; they go through the ledger.
    """

    def __init__(self, db):
        super().__init__(db)
        self.ledger = LedgerService(db)

    async def get_account_or_none(
        self, user_id: UUID, scope_id: str | None = None
    ) -> Account | None:
        stmt = select(Account).where(
            Account.user_id == user_id,
            Account.scope_id == (scope_id or default_scope()),
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_account(self, user_id: UUID, scope_id: str | None = None) -> Account:
        account = await self.get_account_or_none(user_id, scope_id)
        if account is None:
            raise AccountNotFoundException(user_id, scope_id or default_scope())
        return account

    async def get_or_create(
        self,
        user_id: UUID,
        scope_id: str | None = None,
        settings: SettingsSnapshot | None = None,
    ) -> Account:
        """Return the account for (user, scope), creating it on first use.

        A new account receives the configured welcome bonus as its first
        ledger row.
        """
        scope_id = scope_id or default_scope()
        account = await self.get_account_or_none(user_id, scope_id)
        if account is not None:
            return account

        if settings is None:
            settings = await SystemSettingsService(self.db).get_snapshot()

        account = Account(
            id=uuid4(),
            user_id=user_id,
            scope_id=scope_id,
            balance=0,
            lifetime_purchased=0,
            lifetime_used=0,
            lifetime_actual=0,
            lifetime_spent_minor_units=0,
            transaction_count=0,
            status=AccountStatus.ACTIVE,
        )
        self.db.add(account)
        try:
            await self.db.flush()
            if settings.new_account_bonus > 0:
                self.ledger.append(
                    account,
                    TransactionType.BONUS,
                    settings.new_account_bonus,
                    description="Welcome bonus tokens",
                )
            await self.db.commit()
        except IntegrityError:
            # Lost the creation race; the other request's account wins
            await self.db.rollback()
            account = await self.get_account_or_none(user_id, scope_id)
            if account is None:
                raise
            return account

        self.logger.info(
            "Token account created",
            account_id=str(account.id),
            user_id=str(user_id),
            scope_id=scope_id,
            bonus=settings.new_account_bonus,
        )
        return account

    async def check_balance(
        self, user_id: UUID, required_tokens: int, scope_id: str | None = None
    ) -> BalanceCheck:
        if required_tokens < 0:
            raise InvalidAmountException(required_tokens, field="required_tokens")

        account = await self.get_account_or_none(user_id, scope_id)
        if account is None:
            return BalanceCheck(
                sufficient=False,
                balance=0,
                required=required_tokens,
                account_status="not_found",
            )
        return BalanceCheck(
            sufficient=account.is_active and account.balance >= required_tokens,
            balance=account.balance,
            required=required_tokens,
            account_status=AccountStatus(account.status).value,
        )

    async def update_auto_recharge(
        self,
        user_id: UUID,
        enabled: bool,
        threshold: int | None = None,
        amount: int | None = None,
        scope_id: str | None = None,
    ) -> Account:
        if threshold is not None and threshold <= 0:
            raise InvalidAmountException(threshold, field="threshold")
        if amount is not None and amount <= 0:
            raise InvalidAmountException(amount, field="amount")

        account = await self.get_or_create(user_id, scope_id)
        account_id = account.id
        if enabled:
            threshold = threshold or account.auto_recharge_threshold
            amount = amount or account.auto_recharge_amount
            if threshold is None:
                raise InvalidAmountException(threshold, field="threshold")
            if amount is None:
                raise InvalidAmountException(amount, field="amount")

        async def _apply() -> Account:
            locked = await self.ledger.lock_account(account_id)
            locked.auto_recharge_enabled = enabled
            if threshold is not None:
                locked.auto_recharge_threshold = threshold
            if amount is not None:
                locked.auto_recharge_amount = amount
            return locked

        updated = await self.ledger.run_serialized(_apply, account_id=account_id)
        self.logger.info(
            "Auto-recharge settings updated",
            account_id=str(updated.id),
            enabled=enabled,
            threshold=updated.auto_recharge_threshold,
            amount=updated.auto_recharge_amount,
        )
        return updated

    async def transition_status(
        self,
        account_id: UUID,
        target: AccountStatus,
        *,
        by_admin: bool = False,
        reason: str | None = None,
    ) -> tuple[Account, bool]:
        """Move an account to ``target`` if the state machine allows it.

        Returns the account and whether its status changed.
        """

        async def _apply() -> tuple[Account, bool]:
            account = await self.ledger.lock_account(account_id)
            if account is None:
                raise AccountNotFoundException(account_id, "")
            if account.status == target:
                return account, False
            if not can_transition(account.status, target, by_admin=by_admin):
                self.logger.warning(
                    "Account status transition refused",
                    account_id=str(account_id),
                    current=AccountStatus(account.status).value,
                    target=AccountStatus(target).value,
                )
                return account, False
            previous = account.status
            account.status = target
            self.logger.info(
                "Account status changed",
                account_id=str(account_id),
                previous=AccountStatus(previous).value,
                status=AccountStatus(target).value,
                reason=reason,
            )
            return account, True

        return await self.ledger.run_serialized(_apply, account_id=account_id)
