"""Manual balance adjustments and account status control."""

from dataclasses import dataclass, replace
from uuid import UUID

from src.core.base import BaseService
from src.database.models import Account, AccountStatus, TransactionType, User, UserRole
from src.modules.billing.accounts.service import AccountService
from src.modules.billing.alerts import AlertState, evaluate_after_commit
from src.modules.billing.exceptions import (
    AdjustmentReasonRequiredException,
    InsufficientBalanceException,
    InvalidAmountException,
    InvalidStatusTransitionException,
    UnauthorizedBillingActionException,
)
from src.modules.billing.ledger.service import LedgerService
from src.modules.billing.settings.service import SystemSettingsService


@dataclass(frozen=True)
class AdjustmentResult:
    transaction_id: UUID
    new_balance: int
    alert: AlertState | None = None


def _require_superadmin(acting_admin: User, action: str) -> None:
    if acting_admin is None or not acting_admin.is_superadmin:
        raise UnauthorizedBillingActionException(action, UserRole.SUPERADMIN.value)


def _validate_adjustment(amount: int, reason: str | None) -> str:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountException(amount)
    if reason is None or not reason.strip():
        raise AdjustmentReasonRequiredException()
    return reason.strip()


class AdminBillingService(BaseService):
    """Superadmin-only operations that change a user's token account."""

    def __init__(self, db):
        super().__init__(db)
        self.ledger = LedgerService(db)
        self.accounts = AccountService(db)

    async def grant_tokens(
        self,
        target_user_id: UUID,
        amount: int,
        reason: str,
        acting_admin: User,
        scope_id: str | None = None,
    ) -> AdjustmentResult:
        """Credit ``amount`` tokens, creating the account if needed."""
        _require_superadmin(acting_admin, "grant_tokens")
        reason = _validate_adjustment(amount, reason)

        settings = await SystemSettingsService(self.db).get_snapshot()
        account = await self.accounts.get_or_create(target_user_id, scope_id, settings)
        return await self._adjust(
            account.id,
            TransactionType.ADMIN_GRANT,
            amount,
            reason,
            acting_admin,
            settings,
        )

    async def deduct_tokens(
        self,
        target_user_id: UUID,
        amount: int,
        reason: str,
        acting_admin: User,
        scope_id: str | None = None,
    ) -> AdjustmentResult:
        """Debit ``amount`` tokens.

        Deductions larger than the balance are refused; deducting down to
        exactly zero is allowed.
        """
        _require_superadmin(acting_admin, "deduct_tokens")
        reason = _validate_adjustment(amount, reason)

        settings = await SystemSettingsService(self.db).get_snapshot()
        account = await self.accounts.get_account(target_user_id, scope_id)
        return await self._adjust(
            account.id,
            TransactionType.ADMIN_DEDUCTION,
            -amount,
            reason,
            acting_admin,
            settings,
        )

    async def _adjust(
        self,
        account_id: UUID,
        transaction_type: TransactionType,
        amount: int,
        reason: str,
        acting_admin: User,
        settings,
    ) -> AdjustmentResult:
        admin_user_id = acting_admin.id
        adjusted: Account | None = None

        async def _apply() -> AdjustmentResult:
            nonlocal adjusted
            locked = await self.ledger.lock_account(account_id)
            if locked.balance + amount < 0:
                raise InsufficientBalanceException(locked.balance, -amount)
            transaction = self.ledger.append(
                locked,
                transaction_type,
                amount,
                description=reason,
                admin_user_id=admin_user_id,
            )
            adjusted = locked
            return AdjustmentResult(
                transaction_id=transaction.id, new_balance=locked.balance
            )

        result = await self.ledger.run_serialized(_apply, account_id=account_id)
        self.logger.info(
            "Admin balance adjustment",
            account_id=str(account_id),
            transaction_type=transaction_type.value,
            amount=amount,
            admin_user_id=str(admin_user_id),
            reason=reason,
            balance=result.new_balance,
        )
        return replace(result, alert=evaluate_after_commit(adjusted, settings))

    async def set_account_status(
        self,
        target_user_id: UUID,
        target_status: AccountStatus,
        reason: str,
        acting_admin: User,
        scope_id: str | None = None,
    ) -> Account:
        """Block, suspend or reactivate an account."""
        _require_superadmin(acting_admin, "set_account_status")
        if reason is None or not reason.strip():
            raise AdjustmentReasonRequiredException()

        target_status = AccountStatus(target_status)
        account = await self.accounts.get_account(target_user_id, scope_id)
        updated, changed = await self.accounts.transition_status(
            account.id, target_status, by_admin=True, reason=reason.strip()
        )
        if not changed and updated.status != target_status:
            raise InvalidStatusTransitionException(
                updated.id, AccountStatus(updated.status).value, target_status.value
            )
        return updated
