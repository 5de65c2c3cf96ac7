"""Crediting completed payments to token accounts."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from uuid import UUID

from src.core.base import BaseService
from src.database.models import Account, AccountStatus, TransactionType
from src.modules.billing.accounts.service import AccountService
from src.modules.billing.alerts import AlertState, evaluate_after_commit
from src.modules.billing.exceptions import InvalidAmountException
from src.modules.billing.ledger.service import LedgerService
from src.modules.billing.packages.service import PricingPackageService
from src.modules.billing.settings.service import SystemSettingsService


@dataclass(frozen=True)
class PurchaseResult:
    transaction_id: UUID
    new_balance: int
    already_processed: bool = False
    alert: AlertState | None = None


class PurchaseService(BaseService):
    """Credits token purchases reported by the payment processor.

    Every credit is keyed by the processor's payment reference, so webhook
    retries never credit twice.
    """

    def __init__(self, db):
        super().__init__(db)
        self.ledger = LedgerService(db)
        self.accounts = AccountService(db)
        self.packages = PricingPackageService(db)

    async def _already_processed(self, payment_reference: str) -> PurchaseResult | None:
        transaction = await self.ledger.get_by_payment_reference(payment_reference)
        if transaction is None:
            return None
        account = await self.db.get(
            Account, transaction.account_id, populate_existing=True
        )
        return PurchaseResult(
            transaction_id=transaction.id,
            new_balance=account.balance,
            already_processed=True,
        )

    async def purchase_completed(
        self,
        user_id: UUID,
        package_id: UUID,
        payment_reference: str,
        scope_id: str | None = None,
        payment_customer_ref: str | None = None,
    ) -> PurchaseResult:
        package = await self.packages.get_package(package_id)
        return await self._credit(
            user_id=user_id,
            transaction_type=TransactionType.PURCHASE,
            token_amount=package.token_amount,
            amount_minor_units=package.price_minor_units,
            payment_reference=payment_reference,
            scope_id=scope_id,
            payment_customer_ref=payment_customer_ref,
            description=f"Purchased {package.name} package",
            metadata={"package_id": str(package.id), "package_name": package.name},
        )

    async def auto_recharge_completed(
        self,
        user_id: UUID,
        token_amount: int,
        amount_minor_units: int,
        payment_reference: str,
        scope_id: str | None = None,
    ) -> PurchaseResult:
        return await self._credit(
            user_id=user_id,
            transaction_type=TransactionType.AUTO_RECHARGE,
            token_amount=token_amount,
            amount_minor_units=amount_minor_units,
            payment_reference=payment_reference,
            scope_id=scope_id,
            description="Automatic recharge",
        )

    async def payment_failed(
        self, user_id: UUID, scope_id: str | None = None
    ) -> Account | None:
        """Suspend an active account after a failed auto-recharge payment."""
        account = await self.accounts.get_account_or_none(user_id, scope_id)
        if account is None:
            self.logger.warning(
                "Payment failure for unknown account", user_id=str(user_id)
            )
            return None
        updated, _ = await self.accounts.transition_status(
            account.id, AccountStatus.SUSPENDED, reason="auto-recharge payment failed"
        )
        return updated

    async def _credit(
        self,
        *,
        user_id: UUID,
        transaction_type: TransactionType,
        token_amount: int,
        amount_minor_units: int,
        payment_reference: str,
        scope_id: str | None,
        description: str,
        payment_customer_ref: str | None = None,
        metadata: dict | None = None,
    ) -> PurchaseResult:
        if isinstance(token_amount, bool) or not isinstance(token_amount, int):
            raise InvalidAmountException(token_amount, field="token_amount")
        if token_amount <= 0:
            raise InvalidAmountException(token_amount, field="token_amount")
        if amount_minor_units < 0:
            raise InvalidAmountException(amount_minor_units, field="amount_minor_units")

        existing = await self._already_processed(payment_reference)
        if existing is not None:
            self.logger.info(
                "Payment already credited",
                payment_reference=payment_reference,
                transaction_id=str(existing.transaction_id),
            )
            return existing

        settings = await SystemSettingsService(self.db).get_snapshot()
        account = await self.accounts.get_or_create(user_id, scope_id, settings)
        account_id = account.id
        credited: Account | None = None

        async def _apply() -> PurchaseResult:
            nonlocal credited
            locked = await self.ledger.lock_account(account_id)
            transaction = self.ledger.append(
                locked,
                transaction_type,
                token_amount,
                description=description,
                amount_minor_units=amount_minor_units,
                payment_reference=payment_reference,
                metadata=metadata,
            )
            locked.last_purchase_at = datetime.now(timezone.utc)
            if payment_customer_ref:
                locked.payment_customer_ref = payment_customer_ref
            # Blocked accounts keep their status; only suspension is lifted
            if locked.status == AccountStatus.SUSPENDED:
                locked.status = AccountStatus.ACTIVE
                self.logger.info(
                    "Suspended account reactivated by payment",
                    account_id=str(account_id),
                )
            credited = locked
            return PurchaseResult(
                transaction_id=transaction.id, new_balance=locked.balance
            )

        result = await self.ledger.run_serialized(
            _apply,
            account_id=account_id,
            on_conflict=lambda: self._already_processed(payment_reference),
        )
        if result.already_processed:
            return result

        self.logger.info(
            "Payment credited",
            account_id=str(account_id),
            transaction_type=transaction_type.value,
            tokens=token_amount,
            amount_minor_units=amount_minor_units,
            payment_reference=payment_reference,
            balance=result.new_balance,
        )
        return replace(result, alert=evaluate_after_commit(credited, settings))
