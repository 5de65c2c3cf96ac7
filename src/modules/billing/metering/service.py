"""Metering engine: turns reported AI usage into ledger debits."""

from dataclasses import dataclass, replace
from uuid import UUID, uuid4

from sqlalchemy import func, select

from src.core.base import BaseService
from src.database.models import (
    Account,
    AccountStatus,
    ChargeStatus,
    ChargeType,
    OperationType,
    Provider,
    TransactionType,
    UsageEvent,
)
from src.modules.billing.accounts.service import AccountService, default_scope
from src.modules.billing.alerts import AlertState, evaluate_after_commit
from src.modules.billing.exceptions import (
    IdempotencyKeyConflictException,
    UsageEventNotFoundException,
    UsageEventNotRefundableException,
)
from src.modules.billing.ledger.service import LedgerService
from src.modules.billing.metering.metadata import (
    ImageUsageMetadata,
    TextUsageMetadata,
)
from src.modules.billing.pricing import RawUsage, resolve_price
from src.modules.billing.settings.service import SystemSettingsService


@dataclass(frozen=True)
class ChargeResult:
    """Outcome of one ``record_usage`` call.

    ``status`` is DUPLICATE when the idempotency key was seen before; the
    stored outcome of that first call is then in ``original_status``.
    """

    status: ChargeStatus
    usage_event_id: UUID
    billable_tokens: int
    attempted_billable_tokens: int
    new_balance: int
    charge_type: ChargeType
    transaction_id: UUID | None = None
    original_status: ChargeStatus | None = None
    account_status: AccountStatus | None = None
    alert: AlertState | None = None

    @property
    def charged(self) -> bool:
        return self.status == ChargeStatus.CHARGED


@dataclass(frozen=True)
class RefundResult:
    transaction_id: UUID
    new_balance: int
    already_refunded: bool = False
    alert: AlertState | None = None


class MeteringService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.ledger = LedgerService(db)
        self.accounts = AccountService(db)

    async def get_event_by_idempotency_key(
        self, idempotency_key: str
    ) -> UsageEvent | None:
        stmt = select(UsageEvent).where(UsageEvent.idempotency_key == idempotency_key)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_event(self, usage_event_id: UUID) -> UsageEvent:
        event = await self.db.get(UsageEvent, usage_event_id)
        if event is None:
            raise UsageEventNotFoundException(usage_event_id)
        return event

    @staticmethod
    def _duplicate_result(event: UsageEvent) -> ChargeResult:
        return ChargeResult(
            status=ChargeStatus.DUPLICATE,
            usage_event_id=event.id,
            billable_tokens=event.billable_tokens,
            attempted_billable_tokens=event.attempted_billable_tokens,
            new_balance=event.balance_after or 0,
            charge_type=ChargeType(event.charge_type),
            transaction_id=event.transaction_id,
            original_status=ChargeStatus(event.charge_status),
        )

    def _replay_for(
        self, event: UsageEvent, user_id: UUID, scope_id: str
    ) -> ChargeResult:
        """Replay a stored outcome, but only to the account that produced it."""
        if event.user_id != user_id or event.scope_id != scope_id:
            self.logger.warning(
                "Idempotency key reused by another account",
                idempotency_key=event.idempotency_key,
                usage_event_id=str(event.id),
                user_id=str(user_id),
                scope_id=scope_id,
            )
            raise IdempotencyKeyConflictException(event.idempotency_key)
        return self._duplicate_result(event)

    async def record_usage(
        self,
        *,
        user_id: UUID,
        operation_type: OperationType,
        provider: Provider,
        model: str,
        usage: RawUsage,
        success: bool,
        idempotency_key: str,
        scope_id: str | None = None,
        error_message: str | None = None,
        metadata: TextUsageMetadata | ImageUsageMetadata | None = None,
    ) -> ChargeResult:
        """Record one AI operation and charge for it at most once.

        Not-charged outcomes (failed operation, insufficient balance,
        inactive account) are results, not exceptions; each still stores a
        UsageEvent so the key cannot be replayed into a charge later.
        """
        scope_id = scope_id or default_scope()
        existing = await self.get_event_by_idempotency_key(idempotency_key)
        if existing is not None:
            result = self._replay_for(existing, user_id, scope_id)
            self.logger.info(
                "Duplicate usage report",
                idempotency_key=idempotency_key,
                usage_event_id=str(existing.id),
            )
            return result

        settings = await SystemSettingsService(self.db).get_snapshot()
        account = await self.accounts.get_or_create(user_id, scope_id, settings)
        account_id = account.id
        quote = resolve_price(operation_type, provider, model, usage, settings)
        operation_type = OperationType(operation_type)
        provider = Provider(provider)
        request_metadata = (
            metadata.model_dump(exclude_none=True) if metadata is not None else None
        )
        charged_account: Account | None = None

        async def _charge() -> ChargeResult:
            nonlocal charged_account
            locked = await self.ledger.lock_account(account_id)

            if not locked.is_active:
                charge_status = ChargeStatus.ACCOUNT_NOT_ACTIVE
            elif not success:
                charge_status = ChargeStatus.FAILED_OPERATION
            elif locked.balance < quote.billable_tokens:
                charge_status = ChargeStatus.INSUFFICIENT_BALANCE
            else:
                charge_status = ChargeStatus.CHARGED

            event_id = uuid4()
            transaction = None
            # A zero-cost operation is recorded as charged without a ledger row
            if charge_status == ChargeStatus.CHARGED and quote.billable_tokens > 0:
                transaction = self.ledger.append(
                    locked,
                    TransactionType.USAGE,
                    -quote.billable_tokens,
                    description=f"{operation_type.value} ({provider.value}/{model})",
                    usage_event_id=event_id,
                    actual_tokens=quote.actual_tokens,
                    metadata={
                        "operation_type": operation_type.value,
                        "provider": provider.value,
                        "model": model,
                    },
                )
                charged_account = locked

            billable = (
                quote.billable_tokens if charge_status == ChargeStatus.CHARGED else 0
            )
            event = UsageEvent(
                id=event_id,
                account_id=locked.id,
                user_id=locked.user_id,
                scope_id=locked.scope_id,
                idempotency_key=idempotency_key,
                operation_type=operation_type,
                provider=provider,
                model=model,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
                total_tokens=usage.total_tokens,
                image_count=usage.image_count,
                image_size=usage.image_size,
                billable_tokens=billable,
                attempted_billable_tokens=quote.billable_tokens,
                charge_type=quote.charge_type,
                pricing_value=quote.pricing_value,
                charge_status=charge_status,
                success=success,
                error_message=error_message,
                request_metadata=request_metadata,
                transaction_id=transaction.id if transaction else None,
                balance_after=locked.balance,
            )
            self.db.add(event)
            return ChargeResult(
                status=charge_status,
                usage_event_id=event_id,
                billable_tokens=billable,
                attempted_billable_tokens=quote.billable_tokens,
                new_balance=locked.balance,
                charge_type=quote.charge_type,
                transaction_id=event.transaction_id,
                account_status=AccountStatus(locked.status),
            )

        async def _resolve_duplicate() -> ChargeResult | None:
            nonlocal charged_account
            charged_account = None
            winner = await self.get_event_by_idempotency_key(idempotency_key)
            if winner is None:
                return None
            return self._replay_for(winner, user_id, scope_id)

        result = await self.ledger.run_serialized(
            _charge, account_id=account_id, on_conflict=_resolve_duplicate
        )

        self.logger.info(
            "Usage recorded",
            account_id=str(account_id),
            usage_event_id=str(result.usage_event_id),
            status=result.status.value,
            operation_type=operation_type.value,
            model=model,
            billable_tokens=result.billable_tokens,
            attempted_billable_tokens=result.attempted_billable_tokens,
            balance=result.new_balance,
        )

        if charged_account is not None and result.status == ChargeStatus.CHARGED:
            result = replace(
                result, alert=evaluate_after_commit(charged_account, settings)
            )
        return result

    async def refund(
        self, usage_event_id: UUID, reason: str | None = None
    ) -> RefundResult:
        """Return the tokens of a charged usage event to its account.

        Refunding twice returns the first refund.
        """
        event = await self.get_event(usage_event_id)
        if not event.is_charged or event.transaction_id is None:
            raise UsageEventNotRefundableException(
                usage_event_id, ChargeStatus(event.charge_status).value
            )

        account_id = event.account_id
        amount = event.billable_tokens

        async def _existing_refund() -> RefundResult | None:
            transaction = await self.ledger.get_refund_for(usage_event_id)
            if transaction is None:
                return None
            account = await self.db.get(Account, account_id, populate_existing=True)
            return RefundResult(
                transaction_id=transaction.id,
                new_balance=account.balance,
                already_refunded=True,
            )

        existing = await _existing_refund()
        if existing is not None:
            return existing

        refunded_account: Account | None = None

        async def _apply() -> RefundResult:
            nonlocal refunded_account
            locked = await self.ledger.lock_account(account_id)
            transaction = self.ledger.append(
                locked,
                TransactionType.REFUND,
                amount,
                description=reason or f"Refund for usage event {usage_event_id}",
                usage_event_id=usage_event_id,
            )
            refunded_account = locked
            return RefundResult(
                transaction_id=transaction.id, new_balance=locked.balance
            )

        result = await self.ledger.run_serialized(
            _apply, account_id=account_id, on_conflict=_existing_refund
        )
        if result.already_refunded or refunded_account is None:
            return result

        self.logger.info(
            "Usage refunded",
            account_id=str(account_id),
            usage_event_id=str(usage_event_id),
            amount=amount,
            balance=result.new_balance,
        )
        settings = await SystemSettingsService(self.db).get_snapshot()
        return replace(result, alert=evaluate_after_commit(refunded_account, settings))

    async def get_usage_history(
        self,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
        operation_type: OperationType | None = None,
        scope_id: str | None = None,
    ) -> tuple[list[UsageEvent], int]:
        """Usage events of one account, newest first."""
        account = await self.accounts.get_account_or_none(user_id, scope_id)
        if account is None:
            return [], 0

        filters = [UsageEvent.account_id == account.id]
        if operation_type is not None:
            filters.append(UsageEvent.operation_type == OperationType(operation_type))

        stmt = (
            select(UsageEvent)
            .where(*filters)
            .order_by(UsageEvent.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count(UsageEvent.id)).where(*filters)
        events = (await self.db.execute(stmt)).scalars().all()
        total = (await self.db.execute(count_stmt)).scalar() or 0
        return list(events), total
