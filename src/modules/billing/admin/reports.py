from __future__ import annotations

from sqlalchemy import desc, func, or_, outerjoin, select

from src.api.admin.schemas import (
    AdminAccountSummary,
    AdminUserSummary,
    ModelUsageStats,
    OperationUsageStats,
    TokenStats,
)
from src.api.core.messages import Paginated, PaginationInfo
from src.core.base import BaseService
from src.database.models import (
    Account,
    AccountStatus,
    ChargeStatus,
    Transaction,
    TransactionType,
    UsageEvent,
    User,
)

# Raw tokens of a usage event; image events report none
_actual_tokens = func.coalesce(
    UsageEvent.total_tokens,
    func.coalesce(UsageEvent.input_tokens, 0)
    + func.coalesce(UsageEvent.output_tokens, 0),
)
_charged = UsageEvent.charge_status == ChargeStatus.CHARGED


class BillingReportService(BaseService):
    """Read-only aggregates over accounts, usage and the ledger."""

    async def get_token_stats(self) -> TokenStats:
        usage_stmt = select(
            func.coalesce(func.sum(UsageEvent.billable_tokens), 0),
            func.coalesce(func.sum(_actual_tokens), 0),
        ).where(_charged)
        billable, actual = (await self.db.execute(usage_stmt)).one()

        revenue_stmt = select(
            func.coalesce(func.sum(Transaction.amount_minor_units), 0)
        ).where(
            Transaction.transaction_type.in_(
                [TransactionType.PURCHASE, TransactionType.AUTO_RECHARGE]
            )
        )
        revenue = (await self.db.execute(revenue_stmt)).scalar() or 0

        accounts_stmt = select(
            func.count(Account.id),
            func.coalesce(func.sum(Account.balance), 0),
            func.count(Account.id).filter(Account.status == AccountStatus.ACTIVE),
        )
        total_accounts, total_balance, active_accounts = (
            await self.db.execute(accounts_stmt)
        ).one()

        billable = int(billable)
        actual = int(actual)
        return TokenStats(
            total_billable_tokens_used=billable,
            total_actual_tokens_used=actual,
            total_revenue_minor_units=int(revenue),
            active_accounts=active_accounts,
            total_accounts=total_accounts,
            total_balance=int(total_balance),
            average_balance=(
                int(total_balance) / total_accounts if total_accounts else 0.0
            ),
            profit_margin=(
                (billable - actual) / billable * 100 if billable > 0 else 0.0
            ),
        )

    async def get_model_usage_stats(self) -> list[ModelUsageStats]:
        """Charged usage per model, most billable tokens first."""
        billable = func.coalesce(func.sum(UsageEvent.billable_tokens), 0)
        stmt = (
            select(
                UsageEvent.model,
                func.count(UsageEvent.id),
                billable.label("billable_tokens"),
                func.coalesce(func.sum(_actual_tokens), 0),
            )
            .where(_charged)
            .group_by(UsageEvent.model)
            .order_by(desc("billable_tokens"), UsageEvent.model)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            ModelUsageStats(
                model=row[0],
                operation_count=row[1],
                billable_tokens=int(row[2]),
                actual_tokens=int(row[3]),
            )
            for row in rows
        ]

    async def get_operation_stats(self) -> list[OperationUsageStats]:
        """Charged usage per operation type, most frequent first."""
        operation_count = func.count(UsageEvent.id)
        stmt = (
            select(
                UsageEvent.operation_type,
                operation_count.label("operation_count"),
                func.coalesce(func.sum(UsageEvent.billable_tokens), 0),
            )
            .where(_charged)
            .group_by(UsageEvent.operation_type)
            .order_by(desc("operation_count"), UsageEvent.operation_type)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            OperationUsageStats(
                operation_type=row[0],
                operation_count=row[1],
                billable_tokens=int(row[2]),
            )
            for row in rows
        ]

    async def list_accounts(
        self,
        limit: int = 100,
        offset: int = 0,
        status: AccountStatus | None = None,
    ) -> Paginated[AdminAccountSummary]:
        """Accounts joined with their user's email and name when known."""
        filters = []
        if status is not None:
            filters.append(Account.status == AccountStatus(status))

        stmt = (
            select(Account, User)
            .select_from(outerjoin(Account, User, Account.user_id == User.id))
            .where(*filters)
            .order_by(Account.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count(Account.id)).where(*filters)

        rows = (await self.db.execute(stmt)).all()
        total = (await self.db.execute(count_stmt)).scalar() or 0

        items = [
            AdminAccountSummary(
                id=account.id,
                user_id=account.user_id,
                scope_id=account.scope_id,
                balance=account.balance,
                lifetime_purchased=account.lifetime_purchased,
                lifetime_used=account.lifetime_used,
                status=account.status,
                auto_recharge_enabled=account.auto_recharge_enabled,
                last_purchase_at=account.last_purchase_at,
                created_at=account.created_at,
                user=(
                    AdminUserSummary(
                        id=user.id, email=user.email, name=user.name, roles=user.roles
                    )
                    if user is not None
                    else None
                ),
            )
            for account, user in rows
        ]
        return Paginated(
            items=items,
            pagination=PaginationInfo(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(items) < total,
            ),
        )

    async def search_users(self, query: str, limit: int = 20) -> list[User]:
        """Case-insensitive substring match on email or name."""
        pattern = f"%{query.strip().lower()}%"
        stmt = (
            select(User)
            .where(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.name).like(pattern),
                )
            )
            .order_by(User.email)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
