"""Ledger and metering errors.

Each error is scoped to a single account; none of them leave partial ledger
state behind.
"""

from uuid import UUID

from fastapi import status

from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode


class InvalidAmountException(TokenMeterException):
    def __init__(self, amount, field: str = "amount"):
        super().__init__(
            MessageCode.INVALID_AMOUNT,
            status.HTTP_400_BAD_REQUEST,
            {"field": field, "value": amount},
        )


class InsufficientBalanceException(TokenMeterException):
    def __init__(self, balance: int, required: int, **context):
        self.balance = balance
        self.required = required
        super().__init__(
            MessageCode.INSUFFICIENT_BALANCE,
            status.HTTP_402_PAYMENT_REQUIRED,
            {"balance": balance, "required": required, **context},
        )


class AccountNotActiveException(TokenMeterException):
    def __init__(self, account_status: str, **context):
        super().__init__(
            MessageCode.ACCOUNT_NOT_ACTIVE,
            status.HTTP_403_FORBIDDEN,
            {"status": account_status, **context},
        )


class AccountNotFoundException(TokenMeterException):
    def __init__(self, user_id: UUID, scope_id: str):
        super().__init__(
            MessageCode.ACCOUNT_NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            {"user_id": str(user_id), "scope_id": scope_id},
        )


class UnauthorizedBillingActionException(TokenMeterException):
    def __init__(self, action: str, required_role: str):
        super().__init__(
            MessageCode.AUTH_INSUFFICIENT_ROLE_PERMISSIONS,
            status.HTTP_403_FORBIDDEN,
            {"action": action, "required_role": required_role},
        )


class ConcurrentModificationException(TokenMeterException):
    def __init__(self, account_id: UUID | None, attempts: int):
        super().__init__(
            MessageCode.CONCURRENT_MODIFICATION,
            status.HTTP_409_CONFLICT,
            {
                "account_id": str(account_id) if account_id else None,
                "attempts": attempts,
            },
        )


class ConsistencyViolationException(TokenMeterException):
    """Raised when the cached balance disagrees with the ledger.

    Never recovered from automatically.
    """

    def __init__(self, account_id: UUID, reason: str, **context):
        self.account_id = account_id
        self.reason = reason
        super().__init__(
            MessageCode.LEDGER_CONSISTENCY_VIOLATION,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"account_id": str(account_id), "reason": reason, **context},
        )


class UsageEventNotFoundException(TokenMeterException):
    def __init__(self, usage_event_id: UUID):
        super().__init__(
            MessageCode.USAGE_EVENT_NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            {"usage_event_id": str(usage_event_id)},
        )


class UsageEventNotRefundableException(TokenMeterException):
    def __init__(self, usage_event_id: UUID, charge_status: str):
        super().__init__(
            MessageCode.USAGE_EVENT_NOT_REFUNDABLE,
            status.HTTP_409_CONFLICT,
            {"usage_event_id": str(usage_event_id), "charge_status": charge_status},
        )


class PackageNotFoundException(TokenMeterException):
    def __init__(self, package_id: UUID):
        super().__init__(
            MessageCode.PACKAGE_NOT_FOUND,
            status.HTTP_404_NOT_FOUND,
            {"package_id": str(package_id)},
        )


class AdjustmentReasonRequiredException(TokenMeterException):
    def __init__(self):
        super().__init__(
            MessageCode.ADJUSTMENT_REASON_REQUIRED,
            status.HTTP_400_BAD_REQUEST,
            {"field": "reason"},
        )


class InvalidStatusTransitionException(TokenMeterException):
    def __init__(self, account_id: UUID, current: str, target: str):
        super().__init__(
            MessageCode.INVALID_STATUS_TRANSITION,
            status.HTTP_409_CONFLICT,
            {"account_id": str(account_id), "current": current, "target": target},
        )


class WebhookSignatureException(TokenMeterException):
    def __init__(self, reason: str):
        super().__init__(
            MessageCode.WEBHOOK_SIGNATURE_INVALID,
            status.HTTP_400_BAD_REQUEST,
            {"reason": reason},
        )


class IdempotencyKeyConflictException(TokenMeterException):
    """The key was already used by a report for a different user or scope."""

    def __init__(self, idempotency_key: str):
        super().__init__(
            MessageCode.IDEMPOTENCY_KEY_CONFLICT,
            status.HTTP_409_CONFLICT,
            {"idempotency_key": idempotency_key},
        )
