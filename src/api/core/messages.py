"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"
    CREATED = "CREATED"
    UPDATED = "UPDATED"

    # Authentication & Authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_SERVICE_SECRET = "INVALID_SERVICE_SECRET"
    AUTH_INSUFFICIENT_ROLE_PERMISSIONS = "AUTH_INSUFFICIENT_ROLE_PERMISSIONS"

    # Ledger & metering
    USAGE_RECORDED = "USAGE_RECORDED"
    USAGE_DUPLICATE = "USAGE_DUPLICATE"
    USAGE_NOT_CHARGED = "USAGE_NOT_CHARGED"
    USAGE_EVENT_NOT_FOUND = "USAGE_EVENT_NOT_FOUND"
    USAGE_EVENT_NOT_REFUNDABLE = "USAGE_EVENT_NOT_REFUNDABLE"
    IDEMPOTENCY_KEY_CONFLICT = "IDEMPOTENCY_KEY_CONFLICT"
    REFUND_RECORDED = "REFUND_RECORDED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ACCOUNT_NOT_ACTIVE = "ACCOUNT_NOT_ACTIVE"
    ACCOUNT_UPDATED = "ACCOUNT_UPDATED"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    LEDGER_CONSISTENCY_VIOLATION = "LEDGER_CONSISTENCY_VIOLATION"
    TOKENS_GRANTED = "TOKENS_GRANTED"
    TOKENS_DEDUCTED = "TOKENS_DEDUCTED"
    ADJUSTMENT_REASON_REQUIRED = "ADJUSTMENT_REASON_REQUIRED"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    LEDGER_VERIFIED = "LEDGER_VERIFIED"

    # Payment webhooks
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"

    # Pricing
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    # Success messages
    MessageCode.SUCCESS: "Operation completed successfully",
    MessageCode.CREATED: "Resource created successfully",
    MessageCode.UPDATED: "Resource updated successfully",
    # Authentication & Authorization
    MessageCode.AUTH_REQUIRED: "Authentication required",
    MessageCode.FORBIDDEN: "Access denied",
    MessageCode.INVALID_TOKEN: "Invalid authentication token",
    MessageCode.INVALID_SERVICE_SECRET: "Invalid or missing billing secret",
    MessageCode.AUTH_INSUFFICIENT_ROLE_PERMISSIONS: "Insufficient role permissions",
    # Ledger & metering
    MessageCode.USAGE_RECORDED: "Usage recorded and charged",
    MessageCode.USAGE_DUPLICATE: "Usage already recorded for this idempotency key",
    MessageCode.USAGE_NOT_CHARGED: "Usage recorded without charge",
    MessageCode.USAGE_EVENT_NOT_FOUND: "Usage event not found",
    MessageCode.USAGE_EVENT_NOT_REFUNDABLE: "Usage event was not charged and cannot be refunded",
    MessageCode.IDEMPOTENCY_KEY_CONFLICT: "Idempotency key belongs to another account",
    MessageCode.REFUND_RECORDED: "Refund recorded",
    MessageCode.INSUFFICIENT_BALANCE: "Insufficient token balance",
    MessageCode.ACCOUNT_NOT_FOUND: "Token account not found",
    MessageCode.ACCOUNT_NOT_ACTIVE: "Token account is not active",
    MessageCode.ACCOUNT_UPDATED: "Token account updated",
    MessageCode.INVALID_AMOUNT: "Token amount must be a positive integer",
    MessageCode.CONCURRENT_MODIFICATION: "Account was modified concurrently, please retry",
    MessageCode.LEDGER_CONSISTENCY_VIOLATION: "Ledger consistency check failed",
    MessageCode.TOKENS_GRANTED: "Tokens granted",
    MessageCode.TOKENS_DEDUCTED: "Tokens deducted",
    MessageCode.ADJUSTMENT_REASON_REQUIRED: "A reason is required for balance adjustments",
    MessageCode.INVALID_STATUS_TRANSITION: "Account status transition not allowed",
    MessageCode.LEDGER_VERIFIED: "Ledger replay matches the cached balance",
    # Payment webhooks
    MessageCode.WEBHOOK_SIGNATURE_INVALID: "Invalid webhook signature",
    # Pricing
    MessageCode.PACKAGE_NOT_FOUND: "Pricing package not found",
    MessageCode.SETTINGS_UPDATED: "System settings updated",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.INTERNAL_SERVER_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class PaginationInfo(BaseModel):
    """Common pagination information."""

    total: int
    limit: int
    offset: int
    has_more: bool


class Paginated(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: list[T]
    pagination: PaginationInfo


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
