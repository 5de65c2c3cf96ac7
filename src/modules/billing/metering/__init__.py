"""Usage metering and refunds."""

from .metadata import ImageUsageMetadata, TextUsageMetadata, UsageMetadata
from .service import ChargeResult, MeteringService, RefundResult

__all__ = [
    "ChargeResult",
    "ImageUsageMetadata",
    "MeteringService",
    "RefundResult",
    "TextUsageMetadata",
    "UsageMetadata",
]
