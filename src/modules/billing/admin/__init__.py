"""Admin control: adjustments, status changes and reports."""

from .reports import BillingReportService
from .service import AdjustmentResult, AdminBillingService

__all__ = ["AdjustmentResult", "AdminBillingService", "BillingReportService"]
