"""ORM models for the labor kernel."""

from labor_kernel.models.attendance import AttendanceRecordModel, EditHistoryModel
from labor_kernel.models.contractor import DailyContractorModel, ProjectLocationModel
from labor_kernel.models.discrepancy import ScanDiscrepancyModel
from labor_kernel.models.rate_profile import (
    AdditionalExpenseModel,
    AdditionalIncomeModel,
    DCRateProfileModel,
)
from labor_kernel.models.scan import ScanRecordModel
from labor_kernel.models.wage_period import WagePeriodModel

__all__ = [
    "AttendanceRecordModel",
    "EditHistoryModel",
    "DailyContractorModel",
    "ProjectLocationModel",
    "ScanDiscrepancyModel",
    "DCRateProfileModel",
    "AdditionalIncomeModel",
    "AdditionalExpenseModel",
    "ScanRecordModel",
    "WagePeriodModel",
]
