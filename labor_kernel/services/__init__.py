"""Write-side services for the labor kernel."""

from labor_kernel.services.attendance_service import AttendanceService
from labor_kernel.services.base import BaseService
from labor_kernel.services.contractor_service import ContractorService
from labor_kernel.services.discrepancy_service import DiscrepancyService
from labor_kernel.services.scan_service import ScanService
from labor_kernel.services.wage_period_service import WagePeriodService

__all__ = [
    "AttendanceService",
    "BaseService",
    "ContractorService",
    "DiscrepancyService",
    "ScanService",
    "WagePeriodService",
]
