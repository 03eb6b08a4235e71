"""Read-only query selectors for the labor kernel."""

from labor_kernel.selectors.attendance_selector import AttendanceSelector
from labor_kernel.selectors.base import BaseSelector
from labor_kernel.selectors.contractor_selector import ContractorSelector
from labor_kernel.selectors.discrepancy_selector import DiscrepancySelector
from labor_kernel.selectors.line_item_selector import LineItemSelector
from labor_kernel.selectors.project_selector import ProjectInfo, ProjectSelector
from labor_kernel.selectors.rate_profile_selector import RateProfileSelector

__all__ = [
    "AttendanceSelector",
    "BaseSelector",
    "ContractorSelector",
    "DiscrepancySelector",
    "LineItemSelector",
    "ProjectInfo",
    "ProjectSelector",
    "RateProfileSelector",
]
