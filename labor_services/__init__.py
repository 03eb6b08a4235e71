"""
Module: labor_services
Responsibility:
    Orchestration over the kernel: the wage period calculation pass.
"""

from labor_services.period_calculation import (
    CalculationResult,
    PeriodCalculationOrchestrator,
    PeriodLockRegistry,
)

__all__ = [
    "CalculationResult",
    "PeriodCalculationOrchestrator",
    "PeriodLockRegistry",
]
