"""
Labor Kernel - wage period core

Persistence, services, and read-side selectors for the daily-contractor
wage engine:
- Attendance capture with edit history
- Scan import and discrepancy tracking
- Wage period lifecycle (draft -> calculated -> approved -> paid -> locked)
- Typed errors and structured logging
"""

__version__ = "0.1.0"
