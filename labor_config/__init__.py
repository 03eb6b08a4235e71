"""
labor_config -- single public entrypoint for the wage policy.

Responsibility:
    ``get_active_policy()`` is the one way services obtain a ``WagePolicy``.
    Engines never load configuration; they receive the policy as an argument.

Resolution order:
    1. An explicit ``path`` argument.
    2. The ``LABOR_WAGE_POLICY_PATH`` environment variable.
    3. The ``wage_policy.yaml`` packaged next to this module.

Audit relevance:
    Every call emits a ``LABOR_CONFIG_TRACE`` log entry with the policy name,
    source path and checksum, tying each calculation to the exact policy
    document that governed it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from labor_config.loader import load_wage_policy
from labor_config.schema import (
    CalculationPolicy,
    DiscrepancyPolicy,
    LatePolicy,
    SocialSecurityPolicy,
    TimeWindow,
    WagePolicy,
)

_logger = logging.getLogger("labor_kernel.config")

POLICY_PATH_ENV = "LABOR_WAGE_POLICY_PATH"
DEFAULT_POLICY_PATH = Path(__file__).parent / "wage_policy.yaml"


def get_active_policy(path: Path | str | None = None) -> WagePolicy:
    """
    Load the wage policy in effect.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ValueError: If the document fails schema validation.
    """
    if path is not None:
        source = Path(path)
    elif os.environ.get(POLICY_PATH_ENV):
        source = Path(os.environ[POLICY_PATH_ENV])
    else:
        source = DEFAULT_POLICY_PATH

    policy = load_wage_policy(source)

    _logger.info(
        "LABOR_CONFIG_TRACE",
        extra={
            "trace_type": "LABOR_CONFIG_TRACE",
            "policy_name": policy.name,
            "policy_path": str(source),
            "checksum": policy.checksum,
        },
    )
    return policy


__all__ = [
    "CalculationPolicy",
    "DiscrepancyPolicy",
    "LatePolicy",
    "SocialSecurityPolicy",
    "TimeWindow",
    "WagePolicy",
    "get_active_policy",
    "POLICY_PATH_ENV",
    "DEFAULT_POLICY_PATH",
]
