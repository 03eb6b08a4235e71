"""
ScanService -- import of fingerprint-clock punches.

Each punch is stored with its derived fields: time rounded down to the
rounding granularity, behaviour classification and late minutes against the
configured work start.  Punches for unknown contractors reject the batch.
"""

from collections.abc import Iterable
from uuid import UUID, uuid4

from labor_engines.scan_reconciliation import (
    check_late,
    classify_scan_behavior,
    round_down_to_granularity,
)
from labor_kernel.domain.attendance import ScanPunch
from labor_kernel.exceptions import ContractorNotFoundError
from labor_kernel.logging_config import get_logger
from labor_kernel.models.scan import ScanRecordModel
from labor_kernel.selectors.contractor_selector import ContractorSelector
from labor_kernel.services.base import BaseService

logger = get_logger("services.scan")


class ScanService(BaseService):

    def record_punches(
        self,
        punches: Iterable[ScanPunch],
        actor_id: UUID,
        import_batch_id: UUID | None = None,
    ) -> UUID:
        """
        Store a batch of punches.

        Returns:
            The import batch id (generated when not supplied).

        Raises:
            ContractorNotFoundError: A punch references an unknown contractor.
        """
        batch = list(punches)
        batch_id = import_batch_id or uuid4()
        known = ContractorSelector(self.session).get_many({p.contractor_id for p in batch})

        for punch in batch:
            if punch.contractor_id not in known:
                raise ContractorNotFoundError(str(punch.contractor_id))
            is_late, late_minutes = check_late(punch.scan_time, self.policy.work_start)
            self.session.add(
                ScanRecordModel(
                    contractor_id=punch.contractor_id,
                    project_id=punch.project_id,
                    employee_id=punch.employee_id,
                    scan_time=punch.scan_time,
                    work_date=punch.effective_work_date,
                    rounded_time=round_down_to_granularity(
                        punch.scan_time, self.policy.rounding_minutes,
                    ),
                    behavior=classify_scan_behavior(punch.scan_time, self.policy).value,
                    is_late=is_late,
                    late_minutes=late_minutes,
                    import_batch_id=batch_id,
                    created_by_id=actor_id,
                )
            )
        self.session.flush()

        logger.info(
            "scan_batch_imported",
            extra={"import_batch_id": str(batch_id), "punch_count": len(batch)},
        )
        return batch_id
