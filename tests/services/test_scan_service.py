"""Tests for ScanService punch import."""

from datetime import date, datetime
from uuid import uuid4

import pytest
from sqlalchemy import select

from labor_kernel.domain.attendance import ScanPunch
from labor_kernel.exceptions import ContractorNotFoundError
from labor_kernel.models.scan import ScanRecordModel
from labor_kernel.selectors.attendance_selector import AttendanceSelector


def test_punches_stored_with_derived_fields(
    session, scan_service, create_contractor, project_id, test_actor_id,
):
    contractor = create_contractor()
    batch_id = scan_service.record_punches(
        [
            ScanPunch(contractor.id, project_id, contractor.employee_id,
                      datetime(2025, 1, 2, 8, 22, 31)),
            ScanPunch(contractor.id, project_id, contractor.employee_id,
                      datetime(2025, 1, 2, 17, 3)),
        ],
        test_actor_id,
    )
    rows = session.execute(
        select(ScanRecordModel).order_by(ScanRecordModel.scan_time)
    ).scalars().all()
    assert len(rows) == 2

    arrival, departure = rows
    assert arrival.import_batch_id == batch_id
    assert arrival.rounded_time == datetime(2025, 1, 2, 8, 20)
    assert arrival.behavior == "regular_in"
    assert arrival.is_late
    assert arrival.late_minutes == 22
    assert arrival.work_date == date(2025, 1, 2)
    assert departure.behavior == "ot_evening"

    punches = AttendanceSelector(session).scan_punches(
        project_id, date(2025, 1, 1), date(2025, 1, 16),
    )
    assert len(punches) == 2


def test_unknown_contractor_rejected(scan_service, project_id, test_actor_id):
    with pytest.raises(ContractorNotFoundError):
        scan_service.record_punches(
            [ScanPunch(uuid4(), project_id, "000000", datetime(2025, 1, 2, 8))],
            test_actor_id,
        )


def test_explicit_batch_id_kept(scan_service, create_contractor, project_id, test_actor_id):
    contractor = create_contractor()
    batch = uuid4()
    returned = scan_service.record_punches(
        [ScanPunch(contractor.id, project_id, contractor.employee_id, datetime(2025, 1, 2, 8))],
        test_actor_id,
        import_batch_id=batch,
    )
    assert returned == batch
