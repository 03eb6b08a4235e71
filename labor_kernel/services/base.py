"""
BaseService -- abstract base for all labor kernel services.

Responsibility:
    Common constructor for write-side services.  Services receive a
    SQLAlchemy ``Session`` and persist with ``session.flush()`` -- never
    ``session.commit()``.  The caller (``session_scope()``, the calculation
    orchestrator, or a test) owns commit and rollback.

Failure modes:
    - A subclass that commits breaks the all-or-nothing guarantee of the
      calculation pass.
"""

from abc import ABC

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from labor_config import WagePolicy
from labor_kernel.domain.clock import Clock, SystemClock
from labor_kernel.exceptions import OptimisticLockError


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never commits or rolls back.
        - Time comes from the injected Clock; policy from the injected
          WagePolicy (defaults shown in ``labor_config.schema``).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: WagePolicy | None = None,
    ):
        self.session = session
        self._clock = clock or SystemClock()
        self._policy = policy or WagePolicy()

    @property
    def policy(self) -> WagePolicy:
        return self._policy

    def _flush_versioned(self, entity_type: str, entity_id) -> None:
        """
        Flush, mapping a stale version counter to OptimisticLockError.

        Raises:
            OptimisticLockError: If another transaction updated the row.
        """
        try:
            self.session.flush()
        except StaleDataError as exc:
            raise OptimisticLockError(entity_type, str(entity_id)) from exc
