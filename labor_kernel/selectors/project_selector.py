"""
Module: labor_kernel.selectors.project_selector
Responsibility: Project location lookups through an injectable QueryCache.
Architecture position: Kernel > Selectors.

The cache is passed in; NullCache (the default) reads through every time.
"""

from dataclasses import dataclass
from uuid import UUID

from labor_kernel.exceptions import ProjectNotFoundError
from labor_kernel.models.contractor import ProjectLocationModel
from labor_kernel.selectors.base import BaseSelector
from labor_kernel.utils.cache import NullCache, QueryCache


@dataclass(frozen=True)
class ProjectInfo:
    id: UUID
    code: str
    name: str
    is_active: bool


class ProjectSelector(BaseSelector):

    def __init__(self, session, cache: QueryCache | None = None):
        super().__init__(session)
        self.cache = cache if cache is not None else NullCache()

    @staticmethod
    def cache_key(project_id: UUID) -> str:
        return f"project:{project_id}"

    def get(self, project_id: UUID) -> ProjectInfo:
        """
        Raises:
            ProjectNotFoundError: If no such project exists.
        """
        key = self.cache_key(project_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        row = self.session.get(ProjectLocationModel, project_id)
        if row is None:
            raise ProjectNotFoundError(str(project_id))
        info = ProjectInfo(id=row.id, code=row.code, name=row.name, is_active=row.is_active)
        self.cache.set(key, info)
        return info
