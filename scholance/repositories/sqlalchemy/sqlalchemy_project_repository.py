from typing import List, Optional, Dict, Any
from scholance.database import models
from scholance.repositories.interfaces import IProjectRepository
from .base import SqlalchemyRepository


class SqlalchemyProjectRepository(SqlalchemyRepository, IProjectRepository):
    def create(self, project_model: models.Project) -> models.Project:
        return self._persist(project_model)

    def find_by_id(self, project_id: str) -> Optional[models.Project]:
        return self.db.query(models.Project).filter(models.Project.id == project_id).first()

    def find_by_ids(self, project_ids: List[str]) -> List[models.Project]:
        if not project_ids:
            return []
        return self.db.query(models.Project).filter(models.Project.id.in_(project_ids)).all()

    def list(self, query: Dict[str, Any]) -> List[models.Project]:
        search = self.db.query(models.Project)
        if query.get("status"):
            search = search.filter(models.Project.status == query["status"])
        return search.all()

    def save(self, project: models.Project) -> models.Project:
        return self._persist(project)
