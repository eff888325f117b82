from typing import List, Optional, Dict, Any
from scholance.database import models
from scholance.repositories.interfaces import IUserRepository
from .base import SqlalchemyRepository


class SqlalchemyUserRepository(SqlalchemyRepository, IUserRepository):
    def create(self, user_model: models.User) -> models.User:
        return self._persist(user_model)

    def find_by_id(self, user_id: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.id == user_id).first()

    def find_by_ids(self, user_ids: List[str]) -> List[models.User]:
        if not user_ids:
            return []
        return self.db.query(models.User).filter(models.User.id.in_(user_ids)).all()

    def save(self, user: models.User) -> models.User:
        return self._persist(user)

    def push_project(self, user_id: str, project_id: str) -> bool:
        user = self.find_by_id(user_id)
        if not user:
            return False
        projects = list(user.projects or [])
        if project_id not in projects:
            user.projects = projects + [project_id]
            self._commit()
        return True

    def pull_project(self, user_id: str, project_id: str) -> bool:
        user = self.find_by_id(user_id)
        if not user:
            return False
        projects = list(user.projects or [])
        if project_id in projects:
            projects.remove(project_id)
            user.projects = projects
            self._commit()
        return True

    def push_portfolio_entry(self, user_id: str, portfolio_entry: Dict[str, Any]) -> bool:
        user = self.find_by_id(user_id)
        if not user:
            return False
        user.portfolio_entries = list(user.portfolio_entries or []) + [portfolio_entry]
        self._commit()
        return True

    def set_organization(self, user_id: str, organization_id: Optional[str]) -> bool:
        user = self.find_by_id(user_id)
        if not user:
            return False
        user.organization_id = organization_id
        self._commit()
        return True
