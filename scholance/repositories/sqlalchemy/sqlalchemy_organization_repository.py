from typing import List, Optional, Dict, Any
from scholance.database import models
from scholance.repositories.interfaces import IOrganizationRepository
from .base import SqlalchemyRepository


class SqlalchemyOrganizationRepository(SqlalchemyRepository, IOrganizationRepository):
    def create(self, organization_model: models.Organization) -> models.Organization:
        return self._persist(organization_model)

    def find_by_id(self, organization_id: str) -> Optional[models.Organization]:
        return self.db.query(models.Organization).filter(models.Organization.id == organization_id).first()

    def find_by_ids(self, organization_ids: List[str]) -> List[models.Organization]:
        if not organization_ids:
            return []
        return self.db.query(models.Organization).filter(models.Organization.id.in_(organization_ids)).all()

    def list(self, query: Dict[str, Any]) -> List[models.Organization]:
        search = self.db.query(models.Organization)
        if query.get("domain"):
            search = search.filter(models.Organization.domain == query["domain"])
        return search.order_by(models.Organization.name.asc()).all()

    def save(self, organization: models.Organization) -> models.Organization:
        return self._persist(organization)
