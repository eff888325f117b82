from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from scholance.database import models


class IOrganizationRepository(ABC):
    @abstractmethod
    def create(self, organization_model: models.Organization) -> models.Organization:
        """새로운 조직을 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, organization_id: str) -> Optional[models.Organization]:
        """고유 ID로 특정 조직을 조회합니다."""
        pass

    @abstractmethod
    def find_by_ids(self, organization_ids: List[str]) -> List[models.Organization]:
        """여러 ID에 해당하는 조직들을 한 번에 조회합니다. 없는 ID는 무시합니다."""
        pass

    @abstractmethod
    def list(self, query: Dict[str, Any]) -> List[models.Organization]:
        """필터 조건에 맞는 조직 목록을 조회합니다. (예: {'domain': 'acme.com'})"""
        pass

    @abstractmethod
    def save(self, organization: models.Organization) -> models.Organization:
        """변경된 조직 문서 전체를 저장합니다."""
        pass

    @abstractmethod
    def delete(self, organization: models.Organization) -> bool:
        """특정 조직을 데이터베이스에서 삭제합니다."""
        pass
