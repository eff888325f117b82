from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from scholance.database import models


class IProjectRepository(ABC):
    @abstractmethod
    def create(self, project_model: models.Project) -> models.Project:
        """새로운 프로젝트를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, project_id: str) -> Optional[models.Project]:
        """고유 ID로 특정 프로젝트를 조회합니다."""
        pass

    @abstractmethod
    def find_by_ids(self, project_ids: List[str]) -> List[models.Project]:
        """여러 ID에 해당하는 프로젝트들을 한 번에 조회합니다. 없는 ID는 무시합니다."""
        pass

    @abstractmethod
    def list(self, query: Dict[str, Any]) -> List[models.Project]:
        """
        필터 조건에 맞는 프로젝트 목록을 조회합니다.

        Args:
            query: 이미 허용 목록으로 걸러진 필드-값 딕셔너리. (예: {'status': 'active'})
        """
        pass

    @abstractmethod
    def save(self, project: models.Project) -> models.Project:
        """변경된 프로젝트 문서 전체를 저장합니다."""
        pass

    @abstractmethod
    def delete(self, project: models.Project) -> bool:
        """특정 프로젝트를 데이터베이스에서 삭제합니다."""
        pass
