from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any
from scholance.database import models


class IUserRepository(ABC):
    @abstractmethod
    def create(self, user_model: models.User) -> models.User:
        """새로운 사용자를 데이터베이스에 생성합니다."""
        pass

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[models.User]:
        """고유 ID로 특정 사용자를 조회합니다."""
        pass

    @abstractmethod
    def find_by_ids(self, user_ids: List[str]) -> List[models.User]:
        """여러 ID에 해당하는 사용자들을 한 번에 조회합니다. 없는 ID는 무시합니다."""
        pass

    @abstractmethod
    def save(self, user: models.User) -> models.User:
        """변경된 사용자 문서 전체를 저장합니다."""
        pass

    @abstractmethod
    def delete(self, user: models.User) -> bool:
        """특정 사용자를 데이터베이스에서 삭제합니다."""
        pass

    @abstractmethod
    def push_project(self, user_id: str, project_id: str) -> bool:
        """사용자의 프로젝트 목록에 프로젝트 ID를 추가합니다. 사용자가 없으면 False."""
        pass

    @abstractmethod
    def pull_project(self, user_id: str, project_id: str) -> bool:
        """사용자의 프로젝트 목록에서 프로젝트 ID를 제거합니다. 사용자가 없으면 False."""
        pass

    @abstractmethod
    def push_portfolio_entry(self, user_id: str, portfolio_entry: Dict[str, Any]) -> bool:
        """사용자의 포트폴리오 목록 끝에 항목을 추가합니다. 사용자가 없으면 False."""
        pass

    @abstractmethod
    def set_organization(self, user_id: str, organization_id: Optional[str]) -> bool:
        """사용자의 소속 조직을 설정(또는 해제)합니다. 사용자가 없으면 False."""
        pass
