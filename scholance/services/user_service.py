import logging
from typing import Dict, Any, List

from scholance.database import models
from scholance.repositories.interfaces import IUserRepository, IProjectRepository, IOrganizationRepository
from scholance.services.project_service import user_refs
from scholance.services.exceptions import ValidationError, UserNotFoundError

logger = logging.getLogger(__name__)


class UserService:
    USER_TYPES = ('student', 'business')

    def __init__(self, user_repo: IUserRepository, project_repo: IProjectRepository,
                 organization_repo: IOrganizationRepository):
        """
        UserService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            project_repo: 사용자가 참여한 프로젝트를 채우기 위한 리포지토리.
            organization_repo: 소속 조직 이름을 채우기 위한 리포지토리.
        """
        self.user_repo = user_repo
        self.project_repo = project_repo
        self.organization_repo = organization_repo

    def get(self, user_id: str) -> Dict[str, Any]:
        """
        사용자 프로필을 조회하고 참조를 채워서 반환합니다.

        - projects: 제목, 상태, liaison {id, name}, organization {id, name},
          제출물(학생 {id, name}과 상태만)이 채워진 프로젝트 목록
        - organization: 소속 조직 {id, name}
        - portfolioEntries: 각 스냅샷의 프로젝트 liaison/organization에 이름이 채워진 목록

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
        """
        user = self._get_user(user_id)
        data = user.to_dict()

        projects = self.project_repo.find_by_ids(list(user.projects or []))
        portfolio_entries = user.portfolio_entries or []

        organization_ids = {user.organization_id}
        organization_ids.update(p.organization_id for p in projects)
        organization_ids.update((e.get("project") or {}).get("organization") for e in portfolio_entries)
        organizations = {
            o.id: {"id": o.id, "name": o.name}
            for o in self.organization_repo.find_by_ids([oid for oid in organization_ids if oid])
        }

        user_ids = set()
        for project in projects:
            user_ids.add(project.liaison_id)
            user_ids.update(e.get("student") for e in project.entries or [])
        user_ids.update((e.get("project") or {}).get("liaison") for e in portfolio_entries)
        users = user_refs(self.user_repo, user_ids)

        def org_ref(organization_id):
            if not organization_id:
                return None
            return organizations.get(organization_id, {"id": organization_id, "name": None})

        data["organization"] = org_ref(user.organization_id)
        data["projects"] = [
            {
                "id": project.id,
                "title": project.title,
                "status": project.status,
                "liaison": users.get(project.liaison_id),
                "organization": org_ref(project.organization_id),
                "entries": [
                    {
                        "id": entry.get("id"),
                        "student": users.get(entry.get("student")),
                        "submissionStatus": entry.get("submissionStatus"),
                        "selected": entry.get("selected"),
                    }
                    for entry in project.entries or []
                ],
            }
            for project in projects
        ]

        populated_entries = []
        for entry in portfolio_entries:
            snapshot = dict(entry)
            if entry.get("project"):
                snapshot["project"] = dict(
                    entry["project"],
                    liaison=users.get(entry["project"].get("liaison")),
                    organization=org_ref(entry["project"].get("organization")),
                )
            populated_entries.append(snapshot)
        data["portfolioEntries"] = populated_entries
        return data

    def create_or_update(self, user_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        인증된 사용자 ID를 키로 사용자 프로필을 생성하거나 갱신합니다. (upsert)

        요청에 포함된 프로필 필드만 덮어쓰며, 프로젝트 목록과 포트폴리오는 이 경로로 바꿀 수 없습니다.

        Raises:
            ValidationError: 새 사용자인데 userType이나 email이 없거나, userType 값이 잘못되었을 때.
        """
        if "userType" in request and request["userType"] not in self.USER_TYPES:
            raise ValidationError("User data invalid")

        user = self.user_repo.find_by_id(user_id)
        if user is None:
            if not request.get("userType") or not request.get("email"):
                raise ValidationError("User data invalid")
            user = models.User(id=user_id, projects=[], portfolio_entries=[])
            self._apply_profile(user, request)
            logger.info("Creating user '%s' (%s)", user_id, user.user_type)
            return self.user_repo.create(user).to_dict()

        if "email" in request and not request["email"]:
            raise ValidationError("User data invalid")
        self._apply_profile(user, request)
        return self.user_repo.save(user).to_dict()

    def delete(self, user_id: str) -> bool:
        """
        사용자를 삭제합니다.

        Raises:
            UserNotFoundError: 사용자를 찾을 수 없을 때.
        """
        user = self._get_user(user_id)
        return self.user_repo.delete(user)

    def update_portfolio_entries(self, user_id: str, portfolio_entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """포트폴리오 목록 전체를 요청 값으로 교체합니다. (노출 여부, 순서 변경 등)"""
        if not isinstance(portfolio_entries, list):
            raise ValidationError("Portfolio entries must be a list")
        user = self._get_user(user_id)
        user.portfolio_entries = list(portfolio_entries)
        self.user_repo.save(user)
        return portfolio_entries

    # --- Helper Methods ---

    def _get_user(self, user_id: str) -> models.User:
        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        return user

    @staticmethod
    def _apply_profile(user: models.User, request: Dict[str, Any]):
        for field, attr in models.User.PROFILE_FIELDS.items():
            if field in request:
                setattr(user, attr, request[field])
