import logging
from typing import Dict, Any, List

from scholance.config import Config
from scholance.database import models
from scholance.database.models import embedded
from scholance.repositories.interfaces import IOrganizationRepository, IUserRepository
from scholance.services.workflow import Workflow
from scholance.services.exceptions import (
    ValidationError, AuthorizationError, OrganizationNotFoundError, UserNotFoundError,
    LiaisonConflictError,
)

logger = logging.getLogger(__name__)

ANY_MANAGER = 'any-manager'
LIAISON_ONLY = 'liaison-only'


class OrganizationService:
    """조직 프로필과 조직에 속한 liaison(기업 담당자) 목록을 관리합니다."""

    VALID_LIST_QUERY_PARAMS = ('domain',)
    UPDATE_POLICIES = (ANY_MANAGER, LIAISON_ONLY)

    def __init__(self, organization_repo: IOrganizationRepository, user_repo: IUserRepository,
                 update_policy: str = None):
        """
        OrganizationService를 초기화합니다.

        Args:
            organization_repo: 조직 데이터에 접근하기 위한 리포지토리.
            user_repo: liaison 사용자를 조회하고 소속 조직을 갱신하기 위한 리포지토리.
            update_policy: 조직 수정 권한 정책. 'any-manager'이면 manage:project 스코프를 가진
                누구나, 'liaison-only'이면 해당 조직의 liaison만 조직을 수정할 수 있습니다.
        """
        self.organization_repo = organization_repo
        self.user_repo = user_repo
        self.update_policy = update_policy or Config.ORGANIZATION_UPDATE_POLICY
        if self.update_policy not in self.UPDATE_POLICIES:
            raise ValueError(f"Unknown organization update policy: '{self.update_policy}'")

    def list(self, query_params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        """필터 조건(domain)에 맞는 조직 목록을 조회합니다."""
        query = {k: v for k, v in (query_params or {}).items() if k in self.VALID_LIST_QUERY_PARAMS}
        return [organization.to_dict() for organization in self.organization_repo.list(query)]

    def get(self, organization_id: str) -> Dict[str, Any]:
        """
        ID로 조직을 조회합니다. liaisons는 id, name, photo, position이 채워진 사용자 목록입니다.

        Raises:
            OrganizationNotFoundError: 조직을 찾을 수 없을 때.
        """
        organization = self._get_organization(organization_id)
        users = {u.id: u for u in self.user_repo.find_by_ids(list(organization.liaisons or []))}

        data = organization.to_dict()
        data["liaisons"] = [
            {"id": u.id, "name": u.name, "photo": u.photo, "position": u.position}
            for u in (users.get(liaison_id) for liaison_id in organization.liaisons or [])
            if u is not None
        ]
        return data

    def create(self, request: Dict[str, Any], auth_id: str) -> Dict[str, Any]:
        """
        새 조직을 만들고 요청자를 첫 번째 liaison으로 연결합니다.

        요청자의 소속 조직 설정에 실패하면 방금 저장한 조직을 삭제해 되돌립니다.

        Raises:
            ValidationError: name 또는 domain이 없을 때.
            UserNotFoundError: 요청자 사용자 문서가 없어 연결할 수 없을 때. (조직 생성은 취소됨)
        """
        if not request.get("name") or not request.get("domain"):
            raise ValidationError("Incorrect organization data")

        organization = models.Organization(id=embedded.new_id(), liaisons=[auth_id])
        for field in models.Organization.PROFILE_FIELDS:
            setattr(organization, field, request.get(field))

        def save_organization():
            self.organization_repo.create(organization)

        def delete_organization():
            self.organization_repo.delete(organization)

        def link_creator():
            if not self.user_repo.set_organization(auth_id, organization.id):
                raise UserNotFoundError(f"User with id '{auth_id}' not found.")

        (Workflow("create organization")
         .step("save organization", save_organization, compensate=delete_organization)
         .step("link creator as liaison", link_creator)
         .run())
        logger.info("Organization '%s' created by '%s'", organization.id, auth_id)
        return organization.to_dict()

    def update(self, organization_id: str, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        조직 프로필 필드 중 요청에 포함된 값만 갱신합니다. liaisons는 이 경로로 바꿀 수 없습니다.

        Raises:
            OrganizationNotFoundError: 조직을 찾을 수 없을 때.
            AuthorizationError: 'liaison-only' 정책에서 요청자가 조직의 liaison이 아닐 때.
            ValidationError: name 또는 domain을 빈 값으로 바꾸려 할 때.
        """
        organization = self._get_organization(organization_id)
        self._check_update_policy(organization, auth_id)

        for field in ("name", "domain"):
            if field in request and not request[field]:
                raise ValidationError("Incorrect organization data")
        for field in models.Organization.PROFILE_FIELDS:
            if field in request:
                setattr(organization, field, request[field])
        return self.organization_repo.save(organization).to_dict()

    def add_liaison_to_organization(self, organization_id: str, user_id: str, auth_id: str) -> Dict[str, Any]:
        """
        기업 사용자를 조직의 liaison으로 추가하고, 그 사용자의 소속 조직을 설정합니다.

        Raises:
            OrganizationNotFoundError: 조직을 찾을 수 없을 때.
            AuthorizationError: 정책상 수정 권한이 없거나, 대상 사용자가 기업 사용자가 아닐 때.
            UserNotFoundError: 대상 사용자를 찾을 수 없을 때.
            LiaisonConflictError: 이미 조직의 liaison일 때.
        """
        organization = self._get_organization(organization_id)
        self._check_update_policy(organization, auth_id)

        user = self.user_repo.find_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with id '{user_id}' not found.")
        if user.user_type != 'business':
            raise AuthorizationError("Must be a Business user to add organization")
        if user_id in (organization.liaisons or []):
            raise LiaisonConflictError("User is already associated with this organization")

        def add_liaison():
            organization.liaisons = list(organization.liaisons or []) + [user_id]
            self.organization_repo.save(organization)

        def remove_liaison():
            organization.liaisons = [liaison_id for liaison_id in organization.liaisons if liaison_id != user_id]
            self.organization_repo.save(organization)

        def set_user_organization():
            if not self.user_repo.set_organization(user_id, organization.id):
                raise UserNotFoundError(f"User with id '{user_id}' not found.")

        (Workflow("add liaison")
         .step("add liaison", add_liaison, compensate=remove_liaison)
         .step("set user organization", set_user_organization)
         .run())
        return organization.to_dict()

    def remove_liaison_from_organization(self, organization_id: str, user_id: str, auth_id: str) -> Dict[str, Any]:
        """
        조직의 liaison 목록에서 사용자를 제거하고, 그 사용자의 소속 조직을 해제합니다.

        Raises:
            OrganizationNotFoundError: 조직을 찾을 수 없을 때.
            AuthorizationError: 정책상 수정 권한이 없을 때.
            LiaisonConflictError: 사용자가 조직의 liaison이 아닐 때.
        """
        organization = self._get_organization(organization_id)
        self._check_update_policy(organization, auth_id)
        if user_id not in (organization.liaisons or []):
            raise LiaisonConflictError("User is not currently associated with this organization")

        def remove_liaison():
            organization.liaisons = [liaison_id for liaison_id in organization.liaisons if liaison_id != user_id]
            self.organization_repo.save(organization)

        def clear_user_organization():
            if not self.user_repo.set_organization(user_id, None):
                raise UserNotFoundError(f"User with id '{user_id}' not found.")

        (Workflow("remove liaison")
         .step("remove liaison", remove_liaison)
         .step("clear user organization", clear_user_organization, required=False)
         .run())
        return organization.to_dict()

    # --- Helper Methods ---

    def _get_organization(self, organization_id: str) -> models.Organization:
        organization = self.organization_repo.find_by_id(organization_id)
        if not organization:
            raise OrganizationNotFoundError("Organization not found")
        return organization

    def _check_update_policy(self, organization: models.Organization, auth_id: str):
        if self.update_policy == LIAISON_ONLY and auth_id not in (organization.liaisons or []):
            logger.info("User '%s' denied on organization '%s': not a liaison", auth_id, organization.id)
            raise AuthorizationError("You must be a liaison of this organization to update it")
