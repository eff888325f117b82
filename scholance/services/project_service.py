import copy
import logging
import math
from datetime import datetime
from typing import Dict, Any, List, Optional

from scholance.auth import is_owner
from scholance.config import Config
from scholance.database import models
from scholance.database.models import embedded
from scholance.repositories.interfaces import IProjectRepository, IUserRepository, IOrganizationRepository
from scholance.services.asset_service import AssetService
from scholance.services.storage_service import StorageService
from scholance.services.workflow import Workflow
from scholance.services.exceptions import (
    ValidationError, AuthorizationError, ProjectNotFoundError, EntryNotFoundError,
    UserNotFoundError, NotFoundError, StorageError,
)

logger = logging.getLogger(__name__)


def parse_deadline(value) -> Optional[datetime]:
    """ISO-8601 문자열을 datetime으로 바꿉니다. 비어 있으면 None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError("Incorrect project data: deadline must be an ISO-8601 date")


class ProjectService:
    """프로젝트의 조회, 생성, 수정, 상태 전이와 프로젝트에 포함된 자료/댓글 관리를 제공합니다."""

    VALID_LIST_QUERY_PARAMS = ('status',)
    STATUSES = ('active', 'closed', 'complete')
    REWARD_STATUSES = ('pending', 'paid', 'cancelled')
    REQUIRED_FIELDS = ('title', 'summary', 'organization')

    def __init__(self, project_repo: IProjectRepository, user_repo: IUserRepository,
                 organization_repo: IOrganizationRepository, storage_service: StorageService,
                 asset_service: AssetService = None, projects_bucket: str = None):
        """
        ProjectService를 초기화합니다.

        Args:
            project_repo: 프로젝트 데이터에 접근하기 위한 리포지토리.
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리 (이름 채우기, 포트폴리오 추가용).
            organization_repo: 조직 데이터에 접근하기 위한 리포지토리 (조직 이름 채우기용).
            storage_service: 프로젝트 자료 파일을 저장하는 오브젝트 스토리지 서비스.
            asset_service: Asset 생성과 업로드 파일 해석을 담당하는 서비스.
            projects_bucket: 프로젝트 자료를 저장할 버킷 이름.
        """
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.organization_repo = organization_repo
        self.storage_service = storage_service
        self.asset_service = asset_service or AssetService()
        self.projects_bucket = projects_bucket or Config.S3_PROJECTS_BUCKET

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def list(self, query_params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        """
        필터 조건에 맞는 프로젝트 목록을 조회합니다. 허용되지 않은 필터 키는 조용히 버립니다.

        Returns:
            조직 이름이 채워진 프로젝트 딕셔너리의 리스트.
        """
        query = self.get_valid_list_query_params(query_params)
        projects = self.project_repo.list(query)

        organization_ids = list({p.organization_id for p in projects if p.organization_id})
        organizations = {o.id: o for o in self.organization_repo.find_by_ids(organization_ids)}

        results = []
        for project in projects:
            data = project.to_dict()
            organization = organizations.get(project.organization_id)
            data["organization"] = {
                "id": project.organization_id,
                "name": organization.name if organization else None,
            }
            results.append(data)
        return results

    def get(self, project_id: str, reveal_entries: bool = False) -> Dict[str, Any]:
        """
        ID로 특정 프로젝트를 조회하고, 참조된 조직/사용자 이름을 채워서 반환합니다.

        Args:
            project_id: 조회할 프로젝트의 ID.
            reveal_entries: True이면(관리 스코프를 가진 기업 사용자) 제출물 전체와 학생 이름을 포함하고,
                False이면 제출물을 id, student, submissionStatus, selected만 남기고 가립니다.

        Raises:
            ProjectNotFoundError: 해당 ID의 프로젝트를 찾을 수 없을 때.
        """
        project = self._get_project(project_id)
        return self._populate_project(project, reveal_entries)

    # ------------------------------------------------------------------
    # 생성 / 수정 / 삭제
    # ------------------------------------------------------------------

    def create(self, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        요청자를 liaison으로 하는 새 프로젝트를 'active' 상태로 생성합니다.

        필수 필드(title, summary, organization)는 어떤 쓰기보다 먼저 검증합니다.
        프로젝트 저장 후 liaison의 프로젝트 목록 갱신과 S3 폴더 준비는 best-effort 단계로,
        실패해도 로그만 남기고 이미 저장된 프로젝트는 되돌리지 않습니다.

        Raises:
            ValidationError: 필수 필드가 없거나 deadline 형식이 잘못되었을 때.
        """
        if not auth_id or any(not request.get(field) for field in self.REQUIRED_FIELDS):
            raise ValidationError("Incorrect project data")

        project = models.Project(
            id=embedded.new_id(),
            title=request["title"],
            summary=request["summary"],
            liaison_id=auth_id,
            organization_id=request["organization"],
            full_description=request.get("fullDescription"),
            category=request.get("category"),
            deadline=parse_deadline(request.get("deadline")),
            specs=list(request.get("specs") or []),
            deliverables=list(request.get("deliverables") or []),
            status="active",
            supplemental_resources=[],
            comments=[],
            entries=[],
        )
        saved = {}

        def save_project():
            saved["project"] = self.project_repo.create(project)

        def add_to_liaison():
            if not self.user_repo.push_project(project.liaison_id, project.id):
                raise UserNotFoundError(f"User with id '{project.liaison_id}' not found.")

        def provision_storage():
            self.storage_service.create_folder(self.projects_bucket, project.id)

        result = (Workflow("create project")
                  .step("save project", save_project)
                  .step("add project to liaison", add_to_liaison, required=False)
                  .step("provision storage", provision_storage, required=False)
                  .run())
        if not result.ok:
            logger.warning("Project '%s' created with incomplete side effects: %s", project.id, result.failed)
        return saved["project"].to_dict()

    def update(self, project_id: str, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        프로젝트의 필드를 요청 값으로 덮어씁니다. 프로젝트를 소유한 liaison만 수정할 수 있습니다.

        Raises:
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 프로젝트의 liaison이 아닐 때.
            ValidationError: title 또는 summary가 비어 있을 때.
        """
        if not request.get("title") or not request.get("summary"):
            raise ValidationError("Incorrect project data")
        deadline = parse_deadline(request.get("deadline"))

        project = self._get_owned_project(project_id, auth_id, "You can only update your own project")
        project.title = request["title"]
        project.summary = request["summary"]
        project.full_description = request.get("fullDescription")
        project.category = request.get("category")
        project.specs = list(request.get("specs") or [])
        project.deliverables = list(request.get("deliverables") or [])
        project.deadline = deadline
        if request.get("organization"):
            project.organization_id = request["organization"]
        return self.project_repo.save(project).to_dict()

    def delete(self, project_id: str, auth_id: str) -> bool:
        """
        프로젝트를 삭제합니다. 프로젝트를 소유한 liaison만 삭제할 수 있습니다.

        Raises:
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 프로젝트의 liaison이 아닐 때.
        """
        project = self._get_owned_project(project_id, auth_id, "You can only delete your own project")
        self.project_repo.delete(project)
        return True

    # ------------------------------------------------------------------
    # 상태 전이
    # ------------------------------------------------------------------

    def update_project_status(self, project_id: str, auth_id: str, status: str,
                              selected_student_id: str = None) -> Dict[str, Any]:
        """
        프로젝트 상태를 바꾸고, 선택된 학생의 제출물을 selected로 표시합니다.

        'complete'로 바꾸는 경우 선택된 학생이 반드시 있어야 하며, 저장 후 제출물을 낸
        모든 학생의 포트폴리오에 프로젝트 스냅샷을 하나씩 추가합니다. 이 추가는 학생별로
        독립적인 쓰기이므로 중간에 실패하면 일부 학생만 반영된 상태로 하나의 오류를 던집니다.

        Args:
            project_id: 상태를 바꿀 프로젝트의 ID.
            auth_id: 요청한 사용자의 ID (프로젝트 liaison이어야 함).
            status: 새 상태. STATUSES 중 하나.
            selected_student_id: 선택할 제출물의 학생 ID.

        Returns:
            갱신된 프로젝트 딕셔너리.

        Raises:
            ValidationError: 상태 값이 잘못되었거나 'complete'인데 선택된 학생이 없을 때.
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 프로젝트의 liaison이 아닐 때.
            EntryNotFoundError: 선택된 학생의 제출물이 프로젝트에 없을 때.
            WorkflowError: 포트폴리오 추가 중 일부가 실패했을 때.
        """
        if status not in self.STATUSES or (status == 'complete' and not selected_student_id):
            raise ValidationError("Invalid request")

        project = self._get_owned_project(project_id, auth_id, "You can only update your own project")

        if selected_student_id:
            entries = copy.deepcopy(project.entries or [])
            selected_index = embedded.find_index(entries, lambda e: e.get("student") == selected_student_id)
            if selected_index == -1:
                raise EntryNotFoundError("The selected student has no entry for this project")
            for index, entry in enumerate(entries):
                entry["selected"] = index == selected_index
            project.entries = entries
            project.selected_student_id = selected_student_id

        project.status = status
        project = self.project_repo.save(project)

        if status == 'complete':
            self.add_completed_project_to_student_portfolios(project)
        return project.to_dict()

    def add_completed_project_to_student_portfolios(self, project: models.Project):
        """
        완료된 프로젝트의 스냅샷을 제출물을 낸 모든 학생의 포트폴리오에 추가합니다.

        Raises:
            WorkflowError: 한 명 이상의 학생에게 추가하지 못했을 때. 이미 추가된 학생은 되돌리지 않습니다.
        """
        workflow = Workflow("add completed project to portfolios")
        for entry in project.entries or []:
            workflow.step(f"portfolio:{entry['student']}", self._portfolio_appender(project, entry))
        return workflow.fan_out()

    def _portfolio_appender(self, project: models.Project, entry: Dict[str, Any]):
        portfolio_entry = {
            "id": embedded.new_id(),
            "project": {
                "id": project.id,
                "title": project.title,
                "organization": project.organization_id,
                "liaison": project.liaison_id,
                "summary": project.summary,
            },
            "submission": {
                "assets": copy.deepcopy(entry.get("assets") or []),
                "commentary": entry.get("commentary"),
                "selected": bool(entry.get("selected")),
            },
            "visible": True,
            "selected": entry["student"] == project.selected_student_id,
        }

        def append():
            if not self.user_repo.push_portfolio_entry(entry["student"], portfolio_entry):
                raise UserNotFoundError(f"User with id '{entry['student']}' not found.")
        return append

    # ------------------------------------------------------------------
    # 보상(Reward)
    # ------------------------------------------------------------------

    def add_project_reward(self, project_id: str, auth_id: str, reward: Dict[str, Any]) -> Dict[str, Any]:
        """
        프로젝트에 보상을 추가합니다. 새 보상은 항상 'pending' 상태로 시작합니다.

        Raises:
            ValidationError: amount가 양수가 아닐 때.
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 프로젝트의 liaison이 아닐 때.
        """
        amount = (reward or {}).get("amount")
        valid = not isinstance(amount, bool) and isinstance(amount, (int, float)) and math.isfinite(amount)
        if not valid or amount <= 0:
            raise ValidationError("Reward amount must be a positive number")

        project = self._get_owned_project(project_id, auth_id, "You can only add a reward to your own project")
        project.reward = {"amount": amount, "status": "pending"}
        return self.project_repo.save(project).to_dict()

    def update_project_reward(self, project_id: str, auth_id: str, reward: Dict[str, Any]) -> Dict[str, Any]:
        """프로젝트 보상의 상태만 변경합니다."""
        status = (reward or {}).get("status")
        if status not in self.REWARD_STATUSES:
            raise ValidationError("Invalid reward status")

        project = self._get_owned_project(project_id, auth_id, "You can only update the reward of your own project")
        if not project.reward:
            raise NotFoundError("This project has no reward")
        project.reward = dict(project.reward, status=status)
        return self.project_repo.save(project).to_dict()

    # ------------------------------------------------------------------
    # 보조 자료(Supplemental Resources)
    # ------------------------------------------------------------------

    def create_supplemental_resource(self, project_id: str, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        JSON 요청으로 보조 자료(Asset)를 프로젝트에 추가합니다.

        Raises:
            ValidationError: name 또는 mediaType이 없을 때.
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 프로젝트의 liaison이 아닐 때.
        """
        asset = self.asset_service.create_asset_from_request(request)
        project = self._get_owned_project(project_id, auth_id, "You can only add a resource to your own project")
        project.supplemental_resources = embedded.append(project.supplemental_resources, asset)
        self.project_repo.save(project)
        return asset

    def create_supplemental_resource_from_file(self, project_id: str, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        업로드된 파일을 S3에 저장하고, 그 URI를 가진 보조 자료를 프로젝트에 추가합니다.

        미디어 타입은 파일 시그니처로 판별한 값이며, 클라이언트가 보낸 값은 사용하지 않습니다.

        Raises:
            InvalidInputError: name이나 file이 없거나 디코딩할 수 없을 때.
            UnrecognizedFileTypeError: 파일 형식을 판별할 수 없을 때.
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 프로젝트의 liaison이 아닐 때.
            StorageError: S3 업로드에 실패했을 때.
        """
        uploaded = self.asset_service.get_file_from_request(request)
        project = self._get_owned_project(project_id, auth_id, "You can only add a resource to your own project")

        uri = self.storage_service.upload_file(
            self.projects_bucket, f"{project.id}/supplemental-resources",
            uploaded.name, uploaded.extension, uploaded.contents,
        )
        asset = embedded.new_asset(uploaded.name, uploaded.media_type, uri=uri)
        project.supplemental_resources = embedded.append(project.supplemental_resources, asset)
        self.project_repo.save(project)
        return asset

    def delete_supplemental_resource(self, project_id: str, auth_id: str, asset_id: str) -> Optional[Dict[str, Any]]:
        """
        보조 자료를 삭제합니다. 해당 ID의 자료가 없으면 아무것도 바꾸지 않습니다.

        이미지 자료는 S3 파일 삭제도 시도하지만, 실패해도 문서 변경은 그대로 유지합니다.

        Returns:
            삭제된 자료. 없었으면 None.
        """
        project = self._get_owned_project(project_id, auth_id, "You can only remove a resource from your own project")
        resources, removed = embedded.remove_by_id(project.supplemental_resources, asset_id)
        if removed is None:
            return None

        project.supplemental_resources = resources
        self.project_repo.save(project)
        self._delete_stored_image(self.projects_bucket, removed)
        return removed

    # ------------------------------------------------------------------
    # 댓글(Comments)
    # ------------------------------------------------------------------

    def create_project_comment(self, project_id: str, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """프로젝트 댓글 목록의 맨 앞에 새 댓글을 추가합니다."""
        if not request.get("text"):
            raise ValidationError("Comment text is required")
        project = self._get_project(project_id)
        comment = embedded.new_message(auth_id, request["text"])
        project.comments = embedded.prepend(project.comments, comment)
        self.project_repo.save(project)
        return comment

    def delete_project_comment(self, project_id: str, auth_id: str, comment_id: str) -> Optional[Dict[str, Any]]:
        """
        프로젝트 댓글을 삭제합니다. 댓글 작성자만 삭제할 수 있으며, 없는 댓글이면 아무것도 하지 않습니다.

        Raises:
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AuthorizationError: 요청자가 댓글 작성자가 아닐 때.
        """
        project = self._get_project(project_id)
        comment = embedded.find_by_id(project.comments, comment_id)
        if comment is None:
            return None
        if not is_owner(auth_id, comment.get("author")):
            raise AuthorizationError("You can only delete your own comment")

        project.comments, removed = embedded.remove_by_id(project.comments, comment_id)
        self.project_repo.save(project)
        return removed

    # ------------------------------------------------------------------
    # Helper Methods
    # ------------------------------------------------------------------

    def get_valid_list_query_params(self, query_params: Dict[str, Any] = None) -> Dict[str, Any]:
        """허용된 키만 남긴 필터를 반환합니다. (예: {'status': 'active'})"""
        return {k: v for k, v in (query_params or {}).items() if k in self.VALID_LIST_QUERY_PARAMS}

    def _get_project(self, project_id: str) -> models.Project:
        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFoundError("Project not found")
        return project

    def _get_owned_project(self, project_id: str, auth_id: str, denied_message: str) -> models.Project:
        project = self._get_project(project_id)
        if not is_owner(auth_id, project.liaison_id):
            logger.info("User '%s' denied on project '%s': not the liaison", auth_id, project_id)
            raise AuthorizationError(denied_message)
        return project

    def _delete_stored_image(self, bucket: str, asset: Dict[str, Any]):
        if asset.get("mediaType") != "image" or not asset.get("uri"):
            return
        try:
            self.storage_service.delete_file(bucket, asset["uri"])
        except StorageError as e:
            logger.warning("Could not delete '%s' from object storage: %s", asset["uri"], e)

    def _populate_project(self, project: models.Project, reveal_entries: bool) -> Dict[str, Any]:
        data = project.to_dict()
        entries = project.entries or []

        user_ids = {project.liaison_id, project.selected_student_id}
        user_ids.update(c.get("author") for c in project.comments or [])
        if reveal_entries:
            for entry in entries:
                user_ids.add(entry.get("student"))
                user_ids.update(c.get("author") for c in entry.get("comments") or [])
        users = user_refs(self.user_repo, user_ids)

        organization = self.organization_repo.find_by_id(project.organization_id)
        data["organization"] = {
            "id": project.organization_id,
            "name": organization.name if organization else None,
            "about": organization.about if organization else None,
        }
        data["liaison"] = users.get(project.liaison_id)
        data["selectedStudent"] = users.get(project.selected_student_id)
        data["comments"] = [dict(c, author=users.get(c.get("author"))) for c in project.comments or []]

        if reveal_entries:
            data["entries"] = [populate_entry(entry, users) for entry in entries]
        else:
            data["entries"] = [
                {k: entry.get(k) for k in ("id", "student", "submissionStatus", "selected")}
                for entry in entries
            ]
        return data


def user_refs(user_repo: IUserRepository, user_ids) -> Dict[str, Dict[str, Any]]:
    """사용자 ID 집합을 {id: {'id', 'name'}} 형태로 바꿉니다. 찾지 못한 사용자는 name이 None입니다."""
    ids = [uid for uid in set(user_ids) if uid]
    found = {u.id: u.name for u in user_repo.find_by_ids(ids)}
    return {uid: {"id": uid, "name": found.get(uid)} for uid in ids}


def populate_entry(entry: Dict[str, Any], users: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    data = copy.deepcopy(entry)
    data["student"] = users.get(entry.get("student"), {"id": entry.get("student"), "name": None})
    data["comments"] = [
        dict(c, author=users.get(c.get("author"), {"id": c.get("author"), "name": None}))
        for c in entry.get("comments") or []
    ]
    return data
