import copy
import logging
from typing import Dict, Any, Optional, Tuple

from scholance.auth import is_owner
from scholance.config import Config
from scholance.database import models
from scholance.database.models import embedded
from scholance.repositories.interfaces import IProjectRepository, IUserRepository
from scholance.services.asset_service import AssetService
from scholance.services.storage_service import StorageService
from scholance.services.workflow import Workflow
from scholance.services.project_service import user_refs, populate_entry
from scholance.services.exceptions import (
    ValidationError, AuthorizationError, ProjectNotFoundError, EntryNotFoundError,
    UserNotFoundError, AlreadySignedUpError, StorageError,
)

logger = logging.getLogger(__name__)


class EntryService:
    """학생의 프로젝트 참여(제출물) 생명주기와 제출물 안의 자료/댓글을 관리합니다."""

    def __init__(self, project_repo: IProjectRepository, user_repo: IUserRepository,
                 storage_service: StorageService, asset_service: AssetService = None,
                 users_bucket: str = None):
        """
        EntryService를 초기화합니다.

        Args:
            project_repo: 제출물을 포함하는 프로젝트 문서에 접근하기 위한 리포지토리.
            user_repo: 학생의 프로젝트 목록을 갱신하기 위한 리포지토리.
            storage_service: 제출물 파일을 저장하는 오브젝트 스토리지 서비스.
            asset_service: Asset 생성과 업로드 파일 해석을 담당하는 서비스.
            users_bucket: 학생 제출물을 저장할 버킷 이름.
        """
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.storage_service = storage_service
        self.asset_service = asset_service or AssetService()
        self.users_bucket = users_bucket or Config.S3_USERS_BUCKET

    def get_by_student_id(self, project_id: str, student_id: str) -> Dict[str, Any]:
        """
        프로젝트에서 특정 학생의 제출물을 조회합니다. 학생과 댓글 작성자 이름이 채워집니다.

        Raises:
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            EntryNotFoundError: 해당 학생의 제출물이 없을 때.
        """
        project = self._get_project(project_id)
        _, entry = self._get_entry(project, student_id)

        user_ids = {entry.get("student")}
        user_ids.update(c.get("author") for c in entry.get("comments") or [])
        return populate_entry(entry, user_refs(self.user_repo, user_ids))

    def project_signup(self, project_id: str, student_id: str) -> Dict[str, Any]:
        """
        학생을 프로젝트에 참여시킵니다.

        1. 프로젝트에 'active' 상태의 빈 제출물을 추가합니다.
        2. 학생의 프로젝트 목록에 프로젝트 ID를 추가합니다.
        3. 제출물 파일을 둘 S3 폴더('<studentId>/projects/<projectId>/')를 만듭니다. (best-effort)

        2단계가 실패하면 1단계에서 추가한 제출물을 다시 제거합니다.

        Returns:
            새로 생성된 제출물.

        Raises:
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            AlreadySignedUpError: 이미 참여한 학생일 때.
            WorkflowError: 학생 목록 갱신에 실패해 제출물 추가를 되돌렸을 때.
        """
        project = self._get_project(project_id)
        if embedded.find(project.entries, lambda e: e.get("student") == student_id):
            raise AlreadySignedUpError("You are already signed up for this project")

        entry = embedded.new_entry(student_id)

        def append_entry():
            project.entries = embedded.append(project.entries, entry)
            self.project_repo.save(project)

        def remove_entry():
            project.entries, _ = embedded.remove_by_id(project.entries, entry["id"])
            self.project_repo.save(project)

        def add_to_student():
            if not self.user_repo.push_project(student_id, project.id):
                raise UserNotFoundError(f"User with id '{student_id}' not found.")

        def provision_storage():
            self.storage_service.create_folder(self.users_bucket, self._entry_folder(project.id, student_id))

        (Workflow("project signup")
         .step("append entry", append_entry, compensate=remove_entry)
         .step("add project to student", add_to_student)
         .step("provision storage", provision_storage, required=False)
         .run())
        return entry

    def project_signoff(self, project_id: str, student_id: str) -> Dict[str, Any]:
        """
        학생의 프로젝트 참여를 취소합니다.

        제출물 제거와 학생 프로젝트 목록에서의 제거는 서로 독립된 쓰기이며,
        S3 폴더 삭제는 best-effort로 수행합니다.

        Returns:
            제거된 제출물.

        Raises:
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            EntryNotFoundError: 해당 학생의 제출물이 없을 때.
            WorkflowError: 제출물 제거 후 학생 목록 갱신에 실패했을 때.
        """
        project = self._get_project(project_id)
        _, entry = self._get_entry(project, student_id)

        def remove_entry():
            project.entries, _ = embedded.remove_by_id(project.entries, entry["id"])
            self.project_repo.save(project)

        def remove_from_student():
            # 삭제된 학생에게는 갱신할 프로젝트 목록이 없습니다.
            if not self.user_repo.pull_project(student_id, project.id):
                logger.warning("Signoff of project '%s': user '%s' no longer exists", project.id, student_id)

        def remove_storage():
            self.storage_service.delete_folder(self.users_bucket, self._entry_folder(project.id, student_id))

        (Workflow("project signoff")
         .step("remove entry", remove_entry)
         .step("remove project from student", remove_from_student)
         .step("remove storage", remove_storage, required=False)
         .run())
        return entry

    def update(self, project_id: str, student_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        제출물의 submissionStatus와 commentary만 갱신합니다. 그 밖의 필드는 무시합니다.
        commentary는 비어 있지 않은 값이 왔을 때만 덮어씁니다.

        Raises:
            ValidationError: submissionStatus가 비어 있을 때.
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            EntryNotFoundError: 해당 학생의 제출물이 없을 때.
        """
        if not request.get("submissionStatus"):
            raise ValidationError("Invalid entry data")

        project = self._get_project(project_id)
        index, _ = self._get_entry(project, student_id)

        entries = copy.deepcopy(project.entries)
        entries[index]["submissionStatus"] = request["submissionStatus"]
        if request.get("commentary"):
            entries[index]["commentary"] = request["commentary"]
        project.entries = entries
        self.project_repo.save(project)
        return entries[index]

    # --- Assets ---

    def create_asset(self, project_id: str, student_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """JSON 요청으로 만든 Asset을 학생 제출물에 추가합니다."""
        asset = self.asset_service.create_asset_from_request(request)
        project = self._get_project(project_id)
        self._append_to_entry(project, student_id, "assets", asset)
        return asset

    def create_asset_from_file(self, project_id: str, student_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        업로드된 파일을 '<studentId>/projects/<projectId>/<name>.<ext>'에 저장하고
        그 URI를 가진 Asset을 학생 제출물에 추가합니다.

        Raises:
            InvalidInputError: name이나 file이 없거나 디코딩할 수 없을 때.
            UnrecognizedFileTypeError: 파일 형식을 판별할 수 없을 때.
            ProjectNotFoundError: 프로젝트를 찾을 수 없을 때.
            EntryNotFoundError: 해당 학생의 제출물이 없을 때.
            StorageError: S3 업로드에 실패했을 때.
        """
        uploaded = self.asset_service.get_file_from_request(request)
        project = self._get_project(project_id)
        self._get_entry(project, student_id)

        uri = self.storage_service.upload_file(
            self.users_bucket, self._entry_folder(project.id, student_id),
            uploaded.name, uploaded.extension, uploaded.contents,
        )
        asset = embedded.new_asset(uploaded.name, uploaded.media_type, uri=uri)
        self._append_to_entry(project, student_id, "assets", asset)
        return asset

    def delete_asset(self, project_id: str, student_id: str, asset_id: str) -> Optional[Dict[str, Any]]:
        """
        학생 제출물에서 Asset을 삭제합니다. 해당 ID의 Asset이 없으면 아무것도 하지 않습니다.
        이미지 Asset은 S3 파일 삭제도 best-effort로 시도합니다.
        """
        project = self._get_project(project_id)
        index, entry = self._get_entry(project, student_id)
        assets, removed = embedded.remove_by_id(entry.get("assets"), asset_id)
        if removed is None:
            return None

        entries = copy.deepcopy(project.entries)
        entries[index]["assets"] = assets
        project.entries = entries
        self.project_repo.save(project)

        if removed.get("mediaType") == "image" and removed.get("uri"):
            try:
                self.storage_service.delete_file(self.users_bucket, removed["uri"])
            except StorageError as e:
                logger.warning("Could not delete '%s' from object storage: %s", removed["uri"], e)
        return removed

    # --- Comments ---

    def create_entry_comment(self, project_id: str, student_id: str, auth_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        """제출물 댓글 목록의 맨 앞에 새 댓글을 추가합니다."""
        if not request.get("text"):
            raise ValidationError("Comment text is required")
        project = self._get_project(project_id)
        index, entry = self._get_entry(project, student_id)

        comment = embedded.new_message(auth_id, request["text"])
        entries = copy.deepcopy(project.entries)
        entries[index]["comments"] = embedded.prepend(entry.get("comments"), comment)
        project.entries = entries
        self.project_repo.save(project)
        return comment

    def delete_entry_comment(self, project_id: str, student_id: str, auth_id: str, comment_id: str) -> Optional[Dict[str, Any]]:
        """
        제출물 댓글을 삭제합니다. 댓글 작성자만 삭제할 수 있으며, 없는 댓글이면 아무것도 하지 않습니다.

        Raises:
            AuthorizationError: 요청자가 댓글 작성자가 아닐 때.
        """
        project = self._get_project(project_id)
        index, entry = self._get_entry(project, student_id)
        comment = embedded.find_by_id(entry.get("comments"), comment_id)
        if comment is None:
            return None
        if not is_owner(auth_id, comment.get("author")):
            raise AuthorizationError("You can only delete your own comment")

        entries = copy.deepcopy(project.entries)
        entries[index]["comments"], removed = embedded.remove_by_id(entry.get("comments"), comment_id)
        project.entries = entries
        self.project_repo.save(project)
        return removed

    # --- Helper Methods ---

    @staticmethod
    def _entry_folder(project_id: str, student_id: str) -> str:
        return f"{student_id}/projects/{project_id}"

    def _get_project(self, project_id: str) -> models.Project:
        project = self.project_repo.find_by_id(project_id)
        if not project:
            raise ProjectNotFoundError("Project not found")
        return project

    def _get_entry(self, project: models.Project, student_id: str) -> Tuple[int, Dict[str, Any]]:
        index = embedded.find_index(project.entries, lambda e: e.get("student") == student_id)
        if index == -1:
            raise EntryNotFoundError("User is not signed up for this project")
        return index, project.entries[index]

    def _append_to_entry(self, project: models.Project, student_id: str, field: str, item: Dict[str, Any]):
        index, entry = self._get_entry(project, student_id)
        entries = copy.deepcopy(project.entries)
        entries[index][field] = embedded.append(entry.get(field), item)
        project.entries = entries
        self.project_repo.save(project)
