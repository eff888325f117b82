# tests/services/test_project_service.py
import pytest
from unittest.mock import MagicMock, ANY
from datetime import datetime

from scholance.services.project_service import ProjectService
from scholance.services.asset_service import AssetService, UploadedFile
from scholance.services.storage_service import StorageService
from scholance.services.exceptions import *
from scholance.repositories.interfaces import IProjectRepository, IUserRepository, IOrganizationRepository
from scholance.database import models

# ===================================================================
#  Fixture 설정
# ===================================================================

LIAISON_ID = "liaison-1"


def make_project(**overrides) -> models.Project:
    """테스트용 프로젝트 모델을 생성합니다. 기본값은 liaison-1이 소유한 'active' 프로젝트입니다."""
    fields = dict(
        id="p1", title="Logo Design", summary="Design a logo", status="active",
        liaison_id=LIAISON_ID, organization_id="org-1", selected_student_id=None,
        deliverables=[], specs=[], supplemental_resources=[], comments=[], entries=[], reward=None,
    )
    fields.update(overrides)
    return models.Project(**fields)


def make_entry(student, entry_id=None, **overrides):
    entry = {
        "id": entry_id or f"e-{student}", "student": student, "commentary": None,
        "submissionStatus": "active", "assets": [], "comments": [], "selected": False,
    }
    entry.update(overrides)
    return entry


@pytest.fixture
def mock_project_repo() -> MagicMock:
    """IProjectRepository에 대한 모의 객체를 생성합니다. save는 전달받은 모델을 그대로 반환합니다."""
    repo = MagicMock(spec=IProjectRepository)
    repo.save.side_effect = lambda project: project
    repo.create.side_effect = lambda project: project
    return repo

@pytest.fixture
def mock_user_repo() -> MagicMock:
    """IUserRepository에 대한 모의 객체를 생성합니다."""
    repo = MagicMock(spec=IUserRepository)
    repo.find_by_ids.return_value = []
    repo.push_project.return_value = True
    repo.push_portfolio_entry.return_value = True
    return repo

@pytest.fixture
def mock_org_repo() -> MagicMock:
    """IOrganizationRepository에 대한 모의 객체를 생성합니다."""
    repo = MagicMock(spec=IOrganizationRepository)
    repo.find_by_id.return_value = models.Organization(id="org-1", name="Acme", about="We make things")
    repo.find_by_ids.return_value = [models.Organization(id="org-1", name="Acme")]
    return repo

@pytest.fixture
def mock_storage() -> MagicMock:
    """StorageService에 대한 모의 객체를 생성합니다."""
    return MagicMock(spec=StorageService)

@pytest.fixture
def mock_asset_service() -> MagicMock:
    return MagicMock(spec=AssetService)

@pytest.fixture
def project_service(mock_project_repo, mock_user_repo, mock_org_repo, mock_storage, mock_asset_service) -> ProjectService:
    """테스트에 사용될 ProjectService 인스턴스를 생성하고, 의존성을 주입합니다."""
    return ProjectService(mock_project_repo, mock_user_repo, mock_org_repo, mock_storage,
                          mock_asset_service, projects_bucket="projects-bucket")

# ===================================================================
#  조회(list / get) 테스트
# ===================================================================
class TestQueryProjects:
    def test_list_drops_unknown_filters_and_populates_organization(self, project_service, mock_project_repo):
        """허용되지 않은 필터는 버리고, 각 프로젝트에 조직 이름을 채우는지 테스트합니다."""
        # === Arrange ===
        mock_project_repo.list.return_value = [make_project()]

        # === Act ===
        projects = project_service.list({"status": "active", "liaison": "someone"})

        # === Assert ===
        mock_project_repo.list.assert_called_once_with({"status": "active"})
        assert projects[0]["organization"] == {"id": "org-1", "name": "Acme"}

    def test_get_project_not_found(self, project_service, mock_project_repo):
        """존재하지 않는 프로젝트 조회 시 ProjectNotFoundError가 발생하는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = None

        with pytest.raises(ProjectNotFoundError):
            project_service.get("missing")

    def test_get_project_redacts_entries_without_reveal(self, project_service, mock_project_repo):
        """관리 권한이 없으면 제출물이 id, student, submissionStatus, selected만 남는지 테스트합니다."""
        # === Arrange ===
        entry = make_entry("s1", commentary="secret", assets=[{"id": "a1", "name": "x", "mediaType": "image"}])
        mock_project_repo.find_by_id.return_value = make_project(entries=[entry])

        # === Act ===
        project = project_service.get("p1", reveal_entries=False)

        # === Assert ===
        assert project["entries"] == [{"id": "e-s1", "student": "s1", "submissionStatus": "active", "selected": False}]
        assert project["organization"] == {"id": "org-1", "name": "Acme", "about": "We make things"}

    def test_get_project_reveals_entries_with_student_names(self, project_service, mock_project_repo, mock_user_repo):
        """관리 권한이 있으면 제출물 전체와 학생 이름이 채워지는지 테스트합니다."""
        # === Arrange ===
        entry = make_entry("s1", commentary="my work")
        mock_project_repo.find_by_id.return_value = make_project(entries=[entry])
        mock_user_repo.find_by_ids.return_value = [
            models.User(id="s1", name="Student One"),
            models.User(id=LIAISON_ID, name="Liz"),
        ]

        # === Act ===
        project = project_service.get("p1", reveal_entries=True)

        # === Assert ===
        assert project["entries"][0]["student"] == {"id": "s1", "name": "Student One"}
        assert project["entries"][0]["commentary"] == "my work"
        assert project["liaison"] == {"id": LIAISON_ID, "name": "Liz"}

# ===================================================================
#  생성 / 수정 / 삭제 테스트
# ===================================================================
class TestProjectLifecycle:
    REQUEST = {"title": "Logo", "summary": "Design a logo", "organization": "org-1",
               "deadline": "2030-01-31T00:00:00Z", "specs": ["svg"]}

    def test_create_project_success(self, project_service, mock_project_repo, mock_user_repo, mock_storage):
        """프로젝트 생성 시 'active' 상태로 저장되고, liaison 목록과 S3 폴더가 준비되는지 테스트합니다."""
        # === Act ===
        project = project_service.create(LIAISON_ID, dict(self.REQUEST))

        # === Assert ===
        assert project["status"] == "active"
        assert project["liaison"] == LIAISON_ID
        assert project["deadline"].startswith("2030-01-31")
        mock_project_repo.create.assert_called_once_with(ANY)
        mock_user_repo.push_project.assert_called_once_with(LIAISON_ID, project["id"])
        mock_storage.create_folder.assert_called_once_with("projects-bucket", project["id"])

    @pytest.mark.parametrize("missing", ["title", "summary", "organization"])
    def test_create_project_requires_fields(self, project_service, mock_project_repo, missing):
        """필수 필드가 없으면 어떤 쓰기도 하지 않고 ValidationError가 발생하는지 테스트합니다."""
        request = {k: v for k, v in self.REQUEST.items() if k != missing}

        with pytest.raises(ValidationError):
            project_service.create(LIAISON_ID, request)
        mock_project_repo.create.assert_not_called()

    def test_create_project_rejects_bad_deadline(self, project_service, mock_project_repo):
        """deadline이 ISO-8601 형식이 아니면 ValidationError가 발생하는지 테스트합니다."""
        with pytest.raises(ValidationError):
            project_service.create(LIAISON_ID, dict(self.REQUEST, deadline="next friday"))
        mock_project_repo.create.assert_not_called()

    def test_create_project_keeps_project_when_storage_fails(self, project_service, mock_project_repo, mock_storage):
        """S3 폴더 생성 실패는 best-effort로 처리되어 프로젝트 생성이 성공하는지 테스트합니다."""
        # === Arrange ===
        mock_storage.create_folder.side_effect = StorageError("boom")

        # === Act ===
        project = project_service.create(LIAISON_ID, dict(self.REQUEST))

        # === Assert ===
        assert project["title"] == "Logo"
        mock_project_repo.delete.assert_not_called()

    def test_update_project_by_non_owner_is_forbidden(self, project_service, mock_project_repo):
        """liaison이 아닌 사용자의 수정 요청은 AuthorizationError이며 저장하지 않는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = make_project()

        with pytest.raises(AuthorizationError):
            project_service.update("p1", "intruder", {"title": "x", "summary": "y"})
        mock_project_repo.save.assert_not_called()

    def test_update_project_overwrites_fields(self, project_service, mock_project_repo):
        """소유자의 수정 요청이 필드를 덮어쓰는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = make_project(category="design")

        project = project_service.update("p1", LIAISON_ID, {"title": "New", "summary": "Sum"})

        assert project["title"] == "New"
        assert project["category"] is None
        mock_project_repo.save.assert_called_once()

    def test_delete_project_by_owner(self, project_service, mock_project_repo):
        """소유자가 프로젝트를 삭제할 수 있는지 테스트합니다."""
        project = make_project()
        mock_project_repo.find_by_id.return_value = project

        assert project_service.delete("p1", LIAISON_ID) is True
        mock_project_repo.delete.assert_called_once_with(project)

# ===================================================================
#  상태 전이(Status) 테스트
# ===================================================================
class TestProjectStatus:
    def test_complete_marks_selected_entry_and_fans_out_portfolios(self, project_service, mock_project_repo, mock_user_repo):
        """'complete' 전이 시 선택된 제출물만 selected가 되고, 모든 학생 포트폴리오에 한 번씩 추가되는지 테스트합니다."""
        # === Arrange ===
        entries = [make_entry("s1"), make_entry("s2"), make_entry("s3")]
        mock_project_repo.find_by_id.return_value = make_project(entries=entries)

        # === Act ===
        project = project_service.update_project_status("p1", LIAISON_ID, "complete", "s2")

        # === Assert ===
        assert project["status"] == "complete"
        assert project["selectedStudent"] == "s2"
        assert [e["selected"] for e in project["entries"]] == [False, True, False]
        assert mock_user_repo.push_portfolio_entry.call_count == 3

        appended = {c.args[0]: c.args[1] for c in mock_user_repo.push_portfolio_entry.call_args_list}
        assert appended["s2"]["selected"] is True
        assert appended["s1"]["selected"] is False
        assert appended["s1"]["visible"] is True
        assert appended["s1"]["project"] == {
            "id": "p1", "title": "Logo Design", "organization": "org-1",
            "liaison": LIAISON_ID, "summary": "Design a logo",
        }

    def test_complete_requires_selected_student(self, project_service, mock_project_repo):
        """선택된 학생 없이 'complete'로 바꾸면 ValidationError가 발생하는지 테스트합니다."""
        with pytest.raises(ValidationError):
            project_service.update_project_status("p1", LIAISON_ID, "complete", None)
        mock_project_repo.save.assert_not_called()

    def test_unknown_status_is_rejected(self, project_service, mock_project_repo):
        with pytest.raises(ValidationError):
            project_service.update_project_status("p1", LIAISON_ID, "archived")

    def test_selected_student_without_entry(self, project_service, mock_project_repo):
        """선택된 학생의 제출물이 없으면 EntryNotFoundError가 발생하는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = make_project(entries=[make_entry("s1")])

        with pytest.raises(EntryNotFoundError):
            project_service.update_project_status("p1", LIAISON_ID, "complete", "s9")
        mock_project_repo.save.assert_not_called()

    def test_partial_portfolio_failure_raises_single_error(self, project_service, mock_project_repo, mock_user_repo):
        """포트폴리오 추가가 일부 실패하면 나머지는 계속 진행하고 하나의 WorkflowError를 던지는지 테스트합니다."""
        # === Arrange ===
        entries = [make_entry("s1"), make_entry("s2"), make_entry("s3")]
        mock_project_repo.find_by_id.return_value = make_project(entries=entries)
        mock_user_repo.push_portfolio_entry.side_effect = lambda user_id, entry: user_id != "s2"

        # === Act & Assert ===
        with pytest.raises(WorkflowError) as exc_info:
            project_service.update_project_status("p1", LIAISON_ID, "complete", "s1")

        assert exc_info.value.step == "portfolio:s2"
        assert exc_info.value.completed == ["portfolio:s1", "portfolio:s3"]
        assert exc_info.value.status_code == 500
        assert mock_user_repo.push_portfolio_entry.call_count == 3

    def test_close_without_selection(self, project_service, mock_project_repo, mock_user_repo):
        """'closed' 전이는 포트폴리오를 건드리지 않는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = make_project(entries=[make_entry("s1")])

        project = project_service.update_project_status("p1", LIAISON_ID, "closed")

        assert project["status"] == "closed"
        mock_user_repo.push_portfolio_entry.assert_not_called()

# ===================================================================
#  보상(Reward) 테스트
# ===================================================================
class TestProjectReward:
    def test_add_reward_starts_pending(self, project_service, mock_project_repo):
        mock_project_repo.find_by_id.return_value = make_project()

        project = project_service.add_project_reward("p1", LIAISON_ID, {"amount": 500, "status": "paid"})

        assert project["reward"] == {"amount": 500, "status": "pending"}

    @pytest.mark.parametrize("amount", [0, -10, "100", None, True, float("nan"), float("inf")])
    def test_add_reward_rejects_non_positive_amount(self, project_service, mock_project_repo, amount):
        with pytest.raises(ValidationError):
            project_service.add_project_reward("p1", LIAISON_ID, {"amount": amount})

    def test_update_reward_status(self, project_service, mock_project_repo):
        mock_project_repo.find_by_id.return_value = make_project(reward={"amount": 500, "status": "pending"})

        project = project_service.update_project_reward("p1", LIAISON_ID, {"status": "paid"})

        assert project["reward"] == {"amount": 500, "status": "paid"}

    def test_update_missing_reward(self, project_service, mock_project_repo):
        mock_project_repo.find_by_id.return_value = make_project()

        with pytest.raises(NotFoundError):
            project_service.update_project_reward("p1", LIAISON_ID, {"status": "paid"})

# ===================================================================
#  보조 자료(Supplemental Resources) 테스트
# ===================================================================
class TestSupplementalResources:
    def test_create_resource_from_file_uses_sniffed_type(self, project_service, mock_project_repo, mock_asset_service, mock_storage):
        """업로드 파일의 미디어 타입이 판별된 값으로 저장되고, 프로젝트 폴더에 업로드되는지 테스트합니다."""
        # === Arrange ===
        mock_project_repo.find_by_id.return_value = make_project()
        mock_asset_service.get_file_from_request.return_value = UploadedFile("brief", "application", "pdf", b"%PDF")
        mock_storage.upload_file.return_value = "https://s3/projects-bucket/p1/supplemental-resources/brief.pdf"

        # === Act ===
        asset = project_service.create_supplemental_resource_from_file("p1", LIAISON_ID, {"name": "brief", "file": "..."})

        # === Assert ===
        assert asset["mediaType"] == "application"
        assert asset["uri"].endswith("brief.pdf")
        mock_storage.upload_file.assert_called_once_with(
            "projects-bucket", "p1/supplemental-resources", "brief", "pdf", b"%PDF")
        saved = mock_project_repo.save.call_args.args[0]
        assert saved.supplemental_resources == [asset]

    def test_upload_by_non_owner_does_not_touch_storage(self, project_service, mock_project_repo, mock_asset_service, mock_storage):
        mock_project_repo.find_by_id.return_value = make_project()
        mock_asset_service.get_file_from_request.return_value = UploadedFile("brief", "application", "pdf", b"%PDF")

        with pytest.raises(AuthorizationError):
            project_service.create_supplemental_resource_from_file("p1", "intruder", {"name": "brief", "file": "..."})
        mock_storage.upload_file.assert_not_called()

    def test_delete_unknown_resource_is_noop(self, project_service, mock_project_repo, mock_storage):
        """존재하지 않는 자료 삭제는 아무것도 바꾸지 않는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = make_project(
            supplemental_resources=[{"id": "a1", "name": "x", "mediaType": "image", "uri": "u"}])

        assert project_service.delete_supplemental_resource("p1", LIAISON_ID, "a9") is None
        mock_project_repo.save.assert_not_called()
        mock_storage.delete_file.assert_not_called()

    def test_delete_image_resource_ignores_storage_failure(self, project_service, mock_project_repo, mock_storage):
        """이미지 자료 삭제 시 S3 삭제가 실패해도 문서 변경은 유지되는지 테스트합니다."""
        # === Arrange ===
        mock_project_repo.find_by_id.return_value = make_project(supplemental_resources=[
            {"id": "a1", "name": "logo", "mediaType": "image", "uri": "https://s3/projects-bucket/p1/logo.png"},
            {"id": "a2", "name": "notes", "mediaType": "text", "text": "hello"},
        ])
        mock_storage.delete_file.side_effect = StorageError("boom")

        # === Act ===
        removed = project_service.delete_supplemental_resource("p1", LIAISON_ID, "a1")

        # === Assert ===
        assert removed["id"] == "a1"
        saved = mock_project_repo.save.call_args.args[0]
        assert [r["id"] for r in saved.supplemental_resources] == ["a2"]
        mock_storage.delete_file.assert_called_once_with("projects-bucket", "https://s3/projects-bucket/p1/logo.png")

    def test_delete_non_image_resource_skips_storage(self, project_service, mock_project_repo, mock_storage):
        mock_project_repo.find_by_id.return_value = make_project(supplemental_resources=[
            {"id": "a2", "name": "brief", "mediaType": "application", "uri": "https://s3/projects-bucket/p1/brief.pdf"},
        ])

        project_service.delete_supplemental_resource("p1", LIAISON_ID, "a2")

        mock_storage.delete_file.assert_not_called()

# ===================================================================
#  댓글(Comments) 테스트
# ===================================================================
class TestProjectComments:
    def test_create_comment_is_prepended(self, project_service, mock_project_repo):
        """새 댓글이 목록 맨 앞에 추가되는지 테스트합니다."""
        mock_project_repo.find_by_id.return_value = make_project(
            comments=[{"id": "c1", "author": "u1", "text": "first"}])

        comment = project_service.create_project_comment("p1", "u2", {"text": "second"})

        saved = mock_project_repo.save.call_args.args[0]
        assert saved.comments[0] == comment
        assert comment["author"] == "u2"
        assert len(saved.comments) == 2

    def test_only_author_can_delete_comment(self, project_service, mock_project_repo):
        mock_project_repo.find_by_id.return_value = make_project(
            comments=[{"id": "c1", "author": "u1", "text": "first"}])

        with pytest.raises(AuthorizationError):
            project_service.delete_project_comment("p1", "u2", "c1")
        mock_project_repo.save.assert_not_called()

    def test_delete_unknown_comment_is_noop(self, project_service, mock_project_repo):
        mock_project_repo.find_by_id.return_value = make_project(comments=[])

        assert project_service.delete_project_comment("p1", "u1", "c9") is None
        mock_project_repo.save.assert_not_called()
