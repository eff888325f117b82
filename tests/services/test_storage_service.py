# tests/services/test_storage_service.py
import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError

from scholance.services.storage_service import StorageService
from scholance.services.exceptions import StorageError


@pytest.fixture
def mock_s3_client() -> MagicMock:
    """boto3 S3 클라이언트에 대한 모의 객체를 생성합니다."""
    return MagicMock()

@pytest.fixture
def storage_service(mock_s3_client) -> StorageService:
    return StorageService(client=mock_s3_client, public_base_url="https://s3.example.com/")


class TestStorageService:
    def test_create_folder(self, storage_service, mock_s3_client):
        key = storage_service.create_folder("users", "s1/projects/p1")

        assert key == "s1/projects/p1/"
        mock_s3_client.put_object.assert_called_once_with(Bucket="users", Key="s1/projects/p1/")

    def test_upload_file_returns_public_uri(self, storage_service, mock_s3_client):
        """업로드 키에서 공백이 '_'로 바뀌고 공개 URI가 반환되는지 테스트합니다."""
        uri = storage_service.upload_file("projects", "p1/supplemental-resources", "design brief", "pdf", b"%PDF")

        assert uri == "https://s3.example.com/projects/p1/supplemental-resources/design_brief.pdf"
        mock_s3_client.put_object.assert_called_once_with(
            ACL="public-read", Bucket="projects", Key="p1/supplemental-resources/design_brief.pdf", Body=b"%PDF")

    def test_delete_file_by_uri(self, storage_service, mock_s3_client):
        storage_service.delete_file("projects", "https://s3.example.com/projects/p1/logo.png")

        mock_s3_client.delete_object.assert_called_once_with(Bucket="projects", Key="p1/logo.png")

    def test_client_error_becomes_storage_error(self, storage_service, mock_s3_client):
        """S3 오류가 StorageError(503)로 변환되는지 테스트합니다."""
        mock_s3_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "NoSuchBucket", "Message": "missing"}}, "PutObject")

        with pytest.raises(StorageError) as exc_info:
            storage_service.create_folder("missing", "p1")
        assert exc_info.value.status_code == 503
